from __future__ import annotations

import pytest
from dateutil import tz

from discordmd.config import (
    RenderSettings,
    build_settings,
    resolve_timezone,
    settings_from_env,
)
from discordmd.runtime import (
    MAX_DEPTH_CEILING,
    get_default_max_depth,
    get_verbose_logging,
    reset_verbose_logging,
    set_verbose_logging,
)


def test_defaults_without_environment() -> None:
    assert settings_from_env() == RenderSettings()


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("DISCORDMD_MAX_DEPTH", "12")
    monkeypatch.setenv("DISCORDMD_TIMEZONE", "local")
    monkeypatch.setenv("DISCORDMD_SPOILER_LABEL", "hidden")
    monkeypatch.setenv("DISCORDMD_EMOJI", "off")

    settings = settings_from_env()

    assert settings.max_depth == 12
    assert settings.timezone == "local"
    assert settings.spoiler_label == "hidden"
    assert settings.replace_emoji is False


def test_invalid_environment_values_fall_back(monkeypatch) -> None:
    monkeypatch.setenv("DISCORDMD_MAX_DEPTH", "lots")
    monkeypatch.setenv("DISCORDMD_TIMEZONE", "Nowhere/Land")
    monkeypatch.setenv("DISCORDMD_EMOJI", "maybe")

    settings = settings_from_env()

    assert settings.max_depth == 64
    assert settings.timezone == "UTC"
    assert settings.replace_emoji is True


def test_max_depth_is_capped(monkeypatch) -> None:
    monkeypatch.setenv("DISCORDMD_MAX_DEPTH", "100000")
    assert get_default_max_depth() == MAX_DEPTH_CEILING


def test_build_settings_caps_max_depth() -> None:
    assert build_settings({"max_depth": 10_000}).max_depth == MAX_DEPTH_CEILING
    assert build_settings({"max_depth": 450}).max_depth == MAX_DEPTH_CEILING


def test_build_settings_overrides() -> None:
    settings = build_settings(
        {"max_depth": 5, "timezone": "utc", "replace_emoji": False, "spoiler_label": None}
    )
    assert settings.max_depth == 5
    assert settings.tzinfo is tz.UTC
    assert settings.replace_emoji is False
    assert settings.spoiler_label == "SPOILER"


def test_build_settings_rejects_bad_values() -> None:
    with pytest.raises(ValueError):
        build_settings({"max_depth": 0})
    with pytest.raises(ValueError):
        build_settings({"timezone": "Nowhere/Land"})


def test_resolve_timezone() -> None:
    assert resolve_timezone("") is None
    assert resolve_timezone("UTC") is tz.UTC
    assert resolve_timezone("Nowhere/Land") is None


def test_verbose_toggle() -> None:
    assert get_verbose_logging() is False
    token = set_verbose_logging(True)
    try:
        assert get_verbose_logging() is True
    finally:
        reset_verbose_logging(token)
    assert get_verbose_logging() is False
