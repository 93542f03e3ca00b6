from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import tzinfo
from functools import lru_cache
from typing import Any

from dateutil import tz

from .runtime import MAX_DEPTH_CEILING, get_default_max_depth

DEFAULT_SPOILER_LABEL = "SPOILER"
DEFAULT_TIMEZONE = "UTC"


@lru_cache(maxsize=1)
def _load_dotenv() -> None:
    try:
        from dotenv import find_dotenv, load_dotenv

        env_path = find_dotenv(usecwd=True)
        if env_path:
            load_dotenv(env_path, override=False)
    except Exception:
        return


def _parse_bool(value: str, *, default: bool) -> bool:
    raw = (value or "").strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Look up a timezone by IANA name (``Europe/Paris``), ``UTC`` or ``local``."""
    raw = (name or "").strip()
    if not raw:
        return None
    if raw.lower() == "utc":
        return tz.UTC
    if raw.lower() == "local":
        return tz.tzlocal()
    return tz.gettz(raw)


@dataclass(frozen=True)
class RenderSettings:
    max_depth: int = 64
    timezone: str = DEFAULT_TIMEZONE
    spoiler_label: str = DEFAULT_SPOILER_LABEL
    replace_emoji: bool = True

    @property
    def tzinfo(self) -> tzinfo:
        return resolve_timezone(self.timezone) or tz.UTC


def settings_from_env() -> RenderSettings:
    _load_dotenv()

    timezone = (os.environ.get("DISCORDMD_TIMEZONE") or "").strip()
    if not timezone or resolve_timezone(timezone) is None:
        timezone = DEFAULT_TIMEZONE

    spoiler_label = (os.environ.get("DISCORDMD_SPOILER_LABEL") or "").strip()

    return RenderSettings(
        max_depth=get_default_max_depth(),
        timezone=timezone,
        spoiler_label=spoiler_label or DEFAULT_SPOILER_LABEL,
        replace_emoji=_parse_bool(
            os.environ.get("DISCORDMD_EMOJI", "1"), default=True
        ),
    )


def build_settings(overrides: dict[str, Any] | None = None) -> RenderSettings:
    settings = settings_from_env()
    if not overrides:
        return settings

    changes: dict[str, Any] = {}
    max_depth = overrides.get("max_depth")
    if max_depth is not None:
        if int(max_depth) <= 0:
            raise ValueError("max_depth must be a positive integer")
        changes["max_depth"] = min(int(max_depth), MAX_DEPTH_CEILING)
    timezone = overrides.get("timezone")
    if timezone:
        if resolve_timezone(timezone) is None:
            raise ValueError(f"Unknown timezone: {timezone}")
        changes["timezone"] = timezone
    spoiler_label = overrides.get("spoiler_label")
    if spoiler_label:
        changes["spoiler_label"] = spoiler_label
    if overrides.get("replace_emoji") is not None:
        changes["replace_emoji"] = bool(overrides["replace_emoji"])
    return replace(settings, **changes)
