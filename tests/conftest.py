from __future__ import annotations

import pytest

from discordmd import config

_ENV_VARS = (
    "DISCORDMD_MAX_DEPTH",
    "DISCORDMD_TIMEZONE",
    "DISCORDMD_SPOILER_LABEL",
    "DISCORDMD_EMOJI",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "_load_dotenv", lambda: None)
