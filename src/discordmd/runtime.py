from __future__ import annotations

from contextvars import ContextVar, Token
import os

_VERBOSE_LOGGING: ContextVar[bool] = ContextVar(
    "discordmd_verbose_logging", default=False
)

_DEFAULT_MAX_DEPTH = 64
# Each nesting level costs a few interpreter frames in the tree walk.
MAX_DEPTH_CEILING = 128


def _read_positive_int_env(name: str, default: int, *, ceiling: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    return min(value, ceiling)


def get_verbose_logging() -> bool:
    return _VERBOSE_LOGGING.get()


def set_verbose_logging(enabled: bool) -> Token[bool]:
    return _VERBOSE_LOGGING.set(bool(enabled))


def reset_verbose_logging(token: Token[bool]) -> None:
    _VERBOSE_LOGGING.reset(token)


def get_default_max_depth() -> int:
    return _read_positive_int_env(
        "DISCORDMD_MAX_DEPTH", _DEFAULT_MAX_DEPTH, ceiling=MAX_DEPTH_CEILING
    )
