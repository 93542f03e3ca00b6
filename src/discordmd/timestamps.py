from __future__ import annotations

import math
from datetime import datetime, timezone, tzinfo

from dateutil.tz import UTC

TIMESTAMP_FORMATS = ("t", "T", "d", "D", "f", "F", "R")
DEFAULT_FORMAT = "f"
INVALID_DATE = "Invalid Date"

_STRFTIME = {
    "t": "%H:%M",
    "T": "%H:%M:%S",
    "d": "%d/%m/%Y",
    "D": "%d %B %Y",
    "f": "%d %B %Y %H:%M",
    "F": "%A, %d %B %Y %H:%M",
}

_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

# (upper bound in seconds, unit seconds, singular phrase, plural phrase)
_RELATIVE_THRESHOLDS = (
    (45, None, "a few seconds", None),
    (90, None, "a minute", None),
    (45 * 60, 60, None, "{} minutes"),
    (90 * 60, None, "an hour", None),
    (22 * 3600, 3600, None, "{} hours"),
    (36 * 3600, None, "a day", None),
    (26 * 86400, 86400, None, "{} days"),
    (46 * 86400, None, "a month", None),
    (320 * 86400, 30 * 86400, None, "{} months"),
    (548 * 86400, None, "a year", None),
)


def _strftime(moment: datetime, pattern: str) -> str:
    # %B and %A follow the process locale; spell them out so output is stable.
    pattern = pattern.replace("%B", _MONTHS[moment.month - 1])
    pattern = pattern.replace("%A", _WEEKDAYS[moment.weekday()])
    return moment.strftime(pattern)


def to_datetime(epoch: int | float, tz: tzinfo | None = None) -> datetime:
    moment = datetime.fromtimestamp(epoch, tz=timezone.utc)
    return moment.astimezone(tz or UTC)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def humanize_delta(seconds: float) -> str:
    """Describe a duration the way day.js ``fromNow`` does, without direction."""
    magnitude = abs(seconds)
    for bound, unit, singular, plural in _RELATIVE_THRESHOLDS:
        if magnitude < bound:
            if singular is not None:
                return singular
            return plural.format(max(2, _round_half_up(magnitude / unit)))
    years = max(2, _round_half_up(magnitude / (365 * 86400)))
    return f"{years} years"


def format_relative(epoch: int | float, *, now: datetime | float | None = None) -> str:
    if now is None:
        reference = datetime.now(tz=timezone.utc).timestamp()
    elif isinstance(now, datetime):
        reference = now.timestamp()
    else:
        reference = float(now)
    delta = float(epoch) - reference
    phrase = humanize_delta(delta)
    if delta > 0:
        return f"in {phrase}"
    return f"{phrase} ago"


def format_timestamp(
    epoch: int | float,
    code: str | None = DEFAULT_FORMAT,
    *,
    tz: tzinfo | None = None,
    now: datetime | float | None = None,
) -> str:
    """Render a Discord ``<t:epoch:code>`` timestamp.

    Unknown or missing codes use the ``f`` layout (long date and time).
    """
    style = code if code in TIMESTAMP_FORMATS else DEFAULT_FORMAT
    if style == "R":
        return format_relative(epoch, now=now)
    pattern = _STRFTIME[style]
    try:
        moment = to_datetime(epoch, tz)
    except (OverflowError, OSError, ValueError):
        return INVALID_DATE
    return _strftime(moment, pattern)
