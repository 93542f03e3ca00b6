"""Optional shortcode substitution run on raw text before rendering.

The renderer never calls this; callers opt in per piece of content.
"""

from __future__ import annotations

import re
from typing import Mapping

EMOJI_SHORTCODES: dict[str, str] = {
    "smile": "\U0001f60a",
    "heart": "❤️",
    "thumbsup": "\U0001f44d",
    "thumbsdown": "\U0001f44e",
    "fire": "\U0001f525",
    "rocket": "\U0001f680",
    "star": "⭐",
    "check": "✅",
    "warning": "⚠️",
    "info": "ℹ️",
    "bug": "\U0001f41b",
    "gear": "⚙️",
    "sparkles": "✨",
    "tada": "\U0001f389",
    "memo": "\U0001f4dd",
    "bulb": "\U0001f4a1",
    "wrench": "\U0001f527",
    "package": "\U0001f4e6",
    "arrow_up": "⬆️",
    "arrow_down": "⬇️",
    "arrow_left": "⬅️",
    "arrow_right": "➡️",
    "white_check_mark": "✅",
    "heavy_check_mark": "✅",
    "x": "❌",
    "heavy_multiplication_x": "❌",
    "exclamation": "❗",
    "question": "❓",
    "grey_exclamation": "❕",
    "grey_question": "❔",
    "zero": "0️⃣",
    "one": "1️⃣",
    "two": "2️⃣",
    "three": "3️⃣",
    "four": "4️⃣",
    "five": "5️⃣",
    "six": "6️⃣",
    "seven": "7️⃣",
    "eight": "8️⃣",
    "nine": "9️⃣",
    "keycap_ten": "\U0001f51f",
}

_SHORTCODE_RE = re.compile(r":([a-z0-9_+-]+):")
_CUSTOM_EMOJI_RE = re.compile(r"<a?:([^:<>\s]+):(\d+)>")


def replace_emoji_shortcodes(
    text: str, table: Mapping[str, str] | None = None
) -> str:
    """Reduce custom emoji to ``:name:`` and swap known shortcodes for Unicode.

    Unknown shortcodes are left as typed. Custom emoji are reduced first, so
    ``<:fire:123>`` comes out as the Unicode fire and ``<:pog:123>`` as ``:pog:``.
    """
    lookup = EMOJI_SHORTCODES if table is None else table

    def _sub(match: re.Match[str]) -> str:
        return lookup.get(match.group(1), match.group(0))

    text = _CUSTOM_EMOJI_RE.sub(r":\1:", text)
    return _SHORTCODE_RE.sub(_sub, text)
