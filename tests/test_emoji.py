from __future__ import annotations

from discordmd.emoji import EMOJI_SHORTCODES, replace_emoji_shortcodes


def test_known_shortcodes_become_unicode() -> None:
    assert replace_emoji_shortcodes("ship it :rocket:") == f"ship it {EMOJI_SHORTCODES['rocket']}"


def test_unknown_shortcodes_are_left_alone() -> None:
    assert replace_emoji_shortcodes("time: 10:30 :nope:") == "time: 10:30 :nope:"


def test_custom_emoji_reduce_to_shortcodes() -> None:
    assert replace_emoji_shortcodes("<:pog:123>") == ":pog:"
    assert replace_emoji_shortcodes("<a:fire:456>") == EMOJI_SHORTCODES["fire"]


def test_custom_table() -> None:
    assert replace_emoji_shortcodes(":smile:", {"smile": ":)"}) == ":)"


def test_mentions_are_untouched() -> None:
    text = "<@123> <#456> <t:0:R>"
    assert replace_emoji_shortcodes(text) == text
