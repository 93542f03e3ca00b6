from __future__ import annotations

from discordmd.text import truncate_text


def test_short_text_is_unchanged() -> None:
    assert truncate_text("short", 10) == "short"


def test_cuts_on_a_late_word_boundary() -> None:
    text = "word " * 50
    result = truncate_text(text, 200)
    assert result.endswith("word...")
    assert len(result) == 202


def test_hard_cut_without_a_late_space() -> None:
    assert truncate_text("a" * 250, 200) == "a" * 200 + "..."
    assert truncate_text("ab " + "c" * 30, 20) == "ab " + "c" * 17 + "..."
