from __future__ import annotations

import time

import pytest

from discordmd.nodes import (
    BreakNode,
    ChannelMentionNode,
    CodeBlockNode,
    EmNode,
    EveryoneNode,
    HereNode,
    InlineCodeNode,
    ListItemNode,
    ListNode,
    ParagraphNode,
    QuoteNode,
    RoleMentionNode,
    SpoilerNode,
    StrikeNode,
    StrongNode,
    TextNode,
    TimestampNode,
    UnderlineNode,
    UserMentionNode,
)
from discordmd.parser import MarkdownParseError, parse, parse_inline


def test_bold_and_italic_paragraph() -> None:
    assert parse("**bold** and *italic*") == [
        ParagraphNode(
            children=(
                StrongNode(children=(TextNode("bold"),)),
                TextNode(" and "),
                EmNode(children=(TextNode("italic"),)),
            )
        )
    ]


def test_bold_inside_italic_and_italic_inside_bold() -> None:
    assert parse_inline("*a **b** c*") == [
        EmNode(
            children=(
                TextNode("a "),
                StrongNode(children=(TextNode("b"),)),
                TextNode(" c"),
            )
        )
    ]
    assert parse_inline("**a *b* c**") == [
        StrongNode(
            children=(
                TextNode("a "),
                EmNode(children=(TextNode("b"),)),
                TextNode(" c"),
            )
        )
    ]


def test_underline_strike_and_spoiler() -> None:
    assert parse_inline("__u__ ~~s~~ ||x||") == [
        UnderlineNode(children=(TextNode("u"),)),
        TextNode(" "),
        StrikeNode(children=(TextNode("s"),)),
        TextNode(" "),
        SpoilerNode(children=(TextNode("x"),)),
    ]


def test_underscores_inside_words_stay_literal() -> None:
    assert parse_inline("snake_case_name") == [TextNode("snake_case_name")]
    assert parse_inline("_lean_") == [EmNode(children=(TextNode("lean"),))]


def test_unclosed_delimiters_are_text() -> None:
    assert parse_inline("**open") == [TextNode("**open")]
    assert parse_inline("||never closed") == [TextNode("||never closed")]


def test_mentions_and_broadcasts() -> None:
    assert parse_inline("<@999> <@!5> <@&42> <#7> @everyone @here") == [
        UserMentionNode(id="999"),
        TextNode(" "),
        UserMentionNode(id="5"),
        TextNode(" "),
        RoleMentionNode(id="42"),
        TextNode(" "),
        ChannelMentionNode(id="7"),
        TextNode(" "),
        EveryoneNode(),
        TextNode(" "),
        HereNode(),
    ]


def test_malformed_angle_brackets_are_text() -> None:
    assert parse_inline("<@abc> <b>") == [TextNode("<@abc> <b>")]


def test_timestamps_default_to_f() -> None:
    assert parse_inline("<t:0:R><t:1700000000>") == [
        TimestampNode(timestamp=0, format="R"),
        TimestampNode(timestamp=1700000000, format="f"),
    ]


def test_inline_code_is_verbatim() -> None:
    assert parse_inline("run `**not bold**` now") == [
        TextNode("run "),
        InlineCodeNode("**not bold**"),
        TextNode(" now"),
    ]


def test_escapes() -> None:
    assert parse_inline(r"\*not italic\*") == [TextNode("*not italic*")]


def test_code_block_with_language() -> None:
    assert parse("```py\nprint(1)\n```") == [
        CodeBlockNode(content="print(1)", language="py")
    ]


def test_code_block_keeps_markup_raw() -> None:
    nodes = parse("before\n```\n**x** <@1>\n```\nafter")
    assert CodeBlockNode(content="**x** <@1>", language=None) in nodes
    assert nodes[0] == ParagraphNode(children=(TextNode("before"),))
    assert nodes[-1] == ParagraphNode(children=(TextNode("after"),))


def test_quote_lines() -> None:
    assert parse("> hi\n> there") == [
        QuoteNode(children=(TextNode("hi"), BreakNode(), TextNode("there")))
    ]


def test_nested_quote() -> None:
    (outer,) = parse("> > deep")
    assert outer == QuoteNode(children=(QuoteNode(children=(TextNode("deep"),)),))


def test_multiline_quote_takes_the_rest() -> None:
    assert parse("intro\n>>> a\nb") == [
        ParagraphNode(children=(TextNode("intro"),)),
        QuoteNode(children=(TextNode("a"), BreakNode(), TextNode("b"))),
    ]


def test_unordered_and_ordered_lists() -> None:
    assert parse("- one\n* two") == [
        ListNode(
            ordered=False,
            items=(
                ListItemNode(children=(TextNode("one"),)),
                ListItemNode(children=(TextNode("two"),)),
            ),
        )
    ]
    (ordered,) = parse("1. a\n2. **b**")
    assert ordered.ordered is True
    assert ordered.items[1] == ListItemNode(
        children=(StrongNode(children=(TextNode("b"),)),)
    )


def test_nested_list() -> None:
    (outer,) = parse("- a\n  - b")
    first = outer.items[0]
    assert first.children[0] == TextNode("a")
    assert first.children[1] == ListNode(
        ordered=False, items=(ListItemNode(children=(TextNode("b"),)),)
    )


def test_blank_lines_split_paragraphs() -> None:
    nodes = parse("a\n\nb\nc")
    assert nodes == [
        ParagraphNode(children=(TextNode("a"),)),
        ParagraphNode(children=(TextNode("b"), BreakNode(), TextNode("c"))),
    ]


def test_rejects_nul_and_non_string() -> None:
    with pytest.raises(MarkdownParseError) as excinfo:
        parse("a\x00b")
    assert excinfo.value.position == 1
    with pytest.raises(MarkdownParseError):
        parse(None)  # type: ignore[arg-type]


def test_deep_nesting_does_not_recurse_forever() -> None:
    nodes = parse("> " * 500 + "x")
    assert len(nodes) == 1
    depth = 0
    node = nodes[0]
    while isinstance(node, QuoteNode):
        depth += 1
        node = node.children[0]
    assert depth <= 202
    assert isinstance(node, TextNode)
    assert node.content.endswith("x")


@pytest.mark.parametrize(
    "source",
    [
        "a *b " * 4000,
        "a _b " * 4000,
        "a **b " * 4000,
        "a ||b " * 4000,
        "a ~~b " * 4000,
    ],
)
def test_unclosed_openers_parse_in_linear_time(source: str) -> None:
    started = time.perf_counter()
    nodes = parse_inline(source)
    elapsed = time.perf_counter() - started
    assert elapsed < 2.0
    assert nodes


def test_failed_scans_do_not_hide_later_spans() -> None:
    assert parse_inline("a *b " * 3 + "c **d**") == [
        TextNode("a *b a *b a *b c "),
        StrongNode(children=(TextNode("d"),)),
    ]


def test_code_span_needs_matching_backtick_run() -> None:
    assert parse_inline("``a`b``") == [InlineCodeNode("a`b")]
    assert parse_inline("`a``") == [TextNode("`a``")]


def test_fences_opened_inside_paragraph_lines_stay_inline() -> None:
    nodes = parse("x ```\ny\n" * 3)
    assert all(isinstance(node, ParagraphNode) for node in nodes)
