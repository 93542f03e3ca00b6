"""Discord markdown parser: raw text to a list of ``discordmd.nodes`` nodes.

Block constructs (code fences, ``>``/``>>>`` quotes, ``-``/``*``/``1.`` lists)
are recognized at line starts; everything else is a paragraph whose text goes
through the inline scanner (emphasis, spoilers, inline code, mentions,
timestamps, escapes).
"""

from __future__ import annotations

import re

from .nodes import (
    BreakNode,
    ChannelMentionNode,
    CodeBlockNode,
    EmNode,
    EveryoneNode,
    HereNode,
    InlineCodeNode,
    ListItemNode,
    ListNode,
    Node,
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

MAX_NESTING = 200

_FENCE = "```"
_FENCE_LANG_RE = re.compile(r"([A-Za-z0-9_+\-.#]+)\n")
_LIST_ITEM_RE = re.compile(r"^( *)([-*]|\d{1,9}\.) +(.*)$")
_USER_RE = re.compile(r"<@!?(\d+)>")
_ROLE_RE = re.compile(r"<@&(\d+)>")
_CHANNEL_RE = re.compile(r"<#(\d+)>")
_TIMESTAMP_RE = re.compile(r"<t:(-?\d{1,17})(?::([tTdDfFR]))?>")
_ESCAPABLE_RE = re.compile(r"[^0-9A-Za-z\s]")
_SPECIAL_CHARS = frozenset("\\`<@|*_~\n")


class MarkdownParseError(ValueError):
    def __init__(self, message: str, *, position: int | None = None):
        self.position = position
        if position is not None:
            message = f"{message} (at offset {position})"
        super().__init__(message)


class _ScanMemo:
    """Lookahead scans that already failed within one run of inline text.

    A closer scan is a fixed walk over the text, so a later scan for the same
    delimiter that reaches an offset an earlier failed scan passed through
    fails as well. Unclosed backtick runs and fences fail from any later
    offset too. Together these keep each run of text linear to scan.
    """

    def __init__(self, length: int) -> None:
        self.dead: dict[tuple, set[int]] = {}
        self.unclosed_ticks: dict[str, int] = {}
        self.unclosed_fence = length + 1


def parse(text: str) -> list[Node]:
    """Parse Discord markdown into top-level nodes.

    Paragraphs separated by blank lines become ``ParagraphNode`` blocks.
    Raises ``MarkdownParseError`` for input that is not a string or that
    contains NUL characters.
    """
    if not isinstance(text, str):
        raise MarkdownParseError(
            f"expected str, got {type(text).__name__}", position=None
        )
    nul = text.find("\x00")
    if nul != -1:
        raise MarkdownParseError("NUL character in input", position=nul)
    return _parse_blocks(text, wrap_paragraphs=True, depth=0)


def parse_inline(text: str) -> list[Node]:
    """Parse a single run of text with inline rules only."""
    return _parse_inline(text, depth=0)


# -- blocks --


def _is_quote_line(line: str) -> bool:
    return line.startswith("> ") or line == ">"


def _strip_quote(line: str) -> str:
    return line[2:] if line.startswith("> ") else ""


def _match_code_block(
    text: str, start: int, memo: _ScanMemo | None = None
) -> tuple[CodeBlockNode, int] | None:
    """Match a fence at ``start``; return the node and the offset past it."""
    body_start = start + len(_FENCE)
    language = None
    lang_match = _FENCE_LANG_RE.match(text, body_start)
    if lang_match:
        language = lang_match.group(1)
        body_start = lang_match.end()
    if memo is not None and body_start >= memo.unclosed_fence:
        return None
    close = text.find(_FENCE, body_start)
    if close == -1:
        if memo is not None:
            memo.unclosed_fence = min(memo.unclosed_fence, body_start)
        return None
    content = text[body_start:close].strip("\n")
    if not content:
        if language is None:
            return None
        # "```word\n```" is a one-word block, not an empty block tagged "word".
        content, language = language, None
    return CodeBlockNode(content=content, language=language), close + len(_FENCE)


def _parse_blocks(text: str, *, wrap_paragraphs: bool, depth: int) -> list[Node]:
    if depth > MAX_NESTING:
        return [TextNode(text)] if text else []

    lines = text.split("\n")
    offsets = []
    pos = 0
    for line in lines:
        offsets.append(pos)
        pos += len(line) + 1

    last_fence = max(
        (index for index, line in enumerate(lines) if _FENCE in line), default=-1
    )

    out: list[Node] = []
    run: list[str] = []
    run_fences = 0
    memo = _ScanMemo(len(text))

    def flush_run() -> None:
        nonlocal run_fences
        run_fences = 0
        while run and not run[-1].strip():
            run.pop()
        if not run:
            return
        chunk = "\n".join(run)
        run.clear()
        if wrap_paragraphs:
            for paragraph in re.split(r"\n(?:[ \t]*\n)+", chunk):
                if paragraph.strip():
                    out.append(
                        ParagraphNode(children=tuple(_parse_inline(paragraph, depth)))
                    )
        else:
            out.extend(_parse_inline(chunk, depth))

    i = 0
    while i < len(lines):
        line = lines[i]

        if line.startswith(_FENCE):
            matched = _match_code_block(text, offsets[i], memo)
            if matched is not None:
                flush_run()
                node, end = matched
                out.append(node)
                # Resume on the line after the closing fence; anything trailing
                # the fence on that line is kept as text.
                while i < len(lines) and offsets[i] + len(lines[i]) < end:
                    i += 1
                tail = lines[i][end - offsets[i]:] if i < len(lines) else ""
                i += 1
                if tail.strip():
                    run.append(tail)
                    run_fences += tail.count(_FENCE)
                continue

        if line.startswith(">>> "):
            flush_run()
            rest = "\n".join([line[4:]] + lines[i + 1:])
            out.append(
                QuoteNode(
                    children=tuple(
                        _parse_blocks(rest, wrap_paragraphs=False, depth=depth + 1)
                    )
                )
            )
            break

        if _is_quote_line(line):
            flush_run()
            quoted = []
            while i < len(lines) and _is_quote_line(lines[i]):
                quoted.append(_strip_quote(lines[i]))
                i += 1
            out.append(
                QuoteNode(
                    children=tuple(
                        _parse_blocks(
                            "\n".join(quoted), wrap_paragraphs=False, depth=depth + 1
                        )
                    )
                )
            )
            continue

        if _LIST_ITEM_RE.match(line):
            flush_run()
            node, i = _parse_list(lines, i, depth)
            out.append(node)
            continue

        if not run and not line.strip():
            i += 1
            continue
        run.append(line)
        run_fences += line.count(_FENCE)
        i += 1
        # A paragraph line that opens an inline fence swallows the following
        # lines until the fence closes.
        while run_fences % 2 == 1 and i <= last_fence:
            run.append(lines[i])
            run_fences += lines[i].count(_FENCE)
            i += 1

    flush_run()
    return out


def _parse_list(lines: list[str], start: int, depth: int) -> tuple[ListNode, int]:
    first = _LIST_ITEM_RE.match(lines[start])
    assert first is not None
    base_indent = len(first.group(1))
    ordered = first.group(2)[0].isdigit()

    items: list[list[str]] = []
    child_indent: int | None = None
    i = start
    while i < len(lines):
        line = lines[i]
        match = _LIST_ITEM_RE.match(line)
        indent = len(line) - len(line.lstrip(" "))
        if match and indent <= base_indent:
            if match.group(2)[0].isdigit() != ordered:
                break
            items.append([match.group(3)])
            child_indent = None
            i += 1
            continue
        if items and line.strip() and indent > base_indent:
            # Nested lines are dedented by the first nested line's indent so
            # deeper levels keep their relative indentation.
            if child_indent is None:
                child_indent = indent
            items[-1].append(line[min(indent, child_indent):])
            i += 1
            continue
        break

    nodes = []
    for item_lines in items:
        children = _parse_blocks(
            "\n".join(item_lines), wrap_paragraphs=False, depth=depth + 1
        )
        nodes.append(ListItemNode(children=tuple(children)))
    return ListNode(ordered=ordered, items=tuple(nodes)), i


# -- inline --


def _skip_code_span(text: str, pos: int, memo: _ScanMemo | None = None) -> int:
    """If a backtick run starts at ``pos`` and closes, return the offset past it.

    The closing run must be exactly as long as the opening one.
    """
    run_end = pos
    while run_end < len(text) and text[run_end] == "`":
        run_end += 1
    ticks = text[pos:run_end]
    if memo is not None and run_end >= memo.unclosed_ticks.get(ticks, len(text) + 1):
        return run_end
    j = run_end
    while True:
        close = text.find(ticks, j)
        if close == -1:
            break
        end = close
        while end < len(text) and text[end] == "`":
            end += 1
        if end - close == len(ticks):
            return end
        j = end
    if memo is not None:
        memo.unclosed_ticks[ticks] = min(
            run_end, memo.unclosed_ticks.get(ticks, run_end)
        )
    return run_end


def _find_closing(
    text: str,
    start: int,
    delim: str,
    *,
    not_followed_by: str | None = None,
    skip_pairs: str | None = None,
    closer_ok=None,
    memo: _ScanMemo | None = None,
) -> int:
    """Find the offset of ``delim`` closing a span opened just before ``start``.

    Escapes and code spans are skipped; the inner text must be non-empty.
    """
    dead: set[int] | None = None
    if memo is not None:
        dead = memo.dead.setdefault(
            (delim, not_followed_by, skip_pairs, closer_ok), set()
        )
    visited: list[int] = []
    j = start
    while j < len(text):
        if dead is not None and j > start and j in dead:
            break
        visited.append(j)
        ch = text[j]
        if ch == "\\" and j + 1 < len(text):
            j += 2
            continue
        if ch == "`":
            j = _skip_code_span(text, j, memo)
            continue
        if skip_pairs and text.startswith(skip_pairs, j):
            close = text.find(skip_pairs, j + len(skip_pairs))
            if close != -1:
                j = close + len(skip_pairs)
                continue
        if text.startswith(delim, j) and j > start:
            after = j + len(delim)
            followed = not_followed_by and text.startswith(not_followed_by, after)
            if not followed and (closer_ok is None or closer_ok(text, j, after)):
                return j
        j += 1
    if dead is not None:
        dead.update(offset for offset in visited if offset > start)
    return -1


def _em_star_closer(text: str, j: int, after: int) -> bool:
    return not text[j - 1].isspace()


def _em_underscore_closer(text: str, j: int, after: int) -> bool:
    return after >= len(text) or not text[after].isalnum()


_DELIMITED = (
    # (delimiter, node type, closer must not be followed by)
    ("||", SpoilerNode, None),
    ("**", StrongNode, "*"),
    ("__", UnderlineNode, "_"),
    ("~~", StrikeNode, None),
)


def _parse_inline(text: str, depth: int) -> list[Node]:
    if depth > MAX_NESTING:
        return [TextNode(text)] if text else []

    out: list[Node] = []
    buf: list[str] = []
    memo = _ScanMemo(len(text))

    def emit(node: Node) -> None:
        if buf:
            out.append(TextNode("".join(buf)))
            buf.clear()
        out.append(node)

    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch not in _SPECIAL_CHARS:
            buf.append(ch)
            i += 1
            continue

        if ch == "\\":
            if i + 1 < n and _ESCAPABLE_RE.match(text[i + 1]):
                buf.append(text[i + 1])
                i += 2
            else:
                buf.append(ch)
                i += 1
            continue

        if ch == "\n":
            emit(BreakNode())
            i += 1
            continue

        if ch == "`":
            if text.startswith(_FENCE, i):
                matched = _match_code_block(text, i, memo)
                if matched is not None:
                    node, i = matched
                    emit(node)
                    continue
            end = _skip_code_span(text, i, memo)
            run_end = i
            while run_end < n and text[run_end] == "`":
                run_end += 1
            if end > run_end:
                ticks = run_end - i
                emit(InlineCodeNode(content=text[run_end : end - ticks]))
                i = end
            else:
                buf.append(text[i:run_end])
                i = run_end
            continue

        if ch == "<":
            matched_node, end = _match_angle(text, i)
            if matched_node is not None:
                emit(matched_node)
                i = end
                continue
            buf.append(ch)
            i += 1
            continue

        if ch == "@":
            if text.startswith("@everyone", i):
                emit(EveryoneNode())
                i += len("@everyone")
                continue
            if text.startswith("@here", i):
                emit(HereNode())
                i += len("@here")
                continue
            buf.append(ch)
            i += 1
            continue

        consumed = _match_delimited(text, i, depth, memo)
        if consumed is not None:
            node, i = consumed
            emit(node)
            continue
        buf.append(ch)
        i += 1

    if buf:
        out.append(TextNode("".join(buf)))
    return out


def _match_angle(text: str, i: int) -> tuple[Node | None, int]:
    for pattern, factory in (
        (_ROLE_RE, lambda m: RoleMentionNode(id=m.group(1))),
        (_USER_RE, lambda m: UserMentionNode(id=m.group(1))),
        (_CHANNEL_RE, lambda m: ChannelMentionNode(id=m.group(1))),
        (
            _TIMESTAMP_RE,
            lambda m: TimestampNode(timestamp=int(m.group(1)), format=m.group(2) or "f"),
        ),
    ):
        match = pattern.match(text, i)
        if match:
            return factory(match), match.end()
    return None, i


def _match_delimited(
    text: str, i: int, depth: int, memo: _ScanMemo
) -> tuple[Node, int] | None:
    for delim, factory, not_followed_by in _DELIMITED:
        if not text.startswith(delim, i):
            continue
        inner_start = i + len(delim)
        close = _find_closing(
            text, inner_start, delim, not_followed_by=not_followed_by, memo=memo
        )
        if close == -1:
            continue
        children = _parse_inline(text[inner_start:close], depth + 1)
        return factory(children=tuple(children)), close + len(delim)

    ch = text[i]
    if ch == "*":
        inner_start = i + 1
        if inner_start >= len(text) or text[inner_start].isspace():
            return None
        close = _find_closing(
            text,
            inner_start,
            "*",
            not_followed_by="*",
            skip_pairs="**",
            closer_ok=_em_star_closer,
            memo=memo,
        )
    elif ch == "_":
        if i > 0 and text[i - 1].isalnum():
            return None
        inner_start = i + 1
        close = _find_closing(
            text,
            inner_start,
            "_",
            skip_pairs="__",
            closer_ok=_em_underscore_closer,
            memo=memo,
        )
    else:
        return None
    if close == -1:
        return None
    children = _parse_inline(text[inner_start:close], depth + 1)
    return EmNode(children=tuple(children)), close + 1
