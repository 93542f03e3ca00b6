from __future__ import annotations

import logging
import re
import sys
import time
from typing import Any, Callable, Iterable, Mapping, Sequence

from .config import RenderSettings, build_settings
from .display import (
    BlockQuote,
    CodeBlock,
    DisplayNode,
    Document,
    ErrorDocument,
    InlineCode,
    LineBreak,
    ListBlock,
    ListItem,
    Mention,
    MentionKind,
    Paragraph,
    RenderStats,
    Spoiler,
    Style,
    Styled,
    TextSpan,
    Timestamp,
)
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
    NewlineNode,
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
    UnknownNode,
    UserMentionNode,
    get_children,
    iter_preorder,
    leaf_text,
    nodes_from_dicts,
)
from .parser import parse
from .resolvers import Resolvers, resolve_channel, resolve_role, resolve_user
from .runtime import MAX_DEPTH_CEILING
from .timestamps import DEFAULT_FORMAT, format_timestamp

logger = logging.getLogger(__name__)

Parser = Callable[[str], Sequence[Any]]

NBSP = "\u00a0"
UNORDERED_MARKER = "•"

_BLANK_RUN_RE = re.compile(r"\n{3,}")
_SPACE_RUN_RE = re.compile(r" {2,}")

_STYLES = {
    StrongNode: Style.BOLD,
    EmNode: Style.ITALIC,
    UnderlineNode: Style.UNDERLINE,
    StrikeNode: Style.STRIKETHROUGH,
}


def _log(message: str) -> None:
    from .runtime import get_verbose_logging

    if get_verbose_logging():
        print(message, file=sys.stderr, flush=True)


def preprocess(content: str) -> str:
    """Collapse runs of blank lines to a single blank line."""
    return _BLANK_RUN_RE.sub("\n\n", content)


class RevealState:
    """Which spoilers of the current document are revealed, by spoiler index."""

    def __init__(self) -> None:
        self._revealed: dict[int, bool] = {}

    def is_revealed(self, index: int) -> bool:
        return self._revealed.get(index, False)

    def toggle(self, index: int) -> bool:
        revealed = not self.is_revealed(index)
        self._revealed[index] = revealed
        return revealed

    def reveal(self, indices: Iterable[int]) -> None:
        for index in indices:
            self._revealed[index] = True

    def clear(self) -> None:
        self._revealed.clear()

    def revealed(self) -> frozenset[int]:
        return frozenset(index for index, value in self._revealed.items() if value)

    def __len__(self) -> int:
        return len(self.revealed())


class _RenderPass:
    """State for one walk over an AST: resolvers, spoiler indices, clock."""

    def __init__(
        self,
        *,
        settings: RenderSettings,
        state: RevealState,
        resolvers: Resolvers,
        now: float,
    ) -> None:
        self.settings = settings
        self.state = state
        self.resolvers = resolvers
        self.now = now
        self.tzinfo = settings.tzinfo
        self.max_depth = min(settings.max_depth, MAX_DEPTH_CEILING)
        self.stats = RenderStats()
        self.spoiler_count = 0

    def _skip_spoilers(self, nodes: Sequence[Node]) -> None:
        # Subtrees that are not walked still consume their spoiler indices,
        # so every spoiler keeps its document position whatever is revealed.
        self.spoiler_count += sum(
            1 for node in iter_preorder(nodes) if isinstance(node, SpoilerNode)
        )

    def _flatten(self, node: Node) -> list[DisplayNode]:
        """Reduce a subtree to text without recursing.

        Spoilers keep their index; a concealed one becomes an empty
        ``Spoiler`` placeholder and its content is never read.
        """
        out: list[DisplayNode] = []
        parts: list[str] = []

        def flush() -> None:
            if parts:
                out.append(TextSpan("".join(parts)))
                parts.clear()

        stack = [node]
        while stack:
            current = stack.pop()
            if isinstance(current, SpoilerNode):
                index = self.spoiler_count
                self.spoiler_count += 1
                if not self.state.is_revealed(index):
                    self._skip_spoilers(current.children)
                    flush()
                    out.append(
                        Spoiler(
                            index=index,
                            revealed=False,
                            label=self.settings.spoiler_label,
                        )
                    )
                    continue
            leaf = leaf_text(current)
            if leaf is not None:
                parts.append(leaf)
                continue
            children = get_children(current)
            if children is not None:
                stack.extend(reversed(children))
            elif isinstance(current, UnknownNode) and current.content:
                parts.append(current.content)
        flush()
        return out

    def render_all(self, nodes: Sequence[Node], depth: int) -> list[DisplayNode]:
        out: list[DisplayNode] = []
        for node in nodes:
            out.extend(self.render(node, depth))
        return out

    def render(self, node: Node, depth: int) -> list[DisplayNode]:
        if node is None:
            return []
        self.stats.nodes += 1
        if depth > self.max_depth:
            self.stats.truncated += 1
            return self._flatten(node)
        handler = _HANDLERS.get(type(node))
        if handler is None:
            handler = _RenderPass._render_unknown
        return handler(self, node, depth)

    def _children(self, children: Sequence[Node] | None, depth: int) -> tuple:
        return tuple(self.render_all(children or (), depth + 1))

    def _render_text(self, node: TextNode, depth: int) -> list[DisplayNode]:
        content = node.content or ""
        if "\n" in content:
            out: list[DisplayNode] = []
            for i, line in enumerate(content.split("\n")):
                if i:
                    out.append(LineBreak())
                if line:
                    out.append(TextSpan(line))
            return out
        if not content:
            return []
        return [
            TextSpan(_SPACE_RUN_RE.sub(lambda m: NBSP * len(m.group(0)), content))
        ]

    def _render_styled(self, node: Node, depth: int) -> list[DisplayNode]:
        return [Styled(_STYLES[type(node)], self._children(node.children, depth))]

    def _render_inline_code(self, node: InlineCodeNode, depth: int) -> list[DisplayNode]:
        return [InlineCode(node.content)]

    def _render_code_block(self, node: CodeBlockNode, depth: int) -> list[DisplayNode]:
        return [CodeBlock(node.content, node.language or None)]

    def _render_quote(self, node: QuoteNode, depth: int) -> list[DisplayNode]:
        return [BlockQuote(self._children(node.children, depth))]

    def _render_list(self, node: ListNode, depth: int) -> list[DisplayNode]:
        items = []
        for position, item in enumerate(node.items, start=1):
            marker = f"{position}." if node.ordered else UNORDERED_MARKER
            children = item.children if isinstance(item, ListItemNode) else [item]
            items.append(ListItem(marker, self._children(children, depth)))
        return [ListBlock(ordered=node.ordered, items=tuple(items))]

    def _render_list_item(self, node: ListItemNode, depth: int) -> list[DisplayNode]:
        # A stray item outside a list keeps its content inline.
        return self.render_all(node.children, depth + 1)

    def _render_spoiler(self, node: SpoilerNode, depth: int) -> list[DisplayNode]:
        index = self.spoiler_count
        self.spoiler_count += 1
        revealed = self.state.is_revealed(index)
        if revealed:
            children = self._children(node.children, depth)
        else:
            children = ()
            self._skip_spoilers(node.children)
        return [
            Spoiler(
                index=index,
                revealed=revealed,
                label=self.settings.spoiler_label,
                children=children,
            )
        ]

    def _count_mention(self, kind: MentionKind) -> None:
        self.stats.mentions[kind.value] = self.stats.mentions.get(kind.value, 0) + 1

    def _render_user(self, node: UserMentionNode, depth: int) -> list[DisplayNode]:
        self._count_mention(MentionKind.USER)
        resolved = resolve_user(self.resolvers, node.id)
        return [
            Mention(
                MentionKind.USER,
                f"@{resolved.name}",
                target_id=node.id,
                resolved=resolved.resolved,
            )
        ]

    def _render_role(self, node: RoleMentionNode, depth: int) -> list[DisplayNode]:
        self._count_mention(MentionKind.ROLE)
        resolved = resolve_role(self.resolvers, node.id)
        return [
            Mention(
                MentionKind.ROLE,
                f"@{resolved.name}",
                target_id=node.id,
                color=resolved.color,
                resolved=resolved.resolved,
            )
        ]

    def _render_channel(self, node: ChannelMentionNode, depth: int) -> list[DisplayNode]:
        self._count_mention(MentionKind.CHANNEL)
        resolved = resolve_channel(self.resolvers, node.id)
        return [
            Mention(
                MentionKind.CHANNEL,
                f"#{resolved.name}",
                target_id=node.id,
                resolved=resolved.resolved,
            )
        ]

    def _render_everyone(self, node: EveryoneNode, depth: int) -> list[DisplayNode]:
        self._count_mention(MentionKind.EVERYONE)
        return [Mention(MentionKind.EVERYONE, "@everyone")]

    def _render_here(self, node: HereNode, depth: int) -> list[DisplayNode]:
        self._count_mention(MentionKind.HERE)
        return [Mention(MentionKind.HERE, "@here")]

    def _render_timestamp(self, node: TimestampNode, depth: int) -> list[DisplayNode]:
        style = node.format or DEFAULT_FORMAT
        label = format_timestamp(node.timestamp, style, tz=self.tzinfo, now=self.now)
        return [Timestamp(epoch=node.timestamp, style=style, label=label)]

    def _render_break(self, node: Node, depth: int) -> list[DisplayNode]:
        return [LineBreak()]

    def _render_paragraph(self, node: ParagraphNode, depth: int) -> list[DisplayNode]:
        return [Paragraph(self._children(node.children, depth))]

    def _render_unknown(self, node: Node, depth: int) -> list[DisplayNode]:
        self.stats.unknown += 1
        kind = getattr(node, "kind", type(node).__name__)
        _log(f"[discordmd] unrecognized node kind {kind!r}")
        children = getattr(node, "children", None)
        if isinstance(children, (list, tuple)):
            return self.render_all(children, depth + 1)
        content = getattr(node, "content", None)
        if content:
            return [TextSpan(str(content))]
        return []


_HANDLERS: dict[type, Callable[[_RenderPass, Any, int], list[DisplayNode]]] = {
    TextNode: _RenderPass._render_text,
    StrongNode: _RenderPass._render_styled,
    EmNode: _RenderPass._render_styled,
    UnderlineNode: _RenderPass._render_styled,
    StrikeNode: _RenderPass._render_styled,
    InlineCodeNode: _RenderPass._render_inline_code,
    CodeBlockNode: _RenderPass._render_code_block,
    QuoteNode: _RenderPass._render_quote,
    ListNode: _RenderPass._render_list,
    ListItemNode: _RenderPass._render_list_item,
    SpoilerNode: _RenderPass._render_spoiler,
    UserMentionNode: _RenderPass._render_user,
    RoleMentionNode: _RenderPass._render_role,
    ChannelMentionNode: _RenderPass._render_channel,
    EveryoneNode: _RenderPass._render_everyone,
    HereNode: _RenderPass._render_here,
    TimestampNode: _RenderPass._render_timestamp,
    ParagraphNode: _RenderPass._render_paragraph,
    NewlineNode: _RenderPass._render_break,
    BreakNode: _RenderPass._render_break,
    UnknownNode: _RenderPass._render_unknown,
}


class MarkdownRenderer:
    """Render Discord markdown into a display tree.

    One instance corresponds to one view of one piece of content: it owns the
    spoiler reveal state, which is cleared whenever ``render`` is called with
    different content or ``reset`` is called. Rendering never raises for
    parser failures; an ``ErrorDocument`` holding the original text is
    returned instead.

    Args:
        settings: rendering settings; defaults to ``build_settings()``.
        parser: callable turning text into nodes (or node dicts).
        clock: returns "now" as epoch seconds, used for relative timestamps.
    """

    def __init__(
        self,
        settings: RenderSettings | None = None,
        *,
        parser: Parser | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.settings = settings or build_settings()
        self._parser = parser or parse
        self._clock = clock or time.time
        self._state = RevealState()
        self._content: str | None = None
        self.last_stats: RenderStats | None = None

    @property
    def reveal_state(self) -> RevealState:
        return self._state

    def render(
        self,
        content: str,
        resolvers: Resolvers | Mapping[str, Any] | None = None,
    ) -> Document | ErrorDocument:
        if self._content is not None and content != self._content:
            self._state.clear()
        self._content = content

        try:
            raw = self._parser(preprocess(content))
            ast = nodes_from_dicts(raw)
        except Exception as exc:
            logger.warning("Error parsing Discord markdown: %s", exc, exc_info=True)
            if content is None:
                original = ""
            else:
                original = content if isinstance(content, str) else str(content)
            return ErrorDocument(content=original, message=str(exc))

        render_pass = _RenderPass(
            settings=self.settings,
            state=self._state,
            resolvers=Resolvers.coerce(resolvers),
            now=self._clock(),
        )
        children = render_pass.render_all(ast, depth=0)
        self.last_stats = render_pass.stats
        if render_pass.stats.truncated:
            logger.info(
                "Flattened %d node(s) nested deeper than %d",
                render_pass.stats.truncated,
                render_pass.max_depth,
            )
        _log(
            f"[discordmd] rendered {render_pass.stats.nodes} node(s), "
            f"{render_pass.spoiler_count} spoiler(s)"
        )
        return Document(children=tuple(children), spoiler_count=render_pass.spoiler_count)

    def toggle_spoiler(self, index: int) -> bool:
        """Flip one spoiler's revealed bit; returns the new value."""
        return self._state.toggle(index)

    def reveal_spoilers(self, indices: Iterable[int]) -> None:
        self._state.reveal(indices)

    def reset(self) -> None:
        self._state.clear()
        self._content = None


def render_markdown(
    content: str,
    resolvers: Resolvers | Mapping[str, Any] | None = None,
    *,
    settings: RenderSettings | None = None,
    parser: Parser | None = None,
    revealed: Iterable[int] = (),
    clock: Callable[[], float] | None = None,
) -> Document | ErrorDocument:
    """One-shot render with a throwaway renderer."""
    renderer = MarkdownRenderer(settings, parser=parser, clock=clock)
    renderer.reveal_spoilers(revealed)
    return renderer.render(content, resolvers)
