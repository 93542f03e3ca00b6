from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

DEFAULT_TIMESTAMP_FORMAT = "f"


@dataclass(frozen=True)
class Node:
    kind = ""


@dataclass(frozen=True)
class TextNode(Node):
    content: str
    kind = "text"


@dataclass(frozen=True)
class StrongNode(Node):
    children: Sequence[Node] = ()
    kind = "strong"


@dataclass(frozen=True)
class EmNode(Node):
    children: Sequence[Node] = ()
    kind = "em"


@dataclass(frozen=True)
class UnderlineNode(Node):
    children: Sequence[Node] = ()
    kind = "u"


@dataclass(frozen=True)
class StrikeNode(Node):
    children: Sequence[Node] = ()
    kind = "s"


@dataclass(frozen=True)
class InlineCodeNode(Node):
    content: str
    kind = "code"


@dataclass(frozen=True)
class CodeBlockNode(Node):
    content: str
    language: str | None = None
    kind = "codeBlock"


@dataclass(frozen=True)
class QuoteNode(Node):
    children: Sequence[Node] = ()
    kind = "quote"


@dataclass(frozen=True)
class ListItemNode(Node):
    children: Sequence[Node] = ()
    kind = "listItem"


@dataclass(frozen=True)
class ListNode(Node):
    ordered: bool = False
    items: Sequence[ListItemNode] = ()
    kind = "list"


@dataclass(frozen=True)
class SpoilerNode(Node):
    children: Sequence[Node] = ()
    kind = "spoiler"


@dataclass(frozen=True)
class UserMentionNode(Node):
    id: str
    kind = "user"


@dataclass(frozen=True)
class RoleMentionNode(Node):
    id: str
    kind = "role"


@dataclass(frozen=True)
class ChannelMentionNode(Node):
    id: str
    kind = "channel"


@dataclass(frozen=True)
class EveryoneNode(Node):
    kind = "everyone"


@dataclass(frozen=True)
class HereNode(Node):
    kind = "here"


@dataclass(frozen=True)
class TimestampNode(Node):
    timestamp: int
    format: str = DEFAULT_TIMESTAMP_FORMAT
    kind = "timestamp"


@dataclass(frozen=True)
class ParagraphNode(Node):
    children: Sequence[Node] = ()
    kind = "paragraph"


@dataclass(frozen=True)
class NewlineNode(Node):
    kind = "newline"


@dataclass(frozen=True)
class BreakNode(Node):
    kind = "br"


@dataclass(frozen=True)
class UnknownNode(Node):
    """A node whose kind is outside the recognized vocabulary.

    Keeps whatever payload came with it so the renderer can still show it:
    child nodes when the source carried a child list, raw text otherwise.
    """

    type_name: str = ""
    content: str | None = None
    children: Sequence[Node] | None = None

    @property
    def kind(self) -> str:  # type: ignore[override]
        return self.type_name


NODE_TYPES: tuple[type[Node], ...] = (
    TextNode,
    StrongNode,
    EmNode,
    UnderlineNode,
    StrikeNode,
    InlineCodeNode,
    CodeBlockNode,
    QuoteNode,
    ListNode,
    ListItemNode,
    SpoilerNode,
    UserMentionNode,
    RoleMentionNode,
    ChannelMentionNode,
    EveryoneNode,
    HereNode,
    TimestampNode,
    ParagraphNode,
    NewlineNode,
    BreakNode,
    UnknownNode,
)

_CONTAINERS = {
    "strong": StrongNode,
    "em": EmNode,
    "u": UnderlineNode,
    "s": StrikeNode,
    "quote": QuoteNode,
    "blockQuote": QuoteNode,
    "spoiler": SpoilerNode,
    "paragraph": ParagraphNode,
    "listItem": ListItemNode,
}

_MENTIONS = {
    "user": UserMentionNode,
    "role": RoleMentionNode,
    "channel": ChannelMentionNode,
}

_STRUCTURAL = {
    "everyone": EveryoneNode,
    "here": HereNode,
    "newline": NewlineNode,
    "br": BreakNode,
}


def get_children(node: Node) -> Sequence[Node] | None:
    """Return the child nodes of a container node, or None for leaves."""
    if isinstance(node, ListNode):
        return node.items
    if isinstance(node, UnknownNode):
        return node.children
    return getattr(node, "children", None)


def leaf_text(node: Node) -> str | None:
    """Source text of a leaf node (mentions and timestamps in their syntax), else None."""
    if isinstance(node, (TextNode, InlineCodeNode, CodeBlockNode)):
        return node.content
    if isinstance(node, (NewlineNode, BreakNode)):
        return "\n"
    if isinstance(node, UserMentionNode):
        return f"<@{node.id}>"
    if isinstance(node, RoleMentionNode):
        return f"<@&{node.id}>"
    if isinstance(node, ChannelMentionNode):
        return f"<#{node.id}>"
    if isinstance(node, EveryoneNode):
        return "@everyone"
    if isinstance(node, HereNode):
        return "@here"
    if isinstance(node, TimestampNode):
        return f"<t:{node.timestamp}:{node.format}>"
    return None


def iter_preorder(nodes: Sequence[Node]):
    """Yield every node of a forest in document (pre-)order."""
    stack = list(reversed(nodes))
    while stack:
        current = stack.pop()
        yield current
        children = get_children(current)
        if children:
            stack.extend(reversed(children))


def _coerce_children(raw: Any) -> list[Node]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [TextNode(raw)]
    if isinstance(raw, dict):
        return [node_from_dict(raw)]
    out: list[Node] = []
    for item in raw:
        if isinstance(item, Node):
            out.append(item)
        elif isinstance(item, dict):
            out.append(node_from_dict(item))
        elif item is not None:
            out.append(TextNode(str(item)))
    return out


def _coerce_list_items(raw: Any) -> list[ListItemNode]:
    if raw is None:
        return []
    if isinstance(raw, (str, dict)):
        raw = [raw]
    items: list[ListItemNode] = []
    for entry in raw:
        # Items arrive either as bare child lists or as item dicts.
        if isinstance(entry, (list, tuple)):
            items.append(ListItemNode(children=tuple(_coerce_children(entry))))
            continue
        for node in _coerce_children([entry]):
            if isinstance(node, ListItemNode):
                items.append(node)
            else:
                items.append(ListItemNode(children=tuple(get_children(node) or [node])))
    return items


def _coerce_timestamp(raw: Any) -> int | None:
    try:
        return int(float(raw))
    except (OverflowError, TypeError, ValueError):
        return None


def node_from_dict(data: dict[str, Any]) -> Node:
    """Build a typed node from a loosely-typed ``{"type": ..., "content": ...}`` dict.

    This is the shape produced by JavaScript Discord markdown parsers. Anything
    that does not fit a recognized kind becomes an ``UnknownNode`` rather than
    raising, so malformed trees still render something.
    """
    kind = str(data.get("type") or data.get("kind") or "")
    content = data.get("content")

    if kind == "text":
        return TextNode("" if content is None else str(content))
    if kind in ("code", "inlineCode"):
        return InlineCodeNode("" if content is None else str(content))
    if kind == "codeBlock":
        language = data.get("lang") or data.get("language") or None
        return CodeBlockNode("" if content is None else str(content), language)
    if kind == "list":
        raw_items = content if content is not None else data.get("items")
        return ListNode(
            ordered=bool(data.get("ordered")), items=tuple(_coerce_list_items(raw_items))
        )
    if kind in _CONTAINERS:
        return _CONTAINERS[kind](children=tuple(_coerce_children(content)))
    if kind in _MENTIONS and data.get("id") is not None:
        return _MENTIONS[kind](id=str(data["id"]))
    if kind in _STRUCTURAL:
        return _STRUCTURAL[kind]()
    if kind == "timestamp":
        epoch = _coerce_timestamp(data.get("timestamp"))
        if epoch is not None:
            fmt = data.get("format") or DEFAULT_TIMESTAMP_FORMAT
            return TimestampNode(timestamp=epoch, format=str(fmt))

    if isinstance(content, (list, tuple)):
        return UnknownNode(type_name=kind, children=tuple(_coerce_children(content)))
    return UnknownNode(
        type_name=kind,
        content=None if content is None else str(content),
        children=None,
    )


def nodes_from_dicts(items: Sequence[Any]) -> list[Node]:
    return _coerce_children(list(items))
