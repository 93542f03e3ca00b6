from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence


class Style(Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"


class MentionKind(Enum):
    USER = "user"
    ROLE = "role"
    CHANNEL = "channel"
    EVERYONE = "everyone"
    HERE = "here"


@dataclass(frozen=True)
class DisplayNode:
    """Base for every node of the rendered display tree."""


@dataclass(frozen=True)
class TextSpan(DisplayNode):
    text: str


@dataclass(frozen=True)
class LineBreak(DisplayNode):
    pass


@dataclass(frozen=True)
class Styled(DisplayNode):
    style: Style
    children: Sequence[DisplayNode] = ()


@dataclass(frozen=True)
class InlineCode(DisplayNode):
    text: str


@dataclass(frozen=True)
class CodeBlock(DisplayNode):
    text: str
    language: str | None = None


@dataclass(frozen=True)
class Paragraph(DisplayNode):
    children: Sequence[DisplayNode] = ()


@dataclass(frozen=True)
class BlockQuote(DisplayNode):
    children: Sequence[DisplayNode] = ()


@dataclass(frozen=True)
class ListItem(DisplayNode):
    marker: str
    children: Sequence[DisplayNode] = ()


@dataclass(frozen=True)
class ListBlock(DisplayNode):
    ordered: bool
    items: Sequence[ListItem] = ()


@dataclass(frozen=True)
class Spoiler(DisplayNode):
    """Click-to-reveal region.

    ``index`` is the stable pre-order position of the spoiler within its
    document and is the key to pass back to ``MarkdownRenderer.toggle_spoiler``.
    A concealed spoiler carries only ``label``; its content is never part of
    the tree until revealed.
    """

    index: int
    revealed: bool
    label: str
    children: Sequence[DisplayNode] = ()


@dataclass(frozen=True)
class Mention(DisplayNode):
    kind: MentionKind
    label: str
    target_id: str | None = None
    color: str | None = None
    resolved: bool = False


@dataclass(frozen=True)
class Timestamp(DisplayNode):
    epoch: int
    style: str
    label: str


@dataclass(frozen=True)
class Document(DisplayNode):
    children: Sequence[DisplayNode] = ()
    spoiler_count: int = 0


@dataclass(frozen=True)
class ErrorDocument(DisplayNode):
    """Fallback display for content the parser rejected.

    ``content`` is the caller's original input, untouched.
    """

    content: str
    message: str = ""


def display_children(node: DisplayNode) -> Sequence[DisplayNode]:
    if isinstance(node, ListBlock):
        return node.items
    return getattr(node, "children", ())


@dataclass
class RenderStats:
    nodes: int = 0
    truncated: int = 0
    unknown: int = 0
    mentions: dict[str, int] = field(default_factory=dict)
