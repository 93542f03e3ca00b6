from __future__ import annotations

import html
import json
import re
from enum import Enum
from typing import Any, Callable

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
    Paragraph,
    Spoiler,
    Style,
    Styled,
    TextSpan,
    Timestamp,
    display_children,
)

PaintHandler = Callable[..., Any]

ERROR_PREFIX = "Error parsing markdown: "
_HEX_COLOR_RE = re.compile(r"#[0-9A-Fa-f]{3,8}")

_STYLE_TAGS = {
    Style.BOLD: "strong",
    Style.ITALIC: "em",
    Style.UNDERLINE: "u",
    Style.STRIKETHROUGH: "s",
}


def _esc(value: str) -> str:
    return html.escape(value, quote=True)


def _html_children(node: DisplayNode) -> str:
    return "".join(_html(child) for child in display_children(node))


def _html(node: DisplayNode) -> str:
    if isinstance(node, TextSpan):
        return _esc(node.text)
    if isinstance(node, LineBreak):
        return "<br>"
    if isinstance(node, Styled):
        tag = _STYLE_TAGS[node.style]
        return f"<{tag}>{_html_children(node)}</{tag}>"
    if isinstance(node, InlineCode):
        return f"<code>{_esc(node.text)}</code>"
    if isinstance(node, CodeBlock):
        caption = (
            f'<div class="code-language">{_esc(node.language)}</div>'
            if node.language
            else ""
        )
        return f"<pre>{caption}<code>{_esc(node.text)}</code></pre>"
    if isinstance(node, Paragraph):
        return f"<p>{_html_children(node)}</p>"
    if isinstance(node, BlockQuote):
        return f"<blockquote>{_html_children(node)}</blockquote>"
    if isinstance(node, ListBlock):
        tag = "ol" if node.ordered else "ul"
        return f"<{tag}>{_html_children(node)}</{tag}>"
    if isinstance(node, ListItem):
        return f"<li>{_html_children(node)}</li>"
    if isinstance(node, Spoiler):
        state = "revealed" if node.revealed else "concealed"
        body = _html_children(node) if node.revealed else _esc(node.label)
        return (
            f'<span class="spoiler spoiler-{state}" data-spoiler="{node.index}">'
            f"{body}</span>"
        )
    if isinstance(node, Mention):
        color = ""
        if node.color and _HEX_COLOR_RE.fullmatch(node.color):
            color = f' style="color: {node.color}"'
        return (
            f'<span class="mention mention-{node.kind.value}"{color}>'
            f"{_esc(node.label)}</span>"
        )
    if isinstance(node, Timestamp):
        return (
            f'<span class="timestamp" data-epoch="{node.epoch}" '
            f'data-style="{_esc(node.style)}">{_esc(node.label)}</span>'
        )
    if isinstance(node, Document):
        return f'<div class="discord-md">{_html_children(node)}</div>'
    if isinstance(node, ErrorDocument):
        return (
            '<div class="discord-md"><pre class="discord-md-error">'
            f"{_esc(ERROR_PREFIX + node.content)}</pre></div>"
        )
    return _html_children(node)


def paint_html(tree: DisplayNode, **kwargs) -> str:
    return _html(tree)


def _text_children(node: DisplayNode) -> str:
    return "".join(_text(child) for child in display_children(node))


def _text(node: DisplayNode) -> str:
    if isinstance(node, TextSpan):
        return node.text
    if isinstance(node, LineBreak):
        return "\n"
    if isinstance(node, InlineCode):
        return f"`{node.text}`"
    if isinstance(node, CodeBlock):
        return f"```{node.language or ''}\n{node.text}\n```\n"
    if isinstance(node, (Mention, Timestamp)):
        return node.label
    if isinstance(node, Spoiler):
        return _text_children(node) if node.revealed else f"[{node.label}]"
    if isinstance(node, BlockQuote):
        inner = _text_children(node).strip("\n").split("\n")
        return "\n".join(f"> {line}" if line else ">" for line in inner) + "\n"
    if isinstance(node, ListBlock):
        lines = []
        for item in node.items:
            first, *rest = _text_children(item).strip("\n").split("\n")
            lines.append(f"{item.marker} {first}")
            lines.extend(f"  {line}" for line in rest)
        return "\n".join(lines) + "\n"
    if isinstance(node, Paragraph):
        return f"{_text_children(node)}\n\n"
    if isinstance(node, ErrorDocument):
        return node.content
    if isinstance(node, Document):
        return _text_children(node).rstrip("\n")
    return _text_children(node)


def paint_text(tree: DisplayNode, **kwargs) -> str:
    return _text(tree)


def to_dict(node: DisplayNode) -> dict[str, Any]:
    """JSON-ready view of a display node: ``{"type": ..., <fields>, "children": [...]}``."""
    data: dict[str, Any] = {"type": type(node).__name__}
    for name in getattr(node, "__dataclass_fields__", {}):
        value = getattr(node, name)
        if name in ("children", "items"):
            data[name] = [to_dict(child) for child in value]
        elif isinstance(value, Enum):
            data[name] = value.value
        else:
            data[name] = value
    return data


def paint_json(tree: DisplayNode, *, indent: int | None = 2, **kwargs) -> str:
    return json.dumps(to_dict(tree), indent=indent, ensure_ascii=False)


FORMATS: dict[str, PaintHandler] = {
    "html": paint_html,
    "text": paint_text,
    "json": paint_json,
}


def register_format(name: str, handler: PaintHandler) -> None:
    FORMATS[name] = handler


def paint(tree: DisplayNode, fmt: str = "html", **kwargs) -> str:
    handler = FORMATS.get(fmt)
    if handler is None:
        raise ValueError(f"Unknown format: {fmt}")
    return handler(tree, **kwargs)


def supported_formats() -> list[str]:
    return list(FORMATS.keys())
