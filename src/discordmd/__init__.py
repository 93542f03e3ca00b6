import importlib


def render_to(
    content: str,
    *,
    format: str = "html",
    resolvers=None,
    emoji: bool | None = None,
    revealed=(),
    max_depth: int | None = None,
    timezone: str | None = None,
) -> str:
    from .config import build_settings
    from .emoji import replace_emoji_shortcodes
    from .paint import paint
    from .renderer import render_markdown

    settings = build_settings(
        {"max_depth": max_depth, "timezone": timezone, "replace_emoji": emoji}
    )
    if settings.replace_emoji:
        content = replace_emoji_shortcodes(content)
    tree = render_markdown(
        content, resolvers, settings=settings, revealed=revealed
    )
    return paint(tree, format)


_LAZY_EXPORTS = {
    "MarkdownRenderer": ("renderer", "MarkdownRenderer"),
    "RevealState": ("renderer", "RevealState"),
    "render_markdown": ("renderer", "render_markdown"),
    "preprocess": ("renderer", "preprocess"),
    "parse": ("parser", "parse"),
    "MarkdownParseError": ("parser", "MarkdownParseError"),
    "node_from_dict": ("nodes", "node_from_dict"),
    "Resolvers": ("resolvers", "Resolvers"),
    "UserInfo": ("resolvers", "UserInfo"),
    "RoleInfo": ("resolvers", "RoleInfo"),
    "ChannelInfo": ("resolvers", "ChannelInfo"),
    "preview_resolvers": ("resolvers", "preview_resolvers"),
    "resolvers_from_mapping": ("resolvers", "resolvers_from_mapping"),
    "RenderSettings": ("config", "RenderSettings"),
    "build_settings": ("config", "build_settings"),
    "format_timestamp": ("timestamps", "format_timestamp"),
    "replace_emoji_shortcodes": ("emoji", "replace_emoji_shortcodes"),
    "truncate_text": ("text", "truncate_text"),
    "register_format": ("paint", "register_format"),
    "supported_formats": ("paint", "supported_formats"),
    "to_dict": ("paint", "to_dict"),
}


def __getattr__(name):
    target = _LAZY_EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    module = importlib.import_module(f"{__name__}.{module_name}")
    return getattr(module, attr_name)


__all__ = ["render_to", *_LAZY_EXPORTS]
