from __future__ import annotations

ELLIPSIS = "..."


def truncate_text(text: str, max_length: int = 200) -> str:
    """Shorten ``text`` for list previews, preferring a word boundary.

    The cut lands on the last space inside the limit when that space sits in
    the final fifth of it; otherwise the text is cut hard at ``max_length``.
    """
    if len(text) <= max_length:
        return text
    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        return truncated[:last_space] + ELLIPSIS
    return truncated + ELLIPSIS
