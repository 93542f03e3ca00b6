from __future__ import annotations

import json

import pytest

from discordmd.config import RenderSettings
from discordmd.display import ErrorDocument, Mention, MentionKind
from discordmd.paint import (
    ERROR_PREFIX,
    paint,
    register_format,
    supported_formats,
    to_dict,
)
from discordmd.renderer import render_markdown
from discordmd.resolvers import Resolvers, RoleInfo


def _render(content: str, **kwargs):
    return render_markdown(content, settings=RenderSettings(), **kwargs)


def test_html_escapes_text() -> None:
    html = paint(_render("<script>alert('x')</script> & **b**"))
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "&amp;" in html
    assert "<strong>b</strong>" in html


def test_html_escapes_resolved_names() -> None:
    resolvers = Resolvers(user=lambda target_id: {"username": "<img src=x>"})
    html = paint(_render("<@1>", resolvers=resolvers))
    assert "<img" not in html
    assert "@&lt;img src=x&gt;" in html


def test_html_role_color_must_be_hex() -> None:
    good = Resolvers(role=lambda rid: RoleInfo(name="Mods", color="#ff0000"))
    bad = Resolvers(role=lambda rid: RoleInfo(name="Mods", color="red;x:url(y)"))
    assert 'style="color: #ff0000"' in paint(_render("<@&1>", resolvers=good))
    assert "style=" not in paint(_render("<@&1>", resolvers=bad))


def test_html_spoilers() -> None:
    concealed = paint(_render("||secret||"))
    assert 'data-spoiler="0"' in concealed
    assert "secret" not in concealed
    revealed = paint(_render("||secret||", revealed=[0]))
    assert "spoiler-revealed" in revealed
    assert "secret" in revealed


def test_html_code_block_caption() -> None:
    html = paint(_render("```py\nx < 1\n```"))
    assert '<div class="code-language">py</div>' in html
    assert "<code>x &lt; 1</code>" in html


def test_html_error_block() -> None:
    html = paint(ErrorDocument(content="<b>raw</b>", message="boom"))
    assert 'class="discord-md-error"' in html
    assert f"{ERROR_PREFIX}&lt;b&gt;raw&lt;/b&gt;" in html


def test_text_format() -> None:
    content = "> quoted\n\n- one\n- two\n\n||hidden|| <t:0:d>"
    assert paint(_render(content), "text") == (
        "> quoted\n• one\n• two\n[SPOILER] 01/01/1970"
    )


def test_json_format() -> None:
    data = json.loads(paint(_render("**a** <@1>"), "json"))
    assert data["type"] == "Document"
    (paragraph,) = data["children"]
    bold, _, mention = paragraph["children"]
    assert bold == {
        "type": "Styled",
        "style": "bold",
        "children": [{"type": "TextSpan", "text": "a"}],
    }
    assert mention["kind"] == "user"
    assert mention["label"] == "@User-1"


def test_to_dict_uses_enum_values() -> None:
    assert to_dict(Mention(MentionKind.HERE, "@here"))["kind"] == "here"


def test_format_registry(monkeypatch) -> None:
    from discordmd import paint as paint_module

    monkeypatch.setattr(paint_module, "FORMATS", dict(paint_module.FORMATS))
    register_format("upper", lambda tree, **kwargs: paint(tree, "text").upper())
    assert "upper" in supported_formats()
    assert paint(_render("hi"), "upper") == "HI"
    with pytest.raises(ValueError):
        paint(_render("hi"), "pdf")


def test_package_level_helpers() -> None:
    import discordmd

    assert discordmd.render_to("**x** :fire:", format="text", emoji=False) == "x :fire:"
    assert discordmd.render_to(":fire:", format="text", emoji=True) == "\U0001f525"
    assert discordmd.supported_formats() == supported_formats()


def test_render_to_emoji_follows_environment(monkeypatch) -> None:
    import discordmd

    assert discordmd.render_to(":fire:", format="text") == "\U0001f525"
    monkeypatch.setenv("DISCORDMD_EMOJI", "0")
    assert discordmd.render_to(":fire:", format="text") == ":fire:"
    assert discordmd.render_to(":fire:", format="text", emoji=True) == "\U0001f525"
