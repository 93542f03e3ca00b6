import sys

import click
from pyperclip import copy

from .runtime import MAX_DEPTH_CEILING, reset_verbose_logging, set_verbose_logging


def _read_source(path):
    if not path or path == "-":
        return sys.stdin.read()
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return handle.read()
    except OSError as exc:
        raise click.ClickException(f"Could not read {path}: {exc}") from exc


def _load_resolvers(path):
    import yaml

    from .resolvers import resolvers_from_mapping

    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise click.ClickException(f"Could not read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML in {path}: {exc}") from exc

    if data is not None and not isinstance(data, dict):
        raise click.ClickException(
            "Resolver file must be a mapping with 'users', 'roles' and 'channels'"
        )
    try:
        return resolvers_from_mapping(data)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc


def validate_reveal(ctx, param, value):
    if any(index < 0 for index in value):
        raise click.BadParameter("spoiler indices start at 0")
    return value


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Print renderer diagnostics to stderr.",
)
@click.pass_context
def cli(ctx, verbose):
    """
    discordmd - render Discord-flavored markdown
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        token = set_verbose_logging(True)
        ctx.call_on_close(lambda: reset_verbose_logging(token))
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


@cli.command("render")
@click.argument("path", required=False, type=click.Path(dir_okay=False))
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice(["html", "text", "json"], case_sensitive=False),
    default="html",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--resolvers",
    "resolvers_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file mapping user, role and channel ids to names.",
)
@click.option(
    "--preview-mentions",
    is_flag=True,
    help="Resolve every mention to a placeholder name derived from its id.",
)
@click.option(
    "--emoji/--no-emoji",
    default=None,
    help="Replace :shortcode: emoji with Unicode before rendering (default: on, or DISCORDMD_EMOJI).",
)
@click.option(
    "--reveal",
    "reveal",
    type=int,
    multiple=True,
    callback=validate_reveal,
    help="Reveal the spoiler at this index (repeatable).",
)
@click.option("--reveal-all", is_flag=True, help="Reveal every spoiler.")
@click.option(
    "--max-depth",
    type=click.IntRange(min=1),
    default=None,
    help=(
        "Flatten nodes nested deeper than this (default: DISCORDMD_MAX_DEPTH or 64, "
        f"at most {MAX_DEPTH_CEILING})."
    ),
)
@click.option(
    "--timezone",
    default=None,
    help="Timezone for timestamps: an IANA name, 'UTC' or 'local' (default: DISCORDMD_TIMEZONE or UTC).",
)
@click.option(
    "-c",
    "--copy",
    "copy_output",
    is_flag=True,
    help="Copy output to clipboard instead of printing to console.",
)
@click.pass_context
def render_cmd(
    ctx,
    path,
    fmt,
    resolvers_path,
    preview_mentions,
    emoji,
    reveal,
    reveal_all,
    max_depth,
    timezone,
    copy_output,
):
    """
    Render a markdown file (or stdin) to HTML, plain text or JSON.
    """
    from .config import build_settings
    from .emoji import replace_emoji_shortcodes
    from .paint import paint
    from .renderer import MarkdownRenderer
    from .resolvers import preview_resolvers

    if resolvers_path and preview_mentions:
        raise click.BadParameter(
            "--resolvers and --preview-mentions are mutually exclusive"
        )

    try:
        settings = build_settings(
            {"max_depth": max_depth, "timezone": timezone, "replace_emoji": emoji}
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc

    content = _read_source(path)
    if settings.replace_emoji:
        content = replace_emoji_shortcodes(content)

    if preview_mentions:
        resolvers = preview_resolvers()
    elif resolvers_path:
        resolvers = _load_resolvers(resolvers_path)
    else:
        resolvers = None

    renderer = MarkdownRenderer(settings)
    renderer.reveal_spoilers(reveal)
    tree = renderer.render(content, resolvers)
    if reveal_all and getattr(tree, "spoiler_count", 0):
        renderer.reveal_spoilers(range(tree.spoiler_count))
        tree = renderer.render(content, resolvers)

    output = paint(tree, fmt.lower())

    if copy_output:
        try:
            copy(output)
            click.echo(f"Copied {len(output)} characters to clipboard.")
        except Exception as e:
            click.echo(f"Error copying to clipboard: {e}", err=True)
            click.echo(output)
        return
    click.echo(output)


@cli.command("formats")
def formats_cmd():
    """
    List the available output formats.
    """
    from .paint import supported_formats

    for name in supported_formats():
        click.echo(name)


def main():
    cli()


if __name__ == "__main__":
    main()
