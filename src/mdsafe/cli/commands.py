"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from markdown_it import MarkdownIt

from mdsafe.config import Settings, load_config
from mdsafe.core.parse import discover_files, read_source
from mdsafe.core.pipeline import convert
from mdsafe.core.safety import validate_href


FallbackOpt = Annotated[bool, typer.Option("--fallback", help="Force the built-in fallback engine")]
AllowHtmlOpt = Annotated[Optional[bool], typer.Option("--allow-html/--no-allow-html", help="Pass raw HTML through (delegated engine)")]
UnsafeLinksOpt = Annotated[Optional[bool], typer.Option("--allow-unsafe-links/--no-allow-unsafe-links", help="Skip URL scheme validation")]
LinkifyOpt = Annotated[Optional[bool], typer.Option("--linkify/--no-linkify", help="Auto-link bare URLs")]
TypographerOpt = Annotated[Optional[bool], typer.Option("--typographer/--no-typographer", help="Smart punctuation")]
BreaksOpt = Annotated[Optional[bool], typer.Option("--breaks/--no-breaks", help="Soft line feeds become <br>")]
TargetBlankOpt = Annotated[Optional[bool], typer.Option("--target-blank/--no-target-blank", help="Open links in a new tab")]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")]


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _render_file(path: Path, settings: Settings) -> str:
    """Render one Markdown file with the configured engine."""
    _, body = read_source(path)
    factory = None if settings.engine == "fallback" else MarkdownIt
    return convert(body, settings.render_options(), factory=factory)


def render_cmd(
    path: Annotated[Path, typer.Argument(help="Markdown file to render")],
    out: Annotated[Optional[Path], typer.Option("--out", "-o", help="Write HTML here instead of stdout")] = None,
    fallback: FallbackOpt = False,
    allow_html: AllowHtmlOpt = None,
    allow_unsafe_links: UnsafeLinksOpt = None,
    linkify: LinkifyOpt = None,
    typographer: TypographerOpt = None,
    breaks: BreaksOpt = None,
    target_blank: TargetBlankOpt = None,
    verbose: VerboseOpt = False,
    ):
    """Render a single Markdown file to sanitized HTML."""
    _setup_logging(verbose)
    settings = _settings(overrides={
        "engine": "fallback" if fallback else None,
        "allow_html": allow_html, "allow_unsafe_links": allow_unsafe_links,
        "linkify": linkify, "typographer": typographer, "breaks": breaks,
        "link_target_blank": target_blank,
    })
    if not path.is_file():
        _fail(f"Not a file: {path}")
    try:
        html = _render_file(path, settings)
    except (OSError, ValueError) as e:
        _fail(f"Could not render {path}", e)

    if out is None:
        typer.echo(html)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(html, encoding="utf-8")
    typer.echo(f"  {path} -> {out}")


def build_cmd(
    path: Annotated[Path, typer.Argument(help="File or directory to render")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    fallback: FallbackOpt = False,
    allow_html: AllowHtmlOpt = None,
    allow_unsafe_links: UnsafeLinksOpt = None,
    linkify: LinkifyOpt = None,
    typographer: TypographerOpt = None,
    breaks: BreaksOpt = None,
    target_blank: TargetBlankOpt = None,
    verbose: VerboseOpt = False,
    ):
    """Render every Markdown file under path into the output directory as .html."""
    _setup_logging(verbose)
    settings = _settings(overrides={
        "output_dir": out, "engine": "fallback" if fallback else None,
        "allow_html": allow_html, "allow_unsafe_links": allow_unsafe_links,
        "linkify": linkify, "typographer": typographer, "breaks": breaks,
        "link_target_blank": target_blank,
    })
    files = discover_files(path)
    if not files:
        typer.echo("No Markdown files found.")
        raise typer.Exit(1)

    output_dir = Path(settings.output_dir)
    for src in files:
        rel = src.relative_to(path) if path.is_dir() else Path(src.name)
        dest = output_dir / rel.with_suffix(".html")
        try:
            html = _render_file(src, settings)
        except (OSError, ValueError) as e:
            _fail(f"Could not render {src}", e)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(html, encoding="utf-8")
        typer.echo(f"  {src} -> {dest}")
    typer.echo(f"Rendered {len(files)} document(s) to {output_dir}/")


def check_href_cmd(
    url: Annotated[str, typer.Argument(help="Candidate href")],
    allow_unsafe: Annotated[bool, typer.Option("--allow-unsafe", help="Accept every scheme")] = False,
    ):
    """Validate a URL against the link safety policy; exit 1 when it is rejected."""
    safe = validate_href(url, allow_unsafe)
    if not safe:
        typer.echo(f"Rejected: {url!r}", err=True)
        raise typer.Exit(1)
    typer.echo(safe)
