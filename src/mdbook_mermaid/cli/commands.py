"""CLI command implementations"""

import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from mdbook_mermaid.book.models import parse_input
from mdbook_mermaid.config import Settings, load_config
from mdbook_mermaid.core.pipeline import add_mermaid, run_rewrite
from mdbook_mermaid.errors import MermaidError
from mdbook_mermaid.preprocessor import MermaidPreprocessor


LOG_FORMAT = "%(asctime)s [%(levelname)s] (%(name)s): %(message)s"

logger = logging.getLogger(__name__)


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None, book_options: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides, book_options=book_options)
    except ValueError as e:
        _fail(str(e))


def _configure_logging(level: str) -> None:
    """Send logs to stderr; stdout carries the book JSON."""
    logging.basicConfig(stream=sys.stderr, format=LOG_FORMAT)
    logging.getLogger("mdbook_mermaid").setLevel(level)


def _preprocess(overrides: dict) -> None:
    raw = sys.stdin.read()
    try:
        context, book = parse_input(raw)
    except ValidationError as e:
        _fail("Invalid preprocessor input", e)

    settings = _settings(overrides, book_options=context.preprocessor_options(MermaidPreprocessor.name))
    _configure_logging(settings.log_level)
    logger.debug("Running for renderer %r (mdBook %s)", context.renderer, context.mdbook_version)

    try:
        book = MermaidPreprocessor(settings).run(context, book)
    except MermaidError as e:
        _fail("Preprocessing failed", e)
    typer.echo(book.to_json())


def main_callback(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output to stderr")] = False,
    ):
    """Without a command, run as an mdBook preprocessor: [context, book] JSON on stdin, book JSON on stdout."""
    overrides = {"log_level": "DEBUG" if verbose else None}
    ctx.obj = overrides
    _configure_logging(_settings(overrides).log_level)
    if ctx.invoked_subcommand is None:
        _preprocess(overrides)


def supports_cmd(
    ctx: typer.Context,
    renderer: Annotated[str, typer.Argument(help="Renderer name mdBook asks about")],
    ):
    """Exit 0 if the renderer is supported, 1 otherwise."""
    supported = MermaidPreprocessor(_settings(ctx.obj)).supports_renderer(renderer)
    logger.debug("Renderer %r supported: %s", renderer, supported)
    raise typer.Exit(0 if supported else 1)


def rewrite_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(exists=True, readable=True, help="Markdown file or directory")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    label: Annotated[Optional[str], typer.Option("--label", help="Fence label to convert")] = None,
    ):
    """Rewrite markdown files outside mdBook: a single file prints to stdout."""
    settings = _settings({**(ctx.obj or {}), "label": label})

    if out is None:
        if path.is_dir():
            _fail("--out-dir is required when rewriting a directory")
        try:
            typer.echo(add_mermaid(path.read_text(encoding="utf-8"), settings.label, settings.css_class))
        except MermaidError as e:
            _fail(f"Failed to rewrite {path}", e)
        return

    output_dir = Path(out)
    try:
        results = run_rewrite(path, output_dir, settings.label, settings.css_class)
    except MermaidError as e:
        _fail("Rewrite failed", e)
    for src, dest in results:
        typer.echo(f"  {src} -> {dest}")
    typer.echo(f"Rewrote {len(results)} document(s) to {output_dir}/")
