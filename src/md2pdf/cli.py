"""CLI interface for md2pdf.

Command-line tool for converting markdown files to a single PDF.
"""

import logging
import sys
from pathlib import Path

import click

from md2pdf.config import Config
from md2pdf.errors import Md2PdfError
from md2pdf.verbatim import HighlightErrorPolicy


@click.group()
def cli() -> None:
    """md2pdf - Markdown to PDF with highlighted code blocks."""


@cli.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover md2pdf.toml)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="PDF output path (overrides config)",
)
@click.option(
    "--html",
    "html_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Also write the intermediate XHTML to this path (overrides config)",
)
@click.option(
    "--style",
    default=None,
    help="Code highlight style (overrides config, default: colorful)",
)
@click.option(
    "--stylesheet",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="External CSS stylesheet to link (overrides config)",
)
@click.option(
    "--timeout-ms",
    type=click.IntRange(min=1),
    default=None,
    help="Parse time budget in milliseconds (overrides config, default: 2000)",
)
@click.option(
    "--on-error",
    type=click.Choice([p.value for p in HighlightErrorPolicy]),
    default=None,
    help="How to handle code blocks that cannot be highlighted (overrides config)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
def build(
    files: tuple[Path, ...],
    config_path: Path | None,
    output: Path | None,
    html_path: Path | None,
    style: str | None,
    stylesheet: Path | None,
    timeout_ms: int | None,
    on_error: str | None,
    verbose: bool,
) -> None:
    """Create a PDF from markdown files, in the order given."""
    from md2pdf.converter import MarkdownPdfConverter

    _configure_logging(verbose)

    try:
        config = Config.load(config_path).with_overrides(
            pdf=output,
            html=html_path,
            stylesheet=stylesheet,
            style=style,
            timeout_ms=timeout_ms,
            on_error=HighlightErrorPolicy(on_error) if on_error else None,
        )
        converter = MarkdownPdfConverter.from_config(config)

        click.echo(f"Converting {len(files)} markdown file(s)...")
        sources = [path.read_text(encoding="utf-8") for path in files]
        result = converter.render_pdf(
            sources,
            config.output.pdf,
            markup_path=config.output.html,
            base_dir=files[0].resolve().parent,
        )

        for warning in result.warnings:
            click.echo(click.style(f"Warning: {warning}", fg="yellow"), err=True)
        if config.output.html:
            click.echo(f"XHTML written to {config.output.html}")
        click.echo(click.style(f"PDF written to {config.output.pdf}", fg="green"))

    except (Md2PdfError, FileNotFoundError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


@cli.command()
def styles() -> None:
    """Print the available code highlight styles."""
    from md2pdf.highlighting import default_bridge

    try:
        names = default_bridge().list_style_names()
    except Md2PdfError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(f"Available styles: {', '.join(names)}")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    cli()
