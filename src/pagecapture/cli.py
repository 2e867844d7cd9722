"""CLI module for pagecapture."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

try:
    import click
    from rich.console import Console
    from rich.markup import escape
    from rich.panel import Panel
    from rich.table import Table
except ImportError:
    raise ImportError("Please install CLI dependencies: pip install click rich")

from pagecapture import __version__
from pagecapture.config import CONFIG, CaptureSettings
from pagecapture.dom.flatten import flatten_shadow_dom
from pagecapture.dom.serializer import HTMLSerializer
from pagecapture.dom.service import DomService
from pagecapture.exceptions import PageCaptureError
from pagecapture.pipeline import CapturePipeline

console = Console()


def _configure_logging(verbose: bool) -> None:
    if verbose or CONFIG.DEBUG:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, CONFIG.LOGGING_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def _load(snapshot: str):
    try:
        return DomService().load_snapshot(snapshot)
    except PageCaptureError as e:
        raise click.ClickException(str(e)) from e


def _default_output(snapshot: str) -> Path:
    return Path(snapshot).with_suffix(".html")


@click.group()
@click.version_option(version=__version__, prog_name="pagecapture")
def cli():
    """pagecapture - prepare rendered pages for deterministic capture."""
    pass


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Output HTML file (default: SNAPSHOT with .html)")
@click.option(
    "--shadow-templates/--no-shadow-templates",
    default=True,
    help="Write shadow roots that were not flattened as declarative <template> elements",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def flatten(snapshot: str, output: Optional[str], shadow_templates: bool, verbose: bool):
    """Flatten every shadow root in a DOM.getDocument SNAPSHOT and write HTML.

    SNAPSHOT is the JSON result of CDP ``DOM.getDocument`` taken with
    ``depth=-1`` and ``pierce=true``.
    """
    _configure_logging(verbose)
    root = _load(snapshot)

    records = flatten_shadow_dom(root, settings=CaptureSettings.from_env().flatten)
    html = HTMLSerializer(include_shadow_roots=shadow_templates).serialize(root)

    out_path = Path(output) if output else _default_output(snapshot)
    out_path.write_text(html, encoding="utf-8")

    failed = [record for record in records if not record.ok]
    table = Table(title="Flattened shadow hosts")
    table.add_column("Host")
    table.add_column("Identity")
    table.add_column("Status")
    for record in records:
        status = "[green]ok[/green]" if record.ok else f"[red]{escape(record.error or '')}[/red]"
        table.add_row(f"<{record.tag_name}>", record.identity or "-", status)
    if records:
        console.print(table)
    console.print(
        f"[green]Flattened {len(records) - len(failed)}/{len(records)} shadow host(s)[/green] -> {out_path}"
    )


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.option("--url", "-u", default=None, help="Page URL, used for the title fallback and chapter numbering")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Output HTML file (default: SNAPSHOT with .html)")
@click.option("--report", "-r", type=click.Path(dir_okay=False), default=None, help="Also write the capture report as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def capture(snapshot: str, url: Optional[str], output: Optional[str], report: Optional[str], verbose: bool):
    """Run the full capture preprocessing pipeline on a SNAPSHOT and write HTML.

    Detects the site adapter, flattens shadow DOM, cleans the page and sets
    the document language; prints the resulting title and a summary.
    """
    _configure_logging(verbose)
    root = _load(snapshot)

    pipeline = CapturePipeline(settings=CaptureSettings.from_env())
    result = pipeline.run(root, url)

    out_path = Path(output) if output else _default_output(snapshot)
    out_path.write_text(HTMLSerializer().serialize(root), encoding="utf-8")
    if report:
        Path(report).write_text(json.dumps(result.model_dump(), indent=2), encoding="utf-8")

    summary = (
        f"Title: {escape(result.title)}\n"
        f"Language: {result.lang}\n"
        f"Adapter: {result.adapter}\n"
        f"Flattened: {result.flattened_count}\n"
        f"Removed elements: {result.removed_elements}\n"
        f"Lazy images: {result.lazy_images}\n"
        f"Icons refreshed: {result.icons_refreshed}"
    )
    if result.errors:
        summary += "\n\n[yellow]Errors:[/yellow]\n" + "\n".join(f"  - {escape(error)}" for error in result.errors)
    console.print(Panel.fit(summary, title="Capture report"))
    console.print(f"[green]Wrote {out_path}[/green]")


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
