"""CLI entry point for pagetidy."""

import logging
import re
import sys
from datetime import datetime, timezone
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .analysis import analyze
from .assembler import ExportSettings, FlowStyle, SeparatorStyle, assemble, build_combined_text, export_entries
from .cache import CacheService
from .config import Settings
from .document import Document, Page
from .line_remover import apply_option
from .rich_text import RichText

console = Console()
logger = logging.getLogger(__name__)

CACHE_FILE = ".pagetidy-cache.json"
PAGE_EXTENSIONS = {".md", ".txt"}


def _sort_pages(input_dir: Path) -> list[Path]:
    """Sort page files by the numeric part of their filenames."""
    files = [f for f in input_dir.iterdir() if f.suffix.lower() in PAGE_EXTENSIONS]

    def extract_number(path: Path) -> int:
        match = re.search(r"(\d+)", path.stem)
        if match:
            return int(match.group(1))
        return 0

    files.sort(key=lambda path: (extract_number(path), path.name))
    return files


def _load_document(input_dir: Path, service: CacheService) -> tuple[Document, dict[int, Path]]:
    """Read page files into a document, reusing the cache file when it is current."""
    files = _sort_pages(input_dir)
    if not files:
        console.print("[red]No page files (.md, .txt) found in input directory.[/red]")
        sys.exit(1)

    document = Document(name=input_dir.name)
    paths = {}
    for idx, file in enumerate(files, start=1):
        modified = datetime.fromtimestamp(file.stat().st_mtime, tz=timezone.utc)
        document.pages.append(
            Page(idx, RichText.from_markdown(file.read_text(encoding="utf-8")), file.name, modified)
        )
        paths[idx] = file

    cache_path = input_dir / CACHE_FILE
    if cache_path.exists():
        cached_at = datetime.fromtimestamp(cache_path.stat().st_mtime, tz=timezone.utc)
        if all(page.last_modified <= cached_at for page in document.pages):
            document.text_cache = cache_path.read_bytes()
    if not service.is_current(document):
        if document.text_cache is not None:
            logger.info("Cache file in %s is stale, rebuilding", input_dir)
        service.build(document)
    return document, paths


def _save_cache(document: Document, input_dir: Path) -> None:
    if document.text_cache is not None:
        (input_dir / CACHE_FILE).write_bytes(document.text_cache)


@click.group()
@click.option("--verbose", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Detect and remove OCR page numbers and running headers from page files."""
    settings = Settings.from_env()
    logging.basicConfig(
        level="DEBUG" if verbose else settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    ctx.obj = {"settings": settings, "service": CacheService()}


@main.command("analyze")
@click.argument("input_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--page", "current", type=int, default=1, show_default=True, help="Page to build options for.")
@click.pass_obj
def analyze_cmd(obj: dict, input_dir: Path, current: int) -> None:
    """List detected artifacts and the cleanup options for a page.

    INPUT_DIR: Directory containing one Markdown or text file per page.
    """
    service: CacheService = obj["service"]
    document, _ = _load_document(input_dir, service)
    result = analyze(document, service, obj["settings"])
    _save_cache(document, input_dir)

    if result.is_empty:
        console.print("No suggestions.")
        return

    if result.page_numbers:
        table = Table(title="Page numbers")
        table.add_column("Page", justify="right")
        table.add_column("Number", justify="right")
        table.add_column("Position")
        table.add_column("Line")
        for d in result.page_numbers:
            table.add_row(str(d.ordinal), d.number_text, d.position.value, d.line_text)
        console.print(table)

    if result.section_headers:
        table = Table(title="Section headers")
        table.add_column("Header")
        table.add_column("Range")
        table.add_column("Pages")
        for h in result.section_headers:
            table.add_row(
                h.display_text, f"{h.page_range[0]}-{h.page_range[1]}", ", ".join(map(str, h.affected_pages))
            )
        console.print(table)

    options = result.options_for(current)
    console.print(f"\nOptions for page [bold]{current}[/bold]:")
    for option in options:
        console.print(f"  [cyan]{option.id}[/cyan]  {option.label}", markup=True, highlight=False)


@main.command("clean")
@click.argument("input_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("option_id")
@click.option("--page", "current", type=int, default=1, show_default=True, help="Page the option was offered for.")
@click.pass_obj
def clean_cmd(obj: dict, input_dir: Path, option_id: str, current: int) -> None:
    """Apply one cleanup option and rewrite the changed page files.

    OPTION_ID: Identifier printed by the analyze command, e.g. all-pn.
    """
    service: CacheService = obj["service"]
    document, paths = _load_document(input_dir, service)
    options = analyze(document, service, obj["settings"]).options_for(current)

    option = next((o for o in options if o.id == option_id), None)
    if option is None:
        console.print(f"[red]No option {option_id!r} for page {current}.[/red]")
        sys.exit(1)

    changed = apply_option(document, option, service)
    for ordinal in changed:
        page = document.page(ordinal)
        paths[ordinal].write_text(page.rich_text.to_markdown(), encoding="utf-8")
    _save_cache(document, input_dir)

    if changed:
        console.print(f"Updated [bold]{len(changed)}[/bold] pages: {', '.join(map(str, changed))}")
    else:
        console.print("Nothing to remove.")


@main.command("export")
@click.argument("input_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("output_file", type=click.Path(path_type=Path))
@click.option(
    "--flow",
    type=click.Choice([s.value for s in FlowStyle]),
    default=FlowStyle.LINE_BREAK.value,
    help="How pages are joined.",
)
@click.option(
    "--separator",
    type=click.Choice([s.value for s in SeparatorStyle]),
    default=SeparatorStyle.SINGLE_LINE.value,
    help="Separator layout for visual_separation.",
)
@click.option("--names", is_flag=True, help="Include page file names in separators.")
@click.option("--stats", is_flag=True, help="Include word and character counts in separators.")
@click.option("--no-page-numbers", is_flag=True, help="Leave page numbers out of separators.")
@click.option("--markers", is_flag=True, help="Write one section per page with page marker comments.")
@click.pass_obj
def export_cmd(
    obj: dict,
    input_dir: Path,
    output_file: Path,
    flow: str,
    separator: str,
    names: bool,
    stats: bool,
    no_page_numbers: bool,
    markers: bool,
) -> None:
    """Export all pages into one Markdown file.

    INPUT_DIR: Directory containing one Markdown or text file per page.
    OUTPUT_FILE: Path for the combined output file.
    """
    service: CacheService = obj["service"]
    document, _ = _load_document(input_dir, service)
    _save_cache(document, input_dir)

    if markers:
        assemble(document, output_file, service)
    else:
        settings = ExportSettings(
            flow_style=FlowStyle(flow),
            separator_style=SeparatorStyle(separator),
            include_page_number=not no_page_numbers,
            include_display_name=names,
            include_statistics=stats,
        )
        combined = build_combined_text(export_entries(document, service), settings)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(combined.to_markdown(), encoding="utf-8")

    console.print(f"Output written to [bold]{output_file}[/bold]")


if __name__ == "__main__":
    main()
