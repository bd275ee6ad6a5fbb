"""
CLI for handbook layer.

Commands:
    convert    - Parse handbook PDFs into snapshot text files
    search     - Show the excerpt a question would send to the LLM
    info       - Show handbook configuration and snapshot status
    list-docs  - List configured handbooks
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table as RichTable

app = typer.Typer(
    name="handbook-layer",
    help="Handbook Layer - PDF snapshots and keyword extraction",
)
console = Console()


def _build_store(config: Optional[Path], base_dir: Optional[Path], snapshot_dir: Path):
    from ..src.descriptors import load_descriptors
    from ..src.store import HandbookStore

    try:
        registry = load_descriptors(config, base_dir=base_dir)
    except (OSError, ValueError) as e:
        rprint(f"[red]Could not load handbook config: {e}[/red]")
        raise typer.Exit(1)

    return HandbookStore(registry, snapshot_dir)


ConfigOption = typer.Option(None, "--config", envvar="HANDBOOKS_CONFIG", help="Handbook config JSON")
BaseDirOption = typer.Option(None, "--base-dir", envvar="HANDBOOK_BASE_DIR", help="Directory for relative PDF paths")
SnapshotDirOption = typer.Option(Path("binran_all_text"), "--snapshot-dir", envvar="SNAPSHOT_DIR", help="Snapshot directory")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def convert(
    document_ids: Optional[List[str]] = typer.Argument(None, help="Faculty keys (all if omitted)"),
    config: Optional[Path] = ConfigOption,
    base_dir: Optional[Path] = BaseDirOption,
    snapshot_dir: Path = SnapshotDirOption,
    force: bool = typer.Option(False, "--force", "-f", help="Re-parse PDFs even if a snapshot exists"),
):
    """
    Convert handbook PDFs into snapshot text files.

    Existing snapshots are used unless --force is given. A forced
    snapshot is only replaced once its PDF parses successfully.

    Examples:
        # Convert every configured handbook
        handbook-layer convert

        # Re-parse only the engineering handbook
        handbook-layer convert engineering --force
    """
    store = _build_store(config, base_dir, snapshot_dir)

    ids = document_ids or list(store.registry)
    unknown = [doc_id for doc_id in ids if doc_id not in store.registry]
    if unknown:
        rprint(f"[red]Unknown handbook(s): {', '.join(unknown)}[/red]")
        raise typer.Exit(1)

    results = asyncio.run(store.preload(ids, refresh=force))

    table = RichTable(title="Conversion Results")
    table.add_column("Faculty", style="cyan")
    table.add_column("Name")
    table.add_column("Pages", justify="right")
    table.add_column("Chars", justify="right")
    table.add_column("Source")

    failed = 0
    for doc_id, result in results.items():
        name = store.registry[doc_id].name
        if isinstance(result, Exception):
            failed += 1
            table.add_row(doc_id, name, "-", "-", f"[red]{result.kind.value}[/red]")
        else:
            table.add_row(
                doc_id,
                name,
                str(result.corpus.page_count),
                f"{len(result.text):,}",
                result.source,
            )

    console.print(table)
    rprint(f"\nProcessed {len(results)} handbook(s), {failed} failed")

    if failed:
        raise typer.Exit(1)


@app.command()
def search(
    query: str = typer.Argument(..., help="Question to extract context for"),
    document_id: str = typer.Option(..., "--doc-id", "-d", help="Faculty key"),
    max_chars: int = typer.Option(30000, "--max-chars", "-m", help="Character budget"),
    context_lines: int = typer.Option(3, "--context-lines", "-n", help="Lines kept around each hit"),
    config: Optional[Path] = ConfigOption,
    base_dir: Optional[Path] = BaseDirOption,
    snapshot_dir: Path = SnapshotDirOption,
    show_text: bool = typer.Option(True, "--show-text/--hide-text", help="Print the excerpt"),
):
    """
    Show the handbook excerpt a question would send to the LLM.

    Examples:
        handbook-layer search "図書館 開館時間" --doc-id engineering
    """
    from ..src.errors import StoreError
    from ..src.relevance import extract_relevant, tokenize_query

    store = _build_store(config, base_dir, snapshot_dir)

    try:
        entry = asyncio.run(store.get_entry(document_id))
    except StoreError as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(1)

    context = extract_relevant(entry.text, query, max_chars, context_lines=context_lines)

    rprint(f"\n🔍 Query: [cyan]{query}[/cyan]")
    rprint(f"   Keywords: {tokenize_query(query)}")
    rprint(f"   Matched lines: {context.matched_lines}")
    rprint(f"   Excerpt: {len(context.text):,} chars (corpus {len(entry.text):,})")
    if context.used_fallback:
        rprint("   [yellow]No keyword matched; using handbook prefix[/yellow]")
    if context.truncated:
        rprint("   [yellow]Excerpt truncated[/yellow]")

    if show_text:
        rprint()
        console.print(context.text, markup=False, highlight=False)


@app.command()
def info(
    document_id: str = typer.Argument(..., help="Faculty key"),
    config: Optional[Path] = ConfigOption,
    base_dir: Optional[Path] = BaseDirOption,
    snapshot_dir: Path = SnapshotDirOption,
):
    """
    Show handbook configuration and snapshot status.
    """
    from ..src.errors import SnapshotError
    from ..src.snapshot import load_snapshot

    store = _build_store(config, base_dir, snapshot_dir)

    descriptor = store.registry.get(document_id)
    if descriptor is None:
        rprint(f"[red]Handbook not found: {document_id}[/red]")
        raise typer.Exit(1)

    rprint(f"\n[bold]Handbook: {document_id}[/bold]")
    rprint(f"  Name: {descriptor.name}")
    rprint(f"  PDF: {descriptor.source_path}")
    rprint(f"  PDF present: {'✓' if descriptor.source_path.is_file() else '✗'}")
    rprint(f"  Page offset: {descriptor.page_offset}")

    rprint("\n[bold]Departments:[/bold]")
    for dept_id, dept in descriptor.departments.items():
        rprint(f"  {dept_id}: {dept.name}")

    rprint("\n[bold]Snapshot:[/bold]")
    path = store.snapshot_path_for(document_id)
    if not path.exists():
        rprint(f"  ✗ {path} [dim](not found)[/dim]")
        return

    try:
        corpus, text = load_snapshot(path, document_id)
    except SnapshotError as e:
        rprint(f"  [red]✗ {path} is corrupt: {e}[/red]")
        raise typer.Exit(1)

    rprint(f"  ✓ {path} ({path.stat().st_size:,} bytes)")
    rprint(f"  Pages: {corpus.page_count}")
    rprint(f"  Characters: {len(text):,}")


@app.command()
def list_docs(
    config: Optional[Path] = ConfigOption,
    base_dir: Optional[Path] = BaseDirOption,
    snapshot_dir: Path = SnapshotDirOption,
):
    """
    List all configured handbooks.
    """
    store = _build_store(config, base_dir, snapshot_dir)

    if not store.registry:
        rprint("[yellow]No handbooks configured[/yellow]")
        return

    table = RichTable(title="Configured handbooks")
    table.add_column("Faculty", style="cyan")
    table.add_column("Name")
    table.add_column("Departments", justify="right")
    table.add_column("PDF")
    table.add_column("Snapshot")

    for doc_id, descriptor in store.registry.items():
        table.add_row(
            doc_id,
            descriptor.name,
            str(len(descriptor.departments)),
            "✓" if descriptor.source_path.is_file() else "✗",
            "✓" if store.snapshot_path_for(doc_id).is_file() else "✗",
        )

    console.print(table)


if __name__ == "__main__":
    app()
