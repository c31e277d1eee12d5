"""Exhibit Desk CLI - exhibit numbering and citation lookup for a case."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__

app = typer.Typer(
    name="exhibit-desk",
    help="Exhibit numbering, filename detection and citation lookup for legal cases.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main_options(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
):
    """Configure logging before running a command."""
    from ..config.settings import get_settings
    from ..utils.logging import setup_logging

    settings = get_settings()
    setup_logging(level=log_level or settings.log_level, log_file=settings.log_file)


def _open_case(case_dir: Path):
    """Load storage and registry for a case, exiting if it was never initialized."""
    from ..exceptions import ExhibitStorageError
    from ..storage import ExhibitStorage
    from ..utils.logging import log_registry_events

    storage = ExhibitStorage(case_dir)
    if not storage.is_initialized:
        console.print(f"[red]Error: no exhibits found in {case_dir}. Run 'init' first.[/red]")
        raise typer.Exit(1)

    try:
        registry = storage.load_registry()
    except ExhibitStorageError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    log_registry_events(registry)
    return storage, registry


def _open_resolver(storage, registry):
    """Load citation history, exiting on a corrupted history file."""
    from ..exceptions import ExhibitStorageError

    try:
        return storage.load_resolver(registry)
    except ExhibitStorageError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _require_exhibit(registry, identifier: str):
    exhibit = registry.find_by_number(identifier)
    if exhibit is None:
        console.print(f"[red]Error: exhibit {identifier} not found[/red]")
        raise typer.Exit(1)
    return exhibit


@app.command()
def init(
    case_dir: Path = typer.Argument(..., help="Case directory"),
    case_id: Optional[str] = typer.Option(
        None,
        "--case-id", "-c",
        help="Case ID (default: directory name)",
    ),
):
    """
    Initialize exhibit tracking for a case directory.
    """
    from ..exceptions import ExhibitStorageError
    from ..storage import init_exhibit_storage

    try:
        storage = init_exhibit_storage(case_dir, case_id=case_id or "")
        registry = storage.load_registry()
    except ExhibitStorageError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Exhibits ready for case {registry.case_id}[/green]")
    console.print(f"Exhibits: {len(registry)}")


@app.command()
def create(
    case_dir: Path = typer.Argument(..., help="Case directory"),
    identifier: Optional[str] = typer.Argument(
        None,
        help="Exhibit number (e.g. 12B); next free number when omitted",
    ),
    title: str = typer.Option("", "--title", help="Exhibit title"),
    description: str = typer.Option("", "--description", "-d", help="Description"),
    exhibit_type: str = typer.Option("document", "--type", "-t", help="Exhibit type"),
    key: bool = typer.Option(False, "--key", help="Mark as key evidence"),
):
    """
    Create an empty exhibit.
    """
    from ..exceptions import SequencerExhaustedError
    from ..models import ExhibitType

    storage, registry = _open_case(case_dir)

    try:
        kind = ExhibitType(exhibit_type.lower())
    except ValueError:
        choices = ", ".join(t.value for t in ExhibitType)
        console.print(f"[red]Error: unknown exhibit type '{exhibit_type}' (choose from {choices})[/red]")
        raise typer.Exit(1)

    if identifier is None:
        try:
            identifier = str(registry.next_identifier())
        except SequencerExhaustedError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

    result = registry.create_from_input(
        identifier,
        title=title,
        description=description,
        exhibit_type=kind,
        is_key_evidence=key,
    )
    if not result.success:
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(1)

    storage.save_registry(registry)
    console.print(f"[green]Created exhibit {result.exhibit.exhibit_number}[/green]: {result.exhibit.title}")


@app.command(name="next")
def next_number(
    case_dir: Path = typer.Argument(..., help="Case directory"),
):
    """
    Show the next unused exhibit number.
    """
    from ..exceptions import SequencerExhaustedError

    _, registry = _open_case(case_dir)

    try:
        console.print(str(registry.next_identifier()))
    except SequencerExhaustedError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command(name="list")
def list_exhibits(
    case_dir: Path = typer.Argument(..., help="Case directory"),
):
    """
    List exhibits in order.
    """
    _, registry = _open_case(case_dir)
    exhibits = registry.list_sorted()

    if not exhibits:
        console.print("No exhibits yet.")
        return

    table = Table(title=f"Exhibits ({len(exhibits)})")
    table.add_column("Exhibit", style="cyan")
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("Files", justify="right")
    table.add_column("Key", justify="center")

    for exhibit in exhibits:
        table.add_row(
            exhibit.exhibit_number,
            exhibit.title,
            exhibit.exhibit_type.value,
            str(exhibit.file_count),
            "★" if exhibit.is_key_evidence else "",
        )

    console.print(table)


@app.command()
def detect(
    filenames: list[str] = typer.Argument(..., help="Filenames to scan"),
):
    """
    Show the exhibit number detected in each filename.
    """
    from ..identifiers import detect as detect_identifier

    table = Table(title="Detected Exhibit Numbers")
    table.add_column("Filename", style="cyan")
    table.add_column("Exhibit", justify="right")

    for filename in filenames:
        identifier = detect_identifier(filename)
        table.add_row(filename, str(identifier) if identifier else "-")

    console.print(table)


@app.command()
def attach(
    case_dir: Path = typer.Argument(..., help="Case directory"),
    file_id: str = typer.Argument(..., help="File ID"),
    identifier: str = typer.Argument(..., help="Exhibit number"),
    primary: bool = typer.Option(False, "--primary", help="Make this the primary file"),
    page: Optional[int] = typer.Option(None, "--page", "-p", min=1, help="Default page"),
    section: Optional[str] = typer.Option(None, "--section", help="Section label"),
):
    """
    Attach a file to an exhibit, creating the exhibit if needed.
    """
    storage, registry = _open_case(case_dir)

    result = registry.attach_file(
        file_id,
        identifier,
        as_primary=primary,
        page_number=page,
        section=section,
    )
    if not result.success:
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(1)

    storage.save_registry(registry)

    if result.created:
        console.print(f"Created exhibit {result.exhibit.exhibit_number}")
    if result.attached:
        console.print(f"[green]Attached {file_id} to exhibit {result.exhibit.exhibit_number}[/green]")
    else:
        console.print(f"{file_id} was already in exhibit {result.exhibit.exhibit_number}")


@app.command(name="auto-assign")
def auto_assign(
    case_dir: Path = typer.Argument(..., help="Case directory"),
    filenames: list[str] = typer.Argument(..., help="Filenames (also used as file IDs)"),
):
    """
    Assign files to exhibits detected from their filenames.
    """
    from ..models import FileRecord

    storage, registry = _open_case(case_dir)

    files = [FileRecord(id=name, name=Path(name).name) for name in filenames]
    summary = registry.auto_assign(files)
    storage.save_registry(registry)

    console.print(f"Exhibits created: {summary.created}")
    console.print(f"Files attached: {summary.attached}")
    if summary.skipped:
        console.print(f"Already assigned: {summary.skipped}")
    if summary.unmatched:
        console.print(f"[yellow]No exhibit number found: {summary.unmatched}[/yellow]")
    if summary.failed:
        console.print(f"[red]Could not assign: {summary.failed}[/red]")


@app.command()
def delete(
    case_dir: Path = typer.Argument(..., help="Case directory"),
    identifier: str = typer.Argument(..., help="Exhibit number"),
):
    """
    Delete an exhibit and its file links. Citation history is kept.
    """
    storage, registry = _open_case(case_dir)

    exhibit = registry.find_by_number(identifier)
    if exhibit is None:
        console.print(f"Exhibit {identifier} does not exist; nothing to delete.")
        return

    registry.delete(exhibit.id)
    storage.save_registry(registry)
    console.print(f"[green]Deleted exhibit {exhibit.exhibit_number}[/green]")


@app.command()
def key(
    case_dir: Path = typer.Argument(..., help="Case directory"),
    identifier: str = typer.Argument(..., help="Exhibit number"),
    off: bool = typer.Option(False, "--off", help="Clear the key evidence flag"),
):
    """
    Mark an exhibit as key evidence.
    """
    storage, registry = _open_case(case_dir)
    exhibit = _require_exhibit(registry, identifier)

    registry.set_key_evidence(exhibit.id, not off)
    storage.save_registry(registry)

    state = "no longer key evidence" if off else "marked as key evidence"
    console.print(f"Exhibit {exhibit.exhibit_number} {state}")


@app.command()
def resolve(
    case_dir: Path = typer.Argument(..., help="Case directory"),
    reference: str = typer.Argument(..., help="Citation reference (e.g. 12B or 12B:4)"),
):
    """
    Resolve a citation reference to a file and page.
    """
    from ..models import CitationTarget

    storage, registry = _open_case(case_dir)
    resolver = _open_resolver(storage, registry)

    result = resolver.resolve(reference)
    if not isinstance(result, CitationTarget):
        console.print(f"[yellow]Not found: {result.reference} ({result.reason.value})[/yellow]")
        raise typer.Exit(1)

    storage.save_resolver(resolver)

    console.print(f"File: {result.file_id}")
    if result.page is not None:
        console.print(f"Page: {result.page}")


@app.command()
def history(
    case_dir: Path = typer.Argument(..., help="Case directory"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Number of rows"),
):
    """
    Show recently resolved citations.
    """
    storage, registry = _open_case(case_dir)
    resolver = _open_resolver(storage, registry)

    rows = resolver.recent(limit)
    if not rows:
        console.print("No citation history.")
        return

    table = Table(title="Citation History")
    table.add_column("Reference", style="cyan")
    table.add_column("File")
    table.add_column("Page", justify="right")
    table.add_column("Uses", justify="right")
    table.add_column("Last Used")

    for row in rows:
        table.add_row(
            row.exhibit_reference,
            row.target_file_id or "",
            str(row.target_page) if row.target_page is not None else "",
            str(row.access_count),
            row.last_accessed_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@app.command()
def version():
    """Show version information."""
    console.print(f"Exhibit Desk v{__version__}")
    console.print("Exhibit numbering and citation lookup")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
