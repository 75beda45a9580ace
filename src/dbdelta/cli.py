"""Command line interface for dbdelta."""

import logging
import sys
from pathlib import Path
from sys import stdout
from typing import Literal

from compare import ChangeType, changes_to_json, compare_sources, snapshot_to_json
from cyclopts import App
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from snapshot import (
    DbDeltaError,
    EngineSource,
    QueryRef,
    TableRef,
    build_snapshot,
    open_source,
)

from dbdelta.config import CONFIG_FILE, Config, SourceConfig, load_config, resolve_source

app = App(help="Snapshot relational sources and detect how their content changed")

type ChangeTypeName = Literal["creation", "modification", "deletion"]

err_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def configure_logging(*, verbose: bool) -> None:
    """Send library logs to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def read_config(location: Path) -> Config:
    """Load the configuration or exit."""
    try:
        return load_config(location)
    except (OSError, ValueError) as e:
        print_error(f"Invalid configuration {location}: {e}")
        sys.exit(1)


def connect(config: Config, name_or_url: str) -> tuple[EngineSource, SourceConfig]:
    """Open a configured source, a URL or a SQLite file, or exit."""
    try:
        source = resolve_source(config, name_or_url)
    except ValueError as e:
        print_error(str(e))
        sys.exit(1)

    # SQLite would silently create a missing database file
    url = source["url"]
    if url.startswith("sqlite:///") and not Path(url.removeprefix("sqlite:///")).exists():
        print_error(f"Database file does not exist: {url.removeprefix('sqlite:///')}")
        sys.exit(1)

    print_info(f"Source: {url}")
    return open_source(url, source.get("schema")), source


@app.command(name="snapshot")
def take_snapshot(
    source: str,
    *,
    table: str | None = None,
    query: str | None = None,
    config: Path = CONFIG_FILE,
    verbose: bool = False,
) -> None:
    """Write the normalized content of a table or a query as JSON."""
    configure_logging(verbose=verbose)
    if (table is None) == (query is None):
        print_error("Give exactly one of --table or --query")
        sys.exit(1)

    data_source, _ = connect(read_config(config), source)
    ref = TableRef(table) if table is not None else QueryRef(query or "")
    try:
        snapshot = build_snapshot(data_source, ref)
    except DbDeltaError as e:
        print_error(str(e))
        sys.exit(1)
    finally:
        data_source.close()

    stdout.write(snapshot_to_json(snapshot))
    print_success(f"Snapshot of {ref}: {len(snapshot)} rows")


@app.command
def changes(
    before: str,
    after: str,
    *,
    table: list[str] | None = None,
    change_type: ChangeTypeName | None = None,
    config: Path = CONFIG_FILE,
    verbose: bool = False,
) -> None:
    """Compare two sources table by table and write the changes as JSON."""
    configure_logging(verbose=verbose)
    settings = read_config(config)
    before_source, before_config = connect(settings, before)
    after_source, after_config = connect(settings, after)
    tables = table or before_config.get("tables") or after_config.get("tables")

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=err_console,
        ) as progress:
            progress.add_task("Comparing sources...", total=None)
            detected = compare_sources(before_source, after_source, tables)
    except DbDeltaError as e:
        print_error(str(e))
        sys.exit(1)
    finally:
        before_source.close()
        after_source.close()

    selected_type = ChangeType(change_type.upper()) if change_type else None
    stdout.write(changes_to_json(detected, selected_type))
    print_success(f"{len(detected)} changes detected")


def main() -> None:
    """Run the command line."""
    app()
