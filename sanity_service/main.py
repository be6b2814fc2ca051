"""Entry point for the sanity service."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sanity_service.config import settings
from sanity_service.probes.battery import load_battery
from sanity_service.probes.models import ReportEntry, Result
from sanity_service.service import RunNotFoundError, RunService
from sanity_service.store import StorageError, create_store

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)


def render_entries(title: str, entries: Sequence[ReportEntry]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Description")
    table.add_column("Result")
    table.add_column("Error", style="red")
    for i, entry in enumerate(entries, 1):
        result = (
            "[green]Pass[/green]" if entry.result is Result.PASS else "[bold red]Fail[/bold red]"
        )
        table.add_row(str(i), entry.description, result, entry.error or "")
    return table


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel("Starting Sanity Service API", style="bold green"))
    uvicorn.run(
        "sanity_service.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def _make_service() -> RunService:
    battery = load_battery(settings.battery_path, settings.validator_connect_timeout)
    return RunService(battery, create_store(settings), timeout=settings.probe_timeout_seconds)


def run_cli() -> int:
    """Execute the battery once and print the report."""
    service = _make_service()
    try:
        with console.status("[bold green]Running probes..."):
            report = service.trigger_run()
    except StorageError as e:
        console.print(f"[bold red]Run aborted:[/bold red] {e}")
        return 2
    finally:
        service.store.close()

    console.print(render_entries(f"Run {report.run_id}", report.report))
    return 1 if report.failed else 0


def show_cli(run_id: str) -> int:
    """Print the stored entries of a previous run."""
    service = _make_service()
    try:
        entries = service.fetch_run(run_id)
    except RunNotFoundError:
        console.print(f"[yellow]No results found for run {run_id}[/yellow]")
        return 1
    except StorageError as e:
        console.print(f"[bold red]Error fetching results:[/bold red] {e}")
        return 2
    finally:
        service.store.close()

    console.print(render_entries(f"Run {run_id}", entries))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Sanity check orchestrator")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the API server")
    sub.add_parser("run", help="Run the probe battery once")
    show_parser = sub.add_parser("show", help="Show the stored results of a run")
    show_parser.add_argument("run_id", help="Run identifier")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    elif args.command == "run":
        sys.exit(run_cli())
    elif args.command == "show":
        sys.exit(show_cli(args.run_id))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
