"""Activity log CLI commands."""

from __future__ import annotations

import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from codecrafter.cli.common import run_command
from codecrafter.database.queries.activity import list_activity

app = typer.Typer(help="Activity log commands")
console = Console()


@app.command()
def recent(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, max=500, help="Maximum entries to show"),
    ] = 50,
    target_type: Annotated[
        Optional[str],
        typer.Option("--target-type", "-t", help="Only entries for this target type"),
    ] = None,
    target_id: Annotated[
        Optional[str],
        typer.Option("--target-id", help="Only entries for this target ID"),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """Show the most recent activity log entries."""
    entries = run_command(
        "reading activity",
        lambda ctx: list_activity(
            ctx.store, target_type=target_type, target_id=target_id, limit=limit
        ),
    )

    if format == "json":
        output = [
            {
                "id": str(e.id),
                "timestamp": e.created_at.isoformat() if e.created_at else None,
                "actor_id": e.actor_id,
                "actor_name": e.actor_name,
                "action": e.action,
                "target_type": e.target_type,
                "target_id": e.target_id,
                "target_name": e.target_name,
                "details": e.details,
            }
            for e in entries
        ]
        console.print(json.dumps(output, indent=2))
        return

    if not entries:
        console.print("[yellow]No activity recorded[/yellow]")
        return

    table = Table(title="Recent Activity")
    table.add_column("When", style="dim")
    table.add_column("Actor", style="bold")
    table.add_column("Action", style="magenta")
    table.add_column("Target")

    for e in entries:
        table.add_row(
            e.created_at.strftime("%Y-%m-%d %H:%M:%S") if e.created_at else "",
            e.actor_name or e.actor_id,
            e.action,
            f"{e.target_type}: {e.target_name or e.target_id or ''}",
        )
    console.print(table)
