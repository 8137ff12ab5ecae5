"""Project inspection CLI commands."""

from __future__ import annotations

import json
from typing import Annotated, Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from codecrafter.cli.common import run_command
from codecrafter.database.models.project import ProjectStatus
from codecrafter.database.queries.application import list_applications_for_project
from codecrafter.database.queries.project import list_projects

app = typer.Typer(help="Project inspection commands")
console = Console()

_PROJECT_COLORS = {
    "Open": "green",
    "In Progress": "cyan",
    "Completed": "blue",
    "Cancelled": "dim",
}

_APPLICATION_COLORS = {
    "pending": "yellow",
    "accepted": "green",
    "rejected": "red",
}


@app.command("list")
def list_all(
    status: Annotated[
        Optional[str],
        typer.Option(
            "--status",
            "-s",
            help="Filter by status (Open, In Progress, Completed, Cancelled)",
        ),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List projects, newest first."""
    status_filter = None
    if status is not None:
        try:
            status_filter = ProjectStatus(status)
        except ValueError:
            valid = ", ".join(s.value for s in ProjectStatus)
            console.print(f"[red]Invalid status:[/red] {status}. Valid values: {valid}")
            raise typer.Exit(code=1)

    projects = run_command(
        "listing projects",
        lambda ctx: list_projects(ctx.store, status_filter=status_filter),
    )

    if format == "json":
        output = [
            {
                "id": str(p.id),
                "name": p.name,
                "status": p.status.value,
                "client_id": str(p.client_id),
                "assigned_developer_id": (
                    str(p.assigned_developer_id) if p.assigned_developer_id else None
                ),
                "required_skills": p.required_skills,
            }
            for p in projects
        ]
        console.print(json.dumps(output, indent=2))
        return

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("Assigned To")
    table.add_column("Skills", style="dim")

    for p in projects:
        color = _PROJECT_COLORS.get(p.status.value, "white")
        table.add_row(
            str(p.id),
            p.name,
            f"[{color}]{p.status.value}[/{color}]",
            p.assigned_developer_name or "",
            ", ".join(p.required_skills),
        )
    console.print(table)


@app.command()
def applications(
    project_id: Annotated[UUID, typer.Argument(help="Project ID")],
) -> None:
    """Show a project's applications in submission order."""
    apps = run_command(
        "listing applications",
        lambda ctx: list_applications_for_project(ctx.store, project_id),
    )

    if not apps:
        console.print("[yellow]No applications found[/yellow]")
        return

    table = Table(title=f"Applications for {apps[0].project_name or project_id}")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Developer", style="bold")
    table.add_column("Status")
    table.add_column("Client Notified")
    table.add_column("Developer Notified")
    table.add_column("Submitted", style="dim")

    for a in apps:
        color = _APPLICATION_COLORS.get(a.status.value, "white")
        table.add_row(
            str(a.id),
            a.developer_name or str(a.developer_id),
            f"[{color}]{a.status.value}[/{color}]",
            "yes" if a.client_notified_of_new_application else "no",
            "yes" if a.developer_notified_of_status else "no",
            a.created_at.strftime("%Y-%m-%d %H:%M") if a.created_at else "",
        )
    console.print(table)
