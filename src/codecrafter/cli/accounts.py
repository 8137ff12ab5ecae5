"""Account moderation CLI commands.

Lists pending developer signups and applies admin decisions to accounts.
"""

from __future__ import annotations

import json
from typing import Annotated, Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from codecrafter.cli.common import resolve_admin, run_command
from codecrafter.database.models.user import AccountStatus, UserRole
from codecrafter.database.queries.user import list_pending_developers, list_users
from codecrafter.database.records import UserRecord

app = typer.Typer(help="Account moderation commands")
console = Console()

AdminOption = Annotated[
    str,
    typer.Option("--admin", "-a", help="Email of the admin performing the action"),
]

_STATUS_COLORS = {
    "pending_approval": "yellow",
    "active": "green",
    "rejected": "red",
    "suspended": "magenta",
}


def _print_users(users: list[UserRecord], title: str, format: str) -> None:
    if format == "json":
        output = [
            {
                "id": str(u.id),
                "name": u.name,
                "email": u.email,
                "role": u.role.value,
                "account_status": u.account_status.value,
                "is_flagged": u.is_flagged,
                "skills": u.skills,
            }
            for u in users
        ]
        console.print(json.dumps(output, indent=2))
        return

    if not users:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Email")
    table.add_column("Role")
    table.add_column("Status")
    table.add_column("Flagged")

    for u in users:
        color = _STATUS_COLORS.get(u.account_status.value, "white")
        table.add_row(
            str(u.id),
            u.name,
            u.email,
            u.role.value,
            f"[{color}]{u.account_status.value}[/{color}]",
            "[red]yes[/red]" if u.is_flagged else "",
        )
    console.print(table)


@app.command()
def pending(
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List developers awaiting approval, oldest signup first."""
    users = run_command(
        "listing pending developers",
        lambda ctx: list_pending_developers(ctx.store),
    )
    _print_users(users, "Pending Developers", format)


@app.command("list")
def list_accounts(
    role: Annotated[
        Optional[UserRole],
        typer.Option("--role", "-r", help="Filter by role"),
    ] = None,
    status: Annotated[
        Optional[AccountStatus],
        typer.Option("--status", "-s", help="Filter by account status"),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List user accounts."""
    users = run_command(
        "listing users",
        lambda ctx: list_users(ctx.store, role=role, status_filter=status),
    )
    _print_users(users, "Users", format)


def _moderate(operation: str, user_id: UUID, admin_email: str) -> UserRecord:
    async def _apply(ctx) -> UserRecord:
        actor = await resolve_admin(ctx, admin_email)
        return await getattr(ctx.accounts, operation)(user_id, actor)

    return run_command(f"running {operation}", _apply)


def _report(user: UserRecord, verb: str) -> None:
    console.print(
        f"[green]{verb}[/green] {user.name} <{user.email}> "
        f"[dim](status: {user.account_status.value}, flagged: {user.is_flagged})[/dim]"
    )


@app.command()
def approve(
    user_id: Annotated[UUID, typer.Argument(help="Developer account ID")],
    admin: AdminOption,
) -> None:
    """Approve a pending developer account."""
    _report(_moderate("approve", user_id, admin), "Approved")


@app.command()
def reject(
    user_id: Annotated[UUID, typer.Argument(help="Developer account ID")],
    admin: AdminOption,
) -> None:
    """Reject a pending developer account."""
    _report(_moderate("reject", user_id, admin), "Rejected")


@app.command()
def suspend(
    user_id: Annotated[UUID, typer.Argument(help="Account ID")],
    admin: AdminOption,
) -> None:
    """Suspend an active account."""
    _report(_moderate("suspend", user_id, admin), "Suspended")


@app.command()
def reinstate(
    user_id: Annotated[UUID, typer.Argument(help="Account ID")],
    admin: AdminOption,
) -> None:
    """Reinstate a suspended account."""
    _report(_moderate("reinstate", user_id, admin), "Reinstated")


@app.command()
def flag(
    user_id: Annotated[UUID, typer.Argument(help="Account ID")],
    admin: AdminOption,
) -> None:
    """Flag an account for moderation review."""
    _report(_moderate("flag", user_id, admin), "Flagged")


@app.command()
def unflag(
    user_id: Annotated[UUID, typer.Argument(help="Account ID")],
    admin: AdminOption,
) -> None:
    """Clear an account's moderation flag."""
    _report(_moderate("unflag", user_id, admin), "Unflagged")
