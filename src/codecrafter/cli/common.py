"""Helpers shared by the CLI sub-commands."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

import typer
from rich.console import Console

from codecrafter.database.models.user import AccountStatus
from codecrafter.database.queries.user import find_user_by_email
from codecrafter.errors import CodecrafterError, NotAuthorizedError
from codecrafter.logging import bind_actor_context
from codecrafter.workflow.context import Actor

if TYPE_CHECKING:
    from codecrafter.main import AppContext

T = TypeVar("T")

console = Console()


def run_command(action: str, work: Callable[[AppContext], Awaitable[T]]) -> T:
    """Run an async command body against the shared context.

    Outstanding notifications are drained and connections released before
    returning. Domain errors are reported and turned into exit code 1.
    """
    from codecrafter.main import get_app_context

    ctx = get_app_context()

    async def _run() -> T:
        try:
            return await work(ctx)
        finally:
            await ctx.shutdown()

    try:
        return asyncio.run(_run())
    except CodecrafterError as e:
        console.print(f"[red]Error {action}:[/red] {e}")
        raise typer.Exit(code=1)


async def resolve_admin(ctx: AppContext, email: str) -> Actor:
    """Look up the operator by email and require an active admin account."""
    user = await find_user_by_email(ctx.store, email)
    if user is None or not user.is_admin or user.account_status is not AccountStatus.active:
        raise NotAuthorizedError(f"{email} is not an active admin")
    bind_actor_context(str(user.id), user.role.value)
    return Actor.from_user(user)
