"""Quick service request CLI commands."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console

from codecrafter.cli.common import run_command

app = typer.Typer(help="Quick service request commands")
console = Console()


@app.command()
def submit(
    name: Annotated[str, typer.Argument(help="Requester's name")],
    email: Annotated[str, typer.Argument(help="Requester's email address")],
    description: Annotated[str, typer.Argument(help="What the requester needs built")],
    budget: Annotated[
        Optional[str],
        typer.Option("--budget", "-b", help="Budget range, e.g. '$1k-$2.5k'"),
    ] = None,
    urgency: Annotated[
        Optional[str],
        typer.Option("--urgency", "-u", help="Low, Medium, High, or Critical"),
    ] = None,
) -> None:
    """Record a service request taken outside the website and send its emails."""
    request = run_command(
        "submitting service request",
        lambda ctx: ctx.service_requests.submit(
            name, email, description, budget=budget, urgency=urgency
        ),
    )
    console.print(f"[green]Service request from {request.name} forwarded[/green]")
