"""Main CLI entry point for CodeCrafter.

This module provides the operator-facing Typer application: schema
bootstrap plus sub-commands for account moderation, project inspection,
and the activity log.

Usage:
    codecrafter init-db
    codecrafter accounts pending
    codecrafter accounts approve <user-id> --admin ops@example.com
    codecrafter projects applications <project-id>
    codecrafter activity recent --limit 20
    codecrafter requests submit "Grace Hopper" grace@example.com "..."
"""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path
from typing import Annotated, Optional

import structlog
import typer
from rich.console import Console

from codecrafter.cli import accounts as accounts_cli
from codecrafter.cli import activity as activity_cli
from codecrafter.cli import projects as projects_cli
from codecrafter.cli import requests as requests_cli
from codecrafter.config import CodecrafterConfig, load_config
from codecrafter.database.connection import create_schema, get_engine, get_session_factory
from codecrafter.database.store import RecordStore
from codecrafter.integrations.emailjs import EmailJSClient
from codecrafter.logging import set_correlation_id, setup_logging
from codecrafter.notifications.dispatcher import NotificationDispatcher
from codecrafter.notifications.templates import EmailRenderer
from codecrafter.workflow.accounts import AccountLifecycle
from codecrafter.workflow.applications import ApplicationWorkflow
from codecrafter.workflow.ledger import ActivityLedger
from codecrafter.workflow.projects import ProjectLifecycle
from codecrafter.workflow.service_requests import ServiceRequestDesk

app = typer.Typer(
    name="codecrafter",
    help="CodeCrafter: client/developer marketplace administration",
    no_args_is_help=True,
)

app.add_typer(accounts_cli.app, name="accounts", help="Moderate user accounts")
app.add_typer(projects_cli.app, name="projects", help="Inspect projects")
app.add_typer(activity_cli.app, name="activity", help="Read the activity log")
app.add_typer(requests_cli.app, name="requests", help="Forward quick service requests")

console = Console()
logger = structlog.get_logger(__name__)


class AppContext:
    """Application context shared across CLI commands.

    Attributes:
        config: Loaded CodeCrafter configuration
        engine: Async SQLAlchemy engine
        session_factory: Factory for creating database sessions
        store: Record store over the session factory
        notifier: EmailJS client used for outbound email
        dispatcher: Background notification dispatcher
        ledger: Activity ledger
        accounts: Account lifecycle service
        workflow: Application workflow engine
        projects: Project lifecycle service
        service_requests: Quick service request desk
    """

    def __init__(self, config: CodecrafterConfig):
        self.config = config
        self.engine = get_engine(config.database)
        self.session_factory = get_session_factory(self.engine)
        self.store = RecordStore(self.session_factory)

        self.notifier = EmailJSClient(config.email)
        self.dispatcher = NotificationDispatcher(self.notifier)
        self.renderer = EmailRenderer(config.app)
        self.ledger = ActivityLedger(self.store)

        self.accounts = AccountLifecycle(
            self.store, self.ledger, self.dispatcher, self.renderer, config.app
        )
        self.workflow = ApplicationWorkflow(
            self.store, self.accounts, self.ledger, self.dispatcher, self.renderer
        )
        self.projects = ProjectLifecycle(
            self.store, self.ledger, self.dispatcher, self.renderer, self.workflow
        )
        self.service_requests = ServiceRequestDesk(
            self.dispatcher, self.renderer, config.app.admin_email
        )

    async def shutdown(self) -> None:
        """Wait for in-flight emails, then release HTTP and database resources."""
        await self.dispatcher.drain(timeout=self.config.email.timeout_seconds)
        await self.notifier.close()
        await self.engine.dispose()


# Global context holder
_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(config: CodecrafterConfig) -> AppContext:
    """Initialize the global application context."""
    global _app_context
    _app_context = AppContext(config)
    return _app_context


@app.command("init-db")
def init_db() -> None:
    """Create all tables in the configured database.

    Intended for development databases. Production schemas are managed
    with Alembic (``alembic upgrade head``).
    """
    ctx = get_app_context()

    async def _init() -> None:
        try:
            await create_schema(ctx.engine)
        finally:
            await ctx.shutdown()

    try:
        asyncio.run(_init())
    except Exception as e:
        console.print(f"[red]Error creating schema:[/red] {e}")
        raise typer.Exit(code=1)

    console.print("[green]Database schema created[/green]")


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure global options and initialize application context.

    Args:
        config_path: Optional path to TOML configuration file
        verbose: Enable debug-level logging
    """
    try:
        config = load_config(config_path)
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1)

    logging_config = config.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    setup_logging(logging_config)
    set_correlation_id(uuid.uuid4().hex[:12])

    try:
        initialize_context(config)
    except Exception as e:
        console.print(f"[red]Error initializing application:[/red] {e}")
        raise typer.Exit(code=1)

    logger.debug("cli_context_initialized", database=config.database.url.split("@")[-1])


if __name__ == "__main__":
    app()
