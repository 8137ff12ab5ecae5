"""Integration tests for CLI commands.

Each test seeds a SQLite database in its own event loop, then drives the
Typer app through CliRunner with the database URL supplied by environment
variable, as an operator would.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

import pytest
from typer.testing import CliRunner

from codecrafter.config import AppConfig, DatabaseConfig
from codecrafter.database.connection import create_schema, get_engine, get_session_factory
from codecrafter.database.models.user import AccountStatus, UserRole
from codecrafter.database.queries.user import get_user
from codecrafter.database.store import RecordStore
from codecrafter.main import app
from codecrafter.notifications.dispatcher import NotificationDispatcher
from codecrafter.notifications.templates import EmailRenderer
from codecrafter.workflow.accounts import AccountLifecycle
from codecrafter.workflow.applications import ApplicationWorkflow
from codecrafter.workflow.context import Actor
from codecrafter.workflow.ledger import ActivityLedger
from codecrafter.workflow.projects import ProjectLifecycle


class _DiscardingNotifier:
    async def notify(
        self, to_address: str, subject: str, body_html: str, reply_to: str | None = None
    ) -> None:
        return None


@dataclass
class Seed:
    url: str
    admin_email: str
    client_id: str
    pending_dev_id: str
    active_dev_id: str
    project_id: str


async def _seed(url: str) -> Seed:
    engine = get_engine(DatabaseConfig(url=url))
    await create_schema(engine)
    store = RecordStore(get_session_factory(engine))
    dispatcher = NotificationDispatcher(_DiscardingNotifier())
    renderer = EmailRenderer(AppConfig())
    ledger = ActivityLedger(store)
    accounts = AccountLifecycle(store, ledger, dispatcher, renderer)
    workflow = ApplicationWorkflow(store, accounts, ledger, dispatcher, renderer)
    projects = ProjectLifecycle(store, ledger, dispatcher, renderer, workflow)

    admin = await accounts.register("Ada Admin", "admin@codecrafter.test", UserRole.admin)
    client = await accounts.register("Carla Client", "carla@clients.test", UserRole.client)
    pending = await accounts.register("Dev Dana", "dana@devs.test", UserRole.developer)
    active = await accounts.register("Dev Eli", "eli@devs.test", UserRole.developer)
    await accounts.approve(active.id, Actor.from_user(admin))
    project = await projects.post(Actor.from_user(client), "Checkout revamp")
    await workflow.submit(project.id, active.id, message="Ready to start")

    await dispatcher.drain()
    await engine.dispose()
    return Seed(
        url=url,
        admin_email=admin.email,
        client_id=str(client.id),
        pending_dev_id=str(pending.id),
        active_dev_id=str(active.id),
        project_id=str(project.id),
    )


async def _load_user(url: str, user_id: str):
    engine = get_engine(DatabaseConfig(url=url))
    try:
        return await get_user(RecordStore(get_session_factory(engine)), UUID(user_id))
    finally:
        await engine.dispose()


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def seed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Seed:
    """Seed a database and point the CLI at it."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    seeded = asyncio.run(_seed(url))

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CODECRAFTER_DATABASE__URL", url)
    monkeypatch.setenv("CODECRAFTER_EMAIL__ENABLED", "false")
    monkeypatch.setenv("CODECRAFTER_LOGGING__LEVEL", "WARNING")
    return seeded


@pytest.mark.integration
class TestInitDb:
    def test_init_db_creates_schema(self, cli_runner, tmp_path, monkeypatch) -> None:
        url = f"sqlite+aiosqlite:///{tmp_path / 'fresh.db'}"
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CODECRAFTER_DATABASE__URL", url)
        monkeypatch.setenv("CODECRAFTER_LOGGING__LEVEL", "WARNING")

        result = cli_runner.invoke(app, ["init-db"])

        assert result.exit_code == 0, result.output
        assert "Database schema created" in result.output
        assert (tmp_path / "fresh.db").exists()


@pytest.mark.integration
class TestAccountsCLI:
    def test_pending_lists_unapproved_developers(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(app, ["accounts", "pending", "--format", "json"])

        assert result.exit_code == 0, result.output
        assert '"email": "dana@devs.test"' in result.output
        assert "eli@devs.test" not in result.output

    def test_list_filters_by_role(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(
            app, ["accounts", "list", "--role", "client", "--format", "json"]
        )

        assert result.exit_code == 0, result.output
        assert "carla@clients.test" in result.output
        assert "dana@devs.test" not in result.output

    def test_approve_pending_developer(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(
            app,
            ["accounts", "approve", seed.pending_dev_id, "--admin", seed.admin_email],
        )

        assert result.exit_code == 0, result.output
        assert "Approved" in result.output
        user = asyncio.run(_load_user(seed.url, seed.pending_dev_id))
        assert user.account_status is AccountStatus.active

    def test_approve_requires_admin(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(
            app,
            ["accounts", "approve", seed.pending_dev_id, "--admin", "carla@clients.test"],
        )

        assert result.exit_code == 1
        assert "not an active admin" in result.output
        user = asyncio.run(_load_user(seed.url, seed.pending_dev_id))
        assert user.account_status is AccountStatus.pending_approval

    def test_invalid_transition_reported(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(
            app,
            ["accounts", "reinstate", seed.active_dev_id, "--admin", seed.admin_email],
        )

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_flag_and_suspend(self, cli_runner, seed) -> None:
        flag = cli_runner.invoke(
            app, ["accounts", "flag", seed.client_id, "--admin", seed.admin_email]
        )
        suspend = cli_runner.invoke(
            app, ["accounts", "suspend", seed.client_id, "--admin", seed.admin_email]
        )

        assert flag.exit_code == 0, flag.output
        assert suspend.exit_code == 0, suspend.output
        user = asyncio.run(_load_user(seed.url, seed.client_id))
        assert user.is_flagged is True
        assert user.account_status is AccountStatus.suspended


@pytest.mark.integration
class TestProjectsCLI:
    def test_list_projects(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(app, ["projects", "list", "--format", "json"])

        assert result.exit_code == 0, result.output
        assert '"name": "Checkout revamp"' in result.output
        assert '"status": "Open"' in result.output

    def test_list_projects_invalid_status(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(app, ["projects", "list", "--status", "bogus"])

        assert result.exit_code == 1
        assert "Invalid status" in result.output

    def test_list_projects_empty_status(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(app, ["projects", "list", "--status", "Completed"])

        assert result.exit_code == 0, result.output
        assert "No projects found" in result.output

    def test_applications_for_project(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(app, ["projects", "applications", seed.project_id])

        assert result.exit_code == 0, result.output
        assert "pending" in result.output


@pytest.mark.integration
class TestActivityCLI:
    def test_recent_activity(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(app, ["activity", "recent", "--format", "json"])

        assert result.exit_code == 0, result.output
        start = result.output.index("[")
        entries = json.loads(result.output[start:])
        actions = {e["action"] for e in entries}
        assert {"user_registered", "account_approved", "project_posted"} <= actions
        assert entries[0]["action"] == "application_submitted"

    def test_recent_activity_filtered(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(
            app,
            ["activity", "recent", "--target-type", "project", "--format", "json"],
        )

        assert result.exit_code == 0, result.output
        assert "project_posted" in result.output
        assert "user_registered" not in result.output


@pytest.mark.integration
class TestRequestsCLI:
    def test_submit_forwards_request(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(
            app,
            [
                "requests",
                "submit",
                "Grace Hopper",
                "grace@clients.test",
                "We need a booking widget embedded in our existing clinic site.",
                "--urgency",
                "High",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Service request from Grace Hopper forwarded" in result.output

    def test_submit_rejects_short_description(self, cli_runner, seed) -> None:
        result = cli_runner.invoke(
            app, ["requests", "submit", "Grace Hopper", "grace@clients.test", "Need help"]
        )

        assert result.exit_code == 1
        assert "Error submitting service request" in result.output
