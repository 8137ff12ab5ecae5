"""Pytest fixtures for integration tests.

Provides a file-backed SQLite database per test (aiosqlite), the record
store on top of it, and fully wired workflow services whose outbound email
goes to an in-memory notifier. A file database rather than :memory: gives
every session its own connection, so concurrent workflow calls contend the
way they would against PostgreSQL.
"""

from __future__ import annotations

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from codecrafter.config import AppConfig, DatabaseConfig
from codecrafter.database.connection import create_schema, get_engine, get_session_factory
from codecrafter.database.models.user import UserRole
from codecrafter.database.records import ProjectRecord, UserRecord
from codecrafter.database.store import RecordStore
from codecrafter.errors import NotificationFailedError
from codecrafter.notifications.dispatcher import NotificationDispatcher
from codecrafter.notifications.templates import EmailRenderer
from codecrafter.workflow.accounts import AccountLifecycle
from codecrafter.workflow.applications import ApplicationWorkflow
from codecrafter.workflow.context import Actor
from codecrafter.workflow.ledger import ActivityLedger
from codecrafter.workflow.projects import ProjectLifecycle


class RecordingNotifier:
    """Notifier that keeps sent messages in memory.

    Addresses in ``fail_for`` (or every address when ``fail_all`` is set)
    raise NotificationFailedError instead.
    """

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.reply_to: dict[str, str | None] = {}
        self.fail_for: set[str] = set()
        self.fail_all = False

    async def notify(
        self, to_address: str, subject: str, body_html: str, reply_to: str | None = None
    ) -> None:
        if self.fail_all or to_address in self.fail_for:
            raise NotificationFailedError(to_address, "simulated outage")
        self.sent.append((to_address, subject, body_html))
        self.reply_to[to_address] = reply_to

    def to(self, address: str) -> list[tuple[str, str, str]]:
        return [msg for msg in self.sent if msg[0] == address]


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'codecrafter.db'}"


@pytest_asyncio.fixture
async def engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create a SQLite engine with the full schema."""
    test_engine = get_engine(DatabaseConfig(url=database_url))
    await create_schema(test_engine)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return get_session_factory(engine)


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> RecordStore:
    return RecordStore(session_factory)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def dispatcher(notifier: RecordingNotifier) -> NotificationDispatcher:
    return NotificationDispatcher(notifier)


@pytest.fixture
def renderer() -> EmailRenderer:
    return EmailRenderer(AppConfig(base_url="https://codecrafter.test"))


@pytest.fixture
def ledger(store: RecordStore) -> ActivityLedger:
    return ActivityLedger(store)


@pytest.fixture
def accounts(
    store: RecordStore,
    ledger: ActivityLedger,
    dispatcher: NotificationDispatcher,
    renderer: EmailRenderer,
) -> AccountLifecycle:
    return AccountLifecycle(store, ledger, dispatcher, renderer)


@pytest.fixture
def workflow(
    store: RecordStore,
    accounts: AccountLifecycle,
    ledger: ActivityLedger,
    dispatcher: NotificationDispatcher,
    renderer: EmailRenderer,
) -> ApplicationWorkflow:
    return ApplicationWorkflow(store, accounts, ledger, dispatcher, renderer)


@pytest.fixture
def projects(
    store: RecordStore,
    ledger: ActivityLedger,
    dispatcher: NotificationDispatcher,
    renderer: EmailRenderer,
    workflow: ApplicationWorkflow,
) -> ProjectLifecycle:
    return ProjectLifecycle(store, ledger, dispatcher, renderer, workflow)


class MarketplaceFactory:
    """Creates users and projects through the real services.

    Setup emails are drained and discarded so tests only see the
    notifications their own actions produce.
    """

    def __init__(
        self,
        accounts: AccountLifecycle,
        projects: ProjectLifecycle,
        dispatcher: NotificationDispatcher,
        notifier: RecordingNotifier,
    ) -> None:
        self.accounts = accounts
        self.projects = projects
        self.dispatcher = dispatcher
        self.notifier = notifier
        self._admin: Actor | None = None

    async def _settle(self) -> None:
        await self.dispatcher.drain()
        self.notifier.sent.clear()

    async def admin(self) -> Actor:
        if self._admin is None:
            user = await self.accounts.register("Ada Admin", "admin@codecrafter.test", UserRole.admin)
            self._admin = Actor.from_user(user)
            await self._settle()
        return self._admin

    async def client(self, name: str = "Carla Client", email: str | None = None) -> UserRecord:
        email = email or f"{name.split()[0].lower()}@clients.test"
        user = await self.accounts.register(name, email, UserRole.client)
        await self._settle()
        return user

    async def developer(
        self,
        name: str = "Dev Dana",
        email: str | None = None,
        approve: bool = True,
        skills: list[str] | None = None,
    ) -> UserRecord:
        email = email or f"{name.split()[-1].lower()}@devs.test"
        user = await self.accounts.register(
            name,
            email,
            UserRole.developer,
            skills=skills or ["python"],
        )
        if approve:
            user = await self.accounts.approve(user.id, await self.admin())
        await self._settle()
        return user

    async def project(
        self,
        client: UserRecord,
        name: str = "Build a dashboard",
        required_skills: list[str] | None = None,
    ) -> ProjectRecord:
        project = await self.projects.post(
            Actor.from_user(client),
            name,
            description="Internal metrics dashboard",
            required_skills=required_skills or ["python", "react"],
        )
        await self._settle()
        return project


@pytest.fixture
def make(
    accounts: AccountLifecycle,
    projects: ProjectLifecycle,
    dispatcher: NotificationDispatcher,
    notifier: RecordingNotifier,
) -> MarketplaceFactory:
    return MarketplaceFactory(accounts, projects, dispatcher, notifier)
