"""Database layer for CodeCrafter.

This module handles database connections, the ORM schema, and the record
store the workflow reads and writes through.

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    create_schema: Create tables for development databases.
    RecordStore: Document-style access with atomic conditional batches.
    Collection: The logical collections held by the store.
    BatchOperation: One conditional update inside an atomic batch.
"""

from codecrafter.database.connection import create_schema, get_engine, get_session_factory
from codecrafter.database.models import (
    AccountStatus,
    ApplicationStatus,
    Base,
    ProjectStatus,
    UserRole,
)
from codecrafter.database.records import (
    ActivityRecord,
    ApplicationRecord,
    ProjectRecord,
    UserRecord,
)
from codecrafter.database.store import BatchOperation, Collection, RecordStore

__all__ = [
    "get_engine",
    "get_session_factory",
    "create_schema",
    "Base",
    "UserRole",
    "AccountStatus",
    "ProjectStatus",
    "ApplicationStatus",
    "UserRecord",
    "ProjectRecord",
    "ApplicationRecord",
    "ActivityRecord",
    "RecordStore",
    "Collection",
    "BatchOperation",
]
