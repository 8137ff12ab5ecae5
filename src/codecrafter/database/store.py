"""Record store over the CodeCrafter document collections.

RecordStore gives the workflow a small document-style contract on top of
SQLAlchemy: point reads, filtered and ordered queries, single-document
inserts and updates, and an all-or-nothing conditional batch.

Every method runs in its own session and transaction, so callers never
hold a transaction open across workflow steps. Rows are returned as
validated pydantic records (see codecrafter.database.records); corrupt
rows are logged and hidden from callers.

Example usage:
    >>> store = RecordStore(get_session_factory(get_engine(config.database)))
    >>> project = await store.get(Collection.projects, project_id)
    >>> await store.atomic_batch([
    ...     BatchOperation(
    ...         Collection.projects,
    ...         project_id,
    ...         {"status": ProjectStatus.in_progress},
    ...         expected={"status": ProjectStatus.open},
    ...     ),
    ... ])
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from codecrafter.database.models import ActivityLogEntry, Project, ProjectApplication, User
from codecrafter.database.models.base import Base
from codecrafter.database.records import (
    ActivityRecord,
    ApplicationRecord,
    ProjectRecord,
    UserRecord,
    _Record,
)
from codecrafter.errors import (
    DocumentConflictError,
    NotFoundError,
    PreconditionFailedError,
    StoreUnavailableError,
)

logger = structlog.get_logger(__name__)


class Collection(enum.Enum):
    """Logical collections held by the record store."""

    users = "users"
    projects = "projects"
    applications = "project_applications"
    activity = "activity_logs"


_MODELS: dict[Collection, tuple[type[Base], type[_Record]]] = {
    Collection.users: (User, UserRecord),
    Collection.projects: (Project, ProjectRecord),
    Collection.applications: (ProjectApplication, ApplicationRecord),
    Collection.activity: (ActivityLogEntry, ActivityRecord),
}


@dataclass(frozen=True)
class BatchOperation:
    """One conditional update inside an atomic batch.

    Attributes:
        collection: Collection holding the document.
        doc_id: Identifier of the document to update.
        fields: Field values to write.
        expected: Field values the document must currently hold for the
                  update to apply. Checked inside the batch transaction.
        required: If True, a document that is missing or does not match
                  ``expected`` aborts the whole batch. If False, it is
                  skipped and reported as not applied.
    """

    collection: Collection
    doc_id: uuid.UUID
    fields: Mapping[str, Any]
    expected: Mapping[str, Any] = field(default_factory=dict)
    required: bool = True


class RecordStore:
    """Typed document access backed by an async SQLAlchemy session factory.

    Attributes:
        session_factory: Factory producing AsyncSession instances.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self.logger = logger.bind(component="RecordStore")

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session with a transaction, translating connectivity errors.

        Any exception raised inside the block rolls the transaction back.
        """
        try:
            async with self.session_factory() as session, session.begin():
                yield session
        except (OperationalError, InterfaceError, OSError) as exc:
            self.logger.error("store_unavailable", operation=operation, error=str(exc))
            raise StoreUnavailableError(operation, str(exc)) from exc

    def _to_record(self, collection: Collection, row: Base) -> _Record | None:
        """Validate a row into its record type, or None if it is corrupt."""
        _, record_cls = _MODELS[collection]
        try:
            return record_cls.model_validate(row)
        except ValidationError as exc:
            self.logger.warning(
                "corrupt_document_skipped",
                collection=collection.value,
                doc_id=str(getattr(row, "id", None)),
                errors=[error["msg"] for error in exc.errors()],
            )
            return None

    @staticmethod
    def _column(model: type[Base], name: str) -> Any:
        column = getattr(model, name, None)
        if column is None:
            raise ValueError(f"Unknown field {name!r} for {model.__tablename__}")
        return column

    async def get(self, collection: Collection, doc_id: uuid.UUID) -> Any | None:
        """Read one document by ID.

        Args:
            collection: Collection to read from.
            doc_id: Document identifier.

        Returns:
            The validated record, or None if the document is missing or corrupt.
        """
        model, _ = _MODELS[collection]
        async with self._transaction(f"get:{collection.value}") as session:
            row = await session.get(model, doc_id)
            if row is None:
                return None
            return self._to_record(collection, row)

    async def query(
        self,
        collection: Collection,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Any]:
        """Query documents with equality filters.

        Args:
            collection: Collection to query.
            filters: Field name to value. A list, tuple, set, or frozenset
                     value matches any of its members.
            order_by: Optional field name to sort by.
            descending: Sort descending instead of ascending.
            limit: Maximum number of rows to read.

        Returns:
            Validated records in order; corrupt rows are skipped.
        """
        model, _ = _MODELS[collection]
        stmt = select(model)

        for name, value in (filters or {}).items():
            column = self._column(model, name)
            if isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(value)))
            elif value is None:
                stmt = stmt.where(column.is_(None))
            else:
                stmt = stmt.where(column == value)

        if order_by is not None:
            column = self._column(model, order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())

        if limit is not None:
            stmt = stmt.limit(limit)

        records = []
        async with self._transaction(f"query:{collection.value}") as session:
            result = await session.execute(stmt)
            for row in result.scalars().all():
                record = self._to_record(collection, row)
                if record is not None:
                    records.append(record)
        return records

    async def put(
        self,
        collection: Collection,
        fields: Mapping[str, Any],
        doc_id: uuid.UUID | None = None,
    ) -> Any:
        """Insert a new document.

        Args:
            collection: Collection to insert into.
            fields: Field values for the new document.
            doc_id: Optional explicit identifier; generated when omitted.

        Returns:
            The validated record for the inserted document.

        Raises:
            DocumentConflictError: If a uniqueness constraint is violated.
            ValueError: If the inserted document would not be a valid record.
        """
        model, record_cls = _MODELS[collection]
        row = model(**fields)
        if doc_id is not None:
            row.id = doc_id

        try:
            async with self._transaction(f"put:{collection.value}") as session:
                session.add(row)
                await session.flush()
                # Validate before commit so an incomplete document is never stored
                record = record_cls.model_validate(row)
        except IntegrityError as exc:
            self.logger.info(
                "document_conflict",
                collection=collection.value,
                error=str(exc.orig),
            )
            raise DocumentConflictError(collection.value, str(exc.orig)) from exc

        self.logger.debug("document_created", collection=collection.value, doc_id=str(row.id))
        return record

    async def update(
        self,
        collection: Collection,
        doc_id: uuid.UUID,
        fields: Mapping[str, Any],
    ) -> None:
        """Update fields of an existing document.

        Raises:
            NotFoundError: If no document has the given ID.
        """
        model, _ = _MODELS[collection]
        stmt = (
            update(model)
            .where(model.id == doc_id)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )

        async with self._transaction(f"update:{collection.value}") as session:
            result = await session.execute(stmt)

        if result.rowcount == 0:
            raise NotFoundError(collection.value, doc_id)

        self.logger.debug(
            "document_updated",
            collection=collection.value,
            doc_id=str(doc_id),
            fields_updated=list(fields.keys()),
        )

    async def atomic_batch(self, operations: Sequence[BatchOperation]) -> list[bool]:
        """Apply conditional updates so that all commit or none do.

        Each operation is an UPDATE whose WHERE clause includes its expected
        field values, so preconditions are re-verified by the same statement
        that writes. A required operation matching no row rolls back the
        whole batch.

        Args:
            operations: Operations to apply, in order.

        Returns:
            One flag per operation: True if it was applied.

        Raises:
            PreconditionFailedError: If a required operation did not apply.
                No change from the batch is visible.
        """
        if not operations:
            return []

        applied: list[bool] = []
        async with self._transaction("atomic_batch") as session:
            for op in operations:
                model, _ = _MODELS[op.collection]
                stmt = update(model).where(model.id == op.doc_id)
                for name, value in op.expected.items():
                    stmt = stmt.where(self._column(model, name) == value)
                stmt = stmt.values(**op.fields).execution_options(
                    synchronize_session=False
                )

                result = await session.execute(stmt)
                matched = result.rowcount > 0
                if not matched and op.required:
                    self.logger.info(
                        "batch_precondition_failed",
                        collection=op.collection.value,
                        doc_id=str(op.doc_id),
                        expected=dict(op.expected),
                    )
                    raise PreconditionFailedError(op)
                applied.append(matched)

        self.logger.debug(
            "atomic_batch_committed",
            operations=len(operations),
            applied=sum(applied),
        )
        return applied
