"""Developer suggestions for a project.

Scoring is delegated to an opaque MatchOracle (an AI service in
production). This module only picks the candidates and ranks the scores.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

import structlog

from codecrafter.database.models.application import LIVE_APPLICATION_STATUSES
from codecrafter.database.queries.application import list_applications_for_project
from codecrafter.database.queries.project import get_project
from codecrafter.database.queries.user import list_active_developers
from codecrafter.database.records import ProjectRecord, UserRecord
from codecrafter.database.store import RecordStore
from codecrafter.errors import NotFoundError

logger = structlog.get_logger(__name__)


class MatchOracle(Protocol):
    """Scores how well each developer fits a project."""

    async def score(
        self,
        project: ProjectRecord,
        developers: Sequence[UserRecord],
    ) -> Mapping[uuid.UUID, float]:
        """Return a score per developer ID; higher is better."""
        ...


@dataclass(frozen=True)
class DeveloperMatch:
    developer: UserRecord
    score: float


async def suggest_developers(
    store: RecordStore,
    oracle: MatchOracle,
    project_id: uuid.UUID,
    limit: int = 5,
) -> list[DeveloperMatch]:
    """Rank active, unflagged developers for a project.

    Developers who already hold a pending or accepted application on the
    project are left out, as are developers the oracle did not score.

    Raises:
        NotFoundError: If the project does not exist.
    """
    project = await get_project(store, project_id)
    if project is None:
        raise NotFoundError("project", project_id)

    applied = {
        app.developer_id
        for app in await list_applications_for_project(store, project_id)
        if app.status in LIVE_APPLICATION_STATUSES
    }
    candidates = [
        dev
        for dev in await list_active_developers(store)
        if not dev.is_flagged and dev.id not in applied
    ]
    if not candidates:
        logger.info("no_match_candidates", project_id=str(project_id))
        return []

    scores = await oracle.score(project, candidates)
    matches = [
        DeveloperMatch(developer=dev, score=float(scores[dev.id]))
        for dev in candidates
        if dev.id in scores
    ]
    matches.sort(key=lambda m: (-m.score, m.developer.name))

    logger.info(
        "developers_suggested",
        project_id=str(project_id),
        candidates=len(candidates),
        returned=min(limit, len(matches)),
    )
    return matches[:limit]
