"""Integration tests for developer suggestions."""

from __future__ import annotations

from uuid import uuid4

import pytest

from codecrafter.errors import NotFoundError
from codecrafter.workflow.matching import DeveloperMatch, suggest_developers


class SkillOverlapOracle:
    """Scores developers by how many required skills they list."""

    def __init__(self) -> None:
        self.seen: list = []

    async def score(self, project, developers):
        self.seen = list(developers)
        wanted = set(project.required_skills)
        return {dev.id: float(len(wanted & set(dev.skills or []))) for dev in developers}


@pytest.mark.asyncio
async def test_ranks_eligible_developers(store, accounts, workflow, make) -> None:
    client = await make.client()
    project = await make.project(client, required_skills=["python", "react", "sql"])
    strong = await make.developer("Dev Dana", skills=["python", "react", "sql"])
    medium = await make.developer("Dev Eli", skills=["python"])
    await make.developer("Dev Fay", approve=False, skills=["python", "react"])
    flagged = await make.developer("Dev Gus", skills=["python", "react"])
    applied = await make.developer("Dev Hal", skills=["python", "react", "sql"])
    await accounts.flag(flagged.id, await make.admin())
    await workflow.submit(project.id, applied.id)

    oracle = SkillOverlapOracle()
    matches = await suggest_developers(store, oracle, project.id)

    assert all(isinstance(m, DeveloperMatch) for m in matches)
    assert [m.developer.id for m in matches] == [strong.id, medium.id]
    assert [m.score for m in matches] == [3.0, 1.0]
    assert {d.id for d in oracle.seen} == {strong.id, medium.id}


@pytest.mark.asyncio
async def test_limit_and_unscored_developers(store, make) -> None:
    client = await make.client()
    project = await make.project(client)
    devs = [await make.developer(f"Dev {name}") for name in ("Ann", "Bob", "Cat")]

    class PartialOracle:
        async def score(self, project, developers):
            return {devs[0].id: 0.9, devs[2].id: 0.4}

    matches = await suggest_developers(store, PartialOracle(), project.id, limit=1)

    assert [m.developer.id for m in matches] == [devs[0].id]


@pytest.mark.asyncio
async def test_no_candidates_skips_oracle(store, make) -> None:
    client = await make.client()
    project = await make.project(client)

    class ExplodingOracle:
        async def score(self, project, developers):
            raise AssertionError("oracle should not be called")

    assert await suggest_developers(store, ExplodingOracle(), project.id) == []


@pytest.mark.asyncio
async def test_unknown_project(store) -> None:
    with pytest.raises(NotFoundError):
        await suggest_developers(store, SkillOverlapOracle(), uuid4())
