from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from commitsync_mcp.db.database import Database
from commitsync_mcp.models.commit import Commit, CommitAuthor
from commitsync_mcp.services.sync_engine import SyncEngine
from commitsync_mcp.services.task_board import TaskBoard

REPO = "flutter/flutter"


class StepClock:
    """Deterministic clock: every call returns a value 1000 ms later."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        value = self.now
        self.now += 1000
        return value


def make_commit(sha: str, message: str = "") -> Commit:
    return Commit(
        sha=sha,
        author=CommitAuthor(name="Dev", email="dev@example.com", login="dev"),
        message=message or f"Commit {sha}",
    )


@pytest.fixture
async def db(tmp_path: Path) -> Database:
    database = Database(tmp_path / "test.db")
    await database.initialize()
    yield database  # type: ignore[misc]
    await database.close()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def engine(db: Database, clock: StepClock) -> SyncEngine:
    return SyncEngine(db, clock=clock)


@pytest.fixture
def board(db: Database) -> TaskBoard:
    return TaskBoard(db)


@pytest.fixture
def commits() -> Callable[..., list[Commit]]:
    def _make(*shas: str) -> list[Commit]:
        return [make_commit(sha) for sha in shas]

    return _make
