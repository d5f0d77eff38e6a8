from __future__ import annotations

import pytest

from commitsync_mcp.db.database import Database
from commitsync_mcp.models.commit import Commit
from commitsync_mcp.models.sync import SyncOutcome
from commitsync_mcp.services.commit_feed import CommitFeedError
from commitsync_mcp.services.sync_driver import SyncDriver
from commitsync_mcp.services.sync_engine import SyncEngine


class FakeFeed:
    def __init__(self, commits: list[Commit] | None = None, error: Exception | None = None):
        self.commits = commits or []
        self.error = error
        self.requested: list[str] = []

    async def fetch_commits(self, repository_path: str) -> list[Commit]:
        self.requested.append(repository_path)
        if self.error:
            raise self.error
        return list(self.commits)


@pytest.mark.asyncio
class TestSyncDriver:
    async def test_refresh_default_repository(self, engine: SyncEngine, commits) -> None:
        feed = FakeFeed(commits("c1", "c2"))
        driver = SyncDriver(feed, engine, "flutter/flutter")

        result = await driver.refresh()

        assert feed.requested == ["flutter/flutter"]
        assert result.repository_path == "flutter/flutter"
        assert [r.outcome for r in result.results] == [SyncOutcome.SYNCED] * 2

    async def test_refresh_explicit_repository(
        self, engine: SyncEngine, db: Database, commits
    ) -> None:
        feed = FakeFeed(commits("c1"))
        driver = SyncDriver(feed, engine, "flutter/flutter")

        result = await driver.refresh("flutter/engine")

        assert feed.requested == ["flutter/engine"]
        assert await db.checklist_exists("flutter/engine@c1")
        assert result.results[0].commit == "c1"

    async def test_feed_error_propagates_and_writes_nothing(
        self, engine: SyncEngine, db: Database
    ) -> None:
        driver = SyncDriver(FakeFeed(error=CommitFeedError("timeout")), engine, "flutter/flutter")

        with pytest.raises(CommitFeedError):
            await driver.refresh()
        assert await db.count_checklists() == 0

    async def test_repeated_refresh_skips(self, engine: SyncEngine, commits) -> None:
        driver = SyncDriver(FakeFeed(commits("c1", "c2")), engine, "flutter/flutter")
        await driver.refresh()

        result = await driver.refresh()
        assert result.synced_count == 0
        assert result.skipped_count == 2
