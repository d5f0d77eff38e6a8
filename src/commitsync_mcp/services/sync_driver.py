from __future__ import annotations

import logging
from typing import Protocol

from commitsync_mcp.models.commit import Commit
from commitsync_mcp.models.sync import SyncResult
from commitsync_mcp.services.sync_engine import SyncEngine

logger = logging.getLogger(__name__)


class CommitFeed(Protocol):
    async def fetch_commits(self, repository_path: str) -> list[Commit]: ...


class SyncDriver:
    """Pulls the latest commits from the feed and hands them to the engine.

    Feed failures surface as ``CommitFeedError``; store failures propagate
    unchanged from :meth:`SyncEngine.sync_batch`. Either way nothing from
    the batch is persisted.
    """

    def __init__(self, feed: CommitFeed, engine: SyncEngine, default_repository_path: str):
        self.feed = feed
        self.engine = engine
        self.default_repository_path = default_repository_path

    async def refresh(self, repository_path: str | None = None) -> SyncResult:
        repo = repository_path or self.default_repository_path
        commits = await self.feed.fetch_commits(repo)
        logger.debug("Fetched %d commits for %s", len(commits), repo)
        return await self.engine.sync_batch(repo, commits)
