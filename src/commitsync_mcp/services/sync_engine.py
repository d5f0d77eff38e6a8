from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from commitsync_mcp.db.database import Database
from commitsync_mcp.models.commit import Commit
from commitsync_mcp.models.sync import CommitSyncResult, SyncOutcome, SyncResult
from commitsync_mcp.services.checklist_assigner import checklist_key, new_checklist
from commitsync_mcp.services.task_template import create_task_list

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def now_millis() -> int:
    return time.time_ns() // 1_000_000


class SyncEngine:
    """Deduplicates a commit batch against the store and schedules new commits.

    A batch is all-or-nothing: every checklist and task it creates is
    written inside one transaction, and any store error rolls the whole
    batch back and propagates to the caller.
    """

    def __init__(self, db: Database, clock: Clock = now_millis):
        self.db = db
        self._clock = clock

    async def sync_batch(
        self, repository_path: str, commits: Sequence[Commit]
    ) -> SyncResult:
        """Create checklists and tasks for the commits not yet in the store.

        ``commits`` must be in feed order, newest first. New commits get
        strictly decreasing ``create_timestamp`` values in that order;
        already-known commits are reported as skipped and consume no value.
        """
        if not commits:
            return SyncResult(repository_path=repository_path)

        create_timestamp = self._clock()
        results: list[CommitSyncResult] = []

        async with self.db.transaction() as txn:
            for commit in commits:
                key = checklist_key(repository_path, commit.sha)
                if await txn.checklist_exists(key):
                    results.append(
                        CommitSyncResult(commit=commit.sha, outcome=SyncOutcome.SKIPPED)
                    )
                    continue

                await txn.put_checklist(
                    key, new_checklist(repository_path, commit, create_timestamp)
                )
                # Keeps create_timestamp sortable the way the feed orders commits.
                create_timestamp -= 1

                for task in create_task_list(key):
                    await txn.put_task(task)
                results.append(
                    CommitSyncResult(commit=commit.sha, outcome=SyncOutcome.SYNCED)
                )

            synced = [r.commit for r in results if r.outcome is SyncOutcome.SYNCED]
            if synced:
                await txn.log_event(
                    "commits_synced",
                    {"repository_path": repository_path, "commits": synced},
                )

        result = SyncResult(repository_path=repository_path, results=results)
        logger.info(
            "Synced %s: %d new, %d skipped",
            repository_path,
            result.synced_count,
            result.skipped_count,
        )
        return result
