#!/usr/bin/env python3
"""Demo: two sync processes racing on the same commits.

This simulates two CommitSync instances (each with its own SQLite
connection, like two periodic triggers firing at once) syncing the same
GitHub feed. Exactly one of them creates the checklists; the other reports
every commit as skipped.
"""

import asyncio
import sys
from pathlib import Path

# Add src to path so we can import without installing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from commitsync_mcp.db.database import Database
from commitsync_mcp.models.commit import Commit
from commitsync_mcp.services.sync_driver import SyncDriver
from commitsync_mcp.services.sync_engine import SyncEngine
from commitsync_mcp.services.task_board import TaskBoard

DB_PATH = Path(__file__).parent.parent / "data" / "demo.db"
REPO = "flutter/flutter"


class StaticFeed:
    """Serves a fixed list of commits, newest first."""

    def __init__(self, shas: list[str]):
        self.shas = shas

    async def fetch_commits(self, repository_path: str) -> list[Commit]:
        return [Commit(sha=sha, message=f"Change {sha}") for sha in self.shas]


async def run_instance(name: str, feed: StaticFeed) -> None:
    db = Database(DB_PATH)
    await db.initialize()
    driver = SyncDriver(feed, SyncEngine(db), REPO)

    print(f"\n[{name}] Refreshing {REPO}...")
    result = await driver.refresh()
    for item in result.results:
        marker = "✅" if item.outcome.value == "Synced" else "⏭ "
        print(f"[{name}] {marker} {item.commit} {item.outcome.value}")
    await db.close()


async def main():
    DB_PATH.unlink(missing_ok=True)

    print("=" * 60)
    print("CommitSync Concurrent Sync Demo")
    print("=" * 60)

    feed = StaticFeed(["f00d", "beef", "cafe"])
    await asyncio.gather(run_instance("sync-a", feed), run_instance("sync-b", feed))

    # --- A new commit lands on top of the feed ---
    feed.shas.insert(0, "d00d")
    await run_instance("sync-a", feed)

    db = Database(DB_PATH)
    await db.initialize()
    board = TaskBoard(db)

    print("\nChecklists, newest first:")
    for row in await board.list_checklists(REPO):
        print(f"  → {row['create_timestamp']} {row['commit']}: {row['message']}")

    stats = await board.get_stats()
    print("\n" + "=" * 60)
    if stats["checklists"] == 4:
        print(f"✅ SUCCESS — 4 checklists, {stats['tasks_by_status']} tasks, no duplicates")
    else:
        print("❌ FAIL — Something went wrong")
    print("=" * 60)

    await db.close()


if __name__ == "__main__":
    asyncio.run(main())
