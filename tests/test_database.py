from __future__ import annotations

import asyncio
import sqlite3

import pytest

from commitsync_mcp.db.database import Database
from commitsync_mcp.models.checklist import Checklist
from commitsync_mcp.models.commit import Commit
from commitsync_mcp.models.task import Task, TaskStatus

REPO = "flutter/flutter"


def _checklist(sha: str, ts: int = 100) -> Checklist:
    return Checklist(repository_path=REPO, commit=Commit(sha=sha), create_timestamp=ts)


def _task(key: str, name: str = "travis") -> Task:
    return Task(
        checklist_key=key,
        stage_name="travis",
        name=name,
        required_capabilities=["can-update-travis"],
    )


@pytest.mark.asyncio
class TestDatabase:
    async def test_put_and_get_checklist(self, db: Database) -> None:
        async with db.transaction():
            await db.put_checklist(f"{REPO}@a", _checklist("a", 42))

        assert await db.checklist_exists(f"{REPO}@a") is True
        assert await db.checklist_exists(f"{REPO}@b") is False

        checklist = await db.get_checklist(f"{REPO}@a")
        assert checklist is not None
        assert checklist.commit.sha == "a"
        assert checklist.create_timestamp == 42

    async def test_get_missing_checklist(self, db: Database) -> None:
        assert await db.get_checklist("nope") is None

    async def test_put_and_get_tasks(self, db: Database) -> None:
        key = f"{REPO}@a"
        async with db.transaction():
            await db.put_checklist(key, _checklist("a"))
            first = await db.put_task(_task(key, "one"))
            second = await db.put_task(_task(key, "two"))
        assert second > first > 0

        tasks = await db.get_tasks(key)
        assert [t.name for t in tasks] == ["one", "two"]
        assert tasks[0].required_capabilities == ["can-update-travis"]
        assert tasks[0].status is TaskStatus.NEW
        assert tasks[0].id == first

    async def test_task_requires_existing_checklist(self, db: Database) -> None:
        with pytest.raises(sqlite3.IntegrityError):
            async with db.transaction():
                await db.put_task(_task("missing@key"))

    async def test_transaction_rolls_back_on_error(self, db: Database) -> None:
        with pytest.raises(RuntimeError, match="boom"):
            async with db.transaction():
                await db.put_checklist(f"{REPO}@a", _checklist("a"))
                await db.put_task(_task(f"{REPO}@a"))
                raise RuntimeError("boom")

        assert await db.checklist_exists(f"{REPO}@a") is False
        assert await db.get_tasks(f"{REPO}@a") == []
        assert await db.count_checklists() == 0

    async def test_transaction_usable_after_rollback(self, db: Database) -> None:
        with pytest.raises(RuntimeError):
            async with db.transaction():
                raise RuntimeError("boom")

        async with db.transaction():
            await db.put_checklist(f"{REPO}@a", _checklist("a"))
        assert await db.count_checklists() == 1

    async def test_duplicate_commit_rejected(self, db: Database) -> None:
        async with db.transaction():
            await db.put_checklist(f"{REPO}@a", _checklist("a"))

        # Different key, same (repository, sha): the unique constraint still holds.
        with pytest.raises(sqlite3.IntegrityError):
            async with db.transaction():
                await db.put_checklist("other-key", _checklist("a"))
        assert await db.count_checklists() == 1

    async def test_run_in_transaction_returns_value(self, db: Database) -> None:
        async def _write(txn: Database) -> str:
            await txn.put_checklist(f"{REPO}@a", _checklist("a"))
            return "done"

        assert await db.run_in_transaction(_write) == "done"
        assert await db.checklist_exists(f"{REPO}@a")

    async def test_list_checklists_newest_first(self, db: Database) -> None:
        async with db.transaction():
            await db.put_checklist(f"{REPO}@old", _checklist("old", 1))
            await db.put_checklist(f"{REPO}@new", _checklist("new", 3))
            await db.put_checklist(f"{REPO}@mid", _checklist("mid", 2))
            await db.put_checklist(
                "flutter/engine@x",
                Checklist(repository_path="flutter/engine", commit=Commit(sha="x"), create_timestamp=9),
            )

        rows = await db.list_checklists(REPO)
        assert [key for key, _ in rows] == [f"{REPO}@new", f"{REPO}@mid", f"{REPO}@old"]

        everything = await db.list_checklists(limit=2)
        assert [key for key, _ in everything] == ["flutter/engine@x", f"{REPO}@new"]

    async def test_tasks_by_status_and_counts(self, db: Database) -> None:
        async with db.transaction():
            await db.put_checklist(f"{REPO}@a", _checklist("a", 1))
            await db.put_checklist(f"{REPO}@b", _checklist("b", 2))
            await db.put_task(_task(f"{REPO}@a", "from-a"))
            await db.put_task(_task(f"{REPO}@b", "from-b"))

        new_tasks = await db.get_tasks_by_status(TaskStatus.NEW)
        assert [t.name for t in new_tasks] == ["from-b", "from-a"]
        assert await db.get_tasks_by_status(TaskStatus.FAILED) == []
        assert await db.count_tasks_by_status() == {"New": 2}

    async def test_log_event(self, db: Database) -> None:
        await db.log_event("commits_synced", {"commits": ["a"]})
        events = await db.get_events("commits_synced")
        assert len(events) == 1
        assert events[0]["details"] == {"commits": ["a"]}

    async def test_initialize_is_idempotent(self, db: Database) -> None:
        async with db.transaction():
            await db.put_checklist(f"{REPO}@a", _checklist("a"))
        await db.close()

        await db.initialize()
        assert await db.checklist_exists(f"{REPO}@a")

    async def test_failed_commit_rolls_back(
        self, db: Database, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        real_execute = db.conn.execute

        async def execute(sql, *args, **kwargs):
            if sql == "COMMIT":
                raise sqlite3.OperationalError("database is locked")
            return await real_execute(sql, *args, **kwargs)

        monkeypatch.setattr(db.conn, "execute", execute)
        with pytest.raises(sqlite3.OperationalError, match="database is locked"):
            async with db.transaction():
                await db.put_checklist(f"{REPO}@a", _checklist("a"))
        monkeypatch.undo()

        assert db.conn.in_transaction is False
        assert await db.checklist_exists(f"{REPO}@a") is False
        async with db.transaction():
            await db.put_checklist(f"{REPO}@b", _checklist("b"))
        assert await db.count_checklists() == 1

    async def test_log_event_outside_transaction_waits_for_it(self, db: Database) -> None:
        entered = asyncio.Event()
        release = asyncio.Event()

        async def _batch() -> None:
            with pytest.raises(RuntimeError):
                async with db.transaction():
                    entered.set()
                    await release.wait()
                    raise RuntimeError("abort")

        batch = asyncio.create_task(_batch())
        await entered.wait()
        logged = asyncio.create_task(db.log_event("manual", {"n": 1}))
        await asyncio.sleep(0.05)
        assert not logged.done()

        release.set()
        await batch
        await logged
        # The rolled-back batch did not take the standalone write with it.
        assert len(await db.get_events("manual")) == 1
