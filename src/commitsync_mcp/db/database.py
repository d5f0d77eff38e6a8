from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from importlib import resources
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, TypeVar

import aiosqlite

from commitsync_mcp.models.checklist import Checklist
from commitsync_mcp.models.commit import Commit
from commitsync_mcp.models.task import Task, TaskStatus

logger = logging.getLogger(__name__)

_DEFAULT_DB_PATH = Path("data/commitsync.db")

T = TypeVar("T")


class Database:
    """Async SQLite store for checklists and their tasks.

    Holds a single persistent connection in autocommit mode; multi-statement
    writes go through :meth:`transaction`, which opens ``BEGIN IMMEDIATE``
    so the write lock is held from the first read of the batch.

    Every statement on the shared connection waits for an open transaction
    to finish unless it is issued by the task that owns that transaction,
    so other coroutines never observe uncommitted rows. Transaction scopes
    must not be nested.
    """

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path) if db_path else _DEFAULT_DB_PATH
        self._conn: aiosqlite.Connection | None = None
        self._tx_lock = asyncio.Lock()
        self._tx_owner: asyncio.Task[Any] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Create the database file, apply the schema, and open the persistent connection."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        schema_sql = (
            resources.files("commitsync_mcp.db").joinpath("schema.sql").read_text()
        )

        self._conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        self._conn.row_factory = aiosqlite.Row
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA foreign_keys=ON")
        await self._conn.executescript(schema_sql)

        logger.info("Database initialized at %s", self.db_path)

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def conn(self) -> aiosqlite.Connection:
        assert self._conn is not None, "Database not initialized, call initialize() first"
        return self._conn

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Database]:
        """Run the enclosed writes atomically.

        Everything executed inside the block becomes visible together on
        exit, or not at all if the block (or the commit itself) raises. The
        exception is re-raised unchanged after the rollback.
        """
        async with self._tx_lock:
            await self.conn.execute("BEGIN IMMEDIATE")
            self._tx_owner = asyncio.current_task()
            try:
                yield self
                await self.conn.execute("COMMIT")
            except BaseException:
                # SQLite may already have rolled back on its own (e.g. SQLITE_FULL).
                if self.conn.in_transaction:
                    await self.conn.execute("ROLLBACK")
                raise
            finally:
                self._tx_owner = None

    async def run_in_transaction(self, fn: Callable[[Database], Awaitable[T]]) -> T:
        """Call ``fn`` inside :meth:`transaction` and return its result."""
        async with self.transaction() as txn:
            return await fn(txn)

    @asynccontextmanager
    async def _guard(self) -> AsyncIterator[None]:
        if self._tx_owner is not None and self._tx_owner is asyncio.current_task():
            yield
            return
        async with self._tx_lock:
            yield

    async def _fetchall(self, sql: str, params: Iterable[Any] = ()) -> list[aiosqlite.Row]:
        async with self._guard():
            cursor = await self.conn.execute(sql, tuple(params))
            return list(await cursor.fetchall())

    async def _fetchone(self, sql: str, params: Iterable[Any] = ()) -> aiosqlite.Row | None:
        async with self._guard():
            cursor = await self.conn.execute(sql, tuple(params))
            return await cursor.fetchone()

    async def _write(self, sql: str, params: Iterable[Any] = ()) -> int | None:
        async with self._guard():
            cursor = await self.conn.execute(sql, tuple(params))
            return cursor.lastrowid

    # ------------------------------------------------------------------
    # Checklist operations
    # ------------------------------------------------------------------

    async def checklist_exists(self, checklist_key: str) -> bool:
        row = await self._fetchone(
            "SELECT 1 FROM checklists WHERE checklist_key = ?", (checklist_key,)
        )
        return row is not None

    async def put_checklist(self, checklist_key: str, checklist: Checklist) -> None:
        await self._write(
            """
            INSERT INTO checklists
                (checklist_key, repository_path, commit_sha, commit_json, create_timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                checklist_key,
                checklist.repository_path,
                checklist.commit.sha,
                checklist.commit.model_dump_json(),
                checklist.create_timestamp,
            ),
        )

    async def get_checklist(self, checklist_key: str) -> Checklist | None:
        row = await self._fetchone(
            """
            SELECT repository_path, commit_json, create_timestamp
            FROM checklists WHERE checklist_key = ?
            """,
            (checklist_key,),
        )
        return self._row_to_checklist(row) if row else None

    async def list_checklists(
        self, repository_path: str | None = None, limit: int = 20
    ) -> list[tuple[str, Checklist]]:
        """Return ``(key, checklist)`` pairs, newest ``create_timestamp`` first."""
        if repository_path:
            rows = await self._fetchall(
                """
                SELECT checklist_key, repository_path, commit_json, create_timestamp
                FROM checklists WHERE repository_path = ?
                ORDER BY create_timestamp DESC LIMIT ?
                """,
                (repository_path, limit),
            )
        else:
            rows = await self._fetchall(
                """
                SELECT checklist_key, repository_path, commit_json, create_timestamp
                FROM checklists
                ORDER BY create_timestamp DESC LIMIT ?
                """,
                (limit,),
            )
        return [(row["checklist_key"], self._row_to_checklist(row)) for row in rows]

    async def count_checklists(self) -> int:
        row = await self._fetchone("SELECT COUNT(*) AS n FROM checklists")
        return row["n"] if row else 0

    # ------------------------------------------------------------------
    # Task operations
    # ------------------------------------------------------------------

    async def put_task(self, task: Task) -> int:
        task_id = await self._write(
            """
            INSERT INTO tasks
                (checklist_key, stage_name, name, required_capabilities,
                 status, start_timestamp, end_timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.checklist_key,
                task.stage_name,
                task.name,
                json.dumps(task.required_capabilities),
                task.status.value,
                task.start_timestamp,
                task.end_timestamp,
            ),
        )
        return task_id  # type: ignore[return-value]

    async def get_tasks(self, checklist_key: str) -> list[Task]:
        rows = await self._fetchall(
            "SELECT * FROM tasks WHERE checklist_key = ? ORDER BY id",
            (checklist_key,),
        )
        return [self._row_to_task(row) for row in rows]

    async def get_tasks_by_status(self, status: TaskStatus) -> list[Task]:
        """Tasks in ``status``, newest checklist first, template order within one."""
        rows = await self._fetchall(
            """
            SELECT t.* FROM tasks t
            JOIN checklists c ON c.checklist_key = t.checklist_key
            WHERE t.status = ?
            ORDER BY c.create_timestamp DESC, t.id
            """,
            (status.value,),
        )
        return [self._row_to_task(row) for row in rows]

    async def count_tasks_by_status(self) -> dict[str, int]:
        rows = await self._fetchall(
            "SELECT status, COUNT(*) AS n FROM tasks GROUP BY status"
        )
        return {row["status"]: row["n"] for row in rows}

    # ------------------------------------------------------------------
    # Event log
    # ------------------------------------------------------------------

    async def log_event(self, event_type: str, details: dict[str, Any] | None = None) -> None:
        await self._write(
            "INSERT INTO event_log (event_type, details) VALUES (?, ?)",
            (event_type, json.dumps(details) if details else None),
        )

    async def get_events(self, event_type: str | None = None) -> list[dict[str, Any]]:
        if event_type:
            rows = await self._fetchall(
                "SELECT * FROM event_log WHERE event_type = ? ORDER BY id",
                (event_type,),
            )
        else:
            rows = await self._fetchall("SELECT * FROM event_log ORDER BY id")
        result = []
        for row in rows:
            d = dict(row)
            d["details"] = json.loads(d["details"]) if d["details"] else None
            result.append(d)
        return result

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_checklist(row: aiosqlite.Row) -> Checklist:
        return Checklist(
            repository_path=row["repository_path"],
            commit=Commit.model_validate_json(row["commit_json"]),
            create_timestamp=row["create_timestamp"],
        )

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        return Task(
            id=row["id"],
            checklist_key=row["checklist_key"],
            stage_name=row["stage_name"],
            name=row["name"],
            required_capabilities=json.loads(row["required_capabilities"]),
            status=TaskStatus(row["status"]),
            start_timestamp=row["start_timestamp"],
            end_timestamp=row["end_timestamp"],
        )
