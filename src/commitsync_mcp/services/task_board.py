from __future__ import annotations

import logging
from typing import Any, Iterable

from commitsync_mcp.db.database import Database
from commitsync_mcp.models.task import TaskStatus

logger = logging.getLogger(__name__)


class TaskBoard:
    """Read-only view of synced checklists and the tasks agents can pick up."""

    def __init__(self, db: Database):
        self.db = db

    async def list_checklists(
        self, repository_path: str | None = None, limit: int = 20
    ) -> list[dict[str, Any]]:
        rows = await self.db.list_checklists(repository_path, limit)
        return [
            {
                "checklist_key": key,
                "repository_path": checklist.repository_path,
                "commit": checklist.commit.sha,
                "author": checklist.commit.author.login or checklist.commit.author.name,
                "message": checklist.commit.message.splitlines()[0]
                if checklist.commit.message
                else "",
                "create_timestamp": checklist.create_timestamp,
            }
            for key, checklist in rows
        ]

    async def get_checklist(self, checklist_key: str) -> dict[str, Any] | None:
        checklist = await self.db.get_checklist(checklist_key)
        if checklist is None:
            return None
        return {"checklist_key": checklist_key, **checklist.model_dump(mode="json")}

    async def get_tasks(self, checklist_key: str) -> list[dict[str, Any]]:
        tasks = await self.db.get_tasks(checklist_key)
        return [task.model_dump(mode="json") for task in tasks]

    async def find_available_tasks(
        self, capabilities: Iterable[str], limit: int = 50
    ) -> list[dict[str, Any]]:
        """New tasks whose required capabilities are all in ``capabilities``."""
        have = set(capabilities)
        tasks = await self.db.get_tasks_by_status(TaskStatus.NEW)
        matching = [t for t in tasks if set(t.required_capabilities) <= have]
        logger.debug("%d of %d new tasks match %s", len(matching), len(tasks), sorted(have))
        return [task.model_dump(mode="json") for task in matching[:limit]]

    async def get_stats(self) -> dict[str, Any]:
        return {
            "checklists": await self.db.count_checklists(),
            "tasks_by_status": await self.db.count_tasks_by_status(),
        }
