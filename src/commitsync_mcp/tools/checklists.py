from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from commitsync_mcp.services.task_board import TaskBoard


def register(mcp: FastMCP, board: TaskBoard) -> None:
    """Register read-only checklist and task MCP tools."""

    @mcp.tool()
    async def list_checklists(
        repository_path: str | None = None, limit: int = 20
    ) -> list[dict]:
        """List synced commits, newest first.

        Args:
            repository_path: Only show this "owner/repo"; all repositories if omitted
            limit: Maximum number of checklists to return
        """
        return await board.list_checklists(repository_path, limit)

    @mcp.tool()
    async def get_checklist_tasks(checklist_key: str) -> dict:
        """Show one checklist's commit and all of its tasks.

        Args:
            checklist_key: Key as returned by list_checklists ("owner/repo@sha")
        """
        checklist = await board.get_checklist(checklist_key)
        if checklist is None:
            return {"found": False, "checklist_key": checklist_key}
        return {
            "found": True,
            "checklist": checklist,
            "tasks": await board.get_tasks(checklist_key),
        }

    @mcp.tool()
    async def find_available_tasks(capabilities: list[str], limit: int = 50) -> list[dict]:
        """List new tasks an agent with the given capability tags could claim.

        Args:
            capabilities: Capability tags the agent has, e.g. ["has-android-device"]
            limit: Maximum number of tasks to return
        """
        return await board.find_available_tasks(capabilities, limit)
