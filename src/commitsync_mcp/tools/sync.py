from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from commitsync_mcp.services.sync_driver import SyncDriver


def register(mcp: FastMCP, driver: SyncDriver) -> None:
    """Register commit sync MCP tools."""

    @mcp.tool()
    async def refresh_commits(repository_path: str | None = None) -> dict:
        """Pull the latest commits from GitHub and create checklists for new ones.

        Every previously unseen commit gets a checklist with the full set of
        tasks agents can claim. Commits already synced are reported as
        "Skipped". The whole batch is atomic: on error nothing is written
        and the error is raised.

        Args:
            repository_path: "owner/repo" to sync; defaults to the configured repository
        """
        result = await driver.refresh(repository_path)
        return {
            **result.model_dump(mode="json"),
            "synced": result.synced_count,
            "skipped": result.skipped_count,
        }
