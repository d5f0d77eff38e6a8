from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from mcp.server.fastmcp import FastMCP

from commitsync_mcp.db.database import Database
from commitsync_mcp.services.commit_feed import GitHubCommitFeed
from commitsync_mcp.services.sync_driver import SyncDriver
from commitsync_mcp.services.sync_engine import SyncEngine
from commitsync_mcp.services.task_board import TaskBoard
from commitsync_mcp.tools import checklists as checklist_tools
from commitsync_mcp.tools import sync as sync_tools
from commitsync_mcp.utils.config import get_config
from commitsync_mcp.utils.logger import setup_logging

logger = logging.getLogger(__name__)


async def _periodic_refresh_loop(driver: SyncDriver, interval_seconds: int) -> None:
    """Sync the default repository every ``interval_seconds``.

    A failed run is logged and retried on the next tick; the batch it was
    working on has already been rolled back.
    """
    while True:
        try:
            result = await driver.refresh()
        except Exception:
            logger.exception("Periodic commit refresh failed")
        else:
            if result.synced_count:
                logger.info(
                    "Periodic refresh created %d checklists", result.synced_count
                )
        await asyncio.sleep(interval_seconds)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle for CommitSync."""
    config = get_config()

    # --- Database ---
    db = Database(config.db_path)
    await db.initialize()

    # --- Services ---
    feed = GitHubCommitFeed(
        api_url=config.github_api_url,
        token=config.github_token,
        per_page=config.commits_per_page,
        timeout_seconds=config.http_timeout,
    )
    engine = SyncEngine(db)
    driver = SyncDriver(feed, engine, config.repository_path)
    board = TaskBoard(db)

    refresh_task: asyncio.Task[None] | None = None
    if config.sync_interval > 0:
        refresh_task = asyncio.create_task(
            _periodic_refresh_loop(driver, config.sync_interval)
        )
        logger.info(
            "Refreshing %s every %ds", config.repository_path, config.sync_interval
        )

    # --- Register MCP tools ---
    sync_tools.register(server, driver)
    checklist_tools.register(server, board)

    # --- Register MCP resource ---
    @server.resource("commitsync://stats")
    async def get_stats() -> str:
        stats = await board.get_stats()
        lines = [
            "CommitSync Status:",
            f"- Repository: {config.repository_path}",
            f"- Checklists: {stats['checklists']}",
        ]
        for status, count in sorted(stats["tasks_by_status"].items()):
            lines.append(f"- Tasks {status}: {count}")
        return "\n".join(lines) + "\n"

    logger.info("CommitSync MCP Server ready")

    try:
        yield
    finally:
        if refresh_task is not None:
            refresh_task.cancel()
            try:
                await refresh_task
            except asyncio.CancelledError:
                pass
        await feed.aclose()
        await db.close()
        logger.info("CommitSync MCP Server stopped")


def create_server() -> FastMCP:
    """Build and return the configured FastMCP server."""
    config = get_config()
    setup_logging(config.log_level)

    server = FastMCP("CommitSync", lifespan=lifespan)
    return server


# Module-level instance used by the CLI and ``python -m``
mcp = create_server()

if __name__ == "__main__":
    mcp.run()
