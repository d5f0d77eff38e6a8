from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import click

from commitsync_mcp import __version__

T = TypeVar("T")

_DB_PATH_HELP = "Path for the SQLite database file (default: COMMITSYNC_DB_PATH)."


def _resolve_db_path(db_path: str | None) -> str:
    if db_path:
        return db_path
    from commitsync_mcp.utils.config import get_config

    return str(get_config().db_path)


def _with_database(db_path: str, fn: Callable[..., Awaitable[T]]) -> T:
    from commitsync_mcp.db.database import Database

    async def _run() -> T:
        db = Database(db_path)
        await db.initialize()
        try:
            return await fn(db)
        finally:
            await db.close()

    return asyncio.run(_run())


@click.group()
@click.version_option(version=__version__, prog_name="commitsync-mcp")
def main() -> None:
    """CommitSync MCP: turns new commits into agent task checklists."""


@main.command()
@click.option("--db-path", default=None, help=_DB_PATH_HELP)
def init(db_path: str | None) -> None:
    """Initialize the CommitSync database."""
    from commitsync_mcp.db.database import Database

    path = _resolve_db_path(db_path)

    async def _init() -> None:
        db = Database(path)
        await db.initialize()
        await db.close()
        click.echo(f"Database initialized at {path}")

    asyncio.run(_init())


@main.command()
@click.option(
    "--repo",
    default=None,
    help="GitHub repository to sync as owner/repo (default: COMMITSYNC_REPOSITORY).",
)
@click.option("--db-path", default=None, help=_DB_PATH_HELP)
def sync(repo: str | None, db_path: str | None) -> None:
    """Fetch the latest commits and create checklists for new ones."""
    import aiosqlite

    from commitsync_mcp.services.commit_feed import CommitFeedError, GitHubCommitFeed
    from commitsync_mcp.services.sync_driver import SyncDriver
    from commitsync_mcp.services.sync_engine import SyncEngine
    from commitsync_mcp.utils.config import get_config
    from commitsync_mcp.utils.logger import setup_logging

    config = get_config()
    setup_logging(config.log_level)

    async def _sync(db):
        async with GitHubCommitFeed(
            api_url=config.github_api_url,
            token=config.github_token,
            per_page=config.commits_per_page,
            timeout_seconds=config.http_timeout,
        ) as feed:
            driver = SyncDriver(feed, SyncEngine(db), config.repository_path)
            return await driver.refresh(repo)

    try:
        result = _with_database(_resolve_db_path(db_path), _sync)
    except CommitFeedError as exc:
        raise click.ClickException(f"Could not fetch commits: {exc}") from exc
    except aiosqlite.Error as exc:
        raise click.ClickException(f"Sync aborted, nothing was written: {exc}") from exc

    for item in result.results:
        click.echo(f"{item.commit} {item.outcome.value}")
    click.echo(
        f"{result.repository_path}: {result.synced_count} synced, "
        f"{result.skipped_count} skipped"
    )


@main.command()
@click.option("--repo", default=None, help="Only list checklists for this owner/repo.")
@click.option("--limit", default=20, show_default=True, type=int)
@click.option("--db-path", default=None, help=_DB_PATH_HELP)
def checklists(repo: str | None, limit: int, db_path: str | None) -> None:
    """List synced commits, newest first."""
    from commitsync_mcp.services.task_board import TaskBoard

    async def _list(db):
        return await TaskBoard(db).list_checklists(repo, limit)

    rows = _with_database(_resolve_db_path(db_path), _list)
    if not rows:
        click.echo("No checklists.")
        return
    for row in rows:
        click.echo(f"{row['create_timestamp']}  {row['checklist_key']}  {row['message']}")


@main.command()
@click.argument("checklist_key")
@click.option("--db-path", default=None, help=_DB_PATH_HELP)
def tasks(checklist_key: str, db_path: str | None) -> None:
    """Show the tasks of one checklist."""
    from commitsync_mcp.services.task_board import TaskBoard

    async def _tasks(db):
        return await TaskBoard(db).get_tasks(checklist_key)

    rows = _with_database(_resolve_db_path(db_path), _tasks)
    if not rows:
        raise click.ClickException(f"No tasks for checklist {checklist_key}")
    for row in rows:
        caps = ",".join(row["required_capabilities"])
        click.echo(f"{row['stage_name']:<10} {row['name']:<48} {row['status']:<10} {caps}")


@main.command()
def start() -> None:
    """Start the CommitSync MCP server."""
    from commitsync_mcp.server import mcp

    click.echo("Starting CommitSync MCP Server...")
    mcp.run()


@main.command()
def version() -> None:
    """Print the version and exit."""
    click.echo(f"commitsync-mcp {__version__}")


if __name__ == "__main__":
    main()
