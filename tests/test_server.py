from __future__ import annotations

import asyncio

import pytest

from commitsync_mcp.models.sync import SyncResult
from commitsync_mcp.server import _periodic_refresh_loop
from commitsync_mcp.services.commit_feed import CommitFeedError


class FlakyDriver:
    def __init__(self) -> None:
        self.calls = 0
        self.reached = asyncio.Event()

    async def refresh(self, repository_path: str | None = None) -> SyncResult:
        self.calls += 1
        if self.calls >= 3:
            self.reached.set()
        if self.calls == 1:
            raise CommitFeedError("GitHub unavailable")
        return SyncResult(repository_path="flutter/flutter")


@pytest.mark.asyncio
class TestPeriodicRefresh:
    async def test_loop_survives_failed_refresh(self) -> None:
        driver = FlakyDriver()
        task = asyncio.create_task(_periodic_refresh_loop(driver, 0))  # type: ignore[arg-type]

        await asyncio.wait_for(driver.reached.wait(), timeout=5)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert driver.calls >= 3
