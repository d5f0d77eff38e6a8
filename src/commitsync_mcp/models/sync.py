from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SyncOutcome(str, Enum):
    SYNCED = "Synced"
    SKIPPED = "Skipped"


class CommitSyncResult(BaseModel):
    """What happened to a specific commit during a sync."""

    commit: str
    outcome: SyncOutcome


class SyncResult(BaseModel):
    """Per-commit outcomes of one sync batch, in feed order."""

    repository_path: str
    results: list[CommitSyncResult] = Field(default_factory=list)

    @property
    def synced_count(self) -> int:
        return sum(1 for r in self.results if r.outcome is SyncOutcome.SYNCED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.results if r.outcome is SyncOutcome.SKIPPED)
