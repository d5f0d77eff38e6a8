from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    NEW = "New"
    IN_PROGRESS = "InProgress"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


class Task(BaseModel):
    """A unit of work attached to a checklist, claimable by capable agents."""

    id: int | None = None
    checklist_key: str
    stage_name: str
    name: str
    required_capabilities: list[str] = Field(default_factory=list)
    status: TaskStatus = TaskStatus.NEW
    start_timestamp: int = 0  # set by the agent that runs it
    end_timestamp: int = 0
