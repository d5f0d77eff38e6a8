from commitsync_mcp.models.checklist import Checklist
from commitsync_mcp.models.commit import Commit, CommitAuthor
from commitsync_mcp.models.sync import CommitSyncResult, SyncOutcome, SyncResult
from commitsync_mcp.models.task import Task, TaskStatus

__all__ = [
    "Checklist",
    "Commit",
    "CommitAuthor",
    "CommitSyncResult",
    "SyncOutcome",
    "SyncResult",
    "Task",
    "TaskStatus",
]
