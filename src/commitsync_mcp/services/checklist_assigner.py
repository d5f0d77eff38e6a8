from __future__ import annotations

from commitsync_mcp.models.checklist import Checklist
from commitsync_mcp.models.commit import Commit


def checklist_key(repository_path: str, commit_sha: str) -> str:
    """Deterministic store key for the (repository, commit) pair."""
    if not repository_path:
        raise ValueError("repository_path must not be empty")
    if not commit_sha:
        raise ValueError("commit_sha must not be empty")
    return f"{repository_path}@{commit_sha}"


def new_checklist(repository_path: str, commit: Commit, create_timestamp: int) -> Checklist:
    """Build the checklist record for ``commit``.

    ``create_timestamp`` comes from the caller, which owns the batch-wide
    ordering of timestamps.
    """
    return Checklist(
        repository_path=repository_path,
        commit=commit,
        create_timestamp=create_timestamp,
    )
