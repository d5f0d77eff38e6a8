from __future__ import annotations

from pydantic import BaseModel

from commitsync_mcp.models.commit import Commit


class Checklist(BaseModel):
    """The durable record of one synchronized commit.

    ``create_timestamp`` is the ordering key: within a sync batch newer
    commits always get higher values.
    """

    repository_path: str
    commit: Commit
    create_timestamp: int
