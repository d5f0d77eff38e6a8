from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CommitAuthor(BaseModel):
    """Who wrote a commit, as reported by the feed."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    login: Optional[str] = None  # GitHub account, when linked
    avatar_url: Optional[str] = None


class Commit(BaseModel):
    """An immutable commit record from the remote feed.

    Only ``sha`` matters to the sync engine; the rest is carried along as
    payload so that agents can display it.
    """

    model_config = ConfigDict(frozen=True)

    sha: str = Field(min_length=1)
    author: CommitAuthor = Field(default_factory=CommitAuthor)
    message: str = ""
    timestamp: Optional[datetime] = None
    parents: tuple[str, ...] = ()

    @classmethod
    def from_github(cls, payload: dict[str, Any]) -> Commit:
        """Build a Commit from one element of GitHub's ``/commits`` array."""
        details = payload.get("commit") or {}
        git_author = details.get("author") or {}
        account = payload.get("author") or {}
        return cls(
            sha=payload["sha"],
            author=CommitAuthor(
                name=git_author.get("name") or "",
                email=git_author.get("email") or "",
                login=account.get("login"),
                avatar_url=account.get("avatar_url"),
            ),
            message=details.get("message") or "",
            timestamp=git_author.get("date"),
            parents=tuple(p["sha"] for p in payload.get("parents") or []),
        )
