"""GitHub commit feed client."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from commitsync_mcp.models.commit import Commit

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_PER_PAGE = 30


class CommitFeedError(Exception):
    """The commit feed could not be fetched or decoded.

    Distinct from an empty feed: callers must never treat this as
    "no new commits".
    """


class GitHubCommitFeed:
    """Fetches a repository's recent commits, newest first."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        api_url: str = DEFAULT_API_URL,
        token: str | None = None,
        per_page: int = DEFAULT_PER_PAGE,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._api_url = api_url.rstrip("/")
        self._per_page = per_page
        self._owns_client = client is None
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if client is None:
            client = httpx.AsyncClient(
                timeout=httpx.Timeout(timeout_seconds, connect=10.0),
                follow_redirects=True,
            )
        self._client = client
        self._headers = headers

    async def fetch_commits(self, repository_path: str) -> list[Commit]:
        url = f"{self._api_url}/repos/{repository_path}/commits"
        try:
            response = await self._client.get(
                url, params={"per_page": self._per_page}, headers=self._headers
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Failed to fetch commits for %s: %s", repository_path, exc)
            raise CommitFeedError(f"Failed to fetch commits from {url}: {exc}") from exc

        try:
            payload: Any = response.json()
        except ValueError as exc:
            logger.warning("Commit feed for %s returned invalid JSON", repository_path)
            raise CommitFeedError(f"Invalid JSON from {url}") from exc

        if not isinstance(payload, list):
            raise CommitFeedError(
                f"Expected a JSON array of commits from {url}, got {type(payload).__name__}"
            )

        try:
            commits = [Commit.from_github(item) for item in payload]
        except (KeyError, TypeError, AttributeError, ValidationError) as exc:
            raise CommitFeedError(f"Malformed commit record from {url}: {exc}") from exc

        logger.debug("Downloaded %d commits from GitHub for %s", len(commits), repository_path)
        return commits

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> GitHubCommitFeed:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()
