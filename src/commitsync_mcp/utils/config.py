from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Config:
    """Central configuration loaded from environment variables."""

    # Database
    db_path: Path = field(
        default_factory=lambda: Path(
            os.environ.get("COMMITSYNC_DB_PATH", "data/commitsync.db")
        )
    )

    # Commit feed
    repository_path: str = field(
        default_factory=lambda: os.environ.get("COMMITSYNC_REPOSITORY", "flutter/flutter")
    )
    github_api_url: str = field(
        default_factory=lambda: os.environ.get(
            "COMMITSYNC_GITHUB_API_URL", "https://api.github.com"
        )
    )
    github_token: str | None = field(
        default_factory=lambda: os.environ.get("GITHUB_TOKEN")
    )
    commits_per_page: int = field(
        default_factory=lambda: int(os.environ.get("COMMITSYNC_COMMITS_PER_PAGE", "30"))
    )
    http_timeout: float = field(
        default_factory=lambda: float(os.environ.get("COMMITSYNC_HTTP_TIMEOUT", "30"))
    )

    # Periodic refresh from the MCP server; 0 disables it
    sync_interval: int = field(
        default_factory=lambda: int(os.environ.get("COMMITSYNC_SYNC_INTERVAL", "0"))
    )

    # Logging
    log_level: str = field(
        default_factory=lambda: os.environ.get("COMMITSYNC_LOG_LEVEL", "INFO")
    )


def get_config() -> Config:
    """Return a Config instance (singleton-friendly via module caching)."""
    return Config()
