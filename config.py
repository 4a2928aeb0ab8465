#!/usr/bin/env python3
"""Configuration dataclasses for github2forgejo."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_CRON_SCHEDULE = "0 2 * * *"


class Strategy(Enum):
    """Enumeration for destination repository strategies."""
    MIRROR = "mirror"
    CLONE = "clone"


@dataclass(frozen=True)
class GitHubConfig:
    """GitHub (source) configuration."""
    api_url: str
    token: str
    account: str


@dataclass(frozen=True)
class ForgejoConfig:
    """Forgejo (destination) configuration."""
    url: str
    token: str
    owner: str

    @property
    def api_url(self) -> str:
        return f"{self.url.rstrip('/')}/api/v1"


@dataclass(frozen=True)
class SyncBehaviorConfig:
    """Sync behavior configuration."""
    strategy: Strategy = Strategy.MIRROR
    sync_on_conflict: bool = True
    sync_after_batch: bool = False

    @property
    def mirror(self) -> bool:
        return self.strategy != Strategy.CLONE


@dataclass(frozen=True)
class ScheduleConfig:
    """Cron installation configuration."""
    install_cron: bool = False
    cron_schedule: str = DEFAULT_CRON_SCHEDULE
    env_file: Optional[str] = None


@dataclass(frozen=True)
class Config:
    """Main configuration for GitHub-to-Forgejo sync."""
    github: GitHubConfig
    forgejo: ForgejoConfig
    behavior: SyncBehaviorConfig
    schedule: ScheduleConfig = ScheduleConfig()
