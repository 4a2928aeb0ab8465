#!/usr/bin/env python3
"""Value types exchanged between the source, the target and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class MigrationStatus(Enum):
    """Outcome of one migrate request."""
    CREATED = "created"
    ALREADY_EXISTS = "exists"
    FAILED = "failed"


class VerificationStatus(Enum):
    """Outcome of one head-commit comparison."""
    VERIFIED = "verified"
    MISMATCH = "mismatch"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RepositoryDescriptor:
    """A repository as listed by the source account."""
    name: str
    full_name: str
    owner: str
    is_private: bool
    clone_address: str
    default_branch: Optional[str]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RepositoryDescriptor":
        """Build a descriptor from one item of GitHub's repository listing."""
        owner = data.get("owner") or {}
        return cls(
            name=data["name"],
            full_name=data["full_name"],
            owner=owner.get("login", ""),
            is_private=bool(data.get("private", False)),
            clone_address=data["clone_url"],
            # Empty repositories report no default branch
            default_branch=data.get("default_branch") or None,
        )


@dataclass(frozen=True)
class MigrationRequest:
    """Payload for the destination's migrate endpoint."""
    clone_address: str
    repo_owner: str
    repo_name: str
    mirror: bool
    private: bool
    auth_username: str
    auth_password: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "clone_addr": self.clone_address,
            "repo_owner": self.repo_owner,
            "repo_name": self.repo_name,
            "mirror": self.mirror,
            "private": self.private,
            "auth_username": self.auth_username,
            "auth_password": self.auth_password,
        }

    def __repr__(self) -> str:
        return (
            f"MigrationRequest(clone_address={self.clone_address!r}, "
            f"repo_owner={self.repo_owner!r}, repo_name={self.repo_name!r}, "
            f"mirror={self.mirror}, private={self.private}, "
            f"auth_username={self.auth_username!r}, auth_password='***')"
        )


@dataclass(frozen=True)
class MigrationOutcome:
    status: MigrationStatus
    http_status: int
    message: Optional[str] = None

    @property
    def eligible_for_sync(self) -> bool:
        """Only repositories present on the destination can be synced."""
        return self.status in (MigrationStatus.CREATED, MigrationStatus.ALREADY_EXISTS)


@dataclass(frozen=True)
class VerificationResult:
    status: VerificationStatus
    branch: Optional[str] = None
    source_head: Optional[str] = None
    destination_head: Optional[str] = None


@dataclass(frozen=True)
class SyncResult:
    """Result of a forced mirror refresh."""
    ok: bool
    http_status: int
    message: Optional[str] = None


@dataclass
class RepositoryReport:
    """Everything recorded for one repository during a run."""
    descriptor: RepositoryDescriptor
    outcome: MigrationOutcome
    verification: VerificationResult
    conflict_sync: Optional[SyncResult] = None
    batch_sync: Optional[SyncResult] = None
