#!/usr/bin/env python3
"""Head-commit comparison between a GitHub repository and its Forgejo copy."""

from __future__ import annotations

from typing import Optional

from forgejo_target import ForgejoTarget
from github_source import GitHubSource
from logging_utils import Logger
from models import VerificationResult, VerificationStatus


def compare_heads(
    branch: str, source_head: Optional[str], destination_head: Optional[str]
) -> VerificationResult:
    """Compare two head commits; a missing side means nothing can be said."""
    if not source_head or not destination_head:
        return VerificationResult(
            VerificationStatus.SKIPPED, branch, source_head, destination_head
        )
    status = (
        VerificationStatus.VERIFIED
        if source_head == destination_head
        else VerificationStatus.MISMATCH
    )
    return VerificationResult(status, branch, source_head, destination_head)


class ConsistencyVerifier:
    """Checks that the destination's branch head matches the source."""

    def __init__(self, source: GitHubSource, target: ForgejoTarget) -> None:
        self.source = source
        self.target = target

    def verify(
        self,
        source_full_name: str,
        dest_owner: str,
        dest_name: str,
        source_default_branch: Optional[str],
    ) -> VerificationResult:
        """Compare heads of the source default branch on both sides.

        When the destination has no branch of that name (it may have renamed
        the default branch on import), the comparison moves to whatever branch
        the destination reports as its default, provided that branch resolves
        on both sides. The original branch is not retried after a fallback
        comparison.
        """
        if not source_default_branch:
            return VerificationResult(VerificationStatus.SKIPPED)

        branch = source_default_branch
        source_head = self.source.get_branch_head(source_full_name, branch)
        destination_head = self.target.get_branch_head(dest_owner, dest_name, branch)

        if not destination_head:
            destination_default = self.target.get_default_branch(dest_owner, dest_name)
            if destination_default and destination_default != branch:
                Logger.debug(
                    f"{dest_owner}/{dest_name}: branch '{branch}' missing, "
                    f"trying destination default '{destination_default}'"
                )
                fallback_source = self.source.get_branch_head(
                    source_full_name, destination_default
                )
                fallback_destination = self.target.get_branch_head(
                    dest_owner, dest_name, destination_default
                )
                if fallback_source and fallback_destination:
                    return compare_heads(
                        destination_default, fallback_source, fallback_destination
                    )

        return compare_heads(branch, source_head, destination_head)
