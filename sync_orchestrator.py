#!/usr/bin/env python3
"""Main orchestrator for reconciling a GitHub account into a Forgejo owner."""

from __future__ import annotations

from collections import Counter
from typing import List, Optional

from config import Config
from errors import EXIT_EXECUTION_ERROR, EXIT_SUCCESS, MirrorError
from forgejo_target import ForgejoTarget
from github_source import GitHubSource
from logging_utils import Logger
from models import (MigrationOutcome, MigrationRequest, MigrationStatus,
                    RepositoryDescriptor, RepositoryReport, SyncResult,
                    VerificationResult, VerificationStatus)
from utils import short_sha
from verifier import ConsistencyVerifier


class SyncOrchestrator:
    def __init__(
        self,
        cfg: Config,
        source: Optional[GitHubSource] = None,
        target: Optional[ForgejoTarget] = None,
    ) -> None:
        self.cfg = cfg
        self.gh = source if source is not None else GitHubSource(cfg.github)
        self.fj = target if target is not None else ForgejoTarget(cfg.forgejo)
        self.verifier = ConsistencyVerifier(self.gh, self.fj)
        self.reports: List[RepositoryReport] = []

    def run(self) -> int:
        """Reconcile every owned repository; per-repository failures never abort."""
        try:
            self._log_config()
            self.gh.connect()
            self.fj.connect()

            repositories = self.gh.list_repositories(self.cfg.github.account)
            if not repositories:
                Logger.info(f"no repositories found for {self.cfg.github.account}")
                return EXIT_SUCCESS

            Logger.success(f"found {len(repositories)} repositories")
            total = len(repositories)
            for idx, descriptor in enumerate(repositories, start=1):
                self.reports.append(self._process_repository(descriptor, idx, total))

            if self.cfg.behavior.mirror and self.cfg.behavior.sync_after_batch:
                self._sync_batch()

            self._log_summary()
            return EXIT_SUCCESS
        except MirrorError as e:
            Logger.error(f"error: {e}")
            return e.exit_code
        except Exception as e:
            Logger.error(f"unexpected error: {e}")
            return EXIT_EXECUTION_ERROR

    def _log_config(self) -> None:
        Logger.success(
            f"config: github_user={self.cfg.github.account}, "
            f"forgejo_user={self.cfg.forgejo.owner}, "
            f"strategy={self.cfg.behavior.strategy.value}"
        )
        Logger.warn("mode: non-destructive (no deletes)")

    def _build_request(self, descriptor: RepositoryDescriptor) -> MigrationRequest:
        return MigrationRequest(
            clone_address=descriptor.clone_address,
            repo_owner=self.cfg.forgejo.owner,
            repo_name=descriptor.name,
            mirror=self.cfg.behavior.mirror,
            private=descriptor.is_private,
            auth_username=self.cfg.github.account,
            auth_password=self.cfg.github.token,
        )

    def _destination_label(self, name: str) -> str:
        return f"{self.cfg.forgejo.url}/{self.cfg.forgejo.owner}/{name}"

    def _process_repository(
        self, descriptor: RepositoryDescriptor, idx: int, total: int
    ) -> RepositoryReport:
        """migrate -> sync on conflict -> verify, for one repository."""
        owner = self.cfg.forgejo.owner
        prefix = f"[{idx}/{total}]"

        outcome = self.fj.migrate(self._build_request(descriptor))
        self._log_outcome(prefix, descriptor, outcome)

        conflict_sync = None
        if (
            outcome.status == MigrationStatus.ALREADY_EXISTS
            and self.cfg.behavior.mirror
            and self.cfg.behavior.sync_on_conflict
        ):
            conflict_sync = self.fj.mirror_sync(owner, descriptor.name)
            self._log_sync(prefix, descriptor.name, conflict_sync)

        verification = self.verifier.verify(
            descriptor.full_name, owner, descriptor.name, descriptor.default_branch
        )
        self._log_verification(prefix, descriptor, verification)

        return RepositoryReport(
            descriptor=descriptor,
            outcome=outcome,
            verification=verification,
            conflict_sync=conflict_sync,
        )

    def _sync_batch(self) -> None:
        eligible = [r for r in self.reports if r.outcome.eligible_for_sync]
        Logger.info(f"forcing mirror sync for {len(eligible)} repositories")
        total = len(eligible)
        for idx, report in enumerate(eligible, start=1):
            report.batch_sync = self.fj.mirror_sync(
                self.cfg.forgejo.owner, report.descriptor.name
            )
            self._log_sync(f"[{idx}/{total}]", report.descriptor.name, report.batch_sync)

    def _log_outcome(
        self, prefix: str, descriptor: RepositoryDescriptor, outcome: MigrationOutcome
    ) -> None:
        line = (
            f"{prefix} migrate {descriptor.full_name} -> "
            f"{self._destination_label(descriptor.name)} "
            f"({self.cfg.behavior.strategy.value}):"
        )
        if outcome.status == MigrationStatus.CREATED:
            Logger.success(f"{line} ok")
        elif outcome.status == MigrationStatus.ALREADY_EXISTS:
            Logger.warn(f"{line} exists")
        else:
            detail = outcome.message or "no message"
            Logger.error(f"{line} error ({outcome.http_status}): {detail}")

    def _log_sync(self, prefix: str, name: str, result: SyncResult) -> None:
        target = f"{self.cfg.forgejo.owner}/{name}"
        if result.ok:
            Logger.success(f"{prefix} mirror sync {target}: ok")
        else:
            detail = result.message or "no message"
            Logger.error(f"{prefix} mirror sync {target}: error ({result.http_status}): {detail}")

    def _log_verification(
        self,
        prefix: str,
        descriptor: RepositoryDescriptor,
        result: VerificationResult,
    ) -> None:
        heads = f"{short_sha(result.source_head)} / {short_sha(result.destination_head)}"
        if result.status == VerificationStatus.VERIFIED:
            Logger.success(f"{prefix} verify {descriptor.name}@{result.branch}: in sync ({heads})")
        elif result.status == VerificationStatus.MISMATCH:
            Logger.error(
                f"{prefix} verify {descriptor.name}@{result.branch}: MISMATCH "
                f"(github {short_sha(result.source_head)}, "
                f"forgejo {short_sha(result.destination_head)})"
            )
        elif result.branch is None:
            Logger.debug(f"{prefix} verify {descriptor.name}: skipped (empty repository)")
        else:
            Logger.warn(
                f"{prefix} verify {descriptor.name}@{result.branch}: "
                f"skipped, head not available ({heads})"
            )

    def _log_summary(self) -> None:
        migrations = Counter(r.outcome.status for r in self.reports)
        verifications = Counter(r.verification.status for r in self.reports)
        Logger.info(
            f"migrations: {migrations[MigrationStatus.CREATED]} created, "
            f"{migrations[MigrationStatus.ALREADY_EXISTS]} existing, "
            f"{migrations[MigrationStatus.FAILED]} failed"
        )
        Logger.info(
            f"verification: {verifications[VerificationStatus.VERIFIED]} in sync, "
            f"{verifications[VerificationStatus.MISMATCH]} mismatched, "
            f"{verifications[VerificationStatus.SKIPPED]} skipped"
        )
        if migrations[MigrationStatus.FAILED] or verifications[VerificationStatus.MISMATCH]:
            Logger.warn("run finished with problems, see above")
        else:
            Logger.success("mission accomplished")
