"""Tests for SyncOrchestrator sequencing and reporting."""

from __future__ import annotations

from typing import List, Optional
from unittest.mock import MagicMock

from config import (
    Config,
    ForgejoConfig,
    GitHubConfig,
    SyncBehaviorConfig,
    Strategy,
)
from errors import EXIT_AUTH_ERROR, EXIT_NETWORK_ERROR, EXIT_SUCCESS, AuthError, NetworkError
from forgejo_target import ForgejoTarget
from github_source import GitHubSource
from models import (
    MigrationOutcome,
    MigrationStatus,
    RepositoryDescriptor,
    SyncResult,
    VerificationResult,
    VerificationStatus,
)
from sync_orchestrator import SyncOrchestrator

CREATED = MigrationOutcome(MigrationStatus.CREATED, 201)
EXISTS = MigrationOutcome(MigrationStatus.ALREADY_EXISTS, 409)
FAILED = MigrationOutcome(MigrationStatus.FAILED, 500, 'internal error')


def _make_config(
    strategy: Strategy = Strategy.MIRROR,
    sync_on_conflict: bool = True,
    sync_after_batch: bool = False,
) -> Config:
    return Config(
        github=GitHubConfig(
            api_url='https://api.github.com',
            token='gh-token',
            account='octocat',
        ),
        forgejo=ForgejoConfig(
            url='https://forgejo.example.com',
            token='fj-token',
            owner='mirror-org',
        ),
        behavior=SyncBehaviorConfig(
            strategy=strategy,
            sync_on_conflict=sync_on_conflict,
            sync_after_batch=sync_after_batch,
        ),
    )


def _descriptor(name: str, default_branch: Optional[str] = 'main') -> RepositoryDescriptor:
    return RepositoryDescriptor(
        name=name,
        full_name=f'octocat/{name}',
        owner='octocat',
        is_private=False,
        clone_address=f'https://github.com/octocat/{name}.git',
        default_branch=default_branch,
    )


def _make_orchestrator(
    cfg: Config,
    repos: List[RepositoryDescriptor],
    outcomes: List[MigrationOutcome],
    heads: Optional[dict] = None,
):
    heads = heads if heads is not None else {'main': 'abc'}
    source = MagicMock(spec=GitHubSource)
    source.list_repositories.return_value = repos
    source.get_branch_head.side_effect = lambda _full, branch: heads.get(branch)

    target = MagicMock(spec=ForgejoTarget)
    target.migrate.side_effect = outcomes
    target.mirror_sync.return_value = SyncResult(ok=True, http_status=200)
    target.get_branch_head.side_effect = lambda _o, _n, branch: heads.get(branch)
    target.get_default_branch.return_value = None

    return SyncOrchestrator(cfg, source=source, target=target), source, target


def test_conflict_triggers_sync_before_verification() -> None:
    """409 on 'foo' with sync on conflict: exactly one sync, then verify."""
    orchestrator, _, target = _make_orchestrator(
        _make_config(), [_descriptor('foo')], [EXISTS]
    )

    assert orchestrator.run() == EXIT_SUCCESS

    target.mirror_sync.assert_called_once_with('mirror-org', 'foo')
    call_names = [c[0] for c in target.method_calls]
    first_sync = call_names.index('mirror_sync')
    first_branch_lookup = call_names.index('get_branch_head')
    assert first_sync < first_branch_lookup
    report = orchestrator.reports[0]
    assert report.conflict_sync is not None and report.conflict_sync.ok
    assert report.verification.status == VerificationStatus.VERIFIED


def test_conflict_sync_disabled() -> None:
    orchestrator, _, target = _make_orchestrator(
        _make_config(sync_on_conflict=False), [_descriptor('foo')], [EXISTS]
    )

    orchestrator.run()

    target.mirror_sync.assert_not_called()


def test_clone_strategy_never_syncs() -> None:
    orchestrator, _, target = _make_orchestrator(
        _make_config(strategy=Strategy.CLONE, sync_after_batch=True),
        [_descriptor('foo')],
        [EXISTS],
    )

    orchestrator.run()

    target.mirror_sync.assert_not_called()
    request = target.migrate.call_args.args[0]
    assert request.mirror is False


def test_migration_request_built_from_descriptor() -> None:
    orchestrator, _, target = _make_orchestrator(
        _make_config(), [_descriptor('foo')], [CREATED]
    )

    orchestrator.run()

    request = target.migrate.call_args.args[0]
    assert request.repo_owner == 'mirror-org'
    assert request.repo_name == 'foo'
    assert request.clone_address == 'https://github.com/octocat/foo.git'
    assert request.mirror is True
    assert request.private is False
    assert request.auth_username == 'octocat'
    assert request.auth_password == 'gh-token'


def test_empty_repository_skips_verification_but_reports_migration() -> None:
    orchestrator, source, _ = _make_orchestrator(
        _make_config(), [_descriptor('bar', default_branch=None)], [CREATED]
    )

    assert orchestrator.run() == EXIT_SUCCESS

    report = orchestrator.reports[0]
    assert report.outcome.status == MigrationStatus.CREATED
    assert report.verification == VerificationResult(VerificationStatus.SKIPPED)
    source.get_branch_head.assert_not_called()


def test_failure_does_not_abort_batch_and_is_still_verified() -> None:
    """A failed migration is recorded, verified anyway, and the loop goes on."""
    orchestrator, _, _ = _make_orchestrator(
        _make_config(),
        [_descriptor('one'), _descriptor('two'), _descriptor('three')],
        [FAILED, CREATED, EXISTS],
    )

    assert orchestrator.run() == EXIT_SUCCESS

    statuses = [r.outcome.status for r in orchestrator.reports]
    assert statuses == [
        MigrationStatus.FAILED,
        MigrationStatus.CREATED,
        MigrationStatus.ALREADY_EXISTS,
    ]
    assert orchestrator.reports[0].verification.status == VerificationStatus.VERIFIED


def test_batch_sync_covers_only_eligible_repositories() -> None:
    orchestrator, _, target = _make_orchestrator(
        _make_config(sync_on_conflict=True, sync_after_batch=True),
        [_descriptor('one'), _descriptor('two'), _descriptor('three')],
        [FAILED, CREATED, EXISTS],
    )

    orchestrator.run()

    synced = [c.args[1] for c in target.mirror_sync.call_args_list]
    # 'three' is synced on conflict and again in the batch pass
    assert synced == ['three', 'two', 'three']
    assert orchestrator.reports[0].batch_sync is None
    assert orchestrator.reports[1].batch_sync.ok
    assert orchestrator.reports[2].batch_sync.ok


def test_mismatch_does_not_change_exit_code() -> None:
    source_heads = {'main': 'abc'}
    orchestrator, _, target = _make_orchestrator(
        _make_config(), [_descriptor('foo')], [CREATED], heads=source_heads
    )
    target.get_branch_head.side_effect = lambda _o, _n, _branch: 'def'

    assert orchestrator.run() == EXIT_SUCCESS
    assert orchestrator.reports[0].verification.status == VerificationStatus.MISMATCH


def test_no_repositories_ends_successfully() -> None:
    orchestrator, _, target = _make_orchestrator(_make_config(), [], [])

    assert orchestrator.run() == EXIT_SUCCESS
    target.migrate.assert_not_called()
    assert orchestrator.reports == []


def test_listing_auth_failure_is_fatal() -> None:
    orchestrator, source, target = _make_orchestrator(_make_config(), [], [])
    source.list_repositories.side_effect = AuthError('bad token')

    assert orchestrator.run() == EXIT_AUTH_ERROR
    target.migrate.assert_not_called()


def test_destination_unreachable_is_fatal_before_listing() -> None:
    orchestrator, source, _ = _make_orchestrator(_make_config(), [_descriptor('foo')], [])
    orchestrator.fj.connect.side_effect = NetworkError('unreachable')

    assert orchestrator.run() == EXIT_NETWORK_ERROR
    source.list_repositories.assert_not_called()
