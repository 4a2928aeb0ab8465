"""Tests for CronInstaller."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from config import Config, ForgejoConfig, GitHubConfig, ScheduleConfig, SyncBehaviorConfig
from errors import ScheduleError
from scheduler import CronInstaller

SCRIPT = '/opt/github2forgejo/github2forgejo.py'


def _make_config(env_file=None, sync_after_batch=False) -> Config:
    return Config(
        github=GitHubConfig(api_url='https://api.github.com', token='gh-secret', account='octocat'),
        forgejo=ForgejoConfig(url='https://forgejo.example.com', token='fj-secret', owner='mirror-org'),
        behavior=SyncBehaviorConfig(sync_after_batch=sync_after_batch),
        schedule=ScheduleConfig(install_cron=True, cron_schedule='0 2 * * *', env_file=env_file),
    )


def _completed(stdout: str = '', returncode: int = 0) -> MagicMock:
    result = MagicMock()
    result.stdout = stdout
    result.returncode = returncode
    return result


def test_cron_line_contains_settings_but_no_tokens() -> None:
    line = CronInstaller(SCRIPT).build_cron_line(_make_config(sync_after_batch=True))

    assert line.startswith(f'0 2 * * * {SCRIPT} --github-user octocat')
    assert '--forgejo-url https://forgejo.example.com' in line
    assert '--forgejo-user mirror-org' in line
    assert '--strategy mirror' in line
    assert '--sync-all' in line
    assert line.endswith('>/dev/null 2>&1')
    assert 'gh-secret' not in line
    assert 'fj-secret' not in line


def test_cron_line_includes_env_file(tmp_path) -> None:
    env_file = tmp_path / 'sync.env'
    line = CronInstaller(SCRIPT).build_cron_line(_make_config(env_file=str(env_file)))

    assert '--env ' in line
    assert line.split('--env ')[1].split()[0].endswith('sync.env')


@patch('scheduler.subprocess.run')
def test_install_appends_to_existing_crontab(mock_run: MagicMock) -> None:
    mock_run.side_effect = [_completed('0 1 * * * /usr/bin/backup\n'), _completed()]

    assert CronInstaller(SCRIPT).install(_make_config()) is True

    write_call = mock_run.call_args_list[1]
    assert write_call.args[0] == ['crontab', '-']
    content = write_call.kwargs['input']
    assert content.startswith('0 1 * * * /usr/bin/backup\n')
    assert SCRIPT in content.splitlines()[1]


@patch('scheduler.subprocess.run')
def test_install_without_existing_crontab(mock_run: MagicMock) -> None:
    mock_run.side_effect = [_completed('', returncode=1), _completed()]

    assert CronInstaller(SCRIPT).install(_make_config()) is True
    content = mock_run.call_args_list[1].kwargs['input']
    assert content.count('\n') == 1


@patch('scheduler.subprocess.run')
def test_install_skips_when_already_present(mock_run: MagicMock) -> None:
    mock_run.return_value = _completed(f'0 2 * * * {SCRIPT} --github-user octocat\n')

    assert CronInstaller(SCRIPT).install(_make_config()) is False
    mock_run.assert_called_once()


@patch('scheduler.subprocess.run')
def test_install_failure_raises_schedule_error(mock_run: MagicMock) -> None:
    mock_run.side_effect = [
        _completed(''),
        subprocess.CalledProcessError(1, ['crontab', '-']),
    ]

    with pytest.raises(ScheduleError):
        CronInstaller(SCRIPT).install(_make_config())
