#!/usr/bin/env python3
"""Crontab installation for periodic github2forgejo runs."""

from __future__ import annotations

import os
import shlex
import subprocess
from typing import List

from config import DEFAULT_GITHUB_API_URL, Config
from errors import ScheduleError
from logging_utils import Logger


class CronInstaller:
    """Appends a github2forgejo line to the current user's crontab.

    Tokens are never written to the crontab; a scheduled run reads them
    from the environment or from the --env file.
    """

    def __init__(self, script_path: str) -> None:
        self.script_path = os.path.realpath(script_path)

    def build_command(self, cfg: Config) -> List[str]:
        command = [
            self.script_path,
            "--github-user", cfg.github.account,
            "--forgejo-url", cfg.forgejo.url,
            "--forgejo-user", cfg.forgejo.owner,
            "--strategy", cfg.behavior.strategy.value,
        ]
        if cfg.github.api_url != DEFAULT_GITHUB_API_URL:
            command += ["--github-api", cfg.github.api_url]
        if cfg.schedule.env_file:
            command += ["--env", os.path.realpath(cfg.schedule.env_file)]
        if not cfg.behavior.sync_on_conflict:
            command.append("--no-sync-on-conflict")
        if cfg.behavior.sync_after_batch:
            command.append("--sync-all")
        return command

    def build_cron_line(self, cfg: Config) -> str:
        command = " ".join(shlex.quote(part) for part in self.build_command(cfg))
        return f"{cfg.schedule.cron_schedule} {command} >/dev/null 2>&1"

    def _read_crontab(self) -> str:
        try:
            result = subprocess.run(
                ["crontab", "-l"], capture_output=True, text=True, check=False
            )
        except OSError as e:
            raise ScheduleError(f"crontab not available: {e}") from e
        # crontab -l exits non-zero when the user has no crontab yet
        return result.stdout if result.returncode == 0 else ""

    def install(self, cfg: Config) -> bool:
        """Install the cron line; returns False when one is already present."""
        current = self._read_crontab()
        if self.script_path in current:
            Logger.warn("cron already present")
            return False

        line = self.build_cron_line(cfg)
        content = current
        if content and not content.endswith("\n"):
            content += "\n"
        content += line + "\n"
        try:
            subprocess.run(
                ["crontab", "-"], input=content, capture_output=True, text=True, check=True
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise ScheduleError(f"failed to install cron: {e}") from e

        Logger.success(f"cron installed: {line}")
        return True
