#!/usr/bin/env python3
"""
github2forgejo - Mirror or clone every repository of a GitHub user into a
Forgejo user or organization.

This tool lists all repositories owned by a GitHub account and asks Forgejo
to migrate each one, either as a continuously updated mirror or as a
one-time clone. It never deletes anything on either side: repositories that
already exist are left in place (and optionally re-synced), and every
repository is verified by comparing head commits of its default branch.

Copyright (c) 2025 Michele Tavella <meeghele@proton.me>
Licensed under the MIT License. See LICENSE file for details.

Author: Michele Tavella <meeghele@proton.me>
License: MIT
"""

from __future__ import annotations

import sys
from typing import NoReturn

from argument_parser import parse_arguments
from errors import EXIT_SUCCESS, ScheduleError
from logging_utils import Logger
from scheduler import CronInstaller
from sync_orchestrator import SyncOrchestrator


def main() -> NoReturn:
    cfg = parse_arguments()
    orchestrator = SyncOrchestrator(cfg)
    exit_code = orchestrator.run()

    if exit_code == EXIT_SUCCESS and cfg.schedule.install_cron:
        try:
            CronInstaller(sys.argv[0]).install(cfg)
        except ScheduleError as e:
            Logger.error(f"error: {e}")
            exit_code = e.exit_code

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
