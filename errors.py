#!/usr/bin/env python3
"""Fatal error types for github2forgejo.

Only failures that stop a run live here. Per-repository problems are
reported through outcome values instead (see models.py).
"""

from __future__ import annotations

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_NETWORK_ERROR = 30
EXIT_AUTH_ERROR = 40
EXIT_SCHEDULE_ERROR = 50


class MirrorError(Exception):
    """Base class for errors that abort a run."""

    exit_code = EXIT_EXECUTION_ERROR


class ConfigError(MirrorError):
    """Invalid or missing configuration, raised before any repository is touched."""

    exit_code = EXIT_CONFIG_ERROR


class AuthError(MirrorError):
    """A credential was rejected by the source or destination API."""

    exit_code = EXIT_AUTH_ERROR


class NetworkError(MirrorError):
    """Transport failure or unexpected API response while listing."""

    exit_code = EXIT_NETWORK_ERROR


class ScheduleError(MirrorError):
    """Crontab could not be read or written."""

    exit_code = EXIT_SCHEDULE_ERROR
