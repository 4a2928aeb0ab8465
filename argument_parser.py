#!/usr/bin/env python3
"""Command line argument parsing and configuration building.

Precedence for every setting: command line, then the --env file, then the
process environment, then built-in defaults.
"""

from __future__ import annotations

import argparse
import getpass
import os
import sys
from typing import Dict, List, Mapping, Optional

from dotenv import dotenv_values

from config import (DEFAULT_CRON_SCHEDULE, DEFAULT_GITHUB_API_URL, Config,
                    ForgejoConfig, GitHubConfig, ScheduleConfig,
                    SyncBehaviorConfig, Strategy)
from errors import ConfigError
from logging_utils import Logger
from security import SecurityValidator
from utils import parse_bool, trim_value

# Keys honoured from the environment and from --env files
ENV_KEYS = (
    "GITHUB_TOKEN",
    "FORGEJO_TOKEN",
    "GITHUB_USER",
    "FORGEJO_URL",
    "FORGEJO_USER",
    "STRATEGY",
    "CRON_SCHEDULE",
    "INSTALL_CRON",
    "SYNC_ON_CONFLICT",
    "SYNC_ALL",
)


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Mirror or clone every GitHub repository of a user into Forgejo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Required env (can be in --env file):
  GITHUB_TOKEN   GitHub token (read access to private repos)
  FORGEJO_TOKEN  Forgejo token (create/import repos)

Optional env:
  GITHUB_USER, FORGEJO_URL, FORGEJO_USER, STRATEGY, CRON_SCHEDULE,
  INSTALL_CRON, SYNC_ON_CONFLICT, SYNC_ALL

Examples:
  %(prog)s --github-user octocat --forgejo-url https://forgejo.example.com \\
           --forgejo-user octocat
  %(prog)s --env ~/.github2forgejo.env --strategy clone
  %(prog)s --env ~/.github2forgejo.env --sync-all --install-cron \\
           --cron-schedule "30 3 * * *"
        """,
    )
    return parser


def _add_github_arguments(parser: argparse.ArgumentParser) -> None:
    """Add GitHub-related arguments to parser."""
    parser.add_argument(
        "--github-user",
        dest="github_user",
        help="GitHub username owning the repositories (or GITHUB_USER)",
    )
    parser.add_argument(
        "--github-api",
        dest="github_api_url",
        default=DEFAULT_GITHUB_API_URL,
        help="Base URL of the GitHub API",
    )


def _add_forgejo_arguments(parser: argparse.ArgumentParser) -> None:
    """Add Forgejo-related arguments to parser."""
    parser.add_argument(
        "--forgejo-url",
        dest="forgejo_url",
        help="Forgejo base URL, https only (or FORGEJO_URL)",
    )
    parser.add_argument(
        "--forgejo-user",
        dest="forgejo_user",
        help="Forgejo user or organization receiving the repos (or FORGEJO_USER)",
    )


def _add_behavior_arguments(parser: argparse.ArgumentParser) -> None:
    """Add behavior and configuration arguments to parser."""
    parser.add_argument(
        "--strategy",
        dest="strategy",
        help="mirror (default) or clone for a one-time import",
    )
    parser.add_argument(
        "--env",
        dest="env_file",
        help="Optional .env file with KEY=VALUE lines",
    )
    parser.add_argument(
        "--no-sync-on-conflict",
        action="store_const",
        const=False,
        dest="sync_on_conflict",
        help="Do not force a mirror sync when the repository already exists",
    )
    parser.add_argument(
        "--sync-all",
        action="store_const",
        const=True,
        dest="sync_after_batch",
        help="Force a mirror sync of every repository after the batch",
    )


def _add_schedule_arguments(parser: argparse.ArgumentParser) -> None:
    """Add cron arguments to parser."""
    parser.add_argument(
        "--install-cron",
        action="store_const",
        const=True,
        dest="install_cron",
        help="Install a cron entry running this tool",
    )
    parser.add_argument(
        "--cron-schedule",
        dest="cron_schedule",
        help=f"Cron expression (default: \"{DEFAULT_CRON_SCHEDULE}\")",
    )


def load_environment(
    env_file: Optional[str], environ: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """Merge known keys from the process environment and an optional .env file."""
    environ = os.environ if environ is None else environ
    merged = {key: environ[key] for key in ENV_KEYS if environ.get(key) is not None}
    if not env_file:
        return merged

    if not os.path.isfile(env_file):
        raise ConfigError(f"env file not found: {env_file}")
    for key, value in dotenv_values(env_file).items():
        if key in ENV_KEYS and value is not None:
            merged[key] = value
    return merged


def _prompt(label: str, secret: bool, interactive: bool) -> str:
    if not interactive:
        raise ConfigError(f"missing value: {label}")
    if secret:
        value = getpass.getpass(f"{label}: ")
    else:
        value = input(f"{label}: ")
    value = trim_value(value)
    if not value:
        raise ConfigError(f"missing value: {label}")
    return value


def _resolve(
    cli_value: Optional[str], env: Mapping[str, str], key: str
) -> str:
    if cli_value:
        return trim_value(cli_value)
    return trim_value(env.get(key))


def build_config(
    args: argparse.Namespace,
    environ: Optional[Mapping[str, str]] = None,
    interactive: bool = False,
) -> Config:
    """Resolve, prompt for and validate every setting.

    Raises ConfigError on anything missing or malformed.
    """
    env = load_environment(args.env_file, environ)

    github_token = trim_value(env.get("GITHUB_TOKEN")) or _prompt(
        "GitHub token", True, interactive
    )
    forgejo_token = trim_value(env.get("FORGEJO_TOKEN")) or _prompt(
        "Forgejo token", True, interactive
    )
    github_user = _resolve(args.github_user, env, "GITHUB_USER") or _prompt(
        "GitHub username", False, interactive
    )
    forgejo_url = _resolve(args.forgejo_url, env, "FORGEJO_URL") or _prompt(
        "Forgejo URL (https://...)", False, interactive
    )
    forgejo_user = _resolve(args.forgejo_user, env, "FORGEJO_USER") or _prompt(
        "Forgejo user/org", False, interactive
    )

    strategy_value = (_resolve(args.strategy, env, "STRATEGY") or Strategy.MIRROR.value).lower()
    cron_schedule = _resolve(args.cron_schedule, env, "CRON_SCHEDULE") or DEFAULT_CRON_SCHEDULE

    install_cron = args.install_cron
    if install_cron is None:
        install_cron = parse_bool(env.get("INSTALL_CRON"), False)
    sync_on_conflict = args.sync_on_conflict
    if sync_on_conflict is None:
        sync_on_conflict = parse_bool(env.get("SYNC_ON_CONFLICT"), True)
    sync_after_batch = args.sync_after_batch
    if sync_after_batch is None:
        sync_after_batch = parse_bool(env.get("SYNC_ALL"), False)

    try:
        strategy = Strategy(strategy_value)
    except ValueError:
        raise ConfigError("invalid strategy (mirror|clone)") from None

    try:
        validated_github_api = SecurityValidator.validate_url(
            trim_value(args.github_api_url), ["https"]
        )
        validated_forgejo_url = SecurityValidator.validate_url(forgejo_url, ["https"])
        validated_github_user = SecurityValidator.validate_username(github_user)
        validated_forgejo_user = SecurityValidator.validate_username(forgejo_user)
        SecurityValidator.validate_token(github_token, "GitHub token")
        SecurityValidator.validate_token(forgejo_token, "Forgejo token")
        validated_schedule = SecurityValidator.validate_cron_schedule(cron_schedule)
    except ValueError as e:
        Logger.security_event(
            "CONFIG_VALIDATION_FAILED", f"configuration validation failed: {e}"
        )
        raise ConfigError(f"configuration validation error: {e}") from e

    Logger.security_event(
        "CONFIG_VALIDATION", "successfully validated all configuration inputs"
    )

    return Config(
        github=GitHubConfig(
            api_url=validated_github_api,
            token=github_token,
            account=validated_github_user,
        ),
        forgejo=ForgejoConfig(
            url=validated_forgejo_url,
            token=forgejo_token,
            owner=validated_forgejo_user,
        ),
        behavior=SyncBehaviorConfig(
            strategy=strategy,
            sync_on_conflict=sync_on_conflict,
            sync_after_batch=sync_after_batch,
        ),
        schedule=ScheduleConfig(
            install_cron=install_cron,
            cron_schedule=validated_schedule,
            env_file=args.env_file,
        ),
    )


def create_parser() -> argparse.ArgumentParser:
    parser = _create_argument_parser()
    _add_github_arguments(parser)
    _add_forgejo_arguments(parser)
    _add_behavior_arguments(parser)
    _add_schedule_arguments(parser)
    return parser


def parse_arguments(argv: Optional[List[str]] = None) -> Config:
    """Parse command line arguments and return configuration object."""
    args = create_parser().parse_args(argv)
    try:
        return build_config(args, interactive=sys.stdin.isatty())
    except ConfigError as e:
        Logger.error(f"error: {e}")
        sys.exit(e.exit_code)
