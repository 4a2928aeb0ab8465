#!/usr/bin/env python3
"""Forgejo API wrapper for migrating, syncing and inspecting repositories."""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from config import ForgejoConfig
from errors import AuthError, NetworkError
from logging_utils import Logger
from models import MigrationOutcome, MigrationRequest, MigrationStatus, SyncResult
from security import SecurityValidator
from utils import RateLimiter

REQUEST_TIMEOUT_S = 30
# Migration clones the source synchronously on the server side, so only
# connecting is bounded; the response may take as long as the clone does
MIGRATE_TIMEOUT_S = (REQUEST_TIMEOUT_S, None)

# Field names carrying a branch head commit, in lookup order
BRANCH_COMMIT_FIELDS = ("id", "sha")


def _response_message(response: requests.Response) -> Optional[str]:
    """Return the 'message' field of a JSON error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return None


class ForgejoTarget:
    """Wrapper around the Forgejo API for the destination owner."""

    def __init__(self, config: ForgejoConfig) -> None:
        self.config = config
        self.rate_limiter = RateLimiter(max_requests_per_minute=120)

    def _get_api_headers(self) -> dict:
        """Get standard API headers for Forgejo requests."""
        return {
            "Accept": "application/json",
            "Authorization": f"token {self.config.token}",
        }

    def _repo_url(self, owner: str, name: str) -> str:
        return f"{self.config.api_url}/repos/{quote(owner, safe='')}/{quote(name, safe='')}"

    def connect(self) -> None:
        """Preflight: check the instance is reachable and the token accepted."""
        Logger.info(f"init forgejo API: {self.config.url}")
        try:
            self.rate_limiter.wait_if_needed("Forgejo API")
            response = requests.get(
                f"{self.config.api_url}/user",
                headers=self._get_api_headers(),
                timeout=REQUEST_TIMEOUT_S,
            )
        except requests.RequestException as e:
            raise NetworkError(f"failed to contact forgejo api: {e}") from e

        if response.status_code in (401, 403):
            raise AuthError(
                f"authentication failed (forgejo): token rejected ({response.status_code})"
            )
        if response.status_code != 200:
            raise NetworkError(
                f"unexpected response from forgejo api: {response.status_code}"
            )

        try:
            login = response.json().get("login")
        except (ValueError, AttributeError):
            login = None
        Logger.debug(f"forgejo login: {login}")

    def migrate(self, request: MigrationRequest) -> MigrationOutcome:
        """Create the repository, or report that it already exists.

        409 is the idempotency contract of the migrate endpoint: asking twice
        for the same name never duplicates or overwrites anything.
        """
        url = f"{self.config.api_url}/repos/migrate"
        headers = self._get_api_headers()
        headers["Content-Type"] = "application/json"
        try:
            self.rate_limiter.wait_if_needed("Forgejo API")
            response = requests.post(
                url,
                headers=headers,
                json=request.to_payload(),
                timeout=MIGRATE_TIMEOUT_S,
            )
        except requests.RequestException as e:
            return MigrationOutcome(
                status=MigrationStatus.FAILED,
                http_status=0,
                message=SecurityValidator.sanitize_for_logging(str(e)),
            )

        if response.status_code == 201:
            return MigrationOutcome(MigrationStatus.CREATED, response.status_code)
        if response.status_code == 409:
            return MigrationOutcome(
                MigrationStatus.ALREADY_EXISTS,
                response.status_code,
                _response_message(response),
            )
        return MigrationOutcome(
            MigrationStatus.FAILED,
            response.status_code,
            _response_message(response),
        )

    def mirror_sync(self, owner: str, name: str) -> SyncResult:
        """Ask the destination to pull from its mirror source right now."""
        url = f"{self._repo_url(owner, name)}/mirror-sync"
        try:
            self.rate_limiter.wait_if_needed("Forgejo API")
            response = requests.post(
                url, headers=self._get_api_headers(), timeout=REQUEST_TIMEOUT_S
            )
        except requests.RequestException as e:
            return SyncResult(
                ok=False,
                http_status=0,
                message=SecurityValidator.sanitize_for_logging(str(e)),
            )

        if response.status_code == 200:
            return SyncResult(ok=True, http_status=200)
        return SyncResult(
            ok=False,
            http_status=response.status_code,
            message=_response_message(response),
        )

    def _get_json(self, url: str) -> Optional[Dict[str, Any]]:
        try:
            self.rate_limiter.wait_if_needed("Forgejo API")
            response = requests.get(
                url, headers=self._get_api_headers(), timeout=REQUEST_TIMEOUT_S
            )
        except requests.RequestException as e:
            Logger.warn(f"forgejo request failed: {e}")
            return None

        if response.status_code != 200:
            Logger.debug(f"forgejo returned {response.status_code} for {url}")
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    def get_branch_head(self, owner: str, name: str, branch: str) -> Optional[str]:
        """Return the head commit of branch, or None if the branch is not there.

        Forgejo versions disagree on the field name (commit.id vs commit.sha),
        so both are accepted and the first one present wins.
        """
        body = self._get_json(f"{self._repo_url(owner, name)}/branches/{quote(branch, safe='/')}")
        if body is None:
            return None
        commit = body.get("commit")
        if not isinstance(commit, dict):
            return None
        for field in BRANCH_COMMIT_FIELDS:
            if commit.get(field):
                return str(commit[field])
        return None

    def get_default_branch(self, owner: str, name: str) -> Optional[str]:
        body = self._get_json(self._repo_url(owner, name))
        if body is None:
            return None
        return body.get("default_branch") or None
