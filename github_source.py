#!/usr/bin/env python3
"""GitHub API wrapper for listing owned repositories and reading branch heads."""

from __future__ import annotations

from typing import List, Optional, Set

import github
import requests

from config import DEFAULT_GITHUB_API_URL, GitHubConfig
from errors import AuthError, NetworkError
from logging_utils import Logger
from models import RepositoryDescriptor
from utils import RateLimiter

PAGE_SIZE = 100
REQUEST_TIMEOUT_S = 30


class GitHubSource:
    """Wrapper around the GitHub API for the source account."""

    def __init__(self, config: GitHubConfig) -> None:
        self.config = config
        self.api: Optional[github.Github] = None
        self.rate_limiter = RateLimiter(
            max_requests_per_minute=80
        )  # 5000/hour for authenticated tokens

    def connect(self) -> None:
        """Authenticate and confirm which login the token belongs to."""
        Logger.info(f"init github API: {self.config.api_url}")
        try:
            auth = github.Auth.Token(self.config.token)
            if self.config.api_url != DEFAULT_GITHUB_API_URL:
                self.api = github.Github(base_url=self.config.api_url, auth=auth)
            else:
                self.api = github.Github(auth=auth)
            self.rate_limiter.wait_if_needed("GitHub API")
            login = self.api.get_user().login
        except github.BadCredentialsException as e:
            raise AuthError("authentication failed (github): invalid token") from e
        except github.GithubException as e:
            raise NetworkError(f"github error: {e}") from e
        except requests.RequestException as e:
            raise NetworkError(f"failed to contact github api: {e}") from e

        Logger.debug(f"github login: {login}")
        if login.lower() != self.config.account.lower():
            Logger.warn(
                f"authenticated as '{login}', not '{self.config.account}'; only "
                "repositories owned by the configured account will be listed"
            )

    def _get_api_headers(self) -> dict:
        """Get standard API headers for GitHub requests."""
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.config.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _fetch_page(self, page: int) -> list:
        url = f"{self.config.api_url}/user/repos"
        params = {
            "visibility": "all",
            "affiliation": "owner",
            "per_page": PAGE_SIZE,
            "page": page,
        }
        try:
            self.rate_limiter.wait_if_needed("GitHub API")
            response = requests.get(
                url,
                headers=self._get_api_headers(),
                params=params,
                timeout=REQUEST_TIMEOUT_S,
            )
        except requests.RequestException as e:
            raise NetworkError(f"failed to list github repositories: {e}") from e

        if response.status_code in (401, 403):
            raise AuthError(
                f"github rejected the token while listing repositories "
                f"({response.status_code})"
            )
        if response.status_code != 200:
            raise NetworkError(
                f"unexpected response listing github repositories: "
                f"{response.status_code}"
            )

        try:
            items = response.json()
        except ValueError as e:
            raise NetworkError(f"invalid JSON in github repository listing: {e}") from e
        if not isinstance(items, list):
            raise NetworkError("github repository listing is not a list")
        return items

    def list_repositories(self, account: str) -> List[RepositoryDescriptor]:
        """Return every repository owned by account, in listing order.

        Pages are requested until one comes back empty or short, so a
        listing of 150 repositories costs exactly two requests. Repositories
        the token can merely see (org membership, collaborations) are dropped
        by comparing the owner login, case-insensitively as GitHub does.
        """
        Logger.info(f"fetching github repositories for {account}")
        repositories: List[RepositoryDescriptor] = []
        seen: Set[str] = set()
        page = 1
        while True:
            items = self._fetch_page(page)
            if not items:
                break

            for item in items:
                owner = (item.get("owner") or {}).get("login", "")
                if owner.lower() != account.lower():
                    Logger.debug(f"ignoring {item.get('full_name')}: owned by {owner}")
                    continue
                descriptor = RepositoryDescriptor.from_api(item)
                if descriptor.name in seen:
                    Logger.debug(f"duplicate listing entry: {descriptor.full_name}")
                    continue
                seen.add(descriptor.name)
                repositories.append(descriptor)

            if len(items) < PAGE_SIZE:
                break
            page += 1

        Logger.info(f"found {len(repositories)} repositories owned by {account}")
        return repositories

    def get_branch_head(self, full_name: str, branch: str) -> Optional[str]:
        """Return the head commit SHA of branch, or None if it cannot be read."""
        if self.api is None:
            Logger.error("github API not initialized")
            return None
        try:
            self.rate_limiter.wait_if_needed("GitHub API")
            repo = self.api.get_repo(full_name, lazy=True)
            self.rate_limiter.wait_if_needed("GitHub API")
            return repo.get_branch(branch).commit.sha or None
        except github.GithubException as e:
            Logger.debug(f"github branch lookup failed for {full_name}@{branch}: {e.status}")
            return None
        except requests.RequestException as e:
            Logger.warn(f"github branch lookup failed for {full_name}@{branch}: {e}")
            return None
