#!/usr/bin/env python3
"""Utility functions for github2forgejo."""

import threading
import time
from typing import List, Optional

from logging_utils import Logger

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


class RateLimiter:
    """Rate limiter to prevent abuse and respect API limits."""

    def __init__(self, max_requests_per_minute: int = 60):
        self.max_requests = max_requests_per_minute
        self.requests: List[float] = []
        self.lock = threading.Lock()

    def wait_if_needed(self, operation_type: str = "API") -> None:
        """Wait if necessary to respect rate limits."""
        current_time = time.time()

        with self.lock:
            self._clean_old_requests(current_time)
            if len(self.requests) >= self.max_requests:
                wait_time = 60 - (current_time - self.requests[0])
                if wait_time > 0:
                    Logger.security_event(
                        "RATE_LIMIT_HIT",
                        f"rate limit reached for {operation_type}, "
                        f"waiting {wait_time:.2f}s",
                    )
                    time.sleep(wait_time)
                    current_time = time.time()
                    self._clean_old_requests(current_time)
            self.requests.append(current_time)

    def _clean_old_requests(self, current_time: float) -> None:
        """Remove requests older than 1 minute."""
        cutoff_time = current_time - 60
        self.requests = [
            req_time for req_time in self.requests if req_time > cutoff_time
        ]


def trim_value(value: Optional[str]) -> str:
    """Strip whitespace and one pair of surrounding quotes.

    Example: '  "octocat" ' -> 'octocat'
    """
    if value is None:
        return ""
    value = value.strip()
    for quote in ('"', "'"):
        if len(value) >= 2 and value.startswith(quote) and value.endswith(quote):
            value = value[1:-1]
            break
    return value.strip()


def parse_bool(value: Optional[str], default: bool) -> bool:
    """Interpret a flag-like string, falling back to default when unrecognized."""
    cleaned = trim_value(value).lower()
    if cleaned in TRUE_VALUES:
        return True
    if cleaned in FALSE_VALUES:
        return False
    return default


def short_sha(sha: Optional[str]) -> str:
    return sha[:10] if sha else "-"
