#!/usr/bin/env python3
"""Security validation utilities for github2forgejo."""

import re
from typing import List, Optional


class SecurityValidator:
    """Security validation utilities for input sanitization and validation."""

    # Maximum lengths to prevent oversized inputs reaching the APIs
    MAX_URL_LENGTH = 2048
    MAX_USERNAME_LENGTH = 100
    MAX_TOKEN_LENGTH = 512

    # Allowed characters for various inputs
    SAFE_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
    CRON_FIELD_PATTERN = re.compile(r"^[A-Za-z0-9*/,\-]+$")

    @classmethod
    def validate_url(cls, url: str, allowed_schemes: Optional[List[str]] = None) -> str:
        """Validate URL for security and return it without a trailing slash."""
        if not url or not isinstance(url, str):
            raise ValueError("URL must be a non-empty string")

        if len(url) > cls.MAX_URL_LENGTH:
            raise ValueError(f"URL exceeds maximum length of {cls.MAX_URL_LENGTH}")

        # Check for null bytes and control characters
        if "\x00" in url or any(ord(c) < 32 for c in url):
            raise ValueError("URL contains null bytes or control characters")

        if not url.startswith(("http://", "https://")):
            raise ValueError("URL must use http or https scheme")

        scheme = url.split("://")[0].lower()
        if allowed_schemes and scheme not in allowed_schemes:
            raise ValueError(
                f"URL scheme '{scheme}' not in allowed schemes: {allowed_schemes}"
            )

        # Embedded credentials would leak into logs and cron lines
        if "@" in url.split("://", 1)[1].split("/", 1)[0]:
            raise ValueError("URL must not embed credentials")

        return url.rstrip("/")

    @classmethod
    def validate_username(cls, username: str) -> str:
        """Validate username for security."""
        if not username or not isinstance(username, str):
            raise ValueError("Username must be a non-empty string")

        if len(username) > cls.MAX_USERNAME_LENGTH:
            raise ValueError(
                f"Username exceeds maximum length of {cls.MAX_USERNAME_LENGTH}"
            )

        # Check for null bytes and control characters
        if "\x00" in username or any(ord(c) < 32 for c in username):
            raise ValueError("Username contains null bytes or control characters")

        # Basic username validation
        if not cls.SAFE_USERNAME_PATTERN.match(username):
            raise ValueError("Username contains invalid characters")

        return username

    @classmethod
    def validate_token(cls, token: str, label: str = "Token") -> str:
        """Validate an API token without ever echoing its value."""
        if not token or not isinstance(token, str):
            raise ValueError(f"{label} must be a non-empty string")

        if len(token) > cls.MAX_TOKEN_LENGTH:
            raise ValueError(f"{label} exceeds maximum length of {cls.MAX_TOKEN_LENGTH}")

        if any(c.isspace() or ord(c) < 32 for c in token):
            raise ValueError(f"{label} contains whitespace or control characters")

        return token

    @classmethod
    def validate_cron_schedule(cls, schedule: str) -> str:
        """Validate a five-field cron expression."""
        if not schedule or not isinstance(schedule, str):
            raise ValueError("Cron schedule must be a non-empty string")

        fields = schedule.split()
        if len(fields) != 5:
            raise ValueError("Cron schedule must have exactly five fields")

        for field in fields:
            if not cls.CRON_FIELD_PATTERN.match(field):
                raise ValueError(f"Cron schedule field '{field}' contains invalid characters")

        return " ".join(fields)

    @classmethod
    def sanitize_for_logging(cls, message: str) -> str:
        """Sanitize message for safe logging by removing potential credentials."""
        if not message:
            return message

        # Patterns to redact
        patterns = [
            (r"https://[^:/@]+:[^@]+@", "https://[REDACTED]@"),  # URLs with credentials
            (r"authorization[=:\s]+(bearer|token)\s+[^\s]+", "authorization=[REDACTED]"),
            (r"auth_password[\"']?[=:\s]+[\"']?[^\s,\"'}]+", "auth_password=[REDACTED]"),
            (r"token[=:]\s*[^\s]+", "token=[REDACTED]"),  # Token assignments
            (r"password[=:]\s*[^\s]+", "password=[REDACTED]"),  # Password assignments
            (r"ghp_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub tokens
            (r"gho_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub OAuth tokens
            (r"ghu_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub user tokens
            (r"ghs_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub server tokens
            (r"ghr_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub refresh tokens
            (r"github_pat_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # Fine-grained
        ]

        sanitized = message
        for pattern, replacement in patterns:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

        return sanitized
