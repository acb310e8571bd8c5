"""Runtime configuration for the dashboard job client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

DEFAULT_API_BASE_URL = "http://localhost:4000/api"


@dataclass(slots=True)
class ApiSettings:
    """Backend connection settings."""

    base_url: str = DEFAULT_API_BASE_URL
    request_timeout_seconds: float = 30.0


@dataclass(slots=True)
class PollingSettings:
    """Job observation settings."""

    interval_seconds: float = 4.0
    job_list_limit: int = 20


@dataclass(slots=True)
class TagSettings:
    """Tag suggestion settings."""

    suggestion_limit: int = 15
    options_limit: int = 100


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    api: ApiSettings = field(default_factory=ApiSettings)
    polling: PollingSettings = field(default_factory=PollingSettings)
    tags: TagSettings = field(default_factory=TagSettings)

    @classmethod
    def from_env(cls, api_base_url: str | None = None) -> Settings:
        """Load settings from environment with defaults for a local backend."""

        return cls(
            api=ApiSettings(
                base_url=api_base_url
                or os.getenv("TWEET_DIGEST_API_BASE_URL", DEFAULT_API_BASE_URL),
                request_timeout_seconds=float(
                    os.getenv("TWEET_DIGEST_REQUEST_TIMEOUT_SECONDS", "30.0"),
                ),
            ),
            polling=PollingSettings(
                interval_seconds=float(os.getenv("TWEET_DIGEST_POLL_INTERVAL_SECONDS", "4.0")),
                job_list_limit=int(os.getenv("TWEET_DIGEST_JOB_LIST_LIMIT", "20")),
            ),
            tags=TagSettings(
                suggestion_limit=int(os.getenv("TWEET_DIGEST_TAG_SUGGESTION_LIMIT", "15")),
                options_limit=int(os.getenv("TWEET_DIGEST_TAG_OPTIONS_LIMIT", "100")),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for unusable values."""

        _validate_base_url(self.api.base_url)
        if self.api.request_timeout_seconds <= 0:
            raise ValueError("TWEET_DIGEST_REQUEST_TIMEOUT_SECONDS must be > 0.")
        if self.polling.interval_seconds <= 0:
            raise ValueError("TWEET_DIGEST_POLL_INTERVAL_SECONDS must be > 0.")
        if not 1 <= self.polling.job_list_limit <= 100:  # noqa: PLR2004
            raise ValueError("TWEET_DIGEST_JOB_LIST_LIMIT must be between 1 and 100.")
        if self.tags.suggestion_limit <= 0:
            raise ValueError("TWEET_DIGEST_TAG_SUGGESTION_LIMIT must be > 0.")
        if not 1 <= self.tags.options_limit <= 200:  # noqa: PLR2004
            raise ValueError("TWEET_DIGEST_TAG_OPTIONS_LIMIT must be between 1 and 200.")


def _validate_base_url(value: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(
            "Invalid TWEET_DIGEST_API_BASE_URL: "
            f"{value!r}. Expected an absolute URL with http:// or https:// scheme.",
        )
