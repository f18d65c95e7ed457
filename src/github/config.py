"""Central configuration constants for talking to the GitHub REST API."""

from __future__ import annotations

import os

USER_AGENT = "fix-contributor-table"
BASE_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
REQUEST_TIMEOUT = int(os.getenv("GITHUB_REQUEST_TIMEOUT", "30"))

# 403 handling for single-item lookups
MAX_RATE_LIMIT_ATTEMPTS = 3
RATE_LIMIT_DEFAULT_WAIT_SEC = 60  # used when X-RateLimit-Reset is absent
RATE_LIMIT_BUFFER_SEC = 5
MAX_WAIT_ON_403 = int(os.getenv("MAX_WAIT_ON_403", "300"))

# any other non-2xx response or network error
TRANSIENT_RETRIES = 2
TRANSIENT_RETRY_DELAY_SEC = 2

__all__ = [
    "USER_AGENT",
    "BASE_URL",
    "REQUEST_TIMEOUT",
    "MAX_RATE_LIMIT_ATTEMPTS",
    "RATE_LIMIT_DEFAULT_WAIT_SEC",
    "RATE_LIMIT_BUFFER_SEC",
    "MAX_WAIT_ON_403",
    "TRANSIENT_RETRIES",
    "TRANSIENT_RETRY_DELAY_SEC",
]
