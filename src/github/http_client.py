"""GitHub REST helpers with the bounded retry rules used by the maintenance jobs."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import requests

from .config import (
    BASE_URL,
    MAX_RATE_LIMIT_ATTEMPTS,
    MAX_WAIT_ON_403,
    RATE_LIMIT_BUFFER_SEC,
    RATE_LIMIT_DEFAULT_WAIT_SEC,
    REQUEST_TIMEOUT,
    TRANSIENT_RETRIES,
    TRANSIENT_RETRY_DELAY_SEC,
    USER_AGENT,
)


class GitHubAPIError(RuntimeError):
    """Raised when GitHub answers with a status the caller cannot recover from."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitExceeded(GitHubAPIError):
    """Raised once the 403 wait-and-retry budget for a request is used up."""


@dataclass(frozen=True)
class AuthorProfile:
    """Public profile fields of an issue / pull request author."""

    github_id: int
    login: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None
    type: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    followers: Optional[int] = None
    following: Optional[int] = None

    @property
    def is_bot(self) -> bool:
        return self.type == "Bot"

    @classmethod
    def from_payload(cls, user: Mapping[str, Any]) -> "AuthorProfile":
        return cls(
            github_id=int(user["id"]),
            login=user.get("login") or "",
            name=user.get("name"),
            avatar_url=user.get("avatar_url"),
            html_url=user.get("html_url"),
            type=user.get("type"),
            company=user.get("company"),
            location=user.get("location"),
            bio=user.get("bio"),
            followers=user.get("followers"),
            following=user.get("following"),
        )


def log_http_error(resp: requests.Response, url: str) -> None:
    """Print a short, human-readable message when GitHub returns an error."""
    try:
        body = resp.json()
    except ValueError:
        body = {"text": (resp.text or "")[:300]}
    if not isinstance(body, dict):
        body = {"text": str(body)[:300]}
    msg = body.get("message") or body.get("error") or body.get("text")
    print(f"[error] HTTP {resp.status_code} for {url}\n  -> {msg}")


def rate_limit_wait_seconds(headers: Optional[Mapping[str, str]], now: Optional[float] = None) -> float:
    """Seconds to wait after a 403: reset time plus a buffer, capped."""
    headers = headers or {}
    now = time.time() if now is None else now
    reset = headers.get("X-RateLimit-Reset")
    if reset and str(reset).isdigit():
        reset_at = float(reset)
    else:
        reset_at = now + RATE_LIMIT_DEFAULT_WAIT_SEC
    wait_sec = max(0.0, reset_at - now) + RATE_LIMIT_BUFFER_SEC
    return min(wait_sec, float(MAX_WAIT_ON_403))


class GitHubClient:
    """Read-only GitHub REST client sharing one authenticated session."""

    def __init__(self, token: str, base_url: str = BASE_URL, timeout: int = REQUEST_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": USER_AGENT,
                "Authorization": f"Bearer {token}",
            }
        )

    def _url(self, path: str) -> str:
        path = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url}{path}"

    def get(self, path: str, **kwargs) -> requests.Response:
        return self.session.get(self._url(path), timeout=self.timeout, **kwargs)

    def get_contributors(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        """Fetch the first page of contributors; any failure raises."""
        path = f"/repos/{owner}/{repo}/contributors"
        resp = self.get(path)
        if not 200 <= resp.status_code < 300:
            log_http_error(resp, self._url(path))
            raise GitHubAPIError(
                f"GitHub API error: {resp.status_code} {resp.reason}",
                resp.status_code,
            )
        contributors = resp.json()
        if not isinstance(contributors, list):
            raise GitHubAPIError(f"Unexpected contributors payload for {owner}/{repo}", resp.status_code)
        print(f"[sync] fetched {len(contributors)} contributors from {owner}/{repo}")
        return contributors

    def get_issue_author(self, owner: str, repo: str, number: int) -> Optional[AuthorProfile]:
        """Return the author of an issue or pull request, or None when there is none.

        404 means the item is gone and yields None. A 403 waits for the rate
        limit reset and retries until MAX_RATE_LIMIT_ATTEMPTS consecutive 403s
        have been seen. Network errors and other statuses are retried
        TRANSIENT_RETRIES times with a fixed delay.
        """
        path = f"/repos/{owner}/{repo}/issues/{number}"
        rate_limited = 0
        transient = 0

        while True:
            try:
                resp = self.get(path)
            except requests.RequestException as exc:
                rate_limited = 0
                transient += 1
                if transient > TRANSIENT_RETRIES:
                    raise GitHubAPIError(f"Request for {path} failed: {exc}") from exc
                print(f"[retry {transient}/{TRANSIENT_RETRIES}] {exc} -> sleep {TRANSIENT_RETRY_DELAY_SEC}s")
                time.sleep(TRANSIENT_RETRY_DELAY_SEC)
                continue

            if resp.status_code == 404:
                return None

            if resp.status_code == 403:
                rate_limited += 1
                if rate_limited >= MAX_RATE_LIMIT_ATTEMPTS:
                    raise RateLimitExceeded(
                        f"Rate limited {rate_limited} times in a row for {path}", resp.status_code
                    )
                wait_sec = rate_limit_wait_seconds(resp.headers)
                print(f"[rate-limit] 403 for {path}; waiting {wait_sec:.0f}s")
                time.sleep(wait_sec)
                continue

            if not 200 <= resp.status_code < 300:
                rate_limited = 0
                transient += 1
                if transient > TRANSIENT_RETRIES:
                    log_http_error(resp, self._url(path))
                    raise GitHubAPIError(f"GitHub API error: {resp.status_code} for {path}", resp.status_code)
                print(
                    f"[retry {transient}/{TRANSIENT_RETRIES}] HTTP {resp.status_code} "
                    f"-> sleep {TRANSIENT_RETRY_DELAY_SEC}s"
                )
                time.sleep(TRANSIENT_RETRY_DELAY_SEC)
                continue

            user = (resp.json() or {}).get("user")
            if not user:
                return None
            return AuthorProfile.from_payload(user)

    def get_rate_limit(self) -> Dict[str, Any]:
        """Return the `core` bucket of /rate_limit."""
        resp = self.get("/rate_limit")
        if not 200 <= resp.status_code < 300:
            raise GitHubAPIError(f"GitHub API error: {resp.status_code} for /rate_limit", resp.status_code)
        body = resp.json() or {}
        return (body.get("resources") or {}).get("core") or body.get("rate") or {}


__all__ = [
    "AuthorProfile",
    "GitHubAPIError",
    "GitHubClient",
    "RateLimitExceeded",
    "log_http_error",
    "rate_limit_wait_seconds",
]
