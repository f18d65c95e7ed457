"""Fetch a repository's contributors from GitHub and upsert them into the store."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from src.github.http_client import GitHubClient
from src.store.client import StoreClient
from src.store.config import TableNames

from .config import CONFLICT_KEY


def utc_now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def build_contributor_rows(
    contributors: List[Dict[str, Any]],
    repository_label: str,
    refreshed_at: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Map GitHub contributor records to rows for the contributors table."""
    refreshed_at = refreshed_at or utc_now_iso()
    return [
        {
            "username": contributor.get("login"),
            "github_id": contributor.get("id"),
            "avatar_url": contributor.get("avatar_url"),
            "html_url": contributor.get("html_url"),
            "contributions": contributor.get("contributions"),
            "repository": repository_label,
            "type": contributor.get("type"),
            "updated_at": refreshed_at,
        }
        for contributor in contributors
    ]


def store_contributors(store: StoreClient, rows: List[Dict[str, Any]], table: str) -> List[Dict[str, Any]]:
    """Write every row in one upsert keyed on (github_id, repository)."""
    stored = store.upsert(table, rows, on_conflict=CONFLICT_KEY)
    print(f"[sync] stored {len(rows)} contributors in '{table}'")
    return stored


def sync_contributors(
    github: GitHubClient,
    store: StoreClient,
    owner: str,
    repo: str,
    tables: Optional[TableNames] = None,
) -> int:
    """Run the whole sync for `owner/repo`; errors propagate to the caller."""
    tables = tables or TableNames()
    label = f"{owner}/{repo}"
    print(f"[sync] processing repository: {label}")

    contributors = github.get_contributors(owner, repo)
    rows = build_contributor_rows(contributors, label)
    if not rows:
        print(f"[sync] no contributors returned for {label}; nothing to store")
        return 0

    store_contributors(store, rows, tables.contributors)
    return len(rows)


__all__ = ["build_contributor_rows", "store_contributors", "sync_contributors", "utc_now_iso"]
