"""Per-row steps of the backfill: find the author, map it to a contributor, patch the row."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, Optional, Tuple

from src.github.http_client import AuthorProfile, GitHubClient
from src.store.client import StoreClient, StoreError, ZeroRowsUpdated, eq

from .stats import BackfillStats


class RepositoryLookup:
    """Cache of repository id -> (owner, name) for the duration of a run."""

    def __init__(self, store: StoreClient, table: str) -> None:
        self.store = store
        self.table = table
        self._cache: Dict[Any, Tuple[str, str]] = {}

    def owner_and_name(self, repository_id: Any) -> Tuple[str, str]:
        if repository_id in self._cache:
            return self._cache[repository_id]
        rows = self.store.select(self.table, "id,owner,name", {"id": eq(repository_id)}, limit=1)
        if not rows:
            raise StoreError(f"Repository {repository_id} not found in '{self.table}'")
        owner_name = (rows[0]["owner"], rows[0]["name"])
        self._cache[repository_id] = owner_name
        return owner_name


def resolve_author(
    github: GitHubClient,
    repos: RepositoryLookup,
    repository_id: Any,
    number: int,
) -> Optional[AuthorProfile]:
    """Return the GitHub author of item `number` in the referenced repository."""
    owner, name = repos.owner_and_name(repository_id)
    return github.get_issue_author(owner, name, number)


def contributor_row_from_profile(profile: AuthorProfile, seen_at: Optional[str] = None) -> Dict[str, Any]:
    seen_at = seen_at or dt.datetime.now(dt.timezone.utc).isoformat()
    return {
        "github_id": profile.github_id,
        "username": profile.login,
        "display_name": profile.name,
        "avatar_url": profile.avatar_url,
        "html_url": profile.html_url,
        "is_bot": profile.is_bot,
        "company": profile.company,
        "location": profile.location,
        "bio": profile.bio,
        "followers": profile.followers,
        "following": profile.following,
        "first_seen_at": seen_at,
        "last_updated_at": seen_at,
    }


def resolve_or_create_contributor(store: StoreClient, table: str, profile: AuthorProfile) -> Tuple[Any, bool]:
    """Return (contributor id, created).

    An existing contributor is returned untouched; its profile is not refreshed.
    """
    existing = store.select(table, "id", {"github_id": eq(profile.github_id)}, order="id.asc", limit=1)
    if existing:
        return existing[0]["id"], False

    inserted = store.insert(table, [contributor_row_from_profile(profile)])
    if not inserted:
        raise StoreError(f"Insert into '{table}' returned no row for github_id {profile.github_id}")
    print(f"  [new] contributor {profile.login} ({profile.github_id})")
    return inserted[0]["id"], True


def patch_author(store: StoreClient, table: str, row_id: Any, contributor_id: Any) -> None:
    """Set author_id on one row; an update that touches nothing is an error."""
    updated = store.update(table, {"author_id": contributor_id}, {"id": eq(row_id)})
    if not updated:
        raise ZeroRowsUpdated(f"Update of {table}#{row_id} affected 0 rows (blocked by a row-level policy?)")


def process_row(
    github: GitHubClient,
    store: StoreClient,
    repos: RepositoryLookup,
    contributors_table: str,
    item_table: str,
    row: Dict[str, Any],
    stats: BackfillStats,
) -> None:
    """Backfill a single row, recording skipped / created / updated on `stats`."""
    profile = resolve_author(github, repos, row["repository_id"], row["number"])
    if profile is None:
        stats.skipped += 1
        return

    contributor_id, created = resolve_or_create_contributor(store, contributors_table, profile)
    if created:
        stats.created += 1

    patch_author(store, item_table, row["id"], contributor_id)
    stats.updated += 1


__all__ = [
    "RepositoryLookup",
    "contributor_row_from_profile",
    "patch_author",
    "process_row",
    "resolve_author",
    "resolve_or_create_contributor",
]
