"""Paging loop that walks rows with a missing author_id and fixes them one at a time."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import requests

from src.github.http_client import GitHubAPIError, GitHubClient
from src.store.client import IS_NULL, NOT_NULL, StoreClient, gt
from src.store.config import TableNames

from .authors import RepositoryLookup, process_row
from .config import RATE_LIMIT_CHECK_EVERY
from .stats import BackfillStats

MISSING_AUTHOR_FILTERS = {
    "author_id": IS_NULL,
    "repository_id": NOT_NULL,
    "number": NOT_NULL,
}
ROW_COLUMNS = "id,number,repository_id,author_id,created_at"


def count_missing(store: StoreClient, table: str) -> int:
    return store.count(table, MISSING_AUTHOR_FILTERS)


def fetch_page(
    store: StoreClient,
    table: str,
    batch_size: int,
    offset: int = 0,
    after_id: Optional[Any] = None,
    pagination: str = "offset",
) -> List[Dict[str, Any]]:
    """Next page of rows missing an author.

    offset: ordered by created_at and skipped by row offset. Rows fixed on
    earlier pages leave the filtered set, so later offsets can step over
    rows that were never visited.
    keyset: ordered by id and resumed after the last id seen.
    """
    if pagination == "keyset":
        filters = dict(MISSING_AUTHOR_FILTERS)
        if after_id is not None:
            filters["id"] = gt(after_id)
        return store.select(table, ROW_COLUMNS, filters, order="id.asc", limit=batch_size)
    return store.select(
        table,
        ROW_COLUMNS,
        MISSING_AUTHOR_FILTERS,
        order="created_at.asc",
        limit=batch_size,
        offset=offset,
    )


def process_page(
    github: GitHubClient,
    store: StoreClient,
    repos: RepositoryLookup,
    tables: TableNames,
    item_table: str,
    rows: List[Dict[str, Any]],
    request_delay: float,
) -> BackfillStats:
    """Process rows in order; a failing row is counted and the loop moves on."""
    stats = BackfillStats()
    for index, row in enumerate(rows):
        stats.processed += 1
        try:
            process_row(github, store, repos, tables.contributors, item_table, row, stats)
        except Exception as exc:
            stats.errors += 1
            print(f"  [error] {item_table}#{row.get('id')} (#{row.get('number')}): {exc}")
        if index < len(rows) - 1 and request_delay > 0:
            time.sleep(request_delay)
    return stats


def log_rate_limit(github: GitHubClient) -> None:
    """Print the remaining core quota; failures are reported and ignored."""
    try:
        core = github.get_rate_limit()
    except (GitHubAPIError, requests.RequestException) as exc:
        print(f"[warn] rate limit check failed: {exc}")
        return
    print(f"[rate-limit] {core.get('remaining')}/{core.get('limit')} requests left, resets at {core.get('reset')}")


def backfill_table(
    github: GitHubClient,
    store: StoreClient,
    tables: TableNames,
    item_table: str,
    batch_size: int,
    request_delay: float = 0.0,
    batch_delay: float = 0.0,
    pagination: str = "offset",
    repos: Optional[RepositoryLookup] = None,
) -> BackfillStats:
    """Backfill one logical item table (`pull_requests` or `issues`)."""
    table = tables.item_table(item_table)
    repos = repos or RepositoryLookup(store, tables.repositories)
    stats = BackfillStats()

    total = count_missing(store, table)
    print(f"[backfill] {table}: {total} rows missing author_id")
    if total == 0:
        return stats

    page_number = 0
    offset = 0
    last_id = None
    while True:
        if pagination == "offset" and offset >= total:
            break
        rows = fetch_page(store, table, batch_size, offset=offset, after_id=last_id, pagination=pagination)
        if not rows:
            break

        page_number += 1
        page_stats = process_page(github, store, repos, tables, table, rows, request_delay)
        stats = stats + page_stats
        print(f"[backfill] {table} page {page_number}: {page_stats.summary()}")

        if page_number % RATE_LIMIT_CHECK_EVERY == 0:
            log_rate_limit(github)

        offset += batch_size
        last_id = rows[-1]["id"]
        if pagination == "offset" and offset >= total:
            break
        if pagination == "keyset" and len(rows) < batch_size:
            break
        if batch_delay > 0:
            time.sleep(batch_delay)

    print(f"[backfill] {table} done: {stats.summary()}")
    return stats


def run_backfill(
    github: GitHubClient,
    store: StoreClient,
    tables: TableNames,
    item_tables: List[str],
    batch_size: int,
    request_delay: float = 0.0,
    batch_delay: float = 0.0,
    pagination: str = "offset",
) -> BackfillStats:
    """Backfill each item table in turn and return the combined counts."""
    repos = RepositoryLookup(store, tables.repositories)
    total = BackfillStats()
    for item_table in item_tables:
        total = total + backfill_table(
            github,
            store,
            tables,
            item_table,
            batch_size,
            request_delay=request_delay,
            batch_delay=batch_delay,
            pagination=pagination,
            repos=repos,
        )
    return total


__all__ = [
    "MISSING_AUTHOR_FILTERS",
    "backfill_table",
    "count_missing",
    "fetch_page",
    "log_rate_limit",
    "process_page",
    "run_backfill",
]
