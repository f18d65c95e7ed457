"""Entry point wiring configuration, clients, and the author-id backfill."""

from __future__ import annotations

import sys
from typing import List, Optional

from src.github.http_client import GitHubClient
from src.secrets import MissingConfigurationError
from src.store.client import StoreClient

from .backfill import run_backfill
from .config import BackfillSettings, parse_args, resolve_settings


def _build_clients(settings: BackfillSettings):
    creds = settings.credentials
    return GitHubClient(creds.github_token), StoreClient(creds.supabase_url, creds.supabase_key)


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point; exits 1 on missing configuration or an unrecovered error."""

    args = parse_args(argv)
    try:
        settings = resolve_settings(args)
    except (MissingConfigurationError, ValueError) as exc:
        print(f"[error] {exc}")
        sys.exit(1)

    github, store = _build_clients(settings)
    print(
        f"[backfill] tables={','.join(settings.item_tables)} batch_size={settings.batch_size} "
        f"request_delay={settings.request_delay}s batch_delay={settings.batch_delay}s "
        f"pagination={settings.pagination}"
    )
    try:
        stats = run_backfill(
            github,
            store,
            settings.tables,
            list(settings.item_tables),
            settings.batch_size,
            request_delay=settings.request_delay,
            batch_delay=settings.batch_delay,
            pagination=settings.pagination,
        )
    except Exception as exc:
        print(f"[error] backfill failed: {exc}")
        sys.exit(1)

    print(f"[backfill] DONE: {stats.summary()}")


__all__ = ["main"]
