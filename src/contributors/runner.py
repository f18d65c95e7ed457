"""Entry point wiring configuration, clients, and the contributor sync."""

from __future__ import annotations

import sys
from typing import List, Optional

from src.github.http_client import GitHubClient
from src.secrets import MissingConfigurationError
from src.store.client import StoreClient

from .config import SyncSettings, parse_args, resolve_settings
from .sync import sync_contributors


def _build_clients(settings: SyncSettings):
    creds = settings.credentials
    github = GitHubClient(creds.github_token)
    store = StoreClient(creds.supabase_url, creds.supabase_key)
    return github, store


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point; exits 1 on missing configuration or any sync failure."""

    args = parse_args(argv)
    try:
        settings = resolve_settings(args)
    except MissingConfigurationError as exc:
        print(f"[error] {exc}")
        sys.exit(1)

    github, store = _build_clients(settings)

    print("[sync] testing store connection...")
    if not store.check_connection(settings.tables.contributors):
        print("[error] connection tests failed")
        sys.exit(1)

    try:
        count = sync_contributors(github, store, settings.owner, settings.repo, settings.tables)
    except Exception as exc:
        print(f"[error] contributor sync failed: {exc}")
        sys.exit(1)

    print(f"[sync] DONE: {count} contributors synced for {settings.repository_label}")


__all__ = ["main"]
