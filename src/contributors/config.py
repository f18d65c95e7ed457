"""Configuration helpers for the contributor sync job."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import List, Optional

from src.settings import Credentials, default_target_repo, env_flag, load_credentials
from src.store.config import TableNames, resolve_table_names

CONFLICT_KEY = "github_id,repository"


@dataclass(frozen=True)
class SyncSettings:
    """Resolved runtime settings for the contributor sync."""

    credentials: Credentials
    owner: str
    repo: str
    tables: TableNames

    @property
    def repository_label(self) -> str:
        return f"{self.owner}/{self.repo}"


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the sync entry point."""

    owner, repo = default_target_repo()
    parser = argparse.ArgumentParser(
        description="Upsert a repository's GitHub contributors into the contributors table.",
    )
    parser.add_argument("--owner", default=owner)
    parser.add_argument("--repo", default=repo)
    parser.add_argument(
        "--use-replica",
        action="store_true",
        default=env_flag("USE_REPLICA_TABLES"),
        help="write to the *_replica tables",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    return build_arg_parser().parse_args(argv)


def resolve_settings(args: Optional[argparse.Namespace] = None) -> SyncSettings:
    """Combine CLI values with credentials; missing credentials raise."""

    args = args or parse_args([])
    return SyncSettings(
        credentials=load_credentials(),
        owner=args.owner,
        repo=args.repo,
        tables=resolve_table_names(bool(args.use_replica)),
    )


__all__ = ["CONFLICT_KEY", "SyncSettings", "build_arg_parser", "parse_args", "resolve_settings"]
