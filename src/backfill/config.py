"""Configuration helpers for the author-id backfill job."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from src.settings import Credentials, env_flag, load_credentials
from src.store.config import TableNames, resolve_table_names

# env values stay strings here; argparse converts and rejects bad ones
BATCH_SIZE = "50"
REQUEST_DELAY_SEC = "1.0"
BATCH_DELAY_SEC = "5.0"
RATE_LIMIT_CHECK_EVERY = 5  # pages
ITEM_TABLES = ("pull_requests", "issues")
BACKFILL_TABLES = ",".join(ITEM_TABLES)
PAGINATION_MODES = ("offset", "keyset")
PAGINATION = "offset"


@dataclass(frozen=True)
class BackfillSettings:
    """Resolved runtime settings for the backfill."""

    credentials: Credentials
    tables: TableNames
    item_tables: Tuple[str, ...]
    batch_size: int
    request_delay: float
    batch_delay: float
    pagination: str


def split_tables(value: str) -> List[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the backfill entry point."""

    parser = argparse.ArgumentParser(
        description="Fill missing author_id references on pull_requests and issues.",
    )
    parser.add_argument("--batch-size", type=int, default=os.getenv("BATCH_SIZE", BATCH_SIZE))
    parser.add_argument("--request-delay", type=float, default=os.getenv("REQUEST_DELAY_SEC", REQUEST_DELAY_SEC))
    parser.add_argument("--batch-delay", type=float, default=os.getenv("BATCH_DELAY_SEC", BATCH_DELAY_SEC))
    parser.add_argument("--use-replica", action="store_true", default=env_flag("USE_REPLICA_TABLES"))
    parser.add_argument(
        "--tables",
        nargs="+",
        choices=ITEM_TABLES,
        default=split_tables(os.getenv("BACKFILL_TABLES", BACKFILL_TABLES)),
    )
    parser.add_argument(
        "--pagination",
        choices=PAGINATION_MODES,
        default=os.getenv("BACKFILL_PAGINATION", PAGINATION),
        help="offset: page by row offset; keyset: page by id after the last row seen",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    return build_arg_parser().parse_args(argv)


def resolve_settings(args: Optional[argparse.Namespace] = None) -> BackfillSettings:
    """Validate numeric options and attach credentials; missing credentials raise."""

    args = args or parse_args([])
    if args.batch_size <= 0:
        raise ValueError("--batch-size must be positive")
    if args.request_delay < 0 or args.batch_delay < 0:
        raise ValueError("delays cannot be negative")
    if not args.tables:
        raise ValueError("no tables to backfill; check BACKFILL_TABLES")
    unknown = [name for name in args.tables if name not in ITEM_TABLES]
    if unknown:
        raise ValueError(f"unknown backfill tables: {', '.join(unknown)} (expected {', '.join(ITEM_TABLES)})")
    if args.pagination not in PAGINATION_MODES:
        raise ValueError(f"unknown pagination mode '{args.pagination}'")
    return BackfillSettings(
        credentials=load_credentials(),
        tables=resolve_table_names(bool(args.use_replica)),
        item_tables=tuple(args.tables),
        batch_size=int(args.batch_size),
        request_delay=float(args.request_delay),
        batch_delay=float(args.batch_delay),
        pagination=args.pagination,
    )


__all__ = [
    "BATCH_SIZE",
    "REQUEST_DELAY_SEC",
    "BATCH_DELAY_SEC",
    "RATE_LIMIT_CHECK_EVERY",
    "ITEM_TABLES",
    "BACKFILL_TABLES",
    "PAGINATION_MODES",
    "PAGINATION",
    "split_tables",
    "BackfillSettings",
    "build_arg_parser",
    "parse_args",
    "resolve_settings",
]
