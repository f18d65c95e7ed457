"""Author-id backfill for pull_requests and issues."""

from .backfill import backfill_table, run_backfill
from .runner import main
from .stats import BackfillStats

__all__ = ["main", "backfill_table", "run_backfill", "BackfillStats"]
