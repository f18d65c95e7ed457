"""Convenience shim to run only the author-id backfill."""

from __future__ import annotations

import sys

from src.backfill.runner import main as backfill_main


if __name__ == "__main__":
    backfill_main(sys.argv[1:])
