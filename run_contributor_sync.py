"""Convenience shim to run only the contributor sync."""

from __future__ import annotations

import sys

from src.contributors.runner import main as sync_main


if __name__ == "__main__":
    sync_main(sys.argv[1:])
