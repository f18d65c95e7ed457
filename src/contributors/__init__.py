"""Contributor sync: GitHub contributors list -> contributors table."""

from .runner import main
from .sync import build_contributor_rows, sync_contributors

__all__ = ["main", "build_contributor_rows", "sync_contributors"]
