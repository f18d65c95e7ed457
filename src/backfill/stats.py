"""Counters returned by each backfill step."""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass
class BackfillStats:
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    created: int = 0
    errors: int = 0

    def __add__(self, other: "BackfillStats") -> "BackfillStats":
        return BackfillStats(**{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)})

    def summary(self) -> str:
        return (
            f"processed={self.processed} updated={self.updated} skipped={self.skipped} "
            f"created={self.created} errors={self.errors}"
        )


__all__ = ["BackfillStats"]
