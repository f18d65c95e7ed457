"""Table naming and connection constants for the Supabase (PostgREST) store."""

from __future__ import annotations

from dataclasses import dataclass

REST_PATH = "/rest/v1"
REQUEST_TIMEOUT = 30
REPLICA_SUFFIX = "_replica"


@dataclass(frozen=True)
class TableNames:
    """Physical table names used by the jobs."""

    contributors: str = "contributors"
    pull_requests: str = "pull_requests"
    issues: str = "issues"
    repositories: str = "repositories"

    def item_table(self, kind: str) -> str:
        """Map `pull_requests` / `issues` to the configured physical table."""
        if kind == "pull_requests":
            return self.pull_requests
        if kind == "issues":
            return self.issues
        raise ValueError(f"Unknown item table '{kind}'")


def resolve_table_names(use_replica: bool = False) -> TableNames:
    """Return production names, or the `<name>_replica` variants."""

    if not use_replica:
        return TableNames()
    base = TableNames()
    return TableNames(
        contributors=base.contributors + REPLICA_SUFFIX,
        pull_requests=base.pull_requests + REPLICA_SUFFIX,
        issues=base.issues + REPLICA_SUFFIX,
        repositories=base.repositories + REPLICA_SUFFIX,
    )


__all__ = ["REST_PATH", "REQUEST_TIMEOUT", "REPLICA_SUFFIX", "TableNames", "resolve_table_names"]
