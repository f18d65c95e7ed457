"""Shared fixtures: no real sleeping and no ambient credentials."""

from typing import List

import pytest


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Never block on real delays in tests."""
    sleeps: List[float] = []
    monkeypatch.setattr("time.sleep", lambda seconds: sleeps.append(seconds))
    return sleeps


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "GITHUB_TOKEN", "REPO_OWNER", "REPO_NAME",
                 "GITHUB_REPOSITORY", "USE_REPLICA_TABLES", "BATCH_SIZE", "REQUEST_DELAY_SEC", "BATCH_DELAY_SEC",
                 "BACKFILL_TABLES", "BACKFILL_PAGINATION"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LOCAL_SECRETS_FILE", str(tmp_path / "missing_secrets.json"))
