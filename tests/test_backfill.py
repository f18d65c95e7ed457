"""Tests for src.backfill covering per-row outcomes, paging, delays and the runner.

Run with:
    pytest tests/test_backfill.py --maxfail=1 -v --cov=src.backfill --cov-report=term-missing
"""

from unittest.mock import MagicMock, patch

import pytest

from src.backfill import authors, backfill, runner
from src.backfill.stats import BackfillStats
from src.github.http_client import AuthorProfile
from src.store.client import ZeroRowsUpdated
from src.store.config import TableNames, resolve_table_names

from fakes import FakeGitHub, FakeStore


def _user(github_id, login, kind="User"):
    return {"id": github_id, "login": login, "avatar_url": f"https://a/{github_id}",
            "html_url": f"https://github.com/{login}", "type": kind}


def _item(row_id, number, created_at, repository_id=1):
    return {"id": row_id, "number": number, "repository_id": repository_id, "author_id": None,
            "created_at": created_at}


def _store(items, contributors=None, **kwargs):
    return FakeStore(
        {
            "repositories": [{"id": 1, "owner": "o", "name": "r", "github_id": 100}],
            "contributors": contributors or [],
            "issues": items,
            "pull_requests": [],
        },
        **kwargs,
    )


def _authors(table):
    return {row["id"]: row["author_id"] for row in table}


def test_two_missing_rows_one_page_end_to_end():
    store = _store(
        [_item(10, 5, "2024-01-01"), _item(11, 6, "2024-01-02")],
        contributors=[{"id": 7, "github_id": 42, "username": "octocat"}],
    )
    github = FakeGitHub({("o", "r", 5): _user(42, "octocat"), ("o", "r", 6): _user(43, "hubot")})

    stats = backfill.backfill_table(github, store, TableNames(), "issues", batch_size=50)

    assert stats == BackfillStats(processed=2, updated=2, skipped=0, created=1, errors=0)
    page_selects = [call for call in store.calls if call[0] == "select" and call[1] == "issues"]
    assert len(page_selects) == 1
    assert page_selects[0][3:] == ("created_at.asc", 50, 0)
    new_id = next(row["id"] for row in store.tables["contributors"] if row["github_id"] == 43)
    assert _authors(store.tables["issues"]) == {10: 7, 11: new_id}


def test_counting_uses_missing_author_filter():
    store = _store([])
    stats = backfill.backfill_table(FakeGitHub(), store, TableNames(), "issues", batch_size=50)
    assert stats == BackfillStats()
    assert store.calls == [("count", "issues", backfill.MISSING_AUTHOR_FILTERS)]


def test_rows_without_repository_or_number_are_ignored():
    rows = [_item(10, 5, "2024-01-01"), _item(11, None, "2024-01-02"), _item(12, 7, "2024-01-03", None)]
    store = _store(rows)
    github = FakeGitHub({("o", "r", 5): _user(42, "octocat")})
    stats = backfill.backfill_table(github, store, TableNames(), "issues", batch_size=50)
    assert stats.processed == 1
    assert github.lookups == [("o", "r", 5)]


def test_missing_remote_item_is_skipped_not_errored():
    store = _store([_item(10, 5, "2024-01-01")])
    stats = backfill.backfill_table(FakeGitHub(), store, TableNames(), "issues", batch_size=50)
    assert stats.skipped == 1
    assert stats.errors == 0
    assert store.tables["issues"][0]["author_id"] is None
    assert not [call for call in store.calls if call[0] in ("insert", "update")]


def test_rate_limited_row_is_an_error_and_loop_continues():
    store = _store([_item(10, 5, "2024-01-01"), _item(11, 6, "2024-01-02")])
    github = FakeGitHub({("o", "r", 6): _user(43, "hubot")}, rate_limited={("o", "r", 5)})

    stats = backfill.backfill_table(github, store, TableNames(), "issues", batch_size=50)

    assert stats.errors == 1
    assert stats.updated == 1
    assert _authors(store.tables["issues"])[10] is None


def test_existing_contributor_is_reused_without_insert():
    store = _store([], contributors=[{"id": 7, "github_id": 42, "username": "old-name"}])
    contributor_id, created = authors.resolve_or_create_contributor(
        store, "contributors", AuthorProfile.from_payload(_user(42, "octocat"))
    )
    assert (contributor_id, created) == (7, False)
    assert not [call for call in store.calls if call[0] == "insert"]
    assert store.tables["contributors"][0]["username"] == "old-name"


def test_new_contributor_row_marks_bots():
    store = _store([])
    contributor_id, created = authors.resolve_or_create_contributor(
        store, "contributors", AuthorProfile.from_payload(_user(99, "renovate[bot]", "Bot"))
    )
    assert created is True
    row = store.tables["contributors"][0]
    assert row["id"] == contributor_id
    assert row["github_id"] == 99
    assert row["is_bot"] is True
    assert row["first_seen_at"] == row["last_updated_at"]


def test_zero_row_update_is_a_failure():
    store = _store([_item(10, 5, "2024-01-01")], blocked_updates={"issues"})
    with pytest.raises(ZeroRowsUpdated):
        authors.patch_author(store, "issues", 10, 7)

    github = FakeGitHub({("o", "r", 5): _user(42, "octocat")})
    stats = backfill.backfill_table(github, store, TableNames(), "issues", batch_size=50)
    assert stats.updated == 0
    assert stats.errors == 1
    assert stats.created == 1


def test_unknown_repository_counts_as_error():
    store = _store([_item(10, 5, "2024-01-01", repository_id=99)])
    stats = backfill.backfill_table(FakeGitHub(), store, TableNames(), "issues", batch_size=50)
    assert stats.errors == 1


def test_repository_lookup_is_cached():
    store = _store([])
    lookup = authors.RepositoryLookup(store, "repositories")
    assert lookup.owner_and_name(1) == ("o", "r")
    assert lookup.owner_and_name(1) == ("o", "r")
    assert len([call for call in store.calls if call[1] == "repositories"]) == 1


def test_offset_paging_steps_over_rows_fixed_on_earlier_pages():
    rows = [_item(10, 1, "2024-01-01"), _item(11, 2, "2024-01-02"), _item(12, 3, "2024-01-03")]
    store = _store(rows)
    github = FakeGitHub({("o", "r", n): _user(40 + n, f"user{n}") for n in (1, 2, 3)})

    stats = backfill.backfill_table(github, store, TableNames(), "issues", batch_size=1)

    assert stats.updated == 2
    assert _authors(store.tables["issues"])[11] is None


def test_keyset_paging_visits_every_row():
    rows = [_item(10, 1, "2024-01-01"), _item(11, 2, "2024-01-02"), _item(12, 3, "2024-01-03")]
    store = _store(rows)
    github = FakeGitHub({("o", "r", n): _user(40 + n, f"user{n}") for n in (1, 2, 3)})

    stats = backfill.backfill_table(github, store, TableNames(), "issues", batch_size=1, pagination="keyset")

    assert stats.updated == 3
    assert all(author is not None for author in _authors(store.tables["issues"]).values())


def test_delays_between_rows_and_pages(no_sleep):
    rows = [_item(10, 1, "2024-01-01"), _item(11, 2, "2024-01-02"), _item(12, 3, "2024-01-03")]
    store = _store(rows)

    stats = backfill.backfill_table(
        FakeGitHub(), store, TableNames(), "issues", batch_size=2, request_delay=1.0, batch_delay=5.0
    )

    assert stats.skipped == 3
    assert no_sleep == [1.0, 5.0]


def test_rate_limit_is_checked_every_five_pages():
    rows = [_item(10 + n, n, f"2024-01-{n:02d}") for n in range(1, 12)]
    store = _store(rows)
    github = FakeGitHub()

    stats = backfill.backfill_table(github, store, TableNames(), "issues", batch_size=1, pagination="keyset")

    assert stats.processed == 11
    assert github.get_rate_limit.call_count == 2


def test_rate_limit_check_failure_is_ignored(capsys):
    github = MagicMock()
    github.get_rate_limit.side_effect = backfill.GitHubAPIError("GitHub API error: 500", 500)
    backfill.log_rate_limit(github)
    assert "rate limit check failed" in capsys.readouterr().out


def test_run_backfill_sums_tables_on_replicas():
    tables = resolve_table_names(True)
    store = FakeStore({
        "repositories_replica": [{"id": 1, "owner": "o", "name": "r"}],
        "contributors_replica": [],
        "pull_requests_replica": [_item(20, 8, "2024-01-01")],
        "issues_replica": [_item(30, 9, "2024-01-01")],
    })
    github = FakeGitHub({("o", "r", 8): _user(42, "octocat"), ("o", "r", 9): _user(42, "octocat")})

    stats = backfill.run_backfill(github, store, tables, ["pull_requests", "issues"], batch_size=50)

    assert stats == BackfillStats(processed=2, updated=2, skipped=0, created=1, errors=0)
    assert len(store.tables["contributors_replica"]) == 1


def test_runner_exits_when_credentials_missing(capsys):
    with pytest.raises(SystemExit) as excinfo:
        runner.main([])
    assert excinfo.value.code == 1
    assert "GITHUB_TOKEN" in capsys.readouterr().out


@patch("src.backfill.runner.run_backfill", return_value=BackfillStats(processed=2, updated=2))
@patch("src.backfill.runner._build_clients")
def test_runner_passes_settings(build_clients, run_mock, monkeypatch, capsys):
    monkeypatch.setenv("SUPABASE_URL", "https://s")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "k")
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    build_clients.return_value = (MagicMock(), MagicMock())

    runner.main(["--batch-size", "10", "--tables", "issues", "--use-replica"])

    args, kwargs = run_mock.call_args
    assert args[2].issues == "issues_replica"
    assert args[3] == ["issues"]
    assert args[4] == 10
    assert "DONE: processed=2 updated=2" in capsys.readouterr().out


@patch("src.backfill.runner.run_backfill", side_effect=RuntimeError("store down"))
@patch("src.backfill.runner._build_clients")
def test_runner_exits_on_unrecovered_error(build_clients, run_mock, monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://s")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "k")
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    build_clients.return_value = (MagicMock(), MagicMock())

    with pytest.raises(SystemExit) as excinfo:
        runner.main([])
    assert excinfo.value.code == 1


def test_runner_exits_on_unknown_backfill_table(monkeypatch, capsys):
    monkeypatch.setenv("SUPABASE_URL", "https://s")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "k")
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    monkeypatch.setenv("BACKFILL_TABLES", "issue,pulls")

    with pytest.raises(SystemExit) as excinfo:
        runner.main([])
    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert "[error] unknown backfill tables" in out
    assert "DONE" not in out


def test_contributor_with_rows_in_several_repositories_resolves_to_lowest_id():
    store = _store([], contributors=[
        {"id": 30, "github_id": 42, "repository": "o/other"},
        {"id": 7, "github_id": 42, "repository": "o/r"},
    ])
    contributor_id, created = authors.resolve_or_create_contributor(
        store, "contributors", AuthorProfile.from_payload(_user(42, "octocat"))
    )
    assert (contributor_id, created) == (7, False)
    select = next(call for call in store.calls if call[0] == "select" and call[1] == "contributors")
    assert select[3:5] == ("id.asc", 1)


def test_page_and_table_summaries_are_printed(capsys):
    store = _store([_item(10, 5, "2024-01-01"), _item(11, 6, "2024-01-02")])
    github = FakeGitHub({("o", "r", 5): _user(42, "octocat")})

    backfill.backfill_table(github, store, TableNames(), "issues", batch_size=50)

    out = capsys.readouterr().out
    assert "[backfill] issues: 2 rows missing author_id" in out
    assert "[backfill] issues page 1: processed=2 updated=1 skipped=1 created=1 errors=0" in out
    assert "[backfill] issues done: processed=2 updated=1 skipped=1 created=1 errors=0" in out
