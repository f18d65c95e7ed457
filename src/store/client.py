"""Minimal Supabase / PostgREST client wrapper used by the maintenance jobs."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional

import requests

from .config import REQUEST_TIMEOUT, REST_PATH

Filters = Mapping[str, str]

IS_NULL = "is.null"
NOT_NULL = "not.is.null"


def eq(value: Any) -> str:
    return f"eq.{value}"


def gt(value: Any) -> str:
    return f"gt.{value}"


class StoreError(RuntimeError):
    """Raised when the store rejects a request."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ZeroRowsUpdated(StoreError):
    """An update that succeeded at the HTTP level but touched no rows."""


def parse_content_range(value: Optional[str]) -> int:
    """Extract the total from a `Content-Range: 0-9/42` header."""
    if not value or "/" not in value:
        raise StoreError(f"Missing count in Content-Range header: {value!r}")
    total = value.rsplit("/", 1)[1]
    if not total.isdigit():
        raise StoreError(f"Unexpected Content-Range header: {value!r}")
    return int(total)


class StoreClient:
    """Thin wrapper around the PostgREST HTTP API that Supabase exposes."""

    def __init__(self, base_url: str, service_key: str, timeout: int = REQUEST_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        if not self.base_url.endswith(REST_PATH):
            self.base_url = f"{self.base_url}{REST_PATH}"
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
            }
        )

    def _url(self, table: str) -> str:
        return f"{self.base_url}/{table}"

    def _check(self, response: requests.Response, action: str, table: str) -> None:
        if response.status_code >= 300:
            raise StoreError(
                f"Failed to {action} '{table}': {response.status_code} {response.text[:300]}",
                response.status_code,
            )

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Filters] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"select": columns}
        params.update(filters or {})
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        response = self.session.get(self._url(table), params=params, timeout=self.timeout)
        self._check(response, "select from", table)
        return response.json()

    def count(self, table: str, filters: Optional[Filters] = None) -> int:
        """Exact row count for the filter, without transferring rows."""
        params: Dict[str, Any] = {"select": "*"}
        params.update(filters or {})
        response = self.session.head(
            self._url(table),
            params=params,
            headers={"Prefer": "count=exact"},
            timeout=self.timeout,
        )
        self._check(response, "count", table)
        return parse_content_range(response.headers.get("Content-Range"))

    def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        response = self.session.post(
            self._url(table),
            data=json.dumps(list(rows)),
            headers={"Prefer": "return=representation"},
            timeout=self.timeout,
        )
        self._check(response, "insert into", table)
        return response.json()

    def upsert(self, table: str, rows: Iterable[Mapping[str, Any]], on_conflict: str) -> List[Dict[str, Any]]:
        """Insert-or-overwrite keyed on `on_conflict` (comma separated columns)."""
        response = self.session.post(
            self._url(table),
            params={"on_conflict": on_conflict},
            data=json.dumps(list(rows)),
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
            timeout=self.timeout,
        )
        self._check(response, "upsert into", table)
        return response.json()

    def update(self, table: str, values: Mapping[str, Any], filters: Filters) -> List[Dict[str, Any]]:
        """PATCH matching rows and return the rows the store reports as changed."""
        if not filters:
            raise ValueError("Refusing to update without filters")
        response = self.session.patch(
            self._url(table),
            params=dict(filters),
            data=json.dumps(dict(values)),
            headers={"Prefer": "return=representation"},
            timeout=self.timeout,
        )
        self._check(response, "update", table)
        return response.json()

    def check_connection(self, table: str) -> bool:
        """Return True when an exact count against `table` succeeds."""
        try:
            self.count(table)
        except (StoreError, requests.RequestException) as exc:
            print(f"[error] store connection test failed: {exc}")
            return False
        print("[store] connection ok")
        return True


__all__ = [
    "IS_NULL",
    "NOT_NULL",
    "StoreClient",
    "StoreError",
    "ZeroRowsUpdated",
    "eq",
    "gt",
    "parse_content_range",
]
