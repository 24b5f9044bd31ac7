"""Supabase (PostgREST) remote store."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from civicsync.config import Settings
from civicsync.store.base import Order, StoreError, StoreOk, StoreResult
from civicsync.utils.logging import get_logger


logger = get_logger(__name__)


class SupabaseRemoteStore:
    """Minimal PostgREST client for the reports table."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.api_key = self.settings.get_supabase_key()
        self.base_url = f"{str(self.settings.supabase_url).rstrip('/')}/rest/v1"
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.settings.remote_timeout_seconds,
            transport=self.transport,
        )

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
    ) -> StoreResult:
        try:
            with self._client() as client:
                response = client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.warning("supabase.request.failed method=%s path=%s error=%s", method, path, exc)
            return StoreError(message=str(exc))

        if response.status_code >= 400:
            logger.warning(
                "supabase.request.rejected method=%s path=%s status=%s",
                method,
                path,
                response.status_code,
            )
            return StoreError(message=response.text, status_code=response.status_code)

        try:
            payload = response.json() if response.content else []
        except ValueError as exc:
            return StoreError(message=f"invalid JSON response: {exc}", status_code=response.status_code)
        return StoreOk(data=payload)

    def insert(self, table: str, record: Mapping[str, Any]) -> StoreResult:
        result = self._send("POST", f"/{table}", json=[dict(record)])
        return _single_row(result, table)

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Mapping[str, Any]] = None,
        order: Optional[Order] = None,
    ) -> StoreResult:
        params: dict[str, str] = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if order is not None:
            direction = "desc" if order.descending else "asc"
            params["order"] = f"{order.column}.{direction}"
        return self._send("GET", f"/{table}", params=params)

    def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> StoreResult:
        result = self._send("PATCH", f"/{table}", params={"id": f"eq.{record_id}"}, json=dict(patch))
        return _single_row(result, table)

    def rpc(self, function: str, params: Mapping[str, Any]) -> StoreResult:
        return self._send("POST", f"/rpc/{function}", json=dict(params))


def _single_row(result: StoreResult, table: str) -> StoreResult:
    """Unwrap PostgREST's list representation into a single row."""
    if isinstance(result, StoreError):
        return result
    rows = result.data
    if isinstance(rows, list):
        if not rows:
            return StoreError(message=f"no {table} row returned")
        return StoreOk(data=rows[0])
    return result
