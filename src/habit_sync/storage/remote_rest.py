# src/habit_sync/storage/remote_rest.py

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from ..errors import RemoteUnavailableError

logger = logging.getLogger(__name__)


class RestRemoteStore:
    """
    Account-keyed table behind a PostgREST-compatible HTTP API.

    Row shape: {account_id (unique), data (JSON), updated_at (timestamp)}.
    - upsert: POST ?on_conflict=account_id with "Prefer: resolution=merge-duplicates"
    - fetch:  GET  ?account_id=eq.<id>&order=updated_at.desc&limit=1
    - delete: DELETE ?account_id=eq.<id>

    The client is created lazily; pass `transport` to inject httpx.MockTransport in tests.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        table: str = "habit_data",
        access_token: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url or not base_url.strip():
            raise RuntimeError("Remote URL is not set. Set HABIT_REMOTE_URL in your .env.")
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._table = table
        self._access_token = access_token
        self._timeout = httpx.Timeout(
            connect=min(5.0, timeout_seconds),
            read=timeout_seconds,
            write=timeout_seconds,
            pool=min(5.0, timeout_seconds),
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
        bearer = self._access_token or self._api_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self._base_url}/rest/v1",
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(self, method: str, *, params: dict[str, str], **kwargs: Any) -> httpx.Response:
        client = self._get_client()
        try:
            resp = await client.request(
                method,
                f"/{self._table}",
                params=params,
                headers={**self._headers(), **kwargs.pop("headers", {})},
                **kwargs,
            )
        except httpx.HTTPError as e:
            raise RemoteUnavailableError(f"{method} {self._table} failed: {e.__class__.__name__}") from e

        if resp.status_code >= 400:
            raise RemoteUnavailableError(
                f"{method} {self._table} failed: HTTP {resp.status_code} {resp.text[:200]}"
            )
        return resp

    async def upsert(self, account_id: str, data: dict[str, Any]) -> None:
        await self._request(
            "POST",
            params={"on_conflict": "account_id"},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            content=json.dumps(
                {
                    "account_id": account_id,
                    "data": data,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                ensure_ascii=False,
            ),
        )
        logger.debug("Remote record upserted account=%s", account_id)

    async def fetch_latest(self, account_id: str) -> dict[str, Any] | None:
        resp = await self._request(
            "GET",
            params={
                "account_id": f"eq.{account_id}",
                "select": "data,updated_at",
                "order": "updated_at.desc",
                "limit": "1",
            },
        )
        try:
            rows = resp.json()
        except ValueError:
            logger.warning("Remote response is not JSON (account=%s)", account_id)
            return None
        if not isinstance(rows, list) or not rows:
            return None

        data = rows[0].get("data") if isinstance(rows[0], dict) else None
        # Some deployments store the document as a JSON string column.
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                return None
        return data if isinstance(data, dict) else None

    async def delete(self, account_id: str) -> None:
        await self._request("DELETE", params={"account_id": f"eq.{account_id}"})

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
