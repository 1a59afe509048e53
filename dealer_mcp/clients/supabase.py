"""Async Supabase (PostgREST) client for the remote record tables.

Each remote table stores one uploaded spreadsheet row per record inside a
JSONB column named ``data``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import aiohttp

from dealer_mcp.data.store import BATCH_SIZE, serialize_row

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=30)
DEFAULT_PAGE_SIZE = 1000


class SupabaseClientError(RuntimeError):
    """Raised for Supabase request/config errors with structured metadata."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status = status
        self.details = details or {}


class SupabaseClient:
    """Async client for reading and replacing record tables."""

    def __init__(self, url: str, api_key: str) -> None:
        self.base_url = url.strip().rstrip("/")
        self.api_key = api_key.strip()
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> SupabaseClient:
        if not self.base_url or not self.api_key:
            raise SupabaseClientError(
                "SUPABASE_URL and SUPABASE_KEY must both be configured.",
                code="MISSING_CONFIG",
            )
        self.session = aiohttp.ClientSession(
            headers={
                "apikey": self.api_key,
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self.session:
            await self.session.close()

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send one PostgREST request, retrying once on 5xx or transport failure."""
        if not self.session:
            raise RuntimeError("Client not entered as context manager")

        url = f"{self.base_url}/rest/v1/{table}"
        for attempt in range(2):  # 1 retry
            try:
                async with self.session.request(
                    method,
                    url,
                    params=params,
                    json=body,
                    headers=headers,
                    timeout=_REQUEST_TIMEOUT,
                ) as resp:
                    raw_text = await resp.text()
                    payload: Any = {}
                    if raw_text:
                        try:
                            payload = json.loads(raw_text)
                        except json.JSONDecodeError:
                            payload = {"raw": raw_text}

                    if resp.status >= 500 and attempt == 0:
                        logger.warning(
                            "Supabase %s %s returned HTTP %s; retrying", method, table, resp.status
                        )
                        continue
                    if resp.status >= 400:
                        message = f"Supabase request failed with HTTP {resp.status}."
                        if isinstance(payload, dict):
                            message = str(
                                payload.get("message")
                                or payload.get("error")
                                or payload.get("details")
                                or message
                            )
                        raise SupabaseClientError(
                            message,
                            code="SUPABASE_HTTP_ERROR",
                            status=resp.status,
                            details=payload if isinstance(payload, dict) else {"response": payload},
                        )
                    return payload
            except SupabaseClientError:
                raise
            except TimeoutError as exc:
                if attempt == 0:
                    logger.warning("Supabase %s %s timed out; retrying", method, table)
                    continue
                raise SupabaseClientError(
                    "Supabase request timed out.",
                    code="TIMEOUT",
                    details={"table": table, "method": method},
                ) from exc
            except aiohttp.ClientError as exc:
                if attempt == 0:
                    logger.warning("Supabase %s %s failed (%s); retrying", method, table, exc)
                    continue
                logger.error("Supabase client error (%s %s): %s", method, table, exc)
                raise SupabaseClientError(
                    "Supabase request failed due to a network/client error.",
                    code="NETWORK_ERROR",
                    details={"table": table, "method": method, "error": str(exc)},
                ) from exc

        raise SupabaseClientError(  # pragma: no cover
            "Supabase request failed after retry.",
            code="RETRY_EXHAUSTED",
            details={"table": table, "method": method},
        )

    async def fetch_table(
        self,
        table: str,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_rows: int | None = None,
    ) -> list[dict[str, Any]]:
        """Page through ``table`` and return the unwrapped ``data`` payloads."""
        if page_size <= 0:
            raise ValueError("page_size must be greater than 0")
        rows: list[dict[str, Any]] = []
        offset = 0
        while max_rows is None or len(rows) < max_rows:
            limit = page_size if max_rows is None else min(page_size, max_rows - len(rows))
            page = await self._request(
                "GET",
                table,
                params={
                    "select": "data",
                    "order": "id",
                    "offset": str(offset),
                    "limit": str(limit),
                },
            )
            if not isinstance(page, list) or not page:
                break
            for item in page:
                if isinstance(item, dict):
                    data = item.get("data", item)
                    if isinstance(data, dict):
                        rows.append(data)
            if len(page) < limit:
                break
            offset += len(page)
        logger.info("Fetched %d rows from %s", len(rows), table)
        return rows

    async def replace_table(
        self,
        table: str,
        rows: Iterable[Mapping[str, Any]],
        *,
        batch_size: int = BATCH_SIZE,
        progress: Callable[[int, int], None] | None = None,
    ) -> int:
        """Delete every row in ``table`` then insert ``rows`` in chunks."""
        if batch_size <= 0:
            raise ValueError("batch_size must be greater than 0")
        payloads = [{"data": serialize_row(row)} for row in rows]
        total = len(payloads)

        await self._request("DELETE", table, params={"id": "not.is.null"})
        uploaded = 0
        for start in range(0, total, batch_size):
            chunk = payloads[start:start + batch_size]
            try:
                await self._request(
                    "POST",
                    table,
                    body=chunk,
                    headers={"Prefer": "return=minimal"},
                )
            except SupabaseClientError as exc:
                exc.details.setdefault("aborted_at_row", start)
                raise
            uploaded += len(chunk)
            if progress is not None:
                progress(uploaded, total)
        logger.info("Replaced %s with %d rows", table, uploaded)
        return uploaded
