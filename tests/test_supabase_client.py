"""Tests for the async Supabase (PostgREST) client."""

from __future__ import annotations

import json
from typing import Any

import aiohttp
import pytest

from dealer_mcp.clients.supabase import SupabaseClient, SupabaseClientError


class _FakeResponse:
    def __init__(self, status: int, payload: Any = None):
        self.status = status
        self._text = "" if payload is None else json.dumps(payload)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return None

    async def text(self):
        return self._text


class _FakeSession:
    """Replays queued responses (or raises queued exceptions) in order."""

    def __init__(self, *outcomes):
        self._outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


def _client(*outcomes) -> tuple[SupabaseClient, _FakeSession]:
    client = SupabaseClient("https://example.supabase.co/", "key")
    session = _FakeSession(*outcomes)
    client.session = session
    return client, session


class TestConfig:
    async def test_missing_config(self):
        with pytest.raises(SupabaseClientError) as excinfo:
            async with SupabaseClient("", ""):
                pass
        assert excinfo.value.code == "MISSING_CONFIG"

    async def test_request_requires_context(self):
        client = SupabaseClient("https://example.supabase.co", "key")
        with pytest.raises(RuntimeError, match="context manager"):
            await client.fetch_table("sales_overview")


class TestFetchTable:
    async def test_pages_and_unwraps_data(self):
        client, session = _client(
            _FakeResponse(200, [{"data": {"n": 1}}, {"data": {"n": 2}}]),
            _FakeResponse(200, [{"data": {"n": 3}}]),
        )
        rows = await client.fetch_table("sales_overview", page_size=2)
        assert rows == [{"n": 1}, {"n": 2}, {"n": 3}]
        assert session.calls[0]["url"] == "https://example.supabase.co/rest/v1/sales_overview"
        assert session.calls[0]["params"] == {"select": "data", "order": "id", "offset": "0", "limit": "2"}
        assert session.calls[1]["params"]["offset"] == "2"

    async def test_max_rows_caps_paging(self):
        client, session = _client(
            _FakeResponse(200, [{"data": {"n": 1}}, {"data": {"n": 2}}]),
            _FakeResponse(200, [{"data": {"n": 3}}]),
        )
        rows = await client.fetch_table("sales_overview", page_size=2, max_rows=3)
        assert len(rows) == 3
        assert session.calls[1]["params"]["limit"] == "1"
        assert len(session.calls) == 2

    async def test_empty_table(self):
        client, _ = _client(_FakeResponse(200, []))
        assert await client.fetch_table("sales_overview") == []

    async def test_rejects_bad_page_size(self):
        client, _ = _client()
        with pytest.raises(ValueError):
            await client.fetch_table("sales_overview", page_size=0)


class TestRetries:
    async def test_retries_once_on_5xx(self):
        client, session = _client(_FakeResponse(503, {"message": "busy"}), _FakeResponse(200, []))
        assert await client.fetch_table("sales_overview") == []
        assert len(session.calls) == 2

    async def test_second_5xx_raises(self):
        client, _ = _client(_FakeResponse(500), _FakeResponse(502, {"message": "bad gateway"}))
        with pytest.raises(SupabaseClientError) as excinfo:
            await client.fetch_table("sales_overview")
        assert excinfo.value.code == "SUPABASE_HTTP_ERROR"
        assert excinfo.value.status == 502
        assert str(excinfo.value) == "bad gateway"

    async def test_4xx_is_not_retried(self):
        client, session = _client(_FakeResponse(401, {"message": "Invalid API key"}))
        with pytest.raises(SupabaseClientError, match="Invalid API key"):
            await client.fetch_table("sales_overview")
        assert len(session.calls) == 1

    async def test_network_error_after_retry(self):
        client, _ = _client(aiohttp.ClientError("reset"), aiohttp.ClientError("reset"))
        with pytest.raises(SupabaseClientError) as excinfo:
            await client.fetch_table("sales_overview")
        assert excinfo.value.code == "NETWORK_ERROR"

    async def test_timeout_then_success(self):
        client, session = _client(TimeoutError(), _FakeResponse(200, [{"data": {"n": 1}}]))
        assert await client.fetch_table("sales_overview") == [{"n": 1}]
        assert len(session.calls) == 2

    async def test_timeout_twice(self):
        client, _ = _client(TimeoutError(), TimeoutError())
        with pytest.raises(SupabaseClientError) as excinfo:
            await client.fetch_table("sales_overview")
        assert excinfo.value.code == "TIMEOUT"


class TestReplaceTable:
    async def test_delete_then_chunked_insert(self):
        client, session = _client(
            _FakeResponse(204),
            _FakeResponse(201),
            _FakeResponse(201),
        )
        progress: list[tuple[int, int]] = []
        rows = [{"n": 1}, {"n": 2}, {"n": 3}]
        uploaded = await client.replace_table(
            "sales_overview", rows, batch_size=2, progress=lambda *a: progress.append(a)
        )
        assert uploaded == 3
        assert [call["method"] for call in session.calls] == ["DELETE", "POST", "POST"]
        assert session.calls[0]["params"] == {"id": "not.is.null"}
        assert session.calls[1]["json"] == [{"data": {"n": 1}}, {"data": {"n": 2}}]
        assert session.calls[1]["headers"] == {"Prefer": "return=minimal"}
        assert progress == [(2, 3), (3, 3)]

    async def test_failed_chunk_reports_row(self):
        client, _ = _client(
            _FakeResponse(204),
            _FakeResponse(201),
            _FakeResponse(400, {"message": "bad row"}),
        )
        with pytest.raises(SupabaseClientError) as excinfo:
            await client.replace_table("sales_overview", [{"n": i} for i in range(4)], batch_size=2)
        assert excinfo.value.details["aborted_at_row"] == 2
