# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the WOPI host HTTP client.

Tests cover the connection registry, LockResult, and WopiHostClient
with mocked HTTP responses.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from docuflow_wopi.http_client.client import (
    LockResult,
    LocksAPI,
    WopiClientError,
    WopiHostClient,
    _connections,
    connect,
    register_connection,
)


class TestConnectionRegistry:
    """Tests for connection registry functions."""

    def setup_method(self):
        """Clear registry before each test."""
        _connections.clear()

    def test_register_connection(self):
        register_connection("prod", "https://wopi.example.com", token="secret")

        assert _connections["prod"] == {"url": "https://wopi.example.com", "token": "secret"}

    def test_connect_with_url(self):
        client = connect("http://localhost:18000", token="mytoken")

        assert isinstance(client, WopiHostClient)
        assert client.base_url == "http://localhost:18000"
        assert client.token == "mytoken"

    def test_connect_with_registered_name(self):
        register_connection("staging", "https://staging.example.com", token="staging-key")

        client = connect("staging", token="ignored")

        assert client.base_url == "https://staging.example.com"
        assert client.token == "staging-key"


class TestLockResult:
    """Tests for LockResult.from_response."""

    def test_success(self):
        result = LockResult.from_response(httpx.Response(200, headers={"X-WOPI-Lock": "abc"}))

        assert result == LockResult(ok=True, status_code=200, lock="abc")

    def test_conflict(self):
        result = LockResult.from_response(httpx.Response(409, headers={"X-WOPI-Lock": "xyz"}))

        assert result.ok is False
        assert result.status_code == 409
        assert result.lock == "xyz"

    def test_no_lock_header(self):
        assert LockResult.from_response(httpx.Response(500)).lock is None


class TestWopiHostClient:
    """Tests for client construction."""

    def test_client_init(self):
        client = WopiHostClient("http://localhost:18000/", token="secret", wopi_prefix="wopi/")

        assert client.base_url == "http://localhost:18000"
        assert client.wopi_prefix == "/wopi"
        assert isinstance(client.locks, LocksAPI)

    def test_headers(self):
        assert WopiHostClient("http://h", token="t")._headers() == {"X-API-Token": "t"}
        assert WopiHostClient("http://h")._headers() == {}


class TestWopiHostClientRequests:
    """Tests for WOPI calls against a mocked transport."""

    @pytest.fixture
    def requests(self):
        return []

    @pytest.fixture
    def client(self, requests):
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            path = request.url.path
            if path == "/ping":
                return httpx.Response(200, text="pong")
            if path == "/wopi/files/doc1":
                override = request.headers.get("X-WOPI-Override")
                if override is None:
                    return httpx.Response(200, json={"BaseFileName": "Report.docx"})
                if override == "GET_LOCK":
                    return httpx.Response(200, headers={"X-WOPI-Lock": "abc"})
                if request.headers.get("X-WOPI-Lock") == "abc":
                    return httpx.Response(200, headers={"X-WOPI-Lock": "abc"})
                return httpx.Response(409, headers={"X-WOPI-Lock": "abc"}, text="Conflict")
            if path == "/wopi/files/doc1/contents":
                if request.method == "GET":
                    return httpx.Response(200, content=b"docx")
                return httpx.Response(200, headers={"X-WOPI-ItemVersion": "v2"})
            return httpx.Response(404, text="File not found")

        return WopiHostClient("http://host", transport=httpx.MockTransport(handler))

    async def test_ping(self, client):
        assert await client.ping() == "pong"

    async def test_check_file_info_sends_access_token(self, client, requests):
        info = await client.check_file_info("doc1")

        assert info == {"BaseFileName": "Report.docx"}
        assert requests[0].url.params["access_token"] == client.access_token

    async def test_get_file(self, client):
        assert await client.get_file("doc1") == b"docx"

    async def test_not_found_raises(self, client):
        with pytest.raises(WopiClientError) as exc_info:
            await client.get_file("nope")

        assert exc_info.value.status_code == 404

    async def test_lock(self, client, requests):
        result = await client.lock("doc1", "abc")

        assert result.ok is True
        assert result.lock == "abc"
        assert requests[0].headers["X-WOPI-Override"] == "LOCK"

    async def test_lock_conflict_is_a_result(self, client):
        result = await client.lock("doc1", "xyz")

        assert result.ok is False
        assert result.status_code == 409
        assert result.lock == "abc"

    async def test_unlock_and_refresh(self, client, requests):
        await client.unlock("doc1", "abc")
        await client.refresh_lock("doc1", "abc")

        assert [r.headers["X-WOPI-Override"] for r in requests] == ["UNLOCK", "REFRESH_LOCK"]

    async def test_get_lock_sends_no_lock_header(self, client, requests):
        result = await client.get_lock("doc1")

        assert result.lock == "abc"
        assert "X-WOPI-Lock" not in requests[0].headers

    async def test_put_file(self, client, requests):
        result = await client.put_file("doc1", "abc", b"new")

        assert result.ok is True
        assert result.version == "v2"
        assert requests[0].content == b"new"
        assert requests[0].headers["X-WOPI-Lock"] == "abc"


class TestLocksAPI:
    """Tests for LocksAPI with mocks."""

    @pytest.fixture
    def client(self):
        return WopiHostClient("http://localhost:18000", token="test")

    async def test_status(self, client):
        with patch.object(client, "_get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = {"ok": True, "active": True}

            result = await client.status()

            mock_get.assert_called_once_with("/instance/status")
            assert result["active"] is True

    async def test_locks_list(self, client):
        with patch.object(client, "_get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = {"ok": True, "locks": [{"file_id": "doc1", "token": "abc"}]}

            result = await client.locks.list()

            mock_get.assert_called_once_with("/locks/list")
            assert result == [{"file_id": "doc1", "token": "abc"}]

    async def test_locks_get(self, client):
        with patch.object(client, "_get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = {"ok": True, "file_id": "doc1", "lock": None}

            assert await client.locks.get("doc1") is None

            mock_get.assert_called_once_with("/locks/get", params={"file_id": "doc1"})

    async def test_locks_release(self, client):
        with patch.object(client, "_post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = {"ok": True, "file_id": "doc1", "released": True}

            assert await client.locks.release("doc1") is True

            mock_post.assert_called_once_with("/locks/release", {"file_id": "doc1"})

    async def test_locks_release_non_dict(self, client):
        with patch.object(client, "_post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = "unexpected"

            assert await client.locks.release("doc1") is False
