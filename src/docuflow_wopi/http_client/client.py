# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""HTTP client for the WOPI host API.

This module provides WopiHostClient for programmatic access to a running
host, both the WOPI protocol routes (as an editor would call them) and
the admin routes, with support for both sync and async contexts.

Features:
    - Auto-detects sync/async context (via @smartasync)
    - Persistent connection registration for REPL use
    - LockResult for lock operations, which answer 409 as a normal outcome
    - Token-based authentication for admin routes

Example:
    Async usage::

        client = WopiHostClient("http://localhost:18000")
        info = await client.check_file_info("doc1")
        result = await client.lock("doc1", "abc")

    Sync usage (in REPL)::

        client = connect("http://localhost:18000", token="secret")
        client.lock("doc1", "abc")
        client.locks.list()

    Registered connection::

        register_connection("prod", "https://wopi.example.com", token="...")
        client = connect("prod")  # Uses registered URL/token
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from genro_toolbox import smartasync

# Connection registry for REPL convenience
_connections: dict[str, dict[str, Any]] = {}

DEFAULT_ACCESS_TOKEN = "docuflow-client"


def register_connection(name: str, url: str, token: str | None = None) -> None:
    """Register a named connection for easy reuse.

    Args:
        name: Connection name for later reference.
        url: WOPI host base URL.
        token: Optional admin API token.

    Example:
        >>> register_connection("prod", "https://wopi.prod.example.com", token="secret")
        >>> client = connect("prod")
    """
    _connections[name] = {"url": url, "token": token}


def connect(url_or_name: str, token: str | None = None) -> WopiHostClient:
    """Create a WopiHostClient, optionally using a registered connection.

    Args:
        url_or_name: Either a URL or a registered connection name.
        token: API token (ignored if using registered connection).

    Returns:
        WopiHostClient instance.
    """
    if url_or_name in _connections:
        conn = _connections[url_or_name]
        return WopiHostClient(conn["url"], token=conn["token"])
    return WopiHostClient(url_or_name, token=token)


class WopiClientError(Exception):
    """Non-success response from the host outside the lock protocol.

    Attributes:
        status_code: HTTP status code returned by the host.
        detail: Response body text.
    """

    def __init__(self, status_code: int, detail: str = ""):
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


@dataclass
class LockResult:
    """Outcome of a lock-protocol request.

    Attributes:
        ok: True for 200.
        status_code: HTTP status code.
        lock: X-WOPI-Lock response header (None when absent).
        version: X-WOPI-ItemVersion response header (PutFile only).
    """

    ok: bool
    status_code: int
    lock: str | None = None
    version: str | None = None

    @classmethod
    def from_response(cls, resp: httpx.Response) -> LockResult:
        """Create LockResult from a host response."""
        return cls(
            ok=resp.status_code == 200,
            status_code=resp.status_code,
            lock=resp.headers.get("X-WOPI-Lock"),
            version=resp.headers.get("X-WOPI-ItemVersion"),
        )


class LocksAPI:
    """Admin locks endpoint API wrapper."""

    def __init__(self, client: WopiHostClient):
        self._client = client

    @smartasync
    async def list(self) -> list[dict[str, Any]]:
        """List active locks."""
        data = await self._client._get("/locks/list")
        return data["locks"]

    @smartasync
    async def get(self, file_id: str) -> str | None:
        """Current lock token on a file, None when unlocked."""
        data = await self._client._get("/locks/get", params={"file_id": file_id})
        return data.get("lock")

    @smartasync
    async def release(self, file_id: str) -> bool:
        """Break the lock on a file."""
        result = await self._client._post("/locks/release", {"file_id": file_id})
        return bool(result.get("released", False)) if isinstance(result, dict) else False


class WopiHostClient:
    """HTTP client for the WOPI host.

    Attributes:
        locks: LocksAPI for admin lock management

    Example:
        >>> client = WopiHostClient("http://localhost:18000", token="secret")
        >>> await client.lock("doc1", "abc")
        LockResult(ok=True, status_code=200, lock='abc', version=None)
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        wopi_prefix: str = "/wopi",
        access_token: str = DEFAULT_ACCESS_TOKEN,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            base_url: WOPI host base URL.
            token: Optional API token for admin routes.
            wopi_prefix: Path prefix of the WOPI routes.
            access_token: access_token sent on CheckFileInfo/GetFile.
            transport: Optional httpx transport (e.g. httpx.MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.wopi_prefix = "/" + wopi_prefix.strip("/") if wopi_prefix.strip("/") else ""
        self.access_token = access_token
        self._transport = transport

        # Sub-APIs
        self.locks = LocksAPI(self)

    def _headers(self) -> dict[str, str]:
        """Build request headers with optional auth token."""
        headers: dict[str, str] = {}
        if self.token:
            headers["X-API-Token"] = self.token
        return headers

    def _file_path(self, file_id: str, contents: bool = False) -> str:
        path = f"{self.wopi_prefix}/files/{file_id}"
        return f"{path}/contents" if contents else path

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Perform a request and return the raw response."""
        async with httpx.AsyncClient(transport=self._transport) as http:
            return await http.request(method, f"{self.base_url}{path}", **kwargs)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Perform authenticated GET request returning JSON."""
        resp = await self._request("GET", path, params=params, headers=self._headers())
        _raise_for_status(resp)
        return resp.json()

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        """Perform authenticated POST request returning JSON."""
        resp = await self._request("POST", path, json=payload, headers=self._headers())
        _raise_for_status(resp)
        return resp.json()

    async def _override(self, file_id: str, override: str, lock: str | None) -> LockResult:
        headers = {"X-WOPI-Override": override}
        if lock is not None:
            headers["X-WOPI-Lock"] = lock
        resp = await self._request("POST", self._file_path(file_id), headers=headers)
        return LockResult.from_response(resp)

    # -------------------------------------------------------------------------
    # Service
    # -------------------------------------------------------------------------

    @smartasync
    async def ping(self) -> str:
        """Liveness probe. Returns "pong"."""
        resp = await self._request("GET", "/ping")
        _raise_for_status(resp)
        return resp.text

    @smartasync
    async def health(self) -> dict[str, Any]:
        """Health check (unauthenticated)."""
        resp = await self._request("GET", "/health")
        _raise_for_status(resp)
        return resp.json()

    @smartasync
    async def status(self) -> dict[str, Any]:
        """Get service status (admin)."""
        return await self._get("/instance/status")

    # -------------------------------------------------------------------------
    # WOPI protocol
    # -------------------------------------------------------------------------

    @smartasync
    async def check_file_info(self, file_id: str) -> dict[str, Any]:
        """WOPI CheckFileInfo."""
        resp = await self._request(
            "GET", self._file_path(file_id), params={"access_token": self.access_token}
        )
        _raise_for_status(resp)
        return resp.json()

    @smartasync
    async def get_file(self, file_id: str) -> bytes:
        """WOPI GetFile."""
        resp = await self._request(
            "GET",
            self._file_path(file_id, contents=True),
            params={"access_token": self.access_token},
        )
        _raise_for_status(resp)
        return resp.content

    @smartasync
    async def lock(self, file_id: str, lock: str) -> LockResult:
        """WOPI Lock."""
        return await self._override(file_id, "LOCK", lock)

    @smartasync
    async def unlock(self, file_id: str, lock: str) -> LockResult:
        """WOPI Unlock."""
        return await self._override(file_id, "UNLOCK", lock)

    @smartasync
    async def refresh_lock(self, file_id: str, lock: str) -> LockResult:
        """WOPI RefreshLock."""
        return await self._override(file_id, "REFRESH_LOCK", lock)

    @smartasync
    async def get_lock(self, file_id: str) -> LockResult:
        """WOPI GetLock. result.lock is "" when the file is unlocked."""
        return await self._override(file_id, "GET_LOCK", None)

    @smartasync
    async def put_file(self, file_id: str, lock: str, content: bytes) -> LockResult:
        """WOPI PutFile. result.version holds the new X-WOPI-ItemVersion."""
        resp = await self._request(
            "POST",
            self._file_path(file_id, contents=True),
            content=content,
            headers={"X-WOPI-Lock": lock, "Content-Type": "application/octet-stream"},
        )
        return LockResult.from_response(resp)


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.status_code >= 400:
        raise WopiClientError(resp.status_code, resp.text)


__all__ = [
    "LockResult",
    "LocksAPI",
    "WopiClientError",
    "WopiHostClient",
    "connect",
    "register_connection",
]
