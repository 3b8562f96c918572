# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Supabase stores over plain HTTP.

SupabaseBlobStore talks to Supabase Storage (``/storage/v1/object``) and
SupabaseMetadataStore to PostgREST (``/rest/v1/<table>``), both with the
service role key so that row-level security does not apply to the host.

The metadata table is expected to expose ``id``, ``title``, ``user_id``
and ``updated_at`` columns.

Usage:
    blobs = SupabaseBlobStore("https://xyz.supabase.co", key, bucket="documents")
    meta = SupabaseMetadataStore("https://xyz.supabase.co", key, table="documents")
    data = await blobs.download("doc1.docx")
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..errors import BlobNotFound, DocumentNotFound, StoreError
from .base import BlobStore, DocumentMeta, MetadataStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


class _SupabaseHttp:
    """Shared httpx client and auth headers for a Supabase project."""

    def __init__(self, url: str, key: str, client: httpx.AsyncClient | None = None):
        self.base_url = url.rstrip("/")
        self.key = key
        self._client = client
        self._owns_client = client is None

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"apikey": self.key, "Authorization": f"Bearer {self.key}"}
        if extra:
            headers.update(extra)
        return headers

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)
        return self._client

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = self._headers(kwargs.pop("headers", None))
        try:
            return await self.client.request(
                method, f"{self.base_url}{path}", headers=headers, **kwargs
            )
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {path} failed: {e}") from e

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _is_not_found(resp: httpx.Response) -> bool:
    """Supabase Storage reports missing objects as 404, or 400 with statusCode 404."""
    if resp.status_code == 404:
        return True
    if resp.status_code == 400:
        try:
            body = resp.json()
        except ValueError:
            return False
        return str(body.get("statusCode")) == "404" or body.get("error") == "not_found"
    return False


class SupabaseBlobStore(BlobStore):
    """Document blobs in a Supabase Storage bucket."""

    def __init__(
        self,
        url: str,
        key: str,
        bucket: str = "documents",
        content_type: str = "application/octet-stream",
        client: httpx.AsyncClient | None = None,
    ):
        self.http = _SupabaseHttp(url, key, client)
        self.bucket = bucket
        self.content_type = content_type

    def _object_path(self, key: str) -> str:
        return f"/storage/v1/object/{self.bucket}/{quote(key, safe='')}"

    async def download(self, key: str) -> bytes:
        resp = await self.http.request("GET", self._object_path(key))
        if _is_not_found(resp):
            raise BlobNotFound(key)
        if resp.status_code != 200:
            raise StoreError(f"Download of '{key}' failed: HTTP {resp.status_code}")
        return resp.content

    async def upload(self, key: str, data: bytes, overwrite: bool = True) -> None:
        resp = await self.http.request(
            "POST",
            self._object_path(key),
            content=data,
            headers={
                "Content-Type": self.content_type,
                "x-upsert": "true" if overwrite else "false",
            },
        )
        if resp.status_code not in (200, 201):
            raise StoreError(f"Upload of '{key}' failed: HTTP {resp.status_code} {resp.text}")
        logger.debug(f"Uploaded {len(data)} bytes to {self.bucket}/{key}")

    async def close(self) -> None:
        await self.http.close()


class SupabaseMetadataStore(MetadataStore):
    """Document metadata rows in a PostgREST table."""

    def __init__(
        self,
        url: str,
        key: str,
        table: str = "documents",
        client: httpx.AsyncClient | None = None,
    ):
        self.http = _SupabaseHttp(url, key, client)
        self.table = table

    async def get(self, file_id: str) -> DocumentMeta:
        resp = await self.http.request(
            "GET",
            f"/rest/v1/{self.table}",
            params={"id": f"eq.{file_id}", "select": "id,title,user_id,updated_at"},
        )
        if resp.status_code != 200:
            raise StoreError(f"Metadata lookup for '{file_id}' failed: HTTP {resp.status_code}")
        rows = resp.json()
        if not rows:
            raise DocumentNotFound(file_id)
        row = rows[0]
        return DocumentMeta(
            file_id=file_id,
            title=row.get("title"),
            owner_id=row.get("user_id"),
            updated_at=row.get("updated_at"),
        )

    async def update(self, file_id: str, updated_at: str) -> str:
        resp = await self.http.request(
            "PATCH",
            f"/rest/v1/{self.table}",
            params={"id": f"eq.{file_id}", "select": "updated_at"},
            json={"updated_at": updated_at},
            headers={"Prefer": "return=representation"},
        )
        if resp.status_code not in (200, 204):
            raise StoreError(f"Metadata update for '{file_id}' failed: HTTP {resp.status_code}")
        if resp.status_code == 204:
            return updated_at
        rows = resp.json()
        if not rows:
            raise DocumentNotFound(file_id)
        # timestamptz comes back in PostgREST's own rendering
        return rows[0].get("updated_at") or updated_at

    async def close(self) -> None:
        await self.http.close()


__all__ = ["SupabaseBlobStore", "SupabaseMetadataStore"]
