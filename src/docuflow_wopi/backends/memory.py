# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""In-process blob and metadata stores for tests and local demos."""

from __future__ import annotations

from ..errors import BlobNotFound, DocumentNotFound, StoreError
from .base import BlobStore, DocumentMeta, MetadataStore


class MemoryBlobStore(BlobStore):
    """Blobs kept in a dict. Uploads with overwrite=False refuse existing keys."""

    def __init__(self, blobs: dict[str, bytes] | None = None):
        self.blobs: dict[str, bytes] = dict(blobs or {})

    async def download(self, key: str) -> bytes:
        try:
            return self.blobs[key]
        except KeyError:
            raise BlobNotFound(key) from None

    async def upload(self, key: str, data: bytes, overwrite: bool = True) -> None:
        if not overwrite and key in self.blobs:
            raise StoreError(f"Blob '{key}' already exists")
        self.blobs[key] = bytes(data)


class MemoryMetadataStore(MetadataStore):
    """Metadata rows kept in a dict keyed by file_id."""

    def __init__(self) -> None:
        self.rows: dict[str, DocumentMeta] = {}

    def add(
        self,
        file_id: str,
        title: str | None = None,
        owner_id: str | None = None,
        updated_at: str | None = None,
    ) -> DocumentMeta:
        """Insert or replace a metadata row."""
        meta = DocumentMeta(file_id=file_id, title=title, owner_id=owner_id, updated_at=updated_at)
        self.rows[file_id] = meta
        return meta

    async def get(self, file_id: str) -> DocumentMeta:
        meta = self.rows.get(file_id)
        if meta is None:
            raise DocumentNotFound(file_id)
        return DocumentMeta(**vars(meta))

    async def update(self, file_id: str, updated_at: str) -> str:
        meta = self.rows.get(file_id)
        if meta is None:
            raise DocumentNotFound(file_id)
        meta.updated_at = updated_at
        return updated_at


__all__ = ["MemoryBlobStore", "MemoryMetadataStore"]
