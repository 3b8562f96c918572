# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Blob and metadata store interfaces consumed by the WOPI host.

The host never owns document content or metadata: it reads and writes
them through these two collaborators.

BlobStore:
    download(key) -> bytes          raises BlobNotFound / StoreError
    upload(key, data, overwrite)    raises StoreError

MetadataStore:
    get(file_id) -> DocumentMeta    raises DocumentNotFound / StoreError
    update(file_id, updated_at)     -> stored updated_at; raises DocumentNotFound / StoreError
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class DocumentMeta:
    """Document metadata row.

    Attributes:
        file_id: Document identifier.
        title: Display title (without extension), may be empty.
        owner_id: Owning user id.
        updated_at: Last modification timestamp as stored (ISO string).
    """

    file_id: str
    title: str | None
    owner_id: str | None
    updated_at: str | None


class BlobStore(ABC):
    """Binary object storage addressed by key."""

    @abstractmethod
    async def download(self, key: str) -> bytes:
        """Return the blob bytes stored under key."""

    @abstractmethod
    async def upload(self, key: str, data: bytes, overwrite: bool = True) -> None:
        """Store data under key, replacing any existing blob if overwrite."""

    async def size(self, key: str) -> int:
        """Size of the blob in bytes. Stores with a cheaper lookup override this."""
        return len(await self.download(key))

    async def close(self) -> None:
        """Release store resources."""


class MetadataStore(ABC):
    """Document metadata storage addressed by file_id."""

    @abstractmethod
    async def get(self, file_id: str) -> DocumentMeta:
        """Fetch metadata for file_id."""

    @abstractmethod
    async def update(self, file_id: str, updated_at: str) -> str:
        """Set the last-modified timestamp of file_id.

        Returns:
            The timestamp as the store renders it back on get(), which is
            what CheckFileInfo reports as Version.
        """

    async def close(self) -> None:
        """Release store resources."""


__all__ = ["BlobStore", "DocumentMeta", "MetadataStore"]
