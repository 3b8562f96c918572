# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Local filesystem stores.

Layout under base_path:
    blobs/<key>             document content
    meta/<file_id>.json     {"title", "owner_id", "updated_at"}

Blob writes go to a temporary sibling first and are moved into place with
os.replace, so readers never see a partially written document.

Usage:
    blobs = LocalBlobStore("/data/documents")
    meta = LocalMetadataStore("/data/documents")
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path

from ..errors import BlobNotFound, DocumentNotFound, StoreError
from .base import BlobStore, DocumentMeta, MetadataStore


def _safe_name(name: str) -> str:
    """Reject keys that would escape the store directory."""
    if not name or name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
        raise StoreError(f"Invalid storage key '{name}'")
    return name


def _write_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class LocalBlobStore(BlobStore):
    """Blobs stored as files under <base_path>/blobs."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path) / "blobs"

    def _path(self, key: str) -> Path:
        return self.base_path / _safe_name(key)

    async def download(self, key: str) -> bytes:
        path = self._path(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            raise BlobNotFound(key) from None
        except OSError as e:
            raise StoreError(f"Cannot read {path}: {e}") from e

    async def upload(self, key: str, data: bytes, overwrite: bool = True) -> None:
        path = self._path(key)
        if not overwrite and path.exists():
            raise StoreError(f"Blob '{key}' already exists")
        try:
            await asyncio.to_thread(_write_atomic, path, data)
        except OSError as e:
            raise StoreError(f"Cannot write {path}: {e}") from e

    async def size(self, key: str) -> int:
        path = self._path(key)
        try:
            stat = await asyncio.to_thread(path.stat)
        except FileNotFoundError:
            raise BlobNotFound(key) from None
        except OSError as e:
            raise StoreError(f"Cannot stat {path}: {e}") from e
        return stat.st_size


class LocalMetadataStore(MetadataStore):
    """Metadata rows stored as JSON files under <base_path>/meta."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path) / "meta"

    def _path(self, file_id: str) -> Path:
        return self.base_path / f"{_safe_name(file_id)}.json"

    def _read(self, file_id: str) -> dict:
        path = self._path(file_id)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise DocumentNotFound(file_id) from None
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read {path}: {e}") from e

    async def get(self, file_id: str) -> DocumentMeta:
        row = await asyncio.to_thread(self._read, file_id)
        return DocumentMeta(
            file_id=file_id,
            title=row.get("title"),
            owner_id=row.get("owner_id"),
            updated_at=row.get("updated_at"),
        )

    async def update(self, file_id: str, updated_at: str) -> str:
        row = await asyncio.to_thread(self._read, file_id)
        row["updated_at"] = updated_at
        await self.put(file_id, row)
        return updated_at

    async def put(self, file_id: str, row: dict) -> None:
        """Write the full metadata row for file_id."""
        data = json.dumps(row, indent=2).encode("utf-8")
        try:
            await asyncio.to_thread(_write_atomic, self._path(file_id), data)
        except OSError as e:
            raise StoreError(f"Cannot write metadata for {file_id}: {e}") from e


__all__ = ["LocalBlobStore", "LocalMetadataStore"]
