# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for filesystem stores."""

import json

import pytest

from docuflow_wopi.backends import LocalBlobStore, LocalMetadataStore
from docuflow_wopi.errors import BlobNotFound, DocumentNotFound, StoreError


class TestLocalBlobStore:
    """Tests for LocalBlobStore."""

    async def test_upload_download(self, tmp_path):
        """Blobs are written under base/blobs and read back."""
        store = LocalBlobStore(tmp_path)

        await store.upload("doc1.docx", b"content")

        assert (tmp_path / "blobs" / "doc1.docx").read_bytes() == b"content"
        assert await store.download("doc1.docx") == b"content"
        assert await store.size("doc1.docx") == 7

    async def test_overwrite(self, tmp_path):
        """Upload replaces the previous content and leaves no temp files."""
        store = LocalBlobStore(tmp_path)
        await store.upload("doc1.docx", b"old")

        await store.upload("doc1.docx", b"new content")

        assert await store.download("doc1.docx") == b"new content"
        assert [p.name for p in (tmp_path / "blobs").iterdir()] == ["doc1.docx"]

    async def test_overwrite_false_refuses_existing(self, tmp_path):
        store = LocalBlobStore(tmp_path)
        await store.upload("doc1.docx", b"old")

        with pytest.raises(StoreError):
            await store.upload("doc1.docx", b"new", overwrite=False)

    async def test_missing_blob(self, tmp_path):
        store = LocalBlobStore(tmp_path)

        with pytest.raises(BlobNotFound):
            await store.download("nope.docx")
        with pytest.raises(BlobNotFound):
            await store.size("nope.docx")

    async def test_size_unreadable_directory(self, tmp_path):
        """An OS failure other than a missing file is a StoreError."""
        (tmp_path / "blobs").write_bytes(b"not a directory")

        with pytest.raises(StoreError) as exc_info:
            await LocalBlobStore(tmp_path).size("doc1.docx")
        assert not isinstance(exc_info.value, BlobNotFound)

    @pytest.mark.parametrize("key", ["../escape.docx", "a/b.docx", "..", ""])
    async def test_rejects_path_traversal(self, tmp_path, key):
        """Keys that would leave the store directory are rejected."""
        with pytest.raises(StoreError):
            await LocalBlobStore(tmp_path).download(key)


class TestLocalMetadataStore:
    """Tests for LocalMetadataStore."""

    async def test_put_get(self, tmp_path):
        store = LocalMetadataStore(tmp_path)

        await store.put("doc1", {"title": "Report", "owner_id": "u1", "updated_at": "t0"})
        meta = await store.get("doc1")

        assert meta.file_id == "doc1"
        assert meta.title == "Report"
        assert meta.owner_id == "u1"
        assert meta.updated_at == "t0"

    async def test_update_keeps_other_fields(self, tmp_path):
        store = LocalMetadataStore(tmp_path)
        await store.put("doc1", {"title": "Report", "owner_id": "u1", "updated_at": "t0"})

        await store.update("doc1", "t1")

        row = json.loads((tmp_path / "meta" / "doc1.json").read_text())
        assert row == {"title": "Report", "owner_id": "u1", "updated_at": "t1"}

    async def test_missing_row(self, tmp_path):
        store = LocalMetadataStore(tmp_path)

        with pytest.raises(DocumentNotFound):
            await store.get("nope")
        with pytest.raises(DocumentNotFound):
            await store.update("nope", "t1")

    async def test_corrupt_row(self, tmp_path):
        """Unreadable JSON is a StoreError, not a missing document."""
        (tmp_path / "meta").mkdir()
        (tmp_path / "meta" / "doc1.json").write_text("{not json")

        with pytest.raises(StoreError) as exc_info:
            await LocalMetadataStore(tmp_path).get("doc1")

        assert not isinstance(exc_info.value, DocumentNotFound)
