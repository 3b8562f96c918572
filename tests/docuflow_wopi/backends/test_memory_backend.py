# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for in-memory stores and build_backends."""

import pytest

from docuflow_wopi import WopiConfig
from docuflow_wopi.backends import (
    LocalBlobStore,
    LocalMetadataStore,
    MemoryBlobStore,
    MemoryMetadataStore,
    SupabaseBlobStore,
    SupabaseMetadataStore,
    build_backends,
)
from docuflow_wopi.errors import BlobNotFound, DocumentNotFound, StoreError


class TestMemoryBlobStore:
    """Tests for MemoryBlobStore."""

    async def test_upload_download(self):
        """Uploaded bytes are returned by download."""
        store = MemoryBlobStore()

        await store.upload("doc1.docx", b"content")

        assert await store.download("doc1.docx") == b"content"
        assert await store.size("doc1.docx") == 7

    async def test_download_missing(self):
        """Missing keys raise BlobNotFound."""
        with pytest.raises(BlobNotFound):
            await MemoryBlobStore().download("nope.docx")

    async def test_overwrite_false_refuses_existing(self):
        """overwrite=False keeps the existing blob."""
        store = MemoryBlobStore({"doc1.docx": b"old"})

        with pytest.raises(StoreError):
            await store.upload("doc1.docx", b"new", overwrite=False)

        assert store.blobs["doc1.docx"] == b"old"


class TestMemoryMetadataStore:
    """Tests for MemoryMetadataStore."""

    async def test_get_returns_copy(self):
        """get returns a detached copy of the row."""
        store = MemoryMetadataStore()
        store.add("doc1", title="Report", owner_id="u1", updated_at="t0")

        meta = await store.get("doc1")
        meta.title = "changed"

        assert (await store.get("doc1")).title == "Report"

    async def test_update(self):
        """update sets updated_at."""
        store = MemoryMetadataStore()
        store.add("doc1")

        await store.update("doc1", "2025-06-01T00:00:00+00:00")

        assert (await store.get("doc1")).updated_at == "2025-06-01T00:00:00+00:00"

    async def test_missing_row(self):
        """get and update on unknown ids raise DocumentNotFound."""
        store = MemoryMetadataStore()

        with pytest.raises(DocumentNotFound):
            await store.get("nope")
        with pytest.raises(DocumentNotFound):
            await store.update("nope", "t1")


class TestBuildBackends:
    """Tests for build_backends."""

    def test_memory(self):
        blobs, meta = build_backends(WopiConfig(backend="memory"))

        assert isinstance(blobs, MemoryBlobStore)
        assert isinstance(meta, MemoryMetadataStore)

    def test_local(self, tmp_path):
        blobs, meta = build_backends(WopiConfig(backend="local", local_path=str(tmp_path)))

        assert isinstance(blobs, LocalBlobStore)
        assert isinstance(meta, LocalMetadataStore)
        assert blobs.base_path == tmp_path / "blobs"

    def test_supabase(self):
        config = WopiConfig(
            backend="supabase",
            supabase_url="https://xyz.supabase.co",
            supabase_key="service-key",
            bucket="docs",
            documents_table="files",
        )

        blobs, meta = build_backends(config)

        assert isinstance(blobs, SupabaseBlobStore)
        assert isinstance(meta, SupabaseMetadataStore)
        assert blobs.bucket == "docs"
        assert meta.table == "files"

    def test_supabase_requires_credentials(self):
        """Supabase backend without URL/key is rejected."""
        with pytest.raises(ValueError, match="supabase_url"):
            build_backends(WopiConfig(backend="supabase"))

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            build_backends(WopiConfig(backend="s3"))
