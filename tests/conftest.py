# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared pytest fixtures for docuflow_wopi tests."""

import pytest
from fastapi.testclient import TestClient

from docuflow_wopi import WopiConfig, WopiHost
from docuflow_wopi.backends import MemoryBlobStore, MemoryMetadataStore

DOC1_BYTES = b"PK\x03\x04 original doc1 content"


@pytest.fixture
def doc1_bytes():
    """Original doc1 content."""
    return DOC1_BYTES


@pytest.fixture
def blobs():
    """In-memory blob store seeded with doc1."""
    return MemoryBlobStore({"doc1.docx": DOC1_BYTES})


@pytest.fixture
def metadata():
    """In-memory metadata store seeded with doc1."""
    store = MemoryMetadataStore()
    store.add("doc1", title="Quarterly report", owner_id="user-1",
              updated_at="2025-01-01T00:00:00+00:00")
    return store


@pytest.fixture
def config():
    """Default host configuration."""
    return WopiConfig()


@pytest.fixture
def host(config, blobs, metadata):
    """WopiHost over in-memory collaborators."""
    return WopiHost(config=config, blob_store=blobs, metadata_store=metadata)


@pytest.fixture
def client(host):
    """TestClient on the host API."""
    return TestClient(host.api)

