# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Storage collaborators for the WOPI host.

Backends:
    memory: MemoryBlobStore + MemoryMetadataStore (tests, demos)
    local: LocalBlobStore + LocalMetadataStore (filesystem)
    supabase: SupabaseBlobStore + SupabaseMetadataStore (HTTP)

Usage:
    blobs, meta = build_backends(config)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import BlobStore, DocumentMeta, MetadataStore
from .local import LocalBlobStore, LocalMetadataStore
from .memory import MemoryBlobStore, MemoryMetadataStore
from .supabase import SupabaseBlobStore, SupabaseMetadataStore

if TYPE_CHECKING:
    from ..wopi_config import WopiConfig


def build_backends(config: WopiConfig) -> tuple[BlobStore, MetadataStore]:
    """Create the blob and metadata stores named by config.backend."""
    if config.backend == "memory":
        return MemoryBlobStore(), MemoryMetadataStore()
    if config.backend == "local":
        return LocalBlobStore(config.local_path), LocalMetadataStore(config.local_path)
    if config.backend == "supabase":
        if not config.supabase_url or not config.supabase_key:
            raise ValueError("Supabase backend requires supabase_url and supabase_key")
        return (
            SupabaseBlobStore(
                config.supabase_url,
                config.supabase_key,
                bucket=config.bucket,
                content_type=config.content_type,
            ),
            SupabaseMetadataStore(
                config.supabase_url, config.supabase_key, table=config.documents_table
            ),
        )
    raise ValueError(f"Unknown backend '{config.backend}'")


__all__ = [
    "BlobStore",
    "DocumentMeta",
    "LocalBlobStore",
    "LocalMetadataStore",
    "MemoryBlobStore",
    "MemoryMetadataStore",
    "MetadataStore",
    "SupabaseBlobStore",
    "SupabaseMetadataStore",
    "build_backends",
]
