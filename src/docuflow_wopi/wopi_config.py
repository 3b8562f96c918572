# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration dataclass for the WOPI host.

WopiConfig is the single entry point for all configuration. It can be
built explicitly or from environment variables via wopi_config_from_env().

Usage:
    config = WopiConfig(
        backend="supabase",
        supabase_url="https://xyz.supabase.co",
        supabase_key="service-role-key",
    )
    host = WopiHost(config=config)

    # From environment (Docker/production):
    host = WopiHost(config=wopi_config_from_env())
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@dataclass
class WopiConfig:
    """Main configuration container for the WOPI host.

    Service Settings:
        instance_name: Service identifier for display
        port: Default API server port
        api_token: Optional token protecting admin routes (X-API-Token)
        wopi_prefix: URL prefix for WOPI protocol routes
        log_level: Root log level used by the CLI

    Storage Settings:
        backend: "memory", "local" or "supabase"
        local_path: Base directory for the local blob store
        supabase_url / supabase_key: Supabase project URL and service role key
        bucket: Storage bucket holding document blobs
        documents_table: PostgREST table holding document metadata
        file_extension / content_type: Blob key suffix and served content type

    Locking Settings:
        lock_ttl: Lock validity window in seconds
        lock_store: "memory" (process-local) or "redis" (shared)
        redis_url: Redis connection URL for lock_store="redis"

    Protocol Settings:
        max_upload_bytes: Largest accepted PutFile body
        editor_user_id: UserId reported by CheckFileInfo
    """

    instance_name: str = "docuflow-wopi"
    """Instance name for display and identification."""

    port: int = 18000
    """Default port for API server."""

    api_token: str | None = None
    """Admin API token. If None, admin routes are open."""

    wopi_prefix: str = "/wopi"
    """Prefix for the WOPI protocol routes (/wopi/files/{file_id})."""

    log_level: str = "INFO"

    backend: str = "memory"
    """Storage backend: memory, local, supabase."""

    local_path: str = "/data/documents"
    """Base directory for backend="local"."""

    supabase_url: str = ""
    supabase_key: str = ""

    bucket: str = "documents"
    """Supabase Storage bucket."""

    documents_table: str = "documents"
    """Supabase table with id, title, user_id, updated_at."""

    file_extension: str = ".docx"
    content_type: str = DOCX_CONTENT_TYPE

    lock_ttl: int = 1800
    """Lock validity in seconds (30 minutes)."""

    lock_store: str = "memory"
    """Lock store: memory (single instance) or redis (multi-instance)."""

    redis_url: str = "redis://localhost:6379/0"

    max_upload_bytes: int = 50 * 1024 * 1024
    """PutFile body limit (50 MiB)."""

    editor_user_id: str = "editor"
    """UserId reported in CheckFileInfo."""

    def blob_key(self, file_id: str) -> str:
        """Blob store key for a file_id."""
        return f"{file_id}{self.file_extension}"


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


def wopi_config_from_env() -> WopiConfig:
    """Build WopiConfig from environment variables.

    Environment variables:
        WOPI_INSTANCE: Instance name (default: "docuflow-wopi")
        WOPI_PORT / PORT: Server port (default: 18000)
        WOPI_API_TOKEN: Admin API token (default: None, no auth)
        WOPI_PREFIX: WOPI route prefix (default: /wopi)
        WOPI_LOG_LEVEL: Log level (default: INFO)
        WOPI_BACKEND: memory, local or supabase (default: supabase when
            SUPABASE_URL is set, memory otherwise)
        WOPI_LOCAL_PATH: Base directory for local backend
        SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY: Supabase credentials
        WOPI_BUCKET: Storage bucket (default: documents)
        WOPI_DOCUMENTS_TABLE: Metadata table (default: documents)
        WOPI_LOCK_TTL: Lock TTL in seconds (default: 1800)
        WOPI_LOCK_STORE: memory or redis (default: memory)
        WOPI_REDIS_URL: Redis URL for redis lock store
        WOPI_MAX_UPLOAD_BYTES: PutFile body limit (default: 52428800)
        WOPI_EDITOR_USER_ID: CheckFileInfo UserId (default: editor)

    Returns:
        WopiConfig instance populated from environment.
    """
    supabase_url = os.environ.get("SUPABASE_URL", "")
    default_backend = "supabase" if supabase_url else "memory"
    return WopiConfig(
        instance_name=os.environ.get("WOPI_INSTANCE", "docuflow-wopi"),
        port=int(os.environ.get("WOPI_PORT") or os.environ.get("PORT") or "18000"),
        api_token=os.environ.get("WOPI_API_TOKEN"),
        wopi_prefix=os.environ.get("WOPI_PREFIX", "/wopi"),
        log_level=os.environ.get("WOPI_LOG_LEVEL", "INFO").upper(),
        backend=os.environ.get("WOPI_BACKEND", default_backend).lower(),
        local_path=os.environ.get("WOPI_LOCAL_PATH", "/data/documents"),
        supabase_url=supabase_url,
        supabase_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY", ""),
        bucket=os.environ.get("WOPI_BUCKET", "documents"),
        documents_table=os.environ.get("WOPI_DOCUMENTS_TABLE", "documents"),
        lock_ttl=_env_int("WOPI_LOCK_TTL", 1800),
        lock_store=os.environ.get("WOPI_LOCK_STORE", "memory").lower(),
        redis_url=os.environ.get("WOPI_REDIS_URL", "redis://localhost:6379/0"),
        max_upload_bytes=_env_int("WOPI_MAX_UPLOAD_BYTES", 50 * 1024 * 1024),
        editor_user_id=os.environ.get("WOPI_EDITOR_USER_ID", "editor"),
    )


__all__ = ["DOCX_CONTENT_TYPE", "WopiConfig", "wopi_config_from_env"]
