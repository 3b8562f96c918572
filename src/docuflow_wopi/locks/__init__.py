# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""WOPI lock state: manager, stores, and per-file mutex.

Components:
    LockManager: acquire/release/refresh/current_token with lazy expiry
    Lock: lock record (file_id, token, expires_at)
    LockStore: conditional-write storage interface
    MemoryLockStore: process-local store (default)
    RedisLockStore: shared store for multi-instance deployments
    build_lock_store: pick the store from WopiConfig
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .manager import LockManager
from .mutex import KeyedMutex
from .store import Lock, LockStore, MemoryLockStore

if TYPE_CHECKING:
    from ..wopi_config import WopiConfig


def build_lock_store(config: WopiConfig) -> LockStore:
    """Create the lock store named by config.lock_store."""
    if config.lock_store == "memory":
        return MemoryLockStore()
    if config.lock_store == "redis":
        from .redis_store import RedisLockStore

        return RedisLockStore.from_url(config.redis_url)
    raise ValueError(f"Unknown lock store '{config.lock_store}'")


__all__ = [
    "KeyedMutex",
    "Lock",
    "LockManager",
    "LockStore",
    "MemoryLockStore",
    "build_lock_store",
]
