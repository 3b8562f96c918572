# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Lock manager: single-writer enforcement per file.

The LockManager owns the WOPI lock state machine for every file:

    Unlocked --acquire(T)--> Locked(T)
    Locked(T) --acquire(T) / refresh(T)--> Locked(T)   (expiry extended)
    Locked(T) --release(T)--> Unlocked

Any other token on a locked file raises ConflictingLock carrying the
holder's token. release/refresh on an unlocked file raise NotLocked.

Expiry is lazy: there is no background sweep. Each mutating operation
drops a stale lock (now >= expires_at) before applying the rules above,
so an expired lock never blocks a new holder but may linger in the store
until the file is touched again.

Atomicity: the read-decide-write sequence of each operation runs under a
per-file mutex, so two LOCK requests racing on the same unlocked file
produce one winner and one ConflictingLock. Writes to the store are
conditional; when a shared store reports a lost race (another host
instance changed the lock), the decision is re-evaluated.

Example:
    manager = LockManager(ttl_seconds=1800)
    await manager.acquire("doc1", "abc")
    await manager.acquire("doc1", "xyz")   # raises ConflictingLock("abc")
    await manager.release("doc1", "abc")
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

from ..errors import ConflictingLock, LockMismatch, NotLocked, StoreError
from .mutex import KeyedMutex
from .store import Lock, LockStore, MemoryLockStore, _utcnow

logger = logging.getLogger(__name__)


class LockManager:
    """WOPI lock table with per-file atomic check-and-set.

    Attributes:
        store: LockStore holding the lock records.
        ttl: Lock validity window.
    """

    def __init__(
        self,
        store: LockStore | None = None,
        ttl_seconds: int = 1800,
        clock: Callable[[], datetime] = _utcnow,
        max_attempts: int = 5,
    ):
        """Initialize the manager.

        Args:
            store: Lock store. Defaults to a process-local MemoryLockStore.
            ttl_seconds: Lock validity in seconds (default 30 minutes).
            clock: Returns the current naive UTC time.
            max_attempts: Conditional-write attempts before giving up when a
                shared store keeps changing underneath.
        """
        self.store = store or MemoryLockStore()
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._max_attempts = max_attempts
        self._mutex = KeyedMutex()

    # -------------------------------------------------------------------------
    # Public contract
    # -------------------------------------------------------------------------

    async def acquire(self, file_id: str, token: str) -> Lock:
        """Lock file_id with token, or refresh it if token already holds it.

        Raises:
            ConflictingLock: The file is locked with a different token.
        """
        async with self._mutex.hold(file_id):
            for _ in range(self._max_attempts):
                current = await self._live_lock(file_id)
                if current is not None and current.token != token:
                    logger.warning(f"Lock conflict on {file_id}: held by another token")
                    raise ConflictingLock(current.token)

                expected = current.token if current else None
                lock = self._new_lock(file_id, token)
                if await self.store.put(lock, expected=expected):
                    if current is None:
                        logger.info(f"Lock acquired on {file_id}")
                    else:
                        logger.debug(f"Lock re-acquired on {file_id}")
                    return lock
            raise self._contention(file_id)

    async def release(self, file_id: str, token: str) -> None:
        """Remove the lock held by token.

        Raises:
            NotLocked: The file holds no lock.
            ConflictingLock: The file is locked with a different token.
        """
        async with self._mutex.hold(file_id):
            for _ in range(self._max_attempts):
                current = await self._live_lock(file_id)
                if current is None:
                    raise NotLocked()
                if current.token != token:
                    logger.warning(f"Unlock conflict on {file_id}: held by another token")
                    raise ConflictingLock(current.token)
                if await self.store.delete(file_id, expected=token):
                    logger.info(f"Lock released on {file_id}")
                    return
            raise self._contention(file_id)

    async def refresh(self, file_id: str, token: str) -> Lock:
        """Extend the lock held by token. Never creates a lock.

        Raises:
            NotLocked: The file holds no lock.
            ConflictingLock: The file is locked with a different token.
        """
        async with self._mutex.hold(file_id):
            for _ in range(self._max_attempts):
                current = await self._live_lock(file_id)
                if current is None:
                    raise NotLocked()
                if current.token != token:
                    raise ConflictingLock(current.token)
                lock = self._new_lock(file_id, token)
                if await self.store.put(lock, expected=token):
                    logger.debug(f"Lock refreshed on {file_id}")
                    return lock
            raise self._contention(file_id)

    async def current_token(self, file_id: str) -> str | None:
        """Return the live lock token for file_id, or None. Does not mutate."""
        lock = await self.store.get(file_id)
        if lock is None or lock.is_expired(self._clock()):
            return None
        return lock.token

    @asynccontextmanager
    async def write_guard(self, file_id: str, token: str) -> AsyncIterator[Lock]:
        """Hold file_id's mutex while token is verified as the current lock.

        Lock operations on the same file wait until the block exits, so the
        lock cannot change hands in the middle of a content write.

        Raises:
            LockMismatch: No live lock, or a lock held by a different token.
        """
        async with self._mutex.hold(file_id):
            current = await self._live_lock(file_id)
            if current is None or current.token != token:
                logger.warning(f"Lock mismatch on {file_id}")
                raise LockMismatch(current.token if current else "")
            yield current

    # -------------------------------------------------------------------------
    # Admin operations
    # -------------------------------------------------------------------------

    async def list_active(self) -> list[Lock]:
        """Snapshot of non-expired locks, sorted by file_id."""
        now = self._clock()
        locks = await self.store.list_all()
        return sorted((lk for lk in locks if not lk.is_expired(now)), key=lambda lk: lk.file_id)

    async def force_release(self, file_id: str) -> bool:
        """Drop the lock on file_id whoever holds it.

        Returns:
            True if a live lock was removed.
        """
        async with self._mutex.hold(file_id):
            current = await self._live_lock(file_id)
            if current is None:
                return False
            removed = await self.store.delete(file_id, expected=current.token)
            if removed:
                logger.warning(f"Lock on {file_id} forcibly released")
            return removed

    # -------------------------------------------------------------------------
    # Helpers (caller holds the file mutex)
    # -------------------------------------------------------------------------

    async def _live_lock(self, file_id: str) -> Lock | None:
        """Return the current lock, dropping it first if it has expired."""
        lock = await self.store.get(file_id)
        if lock is None:
            return None
        if lock.is_expired(self._clock()):
            await self.store.delete(file_id, expected=lock.token)
            logger.debug(f"Dropped expired lock on {file_id}")
            return None
        return lock

    def _new_lock(self, file_id: str, token: str) -> Lock:
        return Lock(file_id=file_id, token=token, expires_at=self._clock() + self.ttl)

    def _contention(self, file_id: str) -> StoreError:
        logger.error(f"Lock store kept changing under {file_id}")
        return StoreError(f"Lock store contention on {file_id}")


__all__ = ["LockManager"]
