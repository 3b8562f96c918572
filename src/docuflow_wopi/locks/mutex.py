# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Keyed async mutex: one asyncio.Lock per active key."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class KeyedMutex:
    """Mutual exclusion scoped by key.

    Holders of different keys never contend. Entries are reference counted
    and dropped once the last holder or waiter leaves, so the table only
    grows with the number of files being operated on concurrently.

    Example:
        mutex = KeyedMutex()
        async with mutex.hold("doc1"):
            ...  # exclusive for "doc1" only
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


__all__ = ["KeyedMutex"]
