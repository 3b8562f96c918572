# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Lock record and lock store interface.

A LockStore holds at most one Lock per file_id and offers conditional
writes, so that the LockManager contract stays identical whether locks
live in process memory or in a store shared by several host instances.

Conditional semantics:
    put(lock, expected=None)    succeeds only if no lock is stored
    put(lock, expected="abc")   succeeds only if the stored token is "abc"
    delete(file_id, "abc")      succeeds only if the stored token is "abc"

Stores do not interpret expiry: an expired lock is still returned by
get(). The LockManager decides what is stale.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone


def _utcnow() -> datetime:
    """Return current UTC time (naive)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class Lock:
    """Exclusive editing ownership of one file.

    Attributes:
        file_id: Document identifier.
        token: Opaque lock string chosen by the editing client.
        expires_at: Naive UTC expiry timestamp.
    """

    file_id: str
    token: str
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or _utcnow()) >= self.expires_at

    def to_dict(self) -> dict[str, str]:
        return {
            "file_id": self.file_id,
            "token": self.token,
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> Lock:
        return cls(
            file_id=data["file_id"],
            token=data["token"],
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )


class LockStore(ABC):
    """Storage for the lock table with compare-and-set writes."""

    @abstractmethod
    async def get(self, file_id: str) -> Lock | None:
        """Return the stored lock for file_id, expired or not."""

    @abstractmethod
    async def put(self, lock: Lock, expected: str | None) -> bool:
        """Store lock if the current token equals expected (None = absent)."""

    @abstractmethod
    async def delete(self, file_id: str, expected: str) -> bool:
        """Remove the lock if its token equals expected."""

    @abstractmethod
    async def list_all(self) -> list[Lock]:
        """Return every stored lock."""

    async def close(self) -> None:
        """Release store resources."""


class MemoryLockStore(LockStore):
    """Process-local lock table. A restart drops all locks.

    Every method runs without an await point, so each call is atomic with
    respect to the event loop.
    """

    def __init__(self) -> None:
        self._locks: dict[str, Lock] = {}

    async def get(self, file_id: str) -> Lock | None:
        return self._locks.get(file_id)

    async def put(self, lock: Lock, expected: str | None) -> bool:
        current = self._locks.get(lock.file_id)
        current_token = current.token if current else None
        if current_token != expected:
            return False
        self._locks[lock.file_id] = lock
        return True

    async def delete(self, file_id: str, expected: str) -> bool:
        current = self._locks.get(file_id)
        if current is None or current.token != expected:
            return False
        del self._locks[file_id]
        return True

    async def list_all(self) -> list[Lock]:
        return list(self._locks.values())


__all__ = ["Lock", "LockStore", "MemoryLockStore"]
