# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Redis-backed lock store for multi-instance deployments.

Locks are stored as JSON under ``{prefix}{file_id}``. Conditional writes
run as Lua scripts so the compare and the set happen atomically on the
Redis server, whatever number of hosts share it.

Keys carry a Redis TTL slightly longer than the lock validity so that
abandoned locks do not accumulate; the LockManager still checks
expires_at itself.

Usage:
    store = RedisLockStore.from_url("redis://localhost:6379/0")
    manager = LockManager(store=store)
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

import redis.asyncio as redis

from ..errors import StoreError
from .store import Lock, LockStore

logger = logging.getLogger(__name__)

# KEYS[1]=lock key; ARGV[1]="1" if a current lock is expected; ARGV[2]=expected
# token; ARGV[3]=new JSON value; ARGV[4]=TTL in milliseconds
_PUT_SCRIPT = """
local current = redis.call('GET', KEYS[1])
if current then
    if ARGV[1] ~= '1' then return 0 end
    if cjson.decode(current)['token'] ~= ARGV[2] then return 0 end
elseif ARGV[1] == '1' then
    return 0
end
redis.call('SET', KEYS[1], ARGV[3], 'PX', ARGV[4])
return 1
"""

# KEYS[1]=lock key; ARGV[1]=expected token
_DELETE_SCRIPT = """
local current = redis.call('GET', KEYS[1])
if not current then return 0 end
if cjson.decode(current)['token'] ~= ARGV[1] then return 0 end
redis.call('DEL', KEYS[1])
return 1
"""

_KEY_GRACE_MS = 60_000


class RedisLockStore(LockStore):
    """Shared lock table in Redis with compare-and-set via Lua."""

    def __init__(self, client: Any, prefix: str = "wopi:lock:"):
        self._redis = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "wopi:lock:", pool_size: int = 10) -> RedisLockStore:
        pool = redis.ConnectionPool.from_url(
            url, max_connections=pool_size, decode_responses=True
        )
        return cls(redis.Redis.from_pool(pool), prefix=prefix)

    def _key(self, file_id: str) -> str:
        return f"{self.prefix}{file_id}"

    async def get(self, file_id: str) -> Lock | None:
        try:
            raw = await self._redis.get(self._key(file_id))
        except redis.RedisError as e:
            raise StoreError(f"Redis get failed for {file_id}: {e}") from e
        if not raw:
            return None
        return Lock.from_dict(json.loads(raw))

    async def put(self, lock: Lock, expected: str | None) -> bool:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        ttl_ms = max(int((lock.expires_at - now).total_seconds() * 1000), 0) + _KEY_GRACE_MS
        try:
            result = await self._redis.eval(
                _PUT_SCRIPT,
                1,
                self._key(lock.file_id),
                "1" if expected is not None else "0",
                expected or "",
                json.dumps(lock.to_dict()),
                str(ttl_ms),
            )
        except redis.RedisError as e:
            raise StoreError(f"Redis put failed for {lock.file_id}: {e}") from e
        return int(result) == 1

    async def delete(self, file_id: str, expected: str) -> bool:
        try:
            result = await self._redis.eval(_DELETE_SCRIPT, 1, self._key(file_id), expected)
        except redis.RedisError as e:
            raise StoreError(f"Redis delete failed for {file_id}: {e}") from e
        return int(result) == 1

    async def list_all(self) -> list[Lock]:
        locks = []
        try:
            async for key in self._redis.scan_iter(match=f"{self.prefix}*"):
                raw = await self._redis.get(key)
                if raw:
                    locks.append(Lock.from_dict(json.loads(raw)))
        except redis.RedisError as e:
            raise StoreError(f"Redis scan failed: {e}") from e
        return locks

    async def close(self) -> None:
        await self._redis.aclose()
        logger.info("Redis lock store closed")


__all__ = ["RedisLockStore"]
