# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Lock REST API endpoint for operators.

Exposes the host's lock table for inspection and lets an operator break
a lock left behind by a crashed editor session, without waiting for the
lock to expire.

Example:
    Routes auto-generated (X-API-Token required when configured)::

        GET  /locks/list
        GET  /locks/get?file_id=doc1
        POST /locks/release  {"file_id": "doc1"}
"""

from __future__ import annotations

from ...interface.endpoint_base import POST, BaseEndpoint


class LockEndpoint(BaseEndpoint):
    """Admin operations over the WOPI lock table.

    Attributes:
        name: Endpoint name used in URL paths ("locks").
        host: WopiHost owning the LockManager.
    """

    name = "locks"

    async def list(self) -> dict:
        """List active (non-expired) locks.

        Returns:
            Dict with ok=True and locks as a list of
            {file_id, token, expires_at} dicts sorted by file_id.
        """
        locks = await self.host.locks.list_active()
        return {"ok": True, "locks": [lock.to_dict() for lock in locks]}

    async def get(self, file_id: str) -> dict:
        """Show the current lock token on a file (None when unlocked)."""
        token = await self.host.locks.current_token(file_id)
        return {"ok": True, "file_id": file_id, "lock": token}

    @POST
    async def release(self, file_id: str) -> dict:
        """Break the lock on a file whoever holds it.

        Returns:
            Dict with ok=True and released telling whether a live lock
            was removed.
        """
        released = await self.host.locks.force_release(file_id)
        return {"ok": True, "file_id": file_id, "released": released}


__all__ = ["LockEndpoint"]
