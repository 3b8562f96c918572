# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Instance REST API endpoint for service-level operations.

Operations:
    - health: Container orchestration health check (also served
      unauthenticated at /health)
    - status: Authenticated service status
"""

from __future__ import annotations

from ...interface.endpoint_base import BaseEndpoint


class InstanceEndpoint(BaseEndpoint):
    """REST API endpoint for instance-level operations.

    Attributes:
        name: Endpoint name used in URL paths ("instance").
        host: WopiHost whose state is reported.
    """

    name = "instance"

    async def health(self) -> dict:
        """Health check for container orchestration.

        Returns immediately without touching any backend.

        Returns:
            Dict with status "ok".
        """
        return {"status": "ok"}

    async def status(self) -> dict:
        """Authenticated service status.

        Returns:
            Dict with ok=True, the active flag, the configured backends,
            and the number of active locks.
        """
        config = self.host.config
        locks = await self.host.locks.list_active()
        return {
            "ok": True,
            "active": self.host.active,
            "instance_name": config.instance_name,
            "backend": config.backend,
            "lock_store": config.lock_store,
            "active_locks": len(locks),
        }


__all__ = ["InstanceEndpoint"]
