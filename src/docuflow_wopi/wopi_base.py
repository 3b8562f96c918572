# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base class for the WOPI host: collaborators, endpoints, and interface factories.

WopiHostBase is the foundation layer of docuflow-wopi, providing:

1. Configuration: WopiConfig instance at self.config
2. Storage: blob store at self.blobs, metadata store at self.metadata
3. Locking: LockManager at self.locks
4. Endpoints: Registry at self.endpoints with autodiscovered admin endpoints
5. Interfaces: Lazy `api` (FastAPI) and `cli` (Click) properties

Class Hierarchy:
    WopiHostBase (this class)
        └── WopiHost (wopi_host.py): adds WOPI protocol handlers

Discovery Mechanism:
    Endpoint classes are discovered from `docuflow_wopi.entities.*/endpoint.py`
    and instantiated with the host.

    Discovered entities:
        - locks: Admin inspection of the lock table
        - instance: Service status

Usage (testing with in-memory collaborators):
    host = WopiHost(
        blob_store=MemoryBlobStore(),
        metadata_store=MemoryMetadataStore(),
    )
    await host.start()

Usage (production via host.api):
    host = WopiHost(config=wopi_config_from_env())
    app = host.api  # FastAPI app with auto-start/stop lifespan
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .backends import BlobStore, MetadataStore, build_backends
from .interface import BaseEndpoint
from .locks import LockManager, LockStore, build_lock_store
from .wopi_config import WopiConfig

if TYPE_CHECKING:
    import click
    from fastapi import FastAPI

logger = logging.getLogger(__name__)


class WopiHostBase:
    """Foundation layer: config, collaborators, endpoints, interface factories.

    Attributes:
        config: WopiConfig instance with all configuration
        blobs: BlobStore holding document content
        metadata: MetadataStore holding document metadata
        locks: LockManager owning the lock table
        endpoints: Dict of Endpoint instances keyed by name

    Properties:
        api: FastAPI app (lazy, created on first access)
        cli: Click CLI group (lazy, created on first access)

    Subclassed by WopiHost which adds WOPI protocol handlers.
    """

    def __init__(
        self,
        config: WopiConfig | None = None,
        blob_store: BlobStore | None = None,
        metadata_store: MetadataStore | None = None,
        lock_store: LockStore | None = None,
    ):
        """Initialize base WOPI host with config and collaborators.

        Args:
            config: WopiConfig instance. If None, creates default.
            blob_store: Blob store. If None, built from config.backend.
            metadata_store: Metadata store. If None, built from config.backend.
            lock_store: Lock store. If None, built from config.lock_store.
        """
        self.config = config or WopiConfig()

        if blob_store is None or metadata_store is None:
            default_blobs, default_metadata = build_backends(self.config)
            blob_store = blob_store or default_blobs
            metadata_store = metadata_store or default_metadata
        self.blobs = blob_store
        self.metadata = metadata_store

        self.locks = LockManager(
            store=lock_store or build_lock_store(self.config),
            ttl_seconds=self.config.lock_ttl,
        )

        self.endpoints: dict[str, BaseEndpoint] = {}
        self._discover_endpoints()

    def _discover_endpoints(self) -> None:
        """Autodiscover Endpoint classes and bind them to this host."""
        for endpoint_class in BaseEndpoint.discover():
            self.endpoints[endpoint_class.name] = endpoint_class(self)

    def endpoint(self, name: str) -> BaseEndpoint:
        """Get endpoint by name."""
        if name not in self.endpoints:
            raise ValueError(f"Endpoint '{name}' not found")
        return self.endpoints[name]

    async def close(self) -> None:
        """Close collaborator connections."""
        await self.blobs.close()
        await self.metadata.close()
        await self.locks.store.close()

    # -------------------------------------------------------------------------
    # Interface factories (lazy properties)
    # -------------------------------------------------------------------------

    @property
    def api(self) -> FastAPI:
        """FastAPI app with WOPI routes, admin endpoints, and lifespan.

        Created on first access. Includes default lifespan that calls
        host.start() on startup and host.stop() on shutdown.

        Usage:
            uvicorn docuflow_wopi.server:app
        """
        if not hasattr(self, "_api") or self._api is None:
            from .interface import create_app

            self._api = create_app(self, api_token=self.config.api_token)
        return self._api

    @property
    def cli(self) -> click.Group:
        """Click CLI group with service commands (serve, ping).

        Created on first access.

        Usage:
            docuflow-wopi --help
        """
        if not hasattr(self, "_cli") or self._cli is None:
            self._cli = self._create_cli()
        return self._cli

    def _create_cli(self) -> click.Group:
        """Build Click CLI: serve and ping."""
        import click

        @click.group()
        @click.version_option(package_name="docuflow-wopi")
        def cli() -> None:
            """docuflow-wopi: WOPI host for office document editors."""
            pass

        @cli.command("serve")
        @click.option("--host", default="0.0.0.0", help="Bind host")
        @click.option("--port", "-p", default=self.config.port, help="Bind port")
        @click.option("--reload", is_flag=True, help="Enable auto-reload")
        def serve_cmd(host: str, port: int, reload: bool) -> None:
            """Start the WOPI host server."""
            import uvicorn

            logging.basicConfig(
                level=self.config.log_level,
                format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            )
            logger.info(f"=== WOPI host listening on port {port} ===")
            uvicorn.run(
                "docuflow_wopi.server:app",
                host=host,
                port=port,
                reload=reload,
            )

        @cli.command("ping")
        @click.option("--url", default=f"http://localhost:{self.config.port}", help="Host URL")
        def ping_cmd(url: str) -> None:
            """Check that a running host answers /ping."""
            from .http_client import WopiHostClient

            client = WopiHostClient(url, wopi_prefix=self.config.wopi_prefix)
            try:
                reply = client.ping()
            except Exception as e:
                raise click.ClickException(f"{url} unreachable: {e}") from e
            click.echo(reply)

        return cli


__all__ = ["WopiHostBase"]
