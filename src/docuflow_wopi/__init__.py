# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""docuflow-wopi: WOPI host for browser-based office editors.

Lets Collabora Online, OnlyOffice or Microsoft 365 for the web open, lock
and save documents kept in Supabase (or local/in-memory storage), with a
per-file lock authority so that only one editing session writes at a time.

Main components:
    WopiConfig: Configuration dataclass
    WopiHost: Host with WOPI protocol handlers
    wopi_config_from_env: Factory to build config from environment

Usage:
    from docuflow_wopi import WopiHost, WopiConfig

    config = WopiConfig(backend="local", local_path="/data/documents")
    host = WopiHost(config=config)
    app = host.api  # FastAPI application
"""

__version__ = "0.1.0"

from .wopi_config import WopiConfig, wopi_config_from_env
from .wopi_host import WopiHost, WopiOverride

__all__ = [
    "WopiConfig",
    "WopiHost",
    "WopiOverride",
    "wopi_config_from_env",
    "main",
]


def main() -> None:
    """CLI entry point. Creates a WopiHost from the environment and runs the CLI."""
    host = WopiHost(config=wopi_config_from_env())
    host.cli()
