# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""HTTP client for talking to a running docuflow WOPI host.

Example:
    >>> from docuflow_wopi.http_client import connect
    >>> host = connect("http://localhost:18000")
    >>> host.ping()
    'pong'
    >>> host.lock("doc1", "abc").ok
    True
"""

from .client import (
    LockResult,
    LocksAPI,
    WopiClientError,
    WopiHostClient,
    connect,
    register_connection,
)

__all__ = [
    "LockResult",
    "LocksAPI",
    "WopiClientError",
    "WopiHostClient",
    "connect",
    "register_connection",
]
