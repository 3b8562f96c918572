# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Interface layer for the HTTP API.

Components:
    BaseEndpoint: Base class for admin endpoint definitions.
    create_app: FastAPI application factory (WOPI + admin routes).
    register_endpoint: Register an endpoint as FastAPI routes.

Example:
    Create a FastAPI application::

        from docuflow_wopi import WopiHost
        from docuflow_wopi.interface import create_app

        app = create_app(WopiHost(), api_token="secret")

Note:
    Admin routes are generated from endpoint method signatures via
    introspection; WOPI protocol routes are declared explicitly.
"""

from .api_base import create_app, register_endpoint
from .endpoint_base import POST, BaseEndpoint

__all__ = [
    "BaseEndpoint",
    "POST",
    "create_app",
    "register_endpoint",
]
