# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base class for endpoint introspection and route generation.

This module provides the foundation for automatic admin API generation
from endpoint classes via method introspection.

Components:
    POST: Decorator to mark methods as HTTP POST.
    BaseEndpoint: Base class with introspection capabilities.

Example:
    Define an endpoint::

        from docuflow_wopi.interface.endpoint_base import BaseEndpoint, POST

        class LockEndpoint(BaseEndpoint):
            name = "locks"

            async def get(self, file_id: str) -> dict:
                \"\"\"Show the lock on a file.\"\"\"
                return {"lock": await self.host.locks.current_token(file_id)}

            @POST
            async def release(self, file_id: str) -> dict:
                \"\"\"Break the lock on a file.\"\"\"
                return {"ok": await self.host.locks.force_release(file_id)}

Note:
    BaseEndpoint.discover() scans docuflow_wopi.entities for endpoint
    modules and returns their endpoint classes.
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, get_type_hints

from pydantic import create_model

if TYPE_CHECKING:
    from ..wopi_host import WopiHost

# Package to scan for entity endpoints
_ENTITIES_PACKAGE = "docuflow_wopi.entities"


def POST(method: Callable) -> Callable:
    """Decorator to mark an endpoint method as POST.

    POST methods receive parameters via JSON request body
    instead of query parameters.

    Args:
        method: The async method to decorate.

    Returns:
        The decorated method with _http_post attribute set.
    """
    method._http_post = True  # type: ignore[attr-defined]
    return method


class BaseEndpoint:
    """Base class for all endpoints with introspection capabilities.

    Provides method discovery, HTTP method inference, and Pydantic model
    generation from signatures for automatic route generation.

    Attributes:
        name: Endpoint name used in URL paths.
        host: WopiHost instance the endpoint operates on.
    """

    name: str = ""

    def __init__(self, host: WopiHost):
        """Initialize endpoint with host reference.

        Args:
            host: WopiHost whose state the endpoint exposes.
        """
        self.host = host

    def get_methods(self) -> list[tuple[str, Callable]]:
        """Return all public async methods for route generation.

        Returns:
            List of (method_name, method) tuples for all public
            async methods (excluding those starting with underscore).
        """
        methods = []
        for method_name in dir(self):
            if method_name.startswith("_"):
                continue
            method = getattr(self, method_name)
            if callable(method) and inspect.iscoroutinefunction(method):
                methods.append((method_name, method))
        return methods

    def get_http_method(self, method_name: str) -> str:
        """Return "POST" if decorated with @POST, otherwise "GET"."""
        method = getattr(self, method_name)
        if getattr(method, "_http_post", False):
            return "POST"
        return "GET"

    def create_request_model(self, method_name: str) -> type:
        """Create Pydantic model from method signature.

        Used by API layer to validate and parse request bodies.

        Args:
            method_name: Name of the method to introspect.

        Returns:
            Dynamically created Pydantic model class.
        """
        method = getattr(self, method_name)
        sig = inspect.signature(method)

        try:
            hints = get_type_hints(method)
        except Exception:
            hints = {}

        fields = {}
        for param_name, param in sig.parameters.items():
            if param_name == "self":
                continue

            annotation = hints.get(param_name, param.annotation)
            if annotation is inspect.Parameter.empty:
                annotation = Any

            if param.default is inspect.Parameter.empty:
                fields[param_name] = (annotation, ...)
            else:
                fields[param_name] = (annotation, param.default)

        model_name = f"{method_name.title().replace('_', '')}Request"
        return create_model(model_name, **fields)

    @classmethod
    def discover(cls) -> list[type[BaseEndpoint]]:
        """Autodiscover endpoint classes from entities/*/endpoint.py.

        Returns:
            List of endpoint classes ready for instantiation.

        Example:
            ::

                for endpoint_class in BaseEndpoint.discover():
                    endpoint = endpoint_class(host)
                    register_endpoint(app, endpoint)
        """
        endpoints: list[type[BaseEndpoint]] = []
        for module in cls._find_entity_modules(_ENTITIES_PACKAGE, "endpoint").values():
            endpoint_class = cls._get_class_from_module(module, "Endpoint")
            if endpoint_class:
                endpoints.append(endpoint_class)
        return endpoints

    @classmethod
    def _find_entity_modules(cls, base_package: str, module_name: str) -> dict[str, Any]:
        """Find entity modules in a package."""
        result: dict[str, Any] = {}
        package = importlib.import_module(base_package)

        package_path = getattr(package, "__path__", None)
        if not package_path:
            return result

        for _, name, is_pkg in pkgutil.iter_modules(package_path):
            if not is_pkg:
                continue
            full_module_name = f"{base_package}.{name}.{module_name}"
            try:
                module = importlib.import_module(full_module_name)
            except ModuleNotFoundError as e:
                if e.name != full_module_name:
                    raise
                continue
            result[name] = module
        return result

    @classmethod
    def _get_class_from_module(cls, module: Any, class_suffix: str) -> type | None:
        """Extract the endpoint class defined in module by suffix pattern."""
        for attr_name in dir(module):
            if attr_name.startswith("_"):
                continue
            obj = getattr(module, attr_name)
            if isinstance(obj, type) and attr_name.endswith(class_suffix):
                if attr_name in ("BaseEndpoint", "Endpoint"):
                    continue
                if not getattr(obj, "name", ""):
                    continue
                return obj
        return None


__all__ = ["BaseEndpoint", "POST"]
