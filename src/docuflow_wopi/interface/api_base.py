# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""FastAPI application: WOPI protocol routes and introspected admin routes.

Components:
    create_app: FastAPI application factory.
    register_endpoint: Register endpoint methods as FastAPI routes.
    require_token: X-API-Token dependency for admin routes.

WOPI routes (prefix from WopiConfig.wopi_prefix, default /wopi):
    GET  {prefix}/files/{file_id}            CheckFileInfo
    GET  {prefix}/files/{file_id}/contents   GetFile
    POST {prefix}/files/{file_id}            X-WOPI-Override dispatch
    POST {prefix}/files/{file_id}/contents   PutFile

Service routes:
    GET /ping     literal "pong" (liveness probe)
    GET /health   {"status": "ok"}

Example:
    Create and run the API server::

        from docuflow_wopi import WopiHost
        from docuflow_wopi.interface import create_app

        host = WopiHost()
        app = create_app(host, api_token="secret")

        import uvicorn
        uvicorn.run(app, host="0.0.0.0", port=18000)

Note:
    WOPI routes do not use X-API-Token: editors authenticate with the
    access_token query parameter. WopiError exceptions raised by the host
    become plain-text responses with their status code, plus X-WOPI-Lock
    when the error carries a lock value.
"""

from __future__ import annotations

import inspect
import logging
import secrets
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.security import APIKeyHeader

from ..errors import PayloadTooLarge, WopiError
from .endpoint_base import BaseEndpoint

if TYPE_CHECKING:
    from ..wopi_host import WopiHost

logger = logging.getLogger(__name__)

# Authentication constants
API_TOKEN_HEADER_NAME = "X-API-Token"
api_key_scheme = APIKeyHeader(name=API_TOKEN_HEADER_NAME, auto_error=False)

WOPI_LOCK_HEADER = "X-WOPI-Lock"


def register_endpoint(app: FastAPI | APIRouter, endpoint: BaseEndpoint, prefix: str = "") -> None:
    """Register all methods of an endpoint as FastAPI routes.

    Introspects the endpoint to discover async methods and creates
    GET (query params) or POST (JSON body) routes.

    Args:
        app: FastAPI app or APIRouter to register routes on.
        endpoint: BaseEndpoint instance.
        prefix: Optional URL prefix. Defaults to /{endpoint.name}.

    Example:
        ::

            register_endpoint(app, LockEndpoint(host))
            # Creates routes: GET /locks/list, GET /locks/get, POST /locks/release
    """
    base_path = prefix or f"/{endpoint.name}"

    for method_name, method in endpoint.get_methods():
        path = f"{base_path}/{method_name}"
        doc = method.__doc__ or f"{method_name} operation"

        if endpoint.get_http_method(method_name) == "GET":
            _register_query_route(app, path, method, doc)
        else:
            _register_body_route(app, path, method, doc, endpoint.create_request_model(method_name))


def _register_query_route(app: FastAPI | APIRouter, path: str, method: Callable, doc: str) -> None:
    """Register GET route with query parameters."""
    sig = inspect.signature(method)

    params = []
    for param_name, param in sig.parameters.items():
        if param_name == "self":
            continue

        ann = param.annotation if param.annotation is not inspect.Parameter.empty else str
        default = param.default if param.default is not inspect.Parameter.empty else ...
        params.append((param_name, ann, default))

    async def handler(**kwargs: Any) -> Any:
        return await method(**kwargs)

    handler.__signature__ = inspect.Signature(  # type: ignore[attr-defined]
        parameters=[
            inspect.Parameter(
                name=p[0],
                kind=inspect.Parameter.KEYWORD_ONLY,
                default=Query(p[2]) if p[2] is not ... else Query(...),
                annotation=p[1],
            )
            for p in params
        ]
    )
    handler.__doc__ = doc
    app.get(path, summary=doc.split("\n")[0])(handler)


def _make_body_handler(method: Callable, RequestModel: type) -> Callable:
    """Create handler that accepts body and calls method."""

    async def handler(data: RequestModel) -> Any:  # type: ignore[valid-type]
        return await method(**data.model_dump())

    handler.__signature__ = inspect.Signature(  # type: ignore[attr-defined]
        parameters=[
            inspect.Parameter(
                "data",
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                annotation=RequestModel,
            ),
        ]
    )
    return handler


def _register_body_route(
    app: FastAPI | APIRouter,
    path: str,
    method: Callable,
    doc: str,
    RequestModel: type,
) -> None:
    """Register POST route with JSON request body."""
    handler = _make_body_handler(method, RequestModel)
    handler.__doc__ = doc
    app.post(path, summary=doc.split("\n")[0])(handler)


# =============================================================================
# Authentication
# =============================================================================


async def require_token(
    request: Request,
    api_token: str | None = Depends(api_key_scheme),
) -> None:
    """Validate the admin token from the X-API-Token header.

    No token configured means open access.

    Raises:
        HTTPException: 401 if the token is missing or wrong.
    """
    expected = getattr(request.app.state, "api_token", None)
    if expected is None:
        return
    if api_token and secrets.compare_digest(api_token, expected):
        return
    raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid or missing API token")


auth_dependency = Depends(require_token)


# =============================================================================
# Application factory
# =============================================================================


def create_app(
    host: WopiHost,
    api_token: str | None = None,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[None]] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        host: WopiHost instance implementing the protocol.
        api_token: Optional token for X-API-Token admin authentication.
        lifespan: Optional lifespan context manager. If None, creates
            default that starts/stops the host.

    Returns:
        Configured FastAPI application with all routes registered.
    """
    if lifespan is None:

        @asynccontextmanager
        async def default_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
            """Default lifespan: start and stop the WopiHost service."""
            logger.info("Starting WOPI host service...")
            await host.start()
            try:
                yield
            finally:
                logger.info("Stopping WOPI host service...")
                await host.stop()

        lifespan = default_lifespan

    app = FastAPI(title="docuflow WOPI host", lifespan=lifespan)
    app.state.api_token = api_token

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[WOPI_LOCK_HEADER, "X-WOPI-ItemVersion"],
    )

    @app.exception_handler(WopiError)
    async def wopi_error_handler(request: Request, exc: WopiError) -> PlainTextResponse:
        """Render WopiError as plain text with X-WOPI-Lock when present."""
        headers = {WOPI_LOCK_HEADER: exc.lock} if exc.lock is not None else None
        return PlainTextResponse(exc.message, status_code=exc.status_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle FastAPI request validation errors with logging."""
        logger.error(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=422, content={"detail": exc.errors()})

    @app.get("/ping", response_class=PlainTextResponse)
    async def ping() -> str:
        """Liveness probe."""
        return "pong"

    _register_entity_endpoints(app, host)
    _register_wopi_endpoints(app, host, prefix=host.config.wopi_prefix.rstrip("/"))

    return app


def _register_entity_endpoints(app: FastAPI, host: WopiHost) -> None:
    """Register admin endpoints behind X-API-Token, plus unauthenticated /health."""
    router = APIRouter(dependencies=[auth_dependency])
    for endpoint in host.endpoints.values():
        register_endpoint(router, endpoint)
    app.include_router(router)

    if "instance" in host.endpoints:
        instance_endpoint = host.endpoints["instance"]

        @app.get("/health")
        async def health() -> dict:
            """Health check endpoint for container orchestration."""
            return await instance_endpoint.health()


def _register_wopi_endpoints(app: FastAPI, host: WopiHost, prefix: str = "/wopi") -> None:
    """Register WOPI protocol endpoints for document editing.

    These endpoints follow the WOPI protocol and use access_token in the
    query string, not the X-API-Token header.
    """
    content_type = host.config.content_type

    @app.get(f"{prefix}/files/{{file_id}}")
    async def wopi_check_file_info(
        file_id: str,
        access_token: str | None = Query(None, description="WOPI access token"),
    ) -> dict:
        """WOPI CheckFileInfo: return file metadata and capabilities."""
        return await host.check_file_info(file_id, access_token)

    @app.get(f"{prefix}/files/{{file_id}}/contents", response_class=Response)
    async def wopi_get_file(
        file_id: str,
        access_token: str | None = Query(None, description="WOPI access token"),
    ) -> Response:
        """WOPI GetFile: download file content."""
        content = await host.get_file(file_id)
        return Response(content=content, media_type=content_type)

    @app.post(f"{prefix}/files/{{file_id}}", response_class=Response)
    async def wopi_file_operation(
        file_id: str,
        x_wopi_override: str | None = Header(None, alias="X-WOPI-Override"),
        x_wopi_lock: str | None = Header(None, alias="X-WOPI-Lock"),
        x_wopi_old_lock: str | None = Header(None, alias="X-WOPI-OldLock"),
    ) -> Response:
        """WOPI Lock, Unlock, RefreshLock, GetLock via X-WOPI-Override."""
        result = await host.handle_override(
            file_id, x_wopi_override, lock=x_wopi_lock, old_lock=x_wopi_old_lock
        )
        headers = {WOPI_LOCK_HEADER: result.lock} if result.lock is not None else None
        return Response(status_code=status.HTTP_200_OK, headers=headers)

    @app.post(f"{prefix}/files/{{file_id}}/contents", response_class=Response)
    async def wopi_put_file(
        request: Request,
        file_id: str,
        x_wopi_lock: str | None = Header(None, alias="X-WOPI-Lock"),
    ) -> Response:
        """WOPI PutFile: save edited file content."""
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > host.config.max_upload_bytes:
            raise PayloadTooLarge(
                f"File exceeds {host.config.max_upload_bytes} bytes upload limit"
            )
        content = await request.body()
        version = await host.put_file(file_id, x_wopi_lock, content)
        return Response(
            status_code=status.HTTP_200_OK,
            headers={"X-WOPI-ItemVersion": version},
        )


__all__ = [
    "API_TOKEN_HEADER_NAME",
    "WOPI_LOCK_HEADER",
    "api_key_scheme",
    "auth_dependency",
    "create_app",
    "register_endpoint",
    "require_token",
]
