# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""ASGI application entry point for uvicorn.

Configuration via environment variables (see wopi_config_from_env):
    WOPI_BACKEND: memory, local or supabase
    SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY: Supabase project
    WOPI_LOCK_STORE / WOPI_REDIS_URL: lock table location
    WOPI_API_TOKEN: admin API token
    WOPI_PORT or PORT: server port (default: 18000)

Example:
    Run with uvicorn::

        SUPABASE_URL=https://xyz.supabase.co SUPABASE_SERVICE_ROLE_KEY=... \\
            uvicorn docuflow_wopi.server:app --host 0.0.0.0 --port 18000

    Or via CLI::

        docuflow-wopi serve --port 18000

Note:
    The application includes a lifespan context manager that calls
    host.start() on startup and host.stop() on shutdown.
"""

from .wopi_config import wopi_config_from_env
from .wopi_host import WopiHost

# Create host and expose its FastAPI app (includes lifespan management)
_host = WopiHost(config=wopi_config_from_env())
app = _host.api
