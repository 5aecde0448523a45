# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Build the collaborators every request shares: the ``Database`` handle,
  the mailer and the artifact storage, and hang them on ``app.state``.
* Connect the database on startup and dispose of it on shutdown.
* Register CORS, request logging and the error handlers.
* Mount the feature routers (auth, user, research, admin) and the
  ``/uploads`` static directory.
* Expose a /health endpoint for container liveness checks.

Run with ``uvicorn main:app`` from the backend/ directory.
"""

import time
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles

from admin.router import router as admin_router
from auth.router import router as auth_router
from core.config import Settings, settings as default_settings
from core.exceptions import register_exception_handlers
from core.logger import logger
from core.mailer import Mailer, build_mailer
from core.storage import LocalArtifactStorage
from database import Database
from research.router import router as research_router
from users.router import router as user_router


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Request bodies (passwords, codes) are never echoed – only the URL and
# metadata are recorded.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """
    Build the application.  Tests pass their own ``database`` and ``mailer``;
    in production both are derived from *settings*.
    """
    settings = settings or default_settings

    app = FastAPI(title="DeepTech Summit API", version="1.0.0")

    app.state.settings = settings
    app.state.database = database or Database(settings.database_url)
    app.state.mailer = mailer or build_mailer(settings)
    app.state.storage = LocalArtifactStorage(Path(settings.upload_dir), settings.public_base_url)
    app.state.storage.ensure_root()

    # -- CORS ----------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "adminid"],
    )
    app.add_middleware(_RequestLogMiddleware)

    register_exception_handlers(app)

    # -- Routers -------------------------------------------------------------
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(research_router)
    app.include_router(admin_router)

    # -- Lifecycle -----------------------------------------------------------

    @app.on_event("startup")
    async def _on_startup():
        app.state.database.connect()
        logger.info("DeepTech Summit API starting up (mail backend: %s)", settings.mail_backend)

    @app.on_event("shutdown")
    async def _on_shutdown():
        app.state.database.dispose()
        logger.info("DeepTech Summit API shutting down")

    # -- Health check --------------------------------------------------------

    @app.get("/health")
    def health():
        db_ok = app.state.database.ping()
        return {"status": "ok", "database": "connected" if db_ok else "disconnected"}

    # -- Uploaded artifacts --------------------------------------------------
    # Mounted *after* the API routers so that /api/* is handled first.
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

    return app


app = create_app()
