from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from permscope.catalog.loader import load_catalog
from permscope.db.init_db import init_db
from permscope.errors import PermissionDenied, StoreError, TransitionFailed, UnknownUser
from permscope.logging_config import configure_app_logging
from permscope.routers import admin, catalog, customers, health, performance, sessions
from permscope.security.sessions import SessionCache
from permscope.services.role_transition import RoleTransitionHandler
from permscope.settings import get_settings

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = "1"


def _store_error(request: Request, exc: StoreError) -> JSONResponse:
    # Never degrade to a permissive default: the request fails and the caller retries.
    if exc.retryable:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Authorization store unavailable, retry later"},
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Authorization store error"})


def _transition_failed(request: Request, exc: TransitionFailed) -> JSONResponse:
    if exc.retryable:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc)},
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


def _permission_denied(request: Request, exc: PermissionDenied) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


def _unknown_user(request: Request, exc: UnknownUser) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StoreError, _store_error)
    app.add_exception_handler(TransitionFailed, _transition_failed)
    app.add_exception_handler(PermissionDenied, _permission_denied)
    app.add_exception_handler(UnknownUser, _unknown_user)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        registry = load_catalog(settings.resolved_catalog_path(), strict=settings.catalog_strict)
        app.state.registry = registry
        logger.info("Loaded catalog: %s", settings.resolved_catalog_path())

        app.state.sessions = SessionCache(ttl_seconds=settings.session_ttl_seconds)
        app.state.transitions = RoleTransitionHandler(registry)

        init_db(registry, seed=settings.seed_demo_data)
        logger.info("Database initialized (tables ensured + seed if needed)")

        yield
        # Shutdown: live sessions die with the process.

    app = FastAPI(title="permscope", lifespan=lifespan)
    install_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(sessions.router)
    app.include_router(catalog.router)
    app.include_router(customers.router)
    app.include_router(performance.router)
    app.include_router(admin.router)

    return app


app = create_app()
