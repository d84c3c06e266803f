# app/main.py

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.booking import BookingEngine, admin_policy
from app.config import Settings, settings as default_settings
from app.db import SQLStore, create_db_engine
from app.errors import BookingError, Conflict, Forbidden, NotFound, StorageError, ValidationError
from app.logging_config import setup_logging
from app.routers import admin_routes, auth_routes, reservations_routes, services_routes
from app.store import JSONStore, MemoryStore, Store

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ValidationError: 400,
    Conflict: 409,
    NotFound: 404,
    Forbidden: 403,
    StorageError: 500,
}


def build_store(settings: Settings) -> Store:
    backend = settings.store_backend.lower()
    if backend == "json":
        return JSONStore(settings.data_dir)
    if backend == "sql":
        return SQLStore(create_db_engine(settings.database_url))
    if backend == "memory":
        return MemoryStore()
    raise ValueError(f"Unknown store backend: {settings.store_backend!r}")


def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = STATUS_CODES.get(type(exc), 400)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"error": exc.message})


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.log_level)

    app = FastAPI(title=settings.project_name, version=settings.api_version)

    app.state.engine = BookingEngine(
        store if store is not None else build_store(settings),
        is_privileged=admin_policy(*settings.admin_email_list),
    )

    app.add_exception_handler(BookingError, booking_error_handler)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(auth_routes.router)
    app.include_router(services_routes.router)
    app.include_router(admin_routes.router)
    app.include_router(reservations_routes.router)

    # Mounted last so the API routes above win.
    if os.path.isdir(settings.static_dir):
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="web")

    return app


app = create_app()
