from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from rowstore.config import Settings, load_settings
from rowstore.core.engine import RowStore
from rowstore.core.grid import open_workbook

from rowstore.api.endpoints import health, rows
from rowstore.api.endpoints import metrics_export
from rowstore.api.middleware.error_shaping import SafeErrorMiddleware, validation_error_handler
from rowstore.api.middleware.request_context import RequestContextMiddleware


def create_app(settings: Optional[Settings] = None, store: Optional[RowStore] = None) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(
        title="Row Store API",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.store = store or RowStore(open_workbook(settings))

    # ------------------------------------------------------------
    # Middleware stack (ORDER MATTERS)
    # Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
    # Runtime order (outermost → innermost):
    #   SafeErrorMiddleware → CORSMiddleware → RequestContext → handler
    # ------------------------------------------------------------
    app.add_middleware(RequestContextMiddleware)

    # Browser callers post from any origin unless narrowed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_origins != ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_middleware(SafeErrorMiddleware)

    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # ------------------------------------------------------------
    # Routes: unversioned (web-app style /exec) and /api/v1
    # ------------------------------------------------------------
    app.include_router(rows.router)
    app.include_router(rows.router, prefix="/api/v1")
    app.include_router(health.router)
    app.include_router(health.router, prefix="/api/v1")
    app.include_router(metrics_export.router)

    return app


app = create_app()
