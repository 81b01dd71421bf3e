from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.endpoints import health
from app.api.endpoints import metrics as metrics_ep
from app.api.endpoints import resources
from app.api.middleware.error_shaping import SafeErrorMiddleware
from app.api.middleware.request_context import RequestContextMiddleware, SecurityHeadersMiddleware
from app.core.settings import Settings, load_settings
from app.core.storage import ItemStore, build_item_store


def create_app(settings: Optional[Settings] = None, store: Optional[ItemStore] = None) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(
        title="Field-Path Partial CRUD API",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.item_store = store if store is not None else build_item_store(settings)

    # ------------------------------------------------------------
    # Middleware stack (ORDER MATTERS)
    # Starlette reverses add_middleware order: the LAST call = OUTERMOST wrapper.
    # Runtime order (outermost -> innermost):
    #   SafeErrorMiddleware -> CORSMiddleware -> SecurityHeaders -> RequestContext -> handler
    # ------------------------------------------------------------
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, enabled=settings.is_prod)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SafeErrorMiddleware)

    app.include_router(health.router)
    app.include_router(metrics_ep.router)

    # Unversioned and /api/v1 expose the same resource surface.
    app.include_router(resources.router)
    app.include_router(resources.router, prefix="/api/v1")

    return app


app = create_app()
