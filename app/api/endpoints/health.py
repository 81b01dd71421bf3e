from __future__ import annotations

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from app.api.deps import get_item_store, get_settings
from app.api.models.resource_responses import ReadyOut
from app.core.observability.metrics import inc_named
from app.core.settings import Settings
from app.core.storage import ItemStore

router = APIRouter()


@router.get("/health")
def health_check():
    return {"status": "healthy"}


@router.get("/health/live")
def live():
    inc_named("health_live")
    return {"status": "ok"}


@router.get("/health/ready", response_model=ReadyOut, responses={503: {"model": ReadyOut}})
def ready(
    settings: Settings = Depends(get_settings),
    store: ItemStore = Depends(get_item_store),
):
    """
    Readiness reflects ability to serve traffic: the store backend must
    answer a ping.
    """
    inc_named("health_ready")

    if not store.ping():
        return JSONResponse(
            status_code=503,
            content=ReadyOut(status="not_ready", store=store.name, problems=["store_unreachable"]).model_dump(),
        )

    return ReadyOut(status="ready", store=store.name, max_depth=settings.max_depth)
