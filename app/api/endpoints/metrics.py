from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from app.core.observability.metrics import snapshot_named, snapshot_requests

router = APIRouter()


def _render():
    req = snapshot_requests()
    body = {"requests": req, "named": snapshot_named()}

    for k in ("requests_total", "requests_GET", "requests_PUT", "requests_PATCH", "requests_DELETE"):
        if k in req:
            body[k] = req[k]

    return body


@router.get("/metrics/snapshot")
def metrics_snapshot():
    return _render()


@router.get("/metrics", include_in_schema=False)
def prometheus_metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
