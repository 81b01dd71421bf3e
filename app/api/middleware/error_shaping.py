from __future__ import annotations

import logging
import traceback
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from app.api.middleware.request_context import REQUEST_ID_HEADER
from app.core.compiler import FieldPathValidationError
from app.core.storage import InvalidDocumentPathError, ItemNotFoundError

log = logging.getLogger("fieldpath.errors")

# Domain errors every endpoint is expected to translate itself. Reaching the
# middleware means a handler missed one; it still gets its 4xx, not a 500.
_DOMAIN_STATUS = (
    (FieldPathValidationError, 400),
    (InvalidDocumentPathError, 400),
    (ItemNotFoundError, 404),
)


def _status_for(exc: Exception) -> Optional[int]:
    for exc_type, status in _DOMAIN_STATUS:
        if isinstance(exc, exc_type):
            return status
    return None


def _error_response(status: int, detail: str, rid: Optional[str]) -> JSONResponse:
    payload = {"detail": detail}
    headers = {}
    if rid:
        payload["request_id"] = rid
        headers[REQUEST_ID_HEADER] = rid
    return JSONResponse(status_code=status, content=payload, headers=headers)


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    Outermost error boundary.

    - Stray domain errors -> 400/404 with their message
    - Anything else -> 500 without a stack trace; traceback logged server-side
    - request_id preserved in body and X-Request-Id header
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER)

            status = _status_for(e)
            if status is not None:
                log.warning(
                    "Unhandled %s mapped to %d rid=%s path=%s: %s",
                    type(e).__name__,
                    status,
                    rid,
                    request.url.path,
                    e,
                )
                return _error_response(status, str(e), rid)

            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            return _error_response(500, "Internal Server Error", rid)
