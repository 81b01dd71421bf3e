from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class ErrorOut(BaseModel):
    detail: str
    request_id: Optional[str] = None


class ReadyOut(BaseModel):
    status: str
    store: str
    max_depth: Optional[int] = None
    problems: List[str] = []


ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorOut, "description": "Invalid field path, payload or document path"},
    404: {"model": ErrorOut, "description": "Resource not found"},
}
