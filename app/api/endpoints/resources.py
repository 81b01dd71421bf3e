from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response

from app.api.deps import get_item_store, get_settings
from app.api.models.resource_responses import ERROR_RESPONSES
from app.api.observability.metrics import COMPILED_EXPRESSIONS_TOTAL
from app.core.compiler import (
    FieldPathValidationError,
    compile_projection,
    compile_update,
    infer_field_paths,
)
from app.core.observability.metrics import inc_named
from app.core.settings import Settings
from app.core.storage import InvalidDocumentPathError, ItemNotFoundError, ItemStore

log = logging.getLogger("fieldpath.resources")

router = APIRouter(prefix="/resource", tags=["Resources"], responses=ERROR_RESPONSES)

FIELD_DESCRIPTION = "Dotted attribute path; repeat for several fields. Truncated to the configured depth."


def _json_log(event: str, **fields):
    # Field paths only; written values are never logged.
    log.info("%s", {"event": event, **fields})


def _not_found(item_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Resource not found: {item_id}")


def _require_object(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def _reject_key_paths(paths: Sequence[str], key_name: str) -> None:
    for p in paths:
        if p.split(".", 1)[0] == key_name:
            raise HTTPException(
                status_code=400,
                detail=f"field {p!r} targets the key attribute {key_name!r}",
            )


def _apply_update(store: ItemStore, item_id: str, update) -> Dict[str, Any]:
    try:
        return store.update_item(item_id, update)
    except ItemNotFoundError:
        raise _not_found(item_id)
    except InvalidDocumentPathError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{item_id}")
def get_resource(
    item_id: str,
    field: List[str] = Query(default=[], description=FIELD_DESCRIPTION),
    settings: Settings = Depends(get_settings),
    store: ItemStore = Depends(get_item_store),
) -> Dict[str, Any]:
    try:
        projection = compile_projection(field, settings.max_depth)
    except FieldPathValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not projection.is_empty:
        COMPILED_EXPRESSIONS_TOTAL.labels(kind="projection").inc()
        inc_named("compiled_projection")

    try:
        item = store.get_item(item_id, projection)
    except ItemNotFoundError:
        raise _not_found(item_id)
    except InvalidDocumentPathError as e:
        raise HTTPException(status_code=400, detail=str(e))

    _json_log("resource_get", item_id=item_id, fields=list(field))
    return item


@router.put("/{item_id}")
def put_resource(
    item_id: str,
    body: Any = Body(...),
    store: ItemStore = Depends(get_item_store),
) -> Dict[str, Any]:
    item = _require_object(body)
    stored = store.put_item(item_id, item)
    inc_named("resource_put")
    _json_log("resource_put", item_id=item_id, attributes=sorted(item.keys()))
    return stored


@router.patch("/{item_id}")
def patch_resource(
    item_id: str,
    body: Any = Body(...),
    field: List[str] = Query(default=[], description=FIELD_DESCRIPTION),
    settings: Settings = Depends(get_settings),
    store: ItemStore = Depends(get_item_store),
) -> Dict[str, Any]:
    """
    Partial update.

    With ``field`` parameters exactly those paths are written: a path whose
    body value is ``null`` is set to null, a path missing from the body is
    removed. Without ``field`` the paths are inferred from the body.
    """
    data = _require_object(body)
    try:
        paths = list(field) if field else infer_field_paths(data, settings.max_depth)
        _reject_key_paths(paths, settings.key_name)
        update = compile_update(paths, data, settings.max_depth)
    except FieldPathValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if update.is_empty:
        raise HTTPException(status_code=400, detail="Nothing to update")

    COMPILED_EXPRESSIONS_TOTAL.labels(kind="update").inc()
    inc_named("compiled_update")

    item = _apply_update(store, item_id, update)
    _json_log(
        "resource_patch",
        item_id=item_id,
        inferred=not field,
        set=list(update.set_paths),
        remove=list(update.remove_paths),
    )
    return item


@router.delete("/{item_id}", response_model=None)
def delete_resource(
    item_id: str,
    field: List[str] = Query(default=[], description=FIELD_DESCRIPTION),
    settings: Settings = Depends(get_settings),
    store: ItemStore = Depends(get_item_store),
):
    """Without ``field`` the whole item is deleted; with it only those attributes are removed."""
    if not field:
        try:
            store.delete_item(item_id)
        except ItemNotFoundError:
            raise _not_found(item_id)
        inc_named("resource_delete")
        _json_log("resource_delete", item_id=item_id)
        return Response(status_code=204)

    try:
        _reject_key_paths(field, settings.key_name)
        # Nothing resolves against an empty payload, so every path compiles to REMOVE.
        update = compile_update(field, {}, settings.max_depth)
    except FieldPathValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    COMPILED_EXPRESSIONS_TOTAL.labels(kind="remove").inc()
    inc_named("compiled_remove")

    item = _apply_update(store, item_id, update)
    _json_log("resource_remove_fields", item_id=item_id, remove=list(update.remove_paths))
    return item
