"""In-process item store.

Evaluates compiled projection / update expressions the way DynamoDB does
for the subset the compiler emits: ``SET path = :v, ...``, ``REMOVE path,
...`` and comma-separated projections, with every name and value given as
a placeholder.
"""

from __future__ import annotations

import copy
import logging
import re
import threading
from typing import Any, Dict, List, Tuple

from app.core.compiler import CompiledProjection, CompiledUpdate

from .item_store import InvalidDocumentPathError, ItemNotFoundError, ItemStore

log = logging.getLogger("fieldpath.storage")

_UPDATE_RE = re.compile(r"^(?:SET (?P<set>.+?))?\s*(?:REMOVE (?P<remove>.+))?$")

DocPath = Tuple[str, ...]


def _resolve_names(chain: str, names: Dict[str, str]) -> DocPath:
    out: List[str] = []
    for token in chain.strip().split("."):
        if token not in names:
            raise InvalidDocumentPathError(f"Unresolved attribute name placeholder: {token}")
        out.append(names[token])
    return tuple(out)


def _parse_update(expression: str, names: Dict[str, str]) -> Tuple[List[Tuple[DocPath, str]], List[DocPath]]:
    m = _UPDATE_RE.match(expression.strip())
    if not expression.strip() or not m:
        raise InvalidDocumentPathError(f"Unsupported update expression: {expression!r}")

    sets: List[Tuple[DocPath, str]] = []
    for clause in (m.group("set") or "").split(","):
        if not clause.strip():
            continue
        chain, _, token = clause.partition("=")
        sets.append((_resolve_names(chain, names), token.strip()))

    removes = [_resolve_names(c, names) for c in (m.group("remove") or "").split(",") if c.strip()]
    return sets, removes


def _check_overlap(paths: List[DocPath]) -> None:
    for i, a in enumerate(paths):
        for b in paths[i + 1:]:
            n = min(len(a), len(b))
            if a[:n] == b[:n]:
                raise InvalidDocumentPathError(
                    f"Two document paths overlap with each other: {'.'.join(a)}, {'.'.join(b)}"
                )


def _parent(item: Dict[str, Any], path: DocPath) -> Dict[str, Any]:
    node: Any = item
    for segment in path[:-1]:
        if not isinstance(node, dict) or segment not in node:
            raise InvalidDocumentPathError(
                f"The document path provided in the update expression is invalid for update: {'.'.join(path)}"
            )
        node = node[segment]
    if not isinstance(node, dict):
        raise InvalidDocumentPathError(
            f"The document path provided in the update expression is invalid for update: {'.'.join(path)}"
        )
    return node


def _project(item: Dict[str, Any], paths: List[DocPath]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for path in paths:
        node: Any = item
        found = True
        for segment in path:
            if not isinstance(node, dict) or segment not in node:
                found = False
                break
            node = node[segment]
        if not found:
            continue

        target = out
        for segment in path[:-1]:
            target = target.setdefault(segment, {})
        target[path[-1]] = copy.deepcopy(node)
    return out


class MemoryItemStore(ItemStore):
    name = "memory"

    def __init__(self, *, key_name: str = "id"):
        super().__init__(key_name=key_name)
        self._items: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get_item(self, item_id: str, projection: CompiledProjection | None = None) -> Dict[str, Any]:
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                raise ItemNotFoundError(item_id)
            if projection is None or projection.is_empty:
                return copy.deepcopy(item)
            paths = [_resolve_names(c, projection.names) for c in projection.expression.split(",")]
            _check_overlap(paths)
            return _project(item, paths)

    def put_item(self, item_id: str, item: Dict[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(item)
        stored[self.key_name] = item_id
        with self._lock:
            self._items[item_id] = stored
            return copy.deepcopy(stored)

    def update_item(self, item_id: str, update: CompiledUpdate) -> Dict[str, Any]:
        sets, removes = _parse_update(update.expression, update.names)
        _check_overlap([p for p, _ in sets] + removes)
        for path in [p for p, _ in sets] + removes:
            if path[0] == self.key_name:
                raise InvalidDocumentPathError(f"Cannot update attribute {self.key_name}. This attribute is part of the key")

        with self._lock:
            current = self._items.get(item_id)
            if current is None:
                raise ItemNotFoundError(item_id)

            # Applied to a copy; a failing clause leaves the stored item untouched.
            item = copy.deepcopy(current)
            for path, token in sets:
                if token not in update.values:
                    raise InvalidDocumentPathError(f"Unresolved attribute value placeholder: {token}")
                _parent(item, path)[path[-1]] = copy.deepcopy(update.values[token])
            for path in removes:
                _parent(item, path).pop(path[-1], None)

            self._items[item_id] = item
            log.debug("memory update id=%s set=%d remove=%d", item_id, len(sets), len(removes))
            return copy.deepcopy(item)

    def delete_item(self, item_id: str) -> None:
        with self._lock:
            if self._items.pop(item_id, None) is None:
                raise ItemNotFoundError(item_id)
