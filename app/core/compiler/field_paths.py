from __future__ import annotations

from collections.abc import Mapping
from typing import Any, List, Sequence


FIELD_PATH_SEPARATOR = "."


class _Absent:
    """Marker for "no value at this path". Distinct from ``None`` (write null)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Absent, ())


ABSENT = _Absent()


class FieldPathValidationError(ValueError):
    def __init__(self, message: str, *, path: str | None = None):
        self.path = path
        super().__init__(message)


def validate_max_depth(max_depth: int) -> int:
    if isinstance(max_depth, bool) or not isinstance(max_depth, int):
        raise FieldPathValidationError(f"max_depth must be an integer, got {max_depth!r}")
    if max_depth < 1:
        raise FieldPathValidationError(f"max_depth must be >= 1, got {max_depth}")
    return max_depth


def split_field_path(path: str, max_depth: int) -> List[str]:
    """
    Split a dotted field path and keep the first ``max_depth`` segments.

    Every segment of the full path must be non-empty, so ``".a"``, ``"a."``
    and ``"a..b"`` are rejected even when the bad segment lies past the
    depth limit.
    """
    validate_max_depth(max_depth)
    if not isinstance(path, str):
        raise FieldPathValidationError(f"field path must be a string, got {type(path).__name__}")

    segments = path.split(FIELD_PATH_SEPARATOR)
    for segment in segments:
        if not segment:
            raise FieldPathValidationError(
                f"field path {path!r} contains an empty segment",
                path=path,
            )
    return segments[:max_depth]


def resolve_field_value(data: Mapping[str, Any], segments: Sequence[str]) -> Any:
    """
    Walk ``data`` along ``segments``.

    Returns ``ABSENT`` when a key is missing or an intermediate node is not
    a mapping. Lists are opaque leaves; there is no index addressing.
    """
    node: Any = data
    for segment in segments:
        if not isinstance(node, Mapping):
            return ABSENT
        if segment not in node:
            return ABSENT
        node = node[segment]
    return node


def join_field_path(segments: Sequence[str]) -> str:
    return FIELD_PATH_SEPARATOR.join(segments)
