"""Field-path -> DynamoDB expression compiler.

Literal attribute names and values never appear in a compiled expression.
Each name segment is referenced as ``#attr{field}_{segment}`` and each
written value as ``:val{field}``, so reserved words and caller-controlled
field names cannot change the shape of the expression.

All functions are pure: alias maps are built per call, nothing is shared.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Sequence, Tuple

from .expression_models import CompiledProjection, CompiledUpdate, name_token, value_token
from .field_paths import (
    ABSENT,
    FIELD_PATH_SEPARATOR,
    FieldPathValidationError,
    join_field_path,
    resolve_field_value,
    split_field_path,
    validate_max_depth,
)

log = logging.getLogger("fieldpath.compiler")


def _alias_chain(field_index: int, segments: Sequence[str], names: Dict[str, str]) -> str:
    tokens: List[str] = []
    for segment_index, segment in enumerate(segments):
        token = name_token(field_index, segment_index)
        names[token] = segment
        tokens.append(token)
    return ".".join(tokens)


def compile_projection(field_paths: Sequence[str], max_depth: int) -> CompiledProjection:
    """
    Build a projection expression for ``field_paths``.

    An empty list means "no restriction" and yields an empty projection.
    """
    validate_max_depth(max_depth)
    if isinstance(field_paths, str):
        field_paths = [field_paths]

    names: Dict[str, str] = {}
    chains: List[str] = []
    for field_index, path in enumerate(field_paths):
        segments = split_field_path(path, max_depth)
        chains.append(_alias_chain(field_index, segments, names))

    compiled = CompiledProjection(expression=", ".join(chains), names=names)
    log.debug("compiled projection fields=%d depth=%d", len(chains), max_depth)
    return compiled


def compile_update(
    field_paths: Sequence[str],
    data: Mapping[str, Any],
    max_depth: int,
) -> CompiledUpdate:
    """
    Build an update expression writing ``field_paths`` from ``data``.

    A path whose value resolves to ``None`` is SET to null. A path that does
    not resolve at all (missing key, or traversal through a non-mapping) is
    REMOVEd.
    """
    validate_max_depth(max_depth)
    if isinstance(field_paths, str):
        field_paths = [field_paths]
    if data is None:
        data = {}

    names: Dict[str, str] = {}
    values: Dict[str, Any] = {}
    set_clauses: List[str] = []
    remove_clauses: List[str] = []
    set_paths: List[str] = []
    remove_paths: List[str] = []

    for field_index, path in enumerate(field_paths):
        segments = split_field_path(path, max_depth)
        chain = _alias_chain(field_index, segments, names)
        value = resolve_field_value(data, segments)

        if value is ABSENT:
            remove_clauses.append(chain)
            remove_paths.append(join_field_path(segments))
            continue

        token = value_token(field_index)
        values[token] = value
        set_clauses.append(f"{chain} = {token}")
        set_paths.append(join_field_path(segments))

    parts: List[str] = []
    if set_clauses:
        parts.append("SET " + ", ".join(set_clauses))
    if remove_clauses:
        parts.append("REMOVE " + ", ".join(remove_clauses))

    compiled = CompiledUpdate(
        expression=" ".join(parts),
        names=names,
        values=values,
        set_paths=tuple(set_paths),
        remove_paths=tuple(remove_paths),
    )
    log.debug(
        "compiled update set=%s remove=%s depth=%d",
        list(compiled.set_paths),
        list(compiled.remove_paths),
        max_depth,
    )
    return compiled


def infer_field_paths(data: Mapping[str, Any], max_depth: int) -> List[str]:
    """
    Derive the field paths a partial payload writes.

    Nested mappings are descended while the depth budget allows; once it is
    spent the whole subtree is one field. Lists and ``None`` are leaves.
    Output is depth-first in key insertion order. Keys that are empty or
    contain "." are rejected; they could not be addressed as a path.
    """
    validate_max_depth(max_depth)
    return [join_field_path(p) for p in _infer(data, max_depth)]


def _infer(data: Mapping[str, Any], max_depth: int) -> List[Tuple[str, ...]]:
    paths: List[Tuple[str, ...]] = []
    for key, value in data.items():
        if value is ABSENT:
            continue
        if not isinstance(key, str) or not key or FIELD_PATH_SEPARATOR in key:
            # Would split into different segments than the key it came from.
            raise FieldPathValidationError(f"attribute name {key!r} cannot be used as a field path", path=str(key))
        if isinstance(value, Mapping) and max_depth > 1:
            for sub in _infer(value, max_depth - 1):
                paths.append((key, *sub))
        else:
            paths.append((key,))
    return paths
