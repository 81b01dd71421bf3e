from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


NAME_TOKEN_PREFIX = "#attr"
VALUE_TOKEN_PREFIX = ":val"


def name_token(field_index: int, segment_index: int) -> str:
    return f"{NAME_TOKEN_PREFIX}{field_index}_{segment_index}"


def value_token(field_index: int) -> str:
    return f"{VALUE_TOKEN_PREFIX}{field_index}"


@dataclass(frozen=True)
class CompiledProjection:
    expression: str = ""
    names: Dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.expression

    def to_request_params(self) -> Dict[str, Any]:
        """Keyword arguments for a DynamoDB ``get_item`` call. Empty -> no projection."""
        if self.is_empty:
            return {}
        return {
            "ProjectionExpression": self.expression,
            "ExpressionAttributeNames": dict(self.names),
        }


@dataclass(frozen=True)
class CompiledUpdate:
    expression: str = ""
    names: Dict[str, str] = field(default_factory=dict)
    values: Dict[str, Any] = field(default_factory=dict)
    # Truncated dotted paths, in input order, for logging and responses.
    set_paths: Tuple[str, ...] = ()
    remove_paths: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.expression

    def to_request_params(self) -> Dict[str, Any]:
        """
        Keyword arguments for a DynamoDB ``update_item`` call.

        ``ExpressionAttributeValues`` is omitted for REMOVE-only updates;
        DynamoDB rejects an empty value map.
        """
        params: Dict[str, Any] = {
            "UpdateExpression": self.expression,
            "ExpressionAttributeNames": dict(self.names),
        }
        if self.values:
            params["ExpressionAttributeValues"] = dict(self.values)
        return params
