"""Field-path expression compiler.

Turns dotted field paths (and, for writes, a partial payload) into
placeholder-based DynamoDB projection / update expressions.
"""

from app.core.compiler.expression_models import CompiledProjection, CompiledUpdate
from app.core.compiler.expressions import compile_projection, compile_update, infer_field_paths
from app.core.compiler.field_paths import (
    ABSENT,
    FieldPathValidationError,
    resolve_field_value,
    split_field_path,
)

__all__ = [
    "ABSENT",
    "CompiledProjection",
    "CompiledUpdate",
    "FieldPathValidationError",
    "compile_projection",
    "compile_update",
    "infer_field_paths",
    "resolve_field_value",
    "split_field_path",
]
