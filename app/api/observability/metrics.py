from __future__ import annotations

import re
from prometheus_client import Counter, Histogram


def normalize_path(path: str) -> str:
    """Reduce high-cardinality paths for metrics labels."""
    p = path or "/"

    # Resource ids are caller-chosen strings
    p = re.sub(r"^((?:/api/v1)?/resource)/[^/]+$", r"\1/:id", p)
    # UUID-ish
    p = re.sub(r"/[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}", "/:uuid", p)
    # ints
    p = re.sub(r"/\d+", "/:id", p)

    return p


HTTP_REQUESTS_TOTAL = Counter(
    "fieldpath_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "fieldpath_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

COMPILED_EXPRESSIONS_TOTAL = Counter(
    "fieldpath_compiled_expressions_total",
    "Field-path expressions compiled, by kind (projection, update, remove)",
    ["kind"],
)
