from __future__ import annotations

import threading
from collections import Counter
from typing import Dict, Optional

# Requests counters (HTTP-level)
_REQUESTS = Counter()

# Named counters (custom)
_NAMED = Counter()

# Sync endpoints run in the threadpool; Counter "+=" is a read-modify-write.
_LOCK = threading.Lock()


def reset_metrics() -> None:
    """
    Test helper: clears all counters to avoid cross-test leakage.
    Safe to call multiple times.
    """
    with _LOCK:
        _REQUESTS.clear()
        _NAMED.clear()


def inc_http(method: str, path: str, status: Optional[int] = None) -> None:
    """
    Canonical HTTP metric increment used by middleware.
    """
    m = (method or "UNKNOWN").upper()
    p = path or "/"
    s = status if status is not None else "unknown"

    with _LOCK:
        _REQUESTS["requests_total"] += 1
        _REQUESTS[f"requests_{m}"] += 1
        _REQUESTS[f"path_{p}|{s}"] += 1


def inc_named(name: str, value: int = 1) -> None:
    """
    Increment a named counter (compiled expressions, health probes, ...).
    """
    if not name:
        return
    with _LOCK:
        _NAMED[name] += int(value)


def snapshot_requests() -> Dict[str, int]:
    with _LOCK:
        return dict(_REQUESTS)


def snapshot_named() -> Dict[str, int]:
    with _LOCK:
        return dict(_NAMED)
