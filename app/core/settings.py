from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple


STORE_BACKENDS: tuple[str, ...] = ("memory", "dynamodb")


def _env(name: str, default: str) -> str:
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    env: str = "dev"
    max_depth: int = 2
    store: str = "memory"
    table_name: str = "items"
    key_name: str = "id"
    aws_region: str = "ap-northeast-1"
    dynamodb_endpoint: Optional[str] = None
    cors_origins: Tuple[str, ...] = ("*",)
    host: str = "0.0.0.0"
    port: int = 8001

    @property
    def is_prod(self) -> bool:
        return self.env == "prod"


def load_settings() -> Settings:
    """
    Read FIELDPATH_* environment variables.

    Raises ValueError on unusable values so a misconfigured process fails at
    startup rather than on the first request.
    """
    max_depth = _env_int("FIELDPATH_MAX_DEPTH", 2)
    if max_depth < 1:
        raise ValueError(f"FIELDPATH_MAX_DEPTH must be >= 1, got {max_depth}")

    store = _env("FIELDPATH_STORE", "memory").lower()
    if store not in STORE_BACKENDS:
        raise ValueError(f"FIELDPATH_STORE must be one of {STORE_BACKENDS}, got {store!r}")

    key_name = _env("FIELDPATH_KEY_NAME", "id")
    if not key_name or "." in key_name:
        raise ValueError(f"FIELDPATH_KEY_NAME must be a plain attribute name, got {key_name!r}")

    origins_raw = _env("FIELDPATH_CORS_ORIGINS", "")
    origins = tuple(o.strip() for o in origins_raw.split(",") if o.strip()) if origins_raw else ("*",)

    return Settings(
        env=_env("FIELDPATH_ENV", "dev").lower(),
        max_depth=max_depth,
        store=store,
        table_name=_env("FIELDPATH_TABLE_NAME", "items"),
        key_name=key_name,
        aws_region=_env("FIELDPATH_AWS_REGION", "ap-northeast-1"),
        dynamodb_endpoint=_env("FIELDPATH_DYNAMODB_ENDPOINT", "") or None,
        cors_origins=origins,
        host=_env("FIELDPATH_HOST", "0.0.0.0"),
        port=_env_int("FIELDPATH_PORT", 8001),
    )
