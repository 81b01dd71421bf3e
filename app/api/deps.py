from __future__ import annotations

from fastapi import Request

from app.core.settings import Settings
from app.core.storage import ItemStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_item_store(request: Request) -> ItemStore:
    return request.app.state.item_store
