from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from app.core.compiler import CompiledProjection, CompiledUpdate


class ItemNotFoundError(Exception):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")


class InvalidDocumentPathError(Exception):
    """An update targets a document path the stored item cannot hold."""


class ItemStore(ABC):
    """
    Key-value item storage addressed by a single string key.

    Compiled expressions are passed through opaquely; a backend only needs
    the expression string and the alias maps.
    """

    name: str = "abstract"

    def __init__(self, *, key_name: str = "id"):
        self.key_name = key_name

    @abstractmethod
    def get_item(self, item_id: str, projection: CompiledProjection | None = None) -> Dict[str, Any]:
        """Return the item (projected when ``projection`` is non-empty). Raises ItemNotFoundError."""

    @abstractmethod
    def put_item(self, item_id: str, item: Dict[str, Any]) -> Dict[str, Any]:
        """Create or replace the whole item; the key attribute comes from ``item_id``."""

    @abstractmethod
    def update_item(self, item_id: str, update: CompiledUpdate) -> Dict[str, Any]:
        """Apply ``update`` to an existing item and return the full new item."""

    @abstractmethod
    def delete_item(self, item_id: str) -> None:
        """Delete an existing item. Raises ItemNotFoundError."""

    def ping(self) -> bool:
        return True
