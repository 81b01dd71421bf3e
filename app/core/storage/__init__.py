from app.core.settings import Settings

from .item_store import InvalidDocumentPathError, ItemNotFoundError, ItemStore
from .memory_store import MemoryItemStore


def build_item_store(settings: Settings) -> ItemStore:
    if settings.store == "dynamodb":
        # boto3 is only imported when the DynamoDB backend is selected.
        from .dynamodb_store import DynamoDBItemStore

        return DynamoDBItemStore.from_settings(settings)
    return MemoryItemStore(key_name=settings.key_name)


__all__ = [
    "InvalidDocumentPathError",
    "ItemNotFoundError",
    "ItemStore",
    "MemoryItemStore",
    "build_item_store",
]
