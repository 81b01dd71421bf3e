"""DynamoDB-backed item store (boto3 Table resource)."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Dict

import boto3
from botocore.exceptions import ClientError

from app.core.compiler import CompiledProjection, CompiledUpdate
from app.core.settings import Settings

from .item_store import InvalidDocumentPathError, ItemNotFoundError, ItemStore

log = logging.getLogger("fieldpath.storage")

KEY_PLACEHOLDER = "#pk"
EXISTS_CONDITION = f"attribute_exists({KEY_PLACEHOLDER})"


def to_dynamodb(value: Any) -> Any:
    """boto3 rejects float; round-trip through JSON so every float becomes Decimal."""
    return json.loads(json.dumps(value), parse_float=Decimal)


def from_dynamodb(value: Any) -> Any:
    """Decimal -> int when written without a fractional part, float otherwise (2.0 stays float)."""
    if isinstance(value, Decimal):
        return int(value) if value.as_tuple().exponent >= 0 else float(value)
    if isinstance(value, dict):
        return {k: from_dynamodb(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [from_dynamodb(v) for v in value]
    if isinstance(value, set):
        return sorted(from_dynamodb(v) for v in value)
    return value


def _error_code(e: ClientError) -> str:
    return (e.response.get("Error") or {}).get("Code") or ""


def _error_message(e: ClientError) -> str:
    return (e.response.get("Error") or {}).get("Message") or str(e)


class DynamoDBItemStore(ItemStore):
    name = "dynamodb"

    def __init__(self, table, *, key_name: str = "id"):
        super().__init__(key_name=key_name)
        self.table = table

    @classmethod
    def from_settings(cls, settings: Settings) -> "DynamoDBItemStore":
        kwargs: Dict[str, Any] = {"region_name": settings.aws_region}
        if settings.dynamodb_endpoint:
            kwargs["endpoint_url"] = settings.dynamodb_endpoint
        resource = boto3.resource("dynamodb", **kwargs)
        return cls(resource.Table(settings.table_name), key_name=settings.key_name)

    def _key(self, item_id: str) -> Dict[str, Any]:
        return {self.key_name: item_id}

    def get_item(self, item_id: str, projection: CompiledProjection | None = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"Key": self._key(item_id)}
        if projection is not None:
            params.update(projection.to_request_params())

        try:
            resp = self.table.get_item(**params)
        except ClientError as e:
            if _error_code(e) == "ValidationException":
                raise InvalidDocumentPathError(_error_message(e)) from e
            raise
        item = resp.get("Item")
        if item is None:
            raise ItemNotFoundError(item_id)
        return from_dynamodb(item)

    def put_item(self, item_id: str, item: Dict[str, Any]) -> Dict[str, Any]:
        stored = dict(item)
        stored[self.key_name] = item_id
        self.table.put_item(Item=to_dynamodb(stored))
        return stored

    def update_item(self, item_id: str, update: CompiledUpdate) -> Dict[str, Any]:
        params = update.to_request_params()
        params["ExpressionAttributeNames"][KEY_PLACEHOLDER] = self.key_name
        if "ExpressionAttributeValues" in params:
            params["ExpressionAttributeValues"] = to_dynamodb(params["ExpressionAttributeValues"])

        try:
            resp = self.table.update_item(
                Key=self._key(item_id),
                ConditionExpression=EXISTS_CONDITION,
                ReturnValues="ALL_NEW",
                **params,
            )
        except ClientError as e:
            code = _error_code(e)
            if code == "ConditionalCheckFailedException":
                raise ItemNotFoundError(item_id) from e
            if code == "ValidationException":
                raise InvalidDocumentPathError(_error_message(e)) from e
            raise

        log.debug("dynamodb update id=%s table=%s", item_id, self.table.name)
        return from_dynamodb(resp.get("Attributes") or {})

    def delete_item(self, item_id: str) -> None:
        try:
            self.table.delete_item(
                Key=self._key(item_id),
                ConditionExpression=EXISTS_CONDITION,
                ExpressionAttributeNames={KEY_PLACEHOLDER: self.key_name},
            )
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                raise ItemNotFoundError(item_id) from e
            raise

    def ping(self) -> bool:
        try:
            self.table.load()
        except ClientError as e:
            log.warning("dynamodb ping failed table=%s code=%s", self.table.name, _error_code(e))
            return False
        return True
