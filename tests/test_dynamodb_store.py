from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from app.core.compiler import compile_projection, compile_update
from app.core.settings import Settings
from app.core.storage import InvalidDocumentPathError, ItemNotFoundError, build_item_store
from app.core.storage.dynamodb_store import DynamoDBItemStore, from_dynamodb, to_dynamodb


def _client_error(code: str, message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "UpdateItem")


@pytest.fixture()
def table():
    t = MagicMock()
    t.name = "items"
    return t


@pytest.fixture()
def dynamo(table):
    return DynamoDBItemStore(table, key_name="id")


def test_get_item_passes_projection(dynamo, table):
    table.get_item.return_value = {"Item": {"id": "u1", "age": Decimal("30"), "score": Decimal("1.5")}}
    p = compile_projection(["age", "score"], 2)

    item = dynamo.get_item("u1", p)

    table.get_item.assert_called_once_with(
        Key={"id": "u1"},
        ProjectionExpression="#attr0_0, #attr1_0",
        ExpressionAttributeNames={"#attr0_0": "age", "#attr1_0": "score"},
    )
    assert item == {"id": "u1", "age": 30, "score": 1.5}


def test_get_item_without_projection(dynamo, table):
    table.get_item.return_value = {"Item": {"id": "u1"}}
    dynamo.get_item("u1", compile_projection([], 2))
    table.get_item.assert_called_once_with(Key={"id": "u1"})


def test_get_item_missing(dynamo, table):
    table.get_item.return_value = {}
    with pytest.raises(ItemNotFoundError):
        dynamo.get_item("u1")


def test_update_item_adds_existence_condition(dynamo, table):
    table.update_item.return_value = {"Attributes": {"id": "u1", "bio": None, "rate": Decimal("0.5")}}
    u = compile_update(["bio", "rate", "old"], {"bio": None, "rate": 0.5}, 2)

    item = dynamo.update_item("u1", u)

    kwargs = table.update_item.call_args.kwargs
    assert kwargs["Key"] == {"id": "u1"}
    assert kwargs["ConditionExpression"] == "attribute_exists(#pk)"
    assert kwargs["ReturnValues"] == "ALL_NEW"
    assert kwargs["UpdateExpression"] == "SET #attr0_0 = :val0, #attr1_0 = :val1 REMOVE #attr2_0"
    assert kwargs["ExpressionAttributeNames"]["#pk"] == "id"
    assert kwargs["ExpressionAttributeValues"] == {":val0": None, ":val1": Decimal("0.5")}
    assert item == {"id": "u1", "bio": None, "rate": 0.5}
    # compiled update is left untouched
    assert "#pk" not in u.names


def test_remove_only_update_has_no_value_map(dynamo, table):
    table.update_item.return_value = {"Attributes": {"id": "u1"}}
    dynamo.update_item("u1", compile_update(["bio"], {}, 2))
    assert "ExpressionAttributeValues" not in table.update_item.call_args.kwargs


def test_update_condition_failure_is_not_found(dynamo, table):
    table.update_item.side_effect = _client_error("ConditionalCheckFailedException")
    with pytest.raises(ItemNotFoundError):
        dynamo.update_item("u1", compile_update(["a"], {"a": 1}, 2))


def test_update_validation_exception_is_invalid_path(dynamo, table):
    table.update_item.side_effect = _client_error(
        "ValidationException", "The document path provided in the update expression is invalid for update"
    )
    with pytest.raises(InvalidDocumentPathError) as exc:
        dynamo.update_item("u1", compile_update(["a.b"], {"a": {"b": 1}}, 2))
    assert "document path" in str(exc.value)


def test_other_client_errors_propagate(dynamo, table):
    table.update_item.side_effect = _client_error("ProvisionedThroughputExceededException")
    with pytest.raises(ClientError):
        dynamo.update_item("u1", compile_update(["a"], {"a": 1}, 2))


def test_put_item_converts_floats(dynamo, table):
    stored = dynamo.put_item("u1", {"rate": 0.25, "n": 2})
    table.put_item.assert_called_once_with(Item={"rate": Decimal("0.25"), "n": 2, "id": "u1"})
    assert stored == {"rate": 0.25, "n": 2, "id": "u1"}


def test_delete_item_missing(dynamo, table):
    table.delete_item.side_effect = _client_error("ConditionalCheckFailedException")
    with pytest.raises(ItemNotFoundError):
        dynamo.delete_item("u1")


def test_ping_reports_unreachable_table(dynamo, table):
    table.load.side_effect = _client_error("ResourceNotFoundException")
    assert dynamo.ping() is False


def test_decimal_conversion_round_trip_shapes():
    assert to_dynamodb({"a": [1.5, {"b": 2.0}]}) == {"a": [Decimal("1.5"), {"b": Decimal("2.0")}]}
    assert from_dynamodb({"a": [Decimal("3"), Decimal("2.5")]}) == {"a": [3, 2.5]}


def test_build_item_store_selects_dynamodb(monkeypatch):
    fake_table = MagicMock()
    fake_resource = MagicMock()
    fake_resource.Table.return_value = fake_table
    calls = {}

    def _resource(service, **kwargs):
        calls["service"] = service
        calls["kwargs"] = kwargs
        return fake_resource

    monkeypatch.setattr("app.core.storage.dynamodb_store.boto3.resource", _resource)
    settings = Settings(store="dynamodb", table_name="users", dynamodb_endpoint="http://localhost:8000")

    store = build_item_store(settings)

    assert isinstance(store, DynamoDBItemStore)
    assert store.table is fake_table
    fake_resource.Table.assert_called_once_with("users")
    assert calls == {
        "service": "dynamodb",
        "kwargs": {"region_name": "ap-northeast-1", "endpoint_url": "http://localhost:8000"},
    }


def test_get_item_validation_exception_is_invalid_path(dynamo, table):
    table.get_item.side_effect = _client_error("ValidationException", "Two document paths overlap with each other")
    with pytest.raises(InvalidDocumentPathError) as exc:
        dynamo.get_item("u1", compile_projection(["preferences", "preferences.theme"], 2))
    assert "overlap" in str(exc.value)


def test_get_item_other_client_errors_propagate(dynamo, table):
    table.get_item.side_effect = _client_error("ProvisionedThroughputExceededException")
    with pytest.raises(ClientError):
        dynamo.get_item("u1")


def test_from_dynamodb_keeps_float_written_with_fraction():
    assert from_dynamodb(to_dynamodb({"x": 2.0}))["x"] == 2.0
    assert isinstance(from_dynamodb(to_dynamodb({"x": 2.0}))["x"], float)
    assert isinstance(from_dynamodb(Decimal("2")), int)
    assert from_dynamodb(Decimal("1E+2")) == 100
