import re

import pytest

from app.core.compiler import FieldPathValidationError, compile_update


def test_explicit_null_is_set_not_remove():
    u = compile_update(["bio"], {"bio": None}, 2)
    assert u.expression == "SET #attr0_0 = :val0"
    assert "REMOVE" not in u.expression
    assert u.values == {":val0": None}
    assert u.names == {"#attr0_0": "bio"}


def test_missing_nested_key_compiles_to_remove():
    u = compile_update(["preferences.notifications"], {"preferences": {}}, 2)
    assert u.expression == "REMOVE #attr0_0.#attr0_1"
    assert u.values == {}
    assert u.names == {"#attr0_0": "preferences", "#attr0_1": "notifications"}
    assert u.remove_paths == ("preferences.notifications",)


def test_set_and_remove_segments_are_combined():
    data = {"name": "Hanako", "preferences": {"theme": "light"}}
    u = compile_update(["name", "bio", "preferences.theme", "age"], data, 2)
    assert u.expression == (
        "SET #attr0_0 = :val0, #attr2_0.#attr2_1 = :val2 "
        "REMOVE #attr1_0, #attr3_0"
    )
    assert u.values == {":val0": "Hanako", ":val2": "light"}
    assert u.set_paths == ("name", "preferences.theme")
    assert u.remove_paths == ("bio", "age")


def test_truncated_path_writes_whole_subtree():
    data = {"a": {"b": {"c": 1, "d": 2}}}
    u = compile_update(["a.b.c"], data, 2)
    assert u.expression == "SET #attr0_0.#attr0_1 = :val0"
    assert u.values == {":val0": {"c": 1, "d": 2}}
    assert u.set_paths == ("a.b",)


def test_traversal_through_scalar_resolves_to_remove():
    u = compile_update(["a.b"], {"a": "scalar"}, 2)
    assert u.expression == "REMOVE #attr0_0.#attr0_1"


def test_values_never_interpolated():
    data = {"name": "Robert'); DROP TABLE", "count": 5}
    u = compile_update(["name", "count"], data, 2)
    assert "DROP" not in u.expression
    assert "5" not in re.sub(r"(#attr|:val)\d+(_\d+)?", "", u.expression)


def test_empty_field_list_compiles_to_empty_expression():
    u = compile_update([], {"a": 1}, 2)
    assert u.expression == ""
    assert u.is_empty


def test_request_params_omit_empty_value_map():
    u = compile_update(["bio"], {}, 2)
    assert u.to_request_params() == {
        "UpdateExpression": "REMOVE #attr0_0",
        "ExpressionAttributeNames": {"#attr0_0": "bio"},
    }


def test_request_params_include_values_for_set():
    params = compile_update(["bio"], {"bio": "x"}, 2).to_request_params()
    assert params["ExpressionAttributeValues"] == {":val0": "x"}


def test_source_data_is_not_mutated():
    data = {"a": {"b": 1}}
    compile_update(["a.b", "a.c"], data, 2)
    assert data == {"a": {"b": 1}}


def test_invalid_path_rejected():
    with pytest.raises(FieldPathValidationError):
        compile_update(["a."], {"a": 1}, 2)


def test_max_depth_below_one_rejected():
    with pytest.raises(FieldPathValidationError):
        compile_update(["a"], {"a": 1}, 0)
