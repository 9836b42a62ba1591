"""Tests for schema declarations and reference field extraction."""

import pytest

from py_refcheck.document.schema import Schema
from py_refcheck.integrity.fields import extract_reference_fields, is_absent, reference_value
from py_refcheck.integrity.models import ReferenceField


def test_schema_without_references():
    schema = Schema({"name": {"type": str}, "age": {"type": int}})

    assert extract_reference_fields(schema) == []
    assert extract_reference_fields(None) == []


def test_scalar_and_array_references_in_declaration_order():
    schema = Schema({
        "title": {"type": str},
        "author": {"type": str, "ref": "users"},
        "tag_ids": {"type": list, "ref": "tags"},
    })

    assert extract_reference_fields(schema) == [
        ReferenceField("author", "users"),
        ReferenceField("tag_ids", "tags"),
    ]


def test_nested_references_use_the_array_field_name():
    member = Schema({
        "user_id": {"type": str, "ref": "users"},
        "team_id": {"type": str, "ref": "teams"},
        "role": {"type": str},
    })
    schema = Schema({"members": {"type": list, "schema": member}})

    fields = extract_reference_fields(schema)

    assert [(f.field, f.target_collection) for f in fields] == [
        ("members", "users"),
        ("members", "teams"),
    ]
    assert [f.path for f in fields] == ["members.user_id", "members.team_id"]


def test_nested_schema_on_non_array_field_is_not_scanned():
    inner = Schema({"user_id": {"type": str, "ref": "users"}})
    schema = Schema({"profile": {"type": dict, "schema": inner}})

    assert extract_reference_fields(schema) == []


def test_reference_value_plucks_nested_ids():
    ref_field = ReferenceField("members", "users", subfield="user_id")

    assert reference_value(ref_field, [{"user_id": "u1"}, {"role": "x"}, {"user_id": "u2"}]) == ["u1", "u2"]
    assert reference_value(ref_field, [{"role": "x"}]) == []
    assert reference_value(ref_field, []) == []
    assert reference_value(ref_field, None) is None


def test_reference_value_passes_plain_values_through():
    ref_field = ReferenceField("tag_ids", "tags")

    assert reference_value(ref_field, ["t1"]) == ["t1"]
    assert reference_value(ref_field, "t1") == "t1"


@pytest.mark.parametrize("value, expected", [
    (None, True),
    ("", True),
    ([], False),
    ("u1", False),
    (0, False),
])
def test_is_absent(value, expected):
    assert is_absent(value) is expected


def test_declarations_are_built_once():
    schema = Schema({"author": {"type": str, "ref": "users"}})

    assert schema.declarations[0].name == "author"
    assert schema.declarations[0].ref == "users"
    assert not schema.declarations[0].is_array


def test_pre_rejects_unknown_operation():
    schema = Schema({})

    async def hook(ctx):
        pass

    with pytest.raises(ValueError):
        schema.pre("replace_one", hook)


def test_schema_validate_checks_subdocuments():
    schema = Schema({"members": {"type": list, "schema": Schema({"user_id": {"type": str}})}})

    with pytest.raises(TypeError):
        schema.validate({"members": [{"user_id": 5}]})
    with pytest.raises(TypeError):
        schema.validate({"members": ["u1"]})
