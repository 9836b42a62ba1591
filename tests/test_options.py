"""Tests for option defaults, merging and validation."""

import logging

import pytest
from pydantic import ValidationError

from py_refcheck.document.schema import Schema
from py_refcheck.integrity.options import ReferenceCheckOptions, merge_options
from py_refcheck.integrity.plugin import reference_check


def test_defaults():
    options = merge_options()

    assert options == ReferenceCheckOptions(
        enable_save=True,
        enable_update=True,
        enable_delete=True,
        enable_logging=False,
        batch_size=100,
    )


def test_camel_case_and_snake_case_overrides():
    options = merge_options({"enableDelete": False, "batchSize": 10}, enable_logging=True)

    assert not options.enable_delete
    assert options.enable_logging
    assert options.batch_size == 10
    assert options.enable_save


def test_keyword_overrides_win_over_mapping():
    assert merge_options({"batchSize": 10}, batch_size=20).batch_size == 20


def test_existing_options_object_is_accepted():
    base = ReferenceCheckOptions(enable_update=False)

    assert not merge_options(base, batch_size=5).enable_update


@pytest.mark.parametrize("overrides", [
    {"batch_size": 0},
    {"batchSize": -3},
    {"enable_cascade": True},
])
def test_invalid_options_are_rejected(overrides):
    with pytest.raises(ValidationError):
        merge_options(**overrides)


def test_options_are_immutable():
    options = merge_options()

    with pytest.raises(ValidationError):
        options.batch_size = 5


def test_hooks_follow_flags():
    schema = Schema({})
    reference_check(schema, enable_save=False, enable_delete=False)

    assert schema.hooks["save"] == []
    assert [len(schema.hooks[op]) for op in ("update_one", "update_many", "find_one_and_update")] == [1, 1, 1]
    assert [len(schema.hooks[op]) for op in ("delete_one", "delete_many", "find_one_and_delete")] == [0, 0, 0]


@pytest.mark.asyncio
async def test_logging_only_when_enabled(make_blog, caplog):
    blog = make_blog(enableLogging=True)
    caplog.set_level(logging.INFO, logger="py_refcheck.integrity.interceptor")

    await blog.users.insert({"name": "ann"}, doc_id="u1")
    await blog.posts.insert({"title": "x", "author": "u1"})

    messages = [r.getMessage() for r in caplog.records if r.name == "py_refcheck.integrity.interceptor"]
    assert "[ReferenceCheck] Validating 3 reference fields on save" in messages
    assert "[ReferenceCheck] Save validation completed successfully" in messages


@pytest.mark.asyncio
async def test_silent_by_default(blog, caplog):
    caplog.set_level(logging.INFO, logger="py_refcheck.integrity.interceptor")

    await blog.users.insert({"name": "ann"}, doc_id="u1")
    await blog.posts.insert({"title": "x", "author": "u1"})

    assert not [r for r in caplog.records if r.name == "py_refcheck.integrity.interceptor"]


def test_attaching_twice_is_refused():
    schema = Schema({})
    reference_check(schema)

    with pytest.raises(ValueError):
        reference_check(schema, enable_logging=True)
    assert [len(schema.hooks[op]) for op in ("save", "update_one", "delete_one")] == [1, 1, 1]


def test_checker_and_error_defaults():
    from py_refcheck.integrity.errors import ReferentialIntegrityError
    from py_refcheck.integrity.interceptor import ReferenceCheck

    assert ReferenceCheck().options == ReferenceCheckOptions()
    assert ReferentialIntegrityError("u1", "posts").collection is None
