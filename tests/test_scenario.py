"""End-to-end walkthrough: users and the posts that point at them."""

import pytest

from py_refcheck.document.schema import Schema
from py_refcheck.document.store import DocumentStore
from py_refcheck.integrity.errors import ReferenceValidationError, ReferentialIntegrityError
from py_refcheck.integrity.plugin import reference_check

pytestmark = pytest.mark.asyncio


def open_store(path):
    store = DocumentStore(str(path))
    user_schema = Schema({"name": {"type": str, "unique": True}})
    post_schema = Schema({"title": {"type": str}, "author": {"type": str, "ref": "users"}})
    reference_check(user_schema)
    reference_check(post_schema)
    return store, store.collection("users", schema=user_schema), store.collection("posts", schema=post_schema)


async def test_user_post_lifecycle(tmp_path):
    store, users, posts = open_store(tmp_path / "db")

    u1 = await users.insert({"name": "ann"})
    p1 = await posts.insert({"title": "first", "author": u1})

    with pytest.raises(ReferenceValidationError):
        await posts.insert({"title": "orphan", "author": "no-such-user"})

    with pytest.raises(ReferentialIntegrityError) as excinfo:
        await users.delete_one({"_id": u1})
    assert excinfo.value.referencing_collection == "posts"
    assert await users.get(u1) is not None

    assert await posts.delete_one({"_id": p1}) == 1
    assert await users.delete_one({"_id": u1}) == 1
    assert await users.count() == 0
    store.close()


async def test_checks_hold_after_reopen(tmp_path):
    store, users, posts = open_store(tmp_path / "db")
    u1 = await users.insert({"name": "ann"})
    await posts.insert({"title": "first", "author": u1})
    store.close()

    store, users, posts = open_store(tmp_path / "db")

    with pytest.raises(ReferentialIntegrityError):
        await users.delete_one({"name": "ann"})
    store.close()
