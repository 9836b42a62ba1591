"""
Shared fixtures: a store on a temp directory and a small blog catalog.

Catalog (registration order): users, tags, posts, comments.
posts.author -> users, posts.tag_ids -> [tags], posts.reviewers[].user_id -> users,
comments.post_id -> posts, comments.author -> users.
"""

from types import SimpleNamespace

import pytest

from py_refcheck.document.schema import Schema
from py_refcheck.document.store import DocumentStore
from py_refcheck.integrity.plugin import reference_check


@pytest.fixture
def store(tmp_path):
    store = DocumentStore(str(tmp_path / "db"))
    yield store
    store.close()


def build_blog(store, **options):
    user_schema = Schema({"name": {"type": str}})
    tag_schema = Schema({"label": {"type": str}})
    post_schema = Schema({
        "title": {"type": str},
        "author": {"type": str, "ref": "users"},
        "tag_ids": {"type": list, "ref": "tags"},
        "reviewers": {"type": list, "schema": Schema({"user_id": {"type": str, "ref": "users"}})},
    })
    comment_schema = Schema({
        "body": {"type": str},
        "post_id": {"type": str, "ref": "posts"},
        "author": {"type": str, "ref": "users"},
    })
    checks = {}
    for name, schema in [("users", user_schema), ("tags", tag_schema),
                         ("posts", post_schema), ("comments", comment_schema)]:
        checks[name] = reference_check(schema, **options)
    return SimpleNamespace(
        users=store.collection("users", schema=user_schema),
        tags=store.collection("tags", schema=tag_schema),
        posts=store.collection("posts", schema=post_schema),
        comments=store.collection("comments", schema=comment_schema),
        checks=checks,
    )


@pytest.fixture
def blog(store):
    return build_blog(store)


@pytest.fixture
def make_blog(store):
    """Build the blog catalog with non-default reference check options."""
    return lambda **options: build_blog(store, **options)


@pytest.fixture
def spy(monkeypatch):
    """Record every call to ``collection.<method>`` while still running it."""

    def _spy(collection, method):
        calls = []
        original = getattr(collection, method)

        async def wrapper(*args, **kwargs):
            calls.append((args, kwargs))
            return await original(*args, **kwargs)

        monkeypatch.setattr(collection, method, wrapper)
        return calls

    return _spy
