import asyncio
import logging

from py_refcheck.document.store import DocumentStore
from py_refcheck.document.schema import Schema
from py_refcheck.integrity.errors import ReferentialIntegrityError
from py_refcheck.integrity.plugin import reference_check


logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

store = DocumentStore("./db")

user_schema = Schema({
    "name": {"type": str, "unique": True, "length": {"gte": 3}},
    "age": {"type": int, "$gte": 0, "$lte": 100},
    "role": {"type": str, "enum": ["admin", "member", "guest"]}
})

file_schema = Schema({
    "filename": {"type": str, "length": {"gte": 1}},
    "size": {"type": int, "$gte": 0},
    "user_id": {"type": str, "ref": "users"}
})

reference_check(user_schema)
reference_check(file_schema, enableLogging=True)

users = store.collection("users", schema=user_schema)
files = store.collection("files", schema=file_schema)


async def main():
    bob_id = await users.insert({"name": "Bob", "age": 30, "role": "member"})
    file_id = await files.insert({"filename": "resume.pdf", "size": 12345, "user_id": bob_id})

    try:
        await users.delete_one({"_id": bob_id})
    except ReferentialIntegrityError as exc:
        print(exc)

    await files.delete_one({"_id": file_id})
    await users.delete_one({"_id": bob_id})
    store.close()


asyncio.run(main())
