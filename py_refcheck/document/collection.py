import json
import uuid
import logging
from dataclasses import dataclass
from functools import partial
from typing import List, Optional, Tuple, Iterator

from ..storage.lsm import LSMEngine
from .query import apply_update, match_query
from .schema import Schema
from .wrapper import DocumentWrapper

logger = logging.getLogger(__name__)


@dataclass
class OperationContext:
    """What a pre-operation hook sees about the operation it guards."""
    operation: str
    collection: "Collection"
    document: Optional[dict] = None
    filter: Optional[dict] = None
    update: Optional[dict] = None


class Collection:
    def __init__(self, store, name: str, schema: Optional[Schema] = None):
        self.store = store
        self.engine: LSMEngine = store.engine
        self.name = name
        self.prefix = f"{name}:"
        self.schema = schema

    def __getattr__(self, item):
        # statics installed on the schema, bound to this collection
        schema = self.__dict__.get("schema")
        if schema is not None and item in schema.statics:
            return partial(schema.statics[item], self)
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{item}'")

    def _k(self, doc_id) -> str:
        return self.prefix + str(doc_id)

    def _to_stored(self, doc: dict) -> str:
        return json.dumps(doc)

    def _from_stored(self, raw: str) -> dict:
        return json.loads(raw)

    def _wrap(self, doc: dict) -> DocumentWrapper:
        return DocumentWrapper(doc["_id"], doc, self)

    async def _run_hooks(self, ctx: OperationContext):
        if self.schema is None:
            return
        for hook in self.schema.hooks[ctx.operation]:
            await hook(ctx)

    def _validate(self, doc: dict):
        if not self.schema:
            return
        # Gather other documents for unique validation
        existing = []
        if any(rules.get("unique") for rules in self.schema.fields.values()):
            existing = [d for d_id, d in self._scan_docs() if d_id != str(doc["_id"])]
        self.schema.validate(doc, existing_docs=existing)

    async def _store(self, doc: dict):
        self._validate(doc)
        await self._run_hooks(OperationContext("save", self, document=doc))
        self.engine.put(self._k(doc["_id"]), self._to_stored(doc))

    async def insert(self, doc: dict, doc_id: str = None) -> str:
        """
        Insert a new document into the collection.

        :param doc: the document to insert
        :param doc_id: optional document ID (taken from ``doc["_id"]`` or generated if None)

        IDs are stored in their string form, so ``_id`` 7 is kept and matched as ``"7"``.
        """
        doc = dict(doc)
        if doc_id is None:
            doc_id = doc.get("_id") or uuid.uuid4()
        doc_id = str(doc_id)
        doc["_id"] = doc_id
        await self._store(doc)
        logger.debug("Inserted %s into %s", doc_id, self.name)
        return doc_id

    async def save(self, document: DocumentWrapper) -> DocumentWrapper:
        """Persist a (possibly modified) document through the save hooks."""
        doc = document.to_dict()
        doc["_id"] = document._id = str(document._id)
        await self._store(doc)
        document.collection = self
        return document

    async def get(self, doc_id) -> Optional[dict]:
        raw = self.engine.get(self._k(doc_id))
        return self._from_stored(raw) if raw is not None else None

    def _scan_docs(self) -> Iterator[Tuple[str, dict]]:
        for k, v in self.engine.scan(self.prefix):
            yield k[len(self.prefix):], self._from_stored(v)

    async def find_all(self, filter=None, limit=None) -> List[DocumentWrapper]:
        results = []
        for _, doc in self._scan_docs():
            if match_query(doc, filter):
                results.append(self._wrap(doc))
                if limit and len(results) >= limit:
                    break
        return results

    async def find_one(self, filter=None) -> Optional[DocumentWrapper]:
        docs = await self.find_all(filter=filter, limit=1)
        return docs[0] if docs else None

    async def find(self, filter=None, limit=None) -> List[DocumentWrapper]:
        return await self.find_all(filter=filter, limit=limit)

    async def count(self, filter=None) -> int:
        return sum(1 for _, doc in self._scan_docs() if match_query(doc, filter))

    def _replace(self, current: dict, update: dict) -> dict:
        new_doc = apply_update(current, update)
        new_doc["_id"] = current["_id"]
        self._validate(new_doc)
        self.engine.put(self._k(new_doc["_id"]), self._to_stored(new_doc))
        return new_doc

    async def update_one(self, filter, update: dict) -> int:
        """Apply ``update`` to the first match; returns the matched count."""
        await self._run_hooks(OperationContext("update_one", self, filter=filter, update=update))
        target = await self.find_one(filter)
        if target is None:
            return 0
        self._replace(target.to_dict(), update)
        return 1

    async def update_many(self, filter, update: dict) -> int:
        await self._run_hooks(OperationContext("update_many", self, filter=filter, update=update))
        targets = await self.find_all(filter)
        for target in targets:
            self._replace(target.to_dict(), update)
        return len(targets)

    async def find_one_and_update(self, filter, update: dict) -> Optional[DocumentWrapper]:
        """Update the first match and return it as it is after the update."""
        await self._run_hooks(OperationContext("find_one_and_update", self, filter=filter, update=update))
        target = await self.find_one(filter)
        if target is None:
            return None
        return self._wrap(self._replace(target.to_dict(), update))

    async def update(self, doc_id: str, updates: dict):
        """
        Update fields of a document (merge semantics).

        :param doc_id: ID of the document to update
        :param updates: dict of fields to update, or an operator payload
        """
        if await self.get(doc_id) is None:
            raise KeyError(f"{doc_id} not found")
        await self.update_one({"_id": doc_id}, updates)

    async def delete_one(self, filter) -> int:
        await self._run_hooks(OperationContext("delete_one", self, filter=filter))
        target = await self.find_one(filter)
        if target is None:
            return 0
        self.engine.delete(self._k(target._id))
        logger.debug("Deleted %s from %s", target._id, self.name)
        return 1

    async def delete_many(self, filter) -> int:
        await self._run_hooks(OperationContext("delete_many", self, filter=filter))
        targets = await self.find_all(filter)
        for target in targets:
            self.engine.delete(self._k(target._id))
        logger.debug("Deleted %d documents from %s", len(targets), self.name)
        return len(targets)

    async def find_one_and_delete(self, filter) -> Optional[DocumentWrapper]:
        await self._run_hooks(OperationContext("find_one_and_delete", self, filter=filter))
        target = await self.find_one(filter)
        if target is not None:
            self.engine.delete(self._k(target._id))
        return target
