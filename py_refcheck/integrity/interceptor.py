"""
Pre-operation hooks that keep references between collections valid.

Save and update hooks check that every reference being written resolves to an
existing document; delete hooks refuse to remove a document that another
collection still points at. Each check produces an ``Outcome``; only the hook
itself turns a failed outcome into a raised error, which aborts the operation.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..document.collection import Collection, OperationContext
from ..document.errors import CollectionNotFoundError
from ..document.query import is_operator_update, pushed_values
from ..document.schema import DELETE_OPERATIONS, SAVE_OPERATIONS, UPDATE_OPERATIONS
from ..document.wrapper import DocumentWrapper
from .errors import DatabaseError, ReferenceValidationError, ReferentialIntegrityError
from .fields import extract_reference_fields, is_absent, reference_value
from .models import Outcome, ReferenceField, ValidationResult
from .options import ReferenceCheckOptions
from .scanner import find_referencing_collections, has_living_reference
from .validator import validate_reference

logger = logging.getLogger(__name__)


def payload_values(update: dict) -> Dict[str, Any]:
    """Values an update payload writes, keyed by top-level field name."""
    if not is_operator_update(update):
        return dict(update)
    values = dict(update.get("$set") or {})
    for op in ("$push", "$addToSet"):
        for key, value in (update.get(op) or {}).items():
            values[key] = pushed_values(value)
    return values


class ReferenceCheck:
    def __init__(self, options: Optional[ReferenceCheckOptions] = None):
        self.options = options or ReferenceCheckOptions()

    def _log(self, message: str, *args):
        if self.options.enable_logging:
            logger.info("[ReferenceCheck] " + message, *args)

    def attach(self, schema):
        """Install a hook for every operation family that is enabled."""
        if self.options.enable_save:
            schema.pre(SAVE_OPERATIONS, self.before_save)
        if self.options.enable_update:
            schema.pre(UPDATE_OPERATIONS, self.before_update)
        if self.options.enable_delete:
            schema.pre(DELETE_OPERATIONS, self.before_delete)

    def _target(self, collection: Collection, ref_field: ReferenceField) -> Collection:
        try:
            return collection.store.get_collection(ref_field.target_collection)
        except CollectionNotFoundError as exc:
            raise DatabaseError(ref_field.field, str(exc)) from exc

    async def _is_valid(self, collection: Collection, ref_field: ReferenceField, value) -> bool:
        target = self._target(collection, ref_field)
        return await validate_reference(target, value, ref_field.field, self.options.batch_size)

    async def check_fields(
        self,
        collection: Collection,
        ref_fields: Sequence[ReferenceField],
        value_of: Callable[[ReferenceField], Any],
    ) -> Outcome:
        """Check ``ref_fields`` in order, stopping at the first invalid one."""
        try:
            for ref_field in ref_fields:
                value = value_of(ref_field)
                if is_absent(value):
                    continue
                if not await self._is_valid(collection, ref_field, value):
                    return Outcome.failure(
                        ReferenceValidationError(ref_field.field, value, ref_field.target_collection)
                    )
        except DatabaseError as exc:
            return Outcome.failure(exc)
        return Outcome.success()

    async def check_document(self, collection: Collection, document: dict) -> Outcome:
        ref_fields = extract_reference_fields(collection.schema)
        if not ref_fields:
            return Outcome.success()

        self._log("Validating %d reference fields on save", len(ref_fields))
        outcome = await self.check_fields(
            collection, ref_fields, lambda rf: reference_value(rf, document.get(rf.field))
        )
        if outcome.ok:
            self._log("Save validation completed successfully")
        return outcome

    async def check_update(self, collection: Collection, update: dict) -> Outcome:
        if not update:
            return Outcome.success()
        values = payload_values(update)
        ref_fields = [rf for rf in extract_reference_fields(collection.schema) if rf.field in values]
        if not ref_fields:
            return Outcome.success()

        self._log("Validating %d reference fields on update", len(ref_fields))
        outcome = await self.check_fields(
            collection, ref_fields, lambda rf: reference_value(rf, values[rf.field])
        )
        if outcome.ok:
            self._log("Update validation completed successfully")
        return outcome

    async def _resolve_targets(self, collection: Collection, filter, many: bool) -> List[DocumentWrapper]:
        try:
            if many:
                return await collection.find_all(filter)
            target = await collection.find_one(filter)
            return [target] if target is not None else []
        except Exception as exc:
            raise DatabaseError(f"delete from {collection.name}", str(exc)) from exc

    async def check_delete(self, collection: Collection, filter, many: bool = False) -> Outcome:
        """
        Refuse the delete when another collection references a matched document.

        Single-document deletes check the document that would be removed;
        ``many`` checks every match.
        """
        self._log("Checking references before deleting from %s", collection.name)
        try:
            targets = await self._resolve_targets(collection, filter, many)
            if not targets:
                self._log("No item found to delete, skipping reference check")
                return Outcome.success()

            referencing = find_referencing_collections(collection.name, collection.store)
            if not referencing:
                self._log("No references found, safe to delete")
                return Outcome.success()

            for target in targets:
                for ref in referencing:
                    ref_collection = collection.store.get_collection(ref.collection_name)
                    if await has_living_reference(ref_collection, ref.fields, target._id):
                        return Outcome.failure(
                            ReferentialIntegrityError(target._id, ref.collection_name, collection.name)
                        )
        except DatabaseError as exc:
            return Outcome.failure(exc)

        self._log("Delete validation completed successfully")
        return Outcome.success()

    async def before_save(self, ctx: OperationContext):
        outcome = await self.check_document(ctx.collection, ctx.document)
        outcome.raise_for_error()

    async def before_update(self, ctx: OperationContext):
        outcome = await self.check_update(ctx.collection, ctx.update)
        outcome.raise_for_error()

    async def before_delete(self, ctx: OperationContext):
        outcome = await self.check_delete(
            ctx.collection, ctx.filter, many=ctx.operation == "delete_many"
        )
        outcome.raise_for_error()

    async def validate_references(self, collection: Collection, data: dict) -> List[ValidationResult]:
        """Report on every reference present in ``data`` without writing anything."""
        results = []
        for ref_field in extract_reference_fields(collection.schema):
            value = reference_value(ref_field, data.get(ref_field.field))
            if is_absent(value):
                continue
            is_valid = await self._is_valid(collection, ref_field, value)
            results.append(ValidationResult(ref_field.field, ref_field.target_collection, value, is_valid))
        return results

    async def check_references(self, document: DocumentWrapper) -> List[ValidationResult]:
        return await self.validate_references(document.collection, document.to_dict())
