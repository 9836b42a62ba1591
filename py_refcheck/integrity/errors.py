from typing import Optional


class ReferenceCheckError(Exception):
    """Base class for referential integrity failures."""


class ReferenceValidationError(ReferenceCheckError):
    """A reference field points at a document that does not exist."""

    def __init__(self, field: str, value, target_collection: str):
        self.field = field
        self.value = value
        self.target_collection = target_collection
        super().__init__(
            f"Reference validation failed: The value {value} does not exist within {target_collection}"
        )


class ReferentialIntegrityError(ReferenceCheckError):
    """A delete would leave documents in another collection pointing at nothing."""

    def __init__(self, record_id, referencing_collection: str, collection: Optional[str] = None):
        self.record_id = record_id
        self.referencing_collection = referencing_collection
        self.collection = collection
        super().__init__(
            f"Cannot delete record {record_id}: It is referenced in {referencing_collection} collection"
        )


class DatabaseError(ReferenceCheckError):
    """A lookup failed; the reference could not be judged either way."""

    def __init__(self, context: str, message: str):
        self.context = context
        self.message = message
        super().__init__(f"Database error validating {context}: {message}")
