class DocumentStoreError(Exception):
    """Base class for document layer errors."""


class InvalidQueryError(DocumentStoreError):
    """Raised when a filter uses an unknown operator or a malformed clause."""


class InvalidUpdateError(DocumentStoreError):
    """Raised when an update payload cannot be applied."""


class CollectionNotFoundError(DocumentStoreError):
    """Raised when a collection name is not registered in the store."""
