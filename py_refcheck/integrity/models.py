from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .errors import ReferenceCheckError


@dataclass(frozen=True)
class ReferenceField:
    field: str
    target_collection: str
    # nested key when the reference lives inside an array of subdocuments
    subfield: Optional[str] = None

    @property
    def path(self) -> str:
        """Dotted path used to query for this reference."""
        return f"{self.field}.{self.subfield}" if self.subfield else self.field


@dataclass(frozen=True)
class ValidationResult:
    field: str
    target_collection: str
    value: Any
    is_valid: bool


@dataclass(frozen=True)
class ReferencingCollection:
    collection_name: str
    fields: Tuple[str, ...]


@dataclass(frozen=True)
class Outcome:
    """Success, or the error that must abort the guarded operation."""
    error: Optional[ReferenceCheckError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> "Outcome":
        return cls()

    @classmethod
    def failure(cls, error: ReferenceCheckError) -> "Outcome":
        return cls(error)

    def raise_for_error(self):
        if self.error is not None:
            raise self.error
