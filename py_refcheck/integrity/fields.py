"""Finding reference fields in a schema and reading their values."""

from typing import Any, List, Optional

from ..document.schema import Schema
from .models import ReferenceField


def extract_reference_fields(schema: Optional[Schema]) -> List[ReferenceField]:
    """
    Every reference declared by ``schema``, in declaration order.

    References inside an array of subdocuments are reported under the array
    field's name, one level deep.
    """
    if schema is None:
        return []
    ref_fields = []
    for decl in schema.declarations:
        if decl.ref:
            ref_fields.append(ReferenceField(decl.name, decl.ref))
        if decl.is_array and decl.schema is not None:
            for sub in decl.schema.declarations:
                if sub.ref:
                    ref_fields.append(ReferenceField(decl.name, sub.ref, subfield=sub.name))
    return ref_fields


def reference_value(ref_field: ReferenceField, raw: Any) -> Any:
    """
    The id(s) held by ``raw``, the value stored under ``ref_field.field``.

    For a nested reference the ids are plucked from each subdocument; an
    array with no ids in it gives an empty list, the same as an empty array
    of plain references.
    """
    if ref_field.subfield is None or raw is None:
        return raw
    items = raw if isinstance(raw, (list, tuple)) else [raw]
    ids = [item.get(ref_field.subfield) for item in items if isinstance(item, dict)]
    ids = [i for i in ids if i is not None]
    return ids


def is_absent(value: Any) -> bool:
    """Absent references are never checked; an empty list still is."""
    return value is None or value == ""
