from typing import Any, Mapping, Optional

from ..document.schema import Schema
from .interceptor import ReferenceCheck
from .options import merge_options


def reference_check(schema: Schema, options: Optional[Mapping[str, Any]] = None, **overrides: Any) -> ReferenceCheck:
    """
    Guard ``schema``'s collections against dangling references.

    Installs the enabled save/update/delete hooks, a collection-level
    ``validate_references(data)`` and a document-level ``check_references()``.
    Attaching twice to the same schema raises ValueError.
    Options may be given as a mapping, as keywords, or both::

        reference_check(post_schema, {"enableDelete": False}, enable_logging=True)
    """
    if "validate_references" in schema.statics:
        raise ValueError("reference checks are already attached to this schema")
    checker = ReferenceCheck(merge_options(options, **overrides))
    checker.attach(schema)
    schema.add_static("validate_references", checker.validate_references)
    schema.add_method("check_references", checker.check_references)
    return checker
