"""Options accepted when attaching reference checks to a schema."""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReferenceCheckOptions(BaseModel):
    """
    Which operations are guarded, and how.

    Field names are accepted in snake_case or camelCase (``enableSave``).
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    enable_save: bool = True
    enable_update: bool = True
    enable_delete: bool = True
    enable_logging: bool = False
    batch_size: int = Field(default=100, gt=0)


def merge_options(
    options: Optional[Mapping[str, Any]] = None, **overrides: Any
) -> ReferenceCheckOptions:
    """Lay caller overrides over the defaults; later keyword overrides win."""
    if isinstance(options, ReferenceCheckOptions):
        merged = options.model_dump()
    else:
        merged = {}
        for key, value in dict(options or {}).items():
            merged[_field_name(key)] = value
    for key, value in overrides.items():
        merged[_field_name(key)] = value
    return ReferenceCheckOptions(**merged)


def _field_name(key: str) -> str:
    for name, info in ReferenceCheckOptions.model_fields.items():
        if key in (name, info.alias):
            return name
    return key
