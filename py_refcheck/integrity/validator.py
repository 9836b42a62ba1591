from typing import Any

from .errors import DatabaseError
from .fields import is_absent


async def validate_reference(collection, value: Any, field_name: str, batch_size: int = 100) -> bool:
    """
    True when every id in ``value`` names an existing document of ``collection``.

    Absent values and empty arrays are valid. Ids are compared as stored, so
    7 does not name the document whose ``_id`` is ``"7"``. Array ids are
    deduplicated and counted in batches of ``batch_size``; a single
    missing id makes the whole field invalid. Lookup failures raise
    DatabaseError instead of reporting the value as invalid.
    """
    if is_absent(value):
        return True
    try:
        if isinstance(value, (list, tuple, set)):
            ids = []
            for item in value:
                if item not in ids:
                    ids.append(item)
            found = 0
            for start in range(0, len(ids), batch_size):
                found += await collection.count({"_id": {"$in": ids[start:start + batch_size]}})
            return found == len(ids)

        doc = await collection.get(value)
        return doc is not None and doc["_id"] == value
    except Exception as exc:
        raise DatabaseError(field_name, str(exc)) from exc
