from typing import Any, List, Sequence

from .errors import DatabaseError
from .fields import extract_reference_fields
from .models import ReferencingCollection


def find_referencing_collections(affected_name: str, store) -> List[ReferencingCollection]:
    """
    Collections other than ``affected_name`` that declare a reference to it.

    Collections come back in catalog order, each with the query paths of its
    referencing fields; collections with no such field are left out.
    """
    try:
        names = store.collection_names()
        referencing = []
        for name in names:
            if name == affected_name:
                continue
            paths = []
            for ref_field in extract_reference_fields(store.schema_for(name)):
                if ref_field.target_collection == affected_name and ref_field.path not in paths:
                    paths.append(ref_field.path)
            if paths:
                referencing.append(ReferencingCollection(name, tuple(paths)))
        return referencing
    except Exception as exc:
        raise DatabaseError(f"references to {affected_name}", str(exc)) from exc


async def has_living_reference(collection, fields: Sequence[str], target_id: Any) -> bool:
    """True when some document in ``collection`` holds ``target_id`` in one of ``fields``."""
    query = {"$or": [{path: target_id} for path in fields]}
    try:
        return bool(await collection.find(query, limit=1))
    except Exception as exc:
        raise DatabaseError(f"references to {target_id} in {collection.name}", str(exc)) from exc
