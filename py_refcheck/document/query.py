"""
Mongo-style filter matching and update application for plain dict documents.

Filters support field equality, the comparison operators below, ``$and``,
``$or`` and ``$not``, and dotted paths. A path that crosses a list matches when
any element matches, and equality against a list field matches when the list
contains the value.
"""
import copy
from typing import Any, List

from .errors import InvalidQueryError, InvalidUpdateError

COMPARATORS = {"$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in", "$nin", "$exists"}
LOGICAL = {"$and", "$or", "$not"}
UPDATE_OPERATORS = {"$set", "$unset", "$push", "$addToSet"}

_ABSENT = object()


def resolve_path(doc: Any, dotted_key: str) -> List[Any]:
    """Every value reachable through ``dotted_key``, fanning out over lists."""
    current = [doc]
    for part in dotted_key.split("."):
        found = []
        for node in current:
            if isinstance(node, dict):
                if part in node:
                    found.append(node[part])
            elif isinstance(node, list):
                for elem in node:
                    if isinstance(elem, dict) and part in elem:
                        found.append(elem[part])
        current = found
    return current


def match_query(doc: dict, query: dict) -> bool:
    if query is None:
        return True
    if not isinstance(query, dict):
        raise InvalidQueryError("Query must be a dict.")
    for key, cond in query.items():
        if key in LOGICAL:
            if not _eval_logical(doc, key, cond):
                return False
        elif key.startswith("$"):
            raise InvalidQueryError(f"Unsupported top-level operator: {key}")
        elif not _eval_field(doc, key, cond):
            return False
    return True


def _eval_logical(doc: dict, op: str, clauses) -> bool:
    if op == "$not":
        if not isinstance(clauses, dict):
            raise InvalidQueryError("$not requires a single clause object.")
        return not match_query(doc, clauses)
    if not isinstance(clauses, list):
        raise InvalidQueryError(f"{op} requires a list of clauses.")
    if op == "$and":
        return all(match_query(doc, clause) for clause in clauses)
    return any(match_query(doc, clause) for clause in clauses)


def _eval_field(doc: dict, dotted_key: str, cond) -> bool:
    values = resolve_path(doc, dotted_key)
    if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
        for op, arg in cond.items():
            if op not in COMPARATORS:
                raise InvalidQueryError(f"Unsupported operator: {op}")
            if not _eval_op(values, op, arg):
                return False
        return True
    return any(_equals(v, cond) for v in values)


def _candidates(values: List[Any]) -> List[Any]:
    # a list value is compared element-wise as well as whole
    out = []
    for v in values:
        out.append(v)
        if isinstance(v, list):
            out.extend(v)
    return out


def _equals(value, target) -> bool:
    if value == target:
        return True
    return isinstance(value, list) and not isinstance(target, list) and target in value


def _eval_op(values: List[Any], op: str, arg) -> bool:
    if op == "$exists":
        return bool(values) == bool(arg)
    if op == "$eq":
        return any(_equals(v, arg) for v in values)
    if op == "$ne":
        return not any(_equals(v, arg) for v in values)
    if op in ("$in", "$nin"):
        if not isinstance(arg, (list, tuple, set)):
            raise InvalidQueryError(f"{op} requires a list.")
        hit = any(c in arg for c in _candidates(values) if not isinstance(c, (list, dict)))
        return hit if op == "$in" else not hit
    for v in _candidates(values):
        if v is None or isinstance(v, (list, dict)):
            continue
        try:
            if op == "$gt" and v > arg:
                return True
            if op == "$gte" and v >= arg:
                return True
            if op == "$lt" and v < arg:
                return True
            if op == "$lte" and v <= arg:
                return True
        except TypeError:
            continue
    return False


def is_operator_update(update: dict) -> bool:
    return any(k.startswith("$") for k in update)


def apply_update(doc: dict, update: dict) -> dict:
    """
    Return a new document with ``update`` applied.

    A payload without operators is merged into the document key by key;
    otherwise every key must be one of UPDATE_OPERATORS.
    """
    if not isinstance(update, dict):
        raise InvalidUpdateError("Update must be a dict.")
    new_doc = copy.deepcopy(doc)
    if not is_operator_update(update):
        new_doc.update(copy.deepcopy(update))
        return new_doc

    for op, changes in update.items():
        if op not in UPDATE_OPERATORS:
            raise InvalidUpdateError(f"Unsupported update operator: {op}")
        if not isinstance(changes, dict):
            raise InvalidUpdateError(f"{op} requires a dict of fields.")
        for key, value in changes.items():
            if op == "$set":
                _deep_set(new_doc, key, copy.deepcopy(value))
            elif op == "$unset":
                _deep_unset(new_doc, key)
            else:
                _append(new_doc, key, value, unique=op == "$addToSet")
    return new_doc


def pushed_values(value) -> List[Any]:
    """Items added by a ``$push``/``$addToSet`` entry, with ``$each`` unwrapped."""
    if isinstance(value, dict) and "$each" in value:
        if not isinstance(value["$each"], (list, tuple)):
            raise InvalidUpdateError("$each requires a list.")
        return list(value["$each"])
    return [value]


def _append(doc: dict, key: str, value, unique: bool):
    current = _deep_get(doc, key)
    if current is _ABSENT or current is None:
        current = []
        _deep_set(doc, key, current)
    if not isinstance(current, list):
        raise InvalidUpdateError(f"Field '{key}' is not an array.")
    for item in pushed_values(value):
        if unique and item in current:
            continue
        current.append(copy.deepcopy(item))


def _deep_get(doc: dict, dotted_key: str):
    cur = doc
    for p in dotted_key.split("."):
        if isinstance(cur, dict) and p in cur:
            cur = cur[p]
        else:
            return _ABSENT
    return cur


def _deep_set(doc: dict, dotted_key: str, value):
    parts = dotted_key.split(".")
    cur = doc
    for p in parts[:-1]:
        if p not in cur or not isinstance(cur[p], dict):
            cur[p] = {}
        cur = cur[p]
    cur[parts[-1]] = value


def _deep_unset(doc: dict, dotted_key: str):
    parts = dotted_key.split(".")
    cur = doc
    for p in parts[:-1]:
        if p not in cur or not isinstance(cur[p], dict):
            return
        cur = cur[p]
    cur.pop(parts[-1], None)
