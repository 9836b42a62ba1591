from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

SAVE_OPERATIONS = ("save",)
UPDATE_OPERATIONS = ("find_one_and_update", "update_one", "update_many")
DELETE_OPERATIONS = ("delete_one", "find_one_and_delete", "delete_many")
OPERATION_KINDS = SAVE_OPERATIONS + UPDATE_OPERATIONS + DELETE_OPERATIONS


@dataclass(frozen=True)
class FieldDeclaration:
    """Read-only view of one declared field."""
    name: str
    type: Optional[type] = None
    ref: Optional[str] = None
    schema: Optional["Schema"] = None

    @property
    def is_array(self) -> bool:
        return self.type is list


class Schema:
    def __init__(self, fields: dict):
        """
        fields example:
        {
            "name": {"type": str, "unique": True, "length": {"gt": 3}},
            "age": {"type": int, "$gte": 0, "$lte": 100},
            "role": {"type": str, "enum": ["admin", "member", "guest"]},
            "user_id": {"type": str, "ref": "users"},  # references another collection
            "tag_ids": {"type": list, "ref": "tags"},  # array of references
            "members": {"type": list, "schema": Schema({"user_id": {"type": str, "ref": "users"}})}
        }
        """
        self.fields = fields
        self.declarations: Tuple[FieldDeclaration, ...] = tuple(
            FieldDeclaration(name, rules.get("type"), rules.get("ref"), rules.get("schema"))
            for name, rules in fields.items()
        )
        self.hooks: Dict[str, List[Callable]] = {op: [] for op in OPERATION_KINDS}
        self.statics: Dict[str, Callable] = {}
        self.methods: Dict[str, Callable] = {}

    def pre(self, operations: Union[str, Iterable[str]], handler: Callable):
        """
        Register an async ``handler(ctx)`` to run before each of ``operations``.

        The handler aborts the operation by raising.
        """
        if isinstance(operations, str):
            operations = [operations]
        for op in operations:
            if op not in self.hooks:
                raise ValueError(f"Unknown operation '{op}'")
            self.hooks[op].append(handler)

    def add_static(self, name: str, fn: Callable):
        """Expose ``fn(collection, ...)`` as ``collection.<name>(...)``."""
        self.statics[name] = fn

    def add_method(self, name: str, fn: Callable):
        """Expose ``fn(document, ...)`` as ``document.<name>(...)``."""
        self.methods[name] = fn

    def validate(self, doc: dict, existing_docs: list = None):
        """
        Validate a document against the schema.
        :param doc: the document to validate
        :param existing_docs: list of other documents for the unique constraint
        """
        existing_docs = existing_docs or []

        for field, rules in self.fields.items():
            val = doc.get(field)

            # skip missing fields (optional)
            if val is None:
                continue

            # Type check
            if "type" in rules and not isinstance(val, rules["type"]):
                raise TypeError(f"Field '{field}' must be of type {rules['type'].__name__}, got {type(val).__name__}")

            # Unique constraint
            if rules.get("unique"):
                for d in existing_docs:
                    if d.get(field) == val:
                        raise ValueError(f"Duplicate value for unique field '{field}': {val}")

            # Length constraint for strings
            if isinstance(val, str) and "length" in rules:
                length_rules = rules["length"]
                if "gt" in length_rules and not len(val) > length_rules["gt"]:
                    raise ValueError(f"Field '{field}' length must be > {length_rules['gt']}")
                if "gte" in length_rules and not len(val) >= length_rules["gte"]:
                    raise ValueError(f"Field '{field}' length must be >= {length_rules['gte']}")
                if "lt" in length_rules and not len(val) < length_rules["lt"]:
                    raise ValueError(f"Field '{field}' length must be < {length_rules['lt']}")
                if "lte" in length_rules and not len(val) <= length_rules["lte"]:
                    raise ValueError(f"Field '{field}' length must be <= {length_rules['lte']}")

            # Numeric constraints
            if isinstance(val, (int, float)) and not isinstance(val, bool):
                for op in ["$gt", "$gte", "$lt", "$lte"]:
                    if op in rules:
                        if op == "$gt" and not val > rules[op]:
                            raise ValueError(f"Field '{field}' must be > {rules[op]}")
                        if op == "$gte" and not val >= rules[op]:
                            raise ValueError(f"Field '{field}' must be >= {rules[op]}")
                        if op == "$lt" and not val < rules[op]:
                            raise ValueError(f"Field '{field}' must be < {rules[op]}")
                        if op == "$lte" and not val <= rules[op]:
                            raise ValueError(f"Field '{field}' must be <= {rules[op]}")

            # Enum / allowed values
            if "enum" in rules:
                if val not in rules["enum"]:
                    raise ValueError(f"Field '{field}' must be one of {rules['enum']}, got '{val}'")

            # Subdocuments of an array field
            nested = rules.get("schema")
            if nested is not None and isinstance(val, list):
                for item in val:
                    if not isinstance(item, dict):
                        raise TypeError(f"Field '{field}' must hold objects, got {type(item).__name__}")
                    nested.validate(item)

        return True
