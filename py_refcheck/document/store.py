from typing import Dict, List, Optional

from .collection import Collection
from .errors import CollectionNotFoundError
from .schema import Schema
from ..storage.lsm import LSMEngine


class DocumentStore:
    def __init__(self, data_dir: str):
        self.engine = LSMEngine(data_dir)
        self.collections: Dict[str, Collection] = {}


    def collection(self, name: str, schema=None) -> Collection:
        if name not in self.collections:
            self.collections[name] = Collection(self, name, schema)
        return self.collections[name]


    def get_collection(self, name: str) -> Collection:
        try:
            return self.collections[name]
        except KeyError:
            raise CollectionNotFoundError(f"Collection '{name}' is not registered") from None


    def collection_names(self) -> List[str]:
        """Registered collection names, in registration order."""
        return list(self.collections)


    def schema_for(self, name: str) -> Optional[Schema]:
        return self.get_collection(name).schema


    def compact(self):
        self.engine.compact()


    def close(self):
        self.engine.close()
