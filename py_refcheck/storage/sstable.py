import json

from pathlib import Path
from typing import Dict, Iterable, Iterator, Tuple, Optional

# Returned by SSTable.lookup when the table holds no record for a key.
MISSING = object()


class SSTable:
    """Sorted, immutable JSON-lines file with a sparse key -> offset index."""

    INDEX_SAMPLE = 16

    def __init__(self, data_path: Path):
        self.data_path = data_path
        self.index_path = data_path.with_suffix(data_path.suffix + ".idx")
        self.index: Dict[str, int] = {}
        if self.index_path.exists():
            with open(self.index_path, 'r', encoding="utf-8") as f:
                self.index = json.load(f)

    @staticmethod
    def write(data_path: Path, items: Iterable[Tuple[str, Optional[str]]]) -> "SSTable":
        items = sorted(items, key=lambda kv: kv[0])
        index: Dict[str, int] = {}
        with open(data_path, 'w', encoding='utf-8') as f:
            for i, (k, v) in enumerate(items):
                pos = f.tell()
                f.write(json.dumps({"key": k, "value": v}) + "\n")
                if i % SSTable.INDEX_SAMPLE == 0:
                    index[k] = pos
        with open(data_path.with_suffix(data_path.suffix + ".idx"), "w", encoding="utf-8") as idxf:
            json.dump(index, idxf)
        return SSTable(data_path)

    def _scan_from(self, start_offset: int) -> Iterator[Tuple[str, Optional[str]]]:
        with open(self.data_path, 'r', encoding='utf-8') as f:
            f.seek(start_offset)
            for line in iter(f.readline, ""):
                if not line.strip():
                    continue
                rec = json.loads(line)
                yield rec["key"], rec.get("value")

    def items(self) -> Iterator[Tuple[str, Optional[str]]]:
        """All records in key order, tombstones included."""
        return self._scan_from(0)

    def lookup(self, key: str):
        """Stored value for ``key``: a string, None for a tombstone, or MISSING."""
        candidates = [k for k in self.index if k <= key]
        start_offset = self.index[max(candidates)] if candidates else 0
        for k, v in self._scan_from(start_offset):
            if k == key:
                return v
            if k > key:
                break
        return MISSING

    def remove(self):
        for path in (self.data_path, self.index_path):
            path.unlink(missing_ok=True)
