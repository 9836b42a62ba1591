import os
import json
import time
import logging

from pathlib import Path
from typing import Optional, Dict

logger = logging.getLogger(__name__)


class WAL:
    """Append-only log of puts and deletes that have not reached an SSTable yet."""

    def __init__(self, path: Path):
        self.path = path
        self.f = open(self.path, 'a+', encoding="utf-8")

    def _append(self, rec: dict):
        self.f.write(json.dumps(rec) + "\n")
        self.f.flush()
        os.fsync(self.f.fileno())

    def append_put(self, key: str, value: str):
        self._append({"op": "put", "key": key, "value": value})

    def append_del(self, key: str):
        self._append({"op": "del", "key": key})

    def replay(self) -> Dict[str, Optional[str]]:
        """Rebuild the memtable; deleted keys come back as tombstones (None)."""
        self.f.seek(0)
        mem: Dict[str, Optional[str]] = {}
        for line in self.f:
            if not line.strip():
                continue
            rec = json.loads(line)
            if rec["op"] == "put":
                mem[rec["key"]] = rec.get("value")
            elif rec["op"] == "del":
                mem[rec["key"]] = None
        self.f.seek(0, os.SEEK_END)
        if mem:
            logger.debug("Replayed %d keys from %s", len(mem), self.path)
        return mem

    def reset(self):
        self.f.close()

        ts = int(time.time() * 1000)
        archived = self.path.with_suffix(f".log.{ts}")
        os.replace(self.path, archived)
        self.f = open(self.path, "a+", encoding="utf-8")

    def close(self):
        self.f.close()
