import time
import logging

from itertools import count
from pathlib import Path
from typing import Dict, Optional, List, Iterator, Tuple

from .wal import WAL
from .sstable import SSTable, MISSING

logger = logging.getLogger(__name__)


class LSMEngine:
    def __init__(self, data_dir: str, memtable_limit: int = 2000):
        self.dir = Path(data_dir)
        self.dir.mkdir(parents=True, exist_ok=True)
        self.wal = WAL(self.dir / 'wal.log')
        # recover memtable from WAL
        self.memtable: Dict[str, Optional[str]] = self.wal.replay()
        self.memtable_limit = memtable_limit
        self.sstables: List[SSTable] = []
        for fp in sorted(self.dir.glob('sst_*.jsonl')):
            self.sstables.append(SSTable(fp))
        self._seq = count()


    def put(self, key: str, value: str):
        self.wal.append_put(key, value)
        self.memtable[key] = value
        if len(self.memtable) >= self.memtable_limit:
            self.flush()


    def delete(self, key: str):
        self.wal.append_del(key)
        self.memtable[key] = None
        if len(self.memtable) >= self.memtable_limit:
            self.flush()


    def get(self, key: str) -> Optional[str]:
        if key in self.memtable:
            return self.memtable[key]
        # newest to oldest; a tombstone hides older values
        for sst in reversed(self.sstables):
            v = sst.lookup(key)
            if v is not MISSING:
                return v
        return None


    def scan(self, prefix: str = "") -> Iterator[Tuple[str, str]]:
        """Live (key, value) pairs under ``prefix``, newest version of each key."""
        seen = set()
        for k, v in list(self.memtable.items()):
            if not k.startswith(prefix):
                continue
            seen.add(k)
            if v is not None:
                yield k, v
        for sst in reversed(self.sstables):
            for k, v in sst.items():
                if not k.startswith(prefix) or k in seen:
                    continue
                seen.add(k)
                if v is not None:
                    yield k, v


    def _next_path(self, suffix: str = "") -> Path:
        ts = int(time.time() * 1000)
        return self.dir / f'sst_{ts:013d}_{next(self._seq):06d}{suffix}.jsonl'


    def flush(self):
        if not self.memtable:
            return
        sst = SSTable.write(self._next_path(), self.memtable.items())
        self.sstables.append(sst)
        logger.debug("Flushed %d keys to %s", len(self.memtable), sst.data_path.name)
        # reset WAL and clear memtable
        self.wal.reset()
        self.memtable.clear()


    def compact(self):
        """Merge all SSTables newest->oldest, discard tombstones and duplicates."""
        if not self.sstables:
            return
        merged: Dict[str, Optional[str]] = {}
        # newest wins
        for sst in reversed(self.sstables):
            for k, v in sst.items():
                if k not in merged:
                    merged[k] = v
        merged = {k: v for k, v in merged.items() if v is not None}
        new_sst = SSTable.write(self._next_path("_compacted"), merged.items())
        for sst in self.sstables:
            sst.remove()
        logger.info("Compacted %d SSTables into %s (%d keys)",
                    len(self.sstables), new_sst.data_path.name, len(merged))
        self.sstables = [new_sst]


    def close(self):
        self.flush()
        self.wal.close()
