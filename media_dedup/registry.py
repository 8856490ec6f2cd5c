import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import Classification, EMPTY_CLASSIFICATION, FileRecord, Occurrence, ScanStats


class Registry:
    """
    Index of every media file seen, keyed by base name.

    One lock guards the whole index. Traversal tasks only go through
    `record`; readers get copies, so nothing outside holds the live dict.
    """

    def __init__(self, stats: Optional[ScanStats] = None):
        self.stats = stats
        self._lock = threading.Lock()
        self._index: Dict[str, FileRecord] = {}

    def record(self,
               name: str,
               path: str,
               size: int,
               mod_time: datetime,
               classification: Classification = EMPTY_CLASSIFICATION,
               metadata: Optional[Dict[str, Any]] = None) -> FileRecord:
        """
        Adds one sighting of `name`.

        The first sighting seeds the record (size, mtime, type, metadata).
        Later sightings only append an occurrence, and flag the record when
        their size differs from the stored one. The flag is never cleared.
        """
        with self._lock:
            rec = self._index.get(name)
            if rec is None:
                rec = FileRecord(
                    name=name,
                    size=size,
                    mod_time=mod_time,
                    classification=classification,
                    metadata=dict(metadata or {}),
                )
                self._index[name] = rec
            elif rec.size != size:
                rec.size_mismatch = True
                if self.stats:
                    self.stats.incr("size_mismatches")
                logging.debug(f"Size mismatch for {name}: {rec.size} vs {size} ({path})")

            rec.occurrences.append(Occurrence(path=path, size=size))
            return self._copy(rec)

    def get(self, name: str) -> Optional[FileRecord]:
        with self._lock:
            rec = self._index.get(name)
            return self._copy(rec) if rec else None

    def records(self) -> Dict[str, FileRecord]:
        """Snapshot of the whole index."""
        with self._lock:
            return {name: self._copy(rec) for name, rec in self._index.items()}

    def duplicate_sets(self) -> List[FileRecord]:
        """Records seen under more than one path, sorted by name."""
        recs = [r for r in self.records().values() if r.is_duplicate]
        recs.sort(key=lambda r: r.name)
        return recs

    def sorted_by_date(self) -> List[FileRecord]:
        return sorted(self.records().values(), key=lambda r: r.mod_time)

    def sorted_by_size(self) -> List[FileRecord]:
        return sorted(self.records().values(), key=lambda r: r.size, reverse=True)

    def __len__(self):
        with self._lock:
            return len(self._index)

    def __contains__(self, name: str):
        with self._lock:
            return name in self._index

    @staticmethod
    def _copy(rec: FileRecord) -> FileRecord:
        return FileRecord(
            name=rec.name,
            size=rec.size,
            mod_time=rec.mod_time,
            classification=rec.classification,
            metadata=dict(rec.metadata),
            size_mismatch=rec.size_mismatch,
            occurrences=list(rec.occurrences),
        )
