import json
import logging
import sqlite3
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from tqdm import tqdm

from .. import config
from ..analysis.common_path import CommonPathResolver
from ..exceptions import DatabaseError
from ..models import FileRecord
from .schema import MEDIA_COLUMNS, DUPLICATE_COLUMNS


@dataclass
class WriteCounts:
    inserted: int = 0
    skipped: int = 0    # row already present (INSERT OR IGNORE hit an existing key)


def _insert_sql(table: str, columns: Tuple[str, ...]) -> str:
    placeholders = ", ".join("?" for _ in columns)
    return f"INSERT OR IGNORE INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


class DBOperations:
    """
    Writes a finished scan to SQLite.

    Rows are built on a small worker pool; the inserts themselves are
    serialized on `write_lock` since all workers share one connection.
    """

    def __init__(self,
                 conn: sqlite3.Connection,
                 write_lock: Optional[threading.Lock] = None,
                 resolver: Optional[CommonPathResolver] = None,
                 show_progress: bool = True):
        self.conn = conn
        self.write_lock = write_lock or threading.Lock()
        self.resolver = resolver or CommonPathResolver()
        self.show_progress = show_progress

    def write_meta(self, records: Dict[str, FileRecord]) -> WriteCounts:
        """One `media` row per base name; existing names are left untouched."""
        counts = self._write(
            _insert_sql("media", MEDIA_COLUMNS),
            records.values(),
            self._media_rows,
            config.MEDIA_WRITE_WORKERS,
            desc="Writing media rows",
        )
        logging.info(f"Skipped existing media rows: {counts.skipped}")
        logging.info(f"New media rows added: {counts.inserted}")
        return counts

    def write_duplicates(self, duplicate_sets: Iterable[FileRecord]) -> WriteCounts:
        """One `duplicates` row per occurrence path of every duplicate set."""
        counts = self._write(
            _insert_sql("duplicates", DUPLICATE_COLUMNS),
            duplicate_sets,
            self._duplicate_rows,
            config.DUPLICATE_WRITE_WORKERS,
            desc="Writing duplicate rows",
        )
        logging.info(f"Skipped existing duplicate paths: {counts.skipped}")
        logging.info(f"New duplicate rows added: {counts.inserted}")
        return counts

    # --- Row builders ---

    def _media_rows(self, rec: FileRecord) -> List[tuple]:
        analysis = self.resolver.resolve(rec.occurrences)
        exif_dt = rec.metadata.get("DateTimeOriginal") if rec.classification.mime_type == "image" else None
        return [(
            rec.name,
            rec.size,
            rec.mod_time.isoformat(),
            exif_dt,
            rec.classification.mime_type,
            rec.classification.subtype,
            rec.classification.mime,
            rec.classification.extension,
            len(rec.occurrences),
            int(rec.size_mismatch),
            analysis.common_suffix,
            analysis.common_ancestor,
            json.dumps([{"path": o.path, "size": o.size} for o in rec.occurrences]),
            json.dumps(rec.metadata),
        )]

    def _duplicate_rows(self, rec: FileRecord) -> List[tuple]:
        mod_time = rec.mod_time.isoformat()
        return [(mod_time, rec.name, occ.size, occ.path) for occ in rec.occurrences]

    # --- Worker pool ---

    def _write(self, sql: str, records: Iterable[FileRecord], build_rows, workers: int, desc: str) -> WriteCounts:
        counts = WriteCounts()
        counts_lock = threading.Lock()

        def work(rec: FileRecord):
            rows = build_rows(rec)
            inserted = 0
            with self.write_lock:
                for row in rows:
                    inserted += self.conn.execute(sql, row).rowcount
            with counts_lock:
                counts.inserted += inserted
                counts.skipped += len(rows) - inserted

        records = list(records)
        try:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                for _ in tqdm(pool.map(work, records), total=len(records), desc=desc,
                              disable=not self.show_progress):
                    pass
            with self.write_lock:
                self.conn.commit()
        except sqlite3.Error as e:
            raise DatabaseError(f"{desc} failed: {e}") from e

        return counts
