import threading
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Classification:
    """
    Media type of a file, as reported by the classifier.
    All fields empty means the file could not be classified.
    """
    mime_type: str = ""     # image/video/audio
    subtype: str = ""       # jpeg, png, quicktime, ...
    extension: str = ""

    @property
    def mime(self) -> str:
        if not self.mime_type:
            return ""
        return f"{self.mime_type}/{self.subtype}"

    @property
    def is_empty(self) -> bool:
        return not self.mime_type


EMPTY_CLASSIFICATION = Classification()


@dataclass
class Occurrence:
    """One physical file sharing a base name with others."""
    path: str
    size: int


@dataclass
class FileRecord:
    """
    Everything seen for one base name during a scan.
    Attributes come from the first sighting; later sightings only add occurrences.
    """
    name: str
    size: int
    mod_time: datetime
    classification: Classification = EMPTY_CLASSIFICATION
    metadata: Dict[str, Any] = field(default_factory=dict)
    size_mismatch: bool = False
    occurrences: List[Occurrence] = field(default_factory=list)

    @property
    def is_duplicate(self) -> bool:
        return len(self.occurrences) > 1

    @property
    def paths(self) -> List[str]:
        return [o.path for o in self.occurrences]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "size": self.size,
            "mod_time": self.mod_time.isoformat(),
            "mime_type": self.classification.mime_type,
            "subtype": self.classification.subtype,
            "mime": self.classification.mime,
            "extension": self.classification.extension,
            "metadata": self.metadata,
            "size_mismatch": self.size_mismatch,
            "occurrences": [asdict(o) for o in self.occurrences],
        }


@dataclass(frozen=True)
class PathAnalysis:
    common_suffix: str = ""
    common_ancestor: str = ""


@dataclass
class ClassifiedFile:
    """Result of sniffing one file."""
    classification: Classification
    metadata: Dict[str, Any] = field(default_factory=dict)
    metadata_error: Optional[str] = None


class ScanStats:
    """
    Thread-safe counters shared by every traversal task.
    """
    COUNTERS = (
        "files", "bytes", "images", "videos", "audio", "non_media",
        "skipped", "empty", "classify_errors", "exif_errors", "file_errors",
        "size_mismatches", "list_errors", "root_errors",
    )
    # metadata errors still leave the file recorded, so they are not counted here
    ERROR_COUNTERS = ("classify_errors", "file_errors", "list_errors", "root_errors")

    LABELS = {
        "files": "Files seen",
        "bytes": "Bytes seen",
        "images": "Image file(s)",
        "videos": "Video file(s)",
        "audio": "Audio file(s)",
        "non_media": "Non-media file(s)",
        "skipped": "Skip-pattern matches",
        "empty": "Zero-byte file(s)",
        "classify_errors": "Classification errors",
        "exif_errors": "Metadata errors",
        "file_errors": "Unreadable files",
        "size_mismatches": "File size mismatches",
        "list_errors": "Unreadable directories",
        "root_errors": "Missing roots",
    }

    def __init__(self):
        self._lock = threading.Lock()
        self._counts = {name: 0 for name in self.COUNTERS}

    def incr(self, name: str, n: int = 1):
        with self._lock:
            self._counts[name] += n

    def get(self, name: str) -> int:
        with self._lock:
            return self._counts[name]

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    @property
    def problems(self) -> int:
        """Number of files/dirs/roots that were not fully processed."""
        counts = self.snapshot()
        return sum(counts[name] for name in self.ERROR_COUNTERS)

    @property
    def clean(self) -> bool:
        return self.problems == 0

    def summary(self) -> str:
        counts = self.snapshot()
        lines = [f"{self.LABELS[name]}: {counts[name]}" for name in self.COUNTERS]
        if self.clean:
            lines.append("Scan completed cleanly.")
        else:
            lines.append(f"Scan completed with {self.problems} skipped/failed item(s).")
        return "\n".join(lines)
