import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from . import config
from .analysis.common_path import CommonPathResolver
from .exceptions import ReportError
from .models import FileRecord
from .registry import Registry
from .sizes import SizeAccountant, format_ranked


class ReportWriter:
    def __init__(self, output_dir: Path, resolver: Optional[CommonPathResolver] = None, show_progress: bool = True):
        self.output_dir = output_dir
        self.resolver = resolver or CommonPathResolver()
        self.show_progress = show_progress

    def write_all(self, registry: Registry, duplicates: Optional[List[Dict[str, Any]]] = None) -> List[Path]:
        """
        Writes every JSON report for a finished scan and returns their paths.
        The previous file-info.json is kept as file-info.json.bak.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        records = registry.records()
        if duplicates is None:
            duplicates = self.duplicate_entries(registry.duplicate_sets())

        file_info = self.output_dir / config.FILE_INFO_JSON
        self.backup(file_info)

        return [
            self._dump(file_info, {name: rec.to_dict() for name, rec in records.items()}),
            self._dump(self.output_dir / config.DUPLICATES_JSON, duplicates),
            self._dump(self.output_dir / config.DATE_INFO_JSON, [r.to_dict() for r in registry.sorted_by_date()]),
            self._dump(self.output_dir / config.SIZE_INFO_JSON, [r.to_dict() for r in registry.sorted_by_size()]),
        ]

    def duplicate_entries(self, duplicate_sets: List[FileRecord]) -> List[Dict[str, Any]]:
        """One entry per duplicate set, annotated with the inferred common paths."""
        entries = []
        for rec in tqdm(duplicate_sets, desc="Resolving duplicates", disable=not self.show_progress):
            analysis = self.resolver.resolve(rec.occurrences)
            entries.append({
                "name": rec.name,
                "mime": rec.classification.mime,
                "size_mismatch": rec.size_mismatch,
                "common_suffix": analysis.common_suffix,
                "common_ancestor": analysis.common_ancestor,
                "occurrences": [{"path": o.path, "size": o.size} for o in rec.occurrences],
            })
        return entries

    def backup(self, path: Path):
        if not path.exists():
            return
        bak = path.with_name(path.name + ".bak")
        try:
            shutil.copy2(path, bak)
        except OSError as e:
            # a failed backup should not cost us the new report
            logging.warning(f"Could not back up {path}: {e}")

    def _dump(self, path: Path, data: Any) -> Path:
        logging.info(f"Creating json file {path}")
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ReportError(f"Cannot write {path}: {e}") from e
        return path


def size_listing(sizes: SizeAccountant, top: int, summary: bool = False) -> List[str]:
    """du-style lines, e.g. '1.2GB, /photos/2019'."""
    entries = sizes.ranked(top, summary=summary)
    what = "top-level dirs" if summary else "dirs"
    available = len(sizes.top_level() if summary else sizes.totals())
    if top < 0 or top >= available:
        header = f"Top available {len(entries)} {what}"
    else:
        header = f"Top {top} {what}"
    return [header] + format_ranked(entries)


def duplicate_listing(entries: List[Dict[str, Any]]) -> List[str]:
    lines = []
    for e in entries:
        flag = " [size mismatch]" if e["size_mismatch"] else ""
        lines.append(f"{e['name']} ({e['mime'] or 'unknown'}){flag}: {len(e['occurrences'])} copies, "
                     f"suffix={e['common_suffix']!r}, ancestor={e['common_ancestor']!r}")
        for occ in e["occurrences"]:
            lines.append(f"    {occ['size']:>12d}  {occ['path']}")
    return lines
