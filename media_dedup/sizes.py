import logging
import os
import threading
from typing import Dict, List, Tuple

from . import config


class SizeAccountant:
    """
    du-style byte totals, independent of duplicate tracking.

    Sizes are attributed to the directory a file was found in. A separate
    running count of files/bytes feeds the periodic progress line.
    """

    def __init__(self, sep: str = os.sep):
        self.sep = sep
        self._lock = threading.Lock()
        self._totals: Dict[str, int] = {}
        self._files = 0
        self._bytes = 0

    def add(self, directory: str, size: int):
        with self._lock:
            self._totals[directory] = self._totals.get(directory, 0) + size
            self._files += 1
            self._bytes += size

    def totals(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._totals)

    def progress(self) -> Tuple[int, int]:
        """(files, bytes) so far. Read without waiting for the walk, may lag in-flight updates."""
        with self._lock:
            return self._files, self._bytes

    def top_level(self) -> Dict[str, int]:
        """Totals aggregated by the first segment of each directory path."""
        res: Dict[str, int] = {}
        for path, size in self.totals().items():
            top = self._top_segment(path)
            res[top] = res.get(top, 0) + size
        return res

    def ranked(self, top: int, summary: bool = False) -> List[Tuple[str, int]]:
        """
        Directories (or top-level roots with `summary`) by descending total.
        A negative `top`, or one larger than the number of entries, returns all of them.
        """
        totals = self.top_level() if summary else self.totals()
        items = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
        if top < 0 or top > len(items):
            return items
        return items[:top]

    def _top_segment(self, path: str) -> str:
        if path.startswith(self.sep):
            # keep absolute roots distinguishable from relative ones: /a/b -> /a
            head = path.lstrip(self.sep).split(self.sep, 1)[0]
            return self.sep + head
        return path.split(self.sep, 1)[0]


def format_size(size: int) -> str:
    """1234567 -> '1.2MB'. Anything under the MB threshold is shown in KB."""
    for unit, factor in config.SIZE_UNITS:
        value = size / factor
        if value > config.SIZE_UNIT_THRESHOLD:
            return f"{value:.1f}{unit}"
    return f"{size / 1e3:.1f}KB"


def format_ranked(entries: List[Tuple[str, int]]) -> List[str]:
    return [f"{format_size(size)}, {path}" for path, size in entries]


class ProgressTicker:
    """
    Logs a files/GB line every `interval` seconds until stopped.
    Snapshot reads only; it never waits on the walk.
    """

    def __init__(self, sizes: SizeAccountant, interval: float):
        self.sizes = sizes
        self.interval = interval
        self._stop = threading.Event()
        self._thread = None

    def start(self):
        if self.interval <= 0:
            return self
        self._thread = threading.Thread(target=self._run, name="progress-ticker", daemon=True)
        self._thread.start()
        return self

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _run(self):
        while not self._stop.wait(self.interval):
            files, nbytes = self.sizes.progress()
            logging.info(f"{files} files, {nbytes / 1e9:.1f}GB")

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
