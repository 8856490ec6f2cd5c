import errno
import logging
import os
import stat
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from ..exceptions import ClassificationError, ResourceExhaustedError, RootNotFoundError
from ..metadata.classify import MediaClassifier
from ..models import Classification, EMPTY_CLASSIFICATION, ScanStats
from ..registry import Registry
from ..sizes import SizeAccountant
from .gate import ConcurrencyGate
from .skip import SkipRules

# Listing failures that mean the process is out of descriptors
FD_EXHAUSTED = (errno.EMFILE, errno.ENFILE)


class TreeWalker:
    def __init__(self,
                 gate: ConcurrencyGate,
                 registry: Registry,
                 sizes: SizeAccountant,
                 stats: ScanStats,
                 classifier: Optional[MediaClassifier] = None,
                 skip_rules: Optional[SkipRules] = None,
                 media_only: bool = True,
                 max_workers: Optional[int] = None):
        """
        Args:
            media_only: Only index files the classifier recognises as media.
            max_workers: Threads running traversal tasks. Defaults to twice the gate
                         capacity so file classification can overlap with listings.
        """
        self.gate = gate
        self.registry = registry
        self.sizes = sizes
        self.stats = stats
        self.classifier = classifier or MediaClassifier()
        self.skip_rules = skip_rules or SkipRules()
        self.media_only = media_only
        self.max_workers = max_workers or gate.capacity * 2

        self._executor: Optional[ThreadPoolExecutor] = None
        self._cond = threading.Condition()
        self._pending = 0
        self._fatal: Optional[BaseException] = None

    # --- Public API ---

    def scan(self, roots: Iterable[Path]):
        """Walks every root concurrently and returns once all of them are done."""
        for root in roots:
            self.walk(root)
        self.join()

    def walk(self, root: Path):
        """
        Starts traversal of `root` (a directory or a single file) in the background.
        Call join() before reading results.
        """
        with self._cond:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                                    thread_name_prefix="walker")
        self._spawn(self._walk_root, str(root))

    def join(self):
        """
        Blocks until every spawned task, for every root, has returned.
        Re-raises the error that stopped the run, if any.
        """
        with self._cond:
            while self._pending:
                self._cond.wait()
            executor, self._executor = self._executor, None
            fatal, self._fatal = self._fatal, None

        if executor is not None:
            executor.shutdown(wait=True)
        if fatal is not None:
            raise fatal

    # --- Task bookkeeping ---

    def _spawn(self, fn, *args):
        with self._cond:
            if self._fatal is not None:
                return
            self._pending += 1
            executor = self._executor
        executor.submit(self._run_task, fn, *args)

    def _run_task(self, fn, *args):
        try:
            fn(*args)
        except ResourceExhaustedError as e:
            logging.error(f"Out of file descriptors listing {e.path}; stopping scan")
            with self._cond:
                if self._fatal is None:
                    self._fatal = e
        except Exception:
            logging.exception(f"Traversal task failed for {args[0] if args else fn}")
            self.stats.incr("list_errors")
        finally:
            with self._cond:
                self._pending -= 1
                if self._pending == 0:
                    self._cond.notify_all()

    @property
    def stopping(self) -> bool:
        with self._cond:
            return self._fatal is not None

    # --- Traversal ---

    def _walk_root(self, root: str):
        try:
            st = self._stat_root(root)
        except RootNotFoundError as e:
            logging.error(str(e))
            self.stats.incr("root_errors")
            return

        if stat.S_ISDIR(st.st_mode):
            self._walk_dir(root)
        elif stat.S_ISREG(st.st_mode):
            # invoked with files as args, e.g. `media-dedup *`
            self._visit_file(os.path.dirname(root) or os.curdir, root, st)
        else:
            logging.warning(f"Skipping {root}: not a regular file or directory")

    def _stat_root(self, root: str) -> os.stat_result:
        try:
            return os.stat(root)
        except FileNotFoundError as e:
            raise RootNotFoundError(f"Root does not exist: {root}") from e
        except OSError as e:
            raise RootNotFoundError(f"Cannot access root {root}: {e}") from e

    def _walk_dir(self, directory: str):
        if self.stopping:
            return

        for entry in self._list_dir(directory):
            try:
                if entry.is_dir(follow_symlinks=False):
                    self._spawn(self._walk_dir, entry.path)
                elif entry.is_file(follow_symlinks=False):
                    self._visit_file(directory, entry.path, entry.stat(follow_symlinks=False))
            except OSError as e:
                # vanished or unreadable between listing and stat
                logging.warning(f"Cannot stat {entry.path}: {e}")
                self.stats.incr("file_errors")
            except Exception:
                # skip this entry, keep walking its siblings
                logging.exception(f"Failed to process {entry.path}")
                self.stats.incr("file_errors")

    def _list_dir(self, directory: str) -> List[os.DirEntry]:
        """Lists one directory while holding a gate permit."""
        with self.gate:
            try:
                with os.scandir(directory) as it:
                    return list(it)
            except OSError as e:
                if e.errno in FD_EXHAUSTED:
                    raise ResourceExhaustedError(directory, e) from e
                logging.warning(f"Cannot list {directory}: {e}")
                self.stats.incr("list_errors")
                return []

    def _visit_file(self, directory: str, path: str, st: os.stat_result):
        size = st.st_size
        self.sizes.add(directory, size)
        self.stats.incr("files")
        self.stats.incr("bytes", size)

        if self.skip_rules.matches(path):
            self.stats.incr("skipped")
            return

        if size == 0:
            self.stats.incr("empty")
            return

        classification = EMPTY_CLASSIFICATION
        metadata = {}
        try:
            result = self.classifier.classify(Path(path))
        except ClassificationError as e:
            logging.warning(str(e))
            self.stats.incr("classify_errors")
        except Exception:
            logging.exception(f"Classifier failed on {path}")
            self.stats.incr("classify_errors")
        else:
            if result is None:
                if self.media_only:
                    self.stats.incr("non_media")
                    return
                classification = Classification(extension=Path(path).suffix.lower())
            else:
                classification = result.classification
                metadata = result.metadata
                self._count_type(classification)
                if result.metadata_error:
                    self.stats.incr("exif_errors")

        self.registry.record(
            name=os.path.basename(path),
            path=path,
            size=size,
            mod_time=datetime.fromtimestamp(st.st_mtime),
            classification=classification,
            metadata=metadata,
        )

    def _count_type(self, classification: Classification):
        counter = {'image': 'images', 'video': 'videos', 'audio': 'audio'}.get(classification.mime_type)
        if counter:
            self.stats.incr(counter)
