import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from . import config
from .analysis.common_path import CommonPathResolver
from .database.db import DBManager
from .database.ops import DBOperations, WriteCounts
from .metadata.classify import MediaClassifier
from .models import ScanStats
from .registry import Registry
from .reporting import ReportWriter, duplicate_listing, size_listing
from .scanning.gate import ConcurrencyGate
from .scanning.skip import SkipRules
from .scanning.walker import TreeWalker
from .sizes import ProgressTicker, SizeAccountant


@dataclass
class ScanConfig:
    roots: List[Path]
    output_dir: Path = Path(".")
    db_path: Optional[Path] = None          # None disables persistence
    concurrency: int = config.DEFAULT_CONCURRENCY
    max_workers: Optional[int] = None
    top: int = config.DEFAULT_TOP
    summary: bool = False
    print_interval: float = config.DEFAULT_PRINT_INTERVAL
    skip_patterns: List[str] = field(default_factory=lambda: list(config.DEFAULT_SKIP_PATTERNS))
    media_only: bool = True
    show_progress: bool = True


@dataclass
class ScanResult:
    registry: Registry
    sizes: SizeAccountant
    stats: ScanStats
    reports: List[Path] = field(default_factory=list)
    media_counts: Optional[WriteCounts] = None
    duplicate_counts: Optional[WriteCounts] = None


class MediaDedupApp:
    def __init__(self, cfg: ScanConfig, classifier: Optional[MediaClassifier] = None):
        self.cfg = cfg
        self.classifier = classifier or MediaClassifier()
        self.resolver = CommonPathResolver()

    def run(self) -> ScanResult:
        """
        Executes a full run.
        1. Walk all roots (blocks until every traversal task is done)
        2. Print du-style totals and duplicate sets
        3. Write JSON reports
        4. Persist to SQLite (optional)

        Raises ResourceExhaustedError if the scan ran out of file descriptors.
        """
        result = self.scan()

        for line in size_listing(result.sizes, self.cfg.top, self.cfg.summary):
            logging.info(line)
        files, nbytes = result.sizes.progress()
        logging.info(f"{files} files, {nbytes / 1e9:.1f}GB")

        reporter = ReportWriter(self.cfg.output_dir, self.resolver, show_progress=self.cfg.show_progress)
        duplicates = reporter.duplicate_entries(result.registry.duplicate_sets())
        logging.info(f"Duplicate entries (if any): {len(duplicates)}")
        for line in duplicate_listing(duplicates):
            logging.info(line)
        result.reports = reporter.write_all(result.registry, duplicates)

        if self.cfg.db_path is not None:
            self._persist(result)

        logging.info("Scan summary:\n" + result.stats.summary())
        return result

    def scan(self) -> ScanResult:
        stats = ScanStats()
        registry = Registry(stats)
        sizes = SizeAccountant()

        walker = TreeWalker(
            gate=ConcurrencyGate(self.cfg.concurrency),
            registry=registry,
            sizes=sizes,
            stats=stats,
            classifier=self.classifier,
            skip_rules=SkipRules(self.cfg.skip_patterns),
            media_only=self.cfg.media_only,
            max_workers=self.cfg.max_workers,
        )

        logging.info(f"Scanning {len(self.cfg.roots)} root(s), concurrency factor {self.cfg.concurrency}")
        with ProgressTicker(sizes, self.cfg.print_interval):
            walker.scan(self.cfg.roots)
        logging.info(f"Scan complete. {len(registry)} distinct media names, "
                     f"{len(registry.duplicate_sets())} duplicate sets.")

        return ScanResult(registry=registry, sizes=sizes, stats=stats)

    def _persist(self, result: ScanResult):
        db_manager = DBManager(self.cfg.db_path)
        with db_manager as conn:
            db_ops = DBOperations(conn, db_manager.write_lock, self.resolver, show_progress=self.cfg.show_progress)
            result.media_counts = db_ops.write_meta(result.registry.records())
            result.duplicate_counts = db_ops.write_duplicates(result.registry.duplicate_sets())
