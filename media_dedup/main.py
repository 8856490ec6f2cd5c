import argparse
import logging
import sys
from pathlib import Path

from . import config
from .core import MediaDedupApp, ScanConfig
from .exceptions import MediaDedupError, ResourceExhaustedError
from .scanning.skip import load_skip_patterns


def setup_logging(output_dir: Path, verbose: bool):
    """Sets up logging to both console and a file in the output directory."""
    log_level = logging.DEBUG if verbose else logging.INFO

    output_dir.mkdir(parents=True, exist_ok=True)
    log_file = output_dir / config.LOG_FILE

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("pymediainfo").setLevel(logging.WARNING)


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Media duplicate scanner: du-style totals plus same-name duplicate candidates")

    p.add_argument("roots", type=Path, nargs="+", help="Directories and/or files to scan")

    p.add_argument("-t", "--top", type=int, default=config.DEFAULT_TOP,
                   help="Number of top directories to display (-1 for all)")
    p.add_argument("-c", "--concurrency", type=int, default=config.DEFAULT_CONCURRENCY,
                   help="Max directory listings in flight (lower this on 'too many open files')")
    p.add_argument("-s", "--summary", action="store_true", help="Show top-level totals only")
    p.add_argument("-f", "--print-interval", type=float, default=config.DEFAULT_PRINT_INTERVAL,
                   help="Print running totals every N seconds (0 disables)")
    p.add_argument("--workers", type=int, default=None,
                   help="Traversal threads (default: twice the concurrency factor)")

    p.add_argument("-o", "--output-dir", type=Path, default=Path("."), help="Directory for JSON reports and the log")
    p.add_argument("--db", type=Path, default=None, help=f"SQLite DB path (default: <output-dir>/{config.MEDIA_DB})")
    p.add_argument("--no-db", action="store_true", help="Do not write the SQLite catalog")

    p.add_argument("--skip", action="append", default=[], metavar="REGEX",
                   help="Extra skip pattern, matched anywhere in the path (repeatable)")
    p.add_argument("--skip-file", type=Path, default=None, help="File with one skip pattern per line")
    p.add_argument("--all-files", action="store_true", help="Index non-media files too")
    p.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)


def build_config(args) -> ScanConfig:
    output_dir = args.output_dir.resolve()
    db_path = None
    if not args.no_db:
        db_path = args.db if args.db else output_dir / config.MEDIA_DB

    skip_patterns = list(config.DEFAULT_SKIP_PATTERNS) + args.skip + load_skip_patterns(args.skip_file)

    return ScanConfig(
        roots=list(args.roots),
        output_dir=output_dir,
        db_path=db_path,
        concurrency=args.concurrency,
        max_workers=args.workers,
        top=args.top,
        summary=args.summary,
        print_interval=args.print_interval,
        skip_patterns=skip_patterns,
        media_only=not args.all_files,
        show_progress=not args.no_progress,
    )


def main(argv=None):
    args = parse_args(argv)
    cfg = build_config(args)

    setup_logging(cfg.output_dir, args.verbose)

    logging.info("=== Media scan started ===")
    logging.info(f"Roots:  {', '.join(str(r) for r in cfg.roots)}")
    logging.info(f"Output: {cfg.output_dir}")
    if args.concurrency < 1:
        logging.error(f"Concurrency factor must be at least 1, got {args.concurrency}")
        sys.exit(2)

    app = MediaDedupApp(cfg)

    try:
        app.run()
    except ResourceExhaustedError as e:
        logging.error(f"**Error: {e}")
        logging.error("Too many open files. Reduce concurrency (-c) or raise the OS limit and retry.")
        sys.exit(1)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    except MediaDedupError:
        logging.exception("Fatal error during scan.")
        sys.exit(1)


if __name__ == "__main__":
    main()
