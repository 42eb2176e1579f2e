#!/usr/bin/env python3
"""
WIKIPEDIA EXTERNALLINKS EXTRACTOR

Streams an externallinks SQL dump and writes one URL per extracted row to
stdout. Diagnostics for rows and statements that could not be extracted go
to stderr (or --errors-file), one line each.

Usage:
    zcat enwiki-latest-externallinks.sql.gz | wiki-externallinks > links.txt
    wiki-externallinks extract data/enwiki-latest-externallinks.sql.gz
    wiki-externallinks download --data-dir data
"""

import argparse
import sys
import time
from typing import List, Optional

from tqdm import tqdm

from . import acquire
from .config import QUEUE_SIZE, TARGET_COLUMNS, TARGET_TABLE, Config, default_num_workers
from .logs import setup_logging
from .pipeline import ScanCounts, iter_extraction_results
from .results import DumpReadError, ExtractionError
from .urls import format_link

COMMANDS = ("extract", "download")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wiki-externallinks",
        description="Extract external link URLs from a Wikipedia externallinks SQL dump"
    )
    subparsers = parser.add_subparsers(dest="command")

    extract = subparsers.add_parser("extract", help="Extract URLs from a dump (default command)")
    extract.add_argument("input", nargs="?", default=None,
                         help="Dump file (.sql, .sql.gz or .sql.bz2); stdin if omitted or '-'")
    extract.add_argument("--table", default=TARGET_TABLE, help=f"Target table (default: {TARGET_TABLE})")
    extract.add_argument("--columns", nargs=2, default=list(TARGET_COLUMNS),
                         metavar=("URL_COLUMN", "PATH_COLUMN"),
                         help=f"URL and path columns (default: {' '.join(TARGET_COLUMNS)})")
    extract.add_argument("--workers", type=int, default=default_num_workers(),
                         help="Extraction worker processes; 0 runs inline (default: CPU count)")
    extract.add_argument("--queue-size", type=int, default=QUEUE_SIZE,
                         help=f"Maximum statements waiting for a worker (default: {QUEUE_SIZE})")
    extract.add_argument("--errors-file", help="Write error diagnostics here instead of stderr")
    extract.add_argument("--fail-on-error", action="store_true",
                         help="Exit with status 1 if any row or statement failed")
    extract.add_argument("--progress", action="store_true", help="Show a progress bar on stderr")
    extract.add_argument("--log-file", help="Also write log messages to this file")
    extract.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    download = subparsers.add_parser("download", help="Download a dump from dumps.wikimedia.org")
    download.add_argument("--dump", default=acquire.DEFAULT_DUMP,
                          help=f"Dump file name (default: {acquire.DEFAULT_DUMP})")
    download.add_argument("--data-dir", default=acquire.DATA_DIR,
                          help=f"Where to store the dump (default: {acquire.DATA_DIR})")
    download.add_argument("--base-url", default=acquire.BASE_URL, help="Dump mirror base URL")
    download.add_argument("--no-progress", action="store_true", help="Hide the download progress bar")
    download.add_argument("--log-file", help="Also write log messages to this file")
    download.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    return Config(
        table=args.table,
        columns=tuple(args.columns),
        num_workers=args.workers,
        queue_size=args.queue_size,
        errors_file=args.errors_file,
        fail_on_error=args.fail_on_error,
        log_file=args.log_file,
        show_progress=args.progress,
        verbose=args.verbose,
    )


def run_extract(config: Config, input_path: Optional[str]) -> int:
    logger = setup_logging(config)
    logger.info("=" * 80)
    logger.info("WIKIPEDIA EXTERNALLINKS EXTRACTOR")
    logger.info("=" * 80)
    logger.info(f"Input: {input_path or 'stdin'}")
    logger.info(f"Table: {config.table} | Columns: {', '.join(config.columns)}")
    logger.info(f"Workers: {config.num_workers or 'inline'}")

    out = sys.stdout
    error_sink = open(config.errors_file, 'w', encoding='utf-8') if config.errors_file else sys.stderr

    start_time = time.time()
    counts = ScanCounts()
    pairs = 0
    errors = 0
    status = 0

    pbar = tqdm(
        desc="Extracting links",
        unit=" link",
        dynamic_ncols=True,
        disable=not config.show_progress
    )

    try:
        with acquire.open_dump(input_path) as dump:
            for result in iter_extraction_results(dump, config, counts):
                if result.is_error:
                    errors += 1
                    error_sink.write(f"{result.message}\n")
                else:
                    pairs += 1
                    out.write(f"{format_link(result.url, result.path)}\n")
                    pbar.update(1)

    except DumpReadError as e:
        logger.error(f"Input read failed, stopping: {e}")
        status = 1
    except ExtractionError as e:
        logger.error(f"Extraction failed: {e}")
        status = 1
    except OSError as e:
        logger.error(f"I/O error: {e}")
        status = 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user!")
        status = 1
    finally:
        pbar.close()
        out.flush()
        if error_sink is not sys.stderr:
            error_sink.close()

    elapsed = time.time() - start_time
    logger.info("=" * 80)
    logger.info(f"Lines read: {counts.lines:,}")
    logger.info(f"Statements: {counts.statements:,}")
    logger.info(f"Links extracted: {pairs:,}")
    logger.info(f"Errors: {errors:,}")
    logger.info(f"Total time: {elapsed / 60:.1f} minutes")

    if status == 0 and errors and config.fail_on_error:
        status = 1
    return status


def run_download(args: argparse.Namespace) -> int:
    setup_logging(Config(log_file=args.log_file, verbose=args.verbose))
    path = acquire.download_dump(
        filename=args.dump,
        data_dir=args.data_dir,
        base_url=args.base_url,
        show_progress=not args.no_progress
    )
    if path is None:
        return 1
    print(path)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    argv = list(sys.argv[1:] if argv is None else argv)
    # 'extract' is implied when no command is given
    if not argv or argv[0] not in COMMANDS + ("-h", "--help"):
        argv.insert(0, "extract")

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "download":
        return run_download(args)

    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))
    return run_extract(config, args.input)


if __name__ == "__main__":
    sys.exit(main())
