#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/cli.py
"""
Import the merchant taxonomy CSV into the taxonomy_nodes hierarchy.

Usage examples:
  # Default CSV location, local SQLite store
  taxonomy-import

  # Explicit file, hosted store, smaller batches
  taxonomy-import ~/Downloads/taxonomy.csv --store rest --batch-size 200

  # Build and inspect the tree only
  taxonomy-import taxonomy.csv --dry-run --export outputs/taxonomy_nodes.parquet

Exit codes: 0 ok, 1 bad input file or settings, 2 store/ordering failure, lock held or cancelled.
"""
from __future__ import annotations

import argparse
import logging
import logging.config
import signal
import sys
from dataclasses import replace
from typing import List, Optional

from merchant_taxonomy.config import Settings, load_config_file
from merchant_taxonomy.errors import InputFileError, TaxonomyImportError
from merchant_taxonomy.ingest.outputs import ImportReport, export_nodes, format_report
from merchant_taxonomy.ingest.pipeline import build_from_csv, failure_kind, persist_graph
from merchant_taxonomy.store import BACKENDS, make_store

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT = 1
EXIT_FAILED = 2


def setup_logging(level: str):
    level = (level or "INFO").upper()
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"}
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "console",
                "stream": "ext://sys.stderr",
            }
        },
        "root": {"level": level, "handlers": ["stderr"]},
    })
    for noisy in ["urllib3", "requests"]:
        logging.getLogger(noisy).setLevel(logging.WARNING)


def print_progress(level: int, inserted: int, total: int) -> None:
    print(f"   Level {level}: {inserted}/{total}")


class CancelOnInterrupt:
    """First Ctrl+C stops the import at the next level boundary; a second one aborts."""

    def __init__(self):
        self.requested = False
        self._previous = None

    def _handler(self, signum, frame):
        if self.requested:
            raise KeyboardInterrupt
        self.requested = True
        print("\n⏸  Cancellation requested; stopping after the current level (Ctrl+C again to abort)")

    def __call__(self) -> bool:
        return self.requested

    def __enter__(self):
        self._previous = signal.signal(signal.SIGINT, self._handler)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        signal.signal(signal.SIGINT, self._previous)
        return False


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Import the merchant taxonomy CSV into the taxonomy hierarchy")
    p.add_argument("csv_path", nargs="?", help="Taxonomy CSV (default: TAXONOMY_CSV_PATH or ~/Downloads snapshot)")
    p.add_argument("--config", help="YAML/JSON settings file")
    p.add_argument("--store", dest="store_backend", choices=["sqlite", "rest"], help="Backing store")
    p.add_argument("--db-path", dest="sqlite_path", help="SQLite file for --store sqlite")
    p.add_argument("--batch-size", type=int, help="Nodes per write request")
    p.add_argument("--separator", dest="level_separator", help="Service path level separator")
    p.add_argument("--dry-run", action="store_true", help="Build and report the tree without writing")
    p.add_argument("--export", dest="export_path", help="Write the node table to Parquet (or .csv)")
    p.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = load_config_file(Settings(), args.config)
    overrides = {
        "csv_path": args.csv_path,
        "store_backend": args.store_backend,
        "sqlite_path": args.sqlite_path,
        "batch_size": args.batch_size,
        "level_separator": args.level_separator,
        "log_level": args.log_level,
    }
    cfg = replace(cfg, **{k: v for k, v in overrides.items() if v is not None})
    setup_logging(cfg.log_level)
    logger.debug(f"Settings: {cfg.redacted()}")

    if cfg.batch_size < 1:
        print(f"❌ batch_size must be >= 1, got {cfg.batch_size}")
        return EXIT_INPUT
    if cfg.store_backend not in BACKENDS:
        print(f"❌ Unknown store backend: {cfg.store_backend}")
        return EXIT_INPUT

    print("🚀 Starting taxonomy import...")
    print(f"📁 Reading from: {cfg.csv_path}")

    report = ImportReport(csv_path=str(cfg.csv_path), dry_run=args.dry_run)
    try:
        graph = build_from_csv(cfg, report)
    except InputFileError as e:
        print(f"❌ {e}")
        return EXIT_INPUT

    if args.export_path:
        report.export_path = str(export_nodes(graph, args.export_path))

    if not args.dry_run:
        print(f"\n💾 Writing {len(graph)} nodes ({cfg.store_backend})...")
        try:
            with make_store(cfg) as store, CancelOnInterrupt() as cancel:
                persist_graph(graph, cfg, store, report, progress=print_progress, should_cancel=cancel)
        except TaxonomyImportError as e:
            logger.error(f"Import failed: {e}")
            report.failure = report.failure or str(e)
            report.failure_kind = report.failure_kind or failure_kind(e)
            for line in format_report(report):
                print(line)
            return EXIT_FAILED

    for line in format_report(report):
        print(line)
    print("\n✨ Import complete!")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
