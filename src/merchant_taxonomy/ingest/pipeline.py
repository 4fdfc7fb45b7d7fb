# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/ingest/pipeline.py
"""
One import run, start to finish:

    CSV -> level paths -> NodeGraph -> LevelPlans -> store (per level, per batch)
        -> search index refresh -> ImportReport

The input file is read and validated before any store call is made. Store
and ordering failures propagate to the caller after the partial report has
been filled in; an index refresh failure only marks the report.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from merchant_taxonomy.config import Settings
from merchant_taxonomy.errors import (
    IngestionCancelled,
    IngestionLocked,
    ParentResolutionError,
    TaxonomyImportError,
)
from merchant_taxonomy.ingest.outputs import ImportReport, example_paths, export_nodes
from merchant_taxonomy.ingest.persister import BatchPersister, ProgressFn
from merchant_taxonomy.ingest.refresher import refresh_views
from merchant_taxonomy.store.base import TaxonomyStore
from merchant_taxonomy.taxonomy.graph import NodeGraph, build_graph
from merchant_taxonomy.taxonomy.records import read_records
from merchant_taxonomy.taxonomy.scheduler import schedule_levels

logger = logging.getLogger(__name__)


def failure_kind(exc: TaxonomyImportError) -> str:
    if isinstance(exc, IngestionLocked):
        return "locked"
    if isinstance(exc, IngestionCancelled):
        return "cancelled"
    if isinstance(exc, ParentResolutionError):
        return "integrity"
    return "store"


def build_from_csv(cfg: Settings, report: ImportReport) -> NodeGraph:
    parsed = read_records(
        cfg.csv_path,
        columns=(cfg.column_category, cfg.column_subcategory, cfg.column_service),
        separator=cfg.level_separator,
    )
    report.rows_total = parsed.rows_total
    report.rows_skipped = parsed.rows_skipped

    graph = build_graph(parsed.paths)
    report.total_nodes = len(graph)
    report.nodes_per_level = graph.level_counts()
    report.max_depth = graph.max_level
    report.collisions = {k: sorted(v) for k, v in graph.collisions.items()}
    report.examples = example_paths(graph)
    logger.info(
        f"Graph: {report.total_nodes} nodes, levels {report.nodes_per_level}, "
        f"{report.rows_skipped}/{report.rows_total} rows skipped"
    )
    return graph


def persist_graph(
    graph: NodeGraph,
    cfg: Settings,
    store: TaxonomyStore,
    report: ImportReport,
    progress: Optional[ProgressFn] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> ImportReport:
    """Write the graph level by level under the import lock, then refresh the index."""
    plans = schedule_levels(graph, cfg.batch_size)
    persister = BatchPersister(store, progress=progress, should_cancel=should_cancel)

    try:
        with store.run_lock(cfg.lock_name):
            result = persister.persist(plans)
    except TaxonomyImportError as e:
        report.failure = str(e)
        report.failure_kind = failure_kind(e)
        raise

    report.inserted_total = result.inserted_total
    report.inserted_per_level = result.inserted_per_level
    report.index_refreshed = refresh_views(store)
    return report


def run_import(
    cfg: Settings,
    store: Optional[TaxonomyStore] = None,
    dry_run: bool = False,
    export_path: Optional[str] = None,
    progress: Optional[ProgressFn] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> ImportReport:
    """
    Run one taxonomy import.

    Args:
        cfg: settings (input path, columns, batch size, lock name)
        store: target store; required unless dry_run
        dry_run: build and report the graph without writing
        export_path: optional Parquet/CSV dump of the node table
        progress: per-batch progress callback
        should_cancel: polled between levels

    Returns:
        ImportReport
    """
    if store is None and not dry_run:
        raise ValueError("store is required unless dry_run=True")

    report = ImportReport(csv_path=str(cfg.csv_path), dry_run=dry_run)
    graph = build_from_csv(cfg, report)

    if export_path:
        report.export_path = str(export_nodes(graph, export_path))
    if dry_run:
        return report

    return persist_graph(graph, cfg, store, report, progress=progress, should_cancel=should_cancel)
