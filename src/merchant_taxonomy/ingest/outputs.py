# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/ingest/outputs.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from merchant_taxonomy.taxonomy.graph import NodeGraph

logger = logging.getLogger(__name__)

NODE_COLUMNS = [
    "node_key", "lineage_key", "parent_key", "level", "name", "slug",
    "full_name", "node_type", "keywords", "is_active", "sort_order",
]

FAILURE_LABELS = {
    "store": "store error",
    "integrity": "parent id missing",
    "locked": "another import is running",
    "cancelled": "cancelled",
}


@dataclass
class ImportReport:
    csv_path: str
    rows_total: int = 0
    rows_skipped: int = 0
    total_nodes: int = 0
    nodes_per_level: Dict[int, int] = field(default_factory=dict)
    max_depth: int = -1
    inserted_total: int = 0
    inserted_per_level: Dict[int, int] = field(default_factory=dict)
    collisions: Dict[str, List[str]] = field(default_factory=dict)
    examples: List[str] = field(default_factory=list)
    index_refreshed: Optional[bool] = None
    dry_run: bool = False
    export_path: Optional[str] = None
    failure: Optional[str] = None
    # "store", "integrity", "locked" or "cancelled"
    failure_kind: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def build_node_frame(graph: NodeGraph) -> pd.DataFrame:
    rows = [
        {
            "node_key": n.node_key,
            "lineage_key": n.lineage_key,
            "parent_key": n.parent_key,
            "level": n.level,
            "name": n.name,
            "slug": n.slug,
            "full_name": n.full_name,
            "node_type": n.node_type.value,
            "keywords": sorted(n.keywords),
            "is_active": n.is_active,
            "sort_order": n.sort_order,
        }
        for n in graph.nodes.values()
    ]
    return pd.DataFrame(rows, columns=NODE_COLUMNS)


def export_nodes(graph: NodeGraph, path: str | Path) -> Path:
    """Write the node table to Parquet (``.csv`` suffix writes CSV instead)."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    df = build_node_frame(graph)
    if p.suffix == ".csv":
        df.assign(keywords=df["keywords"].map(lambda kw: ";".join(kw))).to_csv(p, index=False)
    else:
        df.to_parquet(p, engine="pyarrow", compression="snappy", index=False)
    logger.info(f"Exported {len(df)} nodes → {p}")
    return p


def example_paths(graph: NodeGraph, min_level: int = 4, limit: int = 5) -> List[str]:
    """A few deep breadcrumbs for spot-checking; falls back to the deepest level."""
    if not len(graph):
        return []
    floor = min(min_level, graph.max_level)
    return [n.full_name for n in graph.nodes.values() if n.level >= floor][:limit]


def format_report(report: ImportReport) -> List[str]:
    lines = ["", "📊 Final Statistics:"]
    lines.append(f"   Rows read: {report.rows_total}")
    lines.append(f"   Rows skipped (malformed input): {report.rows_skipped}")
    lines.append(f"   Total unique nodes: {report.total_nodes}")
    for lvl, cnt in sorted(report.nodes_per_level.items()):
        lines.append(f"   Level {lvl}: {cnt}")
    lines.append(f"   Max depth: {report.max_depth}")
    if report.collisions:
        lines.append(f"   Slug collisions merged: {len(report.collisions)}")
    if report.dry_run:
        lines.append("   Dry run: nothing written")
    else:
        lines.append(f"   Nodes written: {report.inserted_total}")
        for lvl, cnt in sorted(report.inserted_per_level.items()):
            lines.append(f"   Level {lvl}: {cnt}/{report.nodes_per_level.get(lvl, cnt)} written")
    if report.index_refreshed is False:
        lines.append("   ⚠️  Search index NOT refreshed (run refresh manually)")
    if report.export_path:
        lines.append(f"   Exported node table: {report.export_path}")
    if report.failure:
        label = FAILURE_LABELS.get(report.failure_kind or "store", "store error")
        lines.append(f"   ❌ Failed ({label}): {report.failure}")
    if report.examples:
        lines.append("")
        lines.append("📖 Example hierarchies:")
        lines.extend(f"   {ex}" for ex in report.examples)
    return lines
