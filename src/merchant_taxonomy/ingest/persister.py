# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/ingest/persister.py
"""
Level-ordered persistence of a scheduled taxonomy graph.

Every parent row gets its generated id before any of its children are
submitted: levels run strictly in ascending order, and a child's
``parent_id`` is resolved from ids returned by earlier levels. Any store
failure aborts the run at that batch; nothing deeper is ever written.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from merchant_taxonomy.errors import (
    BatchWriteError,
    IngestionCancelled,
    ParentResolutionError,
    StoreError,
)
from merchant_taxonomy.store.base import TaxonomyStore
from merchant_taxonomy.taxonomy.scheduler import LevelPlan
from merchant_taxonomy.taxonomy.schema import TaxonomyNode

logger = logging.getLogger(__name__)

ProgressFn = Callable[[int, int, int], None]


@dataclass
class PersistResult:
    inserted_total: int = 0
    inserted_per_level: Dict[int, int] = field(default_factory=dict)
    max_depth: int = -1
    id_map: Dict[str, Any] = field(default_factory=dict)


class BatchPersister:
    """
    Writes LevelPlans to a TaxonomyStore.

    Usage:
        persister = BatchPersister(store, progress=print_progress)
        result = persister.persist(schedule_levels(graph, 500))
    """

    def __init__(
        self,
        store: TaxonomyStore,
        progress: Optional[ProgressFn] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ):
        """
        Args:
            store: backing store receiving one insert call per batch
            progress: called as progress(level, inserted_so_far, level_total)
                      after every batch
            should_cancel: polled between levels; True stops the run
        """
        self.store = store
        self.progress = progress
        self.should_cancel = should_cancel

    def _resolve_rows(self, level: int, batch: List[TaxonomyNode], id_map: Dict[str, Any]) -> List[Dict[str, Any]]:
        rows = []
        for node in batch:
            if node.level == 0:
                parent_id = None
            else:
                if node.parent_key not in id_map:
                    raise ParentResolutionError(level, node.node_key, node.parent_key)
                parent_id = id_map[node.parent_key]
            rows.append(node.to_row(parent_id))
        return rows

    def persist(self, plans: List[LevelPlan]) -> PersistResult:
        result = PersistResult()
        id_map: Dict[str, Any] = {}

        for plan in sorted(plans, key=lambda p: p.level):
            if self.should_cancel is not None and self.should_cancel():
                raise IngestionCancelled(plan.level)

            level_total = plan.total
            inserted = 0
            logger.info(f"Level {plan.level}: writing {level_total} nodes in {len(plan.batches)} batch(es)")

            for batch_index, batch in enumerate(plan.batches):
                rows = self._resolve_rows(plan.level, batch, id_map)
                try:
                    returned = self.store.insert_nodes(rows)
                except StoreError as e:
                    logger.error(f"Store rejected batch {batch_index} at level {plan.level}: {e}")
                    raise BatchWriteError(plan.level, batch_index, str(e)) from e

                ids_by_lineage = {r.get("lineage_key"): r.get("id") for r in returned or []}
                for node in batch:
                    node_id = ids_by_lineage.get(node.lineage_key)
                    if node_id is None:
                        raise BatchWriteError(
                            plan.level, batch_index, f"store returned no id for {node.node_key!r}"
                        )
                    id_map[node.node_key] = node_id

                inserted += len(batch)
                if self.progress is not None:
                    self.progress(plan.level, inserted, level_total)

            result.inserted_per_level[plan.level] = inserted
            result.inserted_total += inserted
            if inserted:
                result.max_depth = max(result.max_depth, plan.level)

        result.id_map = id_map
        return result
