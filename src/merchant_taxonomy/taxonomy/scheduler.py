# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/taxonomy/scheduler.py
from dataclasses import dataclass, field
from typing import List

from merchant_taxonomy.taxonomy.graph import NodeGraph
from merchant_taxonomy.taxonomy.schema import TaxonomyNode

DEFAULT_BATCH_SIZE = 500


@dataclass
class LevelPlan:
    level: int
    batches: List[List[TaxonomyNode]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(b) for b in self.batches)


def chunked(items: List[TaxonomyNode], size: int) -> List[List[TaxonomyNode]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def schedule_levels(graph: NodeGraph, batch_size: int = DEFAULT_BATCH_SIZE) -> List[LevelPlan]:
    """
    Write order for a graph: levels ascending, each sliced into batches.

    Batch size only bounds request size; it has no effect on the result.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    by_level = graph.by_level()
    return [
        LevelPlan(level=lvl, batches=chunked(by_level.get(lvl, []), batch_size))
        for lvl in range(graph.max_level + 1)
    ]
