# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/taxonomy/graph.py
"""
Collapse many rows' level paths into one minimal tree.

Nodes are keyed by lineage (``parent_key/slug``), not by name, so the same
label under two parents stays two nodes while any number of rows naming the
same path share one. A NodeGraph is built fresh for every import run.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from merchant_taxonomy.taxonomy.normalize import extract_keywords, slugify
from merchant_taxonomy.taxonomy.schema import LevelDescriptor, TaxonomyNode

logger = logging.getLogger(__name__)

FULL_NAME_SEPARATOR = " - "


class NodeGraph:
    def __init__(self):
        self.nodes: Dict[str, TaxonomyNode] = {}
        # node_key -> other display names that slugged onto it
        self.collisions: Dict[str, Set[str]] = {}

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_key: str) -> bool:
        return node_key in self.nodes

    def get(self, node_key: str) -> Optional[TaxonomyNode]:
        return self.nodes.get(node_key)

    @property
    def max_level(self) -> int:
        """-1 for an empty graph."""
        return max((n.level for n in self.nodes.values()), default=-1)

    def add_path(self, levels: List[LevelDescriptor]) -> List[str]:
        """Merge one row's path; returns the node keys along it."""
        keys: List[str] = []
        parent: Optional[TaxonomyNode] = None
        for index, desc in enumerate(levels):
            slug = slugify(desc.name)
            node_key = f"{parent.node_key}/{slug}" if parent else slug

            node = self.nodes.get(node_key)
            if node is None:
                node = TaxonomyNode(
                    name=desc.name,
                    slug=slug,
                    full_name=(
                        f"{parent.full_name}{FULL_NAME_SEPARATOR}{desc.name}" if parent else desc.name
                    ),
                    level=index,
                    node_key=node_key,
                    parent_key=parent.node_key if parent else None,
                    node_type=desc.node_type,
                    keywords=extract_keywords(desc.name),
                )
                self.nodes[node_key] = node
            elif node.name != desc.name:
                self._note_collision(node, desc.name)

            keys.append(node_key)
            parent = node
        return keys

    def _note_collision(self, node: TaxonomyNode, other_name: str) -> None:
        seen = self.collisions.setdefault(node.node_key, set())
        if other_name in seen:
            return
        seen.add(other_name)
        logger.warning(
            f"Slug collision under {node.parent_key or '<root>'!r}: "
            f"{other_name!r} merged into {node.name!r} (slug {node.slug!r})"
        )

    def by_level(self) -> Dict[int, List[TaxonomyNode]]:
        out: Dict[int, List[TaxonomyNode]] = {}
        for n in self.nodes.values():
            out.setdefault(n.level, []).append(n)
        return dict(sorted(out.items()))

    def level_counts(self) -> Dict[int, int]:
        return {lvl: len(ns) for lvl, ns in self.by_level().items()}

    def edges(self) -> Set[Tuple[Optional[str], str]]:
        """(parent_key, slug) pairs; the graph's shape independent of row order."""
        return {(n.parent_key, n.slug) for n in self.nodes.values()}

    def children(self, node_key: Optional[str]) -> List[TaxonomyNode]:
        return [n for n in self.nodes.values() if n.parent_key == node_key]


def build_graph(paths: Iterable[List[LevelDescriptor]]) -> NodeGraph:
    graph = NodeGraph()
    for levels in paths:
        graph.add_path(levels)
    logger.info(f"Built taxonomy graph: {len(graph)} nodes, max level {graph.max_level}")
    return graph
