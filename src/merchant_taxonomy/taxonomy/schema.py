# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/taxonomy/schema.py
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional


class NodeType(str, Enum):
    CATEGORY = "category"
    SUBCATEGORY = "subcategory"
    SERVICE = "service"


# ---- canonical data shapes ----
@dataclass(frozen=True)
class RawRecord:
    category: str
    subcategory: str
    service_path: str


@dataclass(frozen=True)
class LevelDescriptor:
    name: str
    node_type: NodeType


def lineage_hash(node_key: str, n: int = 32) -> str:
    """Stable idempotency key for a node's full lineage path."""
    return hashlib.sha256(node_key.encode("utf-8")).hexdigest()[:n]


@dataclass
class TaxonomyNode:
    name: str
    slug: str
    full_name: str
    level: int
    node_key: str
    parent_key: Optional[str]
    node_type: NodeType
    keywords: FrozenSet[str] = field(default_factory=frozenset)
    is_active: bool = True
    sort_order: int = 0

    @property
    def lineage_key(self) -> str:
        return lineage_hash(self.node_key)

    def to_row(self, parent_id: Any = None) -> Dict[str, Any]:
        """Store-facing record; ``parent_id`` is the parent's generated id."""
        return {
            "name": self.name,
            "slug": self.slug,
            "full_name": self.full_name,
            "parent_id": parent_id,
            "keywords": sorted(self.keywords),
            "node_type": self.node_type.value,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
            "lineage_key": self.lineage_key,
        }
