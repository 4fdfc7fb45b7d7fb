# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/taxonomy/__init__.py
"""
In-memory taxonomy model: CSV rows -> level paths -> lineage-keyed NodeGraph
-> level-ordered write plans.
"""

from .schema import LevelDescriptor, NodeType, RawRecord, TaxonomyNode
from .normalize import extract_keywords, slugify
from .records import parse_record, read_records, split_levels
from .graph import NodeGraph, build_graph
from .scheduler import LevelPlan, schedule_levels

__all__ = [
    "LevelDescriptor",
    "NodeType",
    "RawRecord",
    "TaxonomyNode",
    "extract_keywords",
    "slugify",
    "parse_record",
    "read_records",
    "split_levels",
    "NodeGraph",
    "build_graph",
    "LevelPlan",
    "schedule_levels",
]
