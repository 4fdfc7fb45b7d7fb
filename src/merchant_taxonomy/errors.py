# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/errors.py
"""
Exceptions raised by the taxonomy import.

Malformed CSV rows are not errors: they are counted and skipped. Everything
below aborts the run (except StoreError raised by the index refresh, which
the refresher downgrades to a warning).
"""
from __future__ import annotations

from typing import Optional


class TaxonomyImportError(Exception):
    """Base class for all import failures."""


class InputFileError(TaxonomyImportError):
    """Input CSV is missing, unreadable, or lacks a required column."""


class StoreError(TaxonomyImportError):
    """A backing-store call failed."""


class BatchWriteError(TaxonomyImportError):
    def __init__(self, level: int, batch_index: int, reason: str):
        super().__init__(f"Batch {batch_index} at level {level} failed: {reason}")
        self.level = level
        self.batch_index = batch_index
        self.reason = reason


class ParentResolutionError(TaxonomyImportError):
    """A node's parent has no generated id yet. Indicates an ordering bug."""

    def __init__(self, level: int, node_key: str, parent_key: Optional[str]):
        super().__init__(
            f"No id for parent {parent_key!r} of node {node_key!r} at level {level}"
        )
        self.level = level
        self.node_key = node_key
        self.parent_key = parent_key


class IngestionLocked(TaxonomyImportError):
    def __init__(self, lock_name: str, held_since: Optional[str] = None):
        msg = f"Another import holds lock {lock_name!r}"
        if held_since:
            msg += f" (since {held_since})"
        super().__init__(msg)
        self.lock_name = lock_name
        self.held_since = held_since


class IngestionCancelled(TaxonomyImportError):
    def __init__(self, next_level: int):
        super().__init__(f"Import cancelled before level {next_level}")
        self.next_level = next_level
