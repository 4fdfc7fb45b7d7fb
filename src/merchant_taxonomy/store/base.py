# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/store/base.py
"""
Backing-store contract for taxonomy nodes.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

logger = logging.getLogger(__name__)


class TaxonomyStore:
    """
    Where taxonomy nodes are written.

    Subclasses implement:
    - insert_nodes: write one batch, return ``{"id", "lineage_key"}`` per row
    - refresh_search_index: rebuild the derived search index
    - _acquire_lock / _release_lock: per-root run lock

    Writes are keyed on ``lineage_key`` (upsert), so importing the same file
    twice does not duplicate rows. All failures surface as StoreError.
    """

    def insert_nodes(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def refresh_search_index(self) -> None:
        raise NotImplementedError

    def _acquire_lock(self, name: str) -> None:
        raise NotImplementedError

    def _release_lock(self, name: str) -> None:
        raise NotImplementedError

    @contextmanager
    def run_lock(self, name: str) -> Iterator[None]:
        """Hold the import lock for ``name``; raises IngestionLocked if taken."""
        self._acquire_lock(name)
        logger.debug(f"Acquired import lock {name!r}")
        try:
            yield
        finally:
            self._release_lock(name)
            logger.debug(f"Released import lock {name!r}")

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
