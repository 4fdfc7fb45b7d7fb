# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/ingest/__init__.py
"""
Import orchestration: level-ordered persistence, index refresh and reporting.
"""

from .persister import BatchPersister, PersistResult
from .refresher import refresh_views
from .outputs import ImportReport
from .pipeline import run_import

__all__ = ["BatchPersister", "PersistResult", "refresh_views", "ImportReport", "run_import"]
