# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/store/__init__.py
"""
Backing stores for taxonomy nodes: local SQLite or hosted Supabase.
"""
from pathlib import Path

from merchant_taxonomy.config import Settings

from .base import TaxonomyStore
from .rest_store import RestTaxonomyStore
from .sqlite_store import SqliteTaxonomyStore

BACKENDS = ("sqlite", "rest")


def make_store(cfg: Settings) -> TaxonomyStore:
    if cfg.store_backend == "sqlite":
        return SqliteTaxonomyStore(Path(cfg.sqlite_path))
    if cfg.store_backend == "rest":
        return RestTaxonomyStore(
            cfg.supabase_url,
            cfg.supabase_key,
            table=cfg.nodes_table,
            refresh_rpc=cfg.refresh_rpc,
            timeout=cfg.http_timeout_secs,
        )
    raise ValueError(f"Unknown store backend: {cfg.store_backend}")


__all__ = ["BACKENDS", "TaxonomyStore", "SqliteTaxonomyStore", "RestTaxonomyStore", "make_store"]
