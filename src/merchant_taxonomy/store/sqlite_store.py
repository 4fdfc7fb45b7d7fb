# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/store/sqlite_store.py
"""
Local SQLite backend for taxonomy nodes.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from merchant_taxonomy.errors import IngestionLocked, StoreError
from merchant_taxonomy.store.base import TaxonomyStore

logger = logging.getLogger(__name__)


class SqliteTaxonomyStore(TaxonomyStore):
    """
    Persists taxonomy nodes to SQLite.

    Tables:
    - taxonomy_nodes: one row per node, parent_id is an enforced foreign key
    - taxonomy_search: derived lookup rebuilt by refresh_search_index()
    - ingest_locks: one row per import currently running
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize the taxonomy store.

        Args:
            db_path: Path to SQLite database file (default: data/state/taxonomy.db)
        """
        if db_path is None:
            db_path = Path("data/state/taxonomy.db")

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self):
        """Initialize database schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS taxonomy_nodes (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    name        TEXT    NOT NULL,
                    slug        TEXT    NOT NULL,
                    full_name   TEXT    NOT NULL,
                    parent_id   INTEGER REFERENCES taxonomy_nodes(id),
                    keywords    TEXT    NOT NULL DEFAULT '[]',
                    node_type   TEXT    NOT NULL,
                    is_active   INTEGER NOT NULL DEFAULT 1,
                    sort_order  INTEGER NOT NULL DEFAULT 0,
                    lineage_key TEXT    NOT NULL UNIQUE,
                    created_at  TEXT    NOT NULL,
                    updated_at  TEXT    NOT NULL
                )
            """)

            # Derived index: flat search rows over the tree
            conn.execute("""
                CREATE TABLE IF NOT EXISTS taxonomy_search (
                    node_id     INTEGER PRIMARY KEY REFERENCES taxonomy_nodes(id) ON DELETE CASCADE,
                    full_name   TEXT    NOT NULL,
                    depth       INTEGER NOT NULL,
                    search_text TEXT    NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS ingest_locks (
                    lock_name   TEXT    PRIMARY KEY,
                    acquired_at TEXT    NOT NULL
                )
            """)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_taxonomy_parent ON taxonomy_nodes(parent_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_taxonomy_slug ON taxonomy_nodes(slug)")

    def insert_nodes(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Upsert one batch in a single transaction.

        Args:
            rows: store-facing node records (see TaxonomyNode.to_row)

        Returns:
            [{"id": ..., "lineage_key": ...}] in input order
        """
        now = datetime.now(timezone.utc).isoformat()
        out: List[Dict[str, Any]] = []
        try:
            with self._connect() as conn:
                for r in rows:
                    conn.execute("""
                        INSERT INTO taxonomy_nodes (
                            name, slug, full_name, parent_id, keywords,
                            node_type, is_active, sort_order, lineage_key,
                            created_at, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        ON CONFLICT(lineage_key) DO UPDATE SET
                            name = excluded.name,
                            slug = excluded.slug,
                            full_name = excluded.full_name,
                            parent_id = excluded.parent_id,
                            keywords = excluded.keywords,
                            node_type = excluded.node_type,
                            updated_at = excluded.updated_at
                    """, (
                        r["name"],
                        r["slug"],
                        r["full_name"],
                        r.get("parent_id"),
                        json.dumps(list(r.get("keywords") or [])),
                        r["node_type"],
                        1 if r.get("is_active", True) else 0,
                        int(r.get("sort_order", 0)),
                        r["lineage_key"],
                        now,
                        now,
                    ))
                    node_id = conn.execute(
                        "SELECT id FROM taxonomy_nodes WHERE lineage_key = ?",
                        (r["lineage_key"],)
                    ).fetchone()[0]
                    out.append({"id": node_id, "lineage_key": r["lineage_key"]})
        except sqlite3.Error as e:
            raise StoreError(f"SQLite insert failed: {e}") from e
        return out

    def refresh_search_index(self) -> None:
        """Rebuild taxonomy_search from taxonomy_nodes."""
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM taxonomy_search")
                rows = conn.execute("""
                    WITH RECURSIVE tree(id, depth) AS (
                        SELECT id, 0 FROM taxonomy_nodes WHERE parent_id IS NULL
                        UNION ALL
                        SELECT n.id, t.depth + 1
                        FROM taxonomy_nodes n JOIN tree t ON n.parent_id = t.id
                    )
                    SELECT n.id, n.name, n.full_name, n.keywords, t.depth
                    FROM taxonomy_nodes n JOIN tree t ON t.id = n.id
                    WHERE n.is_active = 1
                """).fetchall()
                conn.executemany(
                    "INSERT INTO taxonomy_search (node_id, full_name, depth, search_text) VALUES (?, ?, ?, ?)",
                    [
                        (
                            node_id,
                            full_name,
                            depth,
                            " ".join([name.lower(), *json.loads(keywords or "[]")]),
                        )
                        for node_id, name, full_name, keywords, depth in rows
                    ],
                )
        except sqlite3.Error as e:
            raise StoreError(f"Search index refresh failed: {e}") from e
        logger.info(f"Rebuilt taxonomy_search ({len(rows)} rows)")

    def _acquire_lock(self, name: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO ingest_locks (lock_name, acquired_at) VALUES (?, ?)",
                    (name, datetime.now(timezone.utc).isoformat())
                )
        except sqlite3.IntegrityError:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT acquired_at FROM ingest_locks WHERE lock_name = ?", (name,)
                ).fetchone()
            raise IngestionLocked(name, row[0] if row else None)
        except sqlite3.Error as e:
            raise StoreError(f"Could not take import lock {name!r}: {e}") from e

    def _release_lock(self, name: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM ingest_locks WHERE lock_name = ?", (name,))
        except sqlite3.Error as e:
            logger.error(f"Failed to release import lock {name!r}: {e}")

    # ---- read helpers (reporting / tests) ----

    def count_nodes(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM taxonomy_nodes").fetchone()[0]

    def fetch_nodes(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute("SELECT * FROM taxonomy_nodes ORDER BY id").fetchall()
        out = []
        for r in rows:
            d = dict(r)
            d["keywords"] = json.loads(d["keywords"] or "[]")
            d["is_active"] = bool(d["is_active"])
            out.append(d)
        return out

    def search(self, term: str, limit: int = 20) -> List[Dict[str, Any]]:
        like = f"%{term.lower()}%"
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT node_id, full_name, depth FROM taxonomy_search "
                "WHERE search_text LIKE ? ORDER BY depth, full_name LIMIT ?",
                (like, limit)
            ).fetchall()
        return [{"node_id": r[0], "full_name": r[1], "depth": r[2]} for r in rows]
