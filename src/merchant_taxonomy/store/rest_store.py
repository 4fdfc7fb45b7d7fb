# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/store/rest_store.py
"""
Hosted Postgres backend reached through the Supabase REST (PostgREST) API.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from merchant_taxonomy.errors import IngestionLocked, StoreError
from merchant_taxonomy.store.base import TaxonomyStore

logger = logging.getLogger(__name__)

LOCKS_TABLE = "ingest_locks"


class RestTaxonomyStore(TaxonomyStore):
    """
    Writes taxonomy nodes to a Supabase project.

    Expects on the database side:
    - ``{table}`` with a unique ``lineage_key`` column and ``parent_id``
      referencing ``{table}.id``
    - ``ingest_locks(lock_name text primary key, acquired_at timestamptz)``
    - an RPC function (default ``refresh_taxonomy_search``) rebuilding the
      search view
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "taxonomy_nodes",
        refresh_rpc: str = "refresh_taxonomy_search",
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: project URL, e.g. https://<ref>.supabase.co
            api_key: service-role or anon key
            table: nodes table name
            refresh_rpc: name of the search-index refresh function
            timeout: per-request timeout in seconds
            session: optional preconfigured requests session
        """
        if not base_url or not api_key:
            raise StoreError("SUPABASE_URL and SUPABASE_KEY must be set for the rest backend")
        self.rest_url = base_url.rstrip("/") + "/rest/v1"
        self.table = table
        self.refresh_rpc = refresh_rpc
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "User-Agent": "MerchantTaxonomyImport/1.0",
        })

    def _post(self, path: str, payload: Any, prefer: Optional[str] = None, params=None) -> requests.Response:
        headers = {"Prefer": prefer} if prefer else {}
        try:
            response = self.session.post(
                f"{self.rest_url}/{path}",
                json=payload,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoreError(f"POST {path} failed: {e}") from e
        return response

    @staticmethod
    def _raise_for(response: requests.Response, what: str) -> None:
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise StoreError(f"{what} failed ({response.status_code}): {response.text[:300]}") from e

    def insert_nodes(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        response = self._post(
            self.table,
            rows,
            prefer="resolution=merge-duplicates,return=representation",
            params={"on_conflict": "lineage_key", "select": "id,lineage_key"},
        )
        self._raise_for(response, f"Insert into {self.table}")
        try:
            data = response.json()
        except ValueError as e:
            raise StoreError(f"Insert into {self.table} returned non-JSON body") from e
        logger.debug(f"Upserted {len(data)} rows into {self.table}")
        return data

    def refresh_search_index(self) -> None:
        response = self._post(f"rpc/{self.refresh_rpc}", {})
        self._raise_for(response, f"RPC {self.refresh_rpc}")
        logger.info(f"Called {self.refresh_rpc}()")

    def _acquire_lock(self, name: str) -> None:
        response = self._post(
            LOCKS_TABLE,
            {"lock_name": name, "acquired_at": datetime.now(timezone.utc).isoformat()},
            prefer="return=minimal",
        )
        if response.status_code == 409:
            raise IngestionLocked(name)
        self._raise_for(response, f"Lock {name!r}")

    def _release_lock(self, name: str) -> None:
        try:
            response = self.session.delete(
                f"{self.rest_url}/{LOCKS_TABLE}",
                params={"lock_name": f"eq.{name}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to release import lock {name!r}: {e}")

    def close(self) -> None:
        self.session.close()
