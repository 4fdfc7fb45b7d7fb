# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/ingest/refresher.py
import logging

from merchant_taxonomy.errors import StoreError
from merchant_taxonomy.store.base import TaxonomyStore

logger = logging.getLogger(__name__)


def refresh_views(store: TaxonomyStore) -> bool:
    """Rebuild the derived search index once. Failure only leaves it stale."""
    try:
        store.refresh_search_index()
    except StoreError as e:
        logger.warning(f"Could not refresh search index: {e}")
        return False
    return True
