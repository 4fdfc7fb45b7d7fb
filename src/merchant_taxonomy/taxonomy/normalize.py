# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/taxonomy/normalize.py
import re
from typing import FrozenSet

STOPWORDS = frozenset({"and", "the", "for", "with"})

_NON_SLUG_RX = re.compile(r"[^a-z0-9_\s-]")
_SEP_RUN_RX = re.compile(r"[\s_-]+")
_KW_SPLIT_RX = re.compile(r"[\s\-/()]+")


def slugify(name: str) -> str:
    """'Health & Beauty' -> 'health-and-beauty'."""
    s = (name or "").lower().replace("&", "and")
    s = _NON_SLUG_RX.sub("", s)
    s = _SEP_RUN_RX.sub("-", s)
    return s.strip("-")


def extract_keywords(name: str) -> FrozenSet[str]:
    """Search tokens of a display name; short words and stopwords dropped."""
    words = _KW_SPLIT_RX.split((name or "").lower())
    return frozenset(w for w in words if len(w) > 2 and w not in STOPWORDS)
