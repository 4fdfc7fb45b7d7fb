# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/taxonomy/records.py
"""
CSV boundary: raw rows -> validated RawRecord -> ordered level path.

A malformed row (blank category, subcategory or service path) is skipped and
counted; it never aborts the import.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

import pandas as pd

from merchant_taxonomy.errors import InputFileError
from merchant_taxonomy.taxonomy.schema import LevelDescriptor, NodeType, RawRecord

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = " - "
DEFAULT_COLUMNS = ("Category (v3)", "Subcategory (v3)", "Service Name")

_WS_RX = re.compile(r"\s+")


@dataclass
class ParsedInput:
    paths: List[List[LevelDescriptor]] = field(default_factory=list)
    rows_total: int = 0
    rows_skipped: int = 0


def _clean(v: Any) -> str:
    if v is None:
        return ""
    try:
        if pd.isna(v):
            return ""
    except (TypeError, ValueError):
        pass
    return str(v).strip()


def parse_record(
    raw: Mapping[str, Any],
    columns: Tuple[str, str, str] = ("category", "subcategory", "service_path"),
) -> Optional[RawRecord]:
    """Validate one raw row; None means skip."""
    cat_col, sub_col, svc_col = columns
    category = _WS_RX.sub(" ", _clean(raw.get(cat_col)))
    subcategory = _clean(raw.get(sub_col))
    service_path = _clean(raw.get(svc_col))
    if not category or not subcategory or not service_path:
        return None
    return RawRecord(category=category, subcategory=subcategory, service_path=service_path)


def split_levels(record: RawRecord, separator: str = DEFAULT_SEPARATOR) -> List[LevelDescriptor]:
    """[category, subcategory, *service path segments]."""
    levels = [
        LevelDescriptor(record.category, NodeType.CATEGORY),
        LevelDescriptor(record.subcategory, NodeType.SUBCATEGORY),
    ]
    for part in record.service_path.split(separator):
        part = part.strip()
        if part:
            levels.append(LevelDescriptor(part, NodeType.SERVICE))
    return levels


def load_csv(path: str | Path) -> pd.DataFrame:
    p = Path(path).expanduser()
    if not p.is_file():
        raise InputFileError(f"CSV file not found: {p}")
    try:
        return pd.read_csv(p, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise InputFileError(f"Could not read {p}: {e}") from e
    except pd.errors.EmptyDataError:
        return pd.DataFrame()


def read_records(
    path: str | Path,
    columns: Tuple[str, str, str] = DEFAULT_COLUMNS,
    separator: str = DEFAULT_SEPARATOR,
) -> ParsedInput:
    """
    Read the taxonomy CSV and turn every valid row into a level path.

    Args:
        path: CSV file location
        columns: (category, subcategory, service path) column headers
        separator: token splitting the service path into levels

    Returns:
        ParsedInput with the level paths and row/skip counts
    """
    df = load_csv(path)
    if df.empty and len(df.columns) == 0:
        logger.warning(f"{path} is empty")
        return ParsedInput()

    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise InputFileError(f"{path} is missing column(s): {', '.join(missing)}")

    out = ParsedInput(rows_total=len(df))
    for raw in df[list(columns)].to_dict(orient="records"):
        rec = parse_record(raw, columns)
        if rec is None:
            out.rows_skipped += 1
            logger.debug(f"Skipping malformed row: {raw}")
            continue
        out.paths.append(split_levels(rec, separator))

    logger.info(f"Parsed {out.rows_total} rows ({out.rows_skipped} skipped) from {path}")
    return out
