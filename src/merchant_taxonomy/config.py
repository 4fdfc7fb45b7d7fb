# SPDX-License-Identifier: MIT
# src/merchant_taxonomy/config.py
from dataclasses import dataclass, asdict
import json
import os
from pathlib import Path
from typing import Optional, Dict, Any

try:
    # optional; if present we load a .env automatically
    from dotenv import load_dotenv  # pip install python-dotenv
    load_dotenv(override=False)
except Exception:
    pass

DEFAULT_CSV_PATH = str(
    Path.home() / "Downloads" / "Full Merchant Taxonomy - Snapshot Oct 2025 - Q2 2025 Taxonomy.csv"
)


@dataclass(frozen=True)
class Settings:
    # -------- Input ------------
    csv_path: str           = os.getenv("TAXONOMY_CSV_PATH", DEFAULT_CSV_PATH)
    column_category: str    = os.getenv("TAXONOMY_COL_CATEGORY", "Category (v3)")
    column_subcategory: str = os.getenv("TAXONOMY_COL_SUBCATEGORY", "Subcategory (v3)")
    column_service: str     = os.getenv("TAXONOMY_COL_SERVICE", "Service Name")
    level_separator: str    = os.getenv("TAXONOMY_LEVEL_SEPARATOR", " - ")

    # -------- Persistence ------
    batch_size: int         = int(os.getenv("TAXONOMY_BATCH_SIZE", "500"))
    store_backend: str      = os.getenv("TAXONOMY_STORE", "sqlite")
    sqlite_path: str        = os.getenv("TAXONOMY_SQLITE_PATH", "data/state/taxonomy.db")
    supabase_url: str       = os.getenv("SUPABASE_URL", "")
    supabase_key: str       = os.getenv("SUPABASE_KEY", "")
    nodes_table: str        = os.getenv("TAXONOMY_NODES_TABLE", "taxonomy_nodes")
    refresh_rpc: str        = os.getenv("TAXONOMY_REFRESH_RPC", "refresh_taxonomy_search")
    lock_name: str          = os.getenv("TAXONOMY_LOCK_NAME", "taxonomy_nodes")
    http_timeout_secs: int  = int(os.getenv("HTTP_TIMEOUT_SECS", "30"))

    # -------- Logging ----------
    log_level: str          = os.getenv("LOG_LEVEL", "INFO")

    # helper: convert to dict (useful for logging)
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def redacted(self) -> Dict[str, Any]:
        d = self.to_dict()
        if d.get("supabase_key"):
            d["supabase_key"] = "***"
        return d

    @staticmethod
    def from_overrides(**kwargs) -> "Settings":
        """
        Build Settings and apply runtime overrides (e.g., parsed CLI flags).
        Only keys that match fields will be overridden.
        """
        base = Settings()
        current = base.to_dict()
        current.update({k: v for k, v in kwargs.items() if k in current and v is not None})
        # rebuild frozen dataclass with updates
        return Settings(**current)  # type: ignore[arg-type]


def load_config_file(cfg: Settings, path: Optional[str], respect_env: bool = True) -> Settings:
    """
    Apply a YAML/JSON settings snapshot on top of ``cfg``.

    Unknown keys are ignored. With ``respect_env`` an explicitly set
    environment variable for a key wins over the file.
    """
    if not path:
        return cfg
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing config: {p}")

    if p.suffix in (".yaml", ".yml"):
        import yaml
        with p.open("r", encoding="utf-8") as f:
            snap = yaml.safe_load(f) or {}
    elif p.suffix == ".json":
        with p.open("r", encoding="utf-8") as f:
            snap = json.load(f)
    else:
        raise ValueError(f"Unsupported config format: {p.suffix}")

    base = cfg.to_dict()
    current = dict(base)
    for k, v in snap.items():
        if k not in current:
            continue
        env = os.getenv(_ENV_NAMES.get(k, k.upper())) if respect_env else None
        # field defaults are read at import time, so take the live value here
        current[k] = v if env is None else type(base[k])(env)
    return Settings(**current)  # type: ignore[arg-type]


_ENV_NAMES = {
    "csv_path": "TAXONOMY_CSV_PATH",
    "column_category": "TAXONOMY_COL_CATEGORY",
    "column_subcategory": "TAXONOMY_COL_SUBCATEGORY",
    "column_service": "TAXONOMY_COL_SERVICE",
    "level_separator": "TAXONOMY_LEVEL_SEPARATOR",
    "batch_size": "TAXONOMY_BATCH_SIZE",
    "store_backend": "TAXONOMY_STORE",
    "sqlite_path": "TAXONOMY_SQLITE_PATH",
    "supabase_url": "SUPABASE_URL",
    "supabase_key": "SUPABASE_KEY",
    "nodes_table": "TAXONOMY_NODES_TABLE",
    "refresh_rpc": "TAXONOMY_REFRESH_RPC",
    "lock_name": "TAXONOMY_LOCK_NAME",
    "http_timeout_secs": "HTTP_TIMEOUT_SECS",
    "log_level": "LOG_LEVEL",
}
