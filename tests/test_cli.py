import json

import pytest

from merchant_taxonomy import cli
from merchant_taxonomy.store.sqlite_store import SqliteTaxonomyStore

ROWS = [
    ("Health & Beauty - Sexual Wellness - Prostate - Beads", "Brand", "Goods"),
    ("Health & Beauty - Sexual Wellness - Prostate - Rings", "Brand", "Goods"),
    ("Massage", "", "Local"),
]


def test_cli_imports_into_sqlite(write_csv, tmp_path, capsys):
    db = tmp_path / "t.db"
    rc = cli.main([str(write_csv(ROWS)), "--db-path", str(db), "--batch-size", "1", "--log-level", "WARNING"])
    out = capsys.readouterr().out

    assert rc == cli.EXIT_OK
    assert "Level 5: 2/2" in out
    assert "Total unique nodes: 7" in out
    assert "Rows skipped (malformed input): 1" in out
    assert "Import complete" in out
    assert SqliteTaxonomyStore(db).count_nodes() == 7


def test_cli_missing_file(tmp_path, capsys):
    db = tmp_path / "t.db"
    rc = cli.main([str(tmp_path / "nope.csv"), "--db-path", str(db)])
    assert rc == cli.EXIT_INPUT
    assert "not found" in capsys.readouterr().out
    assert not db.exists()


def test_cli_dry_run_with_export(write_csv, tmp_path, capsys):
    db = tmp_path / "t.db"
    export = tmp_path / "nodes.csv"
    rc = cli.main([str(write_csv(ROWS)), "--db-path", str(db), "--dry-run", "--export", str(export)])
    assert rc == cli.EXIT_OK
    assert "Dry run" in capsys.readouterr().out
    assert not db.exists()
    assert len(export.read_text().strip().splitlines()) == 8


def test_cli_lock_held(write_csv, tmp_path, capsys):
    db = tmp_path / "t.db"
    store = SqliteTaxonomyStore(db)
    with store.run_lock("taxonomy_nodes"):
        rc = cli.main([str(write_csv(ROWS)), "--db-path", str(db), "--log-level", "ERROR"])
    assert rc == cli.EXIT_FAILED
    out = capsys.readouterr().out
    assert "Failed (another import is running)" in out
    assert "store error" not in out
    assert store.count_nodes() == 0


def test_cli_config_file(write_csv, tmp_path):
    path = write_csv([("Home/Kitchen", "Brand", "Goods")])
    db = tmp_path / "t.db"
    cfg_file = tmp_path / "taxonomy.json"
    cfg_file.write_text(json.dumps({"level_separator": "/", "sqlite_path": str(db), "unknown": 1}))

    rc = cli.main([str(path), "--config", str(cfg_file), "--log-level", "WARNING"])
    assert rc == cli.EXIT_OK
    names = [r["name"] for r in SqliteTaxonomyStore(db).fetch_nodes()]
    assert names == ["Goods", "Brand", "Home", "Kitchen"]


def test_cli_rejects_zero_batch_size(write_csv, tmp_path, capsys):
    db = tmp_path / "t.db"
    rc = cli.main([str(write_csv(ROWS)), "--db-path", str(db), "--batch-size", "0"])
    assert rc == cli.EXIT_INPUT
    assert "batch_size must be >= 1" in capsys.readouterr().out
    assert not db.exists()


def test_cli_rejects_unknown_backend(write_csv, tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("TAXONOMY_STORE", raising=False)
    db = tmp_path / "t.db"
    cfg_file = tmp_path / "taxonomy.json"
    cfg_file.write_text(json.dumps({"store_backend": "mongo", "sqlite_path": str(db)}))

    rc = cli.main([str(write_csv(ROWS)), "--config", str(cfg_file)])
    assert rc == cli.EXIT_INPUT
    assert "Unknown store backend: mongo" in capsys.readouterr().out
    assert not db.exists()
