# Ensure `src/` is on sys.path so tests can import `merchant_taxonomy` without requiring editable install
import os
import sys

import pytest

HERE = os.path.dirname(__file__)
SRC = os.path.abspath(os.path.join(HERE, "..", "src"))
if os.path.isdir(SRC) and SRC not in sys.path:
    sys.path.insert(0, SRC)


HEADER = ["Service Name", "Subcategory (v3)", "Category (v3)"]


@pytest.fixture
def write_csv(tmp_path):
    """write_csv(rows) -> path of a taxonomy CSV with the export's headers."""
    import csv

    def _write(rows, name="taxonomy.csv", header=HEADER):
        path = tmp_path / name
        with path.open("w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(header)
            for service, sub, cat in rows:
                w.writerow([service, sub, cat])
        return path

    return _write
