"""
Tests for CSV export and import.
"""

import pytest

from csv_handler import COLUMNS, export_transactions_to_csv, import_transactions_from_csv


def test_export_then_import(quartet, tmp_path):
    tid = quartet.add_direct_payment("Ben", "Cara", 45, "settle, part 1")
    quartet.undo(tid)
    path = str(tmp_path / "tx.csv")

    export_transactions_to_csv(quartet.transactions(), path)
    imported = import_transactions_from_csv(path)

    assert imported == quartet.transactions()


def test_header_and_rows(quartet, tmp_path):
    path = tmp_path / "tx.csv"
    export_transactions_to_csv(quartet.transactions(), str(path))
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == ",".join(COLUMNS)
    assert "Ben:45;Alex:25;Cara:25;Danielle:25" in lines[1]
    assert lines[1].endswith(",dinner,1")


def test_bad_row_names_line(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text(
        ",".join(COLUMNS) + "\n"
        "abc,1,2022-05-01T00:00:00+00:00,refund,A,B,5,,,1\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="line 2"):
        import_transactions_from_csv(str(path))
