"""
Tests for the command-line front-end, driven through main(argv).
"""

import json

import pytest

from cli import main, parse_beneficiaries
from config import load_ledger


@pytest.fixture
def path(tmp_path):
    p = str(tmp_path / "ledger.json")
    assert main([p, "new", "Alex", "Ben", "Cara", "Danielle"]) == 0
    return p


def run(capsys, *argv):
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestParseBeneficiaries:

    def test_all_even(self):
        assert parse_beneficiaries(["Bilbo", "Legolas"]) == ({}, ["Bilbo", "Legolas"])

    def test_some_fixed(self):
        assert parse_beneficiaries(["Ben", "14", "George", "Mike"]) == ({"Ben": 1400}, ["George", "Mike"])
        assert parse_beneficiaries(["Bilbo", "Legolas", "24"]) == ({"Legolas": 2400}, ["Bilbo"])

    @pytest.mark.parametrize("tokens", [["31", "Bilbo"], ["Bilbo", "24", "30", "Legolas"]])
    def test_number_without_name(self, tokens):
        with pytest.raises(ValueError, match="expected a name"):
            parse_beneficiaries(tokens)


def test_expense_balances_and_resolve(path, capsys):
    code, out, _ = run(capsys, path, "add-expense", "-p", "Cara", "-a", "1.20",
                       "-t", "Ben", "0.45", "Alex", "Cara", "Danielle", "-d", "dinner")
    assert code == 0
    tid = out.strip()

    code, out, _ = run(capsys, path, "balances")
    assert out.splitlines() == ["Alex: -0.25", "Ben: -0.45", "Cara: +0.95", "Danielle: -0.25"]

    code, out, _ = run(capsys, path, "list")
    assert out.startswith(tid)
    assert "Cara paid 1.20" in out

    code, out, _ = run(capsys, path, "resolve")
    assert out.splitlines() == ["Ben -> Cara: 0.45", "Alex -> Cara: 0.25", "Danielle -> Cara: 0.25"]
    assert len(load_ledger(path).transactions()) == 1


def test_direct_undo_verify(path, capsys):
    run(capsys, path, "add-expense", "-p", "Cara", "-a", "1.20", "-t", "Alex", "Ben", "Cara", "Danielle")
    code, out, _ = run(capsys, path, "add-direct", "-f", "Ben", "-t", "Cara", "-a", "0.30",
                       "-T", "2022-05-01 12:21")
    assert code == 0
    tid = out.strip()
    assert load_ledger(path).balances()["Ben"] == 0

    assert run(capsys, path, "undo", tid.upper())[0] == 0
    assert load_ledger(path).balances()["Ben"] == -30

    code, out, err = run(capsys, path, "undo", tid)
    assert code == 1
    assert "already undone" in err

    code, out, _ = run(capsys, path, "verify")
    assert code == 0
    assert out.startswith("OK")

    code, out, _ = run(capsys, path, "list")
    assert "(undone)" in out


def test_resolve_apply(path, capsys):
    run(capsys, path, "add-expense", "-p", "Alex", "-a", "10", "-t", "Alex", "Ben", "Cara")
    code, out, _ = run(capsys, path, "resolve", "--apply")
    assert code == 0
    ledger = load_ledger(path)
    assert all(v == 0 for v in ledger.balances().values())
    assert [t.description for t in ledger.transactions()[1:]] == ["Settlement", "Settlement"]

    code, out, _ = run(capsys, path, "resolve")
    assert out.strip() == "All settled"


def test_errors_exit_nonzero(path, capsys, tmp_path):
    code, _, err = run(capsys, path, "add-direct", "-f", "Ben", "-t", "Merry", "-a", "1")
    assert code == 1
    assert err.startswith("Error: no such person: Merry")

    code, _, err = run(capsys, path, "add-direct", "-f", "Ben", "-t", "Cara", "-a", "-1")
    assert code == 1
    assert "invalid amount" in err

    code, _, err = run(capsys, path, "add-expense", "-p", "Ben", "-a", "5", "-t", "Cara", "6")
    assert code == 1
    assert "shares sum to" in err

    code, _, err = run(capsys, path, "new", "Zed")
    assert code == 1
    assert "already exists" in err

    code, _, err = run(capsys, str(tmp_path / "nope.json"), "balances")
    assert code == 1
    assert "not found" in err


@pytest.mark.parametrize("name,message", [
    ("settings.json", "invalid settings file"),
    ("people.json", "invalid people file"),
])
def test_malformed_app_files_exit_nonzero(app_home, tmp_path, capsys, name, message):
    app_home.mkdir(parents=True, exist_ok=True)
    (app_home / name).write_text("{not json")
    p = str(tmp_path / "l.json")
    code, _, err = run(capsys, p, "new", "Bilbo", "Frodo")
    assert code == 1
    assert message in err
    assert "Traceback" not in err


def test_new_uses_default_people(app_home, tmp_path, capsys):
    app_home.mkdir(parents=True, exist_ok=True)
    (app_home / "people.json").write_text(json.dumps({"people": ["Bilbo", "Frodo"]}))
    p = str(tmp_path / "l.json")
    assert main([p, "new"]) == 0
    assert load_ledger(p).people == ["Bilbo", "Frodo"]


def test_add_person(path, capsys):
    assert main([path, "add-person", "Eve"]) == 0
    assert load_ledger(path).people[-1] == "Eve"
    code, _, err = run(capsys, path, "add-person", "Eve")
    assert code == 1
    assert "already registered" in err


def test_summary(path, capsys):
    run(capsys, path, "add-expense", "-p", "Cara", "-a", "1.20", "-t", "Alex", "Ben", "Cara", "Danielle")
    code, out, _ = run(capsys, path, "summary")
    lines = out.splitlines()
    assert lines[0].split() == ["person", "paid", "consumed", "sent", "received", "net"]
    assert lines[3].split() == ["Cara", "1.20", "0.30", "0.00", "0.00", "0.90"]


def test_csv_and_excel(path, capsys, tmp_path):
    run(capsys, path, "add-expense", "-p", "Cara", "-a", "1.20", "-t", "Alex", "Ben", "Cara", "Danielle")
    csv_path = str(tmp_path / "out.csv")
    xlsx_path = str(tmp_path / "out.xlsx")
    assert main([path, "export-csv", csv_path]) == 0
    assert main([path, "export-excel", xlsx_path, "--start", "2000-01-01"]) == 0

    other = str(tmp_path / "other.json")
    main([other, "new", "Alex", "Ben", "Cara", "Danielle"])
    code, out, _ = run(capsys, other, "import-csv", csv_path)
    assert code == 0
    assert "imported 1" in out
    assert load_ledger(other).balances() == load_ledger(path).balances()
