"""
Tests for money and date helpers.
"""

import os
from datetime import date, timezone

import pytest

from utils import app_dir, format_amount, parse_amount, parse_date, parse_datetime, to_major


@pytest.mark.parametrize("text,expected", [
    ("12.34", 1234),
    ("12", 1200),
    ("0.5", 50),
    ("-3.07", -307),
    (" 7.10 ", 710),
])
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


def test_parse_amount_rejects_extra_precision():
    with pytest.raises(ValueError):
        parse_amount("1.005")


@pytest.mark.parametrize("text", ["abc", "", "nan", "inf"])
def test_parse_amount_rejects_non_numbers(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_parse_amount_keeps_long_inputs_exact():
    assert parse_amount("1234567890123456789012345678901.23") == 123456789012345678901234567890123
    with pytest.raises(ValueError):
        parse_amount("1" * 40 + ".005")


def test_parse_amount_other_digits():
    assert parse_amount("150", digits=0) == 150
    assert parse_amount("1.5", digits=3) == 1500


@pytest.mark.parametrize("amount,expected", [
    (1234, "12.34"),
    (5, "0.05"),
    (-50, "-0.50"),
    (0, "0.00"),
])
def test_format_amount(amount, expected):
    assert format_amount(amount) == expected


def test_format_amount_no_minor_units():
    assert format_amount(-42, digits=0) == "-42"


def test_to_major():
    assert to_major(1999) == 19.99


def test_parse_date():
    assert parse_date(" 2022-05-01 ") == date(2022, 5, 1)


def test_parse_datetime_is_utc():
    dt = parse_datetime("2022-05-01 12:21")
    assert dt.tzinfo == timezone.utc
    assert parse_datetime("2022-05-01").tzinfo == timezone.utc
    with pytest.raises(ValueError):
        parse_datetime("May 1st")


def test_app_dir_uses_env(app_home):
    assert app_dir() == str(app_home)
    assert os.path.isdir(app_home)
