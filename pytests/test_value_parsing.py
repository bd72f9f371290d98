from __future__ import annotations

from datetime import date

import pytest

from utils.time_utils import assemble_date, epoch_date, utcnow
from utils.value_parsing import clean_text, parse_flag, parse_int


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        ("", None),
        ("   ", None),
        ("  AI  ", "AI"),
        (True, "true"),
        (False, "false"),
        (7, "7"),
        (12.0, "12"),
        (1.5, "1.5"),
        (["a"], None),
        ({"a": 1}, None),
    ],
)
def test_clean_text(value, expected):
    assert clean_text(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        ("", None),
        ("42", 42),
        (" -3 ", -3),
        ("1,234", 1234),
        ("12.0", 12),
        ("12.5", None),
        ("abc", None),
        (True, None),
        (7.0, 7),
        ([1], None),
        ("\u00b2", None),
        ("-\u00b2", None),
        ("9223372036854775807", 2**63 - 1),
        ("-9223372036854775808", -(2**63)),
        ("9223372036854775808", None),
        (10**20, None),
        (1e20, None),
        ("1e20", None),
    ],
)
def test_parse_int(value, expected):
    assert parse_int(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("true", True),
        (" TRUE ", True),
        ("1", True),
        (1, True),
        (True, True),
        ("false", False),
        ("0", False),
        ("maybe", False),
        ("", False),
        (None, False),
        (False, False),
    ],
)
def test_parse_flag(value, expected):
    assert parse_flag(value) is expected


@pytest.mark.parametrize(
    "parts, expected",
    [
        ((2024, 3, 5), date(2024, 3, 5)),
        ((None, None, None), date(1900, 1, 1)),
        ((2024, None, None), date(2024, 1, 1)),
        ((None, 6, 15), date(1900, 6, 15)),
        ((2023, 2, 30), date(1900, 1, 1)),
        ((2023, 13, 1), date(1900, 1, 1)),
        ((0, 1, 1), date(1900, 1, 1)),
    ],
)
def test_assemble_date(parts, expected):
    assert assemble_date(*parts) == expected


def test_epoch_date():
    assert epoch_date() == date(1900, 1, 1)


def test_utcnow_is_timezone_aware():
    assert utcnow().utcoffset().total_seconds() == 0
