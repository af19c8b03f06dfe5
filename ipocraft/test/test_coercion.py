from decimal import Decimal

import pytest

from ipocraft.utils.coercion import coerce_flag, parse_leading_float, to_nullable_number, to_nullable_text
from ipocraft.utils.slug import generate_slug, unique_slug


@pytest.mark.parametrize("value", [True, "true", "1", 1, 1.0, Decimal("1")])
def test_coerce_flag_truthy(value):
    assert coerce_flag(value) is True


@pytest.mark.parametrize("value", [False, "false", "0", 0, 2, None, "", "yes", "out", [1], "TRUE", "True", " true ", " 1 "])
def test_coerce_flag_falsy(value):
    assert coerce_flag(value) is False


@pytest.mark.parametrize(
    "value, expected",
    [
        ("12.5", 12.5),
        (" 40 ", 40.0),
        (Decimal("99.50"), 99.5),
        (7, 7.0),
        ("", None),
        ("   ", None),
        (None, None),
        ("abc", None),
        (float("nan"), None),
        (float("inf"), None),
        (True, None),
    ],
)
def test_to_nullable_number(value, expected):
    assert to_nullable_number(value) == expected


def test_to_nullable_text():
    assert to_nullable_text("  NSE ") == "NSE"
    assert to_nullable_text("   ") is None
    assert to_nullable_text(None) is None
    assert to_nullable_text(12) == "12"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("12.5x", 12.5),
        ("3x", 3.0),
        ("45.67", 45.67),
        (8, 8.0),
        ("x12", 0.0),
        ("", 0.0),
        (None, 0.0),
    ],
)
def test_parse_leading_float(value, expected):
    assert parse_leading_float(value) == expected


def test_generate_slug():
    assert generate_slug("Tata Technologies Ltd.", "-ipo") == "tata-technologies-ltd-ipo"
    assert generate_slug("  Zerodha  ") == "zerodha"
    assert generate_slug("A & B   Capital") == "a--b-capital"


def test_unique_slug_appends_counter():
    taken = {"acme-ipo", "acme-ipo-2"}
    assert unique_slug("acme-ipo", taken.__contains__) == "acme-ipo-3"
    assert unique_slug("fresh-ipo", taken.__contains__) == "fresh-ipo"
