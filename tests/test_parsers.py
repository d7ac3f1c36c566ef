import datetime as dt

import pytest

from pldash.core.errors import ParseError
from pldash.services.parsers import (
    currency_or_zero,
    date_or_none,
    is_month_label,
    month_label,
    parse_currency,
    parse_date,
    parse_month_label,
    parse_net_terms,
    parse_percent,
    sort_month_labels,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("$1,234.56", 1234.56),
        ("$12,345.67", 12345.67),
        ("  $ 99.10 ", 99.10),
        ("(1,200.00)", -1200.0),
        ("-45.5", -45.5),
        (250, 250.0),
        (12.75, 12.75),
    ],
)
def test_parse_currency_values(raw, expected):
    assert parse_currency(raw) == pytest.approx(expected, abs=1e-9)


@pytest.mark.parametrize("raw", ["", "-", None, "N/A", "   "])
def test_parse_currency_blank_is_zero(raw):
    assert parse_currency(raw) == 0.0


@pytest.mark.parametrize("raw", ["abc", "$12x", "nan%", float("inf"), True])
def test_parse_currency_rejects_garbage(raw):
    with pytest.raises(ParseError):
        parse_currency(raw)


def test_currency_precision_kept_to_cents():
    assert round(parse_currency("$9,876,543.21") * 100) == 987654321


def test_currency_or_zero_recovers():
    assert currency_or_zero("not money") == 0.0


def test_parse_percent():
    assert parse_percent("12.5%") == 12.5
    assert parse_percent("") == 0.0
    with pytest.raises(ParseError):
        parse_percent("lots%")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("3/1/2024", dt.date(2024, 3, 1)),
        ("03/01/24", dt.date(2024, 3, 1)),
        ("2024-03-01", dt.date(2024, 3, 1)),
        ("2024-03-01T00:00:00Z", dt.date(2024, 3, 1)),
        ("Mar 1, 2024", dt.date(2024, 3, 1)),
        (dt.datetime(2024, 3, 1, 9, 30), dt.date(2024, 3, 1)),
    ],
)
def test_parse_date_formats(raw, expected):
    assert parse_date(raw) == expected


@pytest.mark.parametrize("raw", ["not-a-date", "", "13/45/2024", None, 45000])
def test_parse_date_never_guesses(raw):
    with pytest.raises(ParseError):
        parse_date(raw)
    assert date_or_none(raw) is None


@pytest.mark.parametrize(
    "raw, expected",
    [("Net 15", 15), ("net30", 30), ("Weekly", 7), ("Bi-Monthly", 15), ("bi monthly", 15),
     ("Monthly", 30), ("45", 45), (10, 10), ("", 30), ("whenever", 30)],
)
def test_parse_net_terms(raw, expected):
    assert parse_net_terms(raw) == expected


def test_month_labels():
    assert parse_month_label("July 2025") == (2025, 7)
    assert parse_month_label("Main Sheet") is None
    assert is_month_label("January 2024")
    assert not is_month_label("Invoices")
    assert month_label(2024, 3) == "March 2024"
    assert sort_month_labels(["January 2025", "December 2024", "March 2025"]) == [
        "March 2025", "January 2025", "December 2024",
    ]
    assert sort_month_labels(["March 2025", "January 2025"], newest_first=False) == [
        "January 2025", "March 2025",
    ]
