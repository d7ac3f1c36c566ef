import datetime as dt
import math

import pytest

from conftest import perf_row
from pldash.models.finance import Transaction
from pldash.services.aggregation import (
    aggregate,
    average_daily_spend,
    by_date,
    by_media_buyer,
    by_month,
    by_network,
    by_network_and_buyer,
    filter_by_date_range,
    monthly_pl_summary,
    percent_change,
    roi,
    sort_aggregates,
    summarize,
)


def test_single_row_by_network():
    rows = aggregate([perf_row(dt.date(2024, 3, 1), "A", spend=100, revenue=150)], by_network)

    assert len(rows) == 1
    row = rows[0]
    assert (row.key, row.spend, row.revenue, row.margin, row.roi) == ("A", 100.0, 150.0, 50.0, 50.0)


@pytest.mark.parametrize("key", [by_network, by_media_buyer, by_date, by_month, by_network_and_buyer])
def test_margin_is_conserved_for_every_key(key):
    records = [
        perf_row(dt.date(2024, 3, 1), "A", 100, 150, media_buyer="Mike"),
        perf_row(dt.date(2024, 3, 2), "B", 80, 20, media_buyer="Zel"),
        perf_row(dt.date(2024, 4, 2), "A", 10.5, 30.25),
        perf_row(None, "", 5, 0),
    ]
    groups = aggregate(records, key)

    assert sum(g.margin for g in groups) == pytest.approx(sum(r.margin for r in records))
    assert sum(g.count for g in groups) == len(records)


def test_missing_keys_group_under_unknown():
    groups = aggregate([perf_row(None, "A", 1, 2), perf_row(None, "B", 3, 4)], by_date)
    assert [g.key for g in groups] == ["Unknown"]
    assert groups[0].count == 2


def test_groups_keep_first_appearance_order():
    records = [perf_row(network=n, spend=1) for n in ["C", "A", "C", "B"]]
    assert [g.key for g in aggregate(records, by_network)] == ["C", "A", "B"]


@pytest.mark.parametrize("spend, revenue", [(0, 0), (0, 500), (0.0, -10)])
def test_zero_spend_roi_is_zero(spend, revenue):
    assert roi(revenue, spend) == 0.0
    [group] = aggregate([perf_row(spend=spend, revenue=revenue)], by_network)
    assert group.roi == 0.0
    assert math.isfinite(group.roi)


def test_sort_is_stable_for_ties():
    records = [
        perf_row(network="first", spend=10),
        perf_row(network="big", spend=50),
        perf_row(network="second", spend=10),
    ]
    groups = aggregate(records, by_network)

    desc = sort_aggregates(groups, "spend", descending=True)
    asc = sort_aggregates(groups, "spend", descending=False)
    assert [g.key for g in desc] == ["big", "first", "second"]
    assert [g.key for g in asc] == ["first", "second", "big"]


def test_sort_rejects_unknown_field():
    with pytest.raises(ValueError):
        sort_aggregates([], "clicks")


def test_summarize_totals():
    totals = summarize([perf_row(spend=100, revenue=150), perf_row(spend=100, revenue=50)])
    assert totals.spend == 200.0
    assert totals.revenue == 200.0
    assert totals.margin == 0.0
    assert totals.roi == 0.0
    assert totals.profit_margin == 0.0
    assert summarize([]).spend == 0.0


def test_percent_change():
    assert percent_change(150, 100) == 50.0
    assert percent_change(50, 100) == -50.0
    assert percent_change(10, 0) is None


def test_filter_by_date_range_is_inclusive():
    records = [perf_row(dt.date(2024, 3, d)) for d in (1, 2, 3)] + [perf_row(None)]
    kept = filter_by_date_range(records, dt.date(2024, 3, 2), dt.date(2024, 3, 3))
    assert [r.date.day for r in kept] == [2, 3]
    assert len(filter_by_date_range(records)) == 4


def test_average_daily_spend_sums_per_day_then_averages():
    records = [
        perf_row(dt.date(2024, 3, 1), spend=100),
        perf_row(dt.date(2024, 3, 1), spend=100),
        perf_row(dt.date(2024, 3, 2), spend=400),
    ]
    assert average_daily_spend(records) == 300.0


def test_average_daily_spend_uses_most_recent_days():
    records = [perf_row(dt.date(2024, 3, d), spend=d * 10) for d in range(1, 11)]
    # last 7 dates with data: 4..10
    assert average_daily_spend(records, lookback_days=7) == pytest.approx(70.0)
    assert average_daily_spend(records, lookback_days=7, as_of=dt.date(2024, 3, 7)) == pytest.approx(40.0)


def test_average_daily_spend_weekend_convention_is_explicit():
    # 2024-03-08 is a Friday, 03-09/10 the weekend
    records = [
        perf_row(dt.date(2024, 3, 8), spend=100),
        perf_row(dt.date(2024, 3, 9), spend=400),
        perf_row(dt.date(2024, 3, 10), spend=400),
    ]
    assert average_daily_spend(records) == 300.0
    assert average_daily_spend(records, exclude_weekends=True) == 100.0


def test_average_daily_spend_without_data():
    assert average_daily_spend([]) == 0.0
    assert average_daily_spend([perf_row(None, spend=50)]) == 0.0


def test_monthly_pl_summary():
    transactions = [
        Transaction(month="February 2024", description="Payout", amount=1000, category="Revenue", kind="Income"),
        Transaction(month="March 2024", description="Payout", amount=5000, category="Revenue", kind="income"),
        Transaction(month="March 2024", description="Ads", amount=3000, category="Advertising", kind="Expense"),
        Transaction(month="March 2024", description="Tools", amount=500, category="", kind="Expense"),
    ]
    march, february = monthly_pl_summary(transactions)

    assert march.month == "March 2024"
    assert march.income == 5000.0
    assert march.expenses == 3500.0
    assert march.net_profit == 1500.0
    assert march.net_percent == pytest.approx(30.0)
    assert march.categories == {"Advertising": 3000.0, "Uncategorized": 500.0}
    assert february.expenses == 0.0
    assert february.net_profit == 1000.0
