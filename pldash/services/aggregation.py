import datetime as dt
import logging
from typing import Callable, Iterable, List, Optional, Sequence

import pandas as pd

from pldash.models.finance import MonthlySummary, Transaction
from pldash.models.performance import AggregateRow, PerformanceRow, PerformanceTotals
from pldash.services.parsers import sort_month_labels

logger = logging.getLogger(__name__)

KeyFunc = Callable[[PerformanceRow], Optional[str]]

UNKNOWN_KEY = "Unknown"
SORT_FIELDS = ("spend", "revenue", "margin", "roi")


def by_network(row: PerformanceRow) -> Optional[str]:
    return row.network or None


def by_offer(row: PerformanceRow) -> Optional[str]:
    return row.offer or None


def by_media_buyer(row: PerformanceRow) -> Optional[str]:
    return row.media_buyer or None


def by_date(row: PerformanceRow) -> Optional[str]:
    return row.date.isoformat() if row.date else None


def by_month(row: PerformanceRow) -> Optional[str]:
    return row.date.strftime("%Y-%m") if row.date else None


def by_network_and_buyer(row: PerformanceRow) -> Optional[str]:
    if not row.network and not row.media_buyer:
        return None
    return f"{row.network or UNKNOWN_KEY} - {row.media_buyer or UNKNOWN_KEY}"


KEY_FUNCTIONS = {
    "network": by_network,
    "offer": by_offer,
    "media_buyer": by_media_buyer,
    "date": by_date,
    "month": by_month,
    "network_and_buyer": by_network_and_buyer,
}


def roi(revenue: float, spend: float) -> float:
    """(revenue / spend - 1) * 100, and 0 whenever there is no spend."""
    if not spend or spend <= 0:
        return 0.0
    return (revenue / spend - 1) * 100


def _performance_frame(records: Iterable[PerformanceRow]) -> pd.DataFrame:
    rows = [
        {
            "date": r.date,
            "spend": r.ad_spend,
            "revenue": r.total_revenue,
            "margin": r.margin,
            "record": r,
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=["date", "spend", "revenue", "margin", "record"])


def aggregate(records: Sequence[PerformanceRow], key: KeyFunc) -> List[AggregateRow]:
    """
    Group performance rows by `key` and sum spend, revenue and margin.

    Groups come back in the order their key first appears. Rows whose key is
    None land in the "Unknown" group.
    """
    df = _performance_frame(records)
    if df.empty:
        return []

    df["key"] = [key(r) or UNKNOWN_KEY for r in df["record"]]
    grouped = df.groupby("key", sort=False).agg(
        spend=("spend", "sum"),
        revenue=("revenue", "sum"),
        margin=("margin", "sum"),
        count=("record", "size"),
    )

    return [
        AggregateRow(
            key=str(group_key),
            spend=float(row["spend"]),
            revenue=float(row["revenue"]),
            margin=float(row["margin"]),
            roi=roi(float(row["revenue"]), float(row["spend"])),
            count=int(row["count"]),
        )
        for group_key, row in grouped.iterrows()
    ]


def sort_aggregates(rows: Sequence[AggregateRow], by: str = "spend", descending: bool = True) -> List[AggregateRow]:
    if by not in SORT_FIELDS:
        raise ValueError(f"Cannot sort by '{by}'; expected one of {', '.join(SORT_FIELDS)}")
    # sorted() is stable and reverse=True keeps equal items in their original order
    return sorted(rows, key=lambda row: getattr(row, by), reverse=descending)


def summarize(records: Sequence[PerformanceRow]) -> PerformanceTotals:
    df = _performance_frame(records)
    if df.empty:
        return PerformanceTotals()

    spend = float(df["spend"].sum())
    revenue = float(df["revenue"].sum())
    margin = float(df["margin"].sum())
    return PerformanceTotals(
        spend=spend,
        revenue=revenue,
        margin=margin,
        roi=roi(revenue, spend),
        profit_margin=(margin / revenue * 100) if revenue else 0.0,
    )


def percent_change(current: float, previous: float) -> Optional[float]:
    if not previous:
        return None
    return (current - previous) / abs(previous) * 100


def filter_by_date_range(
    records: Iterable[PerformanceRow],
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
) -> List[PerformanceRow]:
    """Keep rows dated within [start, end]. Undated rows only survive an open range."""
    if start is None and end is None:
        return list(records)
    kept = []
    for record in records:
        if record.date is None:
            continue
        if start is not None and record.date < start:
            continue
        if end is not None and record.date > end:
            continue
        kept.append(record)
    return kept


def average_daily_spend(
    records: Iterable[PerformanceRow],
    lookback_days: int = 7,
    exclude_weekends: bool = False,
    as_of: Optional[dt.date] = None,
) -> float:
    """
    Average ad spend per day over the most recent `lookback_days` dates that
    have data. Spend is summed per date before averaging.
    """
    df = _performance_frame(r for r in records if r.date is not None)
    if df.empty or lookback_days <= 0:
        return 0.0

    if as_of is not None:
        df = df[df["date"] <= as_of]
    if exclude_weekends:
        df = df[[d.weekday() < 5 for d in df["date"]]]
    if df.empty:
        return 0.0

    daily = df.groupby("date")["spend"].sum().sort_index()
    recent = daily.tail(lookback_days)
    logger.debug(f"Average daily spend over {len(recent)} days ending {recent.index[-1]}")
    return float(recent.mean())


def monthly_pl_summary(transactions: Iterable[Transaction]) -> List[MonthlySummary]:
    """
    Roll the monthly P&L tabs up into income, expenses and net profit.

    Rows tagged "Income" count as income; everything else is an expense,
    grouped by category.
    """
    df = pd.DataFrame(
        [
            {
                "month": t.month,
                "amount": t.amount,
                "category": t.category.strip() or "Uncategorized",
                "income": t.is_income,
            }
            for t in transactions
        ],
        columns=["month", "amount", "category", "income"],
    )
    if df.empty:
        return []

    summaries = {}
    for month, frame in df.groupby("month", sort=False):
        income = float(frame.loc[frame["income"], "amount"].sum())
        expense_rows = frame[~frame["income"]]
        expenses = float(expense_rows["amount"].sum())
        categories = expense_rows.groupby("category", sort=False)["amount"].sum()
        net_profit = income - expenses
        summaries[month] = MonthlySummary(
            month=month,
            income=income,
            expenses=expenses,
            net_profit=net_profit,
            net_percent=(net_profit / income * 100) if income else 0.0,
            categories={str(k): float(v) for k, v in categories.items()},
        )

    return [summaries[month] for month in sort_month_labels(summaries)]
