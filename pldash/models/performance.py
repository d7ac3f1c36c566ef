import datetime as dt
from typing import Optional

from pldash.models.base import Record


class PerformanceRow(Record):
    """One day of one campaign line from the 'Main Sheet' tab."""

    date: Optional[dt.date] = None
    network: str = ""
    offer: str = ""
    media_buyer: str = ""
    ad_spend: float = 0.0
    ad_revenue: float = 0.0
    comment_revenue: float = 0.0
    total_revenue: float = 0.0
    ringba_cost: float = 0.0
    margin: float = 0.0
    expected_payment: str = ""
    running_balance: float = 0.0
    ad_account: str = ""


class AggregateRow(Record):
    key: str
    spend: float = 0.0
    revenue: float = 0.0
    margin: float = 0.0
    roi: float = 0.0
    count: int = 0


class PerformanceTotals(Record):
    spend: float = 0.0
    revenue: float = 0.0
    margin: float = 0.0
    roi: float = 0.0
    profit_margin: float = 0.0


class MediaBuyerSpend(Record):
    media_buyer: str
    daily_spend: float = 0.0


class CampaignInfo(Record):
    name: str
    network: str = "Unknown"
    offer: str = "Unknown"
    ad_account: str = "Unknown"
    media_buyer: str = "Unknown"
