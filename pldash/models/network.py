import datetime as dt
from typing import Optional

from pldash.models.base import Record


class NetworkTerm(Record):
    network: str
    offer: str = ""
    pay_period: str = ""
    net_terms: int = 30
    period_start: Optional[dt.date] = None
    period_end: Optional[dt.date] = None
    invoice_due: Optional[dt.date] = None
    running_total: float = 0.0
    # None when the sheet says "Uncapped", "N/A", "TBC" or leaves it blank
    daily_cap: Optional[float] = None
    daily_cap_label: str = ""

    @property
    def is_capped(self) -> bool:
        return self.daily_cap is not None


class NetworkExposure(Record):
    network: str
    offer: str = ""
    exposure: float = 0.0
    period_start: Optional[dt.date] = None
    period_end: Optional[dt.date] = None
    available_budget: float = 0.0
    payment_terms: str = "Net 30"
    net_terms: int = 30
    risk_level: str = ""
