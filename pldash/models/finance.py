import datetime as dt
from typing import Dict, List, Optional

from pldash.models.base import Record


class FinancialResource(Record):
    """Snapshot of one bank account or credit line.

    A zero limit marks a cash account; anything else is credit.
    """

    account: str
    available: float = 0.0
    owing: float = 0.0
    limit: float = 0.0

    @property
    def is_cash(self) -> bool:
        return self.limit == 0

    @property
    def credit_available(self) -> float:
        if self.is_cash:
            return 0.0
        return max(self.limit - self.owing, 0.0)


class FinancialPosition(Record):
    cash_accounts: List[FinancialResource] = []
    credit_lines: List[FinancialResource] = []
    current_balance: float = 0.0
    credit_available: float = 0.0
    credit_owing: float = 0.0
    total_available: float = 0.0


class Invoice(Record):
    network: str = ""
    period_start: Optional[dt.date] = None
    period_end: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    amount_due: float = 0.0
    invoice_number: str = ""


class PayrollExpense(Record):
    type: str = ""
    description: str = ""
    amount: float = 0.0
    due_date: Optional[dt.date] = None
    # Day-of-month for entries that recur monthly ("15", "30")
    due_day: Optional[int] = None


class Transaction(Record):
    """One line of a monthly P&L tab."""

    month: str
    description: str = ""
    amount: float = 0.0
    category: str = ""
    kind: str = ""
    card_account: str = "-"

    @property
    def is_income(self) -> bool:
        return self.kind.strip().lower() == "income"


class MonthlySummary(Record):
    month: str
    income: float = 0.0
    expenses: float = 0.0
    net_profit: float = 0.0
    net_percent: float = 0.0
    categories: Dict[str, float] = {}


class ProjectionEvent(Record):
    type: str
    description: str
    amount: float


class DailyProjection(Record):
    date: dt.date
    inflows: float = 0.0
    outflows: float = 0.0
    balance: float = 0.0
    details: List[ProjectionEvent] = []


class CashFlowProjection(Record):
    start_date: dt.date
    starting_balance: float = 0.0
    average_daily_spend: float = 0.0
    days: List[DailyProjection] = []
    total_inflows: float = 0.0
    total_outflows: float = 0.0
    ending_balance: float = 0.0
    lowest_balance: float = 0.0
    shortfall_days: int = 0
