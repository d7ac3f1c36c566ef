import calendar
import datetime as dt
import logging
import math
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from pldash.models.finance import (
    CashFlowProjection,
    DailyProjection,
    FinancialPosition,
    FinancialResource,
    Invoice,
    PayrollExpense,
    ProjectionEvent,
)
from pldash.services.parsers import date_or_none

logger = logging.getLogger(__name__)

MIN_PAYMENT_RATE = 0.03
MIN_PAYMENT_FLOOR = 25.0


def summarize_resources(resources: Iterable[FinancialResource]) -> FinancialPosition:
    """
    Split the Financial Resources sheet into cash accounts and credit lines.

    current_balance is the cash on hand; credit_available is the unused
    headroom on every credit line.
    """
    cash_accounts: List[FinancialResource] = []
    credit_lines: List[FinancialResource] = []
    for resource in resources:
        if resource.is_cash:
            cash_accounts.append(resource)
        else:
            credit_lines.append(resource)

    current_balance = sum(r.available for r in cash_accounts)
    credit_available = sum(r.credit_available for r in credit_lines)
    credit_owing = sum(r.owing for r in credit_lines)

    return FinancialPosition(
        cash_accounts=cash_accounts,
        credit_lines=credit_lines,
        current_balance=current_balance,
        credit_available=credit_available,
        credit_owing=credit_owing,
        total_available=current_balance + credit_available,
    )


def credit_card_minimum(owing: float, rate: float = MIN_PAYMENT_RATE, floor: float = MIN_PAYMENT_FLOOR) -> float:
    if owing <= 0:
        return 0.0
    return max(owing * rate, floor)


def days_of_coverage(total_available: float, daily_spend: float) -> int:
    """Whole days the available funds last at the given spend rate."""
    if daily_spend <= 0 or total_available <= 0:
        return 0
    return int(math.floor(total_available / daily_spend))


def _as_date(value: Any) -> Optional[dt.date]:
    if isinstance(value, dt.date):
        return value
    return date_or_none(value)


def _monthly_occurrences(day: int, start: dt.date, end: dt.date) -> List[dt.date]:
    """Dates in [start, end] falling on `day` of the month, clamped to month end."""
    occurrences = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        last_day = calendar.monthrange(year, month)[1]
        candidate = dt.date(year, month, min(day, last_day))
        if start <= candidate <= end:
            occurrences.append(candidate)
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return occurrences


def _expense_dates(expense: PayrollExpense, start: dt.date, end: dt.date) -> List[dt.date]:
    due = _as_date(expense.due_date)
    if due is not None:
        return [due]
    if expense.due_day:
        return _monthly_occurrences(expense.due_day, start, end)
    return []


def project_cash_flow(
    starting_balance: float,
    invoices: Iterable[Invoice],
    expenses: Iterable[PayrollExpense],
    credit_lines: Iterable[FinancialResource],
    average_daily_spend: float,
    days: int = 14,
    start: Optional[dt.date] = None,
    min_payment_rate: float = MIN_PAYMENT_RATE,
    min_payment_floor: float = MIN_PAYMENT_FLOOR,
) -> CashFlowProjection:
    """
    Project the cash balance forward one day at a time.

    Each day collects the invoices due that day, pays the payroll due that
    day and the average daily ad spend. Credit-card minimum payments are
    charged once, on the first day. Entries without a usable due date are
    left out.
    """
    start = start or dt.date.today()
    end = start + dt.timedelta(days=max(days, 1) - 1)
    inflow_events: Dict[dt.date, List[ProjectionEvent]] = defaultdict(list)
    outflow_events: Dict[dt.date, List[ProjectionEvent]] = defaultdict(list)

    for invoice in invoices:
        due = _as_date(invoice.due_date)
        if due is None:
            logger.warning(f"Skipping invoice {invoice.invoice_number or invoice.network!r}: no valid due date")
            continue
        if start <= due <= end:
            inflow_events[due].append(
                ProjectionEvent(type="invoice", description=invoice.network, amount=invoice.amount_due)
            )

    for expense in expenses:
        dates = _expense_dates(expense, start, end)
        if not dates:
            logger.warning(f"Skipping expense {expense.description!r}: no valid due date")
            continue
        for due in dates:
            if start <= due <= end:
                outflow_events[due].append(
                    ProjectionEvent(type=expense.type or "payroll", description=expense.description, amount=expense.amount)
                )

    for line in credit_lines:
        minimum = credit_card_minimum(line.owing, min_payment_rate, min_payment_floor)
        if minimum > 0:
            outflow_events[start].append(
                ProjectionEvent(type="credit_card", description=f"{line.account} minimum payment", amount=minimum)
            )

    projections: List[DailyProjection] = []
    balance = starting_balance
    for offset in range(max(days, 0)):
        date = start + dt.timedelta(days=offset)
        inflows = sum(e.amount for e in inflow_events[date])
        scheduled = sum(e.amount for e in outflow_events[date])
        outflows = scheduled + average_daily_spend
        balance = balance + inflows - outflows

        details = inflow_events[date] + outflow_events[date]
        if average_daily_spend:
            details.append(ProjectionEvent(type="ad_spend", description="Average daily ad spend", amount=average_daily_spend))

        projections.append(
            DailyProjection(date=date, inflows=inflows, outflows=outflows, balance=balance, details=details)
        )

    balances = [p.balance for p in projections]
    return CashFlowProjection(
        start_date=start,
        starting_balance=starting_balance,
        average_daily_spend=average_daily_spend,
        days=projections,
        total_inflows=sum(p.inflows for p in projections),
        total_outflows=sum(p.outflows for p in projections),
        ending_balance=balances[-1] if balances else starting_balance,
        lowest_balance=min(balances) if balances else starting_balance,
        shortfall_days=sum(1 for b in balances if b < 0),
    )
