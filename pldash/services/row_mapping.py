"""
Map raw Google Sheets value ranges onto typed records.

Columns are located by header name, not by position. Each sheet has a
``SheetSchema`` listing the headers it expects; a sheet whose header row is
missing a required column raises ``SchemaMismatch`` instead of silently
shifting values into the wrong fields.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pldash.core.errors import ParseError, SchemaMismatch
from pldash.models.base import Record
from pldash.models.finance import FinancialResource, Invoice, PayrollExpense, Transaction
from pldash.models.network import NetworkExposure, NetworkTerm
from pldash.models.performance import MediaBuyerSpend, PerformanceRow
from pldash.services.parsers import (
    date_or_none,
    is_blank,
    parse_currency,
    parse_date,
    parse_net_terms,
)

logger = logging.getLogger(__name__)

CAP_SENTINELS = {"uncapped", "n/a", "na", "tbc", "tbd", "none", "no cap", "-", ""}


@dataclass(frozen=True)
class ColumnSpec:
    header: str
    field: str
    kind: str = "text"
    required: bool = True
    aliases: Tuple[str, ...] = ()

    def names(self) -> Tuple[str, ...]:
        return (_normalize(self.header),) + tuple(_normalize(a) for a in self.aliases)


@dataclass(frozen=True)
class SheetSchema:
    name: str
    columns: Tuple[ColumnSpec, ...]
    builder: Callable[[Dict[str, Any]], Record]
    last_column: str = "Z"
    header_scan_rows: int = 1
    skip_markers: Tuple[str, ...] = ()
    key_field: Optional[str] = None

    @property
    def range(self) -> str:
        return f"'{self.name}'!A:{self.last_column}"


@dataclass
class MappingReport:
    sheet: str
    rows_read: int = 0
    rows_mapped: int = 0
    rows_skipped: int = 0
    parse_errors: List[str] = field(default_factory=list)


def _normalize(header: Any) -> str:
    return " ".join(str(header or "").split()).lower()


def _zero_value(kind: str) -> Any:
    if kind == "currency":
        return 0.0
    if kind == "text":
        return ""
    return None


def _parse_cell(value: Any, kind: str) -> Any:
    if kind == "text":
        return "" if value is None else str(value).strip()
    if kind == "currency":
        return parse_currency(value)
    if kind == "currency_or_blank":
        return None if is_blank(value) else parse_currency(value)
    if kind == "date":
        return None if is_blank(value) else parse_date(value)
    if kind == "cap":
        text = "" if value is None else str(value).strip()
        if text.lower() in CAP_SENTINELS:
            return None
        return parse_currency(text)
    raise ValueError(f"Unknown column kind: {kind}")


def locate_header(values: Sequence[Sequence[Any]], schema: SheetSchema) -> Tuple[int, Dict[str, Optional[int]]]:
    """
    Find the header row and resolve each column's index.

    Scans the first ``header_scan_rows`` rows for one that carries every
    required header. Raises SchemaMismatch when none does.
    """
    best_missing: Optional[List[str]] = None
    for row_index, row in enumerate(values[: max(schema.header_scan_rows, 1)]):
        positions = {_normalize(cell): i for i, cell in reversed(list(enumerate(row or [])))}
        indexes: Dict[str, Optional[int]] = {}
        missing = []
        for column in schema.columns:
            found = next((positions[name] for name in column.names() if name in positions), None)
            if found is None and column.required:
                missing.append(column.header)
            indexes[column.field] = found
        if not missing:
            return row_index, indexes
        if best_missing is None or len(missing) < len(best_missing):
            best_missing = missing
    raise SchemaMismatch(schema.name, best_missing or [c.header for c in schema.columns if c.required])


def map_rows(values: Optional[Sequence[Sequence[Any]]], schema: SheetSchema) -> Tuple[List[Record], MappingReport]:
    """
    Turn a sheet's 2D value array into records.

    An empty or missing range maps to no records. Short rows are padded with
    each column's zero value; malformed cells fall back to that zero value and
    are listed in the report.
    """
    report = MappingReport(sheet=schema.name)
    if not values:
        return [], report

    header_index, indexes = locate_header(values, schema)
    records: List[Record] = []

    for row_number, row in enumerate(values[header_index + 1:], start=header_index + 2):
        report.rows_read += 1
        row = list(row or [])
        if all(is_blank(cell) for cell in row):
            report.rows_skipped += 1
            continue
        first = str(row[0]) if row else ""
        if any(marker in first for marker in schema.skip_markers):
            report.rows_skipped += 1
            continue

        fields: Dict[str, Any] = {}
        for column in schema.columns:
            index = indexes[column.field]
            cell = row[index] if index is not None and index < len(row) else None
            if cell is None:
                fields[column.field] = _zero_value(column.kind)
                continue
            try:
                fields[column.field] = _parse_cell(cell, column.kind)
            except ParseError as e:
                report.parse_errors.append(f"row {row_number} {column.header}: {e}")
                fields[column.field] = _zero_value(column.kind)

        if schema.key_field and is_blank(fields.get(schema.key_field)):
            report.rows_skipped += 1
            continue

        records.append(schema.builder(fields))
        report.rows_mapped += 1

    if report.parse_errors:
        logger.warning(
            f"{schema.name}: {len(report.parse_errors)} cell(s) defaulted while mapping "
            f"{report.rows_mapped} row(s)"
        )
    logger.info(f"Mapped {report.rows_mapped}/{report.rows_read} rows from '{schema.name}'")
    return records, report


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------

def _build_performance(fields: Dict[str, Any]) -> PerformanceRow:
    total = fields.pop("total_revenue")
    if total is None:
        total = fields["ad_revenue"] + fields["comment_revenue"]
    return PerformanceRow(
        total_revenue=total,
        margin=total - fields["ad_spend"],
        **fields,
    )


def _build_payroll(fields: Dict[str, Any]) -> PayrollExpense:
    due = fields.pop("due")
    due_day = None
    due_date = None
    if due.isdigit() and 1 <= int(due) <= 31:
        due_day = int(due)
    else:
        due_date = date_or_none(due)
    return PayrollExpense(due_date=due_date, due_day=due_day, **fields)


def _build_network_term(fields: Dict[str, Any]) -> NetworkTerm:
    net_terms_text = fields.pop("net_terms")
    cap = fields.pop("daily_cap")
    label = fields.pop("daily_cap_label")
    if net_terms_text:
        net_terms = parse_net_terms(net_terms_text)
    else:
        net_terms = parse_net_terms(fields["pay_period"])
    return NetworkTerm(net_terms=net_terms, daily_cap=cap, daily_cap_label=label, **fields)


def _build_exposure(fields: Dict[str, Any]) -> NetworkExposure:
    terms = fields.pop("payment_terms") or "Net 30"
    return NetworkExposure(payment_terms=terms, net_terms=parse_net_terms(terms), **fields)


PERFORMANCE_SCHEMA = SheetSchema(
    name="Main Sheet",
    last_column="L",
    key_field="network",
    builder=_build_performance,
    columns=(
        ColumnSpec("Date", "date", "date"),
        ColumnSpec("Network", "network"),
        ColumnSpec("Offer", "offer", required=False),
        ColumnSpec("Media Buyer", "media_buyer", required=False, aliases=("Buyer",)),
        ColumnSpec("Ad Spend", "ad_spend", "currency", aliases=("Spend",)),
        ColumnSpec("Ad Revenue", "ad_revenue", "currency", required=False),
        ColumnSpec("Comment Revenue", "comment_revenue", "currency", required=False),
        ColumnSpec("Total Revenue", "total_revenue", "currency_or_blank", required=False, aliases=("Revenue",)),
        ColumnSpec("Ringba Cost", "ringba_cost", "currency", required=False),
        ColumnSpec("Expected Payment", "expected_payment", required=False),
        ColumnSpec("Running Balance", "running_balance", "currency", required=False),
        ColumnSpec("Ad Account", "ad_account", required=False),
    ),
)

FINANCIAL_RESOURCES_SCHEMA = SheetSchema(
    name="Financial Resources",
    last_column="D",
    header_scan_rows=10,
    skip_markers=("Table", "TOTAL"),
    key_field="account",
    builder=lambda fields: FinancialResource(**fields),
    columns=(
        ColumnSpec("Resource", "account", aliases=("Account", "Account Name")),
        ColumnSpec("Amount Available", "available", "currency", aliases=("Available",)),
        ColumnSpec("Amount Owing", "owing", "currency", required=False, aliases=("Owing", "Amount Owed")),
        ColumnSpec("Limit", "limit", "currency", required=False, aliases=("Credit Limit",)),
    ),
)

INVOICES_SCHEMA = SheetSchema(
    name="Invoices",
    last_column="F",
    key_field="network",
    builder=lambda fields: Invoice(**fields),
    columns=(
        ColumnSpec("Network", "network"),
        ColumnSpec("Period Start", "period_start", "date", required=False),
        ColumnSpec("Period End", "period_end", "date", required=False),
        ColumnSpec("Due Date", "due_date", "date"),
        ColumnSpec("Amount Due", "amount_due", "currency", aliases=("Amount",)),
        ColumnSpec("Invoice Number", "invoice_number", required=False, aliases=("Invoice #", "Invoice")),
    ),
)

PAYROLL_SCHEMA = SheetSchema(
    name="Payroll",
    last_column="D",
    key_field="description",
    builder=_build_payroll,
    columns=(
        ColumnSpec("Type", "type", required=False),
        ColumnSpec("Description", "description", aliases=("Name",)),
        ColumnSpec("Amount", "amount", "currency"),
        ColumnSpec("Due Date", "due", aliases=("Due",)),
    ),
)

NETWORK_TERMS_SCHEMA = SheetSchema(
    name="Network Terms",
    last_column="J",
    key_field="network",
    builder=_build_network_term,
    columns=(
        ColumnSpec("Network", "network", aliases=("Network Name",)),
        ColumnSpec("Offer", "offer", required=False),
        ColumnSpec("Pay Period", "pay_period", required=False, aliases=("Payment Terms",)),
        ColumnSpec("Net Terms", "net_terms", required=False),
        ColumnSpec("Period Start", "period_start", "date", required=False),
        ColumnSpec("Period End", "period_end", "date", required=False),
        ColumnSpec("Invoice Due", "invoice_due", "date", required=False),
        ColumnSpec("Running Total", "running_total", "currency", required=False),
        ColumnSpec("Daily Cap", "daily_cap", "cap", required=False),
        ColumnSpec("Daily Cap", "daily_cap_label", required=False),
    ),
)

NETWORK_EXPOSURE_SCHEMA = SheetSchema(
    name="Network Exposure",
    last_column="H",
    key_field="network",
    builder=_build_exposure,
    columns=(
        ColumnSpec("Network", "network"),
        ColumnSpec("Offer", "offer", required=False, aliases=("Invoice Number",)),
        ColumnSpec("Exposure", "exposure", "currency", aliases=("Exposure Amount", "C2F Amount Due", "Amount Due")),
        ColumnSpec("Start Date", "period_start", "date", required=False, aliases=("Period Start",)),
        ColumnSpec("End Date", "period_end", "date", required=False, aliases=("Period End",)),
        ColumnSpec("Available Budget", "available_budget", "currency", required=False,
                   aliases=("Network Amount Due",)),
        ColumnSpec("Payment Terms", "payment_terms", required=False, aliases=("Pay Period",)),
        ColumnSpec("Risk Level", "risk_level", required=False),
    ),
)

MEDIA_BUYER_SPEND_SCHEMA = SheetSchema(
    name="Media Buyer Spend",
    last_column="B",
    key_field="media_buyer",
    builder=lambda fields: MediaBuyerSpend(**fields),
    columns=(
        ColumnSpec("Media Buyer", "media_buyer", aliases=("Buyer", "Name")),
        ColumnSpec("Daily Spend", "daily_spend", "currency", aliases=("Spend", "Amount")),
    ),
)


def transaction_schema(month: str) -> SheetSchema:
    """Schema for one monthly P&L tab, e.g. 'July 2025'."""
    return SheetSchema(
        name=month,
        last_column="E",
        key_field="description",
        builder=lambda fields: Transaction(month=month, card_account=fields.pop("card_account") or "-", **fields),
        columns=(
            ColumnSpec("Description", "description"),
            ColumnSpec("Amount", "amount", "currency"),
            ColumnSpec("Category", "category", required=False),
            ColumnSpec("Income/Expense", "kind", aliases=("Type", "Income / Expense")),
            ColumnSpec("Card/Account", "card_account", required=False, aliases=("Card / Account", "Account")),
        ),
    )
