import logging
from typing import Dict, Iterable, List, Optional, Sequence

from pldash.core.cache import TTLCache
from pldash.core.sheets_client import SheetsClient, Values
from pldash.models.finance import FinancialResource, Invoice, PayrollExpense, Transaction
from pldash.models.network import NetworkExposure, NetworkTerm
from pldash.models.performance import MediaBuyerSpend, PerformanceRow
from pldash.services.parsers import is_month_label, sort_month_labels
from pldash.services.row_mapping import (
    FINANCIAL_RESOURCES_SCHEMA,
    INVOICES_SCHEMA,
    MEDIA_BUYER_SPEND_SCHEMA,
    NETWORK_EXPOSURE_SCHEMA,
    NETWORK_TERMS_SCHEMA,
    PAYROLL_SCHEMA,
    PERFORMANCE_SCHEMA,
    SheetSchema,
    map_rows,
    transaction_schema,
)

logger = logging.getLogger(__name__)

DASHBOARD_SCHEMAS = (
    PERFORMANCE_SCHEMA,
    FINANCIAL_RESOURCES_SCHEMA,
    INVOICES_SCHEMA,
    PAYROLL_SCHEMA,
    NETWORK_TERMS_SCHEMA,
    NETWORK_EXPOSURE_SCHEMA,
)


class SheetsRepository:
    """
    Typed access to the dashboard spreadsheet.

    Raw ranges are cached by spreadsheet id and range so repeated requests
    inside the TTL window do not hit the Sheets API again.
    """

    def __init__(self, client: SheetsClient, cache: TTLCache, ttl: Optional[float] = None):
        self.client = client
        self.cache = cache
        self.ttl = ttl

    def _cache_key(self, range_name: str) -> str:
        return f"{self.client.spreadsheet_id}:{range_name}"

    def fetch_ranges(self, ranges: Sequence[str]) -> Dict[str, Values]:
        result: Dict[str, Values] = {}
        missing: List[str] = []
        for range_name in ranges:
            cached = self.cache.get(self._cache_key(range_name))
            if cached is None:
                missing.append(range_name)
            else:
                result[range_name] = cached

        if missing:
            fetched = self.client.batch_get(missing)
            for range_name in missing:
                values = fetched.get(range_name) or []
                self.cache.put(self._cache_key(range_name), values, self.ttl)
                result[range_name] = values
        return result

    def prefetch(self, schemas: Iterable[SheetSchema] = DASHBOARD_SCHEMAS) -> None:
        """Warm the cache for several sheets with a single batch call."""
        self.fetch_ranges([schema.range for schema in schemas])

    def _load(self, schema: SheetSchema) -> list:
        values = self.fetch_ranges([schema.range])[schema.range]
        records, _ = map_rows(values, schema)
        return records

    def load_performance(self) -> List[PerformanceRow]:
        return self._load(PERFORMANCE_SCHEMA)

    def load_financial_resources(self) -> List[FinancialResource]:
        return self._load(FINANCIAL_RESOURCES_SCHEMA)

    def load_invoices(self) -> List[Invoice]:
        return self._load(INVOICES_SCHEMA)

    def load_payroll(self) -> List[PayrollExpense]:
        return self._load(PAYROLL_SCHEMA)

    def load_network_terms(self) -> List[NetworkTerm]:
        return self._load(NETWORK_TERMS_SCHEMA)

    def load_network_exposure(self) -> List[NetworkExposure]:
        return self._load(NETWORK_EXPOSURE_SCHEMA)

    def load_media_buyer_spend(self) -> List[MediaBuyerSpend]:
        return self._load(MEDIA_BUYER_SPEND_SCHEMA)

    def month_sheet_titles(self) -> List[str]:
        """Monthly P&L tabs ('July 2025', ...), newest first."""
        key = self._cache_key("__sheet_titles__")
        titles = self.cache.get(key)
        if titles is None:
            titles = self.client.sheet_titles()
            self.cache.put(key, titles, self.ttl)
        return sort_month_labels([t for t in titles if is_month_label(t)])

    def load_transactions(self, months: Optional[Sequence[str]] = None) -> List[Transaction]:
        months = list(months) if months is not None else self.month_sheet_titles()
        if not months:
            return []
        schemas = [transaction_schema(month) for month in months]
        fetched = self.fetch_ranges([schema.range for schema in schemas])

        transactions: List[Transaction] = []
        for schema in schemas:
            records, _ = map_rows(fetched[schema.range], schema)
            transactions.extend(records)
        logger.info(f"Loaded {len(transactions)} transactions across {len(months)} month(s)")
        return transactions
