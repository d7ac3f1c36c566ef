import datetime as dt
import logging
from typing import Any, Callable, Dict, List, Optional

from pldash.core.config import Settings
from pldash.models.finance import CashFlowProjection, FinancialPosition, MonthlySummary
from pldash.repositories.sheets_repository import SheetsRepository
from pldash.services import aggregation, cash_flow, network_service

logger = logging.getLogger(__name__)


class DashboardService:
    """
    Builds the dashboard sections from the spreadsheet.

    Each public method covers one section and reads only the sheets it needs.
    `overview` runs every section and keeps going when one of them fails.
    """

    def __init__(self, repository: SheetsRepository, config: Settings):
        self.repository = repository
        self.config = config

    def performance_report(
        self,
        group_by: str = "network",
        sort_by: Optional[str] = None,
        descending: bool = True,
        start: Optional[dt.date] = None,
        end: Optional[dt.date] = None,
    ) -> Dict[str, Any]:
        key = aggregation.KEY_FUNCTIONS.get(group_by)
        if key is None:
            raise ValueError(
                f"Cannot group by '{group_by}'; expected one of {', '.join(aggregation.KEY_FUNCTIONS)}"
            )

        records = self.repository.load_performance()
        current = aggregation.filter_by_date_range(records, start, end)
        rows = aggregation.aggregate(current, key)
        if sort_by:
            rows = aggregation.sort_aggregates(rows, sort_by, descending)
        totals = aggregation.summarize(current)

        report: Dict[str, Any] = {
            "groupBy": group_by,
            "rows": rows,
            "totals": totals,
            "changes": None,
        }

        # Compare against the window of the same length just before [start, end]
        if start and end and end >= start:
            length = end - start + dt.timedelta(days=1)
            previous = aggregation.summarize(
                aggregation.filter_by_date_range(records, start - length, start - dt.timedelta(days=1))
            )
            report["changes"] = {
                "spend": aggregation.percent_change(totals.spend, previous.spend),
                "revenue": aggregation.percent_change(totals.revenue, previous.revenue),
                "margin": aggregation.percent_change(totals.margin, previous.margin),
            }
        return report

    def financial_position(self) -> FinancialPosition:
        return cash_flow.summarize_resources(self.repository.load_financial_resources())

    def average_daily_spend(self, exclude_weekends: bool = False, as_of: Optional[dt.date] = None) -> float:
        return aggregation.average_daily_spend(
            self.repository.load_performance(),
            lookback_days=self.config.SPEND_LOOKBACK_DAYS,
            exclude_weekends=exclude_weekends,
            as_of=as_of,
        )

    def cash_flow_projection(
        self,
        days: Optional[int] = None,
        exclude_weekends: bool = False,
        start: Optional[dt.date] = None,
    ) -> CashFlowProjection:
        start = start or dt.date.today()
        position = self.financial_position()
        daily_spend = self.average_daily_spend(exclude_weekends=exclude_weekends, as_of=start)
        return cash_flow.project_cash_flow(
            starting_balance=position.current_balance,
            invoices=self.repository.load_invoices(),
            expenses=self.repository.load_payroll(),
            credit_lines=position.credit_lines,
            average_daily_spend=daily_spend,
            days=days or self.config.PROJECTION_DAYS,
            start=start,
            min_payment_rate=self.config.CREDIT_CARD_MIN_PAYMENT_RATE,
            min_payment_floor=self.config.CREDIT_CARD_MIN_PAYMENT_FLOOR,
        )

    def media_buyer_spend(self) -> Dict[str, Any]:
        buyers = self.repository.load_media_buyer_spend()
        position = self.financial_position()
        total_daily = sum(b.daily_spend for b in buyers)
        return {
            "buyers": buyers,
            "totalDailySpend": total_daily,
            "totalAvailable": position.total_available,
            "daysOfCoverage": cash_flow.days_of_coverage(position.total_available, total_daily),
        }

    def invoices(self) -> Dict[str, Any]:
        invoices = self.repository.load_invoices()
        return {
            "invoices": invoices,
            "count": len(invoices),
            "outstandingTotal": network_service.outstanding_invoice_total(invoices),
        }

    def network_terms(self) -> Dict[str, Any]:
        terms = self.repository.load_network_terms()
        return {
            "terms": terms,
            "capped": sum(1 for t in terms if t.is_capped),
            "uncapped": sum(1 for t in terms if not t.is_capped),
        }

    def network_exposure(self) -> Dict[str, Any]:
        networks = network_service.consolidate_exposure(self.repository.load_network_exposure())
        return {
            "networks": networks,
            "byPaymentTerms": network_service.group_by_payment_terms(networks),
            "totalExposure": network_service.total_exposure(networks),
        }

    def pl_summary(self, months: Optional[List[str]] = None) -> List[MonthlySummary]:
        return aggregation.monthly_pl_summary(self.repository.load_transactions(months))

    def overview(self, days: Optional[int] = None, exclude_weekends: bool = False) -> Dict[str, Any]:
        """Every dashboard section. A section that fails is null and listed under `errors`."""
        try:
            self.repository.prefetch()
        except Exception as e:
            # Sections below retry their own sheets and report their own failures
            logger.warning(f"Batch prefetch failed, loading sections one by one: {e}")

        sections: Dict[str, Callable[[], Any]] = {
            "performance": lambda: self.performance_report(),
            "financialPosition": self.financial_position,
            "cashFlow": lambda: self.cash_flow_projection(days=days, exclude_weekends=exclude_weekends),
            "invoices": self.invoices,
            "networkTerms": self.network_terms,
            "networkExposure": self.network_exposure,
            "profitAndLoss": self.pl_summary,
        }

        overview: Dict[str, Any] = {}
        errors: Dict[str, str] = {}
        for name, build in sections.items():
            try:
                overview[name] = build()
            except Exception as e:
                logger.error(f"Error building dashboard section '{name}': {e}", exc_info=True)
                overview[name] = None
                errors[name] = str(e)

        overview["errors"] = errors
        return overview
