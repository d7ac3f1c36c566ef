import datetime as dt
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from pldash.api.deps import get_settings, get_sheets_client
from pldash.core.config import Settings
from pldash.core.errors import UpstreamError
from pldash.main import app
from pldash.models.performance import PerformanceRow

PERFORMANCE_HEADER = [
    "Date", "Network", "Offer", "Media Buyer", "Ad Spend", "Ad Revenue", "Comment Revenue",
    "Total Revenue", "Ringba Cost", "Expected Payment", "Running Balance", "Ad Account",
]


class FakeSheetsClient:
    """In-memory stand-in for SheetsClient keyed by A1 range."""

    spreadsheet_id = "sheet-123"

    def __init__(self, ranges: Optional[Dict[str, list]] = None, titles: Optional[List[str]] = None,
                 failing: Optional[set] = None):
        self.ranges = ranges or {}
        self.titles = titles or []
        self.failing = failing or set()
        self.calls: List[List[str]] = []

    def batch_get(self, ranges):
        self.calls.append(list(ranges))
        broken = [r for r in ranges if r in self.failing]
        if broken:
            raise UpstreamError("Google Sheets", f"Unable to parse range: {broken[0]}", 400)
        return {r: self.ranges.get(r, []) for r in ranges}

    def sheet_titles(self):
        return list(self.titles)


def perf_row(date: Optional[dt.date] = dt.date(2024, 3, 1), network="A", spend=0.0, revenue=0.0, **kwargs):
    return PerformanceRow(
        date=date,
        network=network,
        ad_spend=spend,
        total_revenue=revenue,
        margin=revenue - spend,
        **kwargs,
    )


@pytest.fixture
def sheet_ranges():
    return {
        "'Main Sheet'!A:L": [
            PERFORMANCE_HEADER,
            ["3/1/2024", "Suited", "ACA", "Mike", "$100.00", "$150.00", "$0.00", "$150.00", "", "", "", "Thomas 05"],
            ["3/1/2024", "Banner", "Solar", "Zel", "$200.00", "$150.00", "$0.00", "$150.00", "", "", "", "CC 1"],
            ["3/2/2024", "Suited", "ACA", "Zel", "$50.00", "$80.00", "$0.00", "$80.00"],
        ],
        "'Financial Resources'!A:D": [
            ["Cash & Credit", "", "", ""],
            ["Resource", "Amount Available", "Amount Owing", "Limit"],
            ["Cash in Bank", "$1,000.00", "", "$0.00"],
            ["Chase CC", "$0.00", "$500.00", "$2,000.00"],
            ["TOTAL", "$1,000.00", "$500.00", "$2,000.00"],
        ],
        "'Invoices'!A:F": [
            ["Network", "Period Start", "Period End", "Due Date", "Amount Due", "Invoice Number"],
            ["Suited", "2/1/2024", "2/29/2024", "3/4/2024", "$200.00", "INV-1"],
            ["Banner", "2/1/2024", "2/29/2024", "not-a-date", "$300.00", "INV-2"],
        ],
        "'Payroll'!A:D": [
            ["Type", "Description", "Amount", "Due Date"],
            ["Contractor", "Design", "$100.00", "3/2/2024"],
        ],
        "'Network Terms'!A:J": [
            ["Network", "Offer", "Pay Period", "Net Terms", "Period Start", "Period End", "Invoice Due",
             "Running Total", "Daily Cap"],
            ["Suited", "ACA", "Weekly", "Net 15", "3/1/2024", "3/7/2024", "3/22/2024", "$700.00", "$500.00"],
            ["Banner", "Solar", "Monthly", "", "3/1/2024", "3/31/2024", "4/30/2024", "$0.00", "Uncapped"],
        ],
        "'Network Exposure'!A:H": [
            ["Network", "Offer", "Exposure", "Start Date", "End Date", "Available Budget", "Payment Terms",
             "Risk Level"],
            ["Banner", "Solar", "$1,000.00", "3/1/2024", "3/31/2024", "$200.00", "Net 30", "Low"],
            ["Banner Edge", "Auto", "$3,000.00", "3/1/2024", "3/31/2024", "$100.00", "Weekly", "High"],
            ["Suited", "ACA", "$500.00", "3/1/2024", "3/7/2024", "$0.00", "Net 15", "Low"],
        ],
        "'Media Buyer Spend'!A:B": [
            ["Media Buyer", "Daily Spend"],
            ["Mike", "$250.00"],
            ["Zel", "$250.00"],
        ],
        "'March 2024'!A:E": [
            ["Description", "Amount", "Category", "Income/Expense", "Card/Account"],
            ["Network payouts", "$5,000.00", "Revenue", "Income", "Chase"],
            ["Ad spend", "$3,000.00", "Advertising", "Expense", "Amex"],
            ["Software", "$500.00", "", "Expense"],
        ],
    }


@pytest.fixture
def fake_sheets(sheet_ranges):
    return FakeSheetsClient(sheet_ranges, titles=["Main Sheet", "March 2024", "Invoices"])


@pytest.fixture
def test_settings():
    return Settings(
        SLACK_WEBHOOK_URL="https://hooks.slack.com/services/T000/B000/default",
        DAILY_UPDATES_WEBHOOK_URL="https://hooks.slack.com/services/T000/B000/daily",
        MONDAY_API_TOKEN="token",
        MONDAY_BOARD_ID="42",
    )


@pytest.fixture
def client(fake_sheets, test_settings):
    app.state.cache.clear()
    app.dependency_overrides[get_sheets_client] = lambda: fake_sheets
    app.dependency_overrides[get_settings] = lambda: test_settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    app.state.cache.clear()
