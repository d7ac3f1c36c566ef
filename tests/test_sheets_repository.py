from pldash.core.cache import TTLCache
from pldash.repositories.sheets_repository import SheetsRepository


def test_prefetch_then_loads_hit_cache(fake_sheets):
    repo = SheetsRepository(fake_sheets, TTLCache())

    repo.prefetch()
    invoices = repo.load_invoices()
    resources = repo.load_financial_resources()

    assert len(fake_sheets.calls) == 1
    assert [i.invoice_number for i in invoices] == ["INV-1", "INV-2"]
    assert invoices[1].due_date is None
    assert [r.account for r in resources] == ["Cash in Bank", "Chase CC"]


def test_cache_is_keyed_by_spreadsheet(fake_sheets):
    cache = TTLCache()
    SheetsRepository(fake_sheets, cache).load_payroll()
    assert cache.get("sheet-123:'Payroll'!A:D")[1][1] == "Design"


def test_month_titles_newest_first(fake_sheets):
    fake_sheets.titles = ["Main Sheet", "January 2024", "March 2024", "February 2024"]
    repo = SheetsRepository(fake_sheets, TTLCache())
    assert repo.month_sheet_titles() == ["March 2024", "February 2024", "January 2024"]


def test_load_transactions_across_months(fake_sheets):
    repo = SheetsRepository(fake_sheets, TTLCache())

    transactions = repo.load_transactions()

    assert [t.description for t in transactions] == ["Network payouts", "Ad spend", "Software"]
    assert {t.month for t in transactions} == {"March 2024"}
    assert repo.load_transactions([]) == []
