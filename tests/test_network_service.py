from pldash.models.finance import Invoice
from pldash.models.network import NetworkExposure
from pldash.services.network_service import (
    consolidate_exposure,
    group_by_payment_terms,
    outstanding_invoice_total,
    payment_terms_label,
    total_exposure,
)


def test_banner_family_is_consolidated():
    rows = [
        NetworkExposure(network="Banner", exposure=1000, available_budget=200, payment_terms="Net 30", risk_level="Low"),
        NetworkExposure(network="Banner Edge", exposure=3000, available_budget=100, payment_terms="weekly",
                        risk_level="High"),
        NetworkExposure(network="Suited", exposure=500, payment_terms="Net 15"),
    ]
    banner, suited = consolidate_exposure(rows)

    assert banner.network == "Banner"
    assert banner.exposure == 4000
    assert banner.available_budget == 300
    assert banner.payment_terms == "Weekly"
    assert banner.net_terms == 7
    assert banner.risk_level == "High"
    assert suited.net_terms == 15


def test_smaller_duplicate_keeps_existing_terms():
    rows = [
        NetworkExposure(network="Suited", exposure=900, payment_terms="Net 15", risk_level="Low"),
        NetworkExposure(network="Suited", exposure=100, payment_terms="Monthly", risk_level="High"),
    ]
    [suited] = consolidate_exposure(rows)
    assert suited.exposure == 1000
    assert suited.payment_terms == "Net 15"
    assert suited.risk_level == "Low"


def test_group_by_payment_terms():
    networks = consolidate_exposure(
        [
            NetworkExposure(network="A", exposure=1, payment_terms="Weekly"),
            NetworkExposure(network="B", exposure=2, payment_terms="Net 30"),
            NetworkExposure(network="C", exposure=3, payment_terms="weekly payouts"),
        ]
    )
    groups = group_by_payment_terms(networks)
    assert {k: [n.network for n in v] for k, v in groups.items()} == {"Weekly": ["A", "C"], "Net 30": ["B"]}
    assert total_exposure(networks) == 6


def test_payment_terms_label():
    assert payment_terms_label("net15") == "Net 15"
    assert payment_terms_label("Bi Monthly") == "Bi-Monthly"
    assert payment_terms_label("") == "Net 30"


def test_outstanding_invoice_total():
    invoices = [Invoice(network="A", amount_due=200), Invoice(network="B", amount_due=300.5)]
    assert outstanding_invoice_total(invoices) == 500.5
    assert outstanding_invoice_total([]) == 0
