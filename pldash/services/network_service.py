import logging
import re
from collections import OrderedDict
from typing import Dict, Iterable, List

from pldash.models.finance import Invoice
from pldash.models.network import NetworkExposure
from pldash.services.campaigns import normalize_network_name
from pldash.services.parsers import parse_net_terms

logger = logging.getLogger(__name__)


def payment_terms_label(terms: str) -> str:
    """Canonical label for a payment terms cell: Weekly, Bi-Monthly, Monthly or Net N."""
    lowered = (terms or "").strip().lower()
    if "weekly" in lowered:
        return "Weekly"
    if "bi monthly" in lowered or "bi-monthly" in lowered:
        return "Bi-Monthly"
    if "monthly" in lowered:
        return "Monthly"
    match = re.search(r"net\s*(\d+)", lowered)
    if match:
        return f"Net {int(match.group(1))}"
    return "Net 30"


def consolidate_exposure(rows: Iterable[NetworkExposure]) -> List[NetworkExposure]:
    """
    Merge exposure rows that belong to the same network.

    Exposure and available budget are summed. Whichever row contributes the
    larger exposure keeps its payment terms and risk level.
    """
    merged: "OrderedDict[str, NetworkExposure]" = OrderedDict()
    for row in rows:
        name = normalize_network_name(row.network)
        label = payment_terms_label(row.payment_terms)
        row = row.model_copy(update={"network": name, "payment_terms": label, "net_terms": parse_net_terms(label)})

        existing = merged.get(name)
        if existing is None:
            merged[name] = row
            continue

        update = {
            "exposure": existing.exposure + row.exposure,
            "available_budget": existing.available_budget + row.available_budget,
        }
        if row.exposure > existing.exposure:
            update.update(
                payment_terms=row.payment_terms,
                net_terms=row.net_terms,
                risk_level=row.risk_level,
            )
        logger.debug(f"Consolidated duplicate exposure row for {name}")
        merged[name] = existing.model_copy(update=update)

    return list(merged.values())


def group_by_payment_terms(rows: Iterable[NetworkExposure]) -> Dict[str, List[NetworkExposure]]:
    groups: Dict[str, List[NetworkExposure]] = {}
    for row in rows:
        groups.setdefault(row.payment_terms, []).append(row)
    return groups


def total_exposure(rows: Iterable[NetworkExposure]) -> float:
    return sum(row.exposure for row in rows)


def outstanding_invoice_total(invoices: Iterable[Invoice]) -> float:
    return sum(invoice.amount_due for invoice in invoices)
