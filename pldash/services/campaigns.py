import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from pldash.models.performance import CampaignInfo

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class CampaignCatalog:
    networks: Tuple[str, ...]
    offers: Tuple[str, ...]
    ad_accounts: Tuple[str, ...]
    media_buyers: Tuple[str, ...]


DEFAULT_CATALOG = CampaignCatalog(
    networks=(
        "ACA", "Banner", "Banner Edge", "Clickbank", "Comments", "Cost Guide", "Digistore", "IDSG",
        "Lead Economy", "Leadnomics", "Maxweb", "Monarch", "Pointer", "Pure Ads",
        "Smart Financial", "Suited", "TLG", "Transparent Ads", "Wisdom",
    ),
    offers=(
        "ACA", "Auto", "Bathroom", "Comments", "Debt", "EasySolar", "EDU",
        "Health", "InsureMyCar", "Mini Mobile", "Mitolyn", "Roofing", "Solar",
        "VSL", "WifiProfits", "Your Health Pro Finder", "YHPF",
    ),
    ad_accounts=(
        "Adrianna 01", "Adrianna 02", "Adrianna 03", "Carol 01", "Carol 02", "Caros 04", "Caros 05",
        "CC 1", "CC 2", "CC 3", "CC 4", "CC 5", "CC 6", "CC 7", "CC 8", "Comments", "DQ Rev", "DS 844",
        "Frederick 01", "Frederick 02", "Frederick 03", "Jack 01", "Jenna 02", "John 02", "John 03",
        "John 05", "Josceel 02", "Josceel 03", "Josceel 05", "Kiley 02", "No Tick 02", "Nuham 01",
        "Nuham 02", "Nuham 03", "Nuham 04", "Oliver 01", "Oliver 02", "Oliver 03", "Personal Ad Acc",
        "Phoenix 01", "Phoenix 02", "Phoenix 06", "Sophia 01", "Sophia 02", "Taboola",
        "Thomas 01", "Thomas 02", "Thomas 03", "Thomas 04", "Thomas 05",
    ),
    media_buyers=(
        "Aakash", "Asheesh", "Bikki", "Daniel", "Edwin", "Emil", "Gagan",
        "Isha", "Ishaan", "Mike", "Mike C", "Nick N", "Pavan", "Zel",
    ),
)

_SEPARATOR = re.compile(r" - | \| ")


def normalize_network_name(name: str) -> str:
    """Collapse network spellings that refer to the same partner."""
    cleaned = (name or "").strip()
    lowered = cleaned.lower()
    if "banner" in lowered:
        return "Banner"
    if "leadnom" in lowered:
        return "Leadnomics"
    return cleaned



def _fuzzy_match(part: str, candidates: Iterable[str]) -> Optional[str]:
    """Exact match first, then the longest candidate contained in the part (or containing it)."""
    if not part:
        return None
    if part in candidates:
        return part
    hits = [c for c in candidates if c in part or (len(part) >= 3 and part in c)]
    return max(hits, key=len) if hits else None


def _split(name: str) -> List[str]:
    return [part.strip() for part in _SEPARATOR.split(name) if part.strip()]


def _claim(parts: List[str], used: Set[int], candidates: Iterable[str], reverse: bool = False) -> Optional[str]:
    """First unused part matching one of the candidates; marks that part as used."""
    indexes = range(len(parts) - 1, -1, -1) if reverse else range(len(parts))
    for index in indexes:
        if index in used:
            continue
        match = _fuzzy_match(parts[index], candidates)
        if match:
            used.add(index)
            return match
    return None


def parse_campaign_name(name: Optional[str], catalog: CampaignCatalog = DEFAULT_CATALOG) -> CampaignInfo:
    """
    Pull network, offer, ad account and media buyer out of a campaign name
    like "Suited - ACA - Thomas 05 - Mike".

    Each part of the name is claimed by at most one field, matched against the
    known catalog. Fields still unknown take the unclaimed part at their
    position.
    """
    if not name or not name.strip():
        return CampaignInfo(name="-")

    normalized = name.strip()
    if normalized.startswith("Aggro ACA"):
        return CampaignInfo(name=normalized, network="Suited", offer="ACA", media_buyer="Mike")

    parts = _split(normalized)
    used: Set[int] = set()

    network = None
    for index, part in enumerate(parts):
        lowered = part.lower()
        if "banner" in lowered or "leadnom" in lowered:
            network = normalize_network_name(part)
            used.add(index)
            break
    if network is None:
        match = _claim(parts, used, catalog.networks)
        network = normalize_network_name(match) if match else None

    # buyer names usually close the campaign name
    media_buyer = _claim(parts, used, catalog.media_buyers, reverse=True)
    offer = _claim(parts, used, catalog.offers)
    ad_account = _claim(parts, used, catalog.ad_accounts)

    # "Josceel 03- Ishaan": account and buyer stuck together in one part
    if ad_account is None or media_buyer is None:
        for index, part in enumerate(parts):
            accounts = [a for a in catalog.ad_accounts if a in part]
            buyers = [b for b in catalog.media_buyers if b in part]
            if accounts and buyers:
                ad_account, media_buyer = max(accounts, key=len), max(buyers, key=len)
                used.add(index)
                break

    if re.search(r"Thomas 5\b", normalized) and ad_account in (None, "Thomas 01"):
        ad_account = "Thomas 05"
    if "Suited Health YHPF" in normalized:
        network, offer = "Suited", "Your Health Pro Finder"
    if offer == "Debt" and ad_account is None:
        ad_account = "DQ Rev"
    if network == "Comments":
        offer = ad_account = "Comments"

    fields = [network, offer, ad_account, media_buyer]
    for index, value in enumerate(fields):
        if value is None and index < len(parts) and index not in used:
            fields[index] = parts[index]
    network, offer, ad_account, media_buyer = (value or UNKNOWN for value in fields)

    return CampaignInfo(
        name=normalized,
        network=network,
        offer=offer,
        ad_account=ad_account,
        media_buyer=media_buyer,
    )
