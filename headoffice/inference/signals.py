"""
Heuristic signals derived from registry fields, plus query sanitizing.

Everything here is pure: no I/O and no shared state.
"""

from dataclasses import replace
from typing import Optional

from headoffice.core.models import CompanyRecord, FranchiseSignal, TerritorySignal


MAX_QUERY_LENGTH = 140


def safe_query(value: Optional[str]) -> str:
    """
    Sanitize a company name typed or spoken by the user.

    Args:
        value: Raw input text

    Returns:
        Trimmed text of at most MAX_QUERY_LENGTH characters; empty for
        missing or whitespace-only input
    """
    if not value:
        return ""
    return value.strip()[:MAX_QUERY_LENGTH].rstrip()


def infer_franchise(entity_type: Optional[str], branch_status: Optional[str] = None) -> FranchiseSignal:
    """
    Classify whether an entity is likely a franchise.

    Rules are checked in order and the first match wins: an entity type
    mentioning "franchise" gives Yes, a branch status mentioning "branch"
    gives Likely, anything else is Unknown.

    Args:
        entity_type: Company/entity type as reported by the registry
        branch_status: Branch status as reported by the registry

    Returns:
        FranchiseSignal with value and reason
    """
    entity_type = (entity_type or "").lower()
    branch_status = (branch_status or "").lower()

    if "franchise" in entity_type:
        return FranchiseSignal("Yes", "Company type mentions franchise.")
    if "branch" in branch_status:
        return FranchiseSignal("Likely", "Listed as a branch entity.")
    return FranchiseSignal("Unknown", "Franchise data not provided.")


def infer_territory(address: Optional[str], keyword: Optional[str] = "") -> TerritorySignal:
    """
    Classify whether an address falls inside the configured sales territory.

    Args:
        address: Free-text address
        keyword: Territory keyword matched case-insensitively as a substring

    Returns:
        TerritorySignal with status Inside, Outside or Unknown
    """
    if not keyword:
        return TerritorySignal("Unknown", "No territory configured.")
    if not address:
        return TerritorySignal("Unknown", "Address not available.")

    if keyword.lower() in address.lower():
        return TerritorySignal("Inside", f"Address contains {keyword}.")
    return TerritorySignal("Outside", f"Address missing {keyword}.")


def with_territory(record: CompanyRecord, keyword: Optional[str]) -> CompanyRecord:
    """Return a copy of ``record`` carrying its territory classification."""
    return replace(record, territory=infer_territory(record.address, keyword))
