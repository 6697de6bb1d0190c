"""
Helpers for Australian Business Register (ABN Lookup) JSON replies.
"""

from typing import Any, Dict, Optional

from headoffice.core.models import CompanyRecord
from headoffice.inference.signals import infer_franchise


COUNTRY_SUFFIX = "Australia"

# Order in which structured address parts are joined
ADDRESS_FIELDS = ("StreetNumber", "StreetName", "StreetType", "Suburb", "StateCode", "Postcode")


def extract_abr_match(match_data: Any) -> Optional[Dict[str, Any]]:
    """
    Pick the best match from a MatchingNames reply.

    Prefers the first element of a non-empty ``Names`` list, falls back to
    a reply that is itself a single match.

    Args:
        match_data: Decoded MatchingNames JSON

    Returns:
        The match mapping, or None when the reply has no match

    Raises:
        ValueError: If the first listed match is not a mapping
    """
    if not isinstance(match_data, dict):
        return None

    names = match_data.get("Names") or match_data.get("names") or []
    if isinstance(names, list) and names:
        if not isinstance(names[0], dict):
            raise ValueError(f"Unexpected match entry: {names[0]!r}")
        return names[0]
    if match_data.get("Name"):
        return match_data
    return None


def build_abr_address(details: Any) -> str:
    """
    Assemble a one-line address from an AbnDetails reply.

    Structured sub-fields are joined by single spaces in a fixed order and
    followed by the country; missing parts are skipped. A reply with only
    the flat AddressState/AddressPostcode fields uses those.

    Args:
        details: Decoded AbnDetails JSON

    Returns:
        Address string, empty when no part is known
    """
    if not isinstance(details, dict):
        return ""

    addr = details.get("MainBusinessPhysicalAddress")
    if isinstance(addr, dict) and "_" in addr:
        addr = addr["_"]
    if isinstance(addr, str):
        return addr.strip()

    if not isinstance(addr, dict):
        addr = {
            "StateCode": details.get("AddressState"),
            "Postcode": details.get("AddressPostcode"),
        }

    parts = [str(addr[name]).strip() for name in ADDRESS_FIELDS if addr.get(name)]
    parts = [part for part in parts if part]
    if not parts:
        return ""
    return " ".join(parts + [COUNTRY_SUFFIX])


def normalize_abr_details(query: str, match: Dict[str, Any], details: Dict[str, Any]) -> CompanyRecord:
    """
    Convert a match and its AbnDetails reply into a CompanyRecord.

    Args:
        query: The sanitized search text
        match: Match chosen by extract_abr_match
        details: Decoded AbnDetails JSON

    Returns:
        CompanyRecord with franchise derived from the entity type
    """
    gst = details.get("Gst")
    gst_from = gst.get("EffectiveFrom") if isinstance(gst, dict) else None
    entity_type = details.get("EntityTypeName") or "Australian Entity"

    return CompanyRecord(
        name=details.get("EntityName") or match.get("Name") or query,
        address=build_abr_address(details),
        jurisdiction="au",
        incorporation_date=gst_from or details.get("AbnStatusEffectiveFrom"),
        company_number=str(match["Abn"]),
        status=details.get("AbnStatus") or "Unknown",
        company_type=entity_type,
        franchise=infer_franchise(entity_type),
        source="ABR",
        raw={"match": match, "details": details},
    )
