"""Data models for the Head Office Locator."""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any


FRANCHISE_VALUES = ("Yes", "Likely", "Unknown", "No")
TERRITORY_STATUSES = ("Inside", "Outside", "Unknown")


@dataclass(frozen=True)
class FranchiseSignal:
    """Heuristic franchise classification."""
    value: str
    reason: str

    def __post_init__(self):
        if self.value not in FRANCHISE_VALUES:
            raise ValueError(f"Invalid franchise value: {self.value}")

    def to_dict(self) -> Dict[str, str]:
        return {"value": self.value, "reason": self.reason}


@dataclass(frozen=True)
class TerritorySignal:
    """Heuristic sales-territory classification."""
    status: str
    reason: str

    def __post_init__(self):
        if self.status not in TERRITORY_STATUSES:
            raise ValueError(f"Invalid territory status: {self.status}")

    def to_dict(self) -> Dict[str, str]:
        return {"status": self.status, "reason": self.reason}


@dataclass(frozen=True)
class GeoPoint:
    """A geocoded location."""
    lat: float
    lon: float
    label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"lat": self.lat, "lon": self.lon, "label": self.label}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GeoPoint':
        """Create GeoPoint from a JSON mapping.

        Args:
            data: Mapping with ``lat``, ``lon`` and optional ``label``

        Returns:
            GeoPoint instance

        Raises:
            ValueError: If latitude or longitude cannot be parsed
        """
        try:
            lat = float(data["lat"])
            lon = float(data["lon"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid geocode payload: {e}")
        return cls(lat=lat, lon=lon, label=data.get("label") or "")


@dataclass(frozen=True)
class CompanyRecord:
    """Normalized company record shared by every registry provider.

    Records are created per search and never mutated; derived fields are
    attached with ``dataclasses.replace``.
    """
    name: str
    address: str = ""
    jurisdiction: Optional[str] = None
    incorporation_date: Optional[str] = None
    company_number: Optional[str] = None
    status: Optional[str] = None
    company_type: Optional[str] = None
    franchise: Optional[FranchiseSignal] = None
    territory: Optional[TerritorySignal] = None
    geo: Optional[GeoPoint] = None
    source: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON shape served by the proxy."""
        return {
            "name": self.name,
            "address": self.address,
            "jurisdiction": self.jurisdiction,
            "incorporationDate": self.incorporation_date,
            "companyNumber": self.company_number,
            "companyStatus": self.status,
            "companyType": self.company_type,
            "franchise": self.franchise.to_dict() if self.franchise else None,
            "salesTerritory": self.territory.to_dict() if self.territory else None,
            "geo": self.geo.to_dict() if self.geo else None,
            "source": self.source,
            "raw": self.raw,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CompanyRecord':
        """Create CompanyRecord from the proxy JSON shape.

        Args:
            data: Mapping produced by ``to_dict``

        Returns:
            CompanyRecord instance

        Raises:
            ValueError: If the mapping has no company name
        """
        if not isinstance(data, dict) or not data.get("name"):
            raise ValueError("Company payload is missing a name")

        franchise = data.get("franchise")
        territory = data.get("salesTerritory")
        geo = data.get("geo")

        return cls(
            name=data["name"],
            address=data.get("address") or "",
            jurisdiction=data.get("jurisdiction"),
            incorporation_date=data.get("incorporationDate"),
            company_number=data.get("companyNumber"),
            status=data.get("companyStatus"),
            company_type=data.get("companyType"),
            franchise=FranchiseSignal(**franchise) if franchise else None,
            territory=TerritorySignal(**territory) if territory else None,
            geo=GeoPoint.from_dict(geo) if geo else None,
            source=data.get("source") or "",
            raw=data.get("raw") or {},
        )


@dataclass
class CacheEntry:
    """A cached value with an absolute expiry timestamp (epoch seconds)."""
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "expires": self.expires_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CacheEntry':
        return cls(value=data["value"], expires_at=float(data["expires"]))
