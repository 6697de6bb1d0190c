"""
Registry clients that look a company up and normalize the reply.

One client is chosen per configuration (no failover across providers):

* OpenCorporatesClient - direct registry search
* AbrClient - ABN Lookup, match by name then fetch details
* ProxyRegistryClient - the same-origin proxy server
* MockRegistryClient - fixed sample record
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from headoffice.cache.store import ExpiringCache, cache_key
from headoffice.core.config import Config
from headoffice.core.exceptions import (
    ConfigurationError,
    NoMatchError,
    RegistryError,
    UpstreamError,
)
from headoffice.core.models import CompanyRecord, FranchiseSignal
from headoffice.inference.signals import infer_franchise
from headoffice.registry.abr import extract_abr_match, normalize_abr_details
from headoffice.registry.retry import fetch_with_retry


logger = logging.getLogger(__name__)

MOCK_ADDRESS = "321 Sample Street, Sydney NSW, Australia"


def _parse_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise RegistryError(f"Invalid JSON response: {e}")


class ProviderClient(ABC):
    """
    Base class for registry clients.

    Subclasses implement ``_fetch``; ``search`` adds the result cache.
    """

    source_name = ""
    cache_prefix = ""

    def __init__(self, cache: Optional[ExpiringCache] = None):
        self.cache = cache

    def search(self, query: str) -> CompanyRecord:
        """
        Look up a company by name.

        Args:
            query: Sanitized company name

        Returns:
            Normalized CompanyRecord

        Raises:
            ConfigurationError: If a required credential is missing
            UpstreamError: For HTTP or network failures after retries
            RegistryError: For replies missing the expected fields
            NoMatchError: When the registry reports no match
        """
        key = cache_key(self.cache_prefix, query)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                try:
                    return CompanyRecord.from_dict(cached)
                except (ValueError, TypeError) as e:
                    logger.warning(f"Discarding unreadable cache entry {key}: {e}")

        record = self._fetch(query)
        logger.info(f"{self.source_name} lookup for '{query}' matched {record.name}")

        if self.cache is not None:
            self.cache.set(key, record.to_dict())
        return record

    @abstractmethod
    def _fetch(self, query: str) -> CompanyRecord:
        ...


class OpenCorporatesClient(ProviderClient):
    """Client for the OpenCorporates company search API."""

    source_name = "OpenCorporates"
    cache_prefix = "oc"

    def __init__(self, base_url: str = "https://api.opencorporates.com", api_token: str = "",
                 cache: Optional[ExpiringCache] = None, base_delay: float = 0.4):
        """
        Initialize the OpenCorporates client.

        Args:
            base_url: API base URL
            api_token: Optional API token (anonymous access is rate-limited)
            cache: Optional result cache
            base_delay: Base delay for the retry backoff, in seconds
        """
        super().__init__(cache)
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.base_delay = base_delay

    def _fetch(self, query: str) -> CompanyRecord:
        params: Dict[str, Any] = {"q": query, "per_page": 1}
        if self.api_token:
            params["api_token"] = self.api_token

        response = fetch_with_retry(
            f"{self.base_url}/companies/search", params=params, base_delay=self.base_delay
        )
        data = _parse_json(response)

        first = self._first_company(data)
        if not first:
            raise NoMatchError("No matching company found.")

        try:
            return self._normalize(query, first)
        except (AttributeError, KeyError, TypeError) as e:
            raise RegistryError(f"Unexpected OpenCorporates company record: {e}")

    def _normalize(self, query: str, first: Dict[str, Any]) -> CompanyRecord:
        return CompanyRecord(
            name=first.get("name") or query,
            address=self._address(first),
            jurisdiction=first.get("jurisdiction_code"),
            incorporation_date=first.get("incorporation_date"),
            company_number=first.get("company_number"),
            status=first.get("current_status") or first.get("status"),
            company_type=first.get("company_type"),
            franchise=infer_franchise(first.get("company_type"), first.get("branch_status")),
            source=self.source_name,
            raw=first,
        )

    @staticmethod
    def _first_company(data: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(data, dict):
            raise RegistryError("Unexpected OpenCorporates reply: not a JSON object")
        results = data.get("results") or {}
        if not isinstance(results, dict):
            raise RegistryError("Unexpected OpenCorporates reply: results is not an object")
        companies = results.get("companies") or []
        if not isinstance(companies, list):
            raise RegistryError("Unexpected OpenCorporates reply: companies is not a list")
        if not companies:
            return None

        entry = companies[0]
        company = entry.get("company") if isinstance(entry, dict) else None
        if not isinstance(company, dict):
            raise RegistryError("Unexpected OpenCorporates reply: malformed company entry")
        return company

    @staticmethod
    def _address(company: Dict[str, Any]) -> str:
        """Pick the most complete address representation available."""
        if company.get("registered_address_in_full"):
            return company["registered_address_in_full"]

        registered = company.get("registered_address")
        if isinstance(registered, list) and registered:
            return ", ".join(str(part) for part in registered if part)
        if isinstance(registered, dict):
            parts: List[str] = [
                registered.get(name) for name in
                ("street_address", "locality", "region", "postal_code", "country")
            ]
            joined = ", ".join(part for part in parts if part)
            if joined:
                return joined

        lines = company.get("registered_address_lines")
        if isinstance(lines, list) and lines:
            return ", ".join(str(line) for line in lines if line)

        return company.get("address") or ""


class AbrClient(ProviderClient):
    """Client for ABN Lookup: match a name, then fetch the ABN details."""

    source_name = "ABR"
    cache_prefix = "abr"

    def __init__(self, guid: str, base_url: str = "https://abr.business.gov.au/json",
                 cache: Optional[ExpiringCache] = None, base_delay: float = 0.6,
                 courtesy_delay: float = 0.3):
        """
        Initialize the ABR client.

        Args:
            guid: ABN Lookup authentication GUID
            base_url: JSON service base URL
            cache: Optional result cache
            base_delay: Base delay for the retry backoff, in seconds
            courtesy_delay: Pause between the match and detail calls, in seconds
        """
        super().__init__(cache)
        self.guid = guid
        self.base_url = base_url.rstrip("/")
        self.base_delay = base_delay
        self.courtesy_delay = courtesy_delay

    def _fetch(self, query: str) -> CompanyRecord:
        if not self.guid:
            raise ConfigurationError("ABR_GUID is not configured.")

        response = fetch_with_retry(
            f"{self.base_url}/MatchingNames.aspx",
            params={"name": query, "maxResults": 1, "guid": self.guid},
            base_delay=self.base_delay,
        )
        data = _parse_json(response)
        if not isinstance(data, dict):
            raise RegistryError("Unexpected MatchingNames reply: not a JSON object")
        try:
            match = extract_abr_match(data)
        except ValueError as e:
            raise RegistryError(f"Unexpected MatchingNames reply: {e}")
        if not match or not match.get("Abn"):
            raise NoMatchError("No matching Australian company found via ABN Lookup.")

        time.sleep(self.courtesy_delay)

        response = fetch_with_retry(
            f"{self.base_url}/AbnDetails.aspx",
            params={"abn": match["Abn"], "guid": self.guid},
            base_delay=self.base_delay,
        )
        details = _parse_json(response)
        if not isinstance(details, dict):
            raise RegistryError("Unexpected ABN details reply: not a JSON object")
        if details.get("Message") and not details.get("Abn"):
            raise RegistryError(f"ABN Lookup error: {details['Message']}")

        try:
            return normalize_abr_details(query, match, details)
        except (AttributeError, KeyError, TypeError) as e:
            raise RegistryError(f"Unexpected ABN details reply: {e}")


class ProxyRegistryClient(ProviderClient):
    """Client for the proxy server's /api/search endpoint."""

    source_name = "Proxy"
    cache_prefix = "proxy"

    def __init__(self, proxy_base: str, cache: Optional[ExpiringCache] = None,
                 base_delay: float = 0.4):
        super().__init__(cache)
        self.proxy_base = proxy_base.rstrip("/")
        self.base_delay = base_delay

    def _fetch(self, query: str) -> CompanyRecord:
        if not self.proxy_base:
            raise ConfigurationError("PROXY_BASE is not configured.")

        try:
            response = fetch_with_retry(
                f"{self.proxy_base}/api/search", params={"q": query}, base_delay=self.base_delay
            )
        except UpstreamError as e:
            if e.status_code == 404:
                raise NoMatchError("No matching company found.")
            raise

        try:
            return CompanyRecord.from_dict(_parse_json(response))
        except (ValueError, TypeError) as e:
            raise RegistryError(f"Unexpected proxy reply: {e}")


class MockRegistryClient(ProviderClient):
    """Returns a fixed sample record so the UI never dead-ends."""

    source_name = "mock"
    cache_prefix = "mock"

    def __init__(self, company_name: str = "Sample Pty Ltd"):
        super().__init__(cache=None)
        self.company_name = company_name

    def _fetch(self, query: str) -> CompanyRecord:
        return CompanyRecord(
            name=self.company_name or query,
            address=MOCK_ADDRESS,
            jurisdiction="au",
            incorporation_date="2019-07-12",
            company_number="MOCK-0001",
            status="Active",
            company_type="Proprietary",
            franchise=FranchiseSignal("Unknown", "Not supplied by data source."),
            source="mock",
            raw={"source": "mock", "query": query},
        )


def build_registry_client(config: Config, cache: Optional[ExpiringCache] = None) -> ProviderClient:
    """
    Create the registry client selected by REGISTRY_PROVIDER.

    Args:
        config: Application configuration
        cache: Optional result cache shared with the geocoder

    Returns:
        ProviderClient instance

    Raises:
        ConfigurationError: If the provider name is unknown
    """
    provider = config.provider
    if provider == "opencorporates":
        return OpenCorporatesClient(config.opencorporates_base, config.opencorporates_token, cache=cache)
    if provider == "abr":
        return AbrClient(config.abr_guid, config.abr_base, cache=cache)
    if provider == "proxy":
        return ProxyRegistryClient(config.proxy_base, cache=cache)
    if provider == "mock":
        return MockRegistryClient(config.mock_company_name)
    raise ConfigurationError(f"Unknown registry provider: {provider}")
