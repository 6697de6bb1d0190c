"""
Geocoding clients: free-text address to latitude/longitude.
"""

import logging
from typing import Any, Optional

from headoffice.cache.store import ExpiringCache, cache_key
from headoffice.core.config import Config
from headoffice.core.exceptions import GeocodingError, UpstreamError
from headoffice.core.models import GeoPoint
from headoffice.registry.retry import fetch_with_retry


logger = logging.getLogger(__name__)

USER_AGENT = "HeadOfficeLocator/0.1"


class NominatimGeocoder:
    """Geocoder backed by an OpenStreetMap Nominatim instance."""

    def __init__(self, base_url: str = "https://nominatim.openstreetmap.org",
                 cache: Optional[ExpiringCache] = None, base_delay: float = 0.8):
        """
        Initialize the geocoder.

        Args:
            base_url: Nominatim base URL
            cache: Optional result cache
            base_delay: Base delay for the retry backoff, in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.base_delay = base_delay

    def geocode(self, address: Optional[str]) -> Optional[GeoPoint]:
        """
        Resolve an address to coordinates.

        Args:
            address: Free-text address; empty gives no result

        Returns:
            GeoPoint, or None when the address is empty or has no match

        Raises:
            GeocodingError: If the service fails after retries
        """
        if not address:
            return None

        key = cache_key("geo", address)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                try:
                    return GeoPoint.from_dict(cached)
                except ValueError as e:
                    logger.warning(f"Discarding unreadable cache entry {key}: {e}")

        geo = self._lookup(address)
        if geo is not None and self.cache is not None:
            self.cache.set(key, geo.to_dict())
        return geo

    def _lookup(self, address: str) -> Optional[GeoPoint]:
        try:
            response = fetch_with_retry(
                f"{self.base_url}/search",
                params={"format": "json", "q": address, "limit": 1},
                headers={"Accept-Language": "en", "User-Agent": USER_AGENT},
                base_delay=self.base_delay,
            )
            data = response.json()
        except UpstreamError as e:
            raise GeocodingError(f"Geocoding failed: {e}", status_code=e.status_code)
        except ValueError as e:
            raise GeocodingError(f"Geocoding failed: invalid JSON response: {e}")

        if not isinstance(data, list) or not data:
            logger.info(f"No geocode result for '{address}'")
            return None
        return self._to_point(data[0])

    @staticmethod
    def _to_point(hit: Any) -> GeoPoint:
        if not isinstance(hit, dict):
            raise GeocodingError("Geocoding failed: unexpected result shape")
        try:
            return GeoPoint.from_dict({
                "lat": hit.get("lat"),
                "lon": hit.get("lon"),
                "label": hit.get("display_name"),
            })
        except ValueError as e:
            raise GeocodingError(f"Geocoding failed: {e}")


class ProxyGeocoder(NominatimGeocoder):
    """Geocoder that goes through the proxy server's /api/geocode endpoint."""

    def __init__(self, proxy_base: str, cache: Optional[ExpiringCache] = None,
                 base_delay: float = 0.4):
        super().__init__(proxy_base, cache=cache, base_delay=base_delay)

    def _lookup(self, address: str) -> Optional[GeoPoint]:
        try:
            response = fetch_with_retry(
                f"{self.base_url}/api/geocode",
                params={"address": address},
                base_delay=self.base_delay,
            )
            data = response.json()
        except UpstreamError as e:
            if e.status_code == 404:
                return None
            raise GeocodingError(f"Geocoding failed: {e}", status_code=e.status_code)
        except ValueError as e:
            raise GeocodingError(f"Geocoding failed: invalid JSON response: {e}")

        if not isinstance(data, dict):
            raise GeocodingError("Geocoding failed: unexpected result shape")
        try:
            return GeoPoint.from_dict(data)
        except ValueError as e:
            raise GeocodingError(f"Geocoding failed: {e}")


def build_geocoder(config: Config, cache: Optional[ExpiringCache] = None) -> NominatimGeocoder:
    """Create the geocoder matching the configured registry provider."""
    if config.provider == "proxy" and config.proxy_base:
        return ProxyGeocoder(config.proxy_base, cache=cache)
    return NominatimGeocoder(config.nominatim_base, cache=cache)
