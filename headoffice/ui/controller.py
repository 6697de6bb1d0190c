"""
Search flow: input handling, registry lookup with mock fallback,
geocoding, territory inference and rendering.
"""

import logging
from dataclasses import replace
from typing import Optional

from headoffice.cache.store import ExpiringCache, JsonFileStore, MemoryStore
from headoffice.core.config import Config, FallbackPolicy
from headoffice.core.exceptions import GeocodingError, LocatorError, SpeechError
from headoffice.core.models import CompanyRecord
from headoffice.geocoding.client import NominatimGeocoder, build_geocoder
from headoffice.inference.signals import safe_query, with_territory
from headoffice.registry.client import MockRegistryClient, ProviderClient, build_registry_client
from headoffice.ui.capabilities import NullSpeechRecognizer, SpeechRecognizer
from headoffice.ui.renderer import ResultRenderer


logger = logging.getLogger(__name__)


class LocatorApp:
    """
    Runs one search at a time and renders the outcome.

    Every search ends with a single status line; the result panel stays
    hidden unless a record was rendered.
    """

    def __init__(self, registry: ProviderClient, geocoder: NominatimGeocoder,
                 renderer: ResultRenderer, territory_keyword: str = "",
                 mock: Optional[MockRegistryClient] = None,
                 policy: FallbackPolicy = FallbackPolicy.ON_ERROR,
                 speech: Optional[SpeechRecognizer] = None):
        """
        Initialize the application.

        Args:
            registry: Registry client selected by configuration
            geocoder: Geocoding client
            renderer: Renderer owning the application state
            territory_keyword: Keyword for territory inference
            mock: Client supplying the fallback record
            policy: When registry failures fall back to the mock record
            speech: Voice capture capability
        """
        self.registry = registry
        self.geocoder = geocoder
        self.renderer = renderer
        self.territory_keyword = territory_keyword
        self.mock = mock if mock is not None else MockRegistryClient()
        self.policy = policy
        self.speech = speech if speech is not None else NullSpeechRecognizer()

    @property
    def state(self):
        return self.renderer.state

    @classmethod
    def from_config(cls, config: Config, renderer: Optional[ResultRenderer] = None,
                    speech: Optional[SpeechRecognizer] = None,
                    cache: Optional[ExpiringCache] = None) -> 'LocatorApp':
        """
        Wire the application from configuration.

        Args:
            config: Application configuration
            renderer: Renderer (a default terminal renderer if omitted)
            speech: Voice capture capability
            cache: Result cache (built from CACHE_FILE if omitted)

        Returns:
            LocatorApp instance
        """
        if cache is None:
            backend = JsonFileStore(config.cache_file) if config.cache_file else MemoryStore()
            cache = ExpiringCache(backend, ttl=config.cache_ttl)

        return cls(
            registry=build_registry_client(config, cache=cache),
            geocoder=build_geocoder(config, cache=cache),
            renderer=renderer if renderer is not None else ResultRenderer(),
            territory_keyword=config.territory_keyword,
            mock=MockRegistryClient(config.mock_company_name),
            policy=config.fallback_policy,
            speech=speech,
        )

    def search(self, text: Optional[str]) -> Optional[CompanyRecord]:
        """
        Look up a company and render it.

        Args:
            text: Company name as typed or spoken

        Returns:
            The rendered record, or None if nothing was rendered
        """
        query = safe_query(text)
        if not query:
            self.renderer.set_status("Please provide a company name.", "warn")
            return None

        if not self.state.begin_search():
            self.renderer.set_status("A search is already running.", "warn")
            return None

        try:
            self.renderer.hide()
            self.renderer.set_status("Searching for head office and contract details…")
            record = self.fetch_company(query)
            self.renderer.render(record)
            self.renderer.set_status("Found details.")
            return record
        except LocatorError as e:
            logger.error(f"Search for '{query}' failed: {e}")
            self.renderer.set_status(str(e) or "Unable to retrieve company data.", "warn")
            return None
        finally:
            self.state.end_search()

    def fetch_company(self, query: str) -> CompanyRecord:
        """
        Registry lookup, mock fallback, geocoding and territory inference.

        Args:
            query: Sanitized company name

        Returns:
            Complete CompanyRecord

        Raises:
            LocatorError: When the lookup fails and the policy forbids fallback
        """
        try:
            record = self.registry.search(query)
        except LocatorError as e:
            if not self.policy.should_fallback(e):
                raise
            logger.warning(f"Falling back to mock data: {e}")
            record = self.mock.search(query)

        record = replace(record, geo=self._geocode(record.address))
        return with_territory(record, self.territory_keyword)

    def _geocode(self, address: str):
        try:
            return self.geocoder.geocode(address)
        except GeocodingError as e:
            logger.warning(f"Geocoding failed for '{address}': {e}")
            return None

    def toggle_listening(self) -> Optional[CompanyRecord]:
        """
        Start or stop voice capture; a captured phrase triggers a search.

        Returns:
            The rendered record, if a phrase was captured and found
        """
        if not self.speech.available:
            self.renderer.set_status("Voice input is not supported in this environment.", "warn")
            return None

        if self.state.listening:
            self.speech.stop()
            self.state.stop_listening()
            self.renderer.set_status("Stopped listening.")
            return None

        self.state.start_listening()
        self.renderer.set_status("Listening for company name…")
        try:
            transcript = self.speech.listen()
        except SpeechError as e:
            self.renderer.set_status(f"Voice error: {e}", "warn")
            return None
        finally:
            self.state.stop_listening()

        if not transcript:
            self.renderer.set_status("Stopped listening.")
            return None

        self.renderer.set_status(f"Captured: “{transcript}”. Searching…")
        return self.search(transcript)
