"""Configuration management for the Head Office Locator."""

import os
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional, List

from dotenv import dotenv_values, load_dotenv

from headoffice.core.exceptions import (
    ConfigurationError,
    LocatorError,
    NoMatchError,
    RegistryError,
    UpstreamError,
)


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_CANDIDATES = [".env.local", "env.local"]

DEFAULTS: Dict[str, str] = {
    "TERRITORY_KEYWORD": "Australia",
    "REGISTRY_PROVIDER": "opencorporates",
    "OPENCORPORATES_BASE": "https://api.opencorporates.com",
    "OPENCORPORATES_API_TOKEN": "",
    "ABR_JSON_BASE": "https://abr.business.gov.au/json",
    "ABR_GUID": "",
    "PROXY_BASE": "",
    "NOMINATIM_BASE": "https://nominatim.openstreetmap.org",
    "OSM_TILE_URL": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
    "MOCK_FALLBACK": "on_error",
    "MOCK_COMPANY_NAME": "Sample Pty Ltd",
    "CACHE_FILE": ".cache/headoffice.json",
    "CACHE_TTL_SECONDS": "1800",
    "LOG_LEVEL": "INFO",
    "LOG_FILE": "logs/headoffice.log",
}

PROVIDERS = ("opencorporates", "abr", "proxy", "mock")

# Keys whose values are masked by get_all()
SECRET_KEYS = ("OPENCORPORATES_API_TOKEN", "ABR_GUID")

# Keys that may legitimately be set to an empty value to switch a feature off
CLEARABLE_KEYS = ("CACHE_FILE", "LOG_FILE")


class FallbackPolicy(str, Enum):
    """When a failed registry lookup is replaced by the mock record."""
    ALWAYS = "always"
    ON_ERROR = "on_error"
    NEVER = "never"

    def should_fallback(self, error: LocatorError) -> bool:
        """Decide whether ``error`` is answered with mock data.

        Args:
            error: The failure raised by the registry client

        Returns:
            True if the caller should substitute the mock record
        """
        if self is FallbackPolicy.ALWAYS:
            return True
        if self is FallbackPolicy.NEVER:
            return False
        if isinstance(error, NoMatchError):
            return False
        return isinstance(error, (UpstreamError, RegistryError))


class Config:
    """Read-only application settings loaded from a KEY=VALUE file."""

    def __init__(self, config_path: Optional[str] = None, overrides: Optional[Dict[str, str]] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to a KEY=VALUE file. When omitted, ``.env.local``
                and ``env.local`` are tried in order.
            overrides: Values applied after the file (e.g. from CLI options)

        Raises:
            ConfigurationError: If an explicit config_path does not exist
        """
        self._values: Dict[str, str] = dict(DEFAULTS)
        self.source: Optional[str] = None

        path = self._resolve_path(config_path)
        if path is not None:
            self._apply(dotenv_values(path))
            self.source = str(path)
            logger.info(f"Loaded configuration from {path}")
        else:
            logger.info("Using built-in defaults (no .env.local found)")

        if overrides:
            self._apply(overrides)

    @staticmethod
    def _resolve_path(config_path: Optional[str]) -> Optional[Path]:
        if config_path is not None:
            path = Path(config_path)
            if not path.is_file():
                raise ConfigurationError(f"Configuration file not found: {config_path}")
            return path

        for candidate in DEFAULT_CONFIG_CANDIDATES:
            path = Path(candidate)
            if path.is_file():
                return path
        return None

    def _apply(self, values: Dict[str, Optional[str]]) -> None:
        for key, value in values.items():
            if key not in DEFAULTS:
                logger.debug(f"Ignoring unrecognized configuration key: {key}")
                continue
            value = (value or "").strip()
            if value or key in CLEARABLE_KEYS:
                self._values[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value.

        Args:
            key: Configuration key (e.g. 'TERRITORY_KEYWORD')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return self._values.get(key, default)

    @property
    def territory_keyword(self) -> str:
        return self._values["TERRITORY_KEYWORD"]

    @property
    def provider(self) -> str:
        return self._values["REGISTRY_PROVIDER"].lower()

    @property
    def opencorporates_base(self) -> str:
        return self._values["OPENCORPORATES_BASE"].rstrip("/")

    @property
    def opencorporates_token(self) -> str:
        return self._values["OPENCORPORATES_API_TOKEN"]

    @property
    def abr_base(self) -> str:
        return self._values["ABR_JSON_BASE"].rstrip("/")

    @property
    def abr_guid(self) -> str:
        return self._values["ABR_GUID"]

    @property
    def proxy_base(self) -> str:
        return self._values["PROXY_BASE"].rstrip("/")

    @property
    def nominatim_base(self) -> str:
        return self._values["NOMINATIM_BASE"].rstrip("/")

    @property
    def tile_url(self) -> str:
        return self._values["OSM_TILE_URL"]

    @property
    def fallback_policy(self) -> FallbackPolicy:
        try:
            return FallbackPolicy(self._values["MOCK_FALLBACK"].lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown MOCK_FALLBACK policy: {self._values['MOCK_FALLBACK']}"
            )

    @property
    def mock_company_name(self) -> str:
        return self._values["MOCK_COMPANY_NAME"]

    @property
    def cache_file(self) -> str:
        return self._values["CACHE_FILE"]

    @property
    def cache_ttl(self) -> float:
        try:
            return float(self._values["CACHE_TTL_SECONDS"])
        except ValueError:
            raise ConfigurationError(
                f"CACHE_TTL_SECONDS must be a number, got {self._values['CACHE_TTL_SECONDS']}"
            )

    @property
    def logging_config(self) -> Dict[str, Any]:
        """Get logging configuration section."""
        return {
            "level": self._values["LOG_LEVEL"],
            "file": self._values["LOG_FILE"] or None,
        }

    def get_all(self) -> Dict[str, str]:
        """Get entire configuration as dictionary with credentials masked.

        Returns:
            Complete configuration dictionary
        """
        values = dict(self._values)
        for key in SECRET_KEYS:
            if values.get(key):
                values[key] = "****"
        return values

    def validate(self) -> bool:
        """Validate configuration completeness.

        Returns:
            True if configuration is valid

        Raises:
            ConfigurationError: If configuration is invalid
        """
        problems: List[str] = []

        if self.provider not in PROVIDERS:
            problems.append(
                f"REGISTRY_PROVIDER must be one of {', '.join(PROVIDERS)}, got {self.provider}"
            )
        if self.provider == "abr" and not self.abr_guid:
            problems.append("ABR_GUID is required for the abr provider")
        if self.provider == "proxy" and not self.proxy_base:
            problems.append("PROXY_BASE is required for the proxy provider")

        try:
            self.fallback_policy
            if self.cache_ttl <= 0:
                problems.append("CACHE_TTL_SECONDS must be positive")
        except ConfigurationError as e:
            problems.append(str(e))

        if problems:
            raise ConfigurationError("; ".join(problems))
        return True


@dataclass(frozen=True)
class ServerSettings:
    """Proxy server settings, read from the process environment at startup."""
    port: int = 8788
    abr_guid: str = ""
    abr_base: str = "https://abr.business.gov.au/json"
    nominatim_base: str = "https://nominatim.openstreetmap.org"
    cache_ttl: float = 30 * 60

    @classmethod
    def from_env(cls) -> 'ServerSettings':
        """Build settings from environment variables (and a .env file if present)."""
        load_dotenv()
        port = os.getenv("PORT") or "8788"
        try:
            port_number = int(port)
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got {port}")

        return cls(
            port=port_number,
            abr_guid=os.getenv("ABR_GUID", ""),
            abr_base=(os.getenv("ABR_JSON_BASE") or cls.abr_base).rstrip("/"),
            nominatim_base=(os.getenv("NOMINATIM_BASE") or cls.nominatim_base).rstrip("/"),
        )
