"""
Custom exceptions for the Head Office Locator.
"""

from typing import Optional


class LocatorError(Exception):
    """Base exception for all Head Office Locator errors."""
    pass


class ConfigurationError(LocatorError):
    """Raised when configuration is invalid or a required credential is missing."""
    pass


class UpstreamError(LocatorError):
    """Raised when an upstream HTTP call fails (non-2xx status or network error)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GeocodingError(UpstreamError):
    """Raised when the geocoding service cannot be reached."""
    pass


class RegistryError(LocatorError):
    """Raised when a registry reply does not have the expected shape."""
    pass


class NoMatchError(LocatorError):
    """Raised when the registry explicitly reports no matching company."""
    pass


class SpeechError(LocatorError):
    """Raised when voice capture fails."""
    pass
