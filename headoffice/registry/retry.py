"""
Retry wrapper for outbound HTTP calls.
"""

import logging
import random
import time
from typing import Dict, Optional, Any

import requests

from headoffice.core.exceptions import UpstreamError


logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 0.4
MAX_JITTER = 0.150
DEFAULT_TIMEOUT = 30


def backoff_delay(base_delay: float, attempt: int) -> float:
    """
    Delay before the attempt following ``attempt``.

    Args:
        base_delay: Base delay in seconds
        attempt: 1-based number of the attempt that just failed

    Returns:
        Linear delay plus up to MAX_JITTER seconds of random jitter
    """
    return base_delay * attempt + random.uniform(0, MAX_JITTER)


def fetch_with_retry(url: str,
                     params: Optional[Dict[str, Any]] = None,
                     headers: Optional[Dict[str, str]] = None,
                     attempts: int = DEFAULT_ATTEMPTS,
                     base_delay: float = DEFAULT_BASE_DELAY,
                     timeout: float = DEFAULT_TIMEOUT) -> requests.Response:
    """
    GET a URL, retrying on any failure.

    A non-2xx response is treated exactly like a network error.

    Args:
        url: Endpoint URL
        params: Query parameters
        headers: Request headers
        attempts: Total number of attempts
        base_delay: Base delay in seconds for the linear backoff
        timeout: Per-request timeout in seconds

    Returns:
        The first successful response

    Raises:
        UpstreamError: The failure of the final attempt
    """
    last_error: Optional[UpstreamError] = None

    for attempt in range(1, attempts + 1):
        try:
            response = requests.get(url, params=params, headers=headers, timeout=timeout)
            if not 200 <= response.status_code < 300:
                raise UpstreamError(f"HTTP {response.status_code}", status_code=response.status_code)
            return response
        except requests.RequestException as e:
            last_error = UpstreamError(f"Network error: {e}")
        except UpstreamError as e:
            last_error = e

        if attempt < attempts:
            delay = backoff_delay(base_delay, attempt)
            logger.warning(f"Request to {url} failed ({last_error}). Retrying in {delay:.2f}s...")
            time.sleep(delay)

    raise last_error or UpstreamError("Network error")
