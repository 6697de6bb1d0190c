"""
Same-origin proxy server.

Keeps the ABN Lookup GUID server-side and shares an in-memory cache
between clients. Exposes:

    GET /api/search?q=<name>
    GET /api/geocode?address=<address>
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from headoffice.cache.store import ExpiringCache, MemoryStore
from headoffice.core.config import ServerSettings
from headoffice.core.exceptions import LocatorError, NoMatchError
from headoffice.geocoding.client import NominatimGeocoder
from headoffice.inference.signals import safe_query
from headoffice.registry.client import AbrClient, ProviderClient


logger = logging.getLogger(__name__)


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def create_app(settings: Optional[ServerSettings] = None,
               registry: Optional[ProviderClient] = None,
               geocoder: Optional[NominatimGeocoder] = None) -> Flask:
    """
    Build the proxy Flask application.

    Args:
        settings: Server settings (read from the environment if omitted)
        registry: Registry client (an AbrClient from settings if omitted)
        geocoder: Geocoder (a NominatimGeocoder from settings if omitted)

    Returns:
        Flask application
    """
    settings = settings if settings is not None else ServerSettings.from_env()
    cache = ExpiringCache(MemoryStore(), ttl=settings.cache_ttl)
    if registry is None:
        registry = AbrClient(settings.abr_guid, settings.abr_base, cache=cache)
    if geocoder is None:
        geocoder = NominatimGeocoder(settings.nominatim_base, cache=cache)
    credential_required = isinstance(registry, AbrClient)

    app = Flask(__name__)
    app.config["SETTINGS"] = settings

    @app.before_request
    def answer_preflight():
        if request.method == "OPTIONS":
            return "", 204
        return None

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.route("/api/search", methods=["GET"])
    def api_search():
        query = safe_query(request.args.get("q", ""))
        if not query:
            return _error("Missing q", 400)
        if credential_required and not registry.guid:
            return _error("ABR_GUID missing on server", 500)

        try:
            record = registry.search(query)
        except NoMatchError as e:
            return _error(str(e), 404)
        except LocatorError as e:
            logger.error(f"Search for '{query}' failed: {e}")
            return _error(str(e), 500)
        return jsonify(record.to_dict())

    @app.route("/api/geocode", methods=["GET"])
    def api_geocode():
        address = request.args.get("address", "").strip()
        if not address:
            return _error("Missing address", 400)

        try:
            geo = geocoder.geocode(address)
        except LocatorError as e:
            logger.error(f"Geocode for '{address}' failed: {e}")
            return _error(str(e), 500)
        if geo is None:
            return _error("No geocode result", 404)
        return jsonify(geo.to_dict())

    @app.errorhandler(HTTPException)
    def http_error(error):
        return _error("Not found" if error.code == 404 else error.name, error.code)

    @app.errorhandler(Exception)
    def server_error(error):
        logger.exception("Unhandled proxy error")
        return _error(str(error) or "Server error", 500)

    return app


def run_server(settings: Optional[ServerSettings] = None, host: str = "127.0.0.1",
               port: Optional[int] = None) -> None:
    """
    Run the proxy with Flask's built-in server.

    Args:
        settings: Server settings (read from the environment if omitted)
        host: Interface to bind
        port: Port (defaults to settings.port)
    """
    settings = settings if settings is not None else ServerSettings.from_env()
    app = create_app(settings)
    port = port or settings.port
    logger.info(f"Proxy running on http://{host}:{port}")
    app.run(host=host, port=port)
