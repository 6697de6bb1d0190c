"""Head Office Locator

Looks up a company in a business registry (OpenCorporates or the Australian
Business Register), geocodes its registered address and reports franchise
and sales-territory signals.
"""

__version__ = "0.1.0"
__description__ = "Company head office lookup with registry, geocoding and territory signals"
