"""Registry lookup package."""

from headoffice.registry.client import (
    AbrClient,
    MockRegistryClient,
    OpenCorporatesClient,
    ProviderClient,
    ProxyRegistryClient,
    build_registry_client,
)

__all__ = [
    "AbrClient",
    "MockRegistryClient",
    "OpenCorporatesClient",
    "ProviderClient",
    "ProxyRegistryClient",
    "build_registry_client",
]
