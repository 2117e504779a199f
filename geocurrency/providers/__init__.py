"""Provider cascades: geolocation lookups and exchange-rate quotes."""

from .base import Cascade, SourceSettings, get_json, http_client
from .geo import GEO_PROVIDER_SPECS, GeoProvider, ProviderCascade, build_geo_providers, get_geo_provider
from .rates import RATE_SOURCE_SPECS, RateSource, build_rate_sources, get_rate_source


__all__ = [
    "Cascade",
    "get_json",
    "http_client",
    "SourceSettings",
    "GEO_PROVIDER_SPECS",
    "GeoProvider",
    "ProviderCascade",
    "get_geo_provider",
    "build_geo_providers",
    "RATE_SOURCE_SPECS",
    "RateSource",
    "get_rate_source",
    "build_rate_sources",
]
