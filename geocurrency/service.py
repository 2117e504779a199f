"""Application boundary: the operations checkout and pricing code call."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import httpx

from geocurrency.config import Config
from geocurrency.currency import table
from geocurrency.currency.config import ExchangeConfig
from geocurrency.currency.exchange import ExchangeRateCascade
from geocurrency.location.arbiter import ConfidenceArbiter
from geocurrency.location.cache import ResolutionCache
from geocurrency.location.config import LocationConfig
from geocurrency.location.heuristics import HeuristicSignalDetector
from geocurrency.location.models import LocationResult
from geocurrency.location.resolver import LocationResolver, is_public_ip
from geocurrency.providers.base import DEFAULT_TIMEOUT, USER_AGENT
from geocurrency.providers.geo import ProviderCascade, build_geo_providers
from geocurrency.providers.rates import build_rate_sources
from geocurrency.storage import build_store
from geocurrency.utils.logging import get_logger
from geocurrency.utils.paths import resolve_project_path


logger = get_logger(__name__)

CLIENT_IP_HEADERS = (
    "x-forwarded-for",
    "x-real-ip",
    "x-client-ip",
    "cf-connecting-ip",
    "x-cluster-client-ip",
)


def client_ip_from_headers(headers: Mapping[str, str], fallback: Optional[str] = None) -> Optional[str]:
    """First public client address found in proxy headers, else ``fallback``.

    ``X-Forwarded-For`` may hold a chain; its left-most entry is the client.
    """
    lowered = {str(k).lower(): v for k, v in (headers or {}).items()}
    for name in CLIENT_IP_HEADERS:
        value = lowered.get(name)
        if not value:
            continue
        candidate = str(value).split(",")[0].strip()
        if is_public_ip(candidate):
            return candidate
    return fallback


def default_location_from(settings: LocationConfig) -> LocationResult:
    d = settings.default
    return LocationResult.build(
        d.country_code,
        country=d.country,
        city=d.city,
        region=d.region,
        timezone=d.timezone,
        detection_method="default",
        confidence=0.0,
    )


class GeoCurrencyService:
    """Owns one resolver, one rate cascade and (optionally) a shared HTTP client."""

    def __init__(
        self,
        resolver: LocationResolver,
        exchange: ExchangeRateCascade,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.resolver = resolver
        self.exchange = exchange
        self._client = client

    @classmethod
    def from_config(
        cls,
        config_path: str = "config.yaml",
        client: Optional[httpx.AsyncClient] = None,
        config: Optional[Config] = None,
    ) -> "GeoCurrencyService":
        cfg = config or Config(config_path)
        location = LocationConfig.from_dict(cfg.section("location"))
        exchange_cfg = ExchangeConfig.from_dict(cfg.section("exchange"))
        return cls.from_settings(location, exchange_cfg, client=client)

    @classmethod
    def from_settings(
        cls,
        location: LocationConfig,
        exchange_cfg: ExchangeConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "GeoCurrencyService":
        owned = client is None
        if owned:
            client = httpx.AsyncClient(
                timeout=DEFAULT_TIMEOUT,
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            )

        exchange = ExchangeRateCascade(
            build_rate_sources(exchange_cfg.sources),
            client=client,
            base_currency=exchange_cfg.base_currency,
            cache_ttl_seconds=exchange_cfg.cache_ttl_seconds,
        )

        store_path = str(resolve_project_path(location.cache.path))
        cache = ResolutionCache(
            store=build_store(location.cache.backend, store_path),
            ttl_seconds=location.cache.ttl_seconds,
            enabled=location.cache.enabled,
        )

        detector = None
        if location.heuristics.enabled:
            detector = HeuristicSignalDetector(
                min_confidence=location.heuristics.min_confidence,
                offset_tolerance_minutes=location.heuristics.offset_tolerance_minutes,
            )

        arbiter = ConfidenceArbiter(
            allow_heuristic_override=location.arbiter.allow_heuristic_override,
            override_threshold=location.arbiter.override_threshold,
            min_confidence=location.heuristics.min_confidence,
            provider_confidence=location.arbiter.provider_confidence,
            agreement_confidence=location.arbiter.agreement_confidence,
            default_location=default_location_from(location),
        )

        resolver = LocationResolver(
            ProviderCascade(build_geo_providers(location.providers), client=client),
            detector=detector,
            arbiter=arbiter,
            cache=cache,
            rate_source=exchange if location.refresh_exchange_rate else None,
        )
        return cls(resolver, exchange, client=client if owned else None)

    # ---- external operations ----

    async def resolve_location(self, ip: Optional[str] = None, use_cache: bool = True) -> LocationResult:
        return await self.resolver.resolve_location(ip=ip, use_cache=use_cache)

    async def convert_currency(self, amount: float, from_currency: str, to_currency: str) -> float:
        return await self.exchange.convert(amount, from_currency, to_currency)

    async def get_exchange_rate(self, from_currency: str, to_currency: str) -> float:
        return await self.exchange.get_rate(from_currency, to_currency)

    def invalidate_location_cache(self, ip: Optional[str] = None) -> None:
        self.resolver.invalidate_location_cache(ip)

    # ---- conveniences ----

    async def location_summary(self, ip: Optional[str] = None) -> Dict[str, Any]:
        """Display-ready view of the resolved location."""
        loc = await self.resolve_location(ip=ip)
        return {
            "location": loc.display_name,
            "flag": loc.flag,
            "country_code": loc.country_code,
            "currency": loc.currency_code.upper(),
            "currency_symbol": loc.currency_symbol,
            "currency_name": getattr(table.currency_info(loc.currency_code), "name", loc.currency_code.upper()),
            "exchange_rate_to_base": loc.exchange_rate_to_base,
            "is_african": loc.is_african,
            "payment_gateway": loc.recommended_gateway,
            "detection_method": loc.detection_method,
            "confidence": loc.confidence,
        }

    async def check_providers(self) -> Dict[str, Dict[str, bool]]:
        return {
            "geolocation": await self.resolver.cascade.check_providers(),
            "exchange": await self.exchange.check_providers(),
        }

    async def aclose(self) -> None:
        self.resolver.cache.store.close()
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GeoCurrencyService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
