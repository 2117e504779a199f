"""Facade wiring cache, heuristics, provider cascade and arbiter together."""
from __future__ import annotations

import ipaddress
from typing import Callable, Optional, Tuple

from geocurrency.currency.exchange import ExchangeRateCascade
from geocurrency.location.arbiter import ConfidenceArbiter
from geocurrency.location.cache import ResolutionCache
from geocurrency.location.heuristics import EnvironmentSnapshot, HeuristicSignalDetector
from geocurrency.location.models import HeuristicSignal, LocationResult
from geocurrency.providers.geo import ProviderCascade
from geocurrency.utils.decorators import log_execution
from geocurrency.utils.logging import get_logger


logger = get_logger(__name__)

UNCACHED_METHODS = frozenset({"default", "heuristic"})


def is_public_ip(value: Optional[str]) -> bool:
    """True for a routable address; False for private, loopback, link-local or garbage."""
    if not value:
        return False
    try:
        addr = ipaddress.ip_address(value.strip())
    except ValueError:
        return False
    return not (
        addr.is_private
        or addr.is_loopback
        or addr.is_link_local
        or addr.is_multicast
        or addr.is_reserved
        or addr.is_unspecified
    )


class LocationResolver:
    """Resolve the caller's location; always returns a usable result."""

    def __init__(
        self,
        cascade: ProviderCascade,
        detector: Optional[HeuristicSignalDetector] = None,
        arbiter: Optional[ConfidenceArbiter] = None,
        cache: Optional[ResolutionCache] = None,
        rate_source: Optional[ExchangeRateCascade] = None,
        snapshot_provider: Optional[Callable[[], EnvironmentSnapshot]] = None,
    ):
        self.cascade = cascade
        self.detector = detector
        self.arbiter = arbiter or ConfidenceArbiter()
        self.cache = cache or ResolutionCache()
        self.rate_source = rate_source
        self._snapshot_provider = snapshot_provider

    @log_execution(log_args=False)
    async def resolve_location(self, ip: Optional[str] = None, use_cache: bool = True) -> LocationResult:
        lookup_ip = ip.strip() if is_public_ip(ip) else None
        if ip and lookup_ip is None:
            logger.debug(f"Ignoring non-public client address {ip!r}; resolving own address")
        try:
            return await self._resolve(lookup_ip, use_cache)
        except Exception as e:
            logger.error(f"Location resolution failed unexpectedly, using default: {e}", exc_info=True)
            return self.arbiter.default_location

    def invalidate_location_cache(self, ip: Optional[str] = None) -> None:
        self.cache.invalidate(ip)

    async def _resolve(self, ip: Optional[str], use_cache: bool) -> LocationResult:
        if use_cache:
            cached = self.cache.read(ip)
            if cached is not None:
                return cached

        signal, observed_timezone = self._heuristic_signal()
        provider_result = await self.cascade.resolve(ip)
        result = self.arbiter.merge(provider_result, signal, observed_timezone=observed_timezone)

        if self.rate_source is not None:
            result = await self._refresh_rate(result)

        # only provider-backed answers are "last good"; fallbacks retry next call
        if result.detection_method not in UNCACHED_METHODS:
            self.cache.write(result, ip)

        logger.info(
            f"Resolved location {result.country_code} via {result.detection_method} "
            f"(confidence {result.confidence:.2f}, gateway {result.recommended_gateway})"
        )
        return result

    def _heuristic_signal(self) -> Tuple[HeuristicSignal, Optional[str]]:
        """Heuristic guess plus the timezone it was read from."""
        if self.detector is None:
            return HeuristicSignal.empty(), None
        try:
            if self._snapshot_provider is not None:
                snapshot = self._snapshot_provider()
            else:
                snapshot = EnvironmentSnapshot.capture()
        except Exception as e:
            logger.warning(f"Environment snapshot failed, skipping heuristics: {e}")
            return HeuristicSignal.empty(), None
        return self.detector.detect(snapshot), snapshot.timezone

    async def _refresh_rate(self, result: LocationResult) -> LocationResult:
        try:
            quote = await self.rate_source.rate_to_base(result.currency_code)
            if quote.approximate:
                return result
            return result.with_exchange_rate(quote.rate)
        except Exception as e:
            logger.warning(f"Live rate refresh for {result.currency_code} failed, keeping table rate: {e}")
            return result
