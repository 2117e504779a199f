"""Live exchange rates with a static cross-rate fallback."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import httpx

from geocurrency.currency import table
from geocurrency.providers.base import Cascade, http_client
from geocurrency.providers.rates import RateSource
from geocurrency.storage.memory import MemoryStore
from geocurrency.utils.decorators import log_execution
from geocurrency.utils.errors import RateProviderExhausted, ValidationError
from geocurrency.utils.logging import get_logger


logger = get_logger(__name__)

IDENTITY_SOURCE = "identity"
APPROXIMATE_SOURCE = "static-table"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RateQuote:
    """Units of ``quote`` per one unit of ``base``."""

    base: str
    quote: str
    rate: float
    source: str
    approximate: bool = False
    timestamp: datetime = field(default_factory=_utcnow)

    def convert(self, amount: float) -> float:
        return amount * self.rate


def _currency(code: Optional[str]) -> str:
    return (code or "").strip().lower()


def static_cross_rate(from_currency: str, to_currency: str) -> float:
    """Best-effort from->to rate through the table's per-USD figures."""
    return table.approx_rate(to_currency) / table.approx_rate(from_currency)


class ExchangeRateCascade:
    """Ordered rate sources; the first live quote wins.

    Never returns zero and never raises for provider trouble: when every
    source fails the static cross rate is returned, marked approximate.
    """

    def __init__(
        self,
        sources: Sequence[RateSource],
        client: Optional[httpx.AsyncClient] = None,
        base_currency: str = table.BASE_CURRENCY,
        cache_ttl_seconds: float = 600.0,
        quote_store: Optional[MemoryStore] = None,
    ):
        self._cascade: Cascade[RateSource] = Cascade(sources, RateProviderExhausted, label="exchange-rate")
        self._client = client
        self.base_currency = _currency(base_currency) or table.BASE_CURRENCY
        self.cache_ttl_seconds = float(cache_ttl_seconds)
        self._quotes = quote_store if quote_store is not None else MemoryStore()

    @property
    def sources(self) -> List[RateSource]:
        return self._cascade.sources

    @log_execution(log_args=False)
    async def get_quote(self, from_currency: str, to_currency: str) -> RateQuote:
        base, quote = _currency(from_currency), _currency(to_currency)
        if base == quote:
            return RateQuote(base, quote, 1.0, IDENTITY_SOURCE)

        memo_key = f"{base}:{quote}"
        if self.cache_ttl_seconds > 0:
            cached = self._quotes.get(memo_key)
            if cached is not None:
                logger.debug(f"Rate memo hit for {base}/{quote}")
                return cached

        if not self.sources:
            logger.warning("No exchange rate sources configured")
            return self._approximate(base, quote)

        try:
            async with http_client(self._client) as client:
                source, rate = await self._cascade.first_success(lambda s: s.fetch(client, base, quote))
        except RateProviderExhausted as e:
            logger.warning(f"All rate sources failed for {base}/{quote}: {'; '.join(e.errors)}")
            return self._approximate(base, quote)

        result = RateQuote(base, quote, rate, source.name)
        if self.cache_ttl_seconds > 0:
            self._quotes.set(memo_key, result, ttl_seconds=self.cache_ttl_seconds)
        return result

    async def get_rate(self, from_currency: str, to_currency: str) -> float:
        return (await self.get_quote(from_currency, to_currency)).rate

    async def convert(self, amount: float, from_currency: str, to_currency: str) -> float:
        try:
            value = float(amount)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Amount must be a number: {amount!r}") from e
        if not math.isfinite(value):
            raise ValidationError(f"Amount must be finite: {amount!r}")
        if _currency(from_currency) == _currency(to_currency):
            return value
        return (await self.get_quote(from_currency, to_currency)).convert(value)

    async def rate_to_base(self, currency: str) -> RateQuote:
        """Units of ``currency`` per one unit of the base currency."""
        return await self.get_quote(self.base_currency, currency)

    async def check_providers(self) -> Dict[str, bool]:
        async with http_client(self._client) as client:
            return await self._cascade.probe(lambda s: s.fetch(client, "USD", "EUR"))

    def clear_memo(self) -> None:
        self._quotes.clear()

    @staticmethod
    def _approximate(base: str, quote: str) -> RateQuote:
        rate = static_cross_rate(base, quote)
        logger.info(f"Using approximate static rate {base}/{quote} = {rate:.6g}")
        return RateQuote(base, quote, rate, APPROXIMATE_SOURCE, approximate=True)
