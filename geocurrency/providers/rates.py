"""Exchange-rate quote sources.

Each source knows how to ask for one BASE->QUOTE pair and how to dig the
rate out of its own response shape.
"""
from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import httpx

from geocurrency.providers.base import DEFAULT_TIMEOUT, NamedSource, SourceSettings, get_json
from geocurrency.utils.errors import ProviderMalformedResponse
from geocurrency.utils.logging import get_logger


logger = get_logger(__name__)


ParamsBuilder = Callable[[str, str, Optional[str]], Dict[str, str]]
RateParser = Callable[[Mapping[str, Any], str, str], Any]


def _positive_rate(value: Any, source: str, pair: str) -> float:
    try:
        rate = float(value)
    except (TypeError, ValueError):
        raise ProviderMalformedResponse(f"{source}: no usable rate for {pair} ({value!r})", source)
    if not math.isfinite(rate) or rate <= 0:
        raise ProviderMalformedResponse(f"{source}: non-positive rate for {pair} ({rate})", source)
    return rate


def _check_success(data: Mapping[str, Any], source: str) -> None:
    # apilayer-style APIs answer 200 with {"success": false, "error": {...}}
    if data.get("success", True) is False:
        error = data.get("error") or {}
        if isinstance(error, Mapping):
            detail = f"{error.get('type', 'unknown')} - {error.get('info', 'no details')}"
        else:
            detail = str(error)
        raise ProviderMalformedResponse(f"{source}: API error: {detail}", source)


# ---- params builders: (BASE, QUOTE, api_key) -> query ----

def _no_params(base: str, quote: str, api_key: Optional[str]) -> Dict[str, str]:
    return {}


def _freeforex_params(base: str, quote: str, api_key: Optional[str]) -> Dict[str, str]:
    return {"pairs": f"{base}{quote}"}


def _apilayer_params(base: str, quote: str, api_key: Optional[str]) -> Dict[str, str]:
    params = {"source": base, "currencies": quote}
    if api_key:
        params["access_key"] = api_key
    return params


def _fixer_params(base: str, quote: str, api_key: Optional[str]) -> Dict[str, str]:
    params = {"base": base, "symbols": quote}
    if api_key:
        params["access_key"] = api_key
    return params


def _freecurrency_params(base: str, quote: str, api_key: Optional[str]) -> Dict[str, str]:
    params = {"base_currency": base, "currencies": quote}
    if api_key:
        params["apikey"] = api_key
    return params


# ---- parsers: (data, BASE, QUOTE) -> raw rate value ----

def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, Mapping):
        raise ProviderMalformedResponse(f"'{key}' is not an object (got {type(value).__name__})")
    return value


def parse_rates_table(data: Mapping[str, Any], base: str, quote: str) -> Any:
    """{"rates": {"EUR": 0.92, ...}}"""
    return _section(data, "rates").get(quote)


def parse_freeforex(data: Mapping[str, Any], base: str, quote: str) -> Any:
    """{"rates": {"USDEUR": {"rate": 0.92, "timestamp": ...}}}"""
    entry = _section(data, "rates").get(f"{base}{quote}") or {}
    return entry.get("rate") if isinstance(entry, Mapping) else None


def parse_quotes(data: Mapping[str, Any], base: str, quote: str) -> Any:
    """{"quotes": {"USDEUR": 0.92}}"""
    return _section(data, "quotes").get(f"{base}{quote}")


def parse_data_table(data: Mapping[str, Any], base: str, quote: str) -> Any:
    """{"data": {"EUR": 0.92}}"""
    return _section(data, "data").get(quote)


@dataclass(frozen=True)
class RateSource(NamedSource):
    name: str
    endpoint: str  # may contain "{base}"
    parser: RateParser
    params_builder: ParamsBuilder = _no_params
    timeout: float = DEFAULT_TIMEOUT
    api_key: Optional[str] = None

    async def fetch(self, client: httpx.AsyncClient, base: str, quote: str) -> float:
        base, quote = base.upper(), quote.upper()
        url = self.endpoint.format(base=base)
        params = self.params_builder(base, quote, self.api_key)
        data = await get_json(client, url, provider=self.name, params=params or None, timeout=self.timeout)
        if not isinstance(data, Mapping):
            raise ProviderMalformedResponse(f"{self.name}: expected a JSON object", self.name)
        _check_success(data, self.name)
        try:
            raw = self.parser(data, base, quote)
        except ProviderMalformedResponse as e:
            raise ProviderMalformedResponse(f"{self.name}: {e}", self.name) from e
        return _positive_rate(raw, self.name, f"{base}/{quote}")


@dataclass(frozen=True)
class RateSourceSpec:
    endpoint: str
    parser: RateParser
    params_builder: ParamsBuilder = _no_params
    api_key_env: Optional[str] = None
    requires_key: bool = False


RATE_SOURCE_SPECS: Dict[str, RateSourceSpec] = {
    "exchangerate-api.com": RateSourceSpec(
        "https://api.exchangerate-api.com/v4/latest/{base}", parse_rates_table,
    ),
    "freeforexapi.com": RateSourceSpec(
        "https://api.freeforexapi.com/api/live", parse_freeforex, _freeforex_params,
    ),
    "exchangerate.host": RateSourceSpec(
        "https://api.exchangerate.host/live", parse_quotes, _apilayer_params,
        api_key_env="EXCHANGE_RATE_HOST_API_KEY", requires_key=True,
    ),
    "fixer.io": RateSourceSpec(
        "https://api.fixer.io/latest", parse_rates_table, _fixer_params,
        api_key_env="FIXER_API_KEY", requires_key=True,
    ),
    "currencylayer.com": RateSourceSpec(
        "https://api.currencylayer.com/live", parse_quotes, _apilayer_params,
        api_key_env="CURRENCYLAYER_API_KEY", requires_key=True,
    ),
    "freecurrencyapi.com": RateSourceSpec(
        "https://api.freecurrencyapi.com/v1/latest", parse_data_table, _freecurrency_params,
        api_key_env="FREE_CURRENCY_API_KEY", requires_key=True,
    ),
}

DEFAULT_RATE_ORDER = ("exchangerate-api.com", "freeforexapi.com", "exchangerate.host")


def get_rate_source(
    name: str,
    timeout: float = DEFAULT_TIMEOUT,
    api_key: Optional[str] = None,
    endpoint: Optional[str] = None,
) -> RateSource:
    """Build a rate source by canonical name (see RATE_SOURCE_SPECS)."""
    spec = RATE_SOURCE_SPECS.get(name)
    if spec is None:
        raise ValueError(f"Unknown rate source: {name}")
    return RateSource(
        name=name,
        endpoint=endpoint or spec.endpoint,
        parser=spec.parser,
        params_builder=spec.params_builder,
        timeout=float(timeout),
        api_key=api_key,
    )


def build_rate_sources(settings: Sequence[SourceSettings]) -> List[RateSource]:
    """Instantiate configured rate sources in order, skipping keyless ones that need a key."""
    sources: List[RateSource] = []
    for entry in settings:
        if not entry.enabled:
            continue
        spec = RATE_SOURCE_SPECS.get(entry.name)
        if spec is None:
            logger.warning(f"Unknown rate source in config: {entry.name}")
            continue
        key_env = entry.api_key_env or spec.api_key_env
        api_key = os.getenv(key_env) if key_env else None
        if spec.requires_key and not api_key:
            logger.warning(f"No {key_env} found, skipping rate source {entry.name}")
            continue
        sources.append(get_rate_source(entry.name, entry.timeout, api_key, entry.endpoint))

    logger.info(f"Initialized {len(sources)} exchange rate sources")
    return sources
