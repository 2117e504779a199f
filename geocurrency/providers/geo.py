"""Geolocation providers, their normalizers, and the ordered provider cascade.

Every provider speaks its own JSON dialect. A provider is a tagged variant:
a name plus a ``normalize(raw) -> NormalizedLocation`` function. Raw payloads
never leave this module.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import httpx

from geocurrency.currency.table import country_name
from geocurrency.location.models import (
    UNKNOWN,
    UNKNOWN_IP,
    CascadeFailure,
    NormalizedLocation,
)
from geocurrency.providers.base import (
    DEFAULT_TIMEOUT,
    Cascade,
    NamedSource,
    SourceSettings,
    get_json,
    http_client,
)
from geocurrency.utils.decorators import log_execution
from geocurrency.utils.errors import AllProvidersExhausted, ProviderMalformedResponse
from geocurrency.utils.logging import get_logger


logger = get_logger(__name__)

Normalizer = Callable[[Mapping[str, Any]], NormalizedLocation]


# ---- normalizer helpers ----

def _text(value: Any, default: str = UNKNOWN) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _country_code(value: Any, provider: str) -> str:
    code = _text(value, "").lower()
    if len(code) != 2 or not code.isalpha():
        raise ProviderMalformedResponse(f"{provider}: missing or invalid country code {value!r}", provider)
    return code


def _require_mapping(raw: Any, provider: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ProviderMalformedResponse(f"{provider}: expected a JSON object", provider)
    return raw


def _nested(raw: Mapping[str, Any], key: str, inner: str) -> Any:
    value = raw.get(key)
    if isinstance(value, Mapping):
        return value.get(inner)
    return value


# ---- per-provider normalizers ----

def normalize_ipapi(raw: Mapping[str, Any]) -> NormalizedLocation:
    raw = _require_mapping(raw, "ipapi.co")
    if raw.get("error"):
        raise ProviderMalformedResponse(f"ipapi.co: {raw.get('reason', 'error response')}", "ipapi.co")
    code = _country_code(raw.get("country_code"), "ipapi.co")
    return NormalizedLocation(
        country_code=code,
        country_name=_text(raw.get("country_name"), code.upper()),
        city=_text(raw.get("city")),
        region=_text(raw.get("region")),
        timezone=_text(raw.get("timezone")),
        ip=_text(raw.get("ip"), UNKNOWN_IP),
    )


def normalize_ipinfo(raw: Mapping[str, Any]) -> NormalizedLocation:
    raw = _require_mapping(raw, "ipinfo.io")
    if raw.get("bogon"):
        raise ProviderMalformedResponse("ipinfo.io: address is a bogon", "ipinfo.io")
    code = _country_code(raw.get("country"), "ipinfo.io")
    return NormalizedLocation(
        country_code=code,
        country_name=country_name(code),
        city=_text(raw.get("city")),
        region=_text(raw.get("region")),
        timezone=_text(raw.get("timezone")),
        ip=_text(raw.get("ip"), UNKNOWN_IP),
    )


def normalize_ip_api(raw: Mapping[str, Any]) -> NormalizedLocation:
    raw = _require_mapping(raw, "ip-api.com")
    if raw.get("status") not in (None, "success"):
        raise ProviderMalformedResponse(f"ip-api.com: {raw.get('message', 'lookup failed')}", "ip-api.com")
    code = _country_code(raw.get("countryCode"), "ip-api.com")
    return NormalizedLocation(
        country_code=code,
        country_name=_text(raw.get("country"), code.upper()),
        city=_text(raw.get("city")),
        region=_text(raw.get("regionName")),
        timezone=_text(raw.get("timezone")),
        ip=_text(raw.get("query"), UNKNOWN_IP),
    )


def normalize_freegeoip(raw: Mapping[str, Any]) -> NormalizedLocation:
    raw = _require_mapping(raw, "freegeoip.app")
    code = _country_code(raw.get("country_code"), "freegeoip.app")
    return NormalizedLocation(
        country_code=code,
        country_name=_text(raw.get("country_name"), code.upper()),
        city=_text(raw.get("city")),
        region=_text(raw.get("region_name")),
        timezone=_text(raw.get("time_zone")),
        ip=_text(raw.get("ip"), UNKNOWN_IP),
    )


def normalize_ipgeolocation(raw: Mapping[str, Any]) -> NormalizedLocation:
    raw = _require_mapping(raw, "ipgeolocation.io")
    code = _country_code(raw.get("country_code2"), "ipgeolocation.io")
    return NormalizedLocation(
        country_code=code,
        country_name=_text(raw.get("country_name"), code.upper()),
        city=_text(raw.get("city")),
        region=_text(raw.get("state_prov")),
        timezone=_text(_nested(raw, "time_zone", "name")),
        ip=_text(raw.get("ip"), UNKNOWN_IP),
    )


def normalize_freeipapi(raw: Mapping[str, Any]) -> NormalizedLocation:
    raw = _require_mapping(raw, "freeipapi.com")
    code = _country_code(raw.get("countryCode"), "freeipapi.com")
    return NormalizedLocation(
        country_code=code,
        country_name=_text(raw.get("countryName"), code.upper()),
        city=_text(raw.get("cityName")),
        region=_text(raw.get("regionName")),
        timezone=_text(raw.get("timeZone")),
        ip=_text(raw.get("ipAddress"), UNKNOWN_IP),
    )


def normalize_ipstack(raw: Mapping[str, Any]) -> NormalizedLocation:
    raw = _require_mapping(raw, "ipstack.com")
    if raw.get("success") is False:
        info = _nested(raw, "error", "info")
        raise ProviderMalformedResponse(f"ipstack.com: {info or 'error response'}", "ipstack.com")
    code = _country_code(raw.get("country_code"), "ipstack.com")
    return NormalizedLocation(
        country_code=code,
        country_name=_text(raw.get("country_name"), code.upper()),
        city=_text(raw.get("city")),
        region=_text(raw.get("region_name")),
        timezone=_text(_nested(raw, "time_zone", "id")),
        ip=_text(raw.get("ip"), UNKNOWN_IP),
    )


# ---- provider variant ----

@dataclass(frozen=True)
class GeoProvider(NamedSource):
    name: str
    endpoint: str
    normalizer: Normalizer
    ip_endpoint: Optional[str] = None  # may contain "{ip}"
    ip_param: Optional[str] = None  # query parameter carrying the ip instead
    timeout: float = DEFAULT_TIMEOUT
    api_key: Optional[str] = None
    api_key_param: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)

    def request_for(self, ip: Optional[str] = None) -> tuple:
        params = dict(self.params)
        if self.api_key and self.api_key_param:
            params[self.api_key_param] = self.api_key
        url = self.endpoint
        if ip:
            if self.ip_param:
                params[self.ip_param] = ip
            elif self.ip_endpoint:
                url = self.ip_endpoint.format(ip=ip)
        return url, params

    def normalize(self, raw: Any) -> NormalizedLocation:
        return replace(self.normalizer(raw), source=self.name)

    async def fetch(self, client: httpx.AsyncClient, ip: Optional[str] = None) -> NormalizedLocation:
        url, params = self.request_for(ip)
        raw = await get_json(client, url, provider=self.name, params=params or None, timeout=self.timeout)
        return self.normalize(raw)


@dataclass(frozen=True)
class GeoProviderSpec:
    """Built-in endpoint knowledge for one provider."""

    endpoint: str
    normalizer: Normalizer
    ip_endpoint: Optional[str] = None
    ip_param: Optional[str] = None
    api_key_param: Optional[str] = None
    api_key_env: Optional[str] = None
    requires_key: bool = False


GEO_PROVIDER_SPECS: Dict[str, GeoProviderSpec] = {
    "ipapi.co": GeoProviderSpec(
        "https://ipapi.co/json/", normalize_ipapi, ip_endpoint="https://ipapi.co/{ip}/json/",
    ),
    "ipinfo.io": GeoProviderSpec(
        "https://ipinfo.io/json", normalize_ipinfo, ip_endpoint="https://ipinfo.io/{ip}/json",
        api_key_param="token", api_key_env="IPINFO_TOKEN",
    ),
    "ip-api.com": GeoProviderSpec(
        "http://ip-api.com/json/", normalize_ip_api, ip_endpoint="http://ip-api.com/json/{ip}",
    ),
    "freegeoip.app": GeoProviderSpec(
        "https://freegeoip.app/json/", normalize_freegeoip, ip_endpoint="https://freegeoip.app/json/{ip}",
    ),
    "ipgeolocation.io": GeoProviderSpec(
        "https://api.ipgeolocation.io/ipgeo", normalize_ipgeolocation, ip_param="ip",
        api_key_param="apiKey", api_key_env="IPGEOLOCATION_API_KEY",
    ),
    "freeipapi.com": GeoProviderSpec(
        "https://freeipapi.com/api/json", normalize_freeipapi, ip_endpoint="https://freeipapi.com/api/json/{ip}",
    ),
    "ipstack.com": GeoProviderSpec(
        "https://api.ipstack.com/check", normalize_ipstack, ip_endpoint="https://api.ipstack.com/{ip}",
        api_key_param="access_key", api_key_env="IPSTACK_API_KEY", requires_key=True,
    ),
}

DEFAULT_GEO_ORDER = ("ipapi.co", "ipinfo.io", "ip-api.com", "freegeoip.app")


def get_geo_provider(
    name: str,
    timeout: float = DEFAULT_TIMEOUT,
    api_key: Optional[str] = None,
    endpoint: Optional[str] = None,
) -> GeoProvider:
    """Build a provider by canonical name (see GEO_PROVIDER_SPECS)."""
    spec = GEO_PROVIDER_SPECS.get(name)
    if spec is None:
        raise ValueError(f"Unknown geolocation provider: {name}")
    return GeoProvider(
        name=name,
        endpoint=endpoint or spec.endpoint,
        normalizer=spec.normalizer,
        ip_endpoint=spec.ip_endpoint,
        ip_param=spec.ip_param,
        timeout=float(timeout),
        api_key=api_key,
        api_key_param=spec.api_key_param,
    )


def build_geo_providers(settings: Sequence[SourceSettings]) -> List[GeoProvider]:
    """Instantiate configured providers in order.

    Disabled entries and unknown names are dropped. Providers that need an
    API key are skipped with a warning when the key is not in the environment.
    """
    providers: List[GeoProvider] = []
    for entry in settings:
        if not entry.enabled:
            logger.debug(f"Geolocation provider {entry.name} disabled")
            continue
        spec = GEO_PROVIDER_SPECS.get(entry.name)
        if spec is None:
            logger.warning(f"Unknown geolocation provider in config: {entry.name}")
            continue
        key_env = entry.api_key_env or spec.api_key_env
        api_key = os.getenv(key_env) if key_env else None
        if spec.requires_key and not api_key:
            logger.warning(f"No {key_env} found, skipping geolocation provider {entry.name}")
            continue
        providers.append(get_geo_provider(entry.name, entry.timeout, api_key, entry.endpoint))

    logger.info(f"Initialized {len(providers)} geolocation providers")
    return providers


# ---- cascade ----

class ProviderCascade:
    """Geolocation cascade: providers in priority order, first usable answer wins."""

    def __init__(self, providers: Sequence[GeoProvider], client: Optional[httpx.AsyncClient] = None):
        self._cascade: Cascade[GeoProvider] = Cascade(providers, AllProvidersExhausted, label="geolocation")
        self._client = client

    @property
    def providers(self) -> List[GeoProvider]:
        return self._cascade.sources

    @log_execution(log_args=False)
    async def resolve(self, ip: Optional[str] = None) -> Union[NormalizedLocation, CascadeFailure]:
        if not self.providers:
            logger.warning("No geolocation providers configured")
            return CascadeFailure(errors=["no providers configured"])

        async with http_client(self._client) as client:
            try:
                _, location = await self._cascade.first_success(lambda p: p.fetch(client, ip))
            except AllProvidersExhausted as e:
                return CascadeFailure(errors=e.errors)
        return location

    async def check_providers(self) -> Dict[str, bool]:
        async with http_client(self._client) as client:
            return await self._cascade.probe(lambda p: p.fetch(client))
