from dataclasses import dataclass, field
from typing import Any, Dict, List

from geocurrency.config import read_yaml_section
from geocurrency.currency.table import BASE_CURRENCY
from geocurrency.providers.base import DEFAULT_TIMEOUT, SourceSettings
from geocurrency.providers.rates import DEFAULT_RATE_ORDER
from geocurrency.utils.errors import ConfigurationError


@dataclass
class ExchangeConfig:
    base_currency: str = BASE_CURRENCY
    sources: List[SourceSettings] = field(
        default_factory=lambda: [SourceSettings(name) for name in DEFAULT_RATE_ORDER]
    )
    cache_ttl_seconds: float = 600.0

    @classmethod
    def from_yaml(cls, config_path: str = "config.yaml") -> "ExchangeConfig":
        return cls.from_dict(read_yaml_section(config_path, "exchange"))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ExchangeConfig":
        d = d or {}
        timeout = float(d.get("timeout", DEFAULT_TIMEOUT))

        raw_sources = d.get("sources")
        if raw_sources is None:
            sources = [SourceSettings(name, timeout=timeout) for name in DEFAULT_RATE_ORDER]
        elif isinstance(raw_sources, list):
            sources = [SourceSettings.from_value(s, timeout) for s in raw_sources]
        else:
            raise ConfigurationError("exchange.sources must be a list")

        return cls(
            base_currency=str(d.get("base_currency", BASE_CURRENCY)).lower(),
            sources=sources,
            cache_ttl_seconds=float(d.get("cache_ttl_seconds", 600)),
        )
