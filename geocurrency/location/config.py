from dataclasses import dataclass, field
from typing import Any, Dict, List

from geocurrency.config import read_yaml_section
from geocurrency.location.heuristics import MIN_CONFIDENCE, OFFSET_TOLERANCE_MINUTES
from geocurrency.location.models import DEFAULT_LOCATION
from geocurrency.providers.base import DEFAULT_TIMEOUT, SourceSettings
from geocurrency.providers.geo import DEFAULT_GEO_ORDER
from geocurrency.utils.errors import ConfigurationError


@dataclass
class CacheSettings:
    enabled: bool = True
    ttl_seconds: float = 600.0
    backend: str = "memory"  # memory | sqlite
    path: str = "data/geocurrency_cache.db"


@dataclass
class HeuristicSettings:
    enabled: bool = True
    min_confidence: float = MIN_CONFIDENCE
    offset_tolerance_minutes: int = OFFSET_TOLERANCE_MINUTES


@dataclass
class ArbiterSettings:
    allow_heuristic_override: bool = False
    override_threshold: float = 0.9
    provider_confidence: float = 0.9
    agreement_confidence: float = 0.95


@dataclass
class DefaultLocationSettings:
    country_code: str = DEFAULT_LOCATION.country_code
    country: str = DEFAULT_LOCATION.country
    city: str = DEFAULT_LOCATION.city
    region: str = DEFAULT_LOCATION.region
    timezone: str = DEFAULT_LOCATION.timezone


@dataclass
class LocationConfig:
    providers: List[SourceSettings] = field(
        default_factory=lambda: [SourceSettings(name) for name in DEFAULT_GEO_ORDER]
    )
    cache: CacheSettings = field(default_factory=CacheSettings)
    heuristics: HeuristicSettings = field(default_factory=HeuristicSettings)
    arbiter: ArbiterSettings = field(default_factory=ArbiterSettings)
    default: DefaultLocationSettings = field(default_factory=DefaultLocationSettings)
    refresh_exchange_rate: bool = True

    @classmethod
    def from_yaml(cls, config_path: str = "config.yaml") -> "LocationConfig":
        return cls.from_dict(read_yaml_section(config_path, "location"))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LocationConfig":
        d = d or {}
        timeout = float(d.get("timeout", DEFAULT_TIMEOUT))

        raw_providers = d.get("providers")
        if raw_providers is None:
            providers = [SourceSettings(name, timeout=timeout) for name in DEFAULT_GEO_ORDER]
        elif isinstance(raw_providers, list):
            providers = [SourceSettings.from_value(p, timeout) for p in raw_providers]
        else:
            raise ConfigurationError("location.providers must be a list")

        c_src = d.get("cache") or {}
        cache = CacheSettings(
            enabled=bool(c_src.get("enabled", True)),
            ttl_seconds=float(c_src.get("ttl_seconds", 600)),
            backend=str(c_src.get("backend", "memory")),
            path=str(c_src.get("path", "data/geocurrency_cache.db")),
        )

        h_src = d.get("heuristics") or {}
        heuristics = HeuristicSettings(
            enabled=bool(h_src.get("enabled", True)),
            min_confidence=float(h_src.get("min_confidence", MIN_CONFIDENCE)),
            offset_tolerance_minutes=int(h_src.get("offset_tolerance_minutes", OFFSET_TOLERANCE_MINUTES)),
        )

        a_src = d.get("arbiter") or {}
        arbiter = ArbiterSettings(
            allow_heuristic_override=bool(a_src.get("allow_heuristic_override", False)),
            override_threshold=float(a_src.get("override_threshold", 0.9)),
            provider_confidence=float(a_src.get("provider_confidence", 0.9)),
            agreement_confidence=float(a_src.get("agreement_confidence", 0.95)),
        )

        def_src = d.get("default") or {}
        default = DefaultLocationSettings(
            country_code=str(def_src.get("country_code", DEFAULT_LOCATION.country_code)).lower(),
            country=str(def_src.get("country", DEFAULT_LOCATION.country)),
            city=str(def_src.get("city", DEFAULT_LOCATION.city)),
            region=str(def_src.get("region", DEFAULT_LOCATION.region)),
            timezone=str(def_src.get("timezone", DEFAULT_LOCATION.timezone)),
        )

        return cls(
            providers=providers,
            cache=cache,
            heuristics=heuristics,
            arbiter=arbiter,
            default=default,
            refresh_exchange_rate=bool(d.get("refresh_exchange_rate", True)),
        )
