"""Data contracts for the location resolution pipeline."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional

from geocurrency.currency import table
from geocurrency.utils.errors import ValidationError


UNKNOWN = "Unknown"
UNKNOWN_IP = "unknown"


def _valid_country_code(code: Any) -> bool:
    return isinstance(code, str) and len(code) == 2 and code.isalpha() and code == code.lower()


@dataclass(frozen=True)
class NormalizedLocation:
    """Provider-independent location produced by a normalizer."""

    country_code: str
    country_name: str
    city: str = UNKNOWN
    region: str = UNKNOWN
    timezone: str = UNKNOWN
    ip: str = UNKNOWN_IP
    source: str = ""  # provider name, filled in by the cascade


@dataclass(frozen=True)
class CascadeFailure:
    """Every provider of a cascade failed; ``errors`` keeps one line per attempt."""

    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class HeuristicSignal:
    candidate_country_code: Optional[str] = None
    confidence: float = 0.0
    indicators: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "HeuristicSignal":
        return cls()


@dataclass(frozen=True)
class LocationResult:
    """Immutable outcome of one location resolution.

    Currency, symbol, African flag and gateway are never chosen freely:
    they follow from ``country_code`` through the currency table. Use
    :meth:`build` to construct one; direct construction is validated.
    """

    country: str
    country_code: str
    city: str
    region: str
    timezone: str
    ip: str
    currency_code: str
    currency_symbol: str
    exchange_rate_to_base: float
    is_african: bool
    recommended_gateway: str
    detection_method: str
    confidence: float

    def __post_init__(self) -> None:
        if not _valid_country_code(self.country_code):
            raise ValidationError(f"Invalid country code: {self.country_code!r}")
        if not isinstance(self.confidence, (int, float)) or not 0.0 <= self.confidence <= 1.0:
            raise ValidationError(f"Confidence out of range: {self.confidence!r}")
        if self.currency_code != table.currency_for(self.country_code):
            raise ValidationError(
                f"Currency {self.currency_code!r} does not match country {self.country_code!r}"
            )
        if self.currency_symbol != table.symbol_for(self.currency_code):
            raise ValidationError(f"Symbol {self.currency_symbol!r} does not match {self.currency_code!r}")
        if self.is_african != table.is_african(self.country_code):
            raise ValidationError(f"is_african mismatch for {self.country_code!r}")
        if self.recommended_gateway != ("paystack" if self.is_african else "stripe"):
            raise ValidationError(f"Gateway {self.recommended_gateway!r} inconsistent with region")
        rate = self.exchange_rate_to_base
        if not isinstance(rate, (int, float)) or not math.isfinite(rate) or rate <= 0:
            raise ValidationError(f"Invalid exchange rate: {rate!r}")
        if not self.detection_method:
            raise ValidationError("detection_method is required")

    @classmethod
    def build(
        cls,
        country_code: str,
        *,
        detection_method: str,
        confidence: float,
        country: Optional[str] = None,
        city: str = UNKNOWN,
        region: str = UNKNOWN,
        timezone: str = UNKNOWN,
        ip: str = UNKNOWN_IP,
        exchange_rate_to_base: Optional[float] = None,
    ) -> "LocationResult":
        code = (country_code or "").strip().lower()
        currency = table.lookup(code)
        african = table.is_african(code)
        return cls(
            country=country or table.country_name(code),
            country_code=code,
            city=city or UNKNOWN,
            region=region or UNKNOWN,
            timezone=timezone or UNKNOWN,
            ip=ip or UNKNOWN_IP,
            currency_code=currency.currency_code,
            currency_symbol=table.symbol_for(currency.currency_code),
            exchange_rate_to_base=(
                float(exchange_rate_to_base) if exchange_rate_to_base else currency.approx_rate
            ),
            is_african=african,
            recommended_gateway="paystack" if african else "stripe",
            detection_method=detection_method,
            confidence=max(0.0, min(1.0, float(confidence))),
        )

    @classmethod
    def from_normalized(
        cls, location: NormalizedLocation, *, detection_method: str, confidence: float
    ) -> "LocationResult":
        return cls.build(
            location.country_code,
            country=location.country_name,
            city=location.city,
            region=location.region,
            timezone=location.timezone,
            ip=location.ip,
            detection_method=detection_method,
            confidence=confidence,
        )

    @property
    def flag(self) -> str:
        return table.flag_for(self.country_code)

    @property
    def display_name(self) -> str:
        if self.city and self.city != UNKNOWN:
            return f"{self.city}, {self.country}"
        return self.country or "Unknown Location"

    def with_exchange_rate(self, rate: float) -> "LocationResult":
        return replace(self, exchange_rate_to_base=float(rate))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocationResult":
        """Rebuild from a persisted dict, re-checking every invariant."""
        if not isinstance(data, dict):
            raise ValidationError("LocationResult payload must be a mapping")
        names = cls.__dataclass_fields__.keys()
        missing = [n for n in names if n not in data]
        if missing:
            raise ValidationError(f"LocationResult payload missing fields: {missing}")
        return cls(**{n: data[n] for n in names})


DEFAULT_LOCATION = LocationResult.build(
    "us",
    country="United States",
    city="New York",
    region="New York",
    timezone="America/New_York",
    detection_method="default",
    confidence=0.0,
)


@dataclass
class CacheEntry:
    result: LocationResult
    created_at: float  # epoch seconds

    def is_valid(self, now: float, ttl_seconds: float) -> bool:
        return now - self.created_at < ttl_seconds

    def to_dict(self) -> Dict[str, Any]:
        return {"result": self.result.to_dict(), "created_at": self.created_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        if not isinstance(data, dict) or "result" not in data or "created_at" not in data:
            raise ValidationError("Cache entry must contain 'result' and 'created_at'")
        created_at = data["created_at"]
        if not isinstance(created_at, (int, float)):
            raise ValidationError(f"Invalid created_at: {created_at!r}")
        return cls(result=LocationResult.from_dict(data["result"]), created_at=float(created_at))
