"""Merge a provider answer with the local heuristic guess.

Precedence:
1. A successful provider is authoritative. Agreement with the heuristic only
   raises confidence.
2. The heuristic may override a provider only when that is switched on, its
   confidence strictly exceeds the override threshold and the two disagree.
3. Without a provider answer, the heuristic candidate is used if it clears
   the minimum confidence; otherwise the static default location.
"""
from __future__ import annotations

from typing import Optional, Union

from geocurrency.location.heuristics import DEFAULT_CANDIDATES, MIN_CONFIDENCE
from geocurrency.location.models import (
    DEFAULT_LOCATION,
    UNKNOWN,
    CascadeFailure,
    HeuristicSignal,
    LocationResult,
    NormalizedLocation,
)
from geocurrency.utils.logging import get_logger


logger = get_logger(__name__)

PROVIDER_CONFIDENCE = 0.9
AGREEMENT_CONFIDENCE = 0.95
OVERRIDE_THRESHOLD = 0.9


def _canonical_timezone(country_code: str) -> str:
    for profile in DEFAULT_CANDIDATES:
        if profile.country_code == country_code and profile.timezones:
            return profile.timezones[0]
    return UNKNOWN


class ConfidenceArbiter:
    def __init__(
        self,
        allow_heuristic_override: bool = False,
        override_threshold: float = OVERRIDE_THRESHOLD,
        min_confidence: float = MIN_CONFIDENCE,
        provider_confidence: float = PROVIDER_CONFIDENCE,
        agreement_confidence: float = AGREEMENT_CONFIDENCE,
        default_location: LocationResult = DEFAULT_LOCATION,
    ):
        self.allow_heuristic_override = allow_heuristic_override
        self.override_threshold = override_threshold
        self.min_confidence = min_confidence
        self.provider_confidence = provider_confidence
        self.agreement_confidence = agreement_confidence
        self.default_location = default_location

    def merge(
        self,
        provider_result: Union[NormalizedLocation, CascadeFailure, None],
        heuristic: Optional[HeuristicSignal],
        observed_timezone: Optional[str] = None,
    ) -> LocationResult:
        heuristic = heuristic or HeuristicSignal.empty()
        if isinstance(provider_result, NormalizedLocation):
            return self._merge_provider(provider_result, heuristic, observed_timezone)
        return self._fallback(heuristic, observed_timezone)

    def _merge_provider(
        self,
        location: NormalizedLocation,
        heuristic: HeuristicSignal,
        observed_timezone: Optional[str],
    ) -> LocationResult:
        name = location.source or "unknown"
        candidate = heuristic.candidate_country_code

        if candidate and candidate != location.country_code:
            if self.allow_heuristic_override and heuristic.confidence > self.override_threshold:
                logger.info(
                    f"Heuristic {candidate} ({heuristic.confidence:.2f}) overrides "
                    f"{name} answer {location.country_code}"
                )
                return LocationResult.build(
                    candidate,
                    timezone=observed_timezone or _canonical_timezone(candidate),
                    ip=location.ip,
                    detection_method=f"heuristic-override:{name}",
                    confidence=heuristic.confidence,
                )
            logger.debug(
                f"Heuristic {candidate} ({heuristic.confidence:.2f}) disagrees with {name}; provider wins"
            )

        if candidate == location.country_code:
            return LocationResult.from_normalized(
                location,
                detection_method=f"provider:{name}+heuristic",
                confidence=self.agreement_confidence,
            )
        return LocationResult.from_normalized(
            location,
            detection_method=f"provider:{name}",
            confidence=self.provider_confidence,
        )

    def _fallback(self, heuristic: HeuristicSignal, observed_timezone: Optional[str]) -> LocationResult:
        candidate = heuristic.candidate_country_code
        if candidate and heuristic.confidence >= self.min_confidence:
            logger.info(f"No provider answer; using heuristic guess {candidate} ({heuristic.confidence:.2f})")
            return LocationResult.build(
                candidate,
                timezone=observed_timezone or _canonical_timezone(candidate),
                detection_method="heuristic",
                confidence=heuristic.confidence,
            )
        logger.warning("No provider answer and no usable heuristic; using default location")
        return self.default_location
