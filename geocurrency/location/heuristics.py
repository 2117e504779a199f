from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from geocurrency.location.models import HeuristicSignal
from geocurrency.utils.logging import get_logger


logger = get_logger(__name__)

TIMEZONE_WEIGHT = 0.6
LANGUAGE_WEIGHT = 0.3
OFFSET_WEIGHT = 0.1
OFFSET_TOLERANCE_MINUTES = 30
MIN_CONFIDENCE = 0.3


@dataclass(frozen=True)
class CountryProfile:
    """Local-environment fingerprint of one candidate country."""

    country_code: str
    timezones: Tuple[str, ...]
    languages: Tuple[str, ...]  # full tags ("en-NG") or primary subtags unique to the country ("yo")
    utc_offset_minutes: int


DEFAULT_CANDIDATES: Tuple[CountryProfile, ...] = (
    CountryProfile("ng", ("Africa/Lagos",), ("en-ng", "ha", "ig", "yo", "pcm"), 60),
    CountryProfile("gh", ("Africa/Accra",), ("en-gh", "ak", "tw", "ee-gh", "gaa"), 0),
    CountryProfile("ke", ("Africa/Nairobi",), ("en-ke", "sw-ke", "ki", "luo"), 180),
    CountryProfile("za", ("Africa/Johannesburg",), ("en-za", "af", "zu", "xh", "st-za", "tn-za"), 120),
)


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """Read-only view of the process environment used for guessing a country."""

    timezone: Optional[str] = None
    languages: List[str] = field(default_factory=list)
    utc_offset_minutes: Optional[int] = None

    @classmethod
    def capture(cls) -> "EnvironmentSnapshot":
        return cls(
            timezone=_system_timezone(),
            languages=_language_preferences(),
            utc_offset_minutes=time.localtime().tm_gmtoff // 60,
        )


def _system_timezone() -> Optional[str]:
    tz = os.getenv("TZ", "").lstrip(":").strip()
    if tz and "/" in tz:
        return tz
    etc_timezone = Path("/etc/timezone")
    try:
        if etc_timezone.is_file():
            value = etc_timezone.read_text().strip()
            if value:
                return value
        localtime = Path("/etc/localtime")
        if localtime.is_symlink():
            target = str(localtime.resolve())
            if "zoneinfo/" in target:
                return target.split("zoneinfo/", 1)[1]
    except OSError as e:
        logger.debug(f"Could not read system timezone: {e}")
    return tz or None


def _language_preferences() -> List[str]:
    """POSIX locale variables in priority order, as BCP-47-ish tags."""
    raw: List[str] = []
    language = os.getenv("LANGUAGE")
    if language:
        raw.extend(language.split(":"))
    for var in ("LC_ALL", "LC_MESSAGES", "LANG"):
        value = os.getenv(var)
        if value:
            raw.append(value)

    tags: List[str] = []
    for item in raw:
        tag = item.split(".", 1)[0].split("@", 1)[0].replace("_", "-").strip()
        if tag and tag.upper() not in {"C", "POSIX"} and tag not in tags:
            tags.append(tag)
    return tags


class HeuristicSignalDetector:
    """Weighted country guess from timezone, language and clock offset. No network."""

    def __init__(
        self,
        candidates: Sequence[CountryProfile] = DEFAULT_CANDIDATES,
        min_confidence: float = MIN_CONFIDENCE,
        offset_tolerance_minutes: int = OFFSET_TOLERANCE_MINUTES,
    ):
        self.candidates = tuple(candidates)
        self.min_confidence = min_confidence
        self.offset_tolerance_minutes = offset_tolerance_minutes

    def detect(self, snapshot: Optional[EnvironmentSnapshot] = None) -> HeuristicSignal:
        try:
            env = snapshot if snapshot is not None else EnvironmentSnapshot.capture()
            return self._score(env)
        except Exception as e:  # a guess is optional; never let it break resolution
            logger.warning(f"Heuristic detection failed, ignoring: {e}")
            return HeuristicSignal.empty()

    def _score(self, env: EnvironmentSnapshot) -> HeuristicSignal:
        languages = [lang.lower() for lang in (env.languages or [])]
        scores: Dict[str, Tuple[float, List[str]]] = {}

        for profile in self.candidates:
            score = 0.0
            indicators: List[str] = []

            if env.timezone and env.timezone in profile.timezones:
                score += TIMEZONE_WEIGHT
                indicators.append(f"timezone:{env.timezone}")

            matched = self._language_match(profile, languages)
            if matched:
                score += LANGUAGE_WEIGHT
                indicators.append(f"language:{matched}")

            if env.utc_offset_minutes is not None and (
                abs(env.utc_offset_minutes - profile.utc_offset_minutes) <= self.offset_tolerance_minutes
            ):
                score += OFFSET_WEIGHT
                indicators.append(f"utc_offset:{env.utc_offset_minutes:+d}m")

            scores[profile.country_code] = (min(1.0, round(score, 6)), indicators)

        best_code: Optional[str] = None
        best_score = 0.0
        for profile in self.candidates:
            score, _ = scores[profile.country_code]
            if score > best_score:
                best_code, best_score = profile.country_code, score

        if best_code is None or best_score < self.min_confidence:
            logger.debug(f"No heuristic candidate above {self.min_confidence} (best={best_score:.2f})")
            return HeuristicSignal.empty()

        indicators = scores[best_code][1]
        logger.debug(f"Heuristic guess {best_code} ({best_score:.2f}): {', '.join(indicators)}")
        return HeuristicSignal(candidate_country_code=best_code, confidence=best_score, indicators=indicators)

    @staticmethod
    def _language_match(profile: CountryProfile, languages: List[str]) -> Optional[str]:
        for lang in languages:
            primary = lang.split("-", 1)[0]
            for tag in profile.languages:
                if lang == tag or ("-" not in tag and primary == tag):
                    return lang
        return None
