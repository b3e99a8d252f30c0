"""Multi-factor confidence scoring over classified sources."""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from itertools import combinations

import numpy as np

from core.models import (
    ConfidenceBreakdown,
    ConfidenceFactor,
    ConfidenceFactors,
    ConfidenceLevel,
    QualityTier,
    SourceHit,
)
from core.topics import DEFAULT_TOPIC, topic_stability

logger = logging.getLogger(__name__)

SOURCE_QUALITY_WEIGHT = 30
SOURCE_AGREEMENT_WEIGHT = 25
RECENCY_WEIGHT = 25
CERTAINTY_WEIGHT = 20

HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 60

MINIMUM_BREAKDOWN = ConfidenceBreakdown(
    overall=25,
    level="low",
    factors=None,
    error="Unable to calculate confidence accurately",
)

CONTRADICTORY_PAIRS: tuple[tuple[str, str], ...] = (
    ("yes", "no"),
    ("true", "false"),
    ("safe", "dangerous"),
    ("safe", "unsafe"),
    ("effective", "ineffective"),
    ("proven", "unproven"),
    ("confirmed", "debunked"),
    ("increase", "decrease"),
    ("positive", "negative"),
)

UNCERTAINTY_PHRASES: tuple[str, ...] = (
    "may", "might", "could", "possibly", "potentially", "preliminary",
    "suggests", "indicates", "appears", "seems", "likely", "unlikely",
    "estimated", "approximately", "roughly", "around", "about",
    "controversial", "debated", "disputed", "unclear", "uncertain",
    "no consensus", "mixed results", "conflicting", "varies",
    "further research needed", "more studies required", "limited data",
)

_UNCERTAINTY_PATTERNS = tuple(
    re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE) for phrase in UNCERTAINTY_PHRASES
)

WORD_PATTERN = re.compile(r"[a-z0-9]+(?:['-][a-z0-9]+)*")

MIN_SHARED_WORDS = 5
MIN_SHARED_WORD_LENGTH = 4


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def tokenize(text: str) -> list[str]:
    return WORD_PATTERN.findall(text.lower())


def confidence_level(overall: int) -> ConfidenceLevel:
    if overall >= HIGH_CONFIDENCE:
        return "high"
    if overall >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def score_source_quality(sources: list[SourceHit]) -> ConfidenceFactor:
    """Rank-weighted mean reputation; position i weighs 1/(i+1)."""
    if not sources:
        return ConfidenceFactor(score=0, weight=SOURCE_QUALITY_WEIGHT, details="No sources available")

    scores = np.array([source.quality_score for source in sources], dtype=float)
    weights = 1.0 / np.arange(1, len(scores) + 1)
    score = round_half_up(float(np.average(scores, weights=weights)))

    high = sum(1 for source in sources if source.quality_tier is QualityTier.HIGH)
    return ConfidenceFactor(
        score=score,
        weight=SOURCE_QUALITY_WEIGHT,
        details=f"Analyzed {len(sources)} sources, {high} from high-reputation domains",
    )


def score_source_agreement(sources: list[SourceHit]) -> ConfidenceFactor:
    """Pairwise snippet comparison for antonym contradictions and shared vocabulary."""
    if len(sources) < 2:
        return ConfidenceFactor(
            score=50,
            weight=SOURCE_AGREEMENT_WEIGHT,
            details="Insufficient sources for consensus analysis",
        )

    token_sets = [set(tokenize(source.snippet)) for source in sources]
    contradictions = 0
    agreements = 0
    for words_a, words_b in combinations(token_sets, 2):
        for term_a, term_b in CONTRADICTORY_PAIRS:
            if (term_a in words_a and term_b in words_b) or (term_b in words_a and term_a in words_b):
                contradictions += 1

        shared = {w for w in words_a & words_b if len(w) > MIN_SHARED_WORD_LENGTH}
        if len(shared) > MIN_SHARED_WORDS:
            agreements += 1

    pairs = len(sources) * (len(sources) - 1) / 2
    score = round_half_up(
        clamp(50 + (agreements / pairs) * 100 - (contradictions / pairs) * 200)
    )

    if contradictions:
        details = f"Found {contradictions} potential contradictions among sources"
    else:
        details = "Sources show general agreement"
    return ConfidenceFactor(score=score, weight=SOURCE_AGREEMENT_WEIGHT, details=details)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def recency_for_age(age_days: float, stability: float) -> float:
    if stability > 0.8:
        # Stable topics: a decade-old source is still fine
        return 90.0 if age_days < 3650 else 70.0
    if stability >= 0.6:
        return clamp(100 - age_days / 10)
    return clamp(100 - age_days / 3)


def score_recency(
    sources: list[SourceHit], topic: str, now: datetime | None = None
) -> ConfidenceFactor:
    """Average age-decayed score over dated sources; undated sources are skipped."""
    now = _as_utc(now or datetime.now(timezone.utc))

    stability = topic_stability(topic)
    scores = [
        recency_for_age((now - _as_utc(source.published_at)).total_seconds() / 86400, stability)
        for source in sources
        if source.published_at is not None
    ]

    if not scores:
        return ConfidenceFactor(score=60, weight=RECENCY_WEIGHT, details="Unable to determine source dates")

    return ConfidenceFactor(
        score=round_half_up(sum(scores) / len(scores)),
        weight=RECENCY_WEIGHT,
        details=f"Based on {len(scores)} dated sources and {topic or DEFAULT_TOPIC} topic volatility",
    )


def score_certainty(sources: list[SourceHit]) -> ConfidenceFactor:
    """Inverse hedge-word density; 10% hedging drives the score to zero."""
    total_words = 0
    hedges = 0
    for source in sources:
        text = source.snippet.lower()
        total_words += len(tokenize(text))
        hedges += sum(len(pattern.findall(text)) for pattern in _UNCERTAINTY_PATTERNS)

    if total_words == 0:
        return ConfidenceFactor(score=50, weight=CERTAINTY_WEIGHT, details="No text to analyze")

    score = round_half_up(clamp(100 - (hedges / total_words) * 1000))
    if hedges:
        details = f"Found {hedges} uncertainty indicators in text"
    else:
        details = "Sources use confident language"
    return ConfidenceFactor(score=score, weight=CERTAINTY_WEIGHT, details=details)


def score(
    sources: list[SourceHit],
    question: str,
    topic: str = DEFAULT_TOPIC,
    now: datetime | None = None,
) -> ConfidenceBreakdown:
    """Compute the weighted confidence breakdown for a set of sources.

    Never raises: any failure yields MINIMUM_BREAKDOWN.
    """
    try:
        factors = ConfidenceFactors(
            source_quality=score_source_quality(sources),
            source_agreement=score_source_agreement(sources),
            recency_score=score_recency(sources, topic, now),
            certainty_score=score_certainty(sources),
        )
        weighted = sum(
            factor.score * factor.weight
            for factor in (
                factors.source_quality,
                factors.source_agreement,
                factors.recency_score,
                factors.certainty_score,
            )
        )
        # No evidence means no confidence, whatever the neutral factor defaults
        overall = round_half_up(weighted / 100) if sources else 0
        breakdown = ConfidenceBreakdown(overall=overall, level=confidence_level(overall), factors=factors)
        logger.info(
            "Confidence calculated for %s: %d (%s)", question[:50], breakdown.overall, breakdown.level
        )
        return breakdown
    except Exception as e:
        logger.error("Error calculating confidence: %s", e)
        return MINIMUM_BREAKDOWN
