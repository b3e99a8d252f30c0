"""Unit tests for the confidence scoring engine."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from core.models import SourceHit
from core.reputation import categorize, quality_tier, reputation_score
from core.topics import detect_topic
from evaluation.confidence import (
    MINIMUM_BREAKDOWN,
    confidence_level,
    recency_for_age,
    score,
    score_certainty,
    score_recency,
    score_source_agreement,
    score_source_quality,
)

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

CONSISTENT_SNIPPET = (
    "Nuclear power plants operate under strict federal safety regulations "
    "with excellent operational records reported annually."
)


def make_source(
    position: int = 1,
    domain: str = "example.com",
    snippet: str = "",
    published_at: datetime | None = None,
) -> SourceHit:
    quality = reputation_score(domain)
    return SourceHit(
        position=position,
        title=f"Document {position}",
        url=f"https://{domain}/doc/{position}",
        snippet=snippet,
        domain=domain,
        quality_score=quality,
        quality_tier=quality_tier(quality),
        category=categorize(domain),
        published_at=published_at,
    )


@pytest.fixture
def nuclear_sources():
    """Ten consistent, recent, confident .gov/.edu sources."""
    domains = ["energy.gov", "mit.edu"] * 5
    return [
        make_source(
            position=i,
            domain=domain,
            snippet=f"{CONSISTENT_SNIPPET} Report {i}.",
            published_at=NOW - timedelta(days=10),
        )
        for i, domain in enumerate(domains, start=1)
    ]


class TestConfidenceLevel:
    @pytest.mark.parametrize(
        "overall,level",
        [(100, "high"), (80, "high"), (79, "medium"), (60, "medium"), (59, "low"), (0, "low")],
    )
    def test_boundaries(self, overall, level):
        assert confidence_level(overall) == level


class TestSourceQuality:
    def test_no_sources(self):
        factor = score_source_quality([])
        assert factor.score == 0
        assert factor.details == "No sources available"

    def test_rank_weighted_average(self):
        sources = [make_source(1, "nature.com"), make_source(2, "example.com")]
        # (95 * 1 + 50 * 1/2) / (1 + 1/2) = 80
        assert score_source_quality(sources).score == 80

    def test_order_matters(self):
        high_first = [make_source(1, "nature.com"), make_source(2, "reddit.com")]
        low_first = [make_source(1, "reddit.com"), make_source(2, "nature.com")]
        assert score_source_quality(high_first).score > score_source_quality(low_first).score

    def test_weight(self):
        assert score_source_quality([]).weight == 30


class TestSourceAgreement:
    def test_single_source_is_insufficient(self):
        factor = score_source_agreement([make_source(snippet="anything at all")])
        assert factor.score == 50
        assert "Insufficient" in factor.details

    def test_no_sources_is_insufficient(self):
        assert score_source_agreement([]).score == 50

    def test_safe_vs_unsafe_contradiction(self):
        sources = [
            make_source(1, snippet="this treatment is safe"),
            make_source(2, snippet="this treatment is unsafe"),
        ]
        factor = score_source_agreement(sources)
        assert factor.score < 50
        assert "contradictions" in factor.details

    def test_shared_vocabulary_counts_as_agreement(self):
        sources = [make_source(i, snippet=CONSISTENT_SNIPPET) for i in range(1, 4)]
        factor = score_source_agreement(sources)
        assert factor.score == 100
        assert factor.details == "Sources show general agreement"

    def test_unrelated_snippets_stay_neutral(self):
        sources = [
            make_source(1, snippet="the cat sat on the mat"),
            make_source(2, snippet="rain is expected tomorrow afternoon"),
        ]
        assert score_source_agreement(sources).score == 50

    def test_antonyms_match_whole_words_only(self):
        # "know" must not count as "no", "yesterday" must not count as "yes"
        sources = [
            make_source(1, snippet="we know this already"),
            make_source(2, snippet="it happened yesterday"),
        ]
        assert score_source_agreement(sources).score == 50


class TestRecency:
    def test_no_dated_sources(self):
        factor = score_recency([make_source(), make_source(2)], "general", now=NOW)
        assert factor.score == 60
        assert factor.details == "Unable to determine source dates"

    def test_undated_sources_are_excluded(self):
        sources = [
            make_source(1, published_at=NOW - timedelta(days=30)),
            make_source(2),
        ]
        # general topic: 100 - 30/3 = 90, the undated source is ignored
        assert score_recency(sources, "general", now=NOW).score == 90

    @pytest.mark.parametrize(
        "age_days,stability,expected",
        [
            (100, 0.95, 90.0),
            (4000, 0.95, 70.0),
            (100, 0.70, 90.0),
            (365, 0.60, 63.5),
            (2000, 0.70, 0.0),
            (30, 0.30, 90.0),
            (400, 0.30, 0.0),
        ],
    )
    def test_decay_curves(self, age_days, stability, expected):
        assert recency_for_age(age_days, stability) == pytest.approx(expected)

    def test_future_dates_are_capped(self):
        assert recency_for_age(-30, 0.3) == 100.0

    def test_stable_topic_tolerates_old_sources(self):
        sources = [make_source(published_at=NOW - timedelta(days=1500))]
        assert score_recency(sources, "mathematics", now=NOW).score == 90
        assert score_recency(sources, "current_events", now=NOW).score == 0

    def test_moderately_stable_topics_share_a_curve(self):
        sources = [make_source(published_at=NOW - timedelta(days=365))]
        assert score_recency(sources, "technology", now=NOW).score == 64
        assert score_recency(sources, "economics", now=NOW).score == 64
        assert score_recency(sources, "medicine", now=NOW).score == 64

    def test_naive_dates_are_treated_as_utc(self):
        naive = (NOW - timedelta(days=30)).replace(tzinfo=None)
        assert score_recency([make_source(published_at=naive)], "general", now=NOW).score == 90


class TestCertainty:
    def test_no_text(self):
        factor = score_certainty([make_source(snippet="")])
        assert factor.score == 50
        assert factor.details == "No text to analyze"

    def test_confident_language(self):
        factor = score_certainty([make_source(snippet=CONSISTENT_SNIPPET)])
        assert factor.score == 100
        assert factor.details == "Sources use confident language"

    def test_hedge_density(self):
        snippet = (
            "Studies may show that reactors operate with strong safety records across "
            "many countries over several recent decades of monitoring data"
        )
        # 1 hedge in 20 words: 100 - 1000 * 0.05 = 50
        factor = score_certainty([make_source(snippet=snippet)])
        assert factor.score == 50
        assert "1 uncertainty" in factor.details

    def test_heavy_hedging_floors_at_zero(self):
        factor = score_certainty([make_source(snippet="this may possibly work")])
        assert factor.score == 0

    def test_phrases_match_case_insensitively(self):
        snippet = "Mixed Results were reported " + " ".join(["word"] * 16)
        # 1 phrase hit in 20 words
        assert score_certainty([make_source(snippet=snippet)]).score == 50

    def test_hedges_match_whole_words(self):
        # "mayor" and "couldron" are not hedges
        snippet = "the mayor visited the couldron factory " + " ".join(["word"] * 14)
        assert score_certainty([make_source(snippet=snippet)]).score == 100


class TestScore:
    def test_empty_sources(self):
        breakdown = score([], "Is it safe?", "general", now=NOW)
        assert breakdown.overall == 0
        assert breakdown.level == "low"
        assert breakdown.factors.source_quality.details == "No sources available"

    def test_deterministic(self, nuclear_sources):
        first = score(nuclear_sources, "Is nuclear energy safe?", "general", now=NOW)
        second = score(nuclear_sources, "Is nuclear energy safe?", "general", now=NOW)
        assert first == second

    def test_weighted_sum(self, nuclear_sources):
        breakdown = score(nuclear_sources, "Is nuclear energy safe?", "general", now=NOW)
        factors = breakdown.factors
        expected = (
            factors.source_quality.score * 30
            + factors.source_agreement.score * 25
            + factors.recency_score.score * 25
            + factors.certainty_score.score * 20
        ) / 100
        assert breakdown.overall == int(expected + 0.5)
        assert [f.weight for f in (
            factors.source_quality,
            factors.source_agreement,
            factors.recency_score,
            factors.certainty_score,
        )] == [30, 25, 25, 20]

    def test_nuclear_energy_scenario_is_high(self, nuclear_sources):
        question = "Is nuclear energy safe?"
        breakdown = score(nuclear_sources, question, detect_topic(question), now=NOW)
        assert breakdown.overall >= 80
        assert breakdown.level == "high"

    def test_failure_returns_minimum_breakdown(self, nuclear_sources):
        with patch("evaluation.confidence.score_certainty", side_effect=ValueError("boom")):
            breakdown = score(nuclear_sources, "q", "general", now=NOW)
        assert breakdown == MINIMUM_BREAKDOWN
        assert breakdown.overall == 25
        assert breakdown.level == "low"
        assert breakdown.factors is None
        assert breakdown.error

    def test_malformed_input_does_not_raise(self):
        breakdown = score(None, "q", "general", now=NOW)
        assert breakdown.overall == 25
