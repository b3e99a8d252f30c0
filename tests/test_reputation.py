"""Unit tests for the domain reputation table and topic detection."""

import pytest

from core.models import QualityTier, SourceCategory
from core.reputation import (
    DEFAULT_QUALITY_SCORE,
    categorize,
    quality_tier,
    reputation_score,
)
from core.topics import DEFAULT_STABILITY, detect_topic, topic_stability


class TestReputationScore:
    def test_exact_match(self):
        assert reputation_score("nature.com") == 95
        assert reputation_score("wikipedia.org") == 70

    def test_suffix_pattern_match(self):
        assert reputation_score("energy.gov") == 95
        assert reputation_score("mit.edu") == 90

    def test_subdomain_match(self):
        assert reputation_score("news.bbc.co.uk") == 80
        assert reputation_score("en.wikipedia.org") == 70
        assert reputation_score("nhs.gov.uk") == 95

    @pytest.mark.parametrize("domain", ["microsoft.com", "fun.org", "my.education.com"])
    def test_match_is_label_aligned(self, domain):
        assert reputation_score(domain) == DEFAULT_QUALITY_SCORE

    def test_unknown_domain_gets_default(self):
        assert reputation_score("example.net") == DEFAULT_QUALITY_SCORE

    def test_case_insensitive(self):
        assert reputation_score("Nature.COM") == 95

    def test_low_reputation_platforms(self):
        assert reputation_score("reddit.com") == 30
        assert reputation_score("old.reddit.com") == 30


class TestQualityTier:
    @pytest.mark.parametrize(
        "score,tier",
        [
            (95, QualityTier.HIGH),
            (85, QualityTier.HIGH),
            (84, QualityTier.MEDIUM),
            (70, QualityTier.MEDIUM),
            (69, QualityTier.LIMITED),
            (50, QualityTier.LIMITED),
        ],
    )
    def test_tier_thresholds(self, score, tier):
        assert quality_tier(score) is tier


class TestCategorize:
    @pytest.mark.parametrize(
        "domain,category",
        [
            ("energy.gov", SourceCategory.GOVERNMENT),
            ("nhs.gov.uk", SourceCategory.GOVERNMENT),
            ("stanford.edu", SourceCategory.ACADEMIC),
            ("ox.ac.uk", SourceCategory.ACADEMIC),
            ("who.int", SourceCategory.INTERNATIONAL_ORG),
            ("nature.com", SourceCategory.SCIENTIFIC_JOURNAL),
            ("reuters.com", SourceCategory.NEWS_AGENCY),
            ("politifact.com", SourceCategory.FACT_CHECKER),
            ("en.wikipedia.org", SourceCategory.ENCYCLOPEDIA),
            ("someone.substack.com", SourceCategory.BLOG),
            ("techblog.example.com", SourceCategory.BLOG),
            ("example.com", SourceCategory.WEBSITE),
        ],
    )
    def test_category_rules(self, domain, category):
        assert categorize(domain) is category

    def test_government_takes_priority_over_journal(self):
        assert categorize("pubmed.ncbi.nlm.nih.gov") is SourceCategory.GOVERNMENT


class TestTopics:
    @pytest.mark.parametrize(
        "question,topic",
        [
            ("How do I solve this algebra equation?", "mathematics"),
            ("What caused the French Revolution?", "history"),
            ("What is the capital of Australia?", "geography"),
            ("Is this cancer treatment effective?", "medicine"),
            ("What is the latest news on the strike?", "current_events"),
            ("Should I buy bitcoin?", "cryptocurrency"),
            ("Is nuclear energy safe?", "general"),
        ],
    )
    def test_detect_topic(self, question, topic):
        assert detect_topic(question) == topic

    def test_first_matching_rule_wins(self):
        # mentions both history and medicine; history is checked first
        assert detect_topic("What is the history of medicine?") == "history"

    def test_stability(self):
        assert topic_stability("mathematics") == 0.95
        assert topic_stability("current_events") == 0.30
        assert topic_stability("general") == DEFAULT_STABILITY
