"""Domain reputation table, source category rules and the trusted-domain allow-list.

Lookups are deterministic: an exact key match wins, then the longest rule
pattern contained in the domain (earlier rules win ties), then the default.
Matching is label-aligned: "un.org" matches "news.un.org" but not "fun.org",
and dotted patterns such as ".edu" only match as a suffix.
"""

from __future__ import annotations

from typing import Callable

from core.models import QualityTier, SourceCategory

DEFAULT_QUALITY_SCORE = 50
HIGH_TIER_THRESHOLD = 85
MEDIUM_TIER_THRESHOLD = 70

# (pattern, score), scores on a 0-100 scale
DOMAIN_REPUTATION: tuple[tuple[str, int], ...] = (
    # Government
    (".gov", 95),
    (".gov.uk", 95),
    (".gov.ca", 95),
    (".gov.au", 95),
    # Academic
    (".edu", 90),
    (".ac.uk", 90),
    ("nature.com", 95),
    ("science.org", 95),
    ("sciencedirect.com", 90),
    ("pubmed.ncbi.nlm.nih.gov", 95),
    ("arxiv.org", 85),
    ("scholar.google.com", 85),
    # International organizations
    ("who.int", 95),
    ("un.org", 90),
    ("worldbank.org", 90),
    ("imf.org", 90),
    # News
    ("reuters.com", 85),
    ("apnews.com", 85),
    ("bbc.com", 80),
    ("bbc.co.uk", 80),
    ("npr.org", 80),
    ("pbs.org", 80),
    ("economist.com", 80),
    ("ft.com", 80),
    ("wsj.com", 75),
    ("nytimes.com", 75),
    ("washingtonpost.com", 75),
    ("theguardian.com", 75),
    # Fact-checkers
    ("snopes.com", 85),
    ("factcheck.org", 85),
    ("politifact.com", 80),
    # Reference
    ("wikipedia.org", 70),
    ("britannica.com", 85),
    # Tech/science publications
    ("arstechnica.com", 70),
    ("scientificamerican.com", 80),
    ("technologyreview.com", 75),
    ("wired.com", 65),
    # User-generated platforms
    ("medium.com", 45),
    ("substack.com", 50),
    ("reddit.com", 30),
    ("quora.com", 35),
    ("youtube.com", 40),
    ("twitter.com", 25),
    ("facebook.com", 25),
)

_EXACT_REPUTATION = dict(DOMAIN_REPUTATION)

# Patterns for the trusted-only search phase
TRUSTED_DOMAINS: tuple[str, ...] = (
    "*.gov",
    "*.gov.uk",
    "*.gov.ca",
    "*.gov.au",
    "*.edu",
    "*.ac.uk",
    "nature.com",
    "science.org",
    "sciencedirect.com",
    "pubmed.ncbi.nlm.nih.gov",
    "scholar.google.com",
    "who.int",
    "un.org",
    "worldbank.org",
    "reuters.com",
    "apnews.com",
    "bbc.com",
    "npr.org",
    "pbs.org",
    "snopes.com",
    "factcheck.org",
)

ACADEMIC_DOMAINS: tuple[str, ...] = (
    "scholar.google.com",
    "pubmed.ncbi.nlm.nih.gov",
    "arxiv.org",
)
GOVERNMENT_DOMAINS: tuple[str, ...] = ("*.gov", "*.gov.uk", "who.int")
FACT_CHECKER_DOMAINS: tuple[str, ...] = ("snopes.com", "factcheck.org", "politifact.com")


def contains_pattern(domain: str, pattern: str) -> bool:
    if pattern.startswith("."):
        return domain.endswith(pattern)
    return f".{pattern}" in f".{domain}"


def _suffix(*suffixes: str) -> Callable[[str], bool]:
    return lambda domain: domain.endswith(suffixes)


def _contains(*fragments: str) -> Callable[[str], bool]:
    return lambda domain: any(contains_pattern(domain, fragment) for fragment in fragments)


# First matching rule wins
CATEGORY_RULES: tuple[tuple[SourceCategory, Callable[[str], bool]], ...] = (
    (SourceCategory.GOVERNMENT, _suffix(".gov", ".gov.uk", ".gov.ca", ".gov.au")),
    (SourceCategory.ACADEMIC, _suffix(".edu", ".ac.uk")),
    (SourceCategory.INTERNATIONAL_ORG, _contains("who.int", "un.org", "worldbank.org", "imf.org")),
    (
        SourceCategory.SCIENTIFIC_JOURNAL,
        _contains("nature.com", "science.org", "pubmed.ncbi.nlm.nih.gov", "sciencedirect.com", "arxiv.org"),
    ),
    (SourceCategory.NEWS_AGENCY, _contains("reuters.com", "apnews.com", "bbc.com", "bbc.co.uk", "npr.org", "pbs.org")),
    (SourceCategory.FACT_CHECKER, _contains("snopes.com", "factcheck.org", "politifact.com")),
    (SourceCategory.ENCYCLOPEDIA, _contains("wikipedia.org", "britannica.com")),
    (SourceCategory.BLOG, lambda domain: "blog" in domain or _contains("medium.com", "substack.com")(domain)),
)


def reputation_score(domain: str) -> int:
    """Return the 0-100 reputation score for a bare domain."""
    domain = domain.lower()
    if domain in _EXACT_REPUTATION:
        return _EXACT_REPUTATION[domain]

    best_pattern = ""
    best_score = DEFAULT_QUALITY_SCORE
    for pattern, score in DOMAIN_REPUTATION:
        if contains_pattern(domain, pattern) and len(pattern) > len(best_pattern):
            best_pattern, best_score = pattern, score
    return best_score


def quality_tier(score: int) -> QualityTier:
    if score >= HIGH_TIER_THRESHOLD:
        return QualityTier.HIGH
    if score >= MEDIUM_TIER_THRESHOLD:
        return QualityTier.MEDIUM
    return QualityTier.LIMITED


def categorize(domain: str) -> SourceCategory:
    domain = domain.lower()
    for category, matches in CATEGORY_RULES:
        if matches(domain):
            return category
    return SourceCategory.WEBSITE
