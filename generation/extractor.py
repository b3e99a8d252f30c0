"""Rule-based extraction from generated answer text.

Everything here works on the generated text plus the retrieved sources; no
second model call is made. Citation matching is a best-effort heuristic and
can both over- and under-count the sources an answer actually used.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from core.models import ConfidenceBreakdown, SourceCategory, SourceHit

SHORT_ANSWER_LIMIT = 150
TITLE_PREFIX_LENGTH = 20

FIRST_SENTENCE_PATTERN = re.compile(r"^[^.!?]+[.!?]")

US_CENTRIC_RATIO = 0.7
GOVERNMENT_RATIO = 0.6
RECENT_RATIO = 0.3

QUALITY_LIMIT = 70
AGREEMENT_LIMIT = 60
RECENCY_LIMIT = 70
CERTAINTY_LIMIT = 60

CONTROVERSY_KEYWORDS: tuple[str, ...] = (
    "debate",
    "controversy",
    "disputed",
    "contested",
    "disagreement",
    "critics argue",
    "opponents claim",
    "conflicting",
    "contentious",
)

POLAR_POSITIONS: tuple[tuple[str, str], ...] = (
    ("yes", "no"),
    ("true", "false"),
    ("safe", "unsafe"),
    ("effective", "ineffective"),
)

CONFLICTING_CONCLUSIONS = "Sources present conflicting conclusions"


def extract_short_answer(response: str) -> str:
    """First paragraph if short, else first sentence, else a truncated paragraph."""
    first_paragraph = response.strip().split("\n\n")[0]
    if len(first_paragraph) <= SHORT_ANSWER_LIMIT:
        return first_paragraph

    first_sentence = FIRST_SENTENCE_PATTERN.match(first_paragraph)
    if first_sentence:
        return first_sentence.group(0)

    return first_paragraph[:SHORT_ANSWER_LIMIT] + "..."


def extract_cited_sources(response: str, sources: list[SourceHit]) -> list[SourceHit]:
    """Sources whose domain, title prefix or "source N" label appears in the response."""
    text = response.lower()
    cited = []
    for source in sources:
        domain = source.domain.lower()
        title_prefix = source.title[:TITLE_PREFIX_LENGTH].lower().strip()
        label = re.compile(rf"\bsource {source.position}\b")
        if (
            (domain and domain in text)
            or (title_prefix and title_prefix in text)
            or label.search(text)
        ):
            cited.append(source)
    return cited


def _within_last_year(published_at: datetime | None, now: datetime) -> bool:
    if published_at is None:
        return False
    if published_at.tzinfo is None:
        published_at = published_at.replace(tzinfo=timezone.utc)
    return published_at > now - timedelta(days=365)


def extract_biases(
    response: str, sources: list[SourceHit], now: datetime | None = None
) -> list[str]:
    if now is None:
        now = datetime.now(timezone.utc)

    biases = []
    total = len(sources)

    us_domains = sum(1 for s in sources if s.domain.endswith((".gov", ".com")))
    if total and us_domains > total * US_CENTRIC_RATIO:
        biases.append("Sources primarily from US perspectives")

    government = sum(1 for s in sources if s.category is SourceCategory.GOVERNMENT)
    if total and government > total * GOVERNMENT_RATIO:
        biases.append("Heavy reliance on government sources")

    recent = sum(1 for s in sources if _within_last_year(s.published_at, now))
    if total and recent < total * RECENT_RATIO:
        biases.append("Limited recent sources - findings may be outdated")

    if "sponsored" in response.lower() or any("sponsored" in s.snippet.lower() for s in sources):
        biases.append("Some sources may have commercial interests")

    return biases


def extract_limitations(response: str, breakdown: ConfidenceBreakdown) -> list[str]:
    limitations = []
    factors = breakdown.factors

    if factors is None:
        limitations.append("Confidence could not be calculated accurately for these sources")
    else:
        if factors.source_quality.score < QUALITY_LIMIT:
            limitations.append("Limited access to high-quality primary sources")
        if factors.source_agreement.score < AGREEMENT_LIMIT:
            limitations.append("Sources show significant disagreement on key points")
        if factors.recency_score.score < RECENCY_LIMIT:
            limitations.append("Some information may be outdated")
        if factors.certainty_score.score < CERTAINTY_LIMIT:
            limitations.append("Sources use uncertain or speculative language")

    text = response.lower()
    if "however" in text or "although" in text:
        limitations.append("Complex topic with multiple valid perspectives")
    if "limited data" in text or "more research" in text:
        limitations.append("Scientific consensus still developing")

    return limitations


def _sentence_with(keyword: str, text: str) -> str | None:
    match = re.search(rf"[^.]*{re.escape(keyword)}[^.]*\.?", text, re.IGNORECASE)
    if match:
        return match.group(0).strip()
    return None


def extract_controversies(response: str, sources: list[SourceHit]) -> list[str]:
    """Controversy sentences from the answer or snippets, plus opposing positions."""
    controversies: list[str] = []
    snippets = [s.snippet for s in sources]

    for keyword in CONTROVERSY_KEYWORDS:
        sentence = _sentence_with(keyword, response)
        if sentence is None:
            for snippet in snippets:
                sentence = _sentence_with(keyword, snippet)
                if sentence is not None:
                    break
        if sentence and sentence not in controversies:
            controversies.append(sentence)

    if has_opposing_positions(snippets) and CONFLICTING_CONCLUSIONS not in controversies:
        controversies.append(CONFLICTING_CONCLUSIONS)

    return controversies


def has_opposing_positions(snippets: list[str]) -> bool:
    """True when one snippet states a position and a different snippet its opposite."""
    word_sets = [set(re.findall(r"[a-z]+", snippet.lower())) for snippet in snippets]
    for positive, negative in POLAR_POSITIONS:
        holders = [i for i, words in enumerate(word_sets) if positive in words]
        opposers = [i for i, words in enumerate(word_sets) if negative in words]
        if any(i != j for i in holders for j in opposers):
            return True
    return False
