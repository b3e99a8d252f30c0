"""Per-hit classification: domain, reputation tier, category and publish date."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from urllib.parse import urlsplit

from core.models import SourceHit
from core.reputation import categorize, quality_tier, reputation_score
from retrieval.search_provider import RawHit

logger = logging.getLogger(__name__)

DATE_METATAGS = (
    "article:published_time",
    "published_time",
    "publication_date",
    "date",
)

SNIPPET_DATE_PATTERN = re.compile(
    r"\b(?P<month>Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\w*\s+(?P<day>\d{1,2}),?\s+(?P<year>\d{4})"
    r"|\b(?P<iso>\d{4}-\d{2}-\d{2})\b",
    re.IGNORECASE,
)

COMPACT_OFFSET_PATTERN = re.compile(r"([+-]\d{2})(\d{2})$")

MONTHS = {
    name: index
    for index, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}


def extract_domain(url: str) -> str:
    """Hostname without a leading ``www.``; the raw string if the URL has no host."""
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        hostname = None
    if not hostname:
        return url
    return hostname.removeprefix("www.")


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 or RFC 2822 date; naive values are taken as UTC."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    elif text[:4].isdigit():
        text = COMPACT_OFFSET_PATTERN.sub(r"\1:\2", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_snippet_date(snippet: str) -> datetime | None:
    """Find the first ``Mon DD, YYYY`` or ``YYYY-MM-DD`` date in free text."""
    match = SNIPPET_DATE_PATTERN.search(snippet)
    if not match:
        return None
    if match.group("iso"):
        return parse_timestamp(match.group("iso"))
    try:
        return datetime(
            int(match.group("year")),
            MONTHS[match.group("month")[:3].lower()],
            int(match.group("day")),
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None


def extract_publish_date(hit: RawHit) -> datetime | None:
    for key in DATE_METATAGS:
        value = hit.metadata.get(key)
        if isinstance(value, str) and value:
            parsed = parse_timestamp(value)
            if parsed is not None:
                return parsed
    if hit.snippet:
        return parse_snippet_date(hit.snippet)
    return None


def _metatag(hit: RawHit, key: str) -> str | None:
    value = hit.metadata.get(key)
    return value if isinstance(value, str) and value else None


def classify_hit(hit: RawHit, position: int) -> SourceHit:
    domain = extract_domain(hit.link)
    score = reputation_score(domain)
    source = SourceHit(
        position=position,
        title=hit.title,
        url=hit.link,
        snippet=hit.snippet,
        display_link=hit.display_link,
        domain=domain,
        quality_score=score,
        quality_tier=quality_tier(score),
        category=categorize(domain),
        published_at=extract_publish_date(hit),
        author=_metatag(hit, "author"),
        og_description=_metatag(hit, "og:description"),
    )
    logger.debug(
        "Classified %s as %s/%s (%d)",
        domain,
        source.quality_tier.value,
        source.category.value,
        score,
    )
    return source


def classify_hits(hits: list[RawHit]) -> list[SourceHit]:
    """Classify hits in order, assigning 1-based positions."""
    return [classify_hit(hit, position) for position, hit in enumerate(hits, start=1)]
