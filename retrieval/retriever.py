"""Source retrieval: trusted-domain search, general fallback, merge and classify."""

from __future__ import annotations

import logging

from core.config import settings
from core.models import RetrievalBatch
from core.reputation import (
    ACADEMIC_DOMAINS,
    FACT_CHECKER_DOMAINS,
    GOVERNMENT_DOMAINS,
    TRUSTED_DOMAINS,
)
from retrieval.classifier import classify_hits
from retrieval.search_provider import (
    RawHit,
    SearchProvider,
    SearchResponse,
)


def dedupe_hits(hits: list[RawHit]) -> list[RawHit]:
    """Drop hits whose exact URL was already seen, keeping first occurrences."""
    seen: set[str] = set()
    unique: list[RawHit] = []
    for hit in hits:
        if hit.link in seen:
            continue
        seen.add(hit.link)
        unique.append(hit)
    return unique


class SourceRetriever:
    """Orchestrates retrieval: trusted search -> general search -> merge -> classify."""

    def __init__(
        self,
        provider: SearchProvider,
        trusted_domains: tuple[str, ...] = TRUSTED_DOMAINS,
        logger: logging.Logger | None = None,
    ):
        """Initialize retriever with a search provider.

        Args:
            provider: Search capability used for both search phases
            trusted_domains: Allow-list patterns for the trusted phase
            logger: Optional logger (module logger if None)
        """
        self.provider = provider
        self.trusted_domains = trusted_domains
        self.logger = logger or logging.getLogger(__name__)

    def search_trusted(self, query: str, desired_count: int) -> SearchResponse:
        """Search only the trusted allow-list; failures yield an empty response."""
        try:
            return self.provider.search(
                query,
                restrict_to_domains=list(self.trusted_domains),
                max_results=desired_count,
                date_restrict_days=settings.trusted_date_restrict_days,
            )
        except Exception as e:
            self.logger.warning(
                "Trusted domain search failed, falling back to general search: %s", e
            )
            return SearchResponse()

    def retrieve(self, query: str, desired_count: int | None = None) -> RetrievalBatch:
        """Execute the two-phase retrieval pipeline.

        Pipeline steps:
        1. Search the trusted allow-list (last year only)
        2. Return the trusted batch if it fills enough of desired_count
        3. Otherwise run an unrestricted search
        4. Merge trusted-first, drop duplicate URLs, truncate
        5. Classify every surviving hit

        Args:
            query: User question
            desired_count: Number of sources wanted (default: settings.desired_results)

        Returns:
            RetrievalBatch of classified, URL-unique hits
        """
        if desired_count is None:
            desired_count = settings.desired_results

        trusted = self.search_trusted(query, desired_count)
        trusted_items = dedupe_hits(trusted.items)

        if trusted_items and len(trusted_items) >= desired_count * settings.trusted_ratio:
            self.logger.info(
                "Sufficient trusted domain results found (%d) for: %s",
                len(trusted_items),
                query[:50],
            )
            return RetrievalBatch(
                hits=classify_hits(trusted_items[:desired_count]),
                source_type="trusted",
                total_results=trusted.total_results,
                search_time_seconds=trusted.search_time_seconds,
                query=query,
            )

        try:
            general = self.provider.search(query, max_results=desired_count)
        except Exception as e:
            self.logger.error("General search failed for %s: %s", query[:50], e)
            return RetrievalBatch(
                source_type="general",
                query=query,
                degraded=True,
                error=str(e),
            )

        merged = dedupe_hits(trusted_items + general.items)[:desired_count]
        self.logger.info(
            "Merged %d trusted and %d general results into %d sources",
            len(trusted_items),
            len(general.items),
            len(merged),
        )
        return RetrievalBatch(
            hits=classify_hits(merged),
            source_type="mixed",
            total_results=general.total_results,
            search_time_seconds=general.search_time_seconds,
            query=query,
        )

    def search_academic(self, query: str) -> RetrievalBatch:
        return self.retrieve(_site_query(query, ACADEMIC_DOMAINS + ("filetype:pdf",)), 10)

    def search_government(self, query: str) -> RetrievalBatch:
        return self.retrieve(_site_query(query, GOVERNMENT_DOMAINS), 10)

    def search_fact_checkers(self, query: str) -> RetrievalBatch:
        return self.retrieve(_site_query(query, FACT_CHECKER_DOMAINS), 5)


def _site_query(query: str, domains: tuple[str, ...]) -> str:
    terms = [d if d.startswith("filetype:") else f"site:{d}" for d in domains]
    return f"{query} {' OR '.join(terms)}"
