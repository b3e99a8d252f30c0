"""Web search capability: provider protocol and Google Custom Search client."""

from __future__ import annotations

import logging
import time
from typing import Protocol

import httpx
from pydantic import BaseModel, Field, ValidationError

from core.config import ConfigurationError, settings

logger = logging.getLogger(__name__)

MAX_RESULTS_PER_REQUEST = 10


class SearchConfigurationError(ConfigurationError):
    pass


class SearchProviderError(RuntimeError):
    pass


class SearchRateLimitError(SearchProviderError):
    pass


class RawHit(BaseModel):
    """A search hit exactly as the provider reported it."""

    title: str = ""
    link: str
    snippet: str = ""
    display_link: str = ""
    metadata: dict = Field(default_factory=dict)


class SearchResponse(BaseModel):
    items: list[RawHit] = Field(default_factory=list)
    total_results: int = 0
    search_time_seconds: float = 0.0


class SearchProvider(Protocol):
    """Search capability consumed by the retriever."""

    def search(
        self,
        query: str,
        *,
        restrict_to_domains: list[str] | None = None,
        max_results: int = 10,
        date_restrict_days: int | None = None,
    ) -> SearchResponse:
        """Search the web."""


class GoogleSearchProvider:
    """Google Custom Search JSON API provider.

    Credentials come from settings (`GOOGLE_SEARCH_API_KEY`,
    `GOOGLE_SEARCH_ENGINE_ID`); missing credentials fail at construction,
    before any request is made.
    """

    def __init__(
        self,
        api_key: str | None = None,
        engine_id: str | None = None,
        base_url: str | None = None,
        timeout_s: float | None = None,
        client: httpx.Client | None = None,
    ):
        self.api_key = api_key or settings.google_search_api_key
        self.engine_id = engine_id or settings.google_search_engine_id
        if not self.api_key or not self.engine_id:
            raise SearchConfigurationError("Google Search API credentials not configured")

        self.base_url = base_url or settings.search_base_url
        self.timeout_s = timeout_s if timeout_s is not None else settings.search_timeout_seconds
        self._client = client

    def build_params(
        self,
        query: str,
        restrict_to_domains: list[str] | None,
        max_results: int,
        date_restrict_days: int | None,
    ) -> dict:
        if restrict_to_domains:
            sites = " OR ".join(f"site:{domain}" for domain in restrict_to_domains)
            query = f"{query} ({sites})"

        params = {
            "key": self.api_key,
            "cx": self.engine_id,
            "q": query,
            "num": max(1, min(max_results, MAX_RESULTS_PER_REQUEST)),
            "safe": "active",
        }
        if date_restrict_days:
            params["dateRestrict"] = f"d{date_restrict_days}"
        return params

    def search(
        self,
        query: str,
        *,
        restrict_to_domains: list[str] | None = None,
        max_results: int = 10,
        date_restrict_days: int | None = None,
    ) -> SearchResponse:
        """Run one Custom Search request.

        Raises:
            SearchRateLimitError: the API answered 429.
            SearchProviderError: timeout, transport failure, non-2xx status
                or an unreadable body.
        """
        params = self.build_params(query, restrict_to_domains, max_results, date_restrict_days)
        started = time.monotonic()

        try:
            if self._client is not None:
                response = self._client.get(self.base_url, params=params, timeout=self.timeout_s)
            else:
                with httpx.Client(timeout=httpx.Timeout(self.timeout_s)) as client:
                    response = client.get(self.base_url, params=params)
            if response.status_code == 429:
                raise SearchRateLimitError("Search API rate limit exceeded. Please try again later.")
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise SearchProviderError(f"search timed out after {self.timeout_s}s") from e
        except httpx.HTTPError as e:
            raise SearchProviderError(f"search request failed: {e}") from e
        except ValueError as e:
            raise SearchProviderError("search response was not valid JSON") from e

        if not isinstance(data, dict):
            raise SearchProviderError("search response not a JSON object")

        parsed = parse_response(data)
        logger.debug(
            "Search returned %d items in %.2fs for: %s",
            len(parsed.items),
            time.monotonic() - started,
            query[:50],
        )
        return parsed


def parse_response(data: dict) -> SearchResponse:
    """Convert a Custom Search JSON body into a SearchResponse."""
    items: list[RawHit] = []
    raw_items = data.get("items")
    for item in raw_items if isinstance(raw_items, list) else []:
        if not isinstance(item, dict) or not item.get("link"):
            continue
        try:
            items.append(
                RawHit(
                    title=item.get("title") or "",
                    link=item["link"],
                    snippet=item.get("snippet") or "",
                    display_link=item.get("displayLink") or "",
                    metadata=_first_metatags(item.get("pagemap")),
                )
            )
        except ValidationError as e:
            logger.debug("Skipping malformed search item %r: %s", item.get("link"), e)

    info = data.get("searchInformation")
    if not isinstance(info, dict):
        info = {}
    try:
        total_results = int(info.get("totalResults") or 0)
    except (TypeError, ValueError):
        total_results = 0
    try:
        search_time = float(info.get("searchTime") or 0.0)
    except (TypeError, ValueError):
        search_time = 0.0

    return SearchResponse(items=items, total_results=total_results, search_time_seconds=search_time)


def _first_metatags(pagemap) -> dict:
    if not isinstance(pagemap, dict):
        return {}
    metatags = pagemap.get("metatags")
    if isinstance(metatags, list) and metatags and isinstance(metatags[0], dict):
        return metatags[0]
    return {}
