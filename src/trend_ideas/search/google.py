"""Google Custom Search JSON API (free tier: 100 queries/day)."""

import logging
import os

import httpx

from trend_ideas.data import SearchResult
from trend_ideas.errors import SearchError
from trend_ideas.search.mock import mock_results

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
MAX_RESULTS_PER_REQUEST = 10

logger = logging.getLogger(__name__)


class GoogleSearchProvider:
    """Search the web with Google Custom Search.

    Falls back to deterministic mock results when no API key or engine id is
    configured, so a pipeline can always make progress in development.

    Args:
        api_key: API key (defaults to GOOGLE_SEARCH_API_KEY env var).
        engine_id: Search engine id (defaults to GOOGLE_SEARCH_ENGINE_ID env var).
        fallback_on_error: Return mock results instead of raising when a
            configured request fails.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        engine_id: str | None = None,
        fallback_on_error: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key or os.environ.get("GOOGLE_SEARCH_API_KEY")
        self._engine_id = engine_id or os.environ.get("GOOGLE_SEARCH_ENGINE_ID")
        self._fallback_on_error = fallback_on_error
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._engine_id)

    async def search(
        self,
        query: str,
        *,
        max_results: int = 10,
        date_restrict: str | None = None,
    ) -> list[SearchResult]:
        if not self.configured:
            logger.warning("Google Custom Search not configured. Using mock data.")
            return mock_results(query, max_results)

        try:
            return await self._request(query, max_results=max_results, date_restrict=date_restrict)
        except httpx.HTTPError as e:
            if not self._fallback_on_error:
                raise SearchError(f"Google search failed for '{query}': {e}") from e
            logger.warning("Google search error, using mock data. Error: %s", e)
            return mock_results(query, max_results)

    async def _request(
        self,
        query: str,
        *,
        max_results: int,
        date_restrict: str | None,
    ) -> list[SearchResult]:
        params: dict[str, str | int] = {
            "key": self._api_key or "",
            "cx": self._engine_id or "",
            "q": query,
            "num": min(max_results, MAX_RESULTS_PER_REQUEST),
        }
        if date_restrict:
            params["dateRestrict"] = date_restrict
            logger.info(f"Restricting search dates to: {date_restrict}")

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(GOOGLE_SEARCH_URL, params=params)
            response.raise_for_status()
            data = response.json()

        # Google does not score results; rank order is turned into a score.
        return [
            SearchResult(
                title=item.get("title", ""),
                url=item.get("link", ""),
                content=item.get("snippet", ""),
                score=round(1 - index * 0.05, 2),
            )
            for index, item in enumerate(data.get("items", []))
        ]
