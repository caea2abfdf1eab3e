from typing import Protocol

from trend_ideas.data import SearchResult


class SearchProvider(Protocol):
    """Interface for ranked web text search."""

    async def search(
        self,
        query: str,
        *,
        max_results: int = 10,
        date_restrict: str | None = None,
    ) -> list[SearchResult]:
        """Search the web for a query.

        Args:
            query: Query text, already enhanced with constraint keywords.
            max_results: Maximum results to return.
            date_restrict: Provider date window, e.g. ``"d7"`` or ``"m1"``.

        Returns:
            Results ordered by descending relevance.
        """
        ...
