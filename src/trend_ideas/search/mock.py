"""Deterministic search results for development and tests."""

from trend_ideas.data import SearchResult


def mock_results(query: str, max_results: int = 10) -> list[SearchResult]:
    """Three fixed results derived from the query text."""
    results = [
        SearchResult(
            title=f"{query} - Latest Developments",
            url="https://example.com/article1",
            content=(
                f"Recent updates and trends related to {query}. "
                "This is mock data for demonstration purposes."
            ),
            score=1.0,
        ),
        SearchResult(
            title=f"Top {query} Trends This Week",
            url="https://example.com/article2",
            content=f"Analysis of current {query} trends and their impact on the industry.",
            score=0.95,
        ),
        SearchResult(
            title=f"{query}: What You Need to Know",
            url="https://example.com/article3",
            content=f"Comprehensive guide to understanding {query} and its implications.",
            score=0.9,
        ),
    ]
    return results[:max_results]


class MockSearchProvider:
    """Search provider that never calls out and always returns mock data."""

    async def search(
        self,
        query: str,
        *,
        max_results: int = 10,
        date_restrict: str | None = None,
    ) -> list[SearchResult]:
        return mock_results(query, max_results)
