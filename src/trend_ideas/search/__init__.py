from trend_ideas.search.base import SearchProvider
from trend_ideas.search.google import GoogleSearchProvider
from trend_ideas.search.mock import MockSearchProvider, mock_results
from trend_ideas.search.trends import build_trend_query, search_trends, to_date_restrict

__all__ = [
    "GoogleSearchProvider",
    "MockSearchProvider",
    "SearchProvider",
    "build_trend_query",
    "mock_results",
    "search_trends",
    "to_date_restrict",
]
