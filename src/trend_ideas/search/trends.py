"""Trend-oriented searching on top of a plain search provider."""

import re
from datetime import UTC, datetime

from trend_ideas.data import Constraints, SearchResult
from trend_ideas.search.base import SearchProvider

TREND_SEARCH_MAX_RESULTS = 15
DEFAULT_DATE_RESTRICT = "d30"

_TIME_WORDS = {
    "24h": "today",
    "7d": "this week",
    "30d": "this month",
}
_FIXED_RESTRICTS = {
    "24h": "d1",
    "7d": "d7",
    "30d": "m1",
}
_DAYS_RE = re.compile(r"^(\d+)d$")
_YEAR_RE = re.compile(r"^year:(\d{4})$")


def build_trend_query(base_query: str, constraints: Constraints) -> str:
    """Enhance a query with time, region, and keyword constraints."""
    query = base_query
    if constraints.timeframe:
        query += f" {_TIME_WORDS.get(constraints.timeframe, 'recent')}"
    if "trending" not in query.lower():
        query += " trending news"
    if constraints.region and constraints.region != "Global":
        query += f" in {constraints.region}"
    if constraints.include:
        query += " " + " ".join(constraints.include)
    if constraints.exclude:
        query += " " + " ".join(f"-{term}" for term in constraints.exclude)
    return query


def to_date_restrict(timeframe: str | None, *, current_year: int | None = None) -> str | None:
    """Map a timeframe token to a provider date restriction.

    ``24h`` → ``d1``, ``7d`` → ``d7``, ``30d`` → ``m1``, other ``Nd`` → ``dN``,
    ``year:YYYY`` → ``yN`` covering that year through today, no timeframe →
    no restriction, anything else → :data:`DEFAULT_DATE_RESTRICT`.
    """
    if not timeframe:
        return None
    if timeframe in _FIXED_RESTRICTS:
        return _FIXED_RESTRICTS[timeframe]
    days = _DAYS_RE.match(timeframe)
    if days:
        return f"d{int(days.group(1))}"
    year = _YEAR_RE.match(timeframe)
    if year:
        now_year = current_year or datetime.now(tz=UTC).year
        return f"y{max(1, now_year - int(year.group(1)) + 1)}"
    return DEFAULT_DATE_RESTRICT


async def search_trends(
    provider: SearchProvider,
    base_query: str,
    constraints: Constraints,
) -> list[SearchResult]:
    """Search for trending content on a topic under the given constraints."""
    return await provider.search(
        build_trend_query(base_query, constraints),
        max_results=TREND_SEARCH_MAX_RESULTS,
        date_restrict=to_date_restrict(constraints.timeframe),
    )
