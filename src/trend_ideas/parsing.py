"""Extraction and validation of structured data from model output.

Stage parsers never raise: they return a :class:`ParseResult` that the
caller pairs with the stage's deterministic fallback.
"""

import json
import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from trend_ideas.data import (
    Idea,
    ResearchPlan,
    ResearchReport,
    Scope,
    SourceRef,
    Trend,
    TrendCandidate,
    TrendCitation,
)
from trend_ideas.errors import ParseError

T = TypeVar("T")

MAX_REPORT_TRENDS = 10
MAX_IDEA_COUNT = 50

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_TIMEFRAME_RE = re.compile(r"^(24h|\d+d|year:\d{4})$")


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    def unwrap_or(self, fallback: T) -> T:
        if self.ok and self.value is not None:
            return self.value
        return fallback


def strip_control_chars(text: str) -> str:
    """Remove control characters other than tab, newline and carriage return."""
    return _CONTROL_CHARS_RE.sub("", text)


def _object_spans(text: str) -> Iterator[str]:
    """Yield brace-balanced substrings, each starting at an opening brace."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    yield text[start : index + 1]
                    break
        start = text.find("{", start + 1)


def extract_json_object(text: str) -> dict[str, Any]:
    """Return the first well-formed JSON object embedded in ``text``.

    Raises:
        ParseError: If no balanced substring parses as a JSON object.
    """
    cleaned = strip_control_chars(text)
    for candidate in _object_spans(cleaned):
        try:
            parsed = json.loads(candidate, strict=False)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise ParseError("No JSON object found in model output")


def _load(text: str) -> tuple[dict[str, Any] | None, str | None]:
    try:
        return extract_json_object(text), None
    except ParseError as e:
        return None, str(e)


def _string_list(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [item.strip() for item in raw if isinstance(item, str) and item.strip()]


def _text(raw: Any) -> str:
    return raw.strip() if isinstance(raw, str) else ""


def parse_scope(text: str, *, fallback: Scope, current_year: int) -> ParseResult[Scope]:
    """Parse an extracted scope, filling invalid or missing fields from ``fallback``."""
    data, error = _load(text)
    if data is None:
        return ParseResult(error=error)

    platforms = _string_list(data.get("platforms"))

    timeframe = _text(data.get("timeframe"))
    if timeframe == "year:LASTYEAR":
        timeframe = f"year:{current_year - 1}"
    if not _TIMEFRAME_RE.match(timeframe):
        timeframe = fallback.timeframe

    idea_count = data.get("ideaCount")
    if isinstance(idea_count, bool) or not isinstance(idea_count, int):
        idea_count = fallback.idea_count
    idea_count = max(1, min(MAX_IDEA_COUNT, idea_count))

    return ParseResult(
        value=Scope(
            topic=_text(data.get("topic")) or fallback.topic,
            platforms=tuple(platforms) or fallback.platforms,
            timeframe=timeframe,
            region=_text(data.get("region")) or fallback.region,
            idea_count=idea_count,
            include=fallback.include,
            exclude=fallback.exclude,
        )
    )


def parse_plan(text: str, *, scope: Scope) -> ParseResult[ResearchPlan]:
    data, error = _load(text)
    if data is None:
        return ParseResult(error=error)

    queries = _string_list(data.get("queries"))
    if not queries:
        return ParseResult(error="Plan contains no queries")
    return ParseResult(
        value=ResearchPlan(
            queries=tuple(queries),
            sources=tuple(_string_list(data.get("sources"))) or ("web",),
            strategy=_text(data.get("strategy")),
            scope=scope,
        )
    )


def _clamp_confidence(raw: Any) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return 0.5
    return max(0.0, min(1.0, float(raw)))


def parse_report(
    text: str,
    *,
    candidates: Sequence[TrendCandidate],
    generated_at: str,
) -> ParseResult[ResearchReport]:
    """Parse a synthesized report.

    Only sources whose URL exactly matches a candidate URL are kept; trends
    left without sources are dropped.
    """
    data, error = _load(text)
    if data is None:
        return ParseResult(error=error)
    raw_trends = data.get("trends")
    if not isinstance(raw_trends, list):
        return ParseResult(error="Report has no trends list")

    by_url = {c.url: c for c in candidates}
    trends: list[Trend] = []
    for raw in raw_trends:
        if not isinstance(raw, dict):
            continue
        title = _text(raw.get("title"))
        if not title:
            continue
        sources: list[SourceRef] = []
        raw_sources = raw.get("sources")
        for source in raw_sources if isinstance(raw_sources, list) else []:
            if not isinstance(source, dict):
                continue
            candidate = by_url.get(_text(source.get("url")))
            if candidate is None:
                continue
            sources.append(
                SourceRef(
                    url=candidate.url,
                    title=_text(source.get("title")) or candidate.title,
                    snippet=_text(source.get("snippet")) or candidate.snippet,
                    published_date=candidate.published_date,
                )
            )
        if not sources:
            continue
        trends.append(
            Trend(
                title=title,
                description=_text(raw.get("description")),
                confidence=_clamp_confidence(raw.get("confidence")),
                sources=tuple(sources),
            )
        )
        if len(trends) == MAX_REPORT_TRENDS:
            break

    if not trends:
        return ParseResult(error="Report contains no trends citing research sources")
    return ParseResult(value=ResearchReport(trends=tuple(trends), generated_at=generated_at))


def parse_idea(text: str, *, platform: str, trends: Sequence[Trend]) -> ParseResult[Idea]:
    """Parse one generated idea for ``platform``.

    A citation naming a report trend without a source URL inherits the
    trend's first source URL.
    """
    data, error = _load(text)
    if data is None:
        return ParseResult(error=error)
    idea_text = _text(data.get("idea"))
    if not idea_text:
        return ParseResult(error="Idea content is empty")

    raw_citation = data.get("trendCitation")
    citation = raw_citation if isinstance(raw_citation, dict) else {}
    trend_title = _text(citation.get("trendTitle"))
    source_url = _text(citation.get("sourceUrl")) or None
    if source_url is None:
        for trend in trends:
            if trend.title.lower() == trend_title.lower() and trend.sources:
                source_url = trend.sources[0].url
                break

    return ParseResult(
        value=Idea(
            platform=platform,
            idea=idea_text,
            trend_citation=TrendCitation(trend_title=trend_title, source_url=source_url),
            why=_text(data.get("why")) or None,
        )
    )
