"""Prompt builders for each generator-backed stage."""

from collections.abc import Sequence

from trend_ideas.data import Idea, Scope, Trend, TrendCandidate

PRIOR_IDEA_PREVIEW_CHARS = 100

_TIMEFRAME_TEXT = {
    "24h": "the last 24 hours",
    "7d": "the last 7 days",
    "30d": "the last 30 days",
}


def describe_timeframe(timeframe: str) -> str:
    if timeframe in _TIMEFRAME_TEXT:
        return _TIMEFRAME_TEXT[timeframe]
    if timeframe.startswith("year:"):
        return f"the year {timeframe.split(':', 1)[1]}"
    if timeframe.endswith("d") and timeframe[:-1].isdigit():
        return f"the last {timeframe[:-1]} days"
    return "recent weeks"


def build_scope_prompt(user_query: str, *, current_year: int) -> str:
    return f"""\
Analyze this request and extract structured parameters:
"{user_query}"

Extract exactly what the request specifies:

1. platforms: platform names mentioned, normalized to "LinkedIn", "Twitter/X", \
"Facebook", "Instagram", "TikTok", "YouTube" or "Blog Post". "X" means \
"Twitter/X", "IG" means "Instagram", "YT" means "YouTube". If none are \
mentioned use ["LinkedIn", "Twitter/X"].
2. timeframe: "year:YYYY" for an explicit year, "year:LASTYEAR" for "last year", \
"24h" for today, "7d" for this week, "30d" for this month, "Nd" for the last N \
days. Default "7d". The current year is {current_year}.
3. ideaCount: the number of ideas requested. Default 5.
4. topic: the core research topic, without platform names, quantities or \
instructions such as "write a post about".
5. region: the region mentioned, or "Global".

Return ONLY a JSON object:
{{"platforms": ["LinkedIn"], "timeframe": "7d", "region": "Global", "topic": "...", "ideaCount": 5}}"""


def build_plan_prompt(scope: Scope, *, today: str, current_year: int) -> str:
    if scope.timeframe.startswith("year:"):
        target_year = scope.timeframe.split(":", 1)[1]
        year_note = (
            f'Content from {target_year} was requested. Include "{target_year}" in the queries.'
        )
    else:
        year_note = f"Do not use outdated years. The current year is {current_year}."
    keywords = ""
    if scope.include:
        keywords += f"\n- Must relate to: {', '.join(scope.include)}"
    if scope.exclude:
        keywords += f"\n- Avoid: {', '.join(scope.exclude)}"

    return f"""\
You are a research planner. Topic: "{scope.topic}"

Today's date: {today}
{year_note}

Constraints:
- Timeframe: {describe_timeframe(scope.timeframe)}
- Region: {scope.region}{keywords}

Create a research plan with 3-5 specific web search queries that find \
trending news about the topic.

Return ONLY a JSON object:
{{"queries": ["query 1", "query 2"], "sources": ["web"], "strategy": "short explanation"}}"""


def build_report_prompt(user_query: str, candidates: Sequence[TrendCandidate]) -> str:
    findings = "\n\n".join(
        f"{i}. {c.title}\n   URL: {c.url}\n   Snippet: {c.snippet}"
        for i, c in enumerate(candidates, 1)
    )
    return f"""\
You are a trend analyst. Analyze these research findings and report the most \
significant trends.

Request: "{user_query}"

Research findings:
{findings}

Return ONLY a JSON object:
{{"trends": [{{"title": "Trend name", "description": "2-3 sentences on why it is trending", \
"confidence": 0.8, "sources": [{{"url": "...", "title": "...", "snippet": "..."}}]}}]}}

Rules for sources:
- Copy each URL exactly, in full, from a "URL:" line above.
- Never shorten a URL to its domain and never invent one.
- Cite 1-3 sources per trend.

Merge duplicate trends, rank by relevance and include 3-10 trends (typically 5)."""


def render_prior_ideas(ideas: Sequence[Idea]) -> str:
    if not ideas:
        return "None yet."
    lines = []
    for i, idea in enumerate(ideas, 1):
        preview = idea.idea[:PRIOR_IDEA_PREVIEW_CHARS]
        if len(idea.idea) > PRIOR_IDEA_PREVIEW_CHARS:
            preview += "..."
        lines.append(f'{i}. [{idea.platform}] ({idea.trend_citation.trend_title}) {preview}')
    return "\n".join(lines)


def build_idea_prompt(platform: str, trends: Sequence[Trend], prior_ideas: Sequence[Idea]) -> str:
    trend_lines = "\n".join(
        f"- {t.title}: {t.description}"
        + (f" (source: {t.sources[0].url})" if t.sources else "")
        for t in trends
    )
    return f"""\
Generate ONE content idea for {platform}.

Trending topics:
{trend_lines}

Ideas already accepted:
{render_prior_ideas(prior_ideas)}

Requirements:
- Use the format, length and tone that suit {platform}.
- Reference a DIFFERENT trend than the accepted ideas where possible.
- Use a different hook, format and call to action than every accepted idea.
- Be specific and actionable, 2-3 short paragraphs at most.

Return ONLY a JSON object:
{{"platform": "{platform}", "idea": "...", "why": "...", \
"trendCitation": {{"trendTitle": "...", "sourceUrl": "..."}}}}"""
