"""Deterministic scope resolution from free text and explicit constraints.

Cue precedence: explicit platform names, then an explicit year, then a
relative window, then defaults.
"""

import re

from trend_ideas.data import Constraints, Scope

DEFAULT_PLATFORMS = ("LinkedIn", "Twitter/X")
DEFAULT_TIMEFRAME = "7d"
DEFAULT_REGION = "Global"
DEFAULT_IDEA_COUNT = 5

_I = re.IGNORECASE

# Uppercase shorthands (X, IG, YT) are matched case-sensitively.
PLATFORM_CUES: tuple[tuple[str, tuple[re.Pattern[str], ...]], ...] = (
    ("LinkedIn", (re.compile(r"\blinked\s?in\b", _I),)),
    ("Twitter/X", (re.compile(r"\btwitter\b|\btweets?\b", _I), re.compile(r"\bX\b"))),
    ("Facebook", (re.compile(r"\bfacebook\b", _I),)),
    ("Instagram", (re.compile(r"\binstagram\b", _I), re.compile(r"\bIG\b"))),
    ("TikTok", (re.compile(r"\btik\s?tok\b", _I),)),
    ("YouTube", (re.compile(r"\byoutube\b", _I), re.compile(r"\bYT\b"))),
    ("Blog Post", (re.compile(r"\bblog(?:\s?posts?)?\b", _I),)),
)

_YEAR_RE = re.compile(r"\b((?:19|20)\d{2})\b")
_LAST_YEAR_RE = re.compile(r"\blast year\b", _I)
_THIS_YEAR_RE = re.compile(r"\bthis year\b", _I)
_LAST_N_DAYS_RE = re.compile(r"\b(?:last|past)\s+(\d{1,3})\s+days?\b", _I)
_DAY_RE = re.compile(r"\btoday\b|\b(?:last|past)\s+24\s*h(?:ours?)?\b|\b24h\b", _I)
_WEEK_RE = re.compile(r"\b(?:this|past|last)\s+week\b|\bweekly\b", _I)
_MONTH_RE = re.compile(r"\b(?:this|past|last)\s+month\b|\bmonthly\b", _I)
_IDEA_COUNT_RE = re.compile(
    r"\b(\d{1,2})\s+(?:[\w-]+\s+)?(?:ideas?|posts?|tweets?|videos?|threads?)\b", _I
)
_INSTRUCTION_RE = re.compile(
    r"\b(?:please|give me|show me|create|write|generate|make|find|get)\b"
    r"|\b(?:a|some)?\s*(?:posts?|content|ideas?)\s+(?:about|on|for)\b",
    _I,
)
_TIME_PHRASES = (_LAST_N_DAYS_RE, _DAY_RE, _WEEK_RE, _MONTH_RE, _LAST_YEAR_RE, _THIS_YEAR_RE)
_CONNECTORS = frozenset({"for", "on", "about", "in", "and", "or", "with", "+", "&", ",", "-"})


def detect_platforms(text: str) -> tuple[str, ...]:
    """Platforms named in ``text``, in order of first mention."""
    found: list[tuple[int, str]] = []
    for platform, patterns in PLATFORM_CUES:
        positions = [m.start() for p in patterns if (m := p.search(text))]
        if positions:
            found.append((min(positions), platform))
    return tuple(platform for _, platform in sorted(found))


def detect_timeframe(text: str, *, current_year: int) -> str | None:
    year = _YEAR_RE.search(text)
    if year:
        return f"year:{year.group(1)}"
    if _LAST_YEAR_RE.search(text):
        return f"year:{current_year - 1}"
    if _THIS_YEAR_RE.search(text):
        return f"year:{current_year}"
    if _DAY_RE.search(text):
        return "24h"
    days = _LAST_N_DAYS_RE.search(text)
    if days:
        return f"{int(days.group(1))}d"
    if _WEEK_RE.search(text):
        return "7d"
    if _MONTH_RE.search(text):
        return "30d"
    return None


def detect_idea_count(text: str) -> int | None:
    match = _IDEA_COUNT_RE.search(text)
    if match and int(match.group(1)) > 0:
        return int(match.group(1))
    return None


def extract_topic(text: str) -> str:
    """Core research topic: the query minus platforms, quantities, time words and instructions."""
    topic = _IDEA_COUNT_RE.sub(" ", text)
    topic = _INSTRUCTION_RE.sub(" ", topic)
    for _, patterns in PLATFORM_CUES:
        for pattern in patterns:
            topic = pattern.sub(" ", topic)
    for pattern in _TIME_PHRASES:
        topic = pattern.sub(" ", topic)

    tokens: list[str] = []
    for token in topic.split():
        if token.lower() in _CONNECTORS and tokens and tokens[-1].lower() in _CONNECTORS:
            tokens[-1] = token
            continue
        tokens.append(token)
    while tokens and tokens[-1].lower() in _CONNECTORS:
        tokens.pop()
    while tokens and tokens[0].lower() in _CONNECTORS:
        tokens.pop(0)
    return " ".join(tokens).strip(" ,.;:!?") or text.strip()


def infer_scope(
    query: str,
    constraints: Constraints | None = None,
    *,
    current_year: int,
) -> Scope:
    """Resolve a scope from the query text alone, without a model."""
    constraints = constraints or Constraints()
    return Scope(
        topic=extract_topic(query),
        platforms=detect_platforms(query) or DEFAULT_PLATFORMS,
        timeframe=detect_timeframe(query, current_year=current_year) or DEFAULT_TIMEFRAME,
        region=constraints.region or DEFAULT_REGION,
        idea_count=detect_idea_count(query) or DEFAULT_IDEA_COUNT,
        include=constraints.include,
        exclude=constraints.exclude,
    )


def scope_from_constraints(query: str, constraints: Constraints) -> Scope:
    """Scope taken verbatim from explicit constraints, as a refine cycle requires."""
    return Scope(
        topic=query,
        platforms=constraints.platforms or DEFAULT_PLATFORMS,
        timeframe=constraints.timeframe or DEFAULT_TIMEFRAME,
        region=constraints.region or DEFAULT_REGION,
        idea_count=constraints.idea_count or DEFAULT_IDEA_COUNT,
        include=constraints.include,
        exclude=constraints.exclude,
    )
