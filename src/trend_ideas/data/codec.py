"""Conversion between data models and plain documents.

Documents are the JSON/BSON-compatible dicts written to document stores and
run logs: enums become their string values, tuples become lists.
"""

import dataclasses
from enum import Enum
from typing import Any

from trend_ideas.data.models import (
    Approval,
    CacheEntry,
    Constraints,
    ErrorPayload,
    Event,
    EventPayload,
    EventType,
    FindingPayload,
    Idea,
    IdeaPayload,
    LogPayload,
    ReportPayload,
    ResearchReport,
    Run,
    RunStatus,
    Scope,
    ScopePayload,
    SearchResult,
    SourceRef,
    StatusPayload,
    Surface,
    Trend,
    TrendCitation,
)


def to_document(obj: Any) -> Any:
    """Recursively convert a model (or container of models) to plain data."""
    if isinstance(obj, Enum):
        return obj.value
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_document(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, (list, tuple)):
        return [to_document(item) for item in obj]
    if isinstance(obj, dict):
        return {k: to_document(v) for k, v in obj.items()}
    return obj


def constraints_from_document(doc: dict[str, Any] | None) -> Constraints:
    doc = doc or {}
    platforms = doc.get("platforms")
    return Constraints(
        timeframe=doc.get("timeframe"),
        region=doc.get("region"),
        include=tuple(doc.get("include") or ()),
        exclude=tuple(doc.get("exclude") or ()),
        platforms=tuple(platforms) if platforms is not None else None,
        idea_count=doc.get("idea_count"),
    )


def search_result_from_document(doc: dict[str, Any]) -> SearchResult:
    return SearchResult(
        title=doc.get("title", ""),
        url=doc.get("url", ""),
        content=doc.get("content", ""),
        score=float(doc.get("score", 0.0)),
        published_date=doc.get("published_date"),
    )


def source_ref_from_document(doc: dict[str, Any]) -> SourceRef:
    return SourceRef(
        url=doc.get("url", ""),
        title=doc.get("title", ""),
        snippet=doc.get("snippet", ""),
        published_date=doc.get("published_date"),
    )


def report_from_document(doc: dict[str, Any]) -> ResearchReport:
    trends = tuple(
        Trend(
            title=t.get("title", ""),
            description=t.get("description", ""),
            confidence=float(t.get("confidence", 0.0)),
            sources=tuple(source_ref_from_document(s) for s in t.get("sources", [])),
        )
        for t in doc.get("trends", [])
    )
    return ResearchReport(trends=trends, generated_at=doc.get("generated_at", ""))


def scope_from_document(doc: dict[str, Any]) -> Scope:
    return Scope(
        topic=doc.get("topic", ""),
        platforms=tuple(doc.get("platforms") or ("LinkedIn", "Twitter/X")),
        timeframe=doc.get("timeframe") or "7d",
        region=doc.get("region") or "Global",
        idea_count=int(doc.get("idea_count") or 5),
        include=tuple(doc.get("include") or ()),
        exclude=tuple(doc.get("exclude") or ()),
    )


def idea_from_document(doc: dict[str, Any]) -> Idea:
    citation = doc.get("trend_citation") or {}
    return Idea(
        platform=doc.get("platform", ""),
        idea=doc.get("idea", ""),
        trend_citation=TrendCitation(
            trend_title=citation.get("trend_title", ""),
            source_url=citation.get("source_url"),
        ),
        why=doc.get("why"),
    )


def run_from_document(doc: dict[str, Any]) -> Run:
    report = doc.get("research_report")
    approval = doc.get("approval")
    return Run(
        id=str(doc.get("id") or doc.get("_id")),
        user_query=doc.get("user_query", ""),
        status=RunStatus(doc.get("status", RunStatus.IDLE)),
        constraints=constraints_from_document(doc.get("constraints")),
        research_report=report_from_document(report) if report else None,
        approval=Approval(approval) if approval else None,
        refinement=doc.get("refinement"),
        approved_at=doc.get("approved_at"),
        created_at=doc.get("created_at", 0.0),
    )


def payload_from_document(event_type: EventType | str, doc: dict[str, Any]) -> EventPayload:
    """Rebuild a typed payload from its event type and stored document."""
    event_type = EventType(event_type)
    if event_type is EventType.STATUS:
        return StatusPayload(step=doc.get("step", ""))
    if event_type is EventType.LOG:
        return LogPayload(msg=doc.get("msg", ""), level=doc.get("level", "info"))
    if event_type is EventType.FINDING:
        return FindingPayload(
            trend_candidate=doc.get("trend_candidate", ""),
            source_refs=tuple(source_ref_from_document(s) for s in doc.get("source_refs", [])),
        )
    if event_type is EventType.REPORT:
        return ReportPayload(report=report_from_document(doc.get("report", {})))
    if event_type is EventType.ERROR:
        return ErrorPayload(message=doc.get("message", ""), detail=doc.get("detail", ""))
    if event_type is EventType.IDEA:
        return IdeaPayload(idea=idea_from_document(doc.get("idea", {})))
    if event_type is EventType.SCOPE:
        return ScopePayload(scope=scope_from_document(doc.get("scope", {})))
    msg = f"Unknown event type: {event_type}"
    raise ValueError(msg)


def event_to_document(event: Event) -> dict[str, Any]:
    return {
        "run_id": event.run_id,
        "surface": event.surface.value,
        "type": event.type.value,
        "payload": to_document(event.payload),
        "ts": event.ts,
    }


def event_from_document(doc: dict[str, Any]) -> Event:
    return Event(
        run_id=doc["run_id"],
        surface=Surface(doc["surface"]),
        payload=payload_from_document(doc["type"], doc.get("payload") or {}),
        ts=float(doc.get("ts", 0.0)),
    )


def cache_entry_from_document(doc: dict[str, Any]) -> CacheEntry:
    return CacheEntry(
        normalized_query=doc["normalized_query"],
        query=doc.get("query", doc["normalized_query"]),
        results=tuple(search_result_from_document(r) for r in doc.get("results", [])),
        cached_at=float(doc.get("cached_at", 0.0)),
    )
