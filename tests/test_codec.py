"""Tests for document conversion of runs and events."""

import pytest

from trend_ideas.data import (
    Approval,
    Constraints,
    ErrorPayload,
    Event,
    EventType,
    FindingPayload,
    Idea,
    IdeaPayload,
    ResearchReport,
    Run,
    RunStatus,
    Scope,
    ScopePayload,
    SourceRef,
    Surface,
    Trend,
    TrendCitation,
)
from trend_ideas.data.codec import (
    event_from_document,
    event_to_document,
    payload_from_document,
    run_from_document,
    to_document,
)


@pytest.fixture
def report() -> ResearchReport:
    return ResearchReport(
        trends=(
            Trend(
                title="AI agents",
                description="Agents everywhere.",
                confidence=0.8,
                sources=(SourceRef(url="https://a.example/x", title="X", snippet="s"),),
            ),
        ),
        generated_at="2026-03-02T09:30:00+00:00",
    )


class TestToDocument:
    def test_enums_become_values_and_tuples_lists(self) -> None:
        doc = to_document(Scope(topic="AI", platforms=("LinkedIn",), include=("agents",)))
        assert doc == {
            "topic": "AI",
            "platforms": ["LinkedIn"],
            "timeframe": "7d",
            "region": "Global",
            "idea_count": 5,
            "include": ["agents"],
            "exclude": [],
        }
        assert to_document(RunStatus.DONE) == "done"

    def test_payload_class_type_not_included(self) -> None:
        assert to_document(ErrorPayload(message="m", detail="d")) == {
            "message": "m",
            "detail": "d",
        }


class TestRunDocument:
    def test_round_trip_through_mongo_style_id(self, report: ResearchReport) -> None:
        run = Run(
            id="abc",
            user_query="AI trends",
            status=RunStatus.AWAITING_APPROVAL,
            constraints=Constraints(timeframe="7d", platforms=("LinkedIn",)),
            research_report=report,
            approval=Approval.REFINE,
            refinement="narrower",
            approved_at=12.5,
            created_at=10.0,
        )
        doc = to_document(run)
        doc["_id"] = doc.pop("id")

        assert run_from_document(doc) == run

    def test_missing_optional_fields(self) -> None:
        run = run_from_document({"_id": "r1", "user_query": "q"})
        assert run.status is RunStatus.IDLE
        assert run.constraints == Constraints()
        assert run.research_report is None
        assert run.approval is None


class TestEventDocument:
    def test_finding_event(self) -> None:
        event = Event(
            run_id="r1",
            surface=Surface.MAIN,
            payload=FindingPayload(
                trend_candidate="Title",
                source_refs=(SourceRef(url="https://a.example/x", title="Title", snippet="s"),),
            ),
            ts=3.0,
        )
        doc = event_to_document(event)

        assert doc["type"] == "finding"
        assert doc["surface"] == "main"
        assert event_from_document(doc) == event

    def test_idea_event(self) -> None:
        idea = Idea(
            platform="LinkedIn",
            idea="Post",
            trend_citation=TrendCitation(trend_title="AI agents", source_url=None),
            why="because",
        )
        event = Event(run_id="r1", surface=Surface.SIDEBAR, payload=IdeaPayload(idea=idea), ts=1.0)
        assert event_from_document(event_to_document(event)) == event

    def test_scope_payload_defaults(self) -> None:
        payload = payload_from_document(EventType.SCOPE, {"scope": {"topic": "AI"}})
        assert payload == ScopePayload(scope=Scope(topic="AI"))

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(ValueError):
            payload_from_document("telemetry", {})
