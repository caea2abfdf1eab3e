"""Tests for RunLogger."""

import json
from pathlib import Path

from trend_ideas.data import RunStatus, Scope
from trend_ideas.run_logger import RunLogger


class TestRunLogger:
    def test_disabled_is_noop(self, tmp_path: Path) -> None:
        logger = RunLogger(tmp_path, enabled=False)
        logger.start_invocation("start", "run-1", "AI")
        logger.log_stage("plan", {"a": 1}, {"b": 2}, 0.1)

        assert logger.finish_invocation("done", "completed") is None
        assert list(tmp_path.iterdir()) == []

    def test_writes_invocation_file(self, tmp_path: Path) -> None:
        logger = RunLogger(tmp_path / "logs")
        logger.start_invocation("start", "0123456789abcdef", "AI trends")
        logger.log_stage("plan", {"query": "AI trends"}, Scope(topic="AI"), 0.123456)
        logger.log_stage("research", ["q1"], [RunStatus.RESEARCHING], 1.0)

        path = logger.finish_invocation(RunStatus.AWAITING_APPROVAL, "awaiting_approval")

        assert path is not None
        assert path == logger.last_log_path
        assert path.name.startswith("invocation_")
        assert path.name.endswith("_01234567.json")

        data = json.loads(path.read_text())
        assert data["entry_point"] == "start"
        assert data["run_id"] == "0123456789abcdef"
        assert data["final_status"] == "awaiting_approval"
        assert data["outcome"] == "awaiting_approval"
        assert [s["stage"] for s in data["stages"]] == ["plan", "research"]
        assert data["stages"][0]["output"]["topic"] == "AI"
        assert data["stages"][0]["output"]["platforms"] == ["LinkedIn", "Twitter/X"]
        assert data["stages"][0]["duration_seconds"] == 0.1235
        assert data["stages"][1]["output"] == ["researching"]

    def test_stage_without_invocation_is_ignored(self, tmp_path: Path) -> None:
        logger = RunLogger(tmp_path)
        logger.log_stage("plan", None, None, 0.0)
        assert logger.finish_invocation("done", "completed") is None

    def test_record_reset_after_finish(self, tmp_path: Path) -> None:
        logger = RunLogger(tmp_path)
        logger.start_invocation("resume", "run-1", "AI")
        assert logger.finish_invocation("done", "completed") is not None
        assert logger.finish_invocation("done", "completed") is None
