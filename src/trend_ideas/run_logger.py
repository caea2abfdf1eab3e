"""Invocation logger for recording orchestrator stage results to JSON files."""

import dataclasses
import uuid
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from trend_ideas.data.codec import to_document


class StageRecord(BaseModel):
    """Record of a single orchestrator stage execution."""

    stage: str
    input: Any = None
    output: Any = None
    timestamp: str = ""
    duration_seconds: float = 0.0


class InvocationRecord(BaseModel):
    """Record of one ``start`` or ``resume`` invocation."""

    invocation_id: str
    entry_point: str
    run_id: str
    user_query: str
    started_at: str
    completed_at: str | None = None
    stages: list[StageRecord] = []
    final_status: str | None = None
    outcome: str | None = None


def _serialize(obj: Any) -> Any:
    """Serialize an object to JSON-compatible format.

    Handles dataclasses, Pydantic models, enums, sequences, dicts, and primitives.
    """
    if obj is None:
        return None
    if isinstance(obj, Enum) or (dataclasses.is_dataclass(obj) and not isinstance(obj, type)):
        return to_document(obj)
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if isinstance(obj, (list, tuple)):
        return [_serialize(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, Path):
        return str(obj)
    return obj


class RunLogger:
    """Accumulates stage records and writes a JSON log file per invocation.

    When ``enabled=False``, all methods are no-ops.

    Args:
        log_dir: Directory to write JSON log files.
        enabled: If False, all methods become no-ops.
    """

    def __init__(self, log_dir: Path, *, enabled: bool = True) -> None:
        self._log_dir = log_dir
        self._enabled = enabled
        self._record: InvocationRecord | None = None
        self._last_log_path: Path | None = None

    @property
    def enabled(self) -> bool:
        """Whether logging is active."""
        return self._enabled

    @property
    def last_log_path(self) -> Path | None:
        """Path to the last written log file, or None."""
        return self._last_log_path

    def start_invocation(self, entry_point: str, run_id: str, user_query: str) -> None:
        """Initialize a new invocation record.

        Args:
            entry_point: "start" or "resume".
            run_id: Run being driven.
            user_query: The run's query at invocation time.
        """
        if not self._enabled:
            return

        self._record = InvocationRecord(
            invocation_id=str(uuid.uuid4()),
            entry_point=entry_point,
            run_id=run_id,
            user_query=user_query,
            started_at=datetime.now(tz=UTC).isoformat(),
        )

    def log_stage(
        self,
        stage: str,
        input_data: Any,
        output_data: Any,
        duration_seconds: float,
    ) -> None:
        """Append a stage record to the current invocation.

        Args:
            stage: Stage name (e.g. "plan", "research").
            input_data: Stage input (will be serialized).
            output_data: Stage output (will be serialized).
            duration_seconds: Wall-clock time for this stage.
        """
        if not self._enabled or self._record is None:
            return

        self._record.stages.append(
            StageRecord(
                stage=stage,
                input=_serialize(input_data),
                output=_serialize(output_data),
                timestamp=datetime.now(tz=UTC).isoformat(),
                duration_seconds=round(duration_seconds, 4),
            )
        )

    def finish_invocation(self, final_status: str, outcome: str) -> Path | None:
        """Write the invocation record to a JSON file.

        Returns:
            Path to the written JSON file, or None if logging is disabled.
        """
        if not self._enabled or self._record is None:
            return None

        self._record.completed_at = datetime.now(tz=UTC).isoformat()
        self._record.final_status = str(final_status)
        self._record.outcome = str(outcome)

        self._log_dir.mkdir(parents=True, exist_ok=True)

        # invocation_2026-02-12T14-30-00_<run>.json
        ts = self._record.started_at.replace(":", "-")
        ts = ts.split(".")[0].split("+")[0]
        filepath = self._log_dir / f"invocation_{ts}_{self._record.run_id[:8]}.json"

        filepath.write_text(self._record.model_dump_json(indent=2))
        self._last_log_path = filepath
        self._record = None
        return filepath
