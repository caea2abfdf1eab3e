"""Exception types raised by trend-ideas components."""


class TrendIdeasError(Exception):
    """Base class for all trend-ideas errors."""


class GenerationError(TrendIdeasError):
    """The text generator failed (transport, auth, or empty response)."""


class ParseError(TrendIdeasError):
    """Model output did not contain the expected JSON structure."""


class SearchError(TrendIdeasError):
    """A search provider request failed."""


class RunNotFoundError(TrendIdeasError):
    def __init__(self, run_id: str) -> None:
        super().__init__(f"Run not found: {run_id}")
        self.run_id = run_id


class InvalidTransitionError(TrendIdeasError):
    """A run status change that is not an edge of the run state machine."""

    def __init__(self, status: str, trigger: str) -> None:
        super().__init__(f"No transition from '{status}' on '{trigger}'")
        self.status = status
        self.trigger = trigger


class MissingReportError(TrendIdeasError):
    """Idea generation was requested for a run without a research report."""
