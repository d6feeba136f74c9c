from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from app.models.evaluation import AGGREGATE_VIEW, Evaluation, ViewTarget

STATUS_IDLE = "idle"
STATUS_RUNNING = "running"
STATUS_SUCCEEDED = "succeeded"
STATUS_FAILED = "failed"


@dataclass
class AnalysisSession:
    """Live state of one grading session.

    Run lifecycle fields (status, busy, progress, evaluations, last_error) are
    written by the orchestrator only; ``selection`` by the view selector only.
    Nothing here outlives the process.
    """

    id: str
    status: str = STATUS_IDLE
    busy: bool = False
    evaluations: list[Evaluation] = field(default_factory=list)
    selection: ViewTarget = AGGREGATE_VIEW
    progress: str | None = None
    last_error: str | None = None
    study_plan: str | None = None
    run_id: int = 0

    def begin_run(self, total: int) -> int:
        self.run_id += 1
        self.status = STATUS_RUNNING
        self.busy = True
        self.evaluations = []
        self.selection = AGGREGATE_VIEW
        self.last_error = None
        self.study_plan = None
        self.progress = format_progress(0, total)
        return self.run_id

    def complete_run(self, evaluations: list[Evaluation]) -> None:
        self.evaluations = list(evaluations)
        self.selection = AGGREGATE_VIEW
        self.status = STATUS_SUCCEEDED
        self.busy = False

    def fail_run(self, message: str) -> None:
        self.evaluations = []
        self.selection = AGGREGATE_VIEW
        self.status = STATUS_FAILED
        self.last_error = message
        self.busy = False

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "busy": self.busy,
            "progress": self.progress,
            "lastError": self.last_error,
            "evaluationCount": len(self.evaluations),
            "selection": self.selection,
            "hasStudyPlan": self.study_plan is not None,
        }


def format_progress(completed: int, total: int) -> str:
    return f"{completed} of {total} complete"


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: dict[str, AnalysisSession] = {}

    def create(self) -> AnalysisSession:
        session = AnalysisSession(id=uuid4().hex)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> AnalysisSession | None:
        return self._sessions.get(session_id)

    def clear(self) -> None:
        self._sessions.clear()


registry = SessionRegistry()
