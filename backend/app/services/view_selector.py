from __future__ import annotations

from app.models.evaluation import AGGREGATE_VIEW, DisplayedResult, ViewTarget
from app.services.aggregator import EmptyInput, aggregate
from app.services.analysis_session import AnalysisSession

_AGGREGATE_ALIASES = {AGGREGATE_VIEW, "avg", "media"}


class IndexOutOfRange(IndexError):
    pass


def parse_view_target(raw: str | int) -> ViewTarget:
    if isinstance(raw, bool):
        raise ValueError(f"Invalid view target: {raw!r}")
    if isinstance(raw, int):
        return raw
    value = raw.strip().lower()
    if value in _AGGREGATE_ALIASES:
        return AGGREGATE_VIEW
    if value.isdigit():
        return int(value)
    raise ValueError(f"Invalid view target: {raw!r}")


class ViewSelector:
    def __init__(self, session: AnalysisSession) -> None:
        self._session = session

    def _resolve(self, target: ViewTarget) -> DisplayedResult:
        evaluations = self._session.evaluations
        if target == AGGREGATE_VIEW:
            if not evaluations:
                raise EmptyInput("No evaluations to display")
            return aggregate(evaluations)
        if target < 0 or target >= len(evaluations):
            raise IndexOutOfRange(
                f"View index {target} out of range for {len(evaluations)} evaluations"
            )
        return evaluations[target]

    def select(self, target: ViewTarget) -> DisplayedResult:
        displayed = self._resolve(target)
        self._session.selection = target
        return displayed

    def current(self) -> DisplayedResult:
        selection = self._session.selection
        if selection != AGGREGATE_VIEW and selection >= len(self._session.evaluations):
            self._session.selection = AGGREGATE_VIEW
        return self._resolve(self._session.selection)
