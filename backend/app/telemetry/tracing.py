from __future__ import annotations

import json
import logging
from typing import Any

from app.models.evaluation import CRITERION_FIELDS, Scores

logger = logging.getLogger("app.telemetry")


def score_attributes(scores: Scores) -> dict[str, int]:
    """Flattens a score bundle into event attributes (c1..c5 plus total)."""
    attributes = {
        f"c{index}": getattr(scores, field)
        for index, field in enumerate(CRITERION_FIELDS, start=1)
    }
    attributes["total"] = scores.total
    return attributes


def _record(
    kind: str,
    name: str,
    session_id: str | None,
    corrector: str | None,
    attributes: dict[str, Any] | None,
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": kind, "name": name, **extra}
    payload["sessionId"] = session_id
    payload["corrector"] = corrector
    payload["attributes"] = dict(attributes or {})
    return payload


def build_event(
    name: str,
    *,
    session_id: str | None = None,
    corrector: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return _record("event", name, session_id, corrector, attributes)


def build_metric(
    name: str,
    value: float,
    *,
    session_id: str | None = None,
    corrector: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return _record("metric", name, session_id, corrector, attributes, value=value)


def _log(payload: dict[str, Any]) -> dict[str, Any]:
    # Portuguese names and feedback stay readable in the log line.
    logger.info(json.dumps(payload, sort_keys=True, ensure_ascii=False))
    return payload


def emit_event(name: str, **kwargs: Any) -> dict[str, Any]:
    return _log(build_event(name, **kwargs))


def emit_metric(name: str, value: float, **kwargs: Any) -> dict[str, Any]:
    return _log(build_metric(name, value, **kwargs))
