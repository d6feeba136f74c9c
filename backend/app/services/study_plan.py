from __future__ import annotations

import logging

from app.services.aggregator import EmptyInput
from app.services.analysis_session import AnalysisSession
from app.services.model_gateway import BackendError, MalformedResponse
from app.services.orchestrator import Gateway
from app.services.prompts import (
    STUDY_PLAN_SYSTEM,
    THEME_SYSTEM,
    build_study_plan_prompt,
    build_theme_prompt,
)
from app.telemetry.otel import start_span
from app.telemetry.tracing import emit_event

logger = logging.getLogger(__name__)


async def _generate_text(gateway: Gateway, system: str, prompt: str) -> str:
    try:
        result = await gateway.invoke(system, prompt, None, False)
    except (BackendError, MalformedResponse):
        raise
    except Exception as exc:
        raise BackendError(str(exc) or exc.__class__.__name__) from exc
    if not isinstance(result, str):
        raise MalformedResponse("Expected a text response")
    return result


async def generate_study_plan(gateway: Gateway, session: AnalysisSession) -> str:
    # Only writes session.study_plan; evaluations and selection are left alone.
    evaluations = list(session.evaluations)
    if not evaluations:
        raise EmptyInput("É preciso analisar uma redação primeiro.")
    with start_span("study_plan.generate", {"sessionId": session.id}):
        try:
            plan = await _generate_text(
                gateway, STUDY_PLAN_SYSTEM, build_study_plan_prompt(evaluations)
            )
        except (BackendError, MalformedResponse) as exc:
            logger.warning("Study plan failed session_id=%s error=%s", session.id, exc)
            raise
    session.study_plan = plan
    emit_event("study_plan.generated", session_id=session.id)
    return plan


async def generate_themes(gateway: Gateway) -> str:
    with start_span("themes.generate"):
        return await _generate_text(gateway, THEME_SYSTEM, build_theme_prompt())
