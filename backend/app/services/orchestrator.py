from __future__ import annotations

import asyncio
import dataclasses
import inspect
import logging
import time
from typing import Awaitable, Callable, Protocol

from app.models.analysis import Attachment
from app.models.evaluation import Corrector, Evaluation
from app.services.analysis_session import AnalysisSession, format_progress
from app.services.model_gateway import BackendError, MalformedResponse
from app.services.prompts import build_evaluation_prompt, build_persona_set
from app.telemetry.otel import start_span
from app.telemetry.tracing import emit_event, emit_metric, score_attributes

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], "Awaitable[None] | None"]


class InvalidInput(ValueError):
    pass


class AnalysisBusy(RuntimeError):
    pass


class Gateway(Protocol):
    async def invoke(
        self,
        system_instruction: str,
        user_prompt: str,
        attachment: Attachment | None = None,
        structured: bool = False,
    ) -> Evaluation | str: ...


class EvaluationOrchestrator:
    """Fans one essay out to every corrector persona and joins the results.

    All calls are dispatched before any is awaited. The run succeeds only if
    every corrector returns a valid evaluation; the first failure fails the run
    and calls still in flight finish on their own with their results discarded.
    """

    def __init__(self, gateway: Gateway, personas: list[Corrector] | None = None) -> None:
        self._gateway = gateway
        self._personas = list(personas) if personas is not None else build_persona_set()

    @property
    def personas(self) -> list[Corrector]:
        return list(self._personas)

    async def run_analysis(
        self,
        session: AnalysisSession,
        essay_text: str | None,
        attachment: Attachment | None = None,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> list[Evaluation]:
        if not (essay_text or "").strip() and attachment is None:
            raise InvalidInput("Provide essay text or an attachment")
        if session.busy:
            raise AnalysisBusy(f"Session {session.id} already has an analysis running")

        total = len(self._personas)
        run_id = session.begin_run(total)
        prompt = build_evaluation_prompt(essay_text)
        completed = 0
        settled = False
        started = time.perf_counter()

        async def _report(message: str) -> None:
            if settled or session.run_id != run_id:
                return
            session.progress = message
            if on_progress is None:
                return
            result = on_progress(message)
            if inspect.isawaitable(result):
                await result

        async def _evaluate(persona: Corrector) -> Evaluation:
            nonlocal completed
            corrector_started = time.perf_counter()
            with start_span(
                "analysis.corrector",
                {"sessionId": session.id, "corrector": persona.name},
            ):
                try:
                    evaluation = await self._gateway.invoke(
                        persona.system, prompt, attachment, True
                    )
                except (BackendError, MalformedResponse):
                    raise
                except Exception as exc:
                    raise BackendError(str(exc) or exc.__class__.__name__) from exc
            if not isinstance(evaluation, Evaluation):
                raise MalformedResponse("Gateway returned text for a structured request")
            if evaluation.corretor != persona.name:
                evaluation = dataclasses.replace(evaluation, corretor=persona.name)
            emit_metric(
                "analysis.corrector_latency",
                time.perf_counter() - corrector_started,
                session_id=session.id,
                corrector=persona.name,
            )
            emit_event(
                "analysis.corrector_completed",
                session_id=session.id,
                corrector=persona.name,
                attributes=score_attributes(evaluation.scores),
            )
            completed += 1
            logger.info(
                "Corrector finished session_id=%s corrector=%s total=%s progress=%s/%s",
                session.id,
                persona.name,
                evaluation.scores.total,
                completed,
                total,
            )
            await _report(format_progress(completed, total))
            return evaluation

        emit_event(
            "analysis.started",
            session_id=session.id,
            attributes={
                "correctors": total,
                "hasText": bool((essay_text or "").strip()),
                "attachment": attachment.kind.value if attachment else None,
            },
        )
        try:
            await _report(format_progress(0, total))
            tasks = [asyncio.ensure_future(_evaluate(persona)) for persona in self._personas]
            with start_span("analysis.run", {"sessionId": session.id, "correctors": total}):
                results = await asyncio.gather(*tasks)
        except Exception as exc:
            settled = True
            message = str(exc) or exc.__class__.__name__
            logger.warning(
                "Analysis failed session_id=%s error=%s type=%s",
                session.id,
                message,
                exc.__class__.__name__,
            )
            if session.run_id == run_id:
                session.fail_run(message)
            emit_event(
                "analysis.failed",
                session_id=session.id,
                attributes={"error": message, "errorType": exc.__class__.__name__},
            )
            if isinstance(exc, (BackendError, MalformedResponse)):
                raise
            raise BackendError(message) from exc
        else:
            evaluations = list(results)
            if session.run_id == run_id:
                session.complete_run(evaluations)
        finally:
            settled = True
            if session.run_id == run_id and session.busy:
                logger.warning("Analysis interrupted session_id=%s", session.id)
                session.fail_run("Análise interrompida")

        latency = time.perf_counter() - started
        emit_metric(
            "analysis.latency",
            latency,
            session_id=session.id,
            attributes={"status": "succeeded", "correctors": total},
        )
        emit_event(
            "analysis.completed",
            session_id=session.id,
            attributes={"totals": [evaluation.scores.total for evaluation in evaluations]},
        )
        return evaluations
