from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse

from app.api.deps.analysis import CurrentSession, Gateway
from app.api.routes.session_socket import hub
from app.models.analysis import AnalysisRequest, ViewSelectionInput
from app.models.evaluation import AGGREGATE_VIEW
from app.services.aggregator import EmptyInput, aggregate
from app.services.analysis_session import AnalysisSession
from app.services.model_gateway import BackendError, MalformedResponse, ModelGateway
from app.services.orchestrator import AnalysisBusy, EvaluationOrchestrator, InvalidInput
from app.services.view_selector import IndexOutOfRange, ViewSelector, parse_view_target

router = APIRouter()

ANALYSIS_ERROR_PREFIX = "Erro ao analisar a redação: "


def _analysis_response(session: AnalysisSession) -> dict[str, Any]:
    return {
        "sessionId": session.id,
        "status": session.status,
        "evaluations": [evaluation.to_payload() for evaluation in session.evaluations],
        "aggregate": aggregate(session.evaluations).to_payload(),
        "selection": session.selection,
    }


def _view_response(session: AnalysisSession, displayed) -> dict[str, Any]:
    return {
        "sessionId": session.id,
        "selection": session.selection,
        "isAggregate": session.selection == AGGREGATE_VIEW,
        "result": displayed.to_payload(),
    }


@router.post("/sessions/{session_id}/analysis")
async def start_analysis(
    payload: AnalysisRequest,
    session: AnalysisSession = CurrentSession,
    gateway: ModelGateway = Gateway,
):
    if session.busy:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=session.snapshot(),
        )
    attachment = payload.attachment.to_attachment() if payload.attachment else None

    async def _progress(message: str) -> None:
        await hub.broadcast(
            session.id, {"type": "analysis_progress", "message": message}
        )

    orchestrator = EvaluationOrchestrator(gateway)
    try:
        await orchestrator.run_analysis(
            session, payload.essayText, attachment, on_progress=_progress
        )
    except AnalysisBusy:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=session.snapshot(),
        )
    except InvalidInput as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except (BackendError, MalformedResponse) as exc:
        detail = ANALYSIS_ERROR_PREFIX + str(exc)
        await hub.broadcast(session.id, {"type": "analysis_failed", "message": detail})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail) from exc

    response = _analysis_response(session)
    await hub.broadcast(session.id, {"type": "analysis_completed", **response})
    return response


@router.get("/sessions/{session_id}/view")
async def get_view(session: AnalysisSession = CurrentSession):
    try:
        displayed = ViewSelector(session).current()
    except EmptyInput as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _view_response(session, displayed)


@router.put("/sessions/{session_id}/view")
async def select_view(
    payload: ViewSelectionInput,
    session: AnalysisSession = CurrentSession,
):
    try:
        target = parse_view_target(payload.target)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    try:
        displayed = ViewSelector(session).select(target)
    except IndexOutOfRange as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except EmptyInput as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _view_response(session, displayed)
