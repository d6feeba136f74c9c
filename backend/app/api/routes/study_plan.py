from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import PlainTextResponse

from app.api.deps.analysis import CurrentSession, Gateway
from app.services.aggregator import EmptyInput
from app.services.analysis_session import AnalysisSession
from app.services.model_gateway import BackendError, MalformedResponse, ModelGateway
from app.services.report import (
    EVALUATION_REPORT_FILENAME,
    STUDY_PLAN_REPORT_FILENAME,
    build_evaluation_report,
    build_study_plan_report,
)
from app.services.study_plan import generate_study_plan, generate_themes

router = APIRouter()

STUDY_PLAN_ERROR_PREFIX = "Ocorreu um erro ao gerar o plano de estudos: "
THEMES_ERROR_PREFIX = "Ocorreu um erro ao gerar os temas: "
MARKDOWN_MEDIA_TYPE = "text/markdown; charset=utf-8"


def _markdown_download(content: str, filename: str) -> PlainTextResponse:
    return PlainTextResponse(
        content,
        media_type=MARKDOWN_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/sessions/{session_id}/study-plan")
async def create_study_plan(
    session: AnalysisSession = CurrentSession,
    gateway: ModelGateway = Gateway,
):
    try:
        plan = await generate_study_plan(gateway, session)
    except EmptyInput as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except (BackendError, MalformedResponse) as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=STUDY_PLAN_ERROR_PREFIX + str(exc),
        ) from exc
    return {"sessionId": session.id, "content": plan}


@router.get("/sessions/{session_id}/report")
async def export_evaluation_report(session: AnalysisSession = CurrentSession):
    try:
        content = build_evaluation_report(session.evaluations)
    except EmptyInput as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _markdown_download(content, EVALUATION_REPORT_FILENAME)


@router.get("/sessions/{session_id}/study-plan/report")
async def export_study_plan_report(session: AnalysisSession = CurrentSession):
    if session.study_plan is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Aguarde o conteúdo do plano de estudo ser gerado antes de exportar.",
        )
    try:
        content = build_study_plan_report(session.study_plan)
    except EmptyInput as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _markdown_download(content, STUDY_PLAN_REPORT_FILENAME)


@router.post("/themes")
async def create_themes(gateway: ModelGateway = Gateway):
    try:
        content = await generate_themes(gateway)
    except (BackendError, MalformedResponse) as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=THEMES_ERROR_PREFIX + str(exc),
        ) from exc
    return {"content": content}
