from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.api.deps.analysis import CurrentSession, session_registry
from app.services.analysis_session import AnalysisSession, SessionRegistry
from app.telemetry.tracing import emit_event

router = APIRouter()


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(sessions: SessionRegistry = Depends(session_registry)):
    session = sessions.create()
    emit_event("session.created", session_id=session.id)
    return session.snapshot()


@router.get("/sessions/{session_id}")
async def get_session(session: AnalysisSession = CurrentSession):
    return session.snapshot()
