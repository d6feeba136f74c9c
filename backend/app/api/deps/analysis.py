from typing import AsyncIterator

from fastapi import Depends, HTTPException, status

from app.services.analysis_session import AnalysisSession, SessionRegistry, registry
from app.services.model_gateway import ModelGateway, build_gateway


def session_registry() -> SessionRegistry:
    return registry


async def model_gateway() -> AsyncIterator[ModelGateway]:
    gateway = build_gateway()
    try:
        yield gateway
    finally:
        await gateway.close()


def require_session(
    session_id: str,
    sessions: SessionRegistry = Depends(session_registry),
) -> AnalysisSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found",
        )
    return session


Gateway = Depends(model_gateway)
CurrentSession = Depends(require_session)
