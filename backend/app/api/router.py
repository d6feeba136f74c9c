from fastapi import APIRouter

from app.api.routes.analysis import router as analysis_router
from app.api.routes.sessions import router as sessions_router
from app.api.routes.session_socket import router as session_socket_router
from app.api.routes.study_plan import router as study_plan_router

api_router = APIRouter()
api_router.include_router(sessions_router)
api_router.include_router(analysis_router)
api_router.include_router(study_plan_router)
api_router.include_router(session_socket_router)


@api_router.get("/healthz")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
