"""관리자 API 라우터 패키지 — 모든 관리자 엔드포인트 통합.

Admin API Router package — Aggregates all admin-facing endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - auth: 로그인 및 토큰 갱신 (Login and token refresh)
    - volunteers: 자원봉사자 관리 (Volunteer management, hours)
    - notebooks: 노트북 예약 및 평가 (Notebook reservation and evaluation)
    - attendances: 워크숍 출석 및 활동 지표 (Workshop attendance, metrics)
"""

from fastapi import APIRouter

from app.api.admin.auth import router as auth_router
from app.api.admin.volunteers import router as volunteers_router
from app.api.admin.notebooks import router as notebooks_router
from app.api.admin.attendances import router as attendances_router

admin_router: APIRouter = APIRouter()

admin_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
admin_router.include_router(volunteers_router, prefix="/volunteers", tags=["Volunteers"])
admin_router.include_router(notebooks_router, prefix="/notebooks", tags=["Notebooks"])
admin_router.include_router(attendances_router, prefix="/attendances", tags=["Attendances"])
