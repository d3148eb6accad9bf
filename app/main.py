"""FastAPI 애플리케이션 엔트리포인트 — PEP 자원봉사자 관리 API.

PEP volunteers API entry point.
Wires request logging and CORS, exposes ``/health`` for the load balancer,
and mounts the admin API (auth, volunteers, notebooks, attendances) under
``API_PREFIX``.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.middleware.axiom_logging import AxiomLoggingMiddleware

app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    description="자원봉사자, 워크숍 출석, 노트북 평가 관리 (Volunteers, workshop attendance, notebook evaluations)",
    version=settings.APP_VERSION,
)

# 요청 로깅은 CORS 바깥에서 — Logging wraps CORS so preflight failures are captured too
app.add_middleware(AxiomLoggingMiddleware)

# xlsx 다운로드 파일명을 브라우저에서 읽을 수 있도록 Content-Disposition 노출
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    expose_headers=["Content-Disposition"],
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


from app.api.admin import admin_router  # noqa: E402

app.include_router(admin_router, prefix=settings.API_PREFIX)
