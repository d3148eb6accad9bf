"""Axiom API 로깅 미들웨어.

Axiom API logging middleware.
Sends one structured event per API request to Axiom: endpoint, method,
pagination/query parameters, masked request body, status code, the
authenticated volunteer, and for failures the named domain error.

Volunteer registrations carry personal data, so besides credentials
(password, senha, tokens) the contact and health fields are masked too.
"""

import json
import re
import time
from typing import Any

import jwt
from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings
from app.utils.jwt import decode_token

# 자격 증명 키 — Credential keys, always masked
_SENSITIVE_KEYS = re.compile(
    r"(password|senha|secret|token|authorization|api_key|credential)",
    re.IGNORECASE,
)

# 개인 정보 키 — Personal data collected by the registration form
_PERSONAL_KEYS: frozenset[str] = frozenset({"phone_number", "birth_date", "disability"})

# 자유 서술 필드 최대 길이 — Free-text answers (desires, a1..a13, ...) are cut to this length
_MAX_TEXT: int = 300

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


def _mask(data: Any, depth: int = 0) -> Any:
    """민감/개인 정보 필드를 재귀적으로 마스킹합니다."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if _SENSITIVE_KEYS.search(k) or k in _PERSONAL_KEYS else _mask(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [_mask(item, depth + 1) for item in data[:20]]
    if isinstance(data, str) and len(data) > _MAX_TEXT:
        return data[:_MAX_TEXT] + "...(truncated)"
    return data


def _volunteer_id(request: Request) -> str | None:
    """Bearer 토큰의 자원봉사자 ID — 검증 실패 시 None (Unverifiable tokens are not attributed)."""
    header: str = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        return decode_token(token).get("sub")
    except jwt.InvalidTokenError:
        return None


def _error_fields(body: bytes) -> dict[str, Any]:
    """오류 응답 본문에서 도메인 오류 이름과 메시지를 추출합니다.

    ``{"detail": {"name", "message"}}`` yields both; plain HTTP errors and
    validation errors yield the detail only.
    """
    try:
        detail: Any = json.loads(body).get("detail")
    except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
        return {"error": body.decode("utf-8", errors="replace")[:500]}

    if isinstance(detail, dict) and "name" in detail:
        return {"error_name": detail["name"], "error": str(detail.get("message", ""))[:500]}
    return {"error": str(detail)[:500]}


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청/응답을 Axiom에 로깅하는 미들웨어.

    Pass-through when ``AXIOM_API_TOKEN`` or ``AXIOM_DATASET`` is unset.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET

        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _SKIP_PATHS or not self._client:
            return await call_next(request)

        start_time = time.time()
        event: dict[str, Any] = {
            "method": request.method,
            "path": request.url.path,
        }
        if request.query_params:
            event["query_params"] = _mask(dict(request.query_params.multi_items()))
        volunteer_id = _volunteer_id(request)
        if volunteer_id:
            event["volunteer_id"] = volunteer_id

        if request.method in ("POST", "PUT", "PATCH"):
            body_bytes = await request.body()
            if body_bytes:
                try:
                    event["request_body"] = _mask(json.loads(body_bytes))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    event["request_body"] = "(non-json body)"

        status_code: int = 500
        try:
            response = await call_next(request)
            status_code = response.status_code

            # 오류 응답 본문 소비 후 재구성 — Consume the error body, then rebuild the response
            if status_code >= 400:
                resp_body = b""
                async for chunk in response.body_iterator:
                    resp_body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
                event.update(_error_fields(resp_body))
                response = Response(
                    content=resp_body,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event["status_code"] = status_code
            event["duration_ms"] = round((time.time() - start_time) * 1000, 2)
            try:
                self._client.ingest_events(self._dataset, [event])
            except Exception:
                pass  # 로깅 실패가 요청 처리에 영향주지 않도록 — Never break a request on log failure

        return response
