"""FastAPI 의존성 주입 모듈 — 인증 및 모듈 권한 검사.

FastAPI dependency injection module — Authentication and module permissions.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. HTTPBearer가 토큰을 추출하고 decode_token()이 검증
       (HTTPBearer extracts the token, decode_token verifies it)
    3. 페이로드의 "sub"(idvol)로 자원봉사자를 조회
       (Volunteer is fetched using the payload "sub" field)

Authorization Flow (require_permission):
    1. 자원봉사자의 권한 프로필 이름으로 프로필을 조회
       (Authorization profile looked up by the volunteer's profile name)
    2. 요청한 모듈 플래그가 꺼져 있으면 403 Forbidden
       (Returns 403 when the requested module flag is off)
"""

from typing import Annotated, Awaitable, Callable

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.repositories.volunteer_repository import volunteer_repository
from app.schemas.volunteer import PermissionResponse, VolunteerResponse
from app.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기 (Extracts JWT token from Authorization: Bearer <token> header)
security: HTTPBearer = HTTPBearer()


async def get_current_volunteer(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> VolunteerResponse:
    """JWT 토큰에서 현재 인증된 자원봉사자를 추출합니다.

    Decode the bearer token and return the authenticated volunteer.

    Raises:
        HTTPException(401): 토큰이 유효하지 않거나 만료됨 (Invalid or expired token)
        HTTPException(401): 자원봉사자를 찾을 수 없음 (Volunteer no longer exists)
    """
    try:
        payload: dict = decode_token(credentials.credentials)
        # 리프레시 토큰 거부 — Reject refresh tokens used as access tokens
        if payload.get("type") != "access":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
        idvol: int = int(payload["sub"])
    except HTTPException:
        raise
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    volunteer: VolunteerResponse | None = await volunteer_repository.get_volunteer_by_id(db, idvol)
    if volunteer is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Volunteer not found")
    return volunteer


def require_permission(code: str) -> Callable[..., Awaitable[VolunteerResponse]]:
    """모듈 권한 검사 의존성 팩토리.

    Dependency factory enforcing one module permission flag, e.g.
    ``require_permission("notebook_module_permission")``.

    Args:
        code: 권한 플래그 컬럼 이름 (Authorization flag column name)

    Returns:
        FastAPI 의존성 함수 — 인증된 자원봉사자 반환 또는 403 발생
        (Dependency returning the volunteer or raising 403)
    """
    async def _check(
        current_volunteer: Annotated[VolunteerResponse, Depends(get_current_volunteer)],
        db: Annotated[AsyncSession, Depends(get_db)],
    ) -> VolunteerResponse:
        profile: PermissionResponse | None = await volunteer_repository.get_permission_by_auth_name(
            db, current_volunteer.authorization
        )
        if profile is None or code not in profile.granted():
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_volunteer
    return _check


# 편의 의존성 — Pre-configured module permission dependencies
require_attendance_module = require_permission("attendance_module_permission")
require_manage_volunteer_module = require_permission("manage_volunteer_module_permission")
require_notebook_module = require_permission("notebook_module_permission")
