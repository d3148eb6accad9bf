"""인증 서비스 — 로그인 및 토큰 갱신 비즈니스 로직.

Auth Service — Business logic for volunteer login and token refresh.
Volunteers authenticate with email and password; the token carries the
name of their authorization profile, and the login response lists the
module permissions that profile grants.
"""

from typing import Any

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.volunteer_repository import volunteer_repository
from app.schemas.auth import LoginRequest, RefreshRequest, TokenResponse
from app.schemas.volunteer import VolunteerResponse
from app.utils.exceptions import UnauthorizedError
from app.utils.jwt import create_access_token, create_refresh_token, decode_token
from app.utils.password import verify_password


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스."""

    def _build_jwt_payload(self, volunteer: VolunteerResponse) -> dict[str, Any]:
        return {
            "sub": str(volunteer.idvol),
            "email": volunteer.email,
            "auth": volunteer.authorization,
        }

    async def _generate_tokens(self, db: AsyncSession, volunteer: VolunteerResponse) -> TokenResponse:
        """액세스/리프레시 토큰 쌍과 권한 목록을 생성합니다.

        Generate the token pair plus the granted permission codes.
        An unknown profile name grants nothing.
        """
        payload: dict[str, Any] = self._build_jwt_payload(volunteer)
        permission = await volunteer_repository.get_permission_by_auth_name(db, volunteer.authorization)
        return TokenResponse(
            access_token=create_access_token(payload),
            refresh_token=create_refresh_token(payload),
            permissions=permission.granted() if permission else [],
        )

    async def login(self, db: AsyncSession, data: LoginRequest) -> TokenResponse:
        """이메일/비밀번호 로그인을 처리합니다.

        Raises:
            UnauthorizedError: 잘못된 인증 정보일 때 (Invalid credentials,
                including volunteers that never set a password)
        """
        volunteer = await volunteer_repository.get_volunteer_with_auth_data_by_email(db, data.email)
        if volunteer is None or not verify_password(data.password, volunteer.password_hash):
            raise UnauthorizedError("Invalid email or password")
        return await self._generate_tokens(db, volunteer)

    async def refresh(self, db: AsyncSession, data: RefreshRequest) -> TokenResponse:
        """리프레시 토큰으로 새 토큰 쌍을 발급합니다.

        Raises:
            UnauthorizedError: 토큰이 유효하지 않거나 자원봉사자가 삭제되었을 때
        """
        try:
            payload: dict[str, Any] = decode_token(data.refresh_token)
        except jwt.InvalidTokenError:
            raise UnauthorizedError("Invalid refresh token")
        if payload.get("type") != "refresh":
            raise UnauthorizedError("Invalid token type")

        try:
            idvol: int = int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise UnauthorizedError("Invalid refresh token")

        volunteer = await volunteer_repository.get_volunteer_by_id(db, idvol)
        if volunteer is None:
            raise UnauthorizedError("Volunteer not found")
        return await self._generate_tokens(db, volunteer)


auth_service: AuthService = AuthService()
