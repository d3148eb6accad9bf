"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication-related Pydantic request/response schema definitions.
Volunteers log in with their email and the password set through
``PUT /volunteers/{email}/password``.
"""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """로그인 요청 스키마.

    Attributes:
        email: 자원봉사자 이메일 (Volunteer email)
        password: 비밀번호 (Plain text, compared to bcrypt hash)
    """

    email: str
    password: str


class TokenResponse(BaseModel):
    """JWT 토큰 발급 응답 스키마.

    Attributes:
        access_token: JWT 액세스 토큰 (Short-lived access token)
        refresh_token: JWT 리프레시 토큰 (Long-lived refresh token)
        token_type: 토큰 유형 (Always "bearer")
        permissions: 허용된 모듈 권한 코드 (Granted module permission codes)
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    permissions: list[str] = []


class RefreshRequest(BaseModel):
    """토큰 갱신 요청 스키마."""

    refresh_token: str
