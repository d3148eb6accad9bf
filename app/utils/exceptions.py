"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Provides pre-configured HTTPException subclasses for common error patterns,
plus the named domain errors raised by repositories and services.
Domain errors render as ``{"name": ..., "message": ...}`` so clients can
branch on a stable error name instead of the human-readable message.

Usage:
    from app.utils.exceptions import NotFoundError, VolunteerError
    raise NotFoundError("Notebook not found")
    raise VolunteerError("VOLUNTEER_ALREADY_EXISTS", "...", status_code=409)
"""

from typing import Any

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용.

    404 Not Found exception.
    Raised when a requested resource (volunteer, notebook, etc.) does not exist.
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 인증 실패 시 사용."""

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class DomainError(HTTPException):
    """이름이 있는 도메인 예외의 기반 클래스.

    Base class for named domain errors.

    Attributes:
        name: 고정된 오류 이름 (Stable error name, e.g. "VOLUNTEER_ALREADY_EXISTS")
        message: 사람이 읽을 수 있는 메시지 (Human-readable message)
        details: 원인 정보, 응답에 포함되지 않음 (Underlying cause, not rendered)
    """

    def __init__(
        self,
        name: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Any = None,
    ) -> None:
        super().__init__(status_code=status_code, detail={"name": name, "message": message})
        self.name: str = name
        self.message: str = message
        self.details: Any = details


class VolunteerError(DomainError):
    """자원봉사자 관련 도메인 예외 (Volunteer domain error)."""


class NotebookError(DomainError):
    """노트북(평가 기록) 관련 도메인 예외 (Notebook domain error)."""


class AttendanceError(DomainError):
    """출석 관련 도메인 예외 (Attendance domain error)."""
