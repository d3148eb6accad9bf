"""공통 Pydantic 응답 스키마 정의.

Common Pydantic response schema definitions shared across routers.
"""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """범용 메시지 응답 스키마.

    Generic message response schema for simple confirmations
    (delete operations, password updates, hour reports).

    Attributes:
        message: 응답 메시지 (Response message string)
    """

    message: str


class DomainErrorDetail(BaseModel):
    """도메인 오류 본문 (Body of a named domain error)."""

    name: str
    message: str


class DomainErrorResponse(BaseModel):
    """도메인 오류 응답 — OpenAPI 문서용 (Domain error envelope for OpenAPI docs)."""

    detail: DomainErrorDetail
