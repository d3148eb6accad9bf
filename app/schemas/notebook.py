"""노트북(학생 평가 기록) 관련 Pydantic 요청/응답 스키마 정의.

Notebook Pydantic request/response schema definitions.
Covers the full notebook record, the evaluation list row (with joined
volunteer and place names flattened), evaluation submission, partial update,
and the reflections extract.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class EvaluationFields(BaseModel):
    """평가 응답 필드 묶음 — 평가 제출과 응답에서 공유.

    Evaluation answer fields shared by submission and response schemas.
    """

    evaluator_name: str | None = None
    evaluator_email: str | None = None
    subject1: str | None = None
    subject2: str | None = None
    subject3: str | None = None
    subject4: str | None = None
    subject5: str | None = None
    subject6: str | None = None
    subject7: str | None = None
    subject8: str | None = None
    subject9: str | None = None
    subject10: str | None = None
    relevant_content: str | None = None
    a1: str | None = None
    a2: str | None = None
    a3: str | None = None
    a4: str | None = None
    a5: str | None = None
    a6: str | None = None
    a7: str | None = None
    a8: str | None = None
    a9: str | None = None
    a10: str | None = None
    a11: str | None = None
    a12: str | None = None
    a13: str | None = None
    conclusion: str | None = None
    archives_exclusion: bool = False


class EvaluateNotebookRequest(EvaluationFields):
    """노트북 평가 제출 요청 스키마.

    Notebook evaluation submission. ``conclusion`` is mandatory.
    """

    conclusion: str


class NotebookUpdate(BaseModel):
    """노트북 수정 요청 스키마 (부분 업데이트, 관리자용)."""

    idpep: int | None = None
    student_name: str | None = None
    student_registration: str | None = None
    student_prison_unit: str | None = None
    evaluator_name: str | None = None
    evaluator_email: str | None = None
    relevant_content: str | None = None
    conclusion: str | None = None
    approved: bool | None = None
    archives_exclusion: bool | None = None

    @field_validator("student_name", "approved", "archives_exclusion")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        """NOT NULL 컬럼은 생략만 가능, null 불가 (May be omitted, never cleared)."""
        if value is None:
            raise ValueError("must not be null")
        return value


class NotebookResponse(EvaluationFields):
    """노트북 상세 응답 스키마.

    Notebook record. ``notebook_directory`` is flattened from the class.
    """

    model_config = ConfigDict(from_attributes=True)

    idcad: int
    idvol: int | None = None
    idpep: int | None = None
    student_name: str
    student_registration: str | None = None
    student_prison_unit: str | None = None
    approved: bool
    reservation_date: datetime | None = None
    evaluated_date: datetime | None = None
    notebook_directory: str | None = None


class NotebookEvaluationRow(NotebookResponse):
    """평가 목록/다운로드 행 — 자원봉사자 이름과 장소 이름 포함.

    Evaluation list/download row with the joined volunteer and place names.
    """

    volunteer_name: str | None = None
    place_name: str | None = None


class ReflectionResponse(BaseModel):
    """성찰 추출 응답 스키마 (Relevant content extracted from evaluated notebooks)."""

    student_name: str
    student_registration: str | None = None
    student_prison_unit: str | None = None
    relevant_content: str


class EvaluatedCountResponse(BaseModel):
    """평가 완료 노트북 수 응답 (Number of notebooks evaluated by a volunteer)."""

    count: int
