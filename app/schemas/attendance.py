"""워크숍 출석 관련 Pydantic 요청/응답 스키마 정의.

Workshop attendance Pydantic request/response schema definitions.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class AttendanceSubmit(BaseModel):
    """출석 제출 요청 스키마.

    Attendance submission request schema.

    Attributes:
        idvol: 자원봉사자 ID (Volunteer identifier, must exist)
        workshop_name: 워크숍 이름 (Workshop title)
        workshop_date: 워크숍 날짜 (Workshop session date)
        attended: 출석 여부 (Whether the volunteer attended)
        comments: 의견, 선택 (Optional feedback)
    """

    idvol: int
    workshop_name: str
    workshop_date: date
    attended: bool = True
    comments: str | None = None


class AttendanceResponse(BaseModel):
    """출석 기록 응답 스키마."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    idvol: int
    workshop_name: str
    workshop_date: date
    attended: bool
    comments: str | None = None
    created_at: datetime


class AttendanceInfoResponse(AttendanceResponse):
    """출석 목록 행 — 자원봉사자 이름/이메일 포함 (Joined volunteer name and email)."""

    volunteer_name: str
    volunteer_email: str


class WorkshopAttendanceRow(BaseModel):
    """자원봉사자 본인의 워크숍 출석 행 (Workshop row shown to the volunteer)."""

    workshop_name: str
    workshop_date: date
    attended: bool
    submitted_at: datetime


class VolunteerAttendanceMetrics(BaseModel):
    """자원봉사자별 활동 지표.

    Per-volunteer activity metrics: workshop attendances, evaluated
    notebooks, and reported hours.
    """

    idvol: int
    name: str
    email: str
    attendance_count: int
    evaluated_notebook_count: int
    total_hours: float
