"""자원봉사자 관련 Pydantic 요청/응답 스키마 정의.

Volunteer Pydantic request/response schema definitions.
Covers registration, partial update, password management, reported hours,
and the authorization profile attached to each volunteer.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

# 이메일 형식 — Same pattern the registration form validates against
EMAIL_PATTERN: str = r"^[\w\-\.]+@([\w-]+\.)+[\w-]{2,4}$"


class VolunteerCreate(BaseModel):
    """자원봉사자 등록 요청 스키마.

    Volunteer registration request schema (registration form answers).

    Attributes:
        email: 이메일, 전역 고유 (Email, globally unique)
        idpep: 소속 클래스 ID (PEP class, optional)
        workshops: 참여 희망 워크숍 목록 (Workshops of interest)
        roles_pep: 현재 역할 목록 (Current roles in the program)
        interest_future_roles: 희망 역할 목록 (Roles of interest)
        need_declaration: 봉사 확인서 필요 여부 (Whether a volunteering declaration is needed)
    """

    email: str = Field(pattern=EMAIL_PATTERN)
    name: str
    idpep: int | None = None
    birth_date: date
    phone_number: str
    country: str
    state: str
    city: str
    disability: str | None = None
    how_found_pep: str
    knowledge_pep: str
    workshops: list[str] = []
    schooling: str
    bachelor: str | None = None
    studies_knowledge: str
    life_experience: str
    desires: str
    roles_pep: list[str] = []
    interest_future_roles: list[str] = []
    need_declaration: bool = False


class VolunteerUpdate(BaseModel):
    """자원봉사자 수정 요청 스키마 (부분 업데이트).

    Volunteer update request schema (partial update).
    Only provided fields are written; ``email`` may be changed.
    """

    email: str | None = Field(default=None, pattern=EMAIL_PATTERN)
    name: str | None = None
    idpep: int | None = None
    birth_date: date | None = None
    phone_number: str | None = None
    country: str | None = None
    state: str | None = None
    city: str | None = None
    disability: str | None = None
    how_found_pep: str | None = None
    knowledge_pep: str | None = None
    workshops: list[str] | None = None
    schooling: str | None = None
    bachelor: str | None = None
    studies_knowledge: str | None = None
    life_experience: str | None = None
    desires: str | None = None
    roles_pep: list[str] | None = None
    interest_future_roles: list[str] | None = None
    need_declaration: bool | None = None


class VolunteerResponse(BaseModel):
    """자원봉사자 응답 스키마 (Volunteer record as returned by the API)."""

    model_config = ConfigDict(from_attributes=True)

    idvol: int
    email: str
    name: str
    idpep: int | None = None
    birth_date: date
    phone_number: str
    country: str
    state: str
    city: str
    disability: str | None = None
    how_found_pep: str
    knowledge_pep: str
    workshops: list[str] = []
    schooling: str
    bachelor: str | None = None
    studies_knowledge: str
    life_experience: str
    desires: str
    roles_pep: list[str] = []
    interest_future_roles: list[str] = []
    need_declaration: bool
    authorization: str
    created_at: datetime


class VolunteerWithAuth(VolunteerResponse):
    """인증 정보를 포함한 자원봉사자 — 로그인 검증 전용, API로 노출하지 않음.

    Volunteer plus password hash. Used by the login flow only.
    """

    password_hash: str | None = None


class PermissionResponse(BaseModel):
    """권한 프로필 응답 스키마 (Authorization profile flags)."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    attendance_module_permission: bool
    manage_volunteer_module_permission: bool
    notebook_module_permission: bool
    reading_workshop_module_permission: bool
    book_club_module_permission: bool

    def granted(self) -> list[str]:
        """허용된 권한 코드 목록 (Codes of the flags that are set)."""
        return [code for code, value in self.model_dump().items() if code != "name" and value]


class PasswordUpdate(BaseModel):
    """비밀번호 설정 요청 스키마 (Plain text, bcrypt-hashed server-side)."""

    password: str = Field(min_length=6)


class VolunteerHoursCreate(BaseModel):
    """봉사 시간 보고 요청 스키마."""

    idvol: int
    hours: float = Field(gt=0)
    description: str | None = None


class VolunteerHoursResponse(BaseModel):
    """봉사 시간 기록 응답 스키마."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    idvol: int
    hours: float
    description: str | None = None
    created_at: datetime
