"""자원봉사자 및 권한 관련 SQLAlchemy ORM 모델 정의.

Volunteer and authorization SQLAlchemy ORM model definitions.
Access control is profile based: each volunteer carries the name of an
authorization profile, and the profile row holds one flag per module.

Tables:
    - authorizations: 권한 프로필 (Authorization profiles with module flags)
    - volunteers: 자원봉사자 (Volunteer registrations, unique per email)
    - volunteer_hours: 봉사 시간 기록 (Reported volunteer hours)
"""

from datetime import date, datetime, timezone

from sqlalchemy import JSON, Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Authorization(Base):
    """권한 프로필 모델 — 모듈별 접근 권한 플래그.

    Authorization profile model. The flag column names double as the
    permission codes checked by ``require_permission``.

    Attributes:
        id: 고유 식별자 (Unique identifier)
        name: 프로필 이름 (Profile name, e.g. "admin", "voluntario")
        attendance_module_permission: 출석 모듈 접근 (Attendance module)
        manage_volunteer_module_permission: 자원봉사자 관리 모듈 접근 (Volunteer management)
        notebook_module_permission: 노트북 평가 모듈 접근 (Notebook evaluation module)
        reading_workshop_module_permission: 독서 워크숍 모듈 접근 (Reading workshop module)
        book_club_module_permission: 북클럽 모듈 접근 (Book club module)
    """

    __tablename__ = "authorizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    attendance_module_permission: Mapped[bool] = mapped_column(Boolean, default=False)
    manage_volunteer_module_permission: Mapped[bool] = mapped_column(Boolean, default=False)
    notebook_module_permission: Mapped[bool] = mapped_column(Boolean, default=False)
    reading_workshop_module_permission: Mapped[bool] = mapped_column(Boolean, default=False)
    book_club_module_permission: Mapped[bool] = mapped_column(Boolean, default=False)


class Volunteer(Base):
    """자원봉사자 모델 — 등록 폼 응답 및 인증 정보.

    Volunteer model — Registration form answers plus login credentials.
    Email is globally unique; a duplicate insert is reported as
    ``VOLUNTEER_ALREADY_EXISTS`` by the repository.

    Attributes:
        idvol: 고유 식별자 (Unique identifier)
        email: 이메일, 고유 (Email, unique)
        idpep: 소속 클래스 FK (Current PEP class, nullable)
        workshops / roles_pep / interest_future_roles: JSON 문자열 목록 (JSON string lists)
        authorization: 권한 프로필 이름 (Authorization profile name)
        password_hash: bcrypt 해시, 미설정 시 None (bcrypt digest or None)
        created_at: 등록 일시 UTC (Registration timestamp)
    """

    __tablename__ = "volunteers"

    idvol: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    idpep: Mapped[int | None] = mapped_column(Integer, ForeignKey("pep_classes.idpep", ondelete="SET NULL"), nullable=True)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)
    phone_number: Mapped[str] = mapped_column(String(50), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    disability: Mapped[str | None] = mapped_column(String(255), nullable=True)
    how_found_pep: Mapped[str] = mapped_column(String(255), nullable=False)
    knowledge_pep: Mapped[str] = mapped_column(String(255), nullable=False)
    workshops: Mapped[list[str]] = mapped_column(JSON, default=list)
    schooling: Mapped[str] = mapped_column(String(255), nullable=False)
    bachelor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    studies_knowledge: Mapped[str] = mapped_column(Text, nullable=False)
    life_experience: Mapped[str] = mapped_column(Text, nullable=False)
    desires: Mapped[str] = mapped_column(Text, nullable=False)
    roles_pep: Mapped[list[str]] = mapped_column(JSON, default=list)
    interest_future_roles: Mapped[list[str]] = mapped_column(JSON, default=list)
    need_declaration: Mapped[bool] = mapped_column(Boolean, default=False)
    authorization: Mapped[str] = mapped_column(String(100), default="voluntario")
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    pep = relationship("PepClass")


class VolunteerHours(Base):
    """봉사 시간 기록 모델 (Reported volunteer hours, one row per report)."""

    __tablename__ = "volunteer_hours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    idvol: Mapped[int] = mapped_column(Integer, ForeignKey("volunteers.idvol", ondelete="CASCADE"), nullable=False)
    hours: Mapped[float] = mapped_column(Float, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
