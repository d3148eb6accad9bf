"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    volunteer: 권한 프로필, 자원봉사자, 봉사 시간 (Authorization, Volunteer, VolunteerHours)
    notebook: 장소, PEP 클래스, 노트북 (Place, PepClass, Notebook)
    attendance: 워크숍 출석 (Workshop attendance)
"""

from app.models.volunteer import Authorization, Volunteer, VolunteerHours
from app.models.notebook import Place, PepClass, Notebook
from app.models.attendance import Attendance

__all__ = [
    "Authorization", "Volunteer", "VolunteerHours",
    "Place", "PepClass", "Notebook",
    "Attendance",
]
