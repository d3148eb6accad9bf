"""워크숍 출석 관련 SQLAlchemy ORM 모델 정의.

Workshop attendance SQLAlchemy ORM model definitions.

Tables:
    - attendances: 워크숍 출석 기록 (Workshop attendance submitted by volunteers)

Constraints:
    uq_attendance_volunteer_workshop: 동일 자원봉사자+워크숍+날짜 중복 불가
        (One submission per volunteer per workshop session)
"""

from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Attendance(Base):
    """워크숍 출석 기록 모델.

    Workshop attendance record submitted by a volunteer.

    Attributes:
        id: 고유 식별자 (Unique identifier)
        idvol: 자원봉사자 FK (Volunteer who attended)
        workshop_name: 워크숍 이름 (Workshop title)
        workshop_date: 워크숍 날짜 (Workshop session date)
        attended: 출석 여부 (Whether the volunteer attended)
        comments: 의견 (Free-form feedback)
        created_at: 제출 일시 UTC (Submission timestamp)
    """

    __tablename__ = "attendances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    idvol: Mapped[int] = mapped_column(Integer, ForeignKey("volunteers.idvol", ondelete="CASCADE"), nullable=False)
    workshop_name: Mapped[str] = mapped_column(String(255), nullable=False)
    workshop_date: Mapped[date] = mapped_column(Date, nullable=False)
    attended: Mapped[bool] = mapped_column(Boolean, default=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("idvol", "workshop_name", "workshop_date", name="uq_attendance_volunteer_workshop"),
    )

    volunteer = relationship("Volunteer")
