"""노트북(학생 평가 기록) 관련 SQLAlchemy ORM 모델 정의.

Notebook (student evaluation record) SQLAlchemy ORM model definitions.

Tables:
    - places: 교육 장소 (Places where PEP classes run, e.g. prison units)
    - pep_classes: PEP 클래스 (Classes/cohorts, located at a place)
    - notebooks: 학생 노트북 평가 기록 (Student notebook evaluation records)

Notebook lifecycle:
    Unreserved (idvol IS NULL, reservation_date IS NULL)
        -> Reserved (idvol set, reservation_date set)
        -> Evaluated (evaluated_date set)
    Reserved -> Unreserved via explicit revert.
"""

from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Place(Base):
    """교육 장소 모델 (Place where a class runs)."""

    __tablename__ = "places"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)


class PepClass(Base):
    """PEP 클래스 모델 — 장소별 수업 그룹.

    PEP class model. ``notebook_directory`` points at the shared folder where
    the class' scanned notebooks are stored.
    """

    __tablename__ = "pep_classes"

    idpep: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    place_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("places.id", ondelete="SET NULL"), nullable=True)
    notebook_directory: Mapped[str | None] = mapped_column(String(500), nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    place = relationship("Place")


class Notebook(Base):
    """학생 노트북 평가 기록 모델.

    Student notebook evaluation record.

    Attributes:
        idcad: 고유 식별자 (Unique identifier)
        idvol: 예약/평가 자원봉사자 FK (Reserving volunteer, null when unreserved)
        idpep: 소속 클래스 FK (Class the notebook belongs to)
        subject1..subject10: 주제별 평가 (Per-subject evaluation answers)
        a1..a13: 평가 질문 응답 (Evaluation questionnaire answers)
        conclusion: 평가자 결론 (Evaluator conclusion)
        approved: 평가 가능 여부 (Whether the notebook is approved for evaluation)
        archives_exclusion: 수신 파일 삭제 여부 (Whether received files were deleted)
        reservation_date: 예약 일시 (Reservation timestamp)
        evaluated_date: 평가 완료 일시 (Evaluation timestamp)
    """

    __tablename__ = "notebooks"

    idcad: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    idvol: Mapped[int | None] = mapped_column(Integer, ForeignKey("volunteers.idvol", ondelete="SET NULL"), nullable=True)
    idpep: Mapped[int | None] = mapped_column(Integer, ForeignKey("pep_classes.idpep", ondelete="SET NULL"), nullable=True)

    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    student_registration: Mapped[str | None] = mapped_column(String(50), nullable=True)
    student_prison_unit: Mapped[str | None] = mapped_column(String(255), nullable=True)
    evaluator_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    evaluator_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    subject1: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject2: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject3: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject4: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject5: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject6: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject7: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject8: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject9: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject10: Mapped[str | None] = mapped_column(Text, nullable=True)
    relevant_content: Mapped[str | None] = mapped_column(Text, nullable=True)

    a1: Mapped[str | None] = mapped_column(Text, nullable=True)
    a2: Mapped[str | None] = mapped_column(Text, nullable=True)
    a3: Mapped[str | None] = mapped_column(Text, nullable=True)
    a4: Mapped[str | None] = mapped_column(Text, nullable=True)
    a5: Mapped[str | None] = mapped_column(Text, nullable=True)
    a6: Mapped[str | None] = mapped_column(Text, nullable=True)
    a7: Mapped[str | None] = mapped_column(Text, nullable=True)
    a8: Mapped[str | None] = mapped_column(Text, nullable=True)
    a9: Mapped[str | None] = mapped_column(Text, nullable=True)
    a10: Mapped[str | None] = mapped_column(Text, nullable=True)
    a11: Mapped[str | None] = mapped_column(Text, nullable=True)
    a12: Mapped[str | None] = mapped_column(Text, nullable=True)
    a13: Mapped[str | None] = mapped_column(Text, nullable=True)

    conclusion: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved: Mapped[bool] = mapped_column(Boolean, default=False)
    archives_exclusion: Mapped[bool] = mapped_column(Boolean, default=False)
    reservation_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    evaluated_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    volunteer = relationship("Volunteer")
    pep = relationship("PepClass")
