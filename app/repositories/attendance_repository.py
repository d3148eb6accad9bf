"""출석 레포지토리 — 워크숍 출석 및 자원봉사자 활동 지표 관련 DB 쿼리 담당.

Attendance Repository — Handles workshop attendance queries and the
per-volunteer activity metrics aggregate.
"""

from datetime import date
from typing import Any

from sqlalchemy import Float, Select, cast, func, select
from sqlalchemy.engine import Row
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attendance import Attendance
from app.models.notebook import Notebook
from app.models.volunteer import Volunteer, VolunteerHours
from app.repositories.base import BaseRepository
from app.repositories.volunteer_repository import volunteer_repository
from app.schemas.attendance import (
    AttendanceInfoResponse,
    AttendanceResponse,
    VolunteerAttendanceMetrics,
    WorkshopAttendanceRow,
)
from app.utils.exceptions import AttendanceError
from app.utils.pagination import PaginationParams, fetch_page, wrap_pagination


def _info_row(row: Row) -> AttendanceInfoResponse:
    attendance, volunteer_name, volunteer_email = row
    return AttendanceInfoResponse(
        **AttendanceResponse.model_validate(attendance).model_dump(),
        volunteer_name=volunteer_name,
        volunteer_email=volunteer_email,
    )


def _metrics_row(row: Row) -> VolunteerAttendanceMetrics:
    return VolunteerAttendanceMetrics(
        idvol=row.idvol,
        name=row.name,
        email=row.email,
        attendance_count=row.attendance_count or 0,
        evaluated_notebook_count=row.evaluated_notebook_count or 0,
        total_hours=float(row.total_hours or 0),
    )


class AttendanceRepository(BaseRepository[Attendance]):
    """워크숍 출석 레포지토리.

    Workshop attendance repository with date-bounded listings, submission,
    and volunteer metrics.

    Extends:
        BaseRepository[Attendance]
    """

    def __init__(self) -> None:
        super().__init__(Attendance)

    @staticmethod
    def default_order() -> tuple:
        """기본 정렬 (workshop_date DESC, id DESC)."""
        return (Attendance.workshop_date.desc(), Attendance.id.desc())

    def _from_date_query(self, from_date: date, filters: dict[str, Any] | None) -> Select:
        query: Select = (
            select(Attendance, Volunteer.name, Volunteer.email)
            .join(Volunteer, Attendance.idvol == Volunteer.idvol)
            .where(Attendance.workshop_date >= from_date)
        )
        return self.apply_filters(query, filters)

    @wrap_pagination
    async def get_attendances_from_date(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        from_date: date,
    ) -> tuple[list[AttendanceInfoResponse], int]:
        """기준일 이후 워크숍 출석 기록을 페이지네이션하여 조회합니다.

        Attendances for workshops held on or after ``from_date``, with the
        volunteer's name and email joined onto each row.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            pagination: 페이지네이션 디스크립터 (Pagination descriptor)
            from_date: 워크숍 날짜 하한, 포함 (Inclusive lower bound on workshop_date)

        Returns:
            tuple[list[AttendanceInfoResponse], int]: (출석 목록, 전체 개수)
        """
        query: Select = self._from_date_query(from_date, pagination.filter)
        query = self.apply_sort(query, pagination.sort, self.default_order())
        rows, total = await fetch_page(db, query, pagination, scalars=False)
        return [_info_row(row) for row in rows], total

    async def get_attendances_download_from_date(
        self,
        db: AsyncSession,
        from_date: date,
        filters: dict[str, Any] | None = None,
    ) -> list[AttendanceInfoResponse]:
        """다운로드용 출석 목록 — 페이지 제한 없음."""
        query: Select = self._from_date_query(from_date, filters).order_by(*self.default_order())
        result = await db.execute(query)
        return [_info_row(row) for row in result.all()]

    async def get_all_attendances_by_idvol(
        self,
        db: AsyncSession,
        idvol: int,
    ) -> list[WorkshopAttendanceRow]:
        """자원봉사자 본인의 워크숍 출석 목록 (Newest workshop first)."""
        result = await db.execute(
            select(Attendance)
            .where(Attendance.idvol == idvol)
            .order_by(*self.default_order())
        )
        return [
            WorkshopAttendanceRow(
                workshop_name=a.workshop_name,
                workshop_date=a.workshop_date,
                attended=a.attended,
                submitted_at=a.created_at,
            )
            for a in result.scalars().all()
        ]

    async def submit_attendance(self, db: AsyncSession, data: dict[str, Any]) -> AttendanceResponse:
        """워크숍 출석을 제출합니다.

        Record one submission per volunteer per workshop session.

        Raises:
            AttendanceError: ATTENDANCE_ALREADY_SUBMITTED (409) on a repeated submission
        """
        try:
            async with db.begin_nested():
                attendance: Attendance = Attendance(**data)
                db.add(attendance)
                await db.flush()
        except IntegrityError as exc:
            raise AttendanceError(
                "ATTENDANCE_ALREADY_SUBMITTED",
                f"Attendance for {data.get('workshop_name')} on {data.get('workshop_date')} was already submitted",
                status_code=409,
                details=exc,
            ) from exc

        await db.refresh(attendance)
        return AttendanceResponse.model_validate(attendance)

    # === 활동 지표 (Volunteer metrics) ===

    def _metrics_query(self, filters: dict[str, Any] | None) -> tuple[Select, dict[str, Any]]:
        """자원봉사자별 지표 쿼리 — 상관 서브쿼리 세 개.

        Returns the query plus the metric labels callers may sort on.
        Filters apply to volunteer columns.
        """
        attendance_count = (
            select(func.count(Attendance.id))
            .where(Attendance.idvol == Volunteer.idvol)
            .where(Attendance.attended.is_(True))
            .correlate(Volunteer)
            .scalar_subquery()
            .label("attendance_count")
        )
        evaluated_notebook_count = (
            select(func.count(Notebook.idcad))
            .where(Notebook.idvol == Volunteer.idvol)
            .where(Notebook.evaluated_date.is_not(None))
            .correlate(Volunteer)
            .scalar_subquery()
            .label("evaluated_notebook_count")
        )
        total_hours = (
            select(func.coalesce(func.sum(VolunteerHours.hours), cast(0, Float)))
            .where(VolunteerHours.idvol == Volunteer.idvol)
            .correlate(Volunteer)
            .scalar_subquery()
            .label("total_hours")
        )

        query: Select = select(
            Volunteer.idvol,
            Volunteer.name,
            Volunteer.email,
            attendance_count,
            evaluated_notebook_count,
            total_hours,
        )
        query = volunteer_repository.apply_filters(query, filters)
        labels: dict[str, Any] = {
            "attendance_count": attendance_count,
            "evaluated_notebook_count": evaluated_notebook_count,
            "total_hours": total_hours,
        }
        return query, labels

    def _sort_metrics(self, query: Select, labels: dict[str, Any], sort: list[tuple[str, str]]) -> Select:
        for field, direction in sort:
            column = labels.get(field)
            if column is None:
                column = volunteer_repository.resolve_column(field)
            if column is None:
                continue
            query = query.order_by(column.desc() if direction == "DESC" else column.asc())
        return query.order_by(Volunteer.name.asc(), Volunteer.idvol.asc())

    @wrap_pagination
    async def get_volunteers_attendance_metrics(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
    ) -> tuple[list[VolunteerAttendanceMetrics], int]:
        """자원봉사자 활동 지표를 페이지네이션하여 조회합니다.

        Workshop attendances, evaluated notebooks and reported hours per
        volunteer. Sortable by any volunteer column or metric name.
        """
        query, labels = self._metrics_query(pagination.filter)
        query = self._sort_metrics(query, labels, pagination.sort)
        rows, total = await fetch_page(db, query, pagination, scalars=False)
        return [_metrics_row(row) for row in rows], total

    async def get_volunteers_attendance_download_metrics(
        self,
        db: AsyncSession,
    ) -> list[VolunteerAttendanceMetrics]:
        """다운로드용 전체 활동 지표."""
        query, labels = self._metrics_query(None)
        result = await db.execute(self._sort_metrics(query, labels, []))
        return [_metrics_row(row) for row in result.all()]


attendance_repository: AttendanceRepository = AttendanceRepository()
