"""출석 서비스 — 워크숍 출석 제출, 조회, 활동 지표 비즈니스 로직.

Attendance Service — Business logic for workshop attendance submission,
listings, and the volunteer metrics report.
"""

from datetime import date

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.attendance_repository import attendance_repository
from app.repositories.volunteer_repository import volunteer_repository
from app.schemas.attendance import (
    AttendanceInfoResponse,
    AttendanceResponse,
    AttendanceSubmit,
    VolunteerAttendanceMetrics,
    WorkshopAttendanceRow,
)
from app.services.export_service import export_service
from app.utils.exceptions import VolunteerError
from app.utils.pagination import PaginationParams, PaginationResult


class AttendanceService:
    """출석 관련 비즈니스 로직을 처리하는 서비스."""

    async def list_from_date(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        from_date: date,
    ) -> PaginationResult[AttendanceInfoResponse]:
        return await attendance_repository.get_attendances_from_date(db, pagination, from_date)

    async def export_from_date(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        from_date: date,
    ) -> bytes:
        rows = await attendance_repository.get_attendances_download_from_date(
            db, from_date, pagination.filter
        )
        return export_service.attendances(rows)

    async def list_by_volunteer(self, db: AsyncSession, idvol: int) -> list[WorkshopAttendanceRow]:
        return await attendance_repository.get_all_attendances_by_idvol(db, idvol)

    async def submit(self, db: AsyncSession, data: AttendanceSubmit) -> AttendanceResponse:
        """워크숍 출석을 제출합니다.

        Submit one attendance for a workshop session.

        Raises:
            VolunteerError: VOLUNTEER_NOT_FOUND (412) when ``idvol`` is unknown
            AttendanceError: ATTENDANCE_ALREADY_SUBMITTED (409) on a repeat
        """
        if await volunteer_repository.get_volunteer_by_id(db, data.idvol) is None:
            raise VolunteerError(
                "VOLUNTEER_NOT_FOUND",
                f"Volunteer {data.idvol} does not exist",
                status_code=status.HTTP_412_PRECONDITION_FAILED,
            )
        return await attendance_repository.submit_attendance(db, data.model_dump())

    async def metrics(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
    ) -> PaginationResult[VolunteerAttendanceMetrics]:
        """자원봉사자 활동 지표 페이지."""
        return await attendance_repository.get_volunteers_attendance_metrics(db, pagination)

    async def export_metrics(self, db: AsyncSession) -> bytes:
        rows = await attendance_repository.get_volunteers_attendance_download_metrics(db)
        return export_service.metrics(rows)


attendance_service: AttendanceService = AttendanceService()
