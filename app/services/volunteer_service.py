"""자원봉사자 서비스 — 자원봉사자 등록, 수정, 비밀번호, 봉사 시간 비즈니스 로직.

Volunteer Service — Business logic for volunteer registration, updates,
password management and reported hours.
"""

from datetime import date, datetime, time, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.volunteer_repository import volunteer_repository
from app.schemas.volunteer import (
    VolunteerCreate,
    VolunteerHoursCreate,
    VolunteerHoursResponse,
    VolunteerResponse,
    VolunteerUpdate,
)
from app.services.export_service import export_service
from app.utils.exceptions import NotFoundError, VolunteerError
from app.utils.pagination import PaginationParams, PaginationResult
from app.utils.password import hash_password


def start_of_day(day: date) -> datetime:
    """날짜를 UTC 자정 시각으로 변환합니다 (``yyyy-mm-dd`` path values start at UTC midnight)."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class VolunteerService:
    """자원봉사자 관련 비즈니스 로직을 처리하는 서비스."""

    async def list_from_date(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        from_date: date,
    ) -> PaginationResult[VolunteerResponse]:
        """기준일 이후 등록된 자원봉사자 페이지 (Volunteers registered since ``from_date``)."""
        return await volunteer_repository.get_volunteers_from_date(
            db, pagination, start_of_day(from_date)
        )

    async def export_from_date(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        from_date: date,
    ) -> bytes:
        """기준일 이후 등록된 자원봉사자 전체를 xlsx로 내보냅니다."""
        volunteers = await volunteer_repository.get_volunteers_download_from_date(
            db, start_of_day(from_date), pagination.filter
        )
        return export_service.volunteers(volunteers)

    async def list_all(self, db: AsyncSession) -> list[VolunteerResponse]:
        return await volunteer_repository.get_all_volunteers(db)

    async def get_volunteer(self, db: AsyncSession, idvol: int) -> VolunteerResponse:
        """ID로 자원봉사자를 조회합니다.

        Raises:
            NotFoundError: 자원봉사자가 없을 때 (Volunteer not found)
        """
        volunteer = await volunteer_repository.get_volunteer_by_id(db, idvol)
        if volunteer is None:
            raise NotFoundError("Volunteer not found")
        return volunteer

    async def get_volunteer_by_email(self, db: AsyncSession, email: str) -> VolunteerResponse:
        volunteer = await volunteer_repository.get_volunteer_by_email(db, email)
        if volunteer is None:
            raise NotFoundError("Volunteer not found")
        return volunteer

    async def create_volunteer(self, db: AsyncSession, data: VolunteerCreate) -> VolunteerResponse:
        """자원봉사자를 등록합니다.

        Raises:
            VolunteerError: 이메일 중복 시 VOLUNTEER_ALREADY_EXISTS (409)
        """
        return await volunteer_repository.create_volunteer(db, data.model_dump())

    async def update_volunteer(
        self,
        db: AsyncSession,
        email: str,
        data: VolunteerUpdate,
        has_class: bool = False,
    ) -> VolunteerResponse:
        """자원봉사자 정보를 수정합니다.

        Partial update; only fields present in the request body are written.
        ``has_class`` re-enrolls the volunteer (class cleared, registration
        date reset to now).

        Raises:
            NotFoundError: 자원봉사자가 없을 때 (Volunteer not found)
            VolunteerError: VOLUNTEER_NOT_UPDATED on storage failure
        """
        if await volunteer_repository.get_volunteer_by_email(db, email) is None:
            raise NotFoundError("Volunteer not found")

        updated = await volunteer_repository.update_volunteer(
            db, data.model_dump(exclude_unset=True), email, has_class
        )
        if updated is None:
            raise VolunteerError("VOLUNTEER_NOT_UPDATED", f"Volunteer with email {email} was not updated")
        return updated

    async def delete_volunteer(self, db: AsyncSession, email: str) -> None:
        if not await volunteer_repository.delete_volunteer_by_email(db, email):
            raise NotFoundError("Volunteer not found")

    async def set_password(self, db: AsyncSession, email: str, password: str) -> None:
        """비밀번호를 설정하거나 변경합니다 (Stored as a bcrypt hash)."""
        changed: bool = await volunteer_repository.update_or_create_password_for_email(
            db, email, hash_password(password)
        )
        if not changed:
            raise NotFoundError("Volunteer not found")

    async def report_hours(self, db: AsyncSession, data: VolunteerHoursCreate) -> VolunteerHoursResponse:
        """이번 달 봉사 시간을 보고합니다.

        Hours are reported once per calendar month.

        Raises:
            NotFoundError: 자원봉사자가 없을 때 (Volunteer not found)
            VolunteerError: HOURS_ALREADY_REPORTED (409) when this month is already reported
        """
        await self.get_volunteer(db, data.idvol)

        now: datetime = datetime.now(timezone.utc)
        existing = await volunteer_repository.find_hours_by_month(db, data.idvol, now.month, now.year)
        if existing is not None:
            raise VolunteerError(
                "HOURS_ALREADY_REPORTED",
                f"Hours for {now.month:02d}/{now.year} were already reported",
                status_code=409,
            )
        return await volunteer_repository.post_volunteer_hours(db, data.model_dump())

    async def list_hours(self, db: AsyncSession, idvol: int) -> list[VolunteerHoursResponse]:
        await self.get_volunteer(db, idvol)
        return list(await volunteer_repository.get_hours_by_idvol(db, idvol))


volunteer_service: VolunteerService = VolunteerService()
