"""자원봉사자 레포지토리 — 자원봉사자, 권한 프로필, 봉사 시간 관련 DB 쿼리 담당.

Volunteer Repository — Handles volunteer, authorization profile and
reported-hours database queries.
"""

from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy import Select, delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.volunteer import Authorization, Volunteer, VolunteerHours
from app.repositories.base import BaseRepository
from app.schemas.volunteer import (
    PermissionResponse,
    VolunteerHoursResponse,
    VolunteerResponse,
    VolunteerWithAuth,
)
from app.utils.exceptions import VolunteerError
from app.utils.pagination import PaginationParams, fetch_page, wrap_pagination


class VolunteerRepository(BaseRepository[Volunteer]):
    """자원봉사자 레포지토리.

    Volunteer repository. Reads return Pydantic entities, never ORM rows,
    so ``password_hash`` only leaves this module through
    ``get_volunteer_with_auth_data_by_email``.

    Extends:
        BaseRepository[Volunteer]
    """

    hidden_columns = frozenset({"password_hash"})

    def __init__(self) -> None:
        super().__init__(Volunteer)

    @staticmethod
    def default_order() -> tuple:
        """기본 정렬 — 최근 등록 순 (Newest registrations first, idvol breaks ties)."""
        return (Volunteer.created_at.desc(), Volunteer.idvol.desc())

    def _from_date_query(self, from_date: datetime, filters: dict[str, Any] | None) -> Select:
        query: Select = select(Volunteer).where(Volunteer.created_at >= from_date)
        return self.apply_filters(query, filters)

    @wrap_pagination
    async def get_volunteers_from_date(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        from_date: datetime,
    ) -> tuple[list[VolunteerResponse], int]:
        """기준 시각 이후 등록된 자원봉사자를 페이지네이션하여 조회합니다.

        Volunteers registered at or after ``from_date``, filtered and sorted
        by the caller's pagination descriptor.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            pagination: 페이지네이션 디스크립터 (Pagination descriptor)
            from_date: 등록 시각 하한, 포함 (Inclusive lower bound on created_at)

        Returns:
            tuple[list[VolunteerResponse], int]: (자원봉사자 목록, 전체 개수)
        """
        query: Select = self._from_date_query(from_date, pagination.filter)
        query = self.apply_sort(query, pagination.sort, self.default_order())
        rows, total = await fetch_page(db, query, pagination)
        return [VolunteerResponse.model_validate(v) for v in rows], total

    async def get_volunteers_download_from_date(
        self,
        db: AsyncSession,
        from_date: datetime,
        filters: dict[str, Any] | None = None,
    ) -> list[VolunteerResponse]:
        """다운로드용 전체 목록 — 페이지 제한 없음 (Same filter, every row)."""
        query: Select = self._from_date_query(from_date, filters).order_by(*self.default_order())
        result = await db.execute(query)
        return [VolunteerResponse.model_validate(v) for v in result.scalars().all()]

    async def _get_one(self, db: AsyncSession, *where: Any) -> Volunteer | None:
        query: Select = select(Volunteer).where(*where).execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_volunteer_by_email(self, db: AsyncSession, email: str) -> VolunteerResponse | None:
        """이메일로 자원봉사자를 조회합니다 (Lookup by unique email)."""
        volunteer = await self._get_one(db, Volunteer.email == email)
        return VolunteerResponse.model_validate(volunteer) if volunteer else None

    async def get_volunteer_by_id(self, db: AsyncSession, idvol: int) -> VolunteerResponse | None:
        """ID로 자원봉사자를 조회합니다."""
        volunteer = await self.get_by_id(db, idvol)
        return VolunteerResponse.model_validate(volunteer) if volunteer else None

    async def get_all_volunteers(self, db: AsyncSession) -> list[VolunteerResponse]:
        """전체 자원봉사자 목록 (Every volunteer, default order)."""
        result = await db.execute(select(Volunteer).order_by(*self.default_order()))
        return [VolunteerResponse.model_validate(v) for v in result.scalars().all()]

    async def get_volunteer_with_auth_data_by_email(
        self,
        db: AsyncSession,
        email: str,
    ) -> VolunteerWithAuth | None:
        """로그인 검증용 — 비밀번호 해시 포함 조회 (Includes the password hash)."""
        volunteer = await self._get_one(db, Volunteer.email == email)
        return VolunteerWithAuth.model_validate(volunteer) if volunteer else None

    async def get_permission_by_auth_name(
        self,
        db: AsyncSession,
        auth_name: str,
    ) -> PermissionResponse | None:
        """권한 프로필 이름으로 권한 플래그를 조회합니다."""
        result = await db.execute(select(Authorization).where(Authorization.name == auth_name))
        profile = result.scalar_one_or_none()
        return PermissionResponse.model_validate(profile) if profile else None

    async def create_volunteer(self, db: AsyncSession, data: dict[str, Any]) -> VolunteerResponse:
        """자원봉사자를 등록합니다.

        Register a volunteer. The insert runs inside a SAVEPOINT so a
        unique-email violation only discards this row.

        Raises:
            VolunteerError: VOLUNTEER_ALREADY_EXISTS (409) on duplicate email,
                UNSPECIFIED_ERROR (500) on any other storage failure
        """
        try:
            async with db.begin_nested():
                volunteer: Volunteer = Volunteer(**data)
                db.add(volunteer)
                await db.flush()
        except IntegrityError as exc:
            raise VolunteerError(
                "VOLUNTEER_ALREADY_EXISTS",
                f"Volunteer with email {data.get('email')} already exists",
                status_code=409,
                details=exc,
            ) from exc
        except SQLAlchemyError as exc:
            raise VolunteerError(
                "UNSPECIFIED_ERROR",
                "Volunteer could not be created",
                status_code=500,
                details=exc,
            ) from exc

        await db.refresh(volunteer)
        return VolunteerResponse.model_validate(volunteer)

    async def update_volunteer(
        self,
        db: AsyncSession,
        data: dict[str, Any],
        email: str,
        has_class: bool = False,
    ) -> VolunteerResponse | None:
        """자원봉사자 정보를 수정합니다.

        Apply ``data`` to the volunteer identified by ``email``. When
        ``has_class`` is set the volunteer leaves their class and
        ``created_at`` restarts at now, which puts them back at the top of
        the registration listing.

        Returns:
            VolunteerResponse | None: 수정된 자원봉사자, 없으면 None

        Raises:
            VolunteerError: VOLUNTEER_NOT_UPDATED on storage failure
        """
        values: dict[str, Any] = dict(data)
        if has_class:
            values["idpep"] = None
            values["created_at"] = datetime.now(timezone.utc)

        if values:
            try:
                async with db.begin_nested():
                    await db.execute(
                        update(Volunteer)
                        .where(Volunteer.email == email)
                        .values(**values)
                        .execution_options(synchronize_session=False)
                    )
            except SQLAlchemyError as exc:
                raise VolunteerError(
                    "VOLUNTEER_NOT_UPDATED",
                    f"Volunteer with email {email} was not updated",
                    details=exc,
                ) from exc

        return await self.get_volunteer_by_email(db, values.get("email") or email)

    async def delete_volunteer_by_email(self, db: AsyncSession, email: str) -> bool:
        """이메일로 자원봉사자를 삭제합니다 (True when a row was removed)."""
        result = await db.execute(
            delete(Volunteer)
            .where(Volunteer.email == email)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0

    async def update_or_create_password_for_email(
        self,
        db: AsyncSession,
        email: str,
        password_hash: str,
    ) -> bool:
        """비밀번호 해시를 설정합니다 (Set or replace the stored bcrypt hash)."""
        changed: int = await self.guarded_update(
            db, (Volunteer.email == email,), {"password_hash": password_hash}
        )
        return changed > 0

    async def post_volunteer_hours(
        self,
        db: AsyncSession,
        data: dict[str, Any],
    ) -> VolunteerHoursResponse:
        """봉사 시간을 기록합니다."""
        record: VolunteerHours = VolunteerHours(**data)
        db.add(record)
        await db.flush()
        await db.refresh(record)
        return VolunteerHoursResponse.model_validate(record)

    async def find_hours_by_month(
        self,
        db: AsyncSession,
        idvol: int,
        month: int,
        year: int,
    ) -> VolunteerHoursResponse | None:
        """해당 월에 보고된 봉사 시간 기록을 조회합니다.

        First hours record reported by ``idvol`` within the given calendar month.
        """
        start: datetime = datetime(year, month, 1, tzinfo=timezone.utc)
        end: datetime = (
            datetime(year + 1, 1, 1, tzinfo=timezone.utc)
            if month == 12
            else datetime(year, month + 1, 1, tzinfo=timezone.utc)
        )
        result = await db.execute(
            select(VolunteerHours)
            .where(VolunteerHours.idvol == idvol)
            .where(VolunteerHours.created_at >= start, VolunteerHours.created_at < end)
            .order_by(VolunteerHours.created_at.asc())
            .limit(1)
        )
        record = result.scalar_one_or_none()
        return VolunteerHoursResponse.model_validate(record) if record else None

    async def get_hours_by_idvol(self, db: AsyncSession, idvol: int) -> Sequence[VolunteerHoursResponse]:
        """자원봉사자의 전체 봉사 시간 기록 (Newest first)."""
        result = await db.execute(
            select(VolunteerHours)
            .where(VolunteerHours.idvol == idvol)
            .order_by(VolunteerHours.created_at.desc(), VolunteerHours.id.desc())
        )
        return [VolunteerHoursResponse.model_validate(r) for r in result.scalars().all()]


volunteer_repository: VolunteerRepository = VolunteerRepository()
