"""관리자 자원봉사자 라우터 — 자원봉사자 CRUD, 비밀번호, 봉사 시간 엔드포인트.

Admin Volunteer Router — Volunteer registration, listing, update, deletion,
password management and reported hours.

Pagination (``GET /from/{date}``):
    ?page=3&limit=20&sort=name-ASC,created_at-DESC&city=Recife
"""

from datetime import date
from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_volunteer, require_manage_volunteer_module
from app.database import get_db
from app.schemas.common import DomainErrorResponse, MessageResponse
from app.schemas.volunteer import (
    PasswordUpdate,
    VolunteerCreate,
    VolunteerHoursCreate,
    VolunteerHoursResponse,
    VolunteerResponse,
    VolunteerUpdate,
)
from app.services.export_service import XLSX_MEDIA_TYPE, attachment_filename
from app.services.volunteer_service import volunteer_service
from app.utils.pagination import PaginationParams, PaginationResult, pagination_params

router: APIRouter = APIRouter()


@router.get("/from/{from_date}", response_model=PaginationResult[VolunteerResponse])
async def list_volunteers_from_date(
    from_date: date,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    current_volunteer: Annotated[VolunteerResponse, Depends(require_manage_volunteer_module)],
) -> PaginationResult[VolunteerResponse]:
    """기준일(yyyy-mm-dd) 이후 등록된 자원봉사자 목록.

    Volunteers registered on or after ``from_date``. Any query key other than
    ``page``, ``limit`` and ``sort`` filters on the volunteer column of that name.
    """
    return await volunteer_service.list_from_date(db, pagination, from_date)


@router.get("/download/from/{from_date}")
async def download_volunteers_from_date(
    from_date: date,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    current_volunteer: Annotated[VolunteerResponse, Depends(require_manage_volunteer_module)],
) -> StreamingResponse:
    """기준일 이후 등록된 자원봉사자 전체를 Excel 파일로 내려받습니다.

    The export is an ``.xlsx`` workbook, not CSV; clients that parsed the
    earlier CSV download must read the spreadsheet instead.
    """
    content: bytes = await volunteer_service.export_from_date(db, pagination, from_date)
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={attachment_filename('voluntarios', from_date)}"},
    )


@router.post("/hours", response_model=VolunteerHoursResponse, status_code=201)
async def report_hours(
    data: VolunteerHoursCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: Annotated[VolunteerResponse, Depends(get_current_volunteer)],
) -> VolunteerHoursResponse:
    """이번 달 봉사 시간을 보고합니다 (One report per volunteer per month)."""
    result: VolunteerHoursResponse = await volunteer_service.report_hours(db, data)
    await db.commit()
    return result


@router.get("/email/{email}", response_model=VolunteerResponse)
async def get_volunteer_by_email(
    email: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: Annotated[VolunteerResponse, Depends(get_current_volunteer)],
) -> VolunteerResponse:
    return await volunteer_service.get_volunteer_by_email(db, email)


@router.get("/{idvol}", response_model=VolunteerResponse)
async def get_volunteer(
    idvol: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: Annotated[VolunteerResponse, Depends(get_current_volunteer)],
) -> VolunteerResponse:
    """자원봉사자 상세 정보를 조회합니다."""
    return await volunteer_service.get_volunteer(db, idvol)


@router.get("/{idvol}/hours", response_model=list[VolunteerHoursResponse])
async def list_volunteer_hours(
    idvol: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: Annotated[VolunteerResponse, Depends(get_current_volunteer)],
) -> list[VolunteerHoursResponse]:
    return await volunteer_service.list_hours(db, idvol)


@router.get("/", response_model=list[VolunteerResponse])
async def list_all_volunteers(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: Annotated[VolunteerResponse, Depends(require_manage_volunteer_module)],
) -> list[VolunteerResponse]:
    """전체 자원봉사자 목록 (Unpaginated, newest first)."""
    return await volunteer_service.list_all(db)


@router.post(
    "/",
    response_model=VolunteerResponse,
    status_code=201,
    responses={409: {"model": DomainErrorResponse}},
)
async def create_volunteer(
    data: VolunteerCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> VolunteerResponse:
    """자원봉사자 등록 — 공개 등록 폼에서 호출, 인증 불필요.

    Register a volunteer from the public registration form.
    A repeated email returns 409 ``VOLUNTEER_ALREADY_EXISTS``.
    """
    result: VolunteerResponse = await volunteer_service.create_volunteer(db, data)
    await db.commit()
    return result


@router.put("/{email}", response_model=VolunteerResponse)
async def update_volunteer(
    email: str,
    data: VolunteerUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: Annotated[VolunteerResponse, Depends(require_manage_volunteer_module)],
    has_class: Annotated[bool, Query(description="재등록 — 클래스 해제 및 등록일 갱신")] = False,
) -> VolunteerResponse:
    """자원봉사자 정보를 수정합니다.

    Partial update. ``?has_class=true`` re-enrolls the volunteer.
    """
    result: VolunteerResponse = await volunteer_service.update_volunteer(db, email, data, has_class)
    await db.commit()
    return result


@router.delete("/{email}", response_model=MessageResponse)
async def delete_volunteer(
    email: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: Annotated[VolunteerResponse, Depends(require_manage_volunteer_module)],
) -> MessageResponse:
    await volunteer_service.delete_volunteer(db, email)
    await db.commit()
    return MessageResponse(message="Volunteer deleted")


@router.put("/{email}/password", response_model=MessageResponse)
async def set_volunteer_password(
    email: str,
    data: PasswordUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: Annotated[VolunteerResponse, Depends(require_manage_volunteer_module)],
) -> MessageResponse:
    """자원봉사자 비밀번호를 설정하거나 변경합니다."""
    await volunteer_service.set_password(db, email, data.password)
    await db.commit()
    return MessageResponse(message="Password updated")
