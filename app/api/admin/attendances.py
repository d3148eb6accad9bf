"""관리자 출석 라우터 — 워크숍 출석 제출, 조회, 활동 지표 엔드포인트.

Admin Attendance Router — Workshop attendance submission, date-bounded
listing/export, per-volunteer rows, and the volunteer metrics report.
"""

from datetime import date
from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    get_current_volunteer,
    require_attendance_module,
    require_manage_volunteer_module,
)
from app.database import get_db
from app.schemas.attendance import (
    AttendanceInfoResponse,
    AttendanceResponse,
    AttendanceSubmit,
    VolunteerAttendanceMetrics,
    WorkshopAttendanceRow,
)
from app.schemas.common import DomainErrorResponse
from app.schemas.volunteer import VolunteerResponse
from app.services.attendance_service import attendance_service
from app.services.export_service import XLSX_MEDIA_TYPE, attachment_filename
from app.utils.pagination import PaginationParams, PaginationResult, pagination_params

router: APIRouter = APIRouter()


def _xlsx(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/from/{from_date}", response_model=PaginationResult[AttendanceInfoResponse])
async def list_attendances_from_date(
    from_date: date,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    current_volunteer: Annotated[VolunteerResponse, Depends(require_attendance_module)],
) -> PaginationResult[AttendanceInfoResponse]:
    """기준일(yyyy-mm-dd) 이후 워크숍 출석 목록.

    Attendances for workshops held on or after ``from_date``.

    Args:
        from_date: 워크숍 날짜 하한 (Inclusive lower bound, e.g. 2023-09-12)
        pagination: ?page=&limit=&sort=workshop_name-ASC&attended=true
    """
    return await attendance_service.list_from_date(db, pagination, from_date)


@router.get("/download/from/{from_date}")
async def download_attendances_from_date(
    from_date: date,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    current_volunteer: Annotated[VolunteerResponse, Depends(require_attendance_module)],
) -> StreamingResponse:
    """기준일 이후 출석 기록 전체를 Excel 파일로 내려받습니다.

    The export is an ``.xlsx`` workbook, not CSV; clients that parsed the
    earlier CSV download must read the spreadsheet instead.
    """
    content: bytes = await attendance_service.export_from_date(db, pagination, from_date)
    return _xlsx(content, attachment_filename("presenca", from_date))


@router.get("/metrics", response_model=PaginationResult[VolunteerAttendanceMetrics])
async def list_volunteer_metrics(
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    current_volunteer: Annotated[VolunteerResponse, Depends(require_manage_volunteer_module)],
) -> PaginationResult[VolunteerAttendanceMetrics]:
    """자원봉사자 활동 지표 (Attendances, evaluated notebooks, reported hours)."""
    return await attendance_service.metrics(db, pagination)


@router.get("/metrics/download")
async def download_volunteer_metrics(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: Annotated[VolunteerResponse, Depends(require_manage_volunteer_module)],
) -> StreamingResponse:
    content: bytes = await attendance_service.export_metrics(db)
    return _xlsx(content, attachment_filename("metricas"))


@router.get("/volunteer/{idvol}", response_model=list[WorkshopAttendanceRow])
async def list_volunteer_attendances(
    idvol: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: Annotated[VolunteerResponse, Depends(get_current_volunteer)],
) -> list[WorkshopAttendanceRow]:
    """자원봉사자의 워크숍 출석 목록."""
    return await attendance_service.list_by_volunteer(db, idvol)


@router.post(
    "/",
    response_model=AttendanceResponse,
    status_code=201,
    responses={409: {"model": DomainErrorResponse}, 412: {"model": DomainErrorResponse}},
)
async def submit_attendance(
    data: AttendanceSubmit,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: Annotated[VolunteerResponse, Depends(get_current_volunteer)],
) -> AttendanceResponse:
    """워크숍 출석을 제출합니다.

    Returns 412 ``VOLUNTEER_NOT_FOUND`` for an unknown volunteer and 409
    ``ATTENDANCE_ALREADY_SUBMITTED`` for a repeated submission.
    """
    result: AttendanceResponse = await attendance_service.submit(db, data)
    await db.commit()
    return result
