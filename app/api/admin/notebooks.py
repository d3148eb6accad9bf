"""관리자 노트북 라우터 — 노트북 예약, 평가, 평가 목록 엔드포인트.

Admin Notebook Router — Notebook reservation lifecycle, evaluation
submission, evaluation listing/export and reflections.
"""

from datetime import date
from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_notebook_module
from app.database import get_db
from app.schemas.common import DomainErrorResponse
from app.schemas.notebook import (
    EvaluateNotebookRequest,
    EvaluatedCountResponse,
    NotebookEvaluationRow,
    NotebookResponse,
    NotebookUpdate,
    ReflectionResponse,
)
from app.schemas.volunteer import VolunteerResponse
from app.services.export_service import XLSX_MEDIA_TYPE, attachment_filename
from app.services.notebook_service import notebook_service
from app.utils.pagination import PaginationParams, PaginationResult, pagination_params

router: APIRouter = APIRouter()

CurrentVolunteer = Annotated[VolunteerResponse, Depends(require_notebook_module)]


@router.get("/available", response_model=list[NotebookResponse])
async def list_available_notebooks(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: CurrentVolunteer,
) -> list[NotebookResponse]:
    """예약 가능한 노트북 목록 (Approved, unreserved, unevaluated)."""
    return await notebook_service.list_available(db)


@router.get("/reserved", response_model=list[NotebookResponse])
async def list_reserved_notebooks(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: CurrentVolunteer,
) -> list[NotebookResponse]:
    """현재 자원봉사자가 예약한 미평가 노트북 목록."""
    return await notebook_service.list_reserved(db, current_volunteer.idvol)


@router.get("/evaluated/count", response_model=EvaluatedCountResponse)
async def count_evaluated_notebooks(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: CurrentVolunteer,
) -> EvaluatedCountResponse:
    count: int = await notebook_service.count_evaluated(db, current_volunteer.idvol)
    return EvaluatedCountResponse(count=count)


@router.get("/evaluation", response_model=PaginationResult[NotebookEvaluationRow])
async def list_notebook_evaluations(
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    current_volunteer: CurrentVolunteer,
) -> PaginationResult[NotebookEvaluationRow]:
    """노트북 평가 목록.

    Paginated evaluation listing. ``?classes=5&classes=9`` restricts to the
    given PEP classes; other keys filter on notebook columns.
    """
    return await notebook_service.list_evaluations(db, pagination)


@router.get("/evaluation/download")
async def download_notebook_evaluations(
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    current_volunteer: CurrentVolunteer,
) -> StreamingResponse:
    """평가 목록 전체를 Excel 파일로 내려받습니다.

    The export is an ``.xlsx`` workbook, not CSV; clients that parsed the
    earlier CSV download must read the spreadsheet instead.
    """
    content: bytes = await notebook_service.export_evaluations(db, pagination)
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={attachment_filename('avaliacoes')}"},
    )


@router.get("/reflections/{from_date}", response_model=list[ReflectionResponse])
async def list_reflections(
    from_date: date,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: CurrentVolunteer,
) -> list[ReflectionResponse]:
    """기준일(yyyy-mm-dd) 이후 평가된 노트북의 성찰 내용."""
    return await notebook_service.list_reflections(db, from_date)


@router.get("/{idcad}", response_model=NotebookResponse)
async def get_notebook(
    idcad: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: CurrentVolunteer,
) -> NotebookResponse:
    return await notebook_service.get_notebook(db, idcad)


@router.put(
    "/{idcad}/reserve",
    response_model=NotebookResponse,
    responses={409: {"model": DomainErrorResponse}},
)
async def reserve_notebook(
    idcad: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: CurrentVolunteer,
) -> NotebookResponse:
    """노트북을 현재 자원봉사자에게 예약합니다.

    Reserve the notebook for the caller. When two volunteers race for the
    same notebook exactly one wins; the other receives 409
    ``NOTEBOOK_NOT_AVAILABLE``.
    """
    result: NotebookResponse = await notebook_service.reserve(db, idcad, current_volunteer.idvol)
    await db.commit()
    return result


@router.put("/{idcad}/revert", response_model=NotebookResponse)
async def revert_notebook_reservation(
    idcad: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: CurrentVolunteer,
) -> NotebookResponse:
    """노트북 예약을 취소합니다."""
    result: NotebookResponse = await notebook_service.revert(db, idcad)
    await db.commit()
    return result


@router.put(
    "/{idcad}/evaluation",
    response_model=NotebookResponse,
    responses={403: {"model": DomainErrorResponse}, 409: {"model": DomainErrorResponse}},
)
async def evaluate_notebook(
    idcad: int,
    data: EvaluateNotebookRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: CurrentVolunteer,
) -> NotebookResponse:
    """예약한 노트북의 평가를 제출합니다 (Once per notebook)."""
    result: NotebookResponse = await notebook_service.evaluate(db, idcad, current_volunteer.idvol, data)
    await db.commit()
    return result


@router.put("/{idcad}", response_model=NotebookResponse)
async def update_notebook(
    idcad: int,
    data: NotebookUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_volunteer: CurrentVolunteer,
) -> NotebookResponse:
    """노트북 정보를 수정합니다 (부분 업데이트, 예약 조건 없음)."""
    result: NotebookResponse = await notebook_service.update_notebook(db, idcad, data)
    await db.commit()
    return result
