"""노트북 서비스 — 노트북 예약, 예약 취소, 평가 비즈니스 로직.

Notebook Service — Business logic for the notebook evaluation lifecycle.
The repository's guarded updates never raise on a lost race; this layer
reads the resulting state and turns "not found" and "someone else holds it"
into HTTP errors.
"""

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.notebook_repository import notebook_repository
from app.schemas.notebook import (
    EvaluateNotebookRequest,
    NotebookEvaluationRow,
    NotebookResponse,
    NotebookUpdate,
    ReflectionResponse,
)
from app.services.export_service import export_service
from app.services.volunteer_service import start_of_day
from app.utils.exceptions import NotebookError, NotFoundError
from app.utils.pagination import PaginationParams, PaginationResult


def _already_evaluated(idcad: int) -> NotebookError:
    return NotebookError(
        "NOTEBOOK_ALREADY_EVALUATED",
        f"Notebook {idcad} was already evaluated",
        status_code=409,
    )


def _evaluation_blocker(notebook: NotebookResponse, idvol: int) -> NotebookError | None:
    """평가를 막는 상태면 해당 오류, 아니면 None (Error for a state that forbids evaluating)."""
    if notebook.evaluated_date is not None:
        return _already_evaluated(notebook.idcad)
    if notebook.idvol != idvol:
        return NotebookError(
            "NOTEBOOK_NOT_RESERVED",
            f"Notebook {notebook.idcad} is not reserved by this volunteer",
            status_code=403,
        )
    return None


class NotebookService:
    """노트북 관련 비즈니스 로직을 처리하는 서비스."""

    async def get_notebook(self, db: AsyncSession, idcad: int) -> NotebookResponse:
        notebook = await notebook_repository.get_notebook_by_id(db, idcad)
        if notebook is None:
            raise NotFoundError("Notebook not found")
        return notebook

    async def reserve(self, db: AsyncSession, idcad: int, idvol: int) -> NotebookResponse:
        """노트북을 예약합니다.

        Reserve ``idcad`` for ``idvol``. Repeating a reservation the volunteer
        already holds returns the notebook unchanged.

        Raises:
            NotFoundError: 노트북이 없을 때 (Notebook not found)
            NotebookError: NOTEBOOK_NOT_AVAILABLE (409) when the notebook is
                unapproved, evaluated, or held by another volunteer
        """
        notebook = await notebook_repository.reserve_notebook_for_volunteer(db, idcad, idvol)
        if notebook is None:
            raise NotFoundError("Notebook not found")
        if notebook.idvol != idvol or notebook.evaluated_date is not None:
            raise NotebookError(
                "NOTEBOOK_NOT_AVAILABLE",
                f"Notebook {idcad} is not available for reservation",
                status_code=409,
            )
        return notebook

    async def revert(self, db: AsyncSession, idcad: int) -> NotebookResponse:
        """노트북 예약을 취소합니다 (Reverting an unreserved notebook is a no-op)."""
        notebook = await notebook_repository.revert_reserve_notebook_for_volunteer(db, idcad)
        if notebook is None:
            raise NotFoundError("Notebook not found")
        return notebook

    async def evaluate(
        self,
        db: AsyncSession,
        idcad: int,
        idvol: int,
        data: EvaluateNotebookRequest,
    ) -> NotebookResponse:
        """노트북 평가를 제출합니다.

        Only the volunteer holding the reservation may evaluate, and only once.
        The pre-checks give the precise error; the guarded write decides races,
        and a write that matched nothing is reported, never returned as success.

        Raises:
            NotFoundError: 노트북이 없을 때 (Notebook not found)
            NotebookError: NOTEBOOK_NOT_RESERVED (403) when ``idvol`` does not
                hold the reservation; NOTEBOOK_ALREADY_EVALUATED (409)
        """
        blocker = _evaluation_blocker(await self.get_notebook(db, idcad), idvol)
        if blocker is not None:
            raise blocker

        written: bool = await notebook_repository.save_notebook_evaluation(db, idcad, idvol, data.model_dump())
        notebook = await self.get_notebook(db, idcad)
        if not written:
            # 사전 확인과 UPDATE 사이에 상태가 바뀜 — state moved between the check and the write
            raise _evaluation_blocker(notebook, idvol) or _already_evaluated(idcad)
        return notebook

    async def update_notebook(self, db: AsyncSession, idcad: int, data: NotebookUpdate) -> NotebookResponse:
        notebook = await notebook_repository.update_notebook(db, idcad, data.model_dump(exclude_unset=True))
        if notebook is None:
            raise NotFoundError("Notebook not found")
        return notebook

    async def list_available(self, db: AsyncSession) -> list[NotebookResponse]:
        return await notebook_repository.get_available_notebooks(db)

    async def list_reserved(self, db: AsyncSession, idvol: int) -> list[NotebookResponse]:
        return await notebook_repository.get_reserved_notebooks_by_idvol(db, idvol)

    async def count_evaluated(self, db: AsyncSession, idvol: int) -> int:
        return await notebook_repository.count_evaluated_notebooks_by_idvol(db, idvol)

    async def list_evaluations(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
    ) -> PaginationResult[NotebookEvaluationRow]:
        """평가 목록 페이지 (``?classes=`` narrows to the given PEP classes)."""
        return await notebook_repository.get_all_notebook_evaluation(db, pagination)

    async def export_evaluations(self, db: AsyncSession, pagination: PaginationParams) -> bytes:
        rows = await notebook_repository.get_all_notebook_evaluation_download(db, pagination)
        return export_service.evaluations(rows)

    async def list_reflections(self, db: AsyncSession, from_date: date) -> list[ReflectionResponse]:
        """기준일 이후 평가된 노트북의 성찰 내용."""
        return await notebook_repository.get_reflections(db, start_of_day(from_date))


notebook_service: NotebookService = NotebookService()
