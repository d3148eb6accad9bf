"""노트북 레포지토리 — 학생 노트북 평가 기록 관련 DB 쿼리 담당.

Notebook Repository — Handles notebook (student evaluation record) queries.
Reservation, revert and evaluation are single guarded ``UPDATE ... WHERE``
statements; the database decides which of two racing callers wins.
"""

from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notebook import Notebook, PepClass, Place
from app.models.volunteer import Volunteer
from app.repositories.base import BaseRepository
from app.schemas.notebook import NotebookEvaluationRow, NotebookResponse, ReflectionResponse
from app.utils.exceptions import NotebookError
from app.utils.pagination import PaginationParams, fetch_page, wrap_pagination

# 클래스 목록 필터 키 — ?classes=5&classes=9 -> idpep IN (5, 9)
CLASSES_FILTER_KEY: str = "classes"


def _with_directory(notebook: Notebook, notebook_directory: str | None) -> NotebookResponse:
    """노트북 + 클래스 폴더 경로를 응답으로 변환 (Flatten the class directory)."""
    return NotebookResponse.model_validate(notebook).model_copy(
        update={"notebook_directory": notebook_directory}
    )


def _evaluation_row(row: Row) -> NotebookEvaluationRow:
    """조인 결과 행을 평가 목록 행으로 평탄화합니다."""
    notebook, volunteer_name, place_name, notebook_directory = row
    base: dict[str, Any] = NotebookResponse.model_validate(notebook).model_dump()
    base.update(
        notebook_directory=notebook_directory,
        volunteer_name=volunteer_name,
        place_name=place_name,
    )
    return NotebookEvaluationRow(**base)


class NotebookRepository(BaseRepository[Notebook]):
    """노트북 레포지토리.

    Notebook repository covering the reservation lifecycle, evaluation
    listing, and the reflections extract.

    Extends:
        BaseRepository[Notebook]
    """

    def __init__(self) -> None:
        super().__init__(Notebook)

    @staticmethod
    def default_order() -> tuple:
        """기본 정렬 (idcad DESC, evaluated_date DESC)."""
        return (Notebook.idcad.desc(), Notebook.evaluated_date.desc())

    def _with_class_query(self) -> Select:
        return (
            select(Notebook, PepClass.notebook_directory)
            .outerjoin(PepClass, Notebook.idpep == PepClass.idpep)
            .execution_options(populate_existing=True)
        )

    async def get_notebook_by_id(self, db: AsyncSession, idcad: int) -> NotebookResponse | None:
        """ID로 노트북을 조회합니다 — 항상 DB에서 다시 읽음 (Always re-read from storage)."""
        result = await db.execute(self._with_class_query().where(Notebook.idcad == idcad))
        row = result.first()
        return _with_directory(*row) if row else None

    # === 예약 생명주기 (Reservation lifecycle) ===

    async def reserve_notebook_for_volunteer(
        self,
        db: AsyncSession,
        idcad: int,
        idvol: int,
    ) -> NotebookResponse | None:
        """노트북을 자원봉사자에게 예약합니다.

        Reserve an approved, unreserved, unevaluated notebook for ``idvol``.
        When the guard does not match nothing changes; the current state is
        returned either way so the caller can see who holds the notebook.

        Returns:
            NotebookResponse | None: 갱신 후 다시 읽은 노트북, 없으면 None
        """
        await self.guarded_update(
            db,
            (
                Notebook.idcad == idcad,
                Notebook.idvol.is_(None),
                Notebook.reservation_date.is_(None),
                Notebook.evaluated_date.is_(None),
                Notebook.approved.is_(True),
            ),
            {"idvol": idvol, "reservation_date": datetime.now(timezone.utc)},
        )
        return await self.get_notebook_by_id(db, idcad)

    async def revert_reserve_notebook_for_volunteer(
        self,
        db: AsyncSession,
        idcad: int,
    ) -> NotebookResponse | None:
        """노트북 예약을 취소합니다 (Clear idvol and reservation_date when both are set)."""
        await self.guarded_update(
            db,
            (
                Notebook.idcad == idcad,
                Notebook.idvol.is_not(None),
                Notebook.reservation_date.is_not(None),
            ),
            {"idvol": None, "reservation_date": None},
        )
        return await self.get_notebook_by_id(db, idcad)

    async def save_notebook_evaluation(
        self,
        db: AsyncSession,
        idcad: int,
        idvol: int,
        evaluation: dict[str, Any],
    ) -> bool:
        """노트북 평가를 저장합니다.

        Write the evaluation answers and stamp ``evaluated_date``. The guard
        requires ``evaluated_date IS NULL`` and that ``idvol`` still holds the
        reservation, so a notebook is evaluated at most once and only by its
        current holder.

        Returns:
            bool: 평가가 기록되었으면 True, 조건 불일치로 변경이 없으면 False
        """
        values: dict[str, Any] = dict(evaluation)
        values["evaluated_date"] = datetime.now(timezone.utc)
        changed: int = await self.guarded_update(
            db,
            (
                Notebook.idcad == idcad,
                Notebook.idvol == idvol,
                Notebook.evaluated_date.is_(None),
            ),
            values,
        )
        return changed > 0

    async def update_notebook(
        self,
        db: AsyncSession,
        idcad: int,
        data: dict[str, Any],
    ) -> NotebookResponse | None:
        """관리자용 부분 수정 — 조건 없음 (Unguarded partial update).

        Raises:
            NotebookError: NOTEBOOK_NOT_UPDATED when storage rejects the values
                (e.g. an unknown class)
        """
        if data:
            try:
                async with db.begin_nested():
                    await self.guarded_update(db, (Notebook.idcad == idcad,), data)
            except SQLAlchemyError as exc:
                raise NotebookError(
                    "NOTEBOOK_NOT_UPDATED",
                    f"Notebook {idcad} was not updated",
                    details=exc,
                ) from exc
        return await self.get_notebook_by_id(db, idcad)

    # === 자원봉사자 화면 (Volunteer views) ===

    async def get_reserved_notebooks_by_idvol(
        self,
        db: AsyncSession,
        idvol: int,
    ) -> list[NotebookResponse]:
        """자원봉사자가 예약했지만 아직 평가하지 않은 노트북 목록."""
        result = await db.execute(
            self._with_class_query()
            .where(Notebook.idvol == idvol)
            .where(Notebook.reservation_date.is_not(None))
            .where(Notebook.evaluated_date.is_(None))
            .order_by(Notebook.reservation_date.asc(), Notebook.idcad.asc())
        )
        return [_with_directory(*row) for row in result.all()]

    async def get_available_notebooks(self, db: AsyncSession) -> list[NotebookResponse]:
        """예약 가능한 노트북 목록.

        Approved, unreserved, unevaluated notebooks that belong to a class,
        oldest first so the backlog is worked in order.
        """
        result = await db.execute(
            select(Notebook, PepClass.notebook_directory)
            .join(PepClass, Notebook.idpep == PepClass.idpep)
            .where(Notebook.approved.is_(True))
            .where(Notebook.idvol.is_(None))
            .where(Notebook.reservation_date.is_(None))
            .where(Notebook.evaluated_date.is_(None))
            .order_by(Notebook.idcad.asc())
        )
        return [_with_directory(*row) for row in result.all()]

    async def count_evaluated_notebooks_by_idvol(self, db: AsyncSession, idvol: int) -> int:
        """자원봉사자가 평가 완료한 노트북 수."""
        result = await db.execute(
            select(func.count())
            .select_from(Notebook)
            .where(Notebook.idvol == idvol)
            .where(Notebook.evaluated_date.is_not(None))
        )
        return result.scalar() or 0

    # === 평가 목록 (Evaluation listing) ===

    def _evaluation_query(self, filters: dict[str, Any] | None) -> Select:
        """평가 목록 기본 쿼리 — 자원봉사자, 클래스, 장소 조인.

        ``classes`` is consumed here and turned into ``idpep IN (...)``; every
        other key goes through the generic column filter.
        """
        filters = dict(filters or {})
        classes: Any = filters.pop(CLASSES_FILTER_KEY, None)

        query: Select = (
            select(Notebook, Volunteer.name, Place.full_name, PepClass.notebook_directory)
            .outerjoin(Volunteer, Notebook.idvol == Volunteer.idvol)
            .outerjoin(PepClass, Notebook.idpep == PepClass.idpep)
            .outerjoin(Place, PepClass.place_id == Place.id)
            .execution_options(populate_existing=True)
        )
        if classes is not None:
            idpeps: list[int] = []
            for value in classes if isinstance(classes, list) else [classes]:
                try:
                    idpeps.append(int(value))
                except (TypeError, ValueError):
                    continue
            if idpeps:
                query = query.where(Notebook.idpep.in_(idpeps))
        return self.apply_filters(query, filters)

    @wrap_pagination
    async def get_all_notebook_evaluation(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
    ) -> tuple[list[NotebookEvaluationRow], int]:
        """노트북 평가 목록을 페이지네이션하여 조회합니다.

        Paginated evaluation listing with the volunteer name and place name
        flattened onto each row.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            pagination: 페이지네이션 디스크립터, ``classes`` 필터 지원
                (Pagination descriptor; supports the ``classes`` filter)

        Returns:
            tuple[list[NotebookEvaluationRow], int]: (평가 행 목록, 전체 개수)
        """
        query: Select = self._evaluation_query(pagination.filter)
        query = self.apply_sort(query, pagination.sort, self.default_order())
        rows, total = await fetch_page(db, query, pagination, scalars=False)
        return [_evaluation_row(row) for row in rows], total

    async def get_all_notebook_evaluation_download(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
    ) -> list[NotebookEvaluationRow]:
        """다운로드용 평가 목록 — 필터와 정렬은 동일, 페이지 제한 없음."""
        query: Select = self._evaluation_query(pagination.filter)
        query = self.apply_sort(query, pagination.sort, self.default_order())
        result = await db.execute(query)
        return [_evaluation_row(row) for row in result.all()]

    async def get_reflections(self, db: AsyncSession, from_date: datetime) -> list[ReflectionResponse]:
        """기준 시각 이후 평가된 노트북의 성찰 내용을 추출합니다.

        Relevant content of notebooks evaluated after ``from_date``.
        Notebooks without relevant content are skipped.
        """
        result = await db.execute(
            select(Notebook)
            .where(Notebook.evaluated_date > from_date)
            .where(Notebook.relevant_content.is_not(None))
            .where(Notebook.relevant_content != "")
            .order_by(Notebook.evaluated_date.asc(), Notebook.idcad.asc())
        )
        notebooks: Sequence[Notebook] = result.scalars().all()
        return [
            ReflectionResponse(
                student_name=n.student_name,
                student_registration=n.student_registration,
                student_prison_unit=n.student_prison_unit,
                relevant_content=n.relevant_content,
            )
            for n in notebooks
        ]


notebook_repository: NotebookRepository = NotebookRepository()
