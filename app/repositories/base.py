"""기본 CRUD 레포지토리 — 모든 레포지토리의 부모 클래스.

Base CRUD Repository — Parent class for all domain repositories.
Provides the primary-key read, caller-supplied filter and sort
application for paginated queries, and the guarded conditional update
used by lifecycle transitions.

Usage:
    class VolunteerRepository(BaseRepository[Volunteer]):
        def __init__(self) -> None:
            super().__init__(Volunteer)
"""

from datetime import date, datetime
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Column, ColumnElement, Select, inspect, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base

# 제네릭 타입 변수 — SQLAlchemy 모델을 나타냄
# Generic type variable representing a SQLAlchemy model
ModelType = TypeVar("ModelType", bound=Base)

_TRUE_VALUES: frozenset[str] = frozenset({"true", "1", "yes", "sim"})
_FALSE_VALUES: frozenset[str] = frozenset({"false", "0", "no", "nao", "não"})


def coerce_value(column: Column[Any], value: Any) -> Any:
    """쿼리 문자열 값을 컬럼의 파이썬 타입으로 변환합니다.

    Convert a raw query-string value to the column's Python type so the
    driver receives a correctly typed bind parameter.

    Raises:
        ValueError: 변환할 수 없는 값 (Value cannot be converted)
    """
    try:
        python_type: type = column.type.python_type
    except NotImplementedError:
        return value

    if isinstance(value, python_type):
        return value
    if python_type is bool:
        lowered: str = str(value).strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"Invalid boolean: {value!r}")
    if python_type is datetime:
        return datetime.fromisoformat(str(value))
    if python_type is date:
        return date.fromisoformat(str(value))
    if python_type in (int, float, str):
        return python_type(value)
    raise ValueError(f"Unsupported filter type: {python_type.__name__}")


class BaseRepository(Generic[ModelType]):
    """제네릭 CRUD 레포지토리.

    Generic repository providing common database operations.

    Attributes:
        model: SQLAlchemy 모델 클래스 (The SQLAlchemy model class)
    """

    # 필터/정렬 대상에서 제외할 컬럼 — Columns callers may never filter or sort on
    hidden_columns: frozenset[str] = frozenset()

    def __init__(self, model: type[ModelType]) -> None:
        self.model: type[ModelType] = model

    def resolve_column(self, name: str) -> Column[Any] | None:
        """모델의 컬럼을 이름으로 조회 — 없거나 숨김이면 None (Unknown or hidden names yield None)."""
        if name in self.hidden_columns:
            return None
        return inspect(self.model).columns.get(name)

    async def get_by_id(
        self,
        db: AsyncSession,
        record_id: int,
    ) -> ModelType | None:
        """기본 키로 단일 레코드를 조회합니다.

        Retrieve a single record by primary key. Always refreshes the
        identity map so state written by a guarded update is visible.
        """
        pk: Column[Any] = inspect(self.model).primary_key[0]
        query: Select = (
            select(self.model)
            .where(pk == record_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    def apply_filters(self, query: Select, filters: dict[str, Any] | None) -> Select:
        """호출자가 전달한 필드 필터를 쿼리에 병합합니다.

        Merge caller-supplied equality filters into ``query``.
        Lists become ``IN`` predicates. Unknown columns are ignored and
        malformed values are dropped; neither raises.

        Args:
            query: 기본 조건이 적용된 쿼리 (Query with the base filter applied)
            filters: {'컬럼명': 값 또는 값 목록} ({'column_name': value | [values]})

        Returns:
            Select: 필터가 병합된 쿼리 (Query with filters merged)
        """
        if not filters:
            return query

        for column_name, raw_value in filters.items():
            column = self.resolve_column(column_name)
            if column is None or raw_value is None:
                continue

            raw_values: list[Any] = raw_value if isinstance(raw_value, list) else [raw_value]
            values: list[Any] = []
            for value in raw_values:
                try:
                    values.append(coerce_value(column, value))
                except ValueError:
                    continue
            if not values:
                continue

            if isinstance(raw_value, list):
                query = query.where(column.in_(values))
            else:
                query = query.where(column == values[0])
        return query

    def apply_sort(
        self,
        query: Select,
        sort: Sequence[tuple[str, str]],
        default_order: Sequence[ColumnElement[Any]] = (),
    ) -> Select:
        """호출자 정렬을 먼저, 엔티티 기본 정렬을 뒤에 적용합니다.

        Apply the caller's sort first and the entity default order after it,
        so pagination stays stable even when the caller sorts on a
        non-unique column. Unknown sort fields are ignored.
        """
        for field, direction in sort:
            column = self.resolve_column(field)
            if column is None:
                continue
            query = query.order_by(column.desc() if direction == "DESC" else column.asc())
        if default_order:
            query = query.order_by(*default_order)
        return query

    async def guarded_update(
        self,
        db: AsyncSession,
        where: Sequence[ColumnElement[bool]],
        values: dict[str, Any],
    ) -> int:
        """조건부 UPDATE — 술어에 맞는 행만 갱신합니다.

        Single atomic ``UPDATE ... WHERE <predicate>``. Two concurrent callers
        racing on the same predicate cannot both match: the loser sees
        zero rows. Zero matches is not an error.

        Returns:
            int: 갱신된 행 수 (Number of rows changed)
        """
        statement = (
            update(self.model)
            .where(*where)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(statement)
        return result.rowcount or 0
