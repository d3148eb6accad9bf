"""페이지네이션 유틸리티 모듈.

Pagination utility module for SQLAlchemy async queries.
Normalizes raw ``page/limit/sort/filter`` query parameters into a bounded
``PaginationParams`` descriptor, runs the count + page query pair, and wraps
the ``(rows, total)`` result into the uniform ``PaginationResult`` envelope.

Query string format:
    ?page=3&limit=20&sort=name-ASC,created_at-DESC&email=user@email.com

    - page: 페이지 번호, 1부터 시작 (1-based page number)
    - limit: 페이지 크기, 최대 30 (page size, clamped to PAGINATION_MAX_LIMIT)
    - sort: ``field-DIRECTION`` 토큰 목록 (comma-separated tokens)
    - 그 외 키: 필터로 전달 (any other key is passed through as a filter)
"""

import functools
import math
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Generic, Sequence, TypeVar

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings

T = TypeVar("T")

# 필터로 전달되지 않는 예약 키 — Keys consumed by the descriptor itself
RESERVED_KEYS: frozenset[str] = frozenset({"page", "limit", "sort"})
SORT_DIRECTIONS: frozenset[str] = frozenset({"ASC", "DESC"})


class PaginationParams(BaseModel):
    """정규화된 페이지네이션 요청 디스크립터.

    Normalized pagination descriptor.

    Attributes:
        page: 페이지 번호, 1 이상 (Page number, >= 1)
        limit: 페이지 크기, 1..PAGINATION_MAX_LIMIT (Page size)
        sort: (필드, 방향) 목록 (Ordered (field, "ASC"|"DESC") pairs)
        filter: 필드별 필터 값 (Field name -> value or list of values)
    """

    page: int = 1
    limit: int = settings.PAGINATION_DEFAULT_LIMIT
    sort: list[tuple[str, str]] = []
    filter: dict[str, Any] = {}

    @property
    def offset(self) -> int:
        """현재 페이지의 OFFSET — (page - 1) * limit."""
        return (self.page - 1) * self.limit


class PaginationResult(BaseModel, Generic[T]):
    """페이지네이션 응답 봉투.

    Pagination envelope returned by every paginated query.
    Serialized with camelCase keys: ``data, totalCount, page, totalPages``.
    """

    model_config = ConfigDict(populate_by_name=True)

    data: list[T]
    total_count: int = Field(alias="totalCount")
    page: int
    total_pages: int = Field(alias="totalPages")


def _to_int(value: Any) -> int | None:
    """정수 변환 — 잘못된 입력은 None (Malformed input is treated as absent)."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_sort(raw: str | None) -> list[tuple[str, str]]:
    """``field-DIRECTION`` 토큰 목록을 파싱합니다.

    Unknown or missing directions default to ascending. Field names may
    themselves contain hyphens (``e-mail-DESC``), so the direction is taken
    from the last hyphen only when it names a valid direction.
    """
    if not raw:
        return []

    sort: list[tuple[str, str]] = []
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        field, sep, direction = token.rpartition("-")
        if sep and field and direction.upper() in SORT_DIRECTIONS:
            sort.append((field, direction.upper()))
        else:
            sort.append((token, "ASC"))
    return sort


def parse_pagination(
    query_items: Iterable[tuple[str, str]],
    default_limit: int | None = None,
    max_limit: int | None = None,
) -> PaginationParams:
    """원시 쿼리 파라미터를 페이지네이션 디스크립터로 정규화합니다.

    Normalize raw query parameters into a ``PaginationParams``.
    Never raises: malformed ``page``/``limit`` values fall back to defaults.
    Repeated filter keys (``?classes=5&classes=9``) become a list.

    Args:
        query_items: (키, 값) 쌍 목록 (Raw (key, value) query pairs)
        default_limit: 기본 페이지 크기 (Default page size, settings when None)
        max_limit: 최대 페이지 크기 (Page size cap, settings when None)

    Returns:
        PaginationParams: 정규화된 디스크립터 (Normalized descriptor)
    """
    default_limit = default_limit or settings.PAGINATION_DEFAULT_LIMIT
    max_limit = max_limit or settings.PAGINATION_MAX_LIMIT

    raw: dict[str, str] = {}
    filters: dict[str, Any] = {}
    for key, value in query_items:
        if key in RESERVED_KEYS:
            raw[key] = value
            continue
        if key in filters:
            existing = filters[key]
            filters[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            filters[key] = value

    requested_limit: int | None = _to_int(raw.get("limit"))
    if requested_limit is None or requested_limit < 1:
        requested_limit = default_limit
    limit: int = min(requested_limit, max_limit)

    page: int | None = _to_int(raw.get("page"))
    if page is None or page < 1:
        page = 1

    return PaginationParams(
        page=page,
        limit=limit,
        sort=_parse_sort(raw.get("sort")),
        filter=filters,
    )


async def pagination_params(request: Request) -> PaginationParams:
    """FastAPI 의존성 — 요청 쿼리 문자열에서 디스크립터를 생성합니다.

    FastAPI dependency building the descriptor from the request query string.
    Path parameters are not part of ``query_params`` and never leak into filters.
    """
    return parse_pagination(request.query_params.multi_items())


def build_page(
    rows: Sequence[T],
    total_count: int,
    pagination: PaginationParams,
) -> PaginationResult[T]:
    """(행 목록, 전체 개수)를 페이지네이션 봉투로 감쌉니다.

    Wrap a ``(rows, total_count)`` pair into the response envelope.
    ``totalPages`` is ``ceil(totalCount / limit)`` and 0 for an empty result.
    """
    total_pages: int = math.ceil(total_count / pagination.limit) if total_count > 0 else 0
    return PaginationResult(
        data=list(rows),
        total_count=total_count,
        page=pagination.page,
        total_pages=total_pages,
    )


def wrap_pagination(
    func: Callable[..., Awaitable[tuple[Sequence[T], int]]],
) -> Callable[..., Awaitable[PaginationResult[T]]]:
    """``(rows, total)``을 반환하는 레포지토리 메서드를 봉투 반환형으로 감쌉니다.

    Decorate a repository method ``(self, db, pagination, *args)`` returning
    ``(rows, total)`` so that it returns a ``PaginationResult`` instead.
    """

    @functools.wraps(func)
    async def wrapper(
        self: Any,
        db: AsyncSession,
        pagination: PaginationParams,
        *args: Any,
        **kwargs: Any,
    ) -> PaginationResult[T]:
        rows, total_count = await func(self, db, pagination, *args, **kwargs)
        return build_page(rows, total_count, pagination)

    return wrapper


async def fetch_page(
    db: AsyncSession,
    query: Select[Any],
    pagination: PaginationParams,
    scalars: bool = True,
) -> tuple[Sequence[Any], int]:
    """SQLAlchemy 쿼리에 대한 페이지네이션을 수행합니다.

    Execute a paginated SQLAlchemy query, returning items and total count.
    Runs two queries: one for the total count (via subquery, ordering
    stripped) and one for the current page with OFFSET/LIMIT. The two are
    not isolated from concurrent writes, so the count may be off by a row
    inserted in between.

    Args:
        db: 비동기 DB 세션 (Async database session)
        query: 필터/정렬이 적용된 Select 쿼리 (Filtered, ordered base query)
        pagination: 페이지네이션 디스크립터 (Pagination descriptor)
        scalars: True이면 첫 컬럼 엔티티만 반환 (Return scalars instead of rows)

    Returns:
        tuple[Sequence[Any], int]: (항목 목록, 전체 개수)
    """
    # 전체 개수 조회 — ORDER BY 제거 후 서브쿼리로 COUNT (Count total via subquery)
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total: int = (await db.execute(count_query)).scalar() or 0

    # 페이지 항목 조회 — OFFSET/LIMIT 적용 (Fetch page items with offset/limit)
    result = await db.execute(query.offset(pagination.offset).limit(pagination.limit))
    items: Sequence[Any] = result.scalars().all() if scalars else result.all()

    return items, total
