"""데이터베이스 엔진 및 세션 설정 모듈.

Async SQLAlchemy engine, session factory and declarative base.

Every request gets its own ``AsyncSession`` from ``get_db``. Repositories
flush but never commit; routers commit once the service call succeeds, so a
request that raises leaves nothing behind. Inserts that may hit a unique
constraint run inside ``session.begin_nested()`` so the failed SAVEPOINT is
rolled back without discarding the rest of the request's work.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
)

# 커밋 후에도 응답 직렬화를 위해 속성 유지 (Attributes stay loaded after commit)
async_session: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """자원봉사자 관리 ORM 모델의 선언적 베이스 (Declarative base for all tables)."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청 단위 세션 — 커밋은 라우터가 담당 (Routers own the commit).

    Uncommitted work is rolled back when the session closes.
    """
    async with async_session() as session:
        yield session
