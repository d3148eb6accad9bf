"""테스트 인프라 — 인메모리 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — In-memory SQLite DB, session, and httpx client fixtures.
Every test gets a fresh schema on its own engine, so no cleanup pass is
needed. SQLite's driver-level transaction handling is disabled in favour of
explicit BEGIN so that SAVEPOINTs behave like PostgreSQL's.
"""

from collections.abc import AsyncGenerator
from datetime import date, datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import *  # noqa: F401,F403 — register all models with metadata
from app.models import Authorization, Notebook, PepClass, Place, Volunteer
from app.utils.jwt import create_access_token
from app.utils.password import hash_password

TEST_DATABASE_URL = "sqlite+aiosqlite://"

ALL_PERMISSIONS: dict[str, bool] = {
    "attendance_module_permission": True,
    "manage_volunteer_module_permission": True,
    "notebook_module_permission": True,
    "reading_workshop_module_permission": True,
    "book_club_module_permission": True,
}


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진 — 테스트마다 새 인메모리 스키마."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
def volunteer_payload(email: str, name: str = "Maria Silva", **overrides) -> dict:
    """등록 폼 요청 본문 (Registration form body)."""
    payload: dict = {
        "email": email,
        "name": name,
        "birth_date": "1990-05-17",
        "phone_number": "+55 81 99999-0000",
        "country": "Brasil",
        "state": "PE",
        "city": "Recife",
        "how_found_pep": "Instagram",
        "knowledge_pep": "Pouco",
        "workshops": ["Leitura"],
        "schooling": "Superior completo",
        "studies_knowledge": "Pedagogia",
        "life_experience": "Professora",
        "desires": "Ajudar",
        "roles_pep": [],
        "interest_future_roles": ["Avaliador"],
        "need_declaration": False,
    }
    payload.update(overrides)
    return payload


async def make_volunteer(
    db: AsyncSession,
    email: str,
    name: str = "Maria Silva",
    authorization: str = "voluntario",
    created_at: datetime | None = None,
    password: str | None = None,
    city: str = "Recife",
    **fields,
) -> Volunteer:
    """자원봉사자를 직접 생성합니다 (Insert a volunteer row directly)."""
    volunteer = Volunteer(
        email=email,
        name=name,
        birth_date=date(1990, 5, 17),
        phone_number="+55 81 99999-0000",
        country="Brasil",
        state="PE",
        city=city,
        how_found_pep="Instagram",
        knowledge_pep="Pouco",
        workshops=[],
        schooling="Superior completo",
        studies_knowledge="Pedagogia",
        life_experience="Professora",
        desires="Ajudar",
        roles_pep=[],
        interest_future_roles=[],
        authorization=authorization,
        password_hash=hash_password(password) if password else None,
        created_at=created_at or datetime.now(timezone.utc),
        **fields,
    )
    db.add(volunteer)
    await db.flush()
    await db.refresh(volunteer)
    return volunteer


async def make_notebook(db: AsyncSession, pep_class: PepClass | None, **fields) -> Notebook:
    """노트북을 직접 생성합니다 — 기본값은 승인됨/미예약."""
    fields.setdefault("student_name", "Aluno Teste")
    fields.setdefault("approved", True)
    notebook = Notebook(idpep=pep_class.idpep if pep_class else None, **fields)
    db.add(notebook)
    await db.flush()
    await db.refresh(notebook)
    return notebook


@pytest_asyncio.fixture
async def authorizations(db: AsyncSession) -> dict[str, Authorization]:
    """admin(전체 권한)과 voluntario(노트북만) 프로필을 생성합니다."""
    admin = Authorization(name="admin", **ALL_PERMISSIONS)
    volunteer = Authorization(
        name="voluntario",
        **{**{k: False for k in ALL_PERMISSIONS}, "notebook_module_permission": True},
    )
    db.add_all([admin, volunteer])
    await db.flush()
    return {"admin": admin, "voluntario": volunteer}


@pytest_asyncio.fixture
async def admin_volunteer(db: AsyncSession, authorizations) -> Volunteer:
    return await make_volunteer(db, "admin@pep.org", name="Admin PEP", authorization="admin", password="admin123!")


@pytest_asyncio.fixture
async def volunteer(db: AsyncSession, authorizations) -> Volunteer:
    return await make_volunteer(db, "ana@pep.org", name="Ana Souza", password="ana12345")


@pytest_asyncio.fixture
async def other_volunteer(db: AsyncSession, authorizations) -> Volunteer:
    return await make_volunteer(db, "bruno@pep.org", name="Bruno Lima")


@pytest_asyncio.fixture
async def place(db: AsyncSession) -> Place:
    p = Place(full_name="Penitenciária Feminina")
    db.add(p)
    await db.flush()
    await db.refresh(p)
    return p


@pytest_asyncio.fixture
async def pep_class(db: AsyncSession, place: Place) -> PepClass:
    c = PepClass(place_id=place.id, notebook_directory="drive/turma-1")
    db.add(c)
    await db.flush()
    await db.refresh(c)
    return c


def make_token(volunteer: Volunteer) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({
        "sub": str(volunteer.idvol),
        "email": volunteer.email,
        "auth": volunteer.authorization,
    })


@pytest.fixture
def admin_token(admin_volunteer) -> str:
    return make_token(admin_volunteer)


@pytest.fixture
def volunteer_token(volunteer) -> str:
    return make_token(volunteer)


@pytest.fixture
def other_token(other_volunteer) -> str:
    return make_token(other_volunteer)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
