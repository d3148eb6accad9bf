"""초기 데이터 시드 스크립트 — 테이블 및 기본 권한 프로필 생성.

Seed script — Creates tables and the default authorization profiles.

Usage:
    python -m app.seed

Creates:
    - admin: 모든 모듈 권한 (Every module permission)
    - voluntario: 노트북 평가 모듈만 (Notebook evaluation module only),
      the profile new volunteers receive on registration
"""

import asyncio

from sqlalchemy import select

from app.database import async_session, engine, Base
from app.models import Authorization

DEFAULT_PROFILES: dict[str, dict[str, bool]] = {
    "admin": {
        "attendance_module_permission": True,
        "manage_volunteer_module_permission": True,
        "notebook_module_permission": True,
        "reading_workshop_module_permission": True,
        "book_club_module_permission": True,
    },
    "voluntario": {
        "attendance_module_permission": False,
        "manage_volunteer_module_permission": False,
        "notebook_module_permission": True,
        "reading_workshop_module_permission": False,
        "book_club_module_permission": False,
    },
}


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Idempotent: 이미 존재하는 프로필은 건너뜁니다 (Existing profiles are left untouched).
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        result = await db.execute(select(Authorization.name))
        existing: set[str] = set(result.scalars().all())

        created: list[str] = []
        for name, flags in DEFAULT_PROFILES.items():
            if name in existing:
                continue
            db.add(Authorization(name=name, **flags))
            created.append(name)

        await db.commit()

    if created:
        print(f"Created authorization profiles: {', '.join(created)}")
    else:
        print("Already seeded. Skipping.")


if __name__ == "__main__":
    asyncio.run(seed())
