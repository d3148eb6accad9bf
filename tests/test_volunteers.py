"""자원봉사자 API 테스트 — 등록, 날짜 기준 목록, 수정, 삭제, 비밀번호, 봉사 시간.

Volunteer API tests — Registration, from-date listing with filters and
sorting, update, deletion, password and reported hours.
"""

from datetime import datetime, timezone

from httpx import AsyncClient
from sqlalchemy import func, select

from app.models import Volunteer
from app.utils.password import verify_password
from tests.conftest import auth_header, make_volunteer, volunteer_payload

VOLUNTEERS = "/api/v1/admin/volunteers"


class TestCreateVolunteer:
    """자원봉사자 등록 테스트."""

    async def test_create_volunteer(self, client: AsyncClient, authorizations):
        res = await client.post(f"{VOLUNTEERS}/", json=volunteer_payload("nova@pep.org"))
        assert res.status_code == 201
        data = res.json()
        assert data["email"] == "nova@pep.org"
        assert data["authorization"] == "voluntario"
        assert data["workshops"] == ["Leitura"]
        assert "password_hash" not in data

    async def test_duplicate_email_conflict(self, client: AsyncClient, db, volunteer):
        """중복 이메일 등록 시 409 VOLUNTEER_ALREADY_EXISTS, 행 추가 없음."""
        res = await client.post(f"{VOLUNTEERS}/", json=volunteer_payload(volunteer.email, name="Outra"))
        assert res.status_code == 409
        assert res.json()["detail"]["name"] == "VOLUNTEER_ALREADY_EXISTS"

        count = (await db.execute(
            select(func.count()).select_from(Volunteer).where(Volunteer.email == volunteer.email)
        )).scalar()
        assert count == 1

    async def test_invalid_email_rejected(self, client: AsyncClient):
        res = await client.post(f"{VOLUNTEERS}/", json=volunteer_payload("not-an-email"))
        assert res.status_code == 422


class TestVolunteersFromDate:
    """날짜 기준 자원봉사자 목록 테스트."""

    async def _seed(self, db):
        await make_volunteer(db, "old@pep.org", name="Old", created_at=datetime(2022, 12, 1, tzinfo=timezone.utc))
        for i in range(12):
            await make_volunteer(
                db,
                f"v{i:02d}@pep.org",
                name=f"Vol {i:02d}",
                city="Recife" if i % 2 == 0 else "Olinda",
                created_at=datetime(2023, 1, 1 + i, tzinfo=timezone.utc),
            )

    async def test_from_date_paginates(self, client: AsyncClient, db, admin_volunteer, admin_token):
        await self._seed(db)
        res = await client.get(
            f"{VOLUNTEERS}/from/2023-01-01",
            params={"page": 2, "limit": 5},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        body = res.json()
        # 12 seeded + the admin created now
        assert body["totalCount"] == 13
        assert body["totalPages"] == 3
        assert body["page"] == 2
        assert len(body["data"]) == 5

    async def test_default_order_newest_first(self, client: AsyncClient, db, admin_volunteer, admin_token):
        await self._seed(db)
        res = await client.get(f"{VOLUNTEERS}/from/2023-01-01", headers=auth_header(admin_token))
        emails = [v["email"] for v in res.json()["data"]]
        assert emails[0] == "admin@pep.org"
        assert emails[1] == "v11@pep.org"
        assert "old@pep.org" not in emails

    async def test_filter_and_sort(self, client: AsyncClient, db, admin_volunteer, admin_token):
        await self._seed(db)
        res = await client.get(
            f"{VOLUNTEERS}/from/2023-01-01",
            params={"city": "Olinda", "sort": "name-ASC"},
            headers=auth_header(admin_token),
        )
        body = res.json()
        assert body["totalCount"] == 6
        names = [v["name"] for v in body["data"]]
        assert names == sorted(names)
        assert all(v["city"] == "Olinda" for v in body["data"])

    async def test_repeated_sorted_page_is_stable(self, client: AsyncClient, db, admin_volunteer, admin_token):
        """비고유 컬럼 정렬 — 반복 요청 결과 동일, 페이지 간 중복 없음."""
        await self._seed(db)
        params = {"sort": "city-ASC", "limit": 5}

        first = await client.get(
            f"{VOLUNTEERS}/from/2023-01-01", params={**params, "page": 2}, headers=auth_header(admin_token),
        )
        second = await client.get(
            f"{VOLUNTEERS}/from/2023-01-01", params={**params, "page": 2}, headers=auth_header(admin_token),
        )
        assert first.status_code == 200
        assert first.json() == second.json()

        seen: list[str] = []
        for page in (1, 2, 3):
            res = await client.get(
                f"{VOLUNTEERS}/from/2023-01-01", params={**params, "page": page}, headers=auth_header(admin_token),
            )
            seen += [v["email"] for v in res.json()["data"]]
        assert len(seen) == 13
        assert len(set(seen)) == 13

    async def test_unknown_filter_ignored(self, client: AsyncClient, db, admin_volunteer, admin_token):
        await self._seed(db)
        res = await client.get(
            f"{VOLUNTEERS}/from/2023-01-01",
            params={"nonexistent": "x", "password_hash": "y"},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        assert res.json()["totalCount"] == 13

    async def test_requires_manage_permission(self, client: AsyncClient, volunteer_token):
        """voluntario 프로필은 목록 조회 불가 (403)."""
        res = await client.get(f"{VOLUNTEERS}/from/2023-01-01", headers=auth_header(volunteer_token))
        assert res.status_code == 403

    async def test_requires_token(self, client: AsyncClient):
        res = await client.get(f"{VOLUNTEERS}/from/2023-01-01")
        assert res.status_code in (401, 403)

    async def test_download_xlsx(self, client: AsyncClient, db, admin_volunteer, admin_token):
        await self._seed(db)
        res = await client.get(f"{VOLUNTEERS}/download/from/2023-01-01", headers=auth_header(admin_token))
        assert res.status_code == 200
        assert "spreadsheetml" in res.headers["content-type"]
        assert "voluntarios-2023-01-01.xlsx" in res.headers["content-disposition"]
        assert res.content[:2] == b"PK"


class TestVolunteerDetail:
    """자원봉사자 조회 테스트."""

    async def test_get_by_id(self, client: AsyncClient, volunteer, volunteer_token):
        res = await client.get(f"{VOLUNTEERS}/{volunteer.idvol}", headers=auth_header(volunteer_token))
        assert res.status_code == 200
        assert res.json()["email"] == volunteer.email

    async def test_get_by_email(self, client: AsyncClient, volunteer, volunteer_token):
        res = await client.get(f"{VOLUNTEERS}/email/{volunteer.email}", headers=auth_header(volunteer_token))
        assert res.status_code == 200
        assert res.json()["idvol"] == volunteer.idvol

    async def test_list_all(self, client: AsyncClient, volunteer, other_volunteer, admin_token):
        res = await client.get(f"{VOLUNTEERS}/", headers=auth_header(admin_token))
        assert res.status_code == 200
        assert {v["email"] for v in res.json()} == {"admin@pep.org", "ana@pep.org", "bruno@pep.org"}

    async def test_get_missing(self, client: AsyncClient, volunteer_token):
        res = await client.get(f"{VOLUNTEERS}/99999", headers=auth_header(volunteer_token))
        assert res.status_code == 404


class TestUpdateVolunteer:
    """자원봉사자 수정 테스트."""

    async def test_partial_update(self, client: AsyncClient, volunteer, admin_token):
        res = await client.put(
            f"{VOLUNTEERS}/{volunteer.email}",
            json={"city": "Caruaru"},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        data = res.json()
        assert data["city"] == "Caruaru"
        assert data["name"] == "Ana Souza"

    async def test_email_change_returns_new_record(self, client: AsyncClient, volunteer, admin_token):
        res = await client.put(
            f"{VOLUNTEERS}/{volunteer.email}",
            json={"email": "ana.nova@pep.org"},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        assert res.json()["email"] == "ana.nova@pep.org"
        assert res.json()["idvol"] == volunteer.idvol

    async def test_has_class_reenrolls(self, client: AsyncClient, db, pep_class, admin_token, authorizations):
        """has_class=true — 클래스 해제 및 등록일 갱신."""
        old = await make_volunteer(
            db, "turma@pep.org", idpep=pep_class.idpep,
            created_at=datetime(2022, 1, 1, tzinfo=timezone.utc),
        )
        res = await client.put(
            f"{VOLUNTEERS}/{old.email}",
            params={"has_class": "true"},
            json={},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        data = res.json()
        assert data["idpep"] is None
        assert data["created_at"][:4] != "2022"

    async def test_update_missing(self, client: AsyncClient, admin_token):
        res = await client.put(f"{VOLUNTEERS}/ghost@pep.org", json={"city": "X"}, headers=auth_header(admin_token))
        assert res.status_code == 404


class TestDeleteAndPassword:
    """삭제 및 비밀번호 테스트."""

    async def test_delete(self, client: AsyncClient, other_volunteer, admin_token, volunteer_token):
        res = await client.delete(f"{VOLUNTEERS}/{other_volunteer.email}", headers=auth_header(admin_token))
        assert res.status_code == 200

        res = await client.get(f"{VOLUNTEERS}/{other_volunteer.idvol}", headers=auth_header(volunteer_token))
        assert res.status_code == 404

    async def test_delete_missing(self, client: AsyncClient, admin_token):
        res = await client.delete(f"{VOLUNTEERS}/ghost@pep.org", headers=auth_header(admin_token))
        assert res.status_code == 404

    async def test_set_password_stores_hash(self, client: AsyncClient, db, other_volunteer, admin_token):
        res = await client.put(
            f"{VOLUNTEERS}/{other_volunteer.email}/password",
            json={"password": "segredo123"},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200

        stored = (await db.execute(
            select(Volunteer.password_hash).where(Volunteer.idvol == other_volunteer.idvol)
        )).scalar_one()
        assert stored != "segredo123"
        assert verify_password("segredo123", stored)

    async def test_short_password_rejected(self, client: AsyncClient, other_volunteer, admin_token):
        res = await client.put(
            f"{VOLUNTEERS}/{other_volunteer.email}/password",
            json={"password": "123"},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 422


class TestVolunteerHours:
    """봉사 시간 보고 테스트."""

    async def test_report_and_list(self, client: AsyncClient, volunteer, volunteer_token):
        res = await client.post(
            f"{VOLUNTEERS}/hours",
            json={"idvol": volunteer.idvol, "hours": 6.5, "description": "Avaliações"},
            headers=auth_header(volunteer_token),
        )
        assert res.status_code == 201
        assert res.json()["hours"] == 6.5

        res = await client.get(f"{VOLUNTEERS}/{volunteer.idvol}/hours", headers=auth_header(volunteer_token))
        assert res.status_code == 200
        assert [h["hours"] for h in res.json()] == [6.5]

    async def test_second_report_same_month_conflict(self, client: AsyncClient, volunteer, volunteer_token):
        body = {"idvol": volunteer.idvol, "hours": 2}
        first = await client.post(f"{VOLUNTEERS}/hours", json=body, headers=auth_header(volunteer_token))
        assert first.status_code == 201

        second = await client.post(f"{VOLUNTEERS}/hours", json=body, headers=auth_header(volunteer_token))
        assert second.status_code == 409
        assert second.json()["detail"]["name"] == "HOURS_ALREADY_REPORTED"

    async def test_report_unknown_volunteer(self, client: AsyncClient, volunteer_token):
        res = await client.post(
            f"{VOLUNTEERS}/hours",
            json={"idvol": 99999, "hours": 1},
            headers=auth_header(volunteer_token),
        )
        assert res.status_code == 404

    async def test_non_positive_hours_rejected(self, client: AsyncClient, volunteer, volunteer_token):
        res = await client.post(
            f"{VOLUNTEERS}/hours",
            json={"idvol": volunteer.idvol, "hours": 0},
            headers=auth_header(volunteer_token),
        )
        assert res.status_code == 422
