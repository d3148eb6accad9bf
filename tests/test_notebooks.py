"""노트북 API 테스트 — 예약/취소/평가 생명주기, 평가 목록, 성찰 추출.

Notebook API tests — Reservation lifecycle guards, evaluation listing with
the classes filter, and reflections.
"""

from datetime import datetime, timezone
from io import BytesIO
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from openpyxl import load_workbook

from app.models import PepClass, Place
from app.repositories.notebook_repository import notebook_repository
from app.utils.exceptions import NotebookError
from tests.conftest import auth_header, make_notebook

NOTEBOOKS = "/api/v1/admin/notebooks"


class TestReserveNotebook:
    """노트북 예약 테스트."""

    async def test_reserve_available(self, client: AsyncClient, db, pep_class, volunteer, volunteer_token):
        notebook = await make_notebook(db, pep_class)
        res = await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))
        assert res.status_code == 200
        data = res.json()
        assert data["idvol"] == volunteer.idvol
        assert data["reservation_date"] is not None
        assert data["notebook_directory"] == "drive/turma-1"

    async def test_second_volunteer_loses(
        self, client: AsyncClient, db, pep_class, volunteer, volunteer_token, other_token,
    ):
        """이미 예약된 노트북 — 두 번째 자원봉사자는 409, 첫 예약 유지."""
        notebook = await make_notebook(db, pep_class)
        first = await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))
        assert first.status_code == 200

        second = await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(other_token))
        assert second.status_code == 409
        assert second.json()["detail"]["name"] == "NOTEBOOK_NOT_AVAILABLE"

        current = await notebook_repository.get_notebook_by_id(db, notebook.idcad)
        assert current.idvol == volunteer.idvol
        assert current.reservation_date is not None

    async def test_guarded_update_matches_once(self, db, pep_class, volunteer, other_volunteer):
        """동일 조건의 두 UPDATE 중 하나만 행을 변경."""
        notebook = await make_notebook(db, pep_class)
        first = await notebook_repository.reserve_notebook_for_volunteer(db, notebook.idcad, volunteer.idvol)
        second = await notebook_repository.reserve_notebook_for_volunteer(db, notebook.idcad, other_volunteer.idvol)
        assert first.idvol == volunteer.idvol
        assert second.idvol == volunteer.idvol
        assert second.reservation_date == first.reservation_date

    async def test_same_volunteer_reserve_is_idempotent(self, client: AsyncClient, db, pep_class, volunteer_token):
        notebook = await make_notebook(db, pep_class)
        await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))
        again = await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))
        assert again.status_code == 200

    async def test_unapproved_not_reservable(self, client: AsyncClient, db, pep_class, volunteer_token):
        notebook = await make_notebook(db, pep_class, approved=False)
        res = await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))
        assert res.status_code == 409
        current = await notebook_repository.get_notebook_by_id(db, notebook.idcad)
        assert current.idvol is None

    async def test_evaluated_not_reservable(self, client: AsyncClient, db, pep_class, volunteer_token):
        notebook = await make_notebook(db, pep_class, evaluated_date=datetime(2023, 3, 1, tzinfo=timezone.utc))
        res = await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))
        assert res.status_code == 409

    async def test_reserve_missing(self, client: AsyncClient, volunteer_token):
        res = await client.put(f"{NOTEBOOKS}/99999/reserve", headers=auth_header(volunteer_token))
        assert res.status_code == 404


class TestRevertNotebook:
    """예약 취소 테스트."""

    async def test_revert_then_reserve_again(
        self, client: AsyncClient, db, pep_class, other_volunteer, volunteer_token, other_token,
    ):
        notebook = await make_notebook(db, pep_class)
        await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))

        res = await client.put(f"{NOTEBOOKS}/{notebook.idcad}/revert", headers=auth_header(volunteer_token))
        assert res.status_code == 200
        assert res.json()["idvol"] is None
        assert res.json()["reservation_date"] is None

        res = await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(other_token))
        assert res.status_code == 200
        assert res.json()["idvol"] == other_volunteer.idvol

    async def test_revert_unreserved_is_noop(self, client: AsyncClient, db, pep_class, volunteer_token):
        notebook = await make_notebook(db, pep_class)
        res = await client.put(f"{NOTEBOOKS}/{notebook.idcad}/revert", headers=auth_header(volunteer_token))
        assert res.status_code == 200
        assert res.json()["idvol"] is None


class TestEvaluateNotebook:
    """노트북 평가 테스트."""

    async def test_evaluate_reserved(self, client: AsyncClient, db, pep_class, volunteer_token):
        notebook = await make_notebook(db, pep_class)
        await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))

        res = await client.put(
            f"{NOTEBOOKS}/{notebook.idcad}/evaluation",
            json={"conclusion": "Aprovado", "a1": "Sim", "relevant_content": "Texto marcante"},
            headers=auth_header(volunteer_token),
        )
        assert res.status_code == 200
        data = res.json()
        assert data["conclusion"] == "Aprovado"
        assert data["a1"] == "Sim"
        assert data["evaluated_date"] is not None

    async def test_evaluate_twice_rejected(self, client: AsyncClient, db, pep_class, volunteer_token):
        """평가는 한 번만 — 두 번째 제출은 409, 첫 평가 유지."""
        notebook = await make_notebook(db, pep_class)
        await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))
        await client.put(
            f"{NOTEBOOKS}/{notebook.idcad}/evaluation",
            json={"conclusion": "Primeira"},
            headers=auth_header(volunteer_token),
        )
        res = await client.put(
            f"{NOTEBOOKS}/{notebook.idcad}/evaluation",
            json={"conclusion": "Segunda"},
            headers=auth_header(volunteer_token),
        )
        assert res.status_code == 409
        assert res.json()["detail"]["name"] == "NOTEBOOK_ALREADY_EVALUATED"

        current = await notebook_repository.get_notebook_by_id(db, notebook.idcad)
        assert current.conclusion == "Primeira"

    async def test_repository_guard_keeps_first_evaluation(self, db, pep_class, volunteer):
        notebook = await make_notebook(db, pep_class, idvol=volunteer.idvol)
        assert await notebook_repository.save_notebook_evaluation(
            db, notebook.idcad, volunteer.idvol, {"conclusion": "A"}
        )
        first = await notebook_repository.get_notebook_by_id(db, notebook.idcad)

        assert not await notebook_repository.save_notebook_evaluation(
            db, notebook.idcad, volunteer.idvol, {"conclusion": "B"}
        )
        second = await notebook_repository.get_notebook_by_id(db, notebook.idcad)
        assert second.conclusion == "A"
        assert second.evaluated_date == first.evaluated_date

    async def test_repository_guard_requires_current_holder(self, db, pep_class, volunteer, other_volunteer):
        """예약자가 바뀐 뒤 이전 예약자의 평가는 기록되지 않음."""
        notebook = await make_notebook(
            db, pep_class, idvol=other_volunteer.idvol, reservation_date=datetime.now(timezone.utc),
        )
        assert not await notebook_repository.save_notebook_evaluation(
            db, notebook.idcad, volunteer.idvol, {"conclusion": "Antigo"}
        )
        current = await notebook_repository.get_notebook_by_id(db, notebook.idcad)
        assert current.evaluated_date is None
        assert current.conclusion is None

    async def test_lost_race_reports_conflict(self, client: AsyncClient, db, pep_class, volunteer_token):
        """확인 후 다른 평가가 먼저 기록되면 409, 먼저 기록된 평가 유지."""
        notebook = await make_notebook(db, pep_class)
        await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))

        save = notebook_repository.save_notebook_evaluation

        async def winner_writes_first(db, idcad, idvol, evaluation):
            await save(db, idcad, idvol, {"conclusion": "Vencedor"})
            return await save(db, idcad, idvol, evaluation)

        with patch.object(notebook_repository, "save_notebook_evaluation", new=winner_writes_first):
            res = await client.put(
                f"{NOTEBOOKS}/{notebook.idcad}/evaluation",
                json={"conclusion": "Perdedor"},
                headers=auth_header(volunteer_token),
            )
        assert res.status_code == 409
        assert res.json()["detail"]["name"] == "NOTEBOOK_ALREADY_EVALUATED"

        current = await notebook_repository.get_notebook_by_id(db, notebook.idcad)
        assert current.conclusion == "Vencedor"

    async def test_reservation_moved_before_write(
        self, client: AsyncClient, db, pep_class, other_volunteer, volunteer_token,
    ):
        """확인 후 예약이 다른 자원봉사자에게 넘어가면 403, 평가 미기록."""
        notebook = await make_notebook(db, pep_class)
        await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))

        save = notebook_repository.save_notebook_evaluation

        async def reassigned_first(db, idcad, idvol, evaluation):
            await notebook_repository.revert_reserve_notebook_for_volunteer(db, idcad)
            await notebook_repository.reserve_notebook_for_volunteer(db, idcad, other_volunteer.idvol)
            return await save(db, idcad, idvol, evaluation)

        with patch.object(notebook_repository, "save_notebook_evaluation", new=reassigned_first):
            res = await client.put(
                f"{NOTEBOOKS}/{notebook.idcad}/evaluation",
                json={"conclusion": "Antigo"},
                headers=auth_header(volunteer_token),
            )
        assert res.status_code == 403
        assert res.json()["detail"]["name"] == "NOTEBOOK_NOT_RESERVED"

        current = await notebook_repository.get_notebook_by_id(db, notebook.idcad)
        assert current.idvol == other_volunteer.idvol
        assert current.evaluated_date is None

    async def test_evaluate_requires_reservation_holder(
        self, client: AsyncClient, db, pep_class, volunteer_token, other_token,
    ):
        notebook = await make_notebook(db, pep_class)
        await client.put(f"{NOTEBOOKS}/{notebook.idcad}/reserve", headers=auth_header(volunteer_token))
        res = await client.put(
            f"{NOTEBOOKS}/{notebook.idcad}/evaluation",
            json={"conclusion": "Intruso"},
            headers=auth_header(other_token),
        )
        assert res.status_code == 403
        assert res.json()["detail"]["name"] == "NOTEBOOK_NOT_RESERVED"

    async def test_conclusion_required(self, client: AsyncClient, db, pep_class, volunteer_token):
        notebook = await make_notebook(db, pep_class)
        res = await client.put(
            f"{NOTEBOOKS}/{notebook.idcad}/evaluation",
            json={"a1": "Sim"},
            headers=auth_header(volunteer_token),
        )
        assert res.status_code == 422


class TestVolunteerNotebookViews:
    """예약 가능/예약됨/평가 수 조회 테스트."""

    async def test_available_excludes_reserved_and_unapproved(
        self, client: AsyncClient, db, pep_class, other_volunteer, volunteer_token,
    ):
        open_nb = await make_notebook(db, pep_class)
        await make_notebook(db, pep_class, approved=False)
        await make_notebook(db, pep_class, idvol=other_volunteer.idvol, reservation_date=datetime.now(timezone.utc))
        await make_notebook(db, None)

        res = await client.get(f"{NOTEBOOKS}/available", headers=auth_header(volunteer_token))
        assert res.status_code == 200
        assert [n["idcad"] for n in res.json()] == [open_nb.idcad]

    async def test_reserved_and_evaluated_count(self, client: AsyncClient, db, pep_class, volunteer, volunteer_token):
        a = await make_notebook(db, pep_class)
        b = await make_notebook(db, pep_class)
        await client.put(f"{NOTEBOOKS}/{a.idcad}/reserve", headers=auth_header(volunteer_token))
        await client.put(f"{NOTEBOOKS}/{b.idcad}/reserve", headers=auth_header(volunteer_token))
        await client.put(
            f"{NOTEBOOKS}/{b.idcad}/evaluation",
            json={"conclusion": "Ok"},
            headers=auth_header(volunteer_token),
        )

        res = await client.get(f"{NOTEBOOKS}/reserved", headers=auth_header(volunteer_token))
        assert [n["idcad"] for n in res.json()] == [a.idcad]

        res = await client.get(f"{NOTEBOOKS}/evaluated/count", headers=auth_header(volunteer_token))
        assert res.json() == {"count": 1}

    async def test_update_notebook(self, client: AsyncClient, db, pep_class, admin_token):
        notebook = await make_notebook(db, pep_class, approved=False)
        res = await client.put(
            f"{NOTEBOOKS}/{notebook.idcad}",
            json={"approved": True, "student_registration": "12345"},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        assert res.json()["approved"] is True
        assert res.json()["student_registration"] == "12345"

    async def test_update_rejects_null_for_required_fields(self, client: AsyncClient, db, pep_class, admin_token):
        notebook = await make_notebook(db, pep_class)
        for field in ("approved", "archives_exclusion", "student_name"):
            res = await client.put(
                f"{NOTEBOOKS}/{notebook.idcad}",
                json={field: None},
                headers=auth_header(admin_token),
            )
            assert res.status_code == 422, field

        current = await notebook_repository.get_notebook_by_id(db, notebook.idcad)
        assert current.approved is True
        assert current.student_name == "Aluno Teste"

    async def test_update_clears_nullable_field(self, client: AsyncClient, db, pep_class, admin_token):
        notebook = await make_notebook(db, pep_class, student_registration="999")
        res = await client.put(
            f"{NOTEBOOKS}/{notebook.idcad}",
            json={"student_registration": None},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        assert res.json()["student_registration"] is None

    async def test_repository_update_rejected_by_storage(self, db, pep_class):
        """저장소가 거부한 값은 NOTEBOOK_NOT_UPDATED, 기존 값 유지."""
        notebook = await make_notebook(db, pep_class)
        with pytest.raises(NotebookError) as exc_info:
            await notebook_repository.update_notebook(db, notebook.idcad, {"approved": None})
        assert exc_info.value.name == "NOTEBOOK_NOT_UPDATED"

        current = await notebook_repository.get_notebook_by_id(db, notebook.idcad)
        assert current.approved is True


class TestNotebookEvaluationList:
    """평가 목록 테스트."""

    async def test_page_two_of_twenty_five(self, client: AsyncClient, db, pep_class, admin_token):
        """25건, limit=10, page=2 — 10건, totalCount 25, totalPages 3."""
        for i in range(25):
            await make_notebook(db, pep_class, student_name=f"Aluno {i:02d}")

        res = await client.get(
            f"{NOTEBOOKS}/evaluation",
            params={"page": 2, "limit": 10},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        body = res.json()
        assert len(body["data"]) == 10
        assert body["totalCount"] == 25
        assert body["totalPages"] == 3
        assert body["page"] == 2

    async def test_pages_are_disjoint_and_ordered(self, client: AsyncClient, db, pep_class, admin_token):
        for i in range(12):
            await make_notebook(db, pep_class, student_name=f"Aluno {i:02d}")

        seen: list[int] = []
        for page in (1, 2, 3):
            res = await client.get(
                f"{NOTEBOOKS}/evaluation",
                params={"page": page, "limit": 5},
                headers=auth_header(admin_token),
            )
            seen += [n["idcad"] for n in res.json()["data"]]
        assert len(seen) == 12
        assert len(set(seen)) == 12
        assert seen == sorted(seen, reverse=True)

    async def test_classes_filter_and_flattened_names(
        self, client: AsyncClient, db, pep_class, volunteer, admin_token,
    ):
        other_place = Place(full_name="Unidade Prisional Norte")
        db.add(other_place)
        await db.flush()
        other_class = PepClass(place_id=other_place.id, notebook_directory="drive/turma-2")
        db.add(other_class)
        await db.flush()

        for _ in range(3):
            await make_notebook(db, pep_class, idvol=volunteer.idvol)
        for _ in range(2):
            await make_notebook(db, other_class)

        res = await client.get(
            f"{NOTEBOOKS}/evaluation",
            params=[("classes", str(pep_class.idpep))],
            headers=auth_header(admin_token),
        )
        body = res.json()
        assert body["totalCount"] == 3
        row = body["data"][0]
        assert row["volunteer_name"] == "Ana Souza"
        assert row["place_name"] == "Penitenciária Feminina"

        res = await client.get(
            f"{NOTEBOOKS}/evaluation",
            params=[("classes", str(pep_class.idpep)), ("classes", str(other_class.idpep))],
            headers=auth_header(admin_token),
        )
        assert res.json()["totalCount"] == 5

    async def test_repeated_query_is_stable(self, client: AsyncClient, db, pep_class, volunteer, admin_token):
        """쓰기 없이 같은 요청을 반복하면 같은 결과."""
        for i in range(15):
            await make_notebook(db, pep_class, idvol=volunteer.idvol if i % 2 else None, conclusion="Ok")

        params = [("classes", str(pep_class.idpep)), ("sort", "conclusion-ASC"), ("page", "2"), ("limit", "6")]
        first = await client.get(f"{NOTEBOOKS}/evaluation", params=params, headers=auth_header(admin_token))
        second = await client.get(f"{NOTEBOOKS}/evaluation", params=params, headers=auth_header(admin_token))
        assert first.status_code == 200
        assert first.json() == second.json()
        assert first.json()["totalCount"] == 15

    async def test_page_past_end(self, client: AsyncClient, db, pep_class, admin_token):
        for _ in range(3):
            await make_notebook(db, pep_class)
        res = await client.get(
            f"{NOTEBOOKS}/evaluation",
            params={"page": 5, "limit": 10},
            headers=auth_header(admin_token),
        )
        body = res.json()
        assert body["data"] == []
        assert body["totalCount"] == 3
        assert body["totalPages"] == 1

    async def test_download(self, client: AsyncClient, db, pep_class, admin_token):
        await make_notebook(db, pep_class)
        res = await client.get(f"{NOTEBOOKS}/evaluation/download", headers=auth_header(admin_token))
        assert res.status_code == 200
        assert "avaliacoes.xlsx" in res.headers["content-disposition"]
        assert "spreadsheetml" in res.headers["content-type"]

        sheet = load_workbook(BytesIO(res.content)).active
        assert sheet.title == "Avaliacoes"
        assert [c.value for c in sheet[1]][:3] == ["ID", "Aluno", "Matrícula"]
        assert sheet.cell(row=2, column=2).value == "Aluno Teste"


class TestReflections:
    """성찰 추출 테스트."""

    async def test_reflections_after_date(self, client: AsyncClient, db, pep_class, volunteer_token):
        await make_notebook(
            db, pep_class, relevant_content="Novo",
            evaluated_date=datetime(2023, 6, 10, tzinfo=timezone.utc),
        )
        await make_notebook(
            db, pep_class, relevant_content="Antigo",
            evaluated_date=datetime(2023, 1, 10, tzinfo=timezone.utc),
        )
        await make_notebook(db, pep_class, relevant_content="", evaluated_date=datetime(2023, 7, 1, tzinfo=timezone.utc))

        res = await client.get(f"{NOTEBOOKS}/reflections/2023-05-01", headers=auth_header(volunteer_token))
        assert res.status_code == 200
        assert [r["relevant_content"] for r in res.json()] == ["Novo"]


class TestNotebookPermissions:
    async def test_profile_without_notebook_permission(self, client: AsyncClient, db, authorizations, volunteer_token):
        authorizations["voluntario"].notebook_module_permission = False
        await db.flush()
        res = await client.get(f"{NOTEBOOKS}/available", headers=auth_header(volunteer_token))
        assert res.status_code == 403
