"""내보내기 서비스 — 다운로드용 Excel 워크북 생성.

Export Service — Builds the ``.xlsx`` workbooks streamed by the download
endpoints. Each export is a single sheet with a styled header row and fixed
column widths.
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime
from io import BytesIO
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from app.schemas.attendance import AttendanceInfoResponse, VolunteerAttendanceMetrics
from app.schemas.notebook import NotebookEvaluationRow
from app.schemas.volunteer import VolunteerResponse

XLSX_MEDIA_TYPE: str = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (헤더, 너비, 값 추출 함수) — (header, column width, value getter)
Column = tuple[str, int, Callable[[Any], Any]]


def _cell(value: Any) -> Any:
    """셀 값 정규화 — 목록은 쉼표로, 시간대 정보는 제거 (Excel has no tz-aware datetimes)."""
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, bool):
        return "Sim" if value else "Não"
    return value


VOLUNTEER_COLUMNS: list[Column] = [
    ("ID", 8, lambda v: v.idvol),
    ("Nome", 28, lambda v: v.name),
    ("E-mail", 30, lambda v: v.email),
    ("Telefone", 16, lambda v: v.phone_number),
    ("Nascimento", 14, lambda v: v.birth_date),
    ("País", 14, lambda v: v.country),
    ("Estado", 14, lambda v: v.state),
    ("Cidade", 18, lambda v: v.city),
    ("Escolaridade", 20, lambda v: v.schooling),
    ("Como conheceu", 22, lambda v: v.how_found_pep),
    ("Oficinas", 30, lambda v: v.workshops),
    ("Funções", 24, lambda v: v.roles_pep),
    ("Declaração", 12, lambda v: v.need_declaration),
    ("Turma", 8, lambda v: v.idpep),
    ("Cadastro", 20, lambda v: v.created_at),
]

ATTENDANCE_COLUMNS: list[Column] = [
    ("Nome", 28, lambda a: a.volunteer_name),
    ("E-mail", 30, lambda a: a.volunteer_email),
    ("Oficina", 30, lambda a: a.workshop_name),
    ("Data", 14, lambda a: a.workshop_date),
    ("Presente", 10, lambda a: a.attended),
    ("Comentários", 40, lambda a: a.comments),
    ("Enviado em", 20, lambda a: a.created_at),
]

METRICS_COLUMNS: list[Column] = [
    ("ID", 8, lambda m: m.idvol),
    ("Nome", 28, lambda m: m.name),
    ("E-mail", 30, lambda m: m.email),
    ("Presenças", 12, lambda m: m.attendance_count),
    ("Cadernos avaliados", 18, lambda m: m.evaluated_notebook_count),
    ("Horas", 10, lambda m: m.total_hours),
]

EVALUATION_COLUMNS: list[Column] = [
    ("ID", 8, lambda n: n.idcad),
    ("Aluno", 28, lambda n: n.student_name),
    ("Matrícula", 14, lambda n: n.student_registration),
    ("Unidade", 24, lambda n: n.student_prison_unit),
    ("Local", 24, lambda n: n.place_name),
    ("Voluntário", 28, lambda n: n.volunteer_name),
    ("Avaliador", 28, lambda n: n.evaluator_name),
    ("Aprovado", 10, lambda n: n.approved),
    ("Reservado em", 20, lambda n: n.reservation_date),
    ("Avaliado em", 20, lambda n: n.evaluated_date),
    ("Conclusão", 40, lambda n: n.conclusion),
]


class ExportService:
    """Excel 내보내기 서비스.

    Turns already-fetched rows into workbook bytes. Holds no database access.
    """

    def build_workbook(
        self,
        title: str,
        columns: Sequence[Column],
        rows: Iterable[Any],
    ) -> bytes:
        """단일 시트 워크북을 생성합니다.

        Build a one-sheet workbook.

        Args:
            title: 시트 제목 (Sheet title, at most 31 characters)
            columns: (헤더, 너비, 값 추출 함수) 목록 (Column definitions)
            rows: 행 객체 목록 (Row objects passed to each value getter)

        Returns:
            bytes: xlsx 파일 내용 (Workbook file content)
        """
        wb = Workbook()
        ws = wb.active
        ws.title = title[:31]

        header_font = Font(bold=True, color="FFFFFF", size=11)
        header_fill = PatternFill(start_color="2D3436", end_color="2D3436", fill_type="solid")
        for col_idx, (header, width, _) in enumerate(columns, 1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")
            ws.column_dimensions[cell.column_letter].width = width

        for row in rows:
            ws.append([_cell(getter(row)) for _, _, getter in columns])

        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    def volunteers(self, rows: Sequence[VolunteerResponse]) -> bytes:
        return self.build_workbook("Voluntarios", VOLUNTEER_COLUMNS, rows)

    def attendances(self, rows: Sequence[AttendanceInfoResponse]) -> bytes:
        return self.build_workbook("Presencas", ATTENDANCE_COLUMNS, rows)

    def metrics(self, rows: Sequence[VolunteerAttendanceMetrics]) -> bytes:
        return self.build_workbook("Metricas", METRICS_COLUMNS, rows)

    def evaluations(self, rows: Sequence[NotebookEvaluationRow]) -> bytes:
        return self.build_workbook("Avaliacoes", EVALUATION_COLUMNS, rows)


def attachment_filename(prefix: str, day: date | None = None) -> str:
    """다운로드 파일 이름 (e.g. ``presenca-2023-09-12.xlsx``)."""
    return f"{prefix}-{day.isoformat()}.xlsx" if day else f"{prefix}.xlsx"


export_service: ExportService = ExportService()
