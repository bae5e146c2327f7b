from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import cast

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from habit_tool.excel_writer import ExcelLayout, _format_sheet, write_metric_report
from habit_tool.model import Habit, MetricConfig, MetricEntry
from habit_tool.views import build_growth_view


def _habit(*entries: MetricEntry) -> Habit:
    return Habit(
        id=1,
        identity="I am a runner",
        action_name="runs",
        created_at=date(2025, 12, 1),
        metric_entries=entries,
        metric_config=MetricConfig("Mile time", "min"),
    )


def test_write_metric_report_happy_path_and_formatting(tmp_path: Path) -> None:
    """Una fila por medición, de la más antigua a la más reciente."""
    habit = _habit(
        MetricEntry(date(2025, 12, 16), 9.5, notes="windy", conditions="cold"),
        MetricEntry(date(2025, 12, 15), 10.0),
    )
    view = build_growth_view(habit, date(2025, 12, 31))
    out = tmp_path / "nested" / "out.xlsx"
    write_metric_report(view, out, ExcelLayout())

    wb = load_workbook(out)
    ws = cast(Worksheet, wb[ExcelLayout().entries_sheet])
    headers = [cell.value for cell in ws[1]]
    assert headers == ["Día", "Fecha", "Valor", "Condiciones", "Notas"]

    assert ws.cell(row=2, column=1).value == "lun"
    assert ws.cell(row=2, column=3).value == 10.0
    assert ws.cell(row=3, column=4).value == "cold"
    assert ws.cell(row=3, column=5).value == "windy"

    assert ws.column_dimensions["A"].width == 6
    valor_letter = get_column_letter(headers.index("Valor") + 1)
    assert ws.column_dimensions[valor_letter].width == 10
    assert ws.cell(row=2, column=3).number_format == "0.0"
    assert ws.cell(row=2, column=2).number_format == "dd/mm/yyyy"

    proj = cast(Worksheet, wb[ExcelLayout().projection_sheet])
    assert [cell.value for cell in proj[1]] == ["Horizonte (días)", "Valor proyectado"]
    assert [proj.cell(row=r, column=1).value for r in (2, 3)] == [30, 90]
    assert proj.cell(row=2, column=2).number_format == "0.00"


def test_write_metric_report_without_entries_writes_headers(tmp_path: Path) -> None:
    view = build_growth_view(_habit(), date(2025, 12, 31))
    out = tmp_path / "empty.xlsx"
    write_metric_report(view, out, ExcelLayout())

    wb = load_workbook(out)
    ws = wb[ExcelLayout().entries_sheet]
    assert [cell.value for cell in ws[1]] == [
        "Día",
        "Fecha",
        "Valor",
        "Condiciones",
        "Notas",
    ]
    assert ws.max_row == 1
    assert wb[ExcelLayout().projection_sheet].max_row == 1


def test_format_sheet_handles_missing_headers() -> None:
    wb = Workbook()
    ws = cast(Worksheet, wb.active)
    ws.append(["Solo"])
    ws.append([1])

    _format_sheet(ws)

    assert ws.cell(row=1, column=1).font.bold is True
    assert ws.cell(row=2, column=1).alignment.horizontal == "center"
