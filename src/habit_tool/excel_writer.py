"""Generación de Excel con las mediciones de un hábito y su proyección."""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

from habit_tool.analytics import entries_frame
from habit_tool.views import GrowthView

_DIA_SEMANA: tuple[str, ...] = ("lun", "mar", "mie", "jue", "vie", "sab", "dom")

_HEADER_MAP: dict[str, str] = {
    "weekday": "Día",
    "date": "Fecha",
    "value": "Valor",
    "conditions": "Condiciones",
    "notes": "Notas",
}

_PROJECTION_COLUMNS = ["Horizonte (días)", "Valor proyectado"]


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the report workbook."""

    entries_sheet: str = "Mediciones"
    projection_sheet: str = "Proyeccion"


def _weekday_label(i: object) -> str:
    """Convierte índice 0-6 (lunes-domingo) a etiqueta de 3 letras."""
    if i is None or (isinstance(i, float) and pd.isna(i)):
        return ""
    if isinstance(i, numbers.Real):
        idx = int(i)
        return _DIA_SEMANA[idx] if 0 <= idx < 7 else ""
    return ""


def _entries_export_frame(view: GrowthView) -> pd.DataFrame:
    """Entries oldest first with a leading Día column and Spanish headers."""
    df = entries_frame(view.entries)
    if not df.empty:
        weekdays = pd.to_datetime(df["date"]).dt.weekday
        df.insert(0, "weekday", weekdays.map(_weekday_label))
    else:
        df.insert(0, "weekday", pd.Series(dtype=object))
    return df.rename(columns=_HEADER_MAP)


def _projection_export_frame(view: GrowthView) -> pd.DataFrame:
    if view.projection is None:
        return pd.DataFrame(columns=_PROJECTION_COLUMNS)
    rows = [
        {_PROJECTION_COLUMNS[0]: h, _PROJECTION_COLUMNS[1]: round(v, 2)}
        for h, v in view.projection.values.items()
    ]
    return pd.DataFrame(rows, columns=_PROJECTION_COLUMNS)


def write_metric_report(view: GrowthView, out_path: Path, layout: ExcelLayout) -> None:
    """Write the measurements (and projection, if any) to an XLSX file.

    Args:
        view: Growth view of the habit to export.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)
    entries_df = _entries_export_frame(view)
    projection_df = _projection_export_frame(view)

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        entries_df.to_excel(writer, index=False, sheet_name=layout.entries_sheet)
        _format_sheet(writer.book[layout.entries_sheet])
        projection_df.to_excel(
            writer, index=False, sheet_name=layout.projection_sheet
        )
        _format_sheet(writer.book[layout.projection_sheet])


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    widths = [
        ("Día", 6),
        ("Fecha", 12),
        ("Valor", 10),
        ("Condiciones", 24),
        ("Notas", 32),
        ("Horizonte (días)", 16),
        ("Valor proyectado", 16),
    ]
    for header, width in widths:
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    """Aplica formatos numéricos por cabecera."""
    fmt_map: dict[str, str] = {
        "Fecha": "dd/mm/yyyy",
        "Valor": "0.0",
        "Horizonte (días)": "0",
        "Valor proyectado": "0.00",
    }
    for row in ws.iter_rows(min_row=2):
        for header, fmt in fmt_map.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)
