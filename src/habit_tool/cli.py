"""CLI para registrar hábitos y métricas y ver calendario / crecimiento."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from datetime import date, datetime
from pathlib import Path

from dateutil import tz

from habit_tool.analytics import current_streak
from habit_tool.calendar_grid import CalendarMonth, WeekStart, month_of
from habit_tool.excel_writer import ExcelLayout, write_metric_report
from habit_tool.forms import CheckInForm, HabitForm, MetricEntryForm
from habit_tool.model import MetricConfig, MetricGoalDirection, TrackingFrequency
from habit_tool.storage import SQLiteStore, default_db_path
from habit_tool.views import (
    build_calendar_view,
    build_growth_view,
    build_overview_view,
    render_calendar,
    render_growth,
    render_overview,
)

logger = logging.getLogger(__name__)

_LOCAL_TZ = tz.tzlocal()


def _iso_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError:
        msg = f"Fecha invalida (YYYY-MM-DD): {raw}"
        raise argparse.ArgumentTypeError(msg) from None


def _year_month(raw: str) -> CalendarMonth:
    try:
        parsed = datetime.strptime(raw, "%Y-%m")
    except ValueError:
        raise argparse.ArgumentTypeError(f"Mes invalido (YYYY-MM): {raw}") from None
    return CalendarMonth(parsed.year, parsed.month)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Hábitos: check-ins, calendario y proyección de métricas."
    )
    parser.add_argument(
        "--db",
        default=None,
        help="Archivo SQLite (default: ./habit_tool.sqlite3, el mismo que la app).",
    )
    parser.add_argument(
        "--today",
        type=_iso_date,
        default=None,
        help="Fecha de referencia YYYY-MM-DD (default: hoy).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug.")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add-habit", help="Crear un hábito.")
    add.add_argument("--identity", required=True)
    add.add_argument("--action", required=True)
    add.add_argument("--color", default="#007AFF")
    add.add_argument("--icon", default="star.fill")

    sub.add_parser("list", help="Listar hábitos con su racha actual.")

    check = sub.add_parser("check-in", help="Registrar el hábito como hecho.")
    check.add_argument("habit_id", type=int)
    check.add_argument("--date", type=_iso_date, default=None)
    check.add_argument("--notes", default="")
    check.add_argument("--satisfaction", default="")

    log_metric = sub.add_parser("log-metric", help="Registrar una medición.")
    log_metric.add_argument("habit_id", type=int)
    log_metric.add_argument("value")
    log_metric.add_argument("--date", type=_iso_date, default=None)
    log_metric.add_argument("--notes", default="")
    log_metric.add_argument("--conditions", default="")

    set_metric = sub.add_parser("set-metric", help="Configurar la métrica.")
    set_metric.add_argument("habit_id", type=int)
    set_metric.add_argument("--name", required=True)
    set_metric.add_argument("--unit", required=True)
    set_metric.add_argument("--lower-is-better", action="store_true")
    set_metric.add_argument("--every", type=int, default=1)
    set_metric.add_argument("--weeks", action="store_true")
    set_metric.add_argument("--target", type=float, default=None)

    cal = sub.add_parser("calendar", help="Mostrar el calendario mensual.")
    cal.add_argument("habit_id", type=int)
    cal.add_argument("--month", type=_year_month, default=None)
    cal.add_argument("--select", type=_iso_date, default=None)
    cal.add_argument("--week-start", choices=["sunday", "monday"], default=None)

    overview = sub.add_parser("overview", help="Calendario de todos los hábitos.")
    overview.add_argument("--month", type=_year_month, default=None)
    overview.add_argument(
        "--week-start", choices=["sunday", "monday"], default=None
    )

    growth = sub.add_parser("growth", help="Mostrar la proyección de la métrica.")
    growth.add_argument("habit_id", type=int)

    export = sub.add_parser("export", help="Exportar mediciones a Excel.")
    export.add_argument("habit_id", type=int)
    export.add_argument("--out-dir", default=None)

    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success, 2 on invalid input).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    store = SQLiteStore(Path(ns.db).expanduser() if ns.db else default_db_path())
    today = ns.today or datetime.now(tz=_LOCAL_TZ).date()
    try:
        return _run(ns, store, today)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except KeyError as exc:
        print(f"Error: habito inexistente {exc}", file=sys.stderr)
        return 2


def _run(ns: argparse.Namespace, store: SQLiteStore, today: date) -> int:
    command = ns.command
    if command == "add-habit":
        fields = HabitForm(ns.identity, ns.action, ns.color, ns.icon).cleaned()
        habit_id = store.save_habit(created_at=today, **fields)
        print(f"OK: habit {habit_id}")
    elif command == "list":
        for habit in store.load_habits():
            line = f"{habit.id}\t{habit.action_name}\t{habit.identity}"
            streak = current_streak(habit.logs, today)
            if streak:
                line += f"\t{streak} day streak"
            print(line)
    elif command == "check-in":
        log = CheckInForm(ns.notes, ns.satisfaction).to_log(ns.date or today)
        if store.add_log(ns.habit_id, log):
            print(f"OK: {log.day.isoformat()} completed")
        else:
            print(f"Sin cambios: {log.day.isoformat()} ya estaba registrado")
    elif command == "log-metric":
        form = MetricEntryForm(ns.value, ns.notes, ns.conditions)
        entry = form.to_entry(ns.date or today)
        store.add_metric_entry(ns.habit_id, entry)
        print(f"OK: {entry.value} on {entry.day.isoformat()}")
    elif command == "set-metric":
        config = MetricConfig(
            name=ns.name,
            unit=ns.unit,
            goal_direction=(
                MetricGoalDirection.LOWER
                if ns.lower_is_better
                else MetricGoalDirection.HIGHER
            ),
            tracking_frequency=TrackingFrequency(
                "weeks" if ns.weeks else "days", ns.every
            ),
            target_value=ns.target,
        )
        store.set_metric_config(ns.habit_id, config)
        print(f"OK: metric {config.name} ({config.tracking_frequency.display_text})")
    elif command == "calendar":
        week_start = WeekStart.parse(ns.week_start or store.load_config().week_start)
        habit = store.load_habit(ns.habit_id)
        view = build_calendar_view(
            habit,
            ns.month or month_of(today),
            today,
            week_start=week_start,
            selected=ns.select,
        )
        print(render_calendar(view))
    elif command == "overview":
        week_start = WeekStart.parse(ns.week_start or store.load_config().week_start)
        view = build_overview_view(
            store.load_habits(), ns.month or month_of(today), today, week_start
        )
        print(render_overview(view))
    elif command == "growth":
        habit = store.load_habit(ns.habit_id)
        print(render_growth(build_growth_view(habit, today)))
    elif command == "export":
        habit = store.load_habit(ns.habit_id)
        config = store.load_config()
        out_dir = Path(ns.out_dir or config.export_dir or Path.cwd() / "salidas")
        ts = datetime.now(tz=_LOCAL_TZ).strftime("%Y-%m-%d_%H-%M-%S")
        out_path = out_dir.expanduser() / f"habito_{habit.id}_{ts}.xlsx"
        write_metric_report(build_growth_view(habit, today), out_path, ExcelLayout())
        print(f"OK: Output: {out_path}")
    return 0
