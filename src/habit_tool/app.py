"""App Kivy: calendario del hábito, proyección de la métrica y check-in."""

from __future__ import annotations

import traceback
from datetime import date, datetime
from pathlib import Path

from dateutil import tz

from habit_tool.calendar_grid import (
    CalendarMonth,
    DayState,
    WeekStart,
    month_of,
    shift_month,
)
from habit_tool.excel_writer import ExcelLayout, write_metric_report
from habit_tool.forms import CheckInForm
from habit_tool.model import Habit
from habit_tool.storage import SQLiteStore, default_db_path
from habit_tool.views import (
    CalendarView,
    DayCellView,
    build_calendar_view,
    build_growth_view,
    render_growth,
)

_LOCAL_TZ = tz.tzlocal()

# RGBA de las celdas según estado.
_FUTURE_RGBA = (0.95, 0.95, 0.97, 1)
_MISSED_RGBA = (0.9, 0.9, 0.92, 1)

NO_RATING = "Sin valorar"
SATISFACTION_CHOICES: tuple[str, ...] = (NO_RATING, "1", "2", "3", "4", "5")


def hex_to_rgba(color: str, alpha: float = 1.0) -> tuple[float, float, float, float]:
    """Convert ``#RRGGBB`` to a Kivy RGBA tuple."""
    raw = color.lstrip("#")
    if len(raw) != 6:
        raise ValueError(f"Color must be #RRGGBB: {color!r}")
    r, g, b = (int(raw[i : i + 2], 16) / 255 for i in (0, 2, 4))
    return (r, g, b, alpha)


def cell_rgba(cell: DayCellView, habit_color: str) -> tuple[float, float, float, float]:
    """Background colour of a day cell."""
    if cell.state is DayState.FUTURE:
        return _FUTURE_RGBA
    if cell.state is DayState.COMPLETED:
        return hex_to_rgba(habit_color)
    return _MISSED_RGBA


def check_in_form(notes: str, rating: str) -> CheckInForm:
    """Check-in form from the notes box and the satisfaction spinner."""
    return CheckInForm(notes=notes, satisfaction="" if rating == NO_RATING else rating)


def run_app() -> int:
    """Lanza la app Kivy."""
    from kivy.app import App
    from kivy.core.window import Window
    from kivy.uix.boxlayout import BoxLayout
    from kivy.uix.button import Button
    from kivy.uix.gridlayout import GridLayout
    from kivy.uix.label import Label
    from kivy.uix.spinner import Spinner
    from kivy.uix.textinput import TextInput
    from kivy.uix.widget import Widget

    class HabitToolApp(App):
        """Main Kivy app."""

        def __init__(self, **kwargs: object) -> None:
            super().__init__(**kwargs)
            self.store = SQLiteStore(default_db_path())
            self.app_config = self.store.load_config()
            self.week_start = WeekStart.parse(self.app_config.week_start)
            self.habit: Habit | None = None
            self.month: CalendarMonth = month_of(self._today())
            self.selected: date | None = None
            self.grid: GridLayout | None = None
            self.title_label: Label | None = None
            self.next_btn: Button | None = None
            self.preview: TextInput | None = None
            self.notes_input: TextInput | None = None
            self.rating: Spinner | None = None
            self.status: Label | None = None

        def _today(self) -> date:
            return datetime.now(tz=_LOCAL_TZ).date()

        def build(self) -> BoxLayout:
            Window.bind(on_key_down=self._on_key_down)

            root = BoxLayout(orientation="vertical", spacing=8, padding=10)

            habits = self.store.list_habits()
            names = [f"{hid}: {action}" for hid, _identity, action in habits]
            spinner = Spinner(
                text=names[0] if names else "Sin hábitos",
                values=names,
                size_hint_y=None,
                height=40,
            )
            spinner.bind(text=self._on_habit_selected)
            root.add_widget(spinner)

            picker = BoxLayout(orientation="horizontal", size_hint_y=None, height=40)
            prev_btn = Button(text="<", size_hint_x=0.15)
            self.next_btn = Button(text=">", size_hint_x=0.15)
            self.title_label = Label(text=self.month.title)
            prev_btn.bind(on_press=lambda *_args: self._move_month(-1))
            self.next_btn.bind(on_press=lambda *_args: self._move_month(1))
            picker.add_widget(prev_btn)
            picker.add_widget(self.title_label)
            picker.add_widget(self.next_btn)
            root.add_widget(picker)

            self.grid = GridLayout(cols=7, spacing=4, size_hint_y=None, height=280)
            root.add_widget(self.grid)

            check_in = BoxLayout(
                orientation="horizontal",
                spacing=8,
                size_hint_y=None,
                height=40,
            )
            self.notes_input = TextInput(
                hint_text="Notas del check-in", multiline=False, size_hint_x=0.7
            )
            self.rating = Spinner(
                text=NO_RATING, values=list(SATISFACTION_CHOICES), size_hint_x=0.3
            )
            check_in.add_widget(self.notes_input)
            check_in.add_widget(self.rating)
            root.add_widget(check_in)

            actions = BoxLayout(
                orientation="horizontal",
                spacing=8,
                size_hint_y=None,
                height=40,
            )
            check_btn = Button(text="Registrar check-in")
            export_btn = Button(text="Exportar Excel")
            exit_btn = Button(text="Salir")
            check_btn.bind(on_press=self._on_check_in)
            export_btn.bind(on_press=self._on_export)
            exit_btn.bind(on_press=lambda *_args: self.stop())
            actions.add_widget(check_btn)
            actions.add_widget(export_btn)
            actions.add_widget(exit_btn)
            root.add_widget(actions)

            self.status = Label(text="", size_hint_y=None, height=30)
            root.add_widget(self.status)

            self.preview = TextInput(readonly=True, text="", multiline=True)
            root.add_widget(self.preview)

            if habits:
                self._load_habit(habits[0][0])
            return root

        def _on_key_down(
            self,
            _window: object,
            keycode: int,
            _scancode: int,
            _text: str,
            _modifiers: list[str],
        ) -> bool:
            # Esc: salir de fullscreen o cerrar app.
            if keycode != 27:
                return False
            if Window.fullscreen:
                Window.fullscreen = False
            else:
                self.stop()
            return True

        def _on_habit_selected(self, _spinner: object, text: str) -> None:
            habit_id = int(text.split(":", 1)[0])
            self.selected = None
            self._load_habit(habit_id)

        def _load_habit(self, habit_id: int) -> None:
            try:
                self.habit = self.store.load_habit(habit_id)
            except KeyError as exc:
                self._show_error("cargar", exc)
                return
            self._refresh()

        def _move_month(self, delta: int) -> None:
            self.month = shift_month(self.month, delta)
            self.selected = None
            self._refresh()

        def _on_day_pressed(self, day: date) -> None:
            self.selected = day
            self._refresh()

        def _refresh(self) -> None:
            if self.habit is None:
                return
            today = self._today()
            view = build_calendar_view(
                self.habit,
                self.month,
                today,
                week_start=self.week_start,
                selected=self.selected,
            )
            self._draw_calendar(view)
            if self.preview is not None:
                text = render_growth(build_growth_view(self.habit, today))
                if view.selected is not None:
                    done = "Completed" if view.selected.completed else "Not completed"
                    text = f"{view.selected.day.isoformat()}: {done}\n\n{text}"
                self.preview.text = text

        def _draw_calendar(self, view: CalendarView) -> None:
            if self.grid is None:
                return
            if self.title_label is not None:
                self.title_label.text = view.title
            if self.next_btn is not None:
                self.next_btn.disabled = not view.can_go_next
            self.grid.clear_widgets()
            for header in view.weekday_headers:
                self.grid.add_widget(Label(text=header))
            for row in view.rows:
                for cell in row:
                    if cell is None:
                        self.grid.add_widget(Widget())
                        continue
                    btn = Button(
                        text=cell.label,
                        bold=cell.is_today,
                        background_normal="",
                        background_color=cell_rgba(cell, view.color),
                        color=(0, 0, 0, 1)
                        if cell.state is not DayState.COMPLETED
                        else (1, 1, 1, 1),
                    )
                    btn.bind(on_press=lambda _b, d=cell.day: self._on_day_pressed(d))
                    self.grid.add_widget(btn)

        def _on_check_in(self, _: object) -> None:
            if self.habit is None:
                return
            day = self.selected or self._today()
            notes = self.notes_input.text if self.notes_input is not None else ""
            rating = self.rating.text if self.rating is not None else NO_RATING
            try:
                log = check_in_form(notes, rating).to_log(day)
                added = self.store.add_log(self.habit.id, log)
            except Exception as exc:
                self._show_error("registrar", exc)
                return
            if self.notes_input is not None:
                self.notes_input.text = ""
            if self.rating is not None:
                self.rating.text = NO_RATING
            if self.status is not None:
                self.status.text = (
                    f"Check-in {day.isoformat()} guardado."
                    if added
                    else f"Sin cambios: {day.isoformat()} ya estaba registrado."
                )
            self._load_habit(self.habit.id)

        def _on_export(self, _: object) -> None:
            if self.habit is None:
                return
            out_dir = (
                Path(self.app_config.export_dir).expanduser()
                if self.app_config.export_dir
                else Path.cwd() / "salidas"
            )
            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            out_path = out_dir / f"habito_{self.habit.id}_{timestamp}.xlsx"
            try:
                view = build_growth_view(self.habit, self._today())
                write_metric_report(view, out_path, ExcelLayout())
            except Exception as exc:
                self._show_error("exportar", exc)
                return
            if self.status is not None:
                self.status.text = f"Excel generado: {out_path}"

        def _show_error(self, action: str, exc: Exception) -> None:
            error_type = type(exc).__name__
            if self.status is not None:
                self.status.text = f"Error al {action} ({error_type}): {exc}"
            if self.preview is not None:
                self.preview.text = traceback.format_exc()

    HabitToolApp().run()
    return 0
