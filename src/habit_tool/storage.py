"""Persistencia SQLite para configuracion, hábitos, check-ins y métricas."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

from habit_tool.model import Habit, HabitLog, MetricConfig, MetricEntry

logger = logging.getLogger(__name__)

DB_FILENAME = "habit_tool.sqlite3"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS habits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    identity TEXT NOT NULL,
    action_name TEXT NOT NULL,
    created_at TEXT NOT NULL,
    color TEXT NOT NULL,
    icon TEXT NOT NULL,
    metric_config TEXT
);

CREATE TABLE IF NOT EXISTS habit_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    habit_id INTEGER NOT NULL,
    day TEXT NOT NULL,
    completed_at TEXT NOT NULL,
    notes TEXT,
    satisfaction INTEGER,
    FOREIGN KEY(habit_id) REFERENCES habits(id)
);

CREATE TABLE IF NOT EXISTS metric_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    habit_id INTEGER NOT NULL,
    day TEXT NOT NULL,
    value REAL NOT NULL,
    notes TEXT,
    conditions TEXT,
    FOREIGN KEY(habit_id) REFERENCES habits(id)
);

CREATE INDEX IF NOT EXISTS idx_metric_entries_habit
ON metric_entries(habit_id, day);
"""


def default_db_path() -> Path:
    """SQLite file shared by the CLI and the GUI: in the working directory."""
    return Path.cwd() / DB_FILENAME


@dataclass(frozen=True)
class AppConfig:
    """Configuracion persistida de la app."""

    week_start: str
    export_dir: str


class SQLiteStore:
    """Repositorio SQLite para la app."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            self._migrate(conn)
            conn.commit()

    def _migrate(self, conn: sqlite3.Connection) -> None:
        """Apply lightweight schema/data migrations."""
        cols = {row["name"] for row in conn.execute("PRAGMA table_info(habits)")}
        if "metric_config" not in cols:
            conn.execute("ALTER TABLE habits ADD COLUMN metric_config TEXT")

        # One check-in per habit and day: drop duplicates before the index.
        conn.execute(
            """
            DELETE FROM habit_logs
            WHERE id NOT IN (
                SELECT MIN(id) FROM habit_logs
                GROUP BY habit_id, day
            )
            """
        )
        conn.execute(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS idx_habit_logs_habit_day_unique
            ON habit_logs(habit_id, day)
            """
        )

    def load_config(self) -> AppConfig:
        """Devuelve configuracion guardada o defaults."""
        defaults = {"week_start": "sunday", "export_dir": ""}
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}
        merged = {**defaults, **values}
        return AppConfig(
            week_start=merged["week_start"],
            export_dir=merged["export_dir"],
        )

    def save_config(self, config: AppConfig) -> None:
        """Guarda la configuracion en tabla key/value."""
        payload = {
            "week_start": config.week_start,
            "export_dir": config.export_dir,
        }
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )
            conn.commit()

    def save_habit(
        self,
        *,
        identity: str,
        action_name: str,
        created_at: date,
        color: str = "#007AFF",
        icon: str = "star.fill",
        metric_config: MetricConfig | None = None,
    ) -> int:
        """Inserta un hábito y devuelve su id."""
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO habits(
                    identity, action_name, created_at, color, icon, metric_config
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    identity,
                    action_name,
                    created_at.isoformat(),
                    color,
                    icon,
                    _config_json(metric_config),
                ),
            )
            habit_id = int(cur.lastrowid)
            conn.commit()
        logger.info("Saved habit %s (%s)", habit_id, action_name)
        return habit_id

    def set_metric_config(self, habit_id: int, config: MetricConfig | None) -> None:
        """Replace the metric configuration of a habit (None disables it)."""
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE habits SET metric_config = ? WHERE id = ?",
                (_config_json(config), habit_id),
            )
            if cur.rowcount == 0:
                raise KeyError(habit_id)
            conn.commit()

    def list_habits(self) -> list[tuple[int, str, str]]:
        """(id, identity, action_name) for every habit, oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, identity, action_name FROM habits ORDER BY id"
            ).fetchall()
        return [(int(r["id"]), r["identity"], r["action_name"]) for r in rows]

    def load_habits(self) -> list[Habit]:
        """Every habit with its logs and entries, oldest first."""
        return [self.load_habit(habit_id) for habit_id, _, _ in self.list_habits()]

    def load_habit(self, habit_id: int) -> Habit:
        """Carga un hábito con sus check-ins y entradas de métrica.

        Raises:
            KeyError: If no habit has ``habit_id``.
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM habits WHERE id = ?", (habit_id,)
            ).fetchone()
            if row is None:
                raise KeyError(habit_id)
            log_rows = conn.execute(
                """
                SELECT day, notes, satisfaction FROM habit_logs
                WHERE habit_id = ? ORDER BY day
                """,
                (habit_id,),
            ).fetchall()
            entry_rows = conn.execute(
                """
                SELECT day, value, notes, conditions FROM metric_entries
                WHERE habit_id = ? ORDER BY day, id
                """,
                (habit_id,),
            ).fetchall()

        logs = tuple(
            HabitLog(
                day=date.fromisoformat(r["day"]),
                notes=r["notes"],
                satisfaction=r["satisfaction"],
            )
            for r in log_rows
        )
        entries = tuple(
            MetricEntry(
                day=date.fromisoformat(r["day"]),
                value=float(r["value"]),
                notes=r["notes"],
                conditions=r["conditions"],
            )
            for r in entry_rows
        )
        return Habit(
            id=int(row["id"]),
            identity=row["identity"],
            action_name=row["action_name"],
            created_at=date.fromisoformat(row["created_at"]),
            color=row["color"],
            icon=row["icon"],
            logs=logs,
            metric_entries=entries,
            metric_config=_parse_config(row["metric_config"]),
        )

    def add_log(self, habit_id: int, log: HabitLog) -> bool:
        """Guarda un check-in. Devuelve False si el día ya estaba registrado."""
        self._ensure_habit(habit_id)
        completed_at = datetime.now().isoformat(timespec="seconds")
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT OR IGNORE INTO habit_logs(
                    habit_id, day, completed_at, notes, satisfaction
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    habit_id,
                    log.day.isoformat(),
                    completed_at,
                    log.notes,
                    log.satisfaction,
                ),
            )
            conn.commit()
        inserted = cur.rowcount == 1
        if not inserted:
            logger.info("Habit %s already checked in on %s", habit_id, log.day)
        return inserted

    def add_metric_entry(self, habit_id: int, entry: MetricEntry) -> int:
        """Guarda una medición y devuelve su id."""
        self._ensure_habit(habit_id)
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO metric_entries(habit_id, day, value, notes, conditions)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    habit_id,
                    entry.day.isoformat(),
                    entry.value,
                    entry.notes,
                    entry.conditions,
                ),
            )
            entry_id = int(cur.lastrowid)
            conn.commit()
        logger.debug("Metric entry %s for habit %s: %s", entry_id, habit_id, entry)
        return entry_id

    def _ensure_habit(self, habit_id: int) -> None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM habits WHERE id = ?", (habit_id,)
            ).fetchone()
        if row is None:
            raise KeyError(habit_id)


def _config_json(config: MetricConfig | None) -> str | None:
    if config is None:
        return None
    return json.dumps(config.to_dict())


def _parse_config(raw: str | None) -> MetricConfig | None:
    if not raw:
        return None
    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring unreadable metric config: %r", raw)
        return None
    if not isinstance(parsed, dict):
        logger.warning("Ignoring metric config that is not an object: %r", raw)
        return None
    try:
        return MetricConfig.from_dict(parsed)
    except (KeyError, ValueError, TypeError) as exc:
        logger.warning("Ignoring invalid metric config %r: %s", raw, exc)
        return None
