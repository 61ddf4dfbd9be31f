import sqlite3
import aiosqlite
import datetime
import json
import uuid
from contextlib import contextmanager, asynccontextmanager
from typing import List, Tuple, Optional, Iterable

from config import APP_VERSION, YamlConfig
from settings_schema import validate_settings
from calendar_model import CalendarData, WorkoutPlan
from errors import PlanNotFoundError


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "workout_plans": (
            """CREATE TABLE workout_plans (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    color TEXT NOT NULL,
                    exercises TEXT NOT NULL DEFAULT '[]',
                    duration INTEGER,
                    position INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT
                );""",
            [
                "id",
                "name",
                "color",
                "exercises",
                "duration",
                "position",
                "updated_at",
            ],
        ),
        "workout_schedule": (
            """CREATE TABLE workout_schedule (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    date TEXT NOT NULL,
                    workout_plan_id TEXT NOT NULL,
                    position INTEGER NOT NULL DEFAULT 0,
                    UNIQUE(date, workout_plan_id)
                );""",
            ["id", "date", "workout_plan_id", "position"],
        ),
        "settings": (
            """CREATE TABLE settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
    }

    _COLUMN_DEFAULTS = {
        "exercises": "'[]'",
        "position": "0",
    }

    def __init__(self, db_path: str = "workout.db") -> None:
        self._db_path = db_path
        self._ensure_schema()
        self._init_settings()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        conn.execute(f"DROP TABLE IF EXISTS {table}_old;")
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)

        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            missing = [c for c in columns if c not in existing_cols and c != "id"]
            if missing:
                defaults = ", ".join(
                    self._COLUMN_DEFAULTS.get(c, "NULL") for c in missing
                )
                conn.execute(
                    f"INSERT INTO {table} ({cols}, {', '.join(missing)}) SELECT {cols}, {defaults} FROM {table}_old;"
                )
            else:
                conn.execute(
                    f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
                )
        conn.execute(f"DROP TABLE {table}_old;")

    def _init_settings(self) -> None:
        defaults = {
            "color_theme": "violet",
            "color_softness": "0",
            "weight_unit": "kg",
            "language": "en",
            "log_level": "INFO",
            "drag_mouse_distance": "3",
            "drag_touch_delay_ms": "150",
            "drag_touch_tolerance": "5",
            "app_version": APP_VERSION,
        }
        with self._connection() as conn:
            for key, value in defaults.items():
                conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, value),
                )


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()


class AsyncDatabase(Database):
    """Provides asynchronous connection management."""

    @asynccontextmanager
    async def _async_connection(self):
        conn = await aiosqlite.connect(self._db_path)
        try:
            yield conn
            await conn.commit()
        finally:
            await conn.close()


class AsyncBaseRepository(AsyncDatabase):
    """Asynchronous variant of BaseRepository using aiosqlite."""

    async def execute(self, query: str, params: Tuple = ()) -> int:
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            await conn.commit()
            return cursor.lastrowid

    async def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return rows


def _plan_from_row(row: Tuple) -> WorkoutPlan:
    plan_id, name, color, exercises, duration = row[:5]
    return WorkoutPlan(
        id=plan_id,
        name=name,
        color=color,
        exercises=json.loads(exercises or "[]"),
        duration=duration,
    )


def _group_schedule(rows: Iterable[Tuple]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    for date, plan_id in rows:
        grouped.setdefault(date, []).append(plan_id)
    return grouped


def _calendar_statements(calendar: CalendarData) -> list[tuple[str, Tuple]]:
    now = datetime.datetime.now().isoformat(timespec="seconds")
    statements: list[tuple[str, Tuple]] = [
        ("DELETE FROM workout_schedule;", ()),
        ("DELETE FROM workout_plans;", ()),
    ]
    for pos, plan in enumerate(calendar.plans):
        statements.append(
            (
                "INSERT INTO workout_plans (id, name, color, exercises, duration, position, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?);",
                (
                    plan.id,
                    plan.name,
                    plan.color,
                    json.dumps(plan.exercises),
                    plan.duration,
                    pos,
                    now,
                ),
            )
        )
    for date in sorted(calendar.scheduled_workouts):
        for pos, plan_id in enumerate(calendar.scheduled_workouts[date]):
            statements.append(
                (
                    "INSERT OR IGNORE INTO workout_schedule (date, workout_plan_id, position) VALUES (?, ?, ?);",
                    (date, plan_id, pos),
                )
            )
    return statements


_PLAN_QUERY = (
    "SELECT id, name, color, exercises, duration FROM workout_plans "
    "ORDER BY position ASC, rowid ASC;"
)
_SCHEDULE_QUERY = (
    "SELECT date, workout_plan_id FROM workout_schedule "
    "ORDER BY date ASC, position ASC, id ASC;"
)


class WorkoutPlanRepository(BaseRepository):
    """Repository for reusable workout plans."""

    def create(
        self,
        name: str,
        color: str,
        exercises: Iterable[str] = (),
        duration: int | None = None,
        plan_id: str | None = None,
    ) -> str:
        if plan_id is None:
            plan_id = uuid.uuid4().hex
        rows = super().fetch_all(
            "SELECT COALESCE(MAX(position),-1)+1 FROM workout_plans"
        )
        pos = int(rows[0][0]) if rows else 0
        try:
            self.execute(
                "INSERT INTO workout_plans (id, name, color, exercises, duration, position, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?);",
                (
                    plan_id,
                    name,
                    color,
                    json.dumps(list(exercises)),
                    duration,
                    pos,
                    datetime.datetime.now().isoformat(timespec="seconds"),
                ),
            )
        except sqlite3.IntegrityError:
            raise ValueError("workout plan exists")
        return plan_id

    def fetch_all_plans(self) -> List[WorkoutPlan]:
        return [_plan_from_row(r) for r in super().fetch_all(_PLAN_QUERY)]

    def fetch_detail(self, plan_id: str) -> WorkoutPlan:
        rows = super().fetch_all(
            "SELECT id, name, color, exercises, duration FROM workout_plans WHERE id = ?;",
            (plan_id,),
        )
        if not rows:
            raise PlanNotFoundError(plan_id)
        return _plan_from_row(rows[0])

    def exists(self, plan_id: str) -> bool:
        rows = super().fetch_all(
            "SELECT 1 FROM workout_plans WHERE id = ?;", (plan_id,)
        )
        return bool(rows)

    def update(
        self,
        plan_id: str,
        name: str | None = None,
        color: str | None = None,
        exercises: Optional[Iterable[str]] = None,
        duration: int | None = None,
    ) -> None:
        if not self.exists(plan_id):
            raise PlanNotFoundError(plan_id)
        fields = []
        params: list = []
        if name is not None:
            fields.append("name = ?")
            params.append(name)
        if color is not None:
            fields.append("color = ?")
            params.append(color)
        if exercises is not None:
            fields.append("exercises = ?")
            params.append(json.dumps(list(exercises)))
        if duration is not None:
            fields.append("duration = ?")
            params.append(duration)
        if not fields:
            return
        fields.append("updated_at = ?")
        params.append(datetime.datetime.now().isoformat(timespec="seconds"))
        params.append(plan_id)
        self.execute(
            f"UPDATE workout_plans SET {', '.join(fields)} WHERE id = ?;",
            tuple(params),
        )

    def delete(self, plan_id: str) -> None:
        if not self.exists(plan_id):
            raise PlanNotFoundError(plan_id)
        with self._connection() as conn:
            conn.execute(
                "DELETE FROM workout_schedule WHERE workout_plan_id = ?;", (plan_id,)
            )
            conn.execute("DELETE FROM workout_plans WHERE id = ?;", (plan_id,))


class WorkoutScheduleRepository(BaseRepository):
    """Repository mapping calendar dates to workout plans."""

    def add(self, date: str, plan_id: str) -> int:
        rows = super().fetch_all(
            "SELECT COALESCE(MAX(position),-1)+1 FROM workout_schedule WHERE date = ?;",
            (date,),
        )
        pos = int(rows[0][0]) if rows else 0
        return self.execute(
            "INSERT OR IGNORE INTO workout_schedule (date, workout_plan_id, position) VALUES (?, ?, ?);",
            (date, plan_id, pos),
        )

    def remove(self, date: str, plan_id: str) -> None:
        self.execute(
            "DELETE FROM workout_schedule WHERE date = ? AND workout_plan_id = ?;",
            (date, plan_id),
        )

    def fetch_for_date(self, date: str) -> List[str]:
        rows = super().fetch_all(
            "SELECT workout_plan_id FROM workout_schedule WHERE date = ? ORDER BY position ASC, id ASC;",
            (date,),
        )
        return [r[0] for r in rows]

    def fetch_grouped(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> dict[str, list[str]]:
        query = "SELECT date, workout_plan_id FROM workout_schedule WHERE 1=1"
        params: list[str] = []
        if start_date:
            query += " AND date >= ?"
            params.append(start_date)
        if end_date:
            query += " AND date <= ?"
            params.append(end_date)
        query += " ORDER BY date ASC, position ASC, id ASC;"
        return _group_schedule(super().fetch_all(query, tuple(params)))


class CalendarRepository(BaseRepository):
    """Loads and stores the whole plans-plus-schedule aggregate."""

    def load(self) -> CalendarData:
        plans = [_plan_from_row(r) for r in self.fetch_all(_PLAN_QUERY)]
        schedule = _group_schedule(self.fetch_all(_SCHEDULE_QUERY))
        return CalendarData(plans=plans, scheduled_workouts=schedule)

    def save(self, calendar: CalendarData) -> None:
        with self._connection() as conn:
            for query, params in _calendar_statements(calendar):
                conn.execute(query, params)


class AsyncCalendarRepository(AsyncBaseRepository):
    """Async variant of CalendarRepository used by the sync adapter."""

    async def load(self) -> CalendarData:
        plans = [_plan_from_row(r) for r in await self.fetch_all(_PLAN_QUERY)]
        schedule = _group_schedule(await self.fetch_all(_SCHEDULE_QUERY))
        return CalendarData(plans=plans, scheduled_workouts=schedule)

    async def save(self, calendar: CalendarData) -> None:
        async with self._async_connection() as conn:
            for query, params in _calendar_statements(calendar):
                await conn.execute(query, params)


class SettingsRepository(BaseRepository):
    """Repository for general application settings synchronized with YAML."""

    def __init__(
        self, db_path: str = "workout.db", yaml_path: str = "settings.yaml"
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)
        self._sync_from_yaml()
        self._sync_to_yaml()

    def _raw_all_settings(self) -> dict:
        rows = self.fetch_all("SELECT key, value FROM settings ORDER BY key;")
        result: dict[str, float | str] = {}
        for k, v in rows:
            try:
                result[k] = float(v)
            except ValueError:
                result[k] = v
        return result

    def _sync_from_yaml(self) -> None:
        data = self._yaml.load()
        if not data:
            return
        validate_settings(data)
        with self._connection() as conn:
            for key, value in data.items():
                if value is None:
                    continue
                conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, str(value)),
                )

    def _sync_to_yaml(self) -> None:
        self._yaml.save(self._raw_all_settings())

    def get_text(self, key: str, default: str) -> str:
        self._sync_from_yaml()
        rows = self.fetch_all("SELECT value FROM settings WHERE key = ?;", (key,))
        return rows[0][0] if rows else default

    def set_text(self, key: str, value: str) -> None:
        validate_settings({key: value})
        self.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, value),
        )
        self._sync_to_yaml()

    def update(self, values: dict) -> None:
        validate_settings(values)
        with self._connection() as conn:
            for key, value in values.items():
                conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, str(value)),
                )
        self._sync_to_yaml()

    def all_settings(self) -> dict:
        self._sync_from_yaml()
        return self._raw_all_settings()
