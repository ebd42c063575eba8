import logging
import sqlite3
import uuid
from contextlib import asynccontextmanager
from typing import Iterable, List, Mapping, Optional, Tuple

import aiosqlite

from config import YamlConfig
from errors import InvalidRecord, NotFound, StorageUnavailable
from models import (
    CUSTOM_TEMPLATE_PREFIX,
    DEFAULT_TEMPLATE_PREFIX,
    DEFAULT_TEMPLATES,
    BodyMetric,
    Template,
    TemplateDraft,
    WorkoutDraft,
    WorkoutRecord,
    parse_timestamp,
    utc_now_iso,
)
from settings_schema import DEFAULT_SETTINGS, validate_settings

logger = logging.getLogger(__name__)

_STORAGE_FAILURES = (
    "unable to open",
    "disk i/o",
    "is full",
    "readonly",
    "locked",
    "not a database",
)


def _is_storage_failure(exc: sqlite3.Error) -> bool:
    message = str(exc).lower()
    return any(part in message for part in _STORAGE_FAILURES)


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "workouts": (
            """CREATE TABLE workouts (
                    id TEXT PRIMARY KEY,
                    exercise TEXT NOT NULL,
                    date TEXT NOT NULL,
                    notes TEXT
                );""",
            ["id", "exercise", "date", "notes"],
        ),
        "workout_sets": (
            """CREATE TABLE workout_sets (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    workout_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    weight REAL NOT NULL,
                    reps INTEGER NOT NULL,
                    FOREIGN KEY(workout_id) REFERENCES workouts(id) ON DELETE CASCADE
                );""",
            ["id", "workout_id", "position", "weight", "reps"],
        ),
        "body_metrics": (
            """CREATE TABLE body_metrics (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    date TEXT NOT NULL,
                    weight REAL NOT NULL
                );""",
            ["id", "date", "weight"],
        ),
        "templates": (
            """CREATE TABLE templates (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    position INTEGER NOT NULL DEFAULT 0
                );""",
            ["id", "name", "position"],
        ),
        "template_exercises": (
            """CREATE TABLE template_exercises (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    template_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    sets INTEGER NOT NULL,
                    reps INTEGER NOT NULL,
                    FOREIGN KEY(template_id) REFERENCES templates(id) ON DELETE CASCADE
                );""",
            ["id", "template_id", "position", "name", "sets", "reps"],
        ),
        "settings": (
            """CREATE TABLE settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
    }

    _INDEXES = (
        "CREATE INDEX IF NOT EXISTS idx_workouts_date ON workouts(date);",
        "CREATE INDEX IF NOT EXISTS idx_workout_sets_workout ON workout_sets(workout_id);",
        "CREATE INDEX IF NOT EXISTS idx_body_metrics_date ON body_metrics(date);",
        "CREATE INDEX IF NOT EXISTS idx_template_exercises_template ON template_exercises(template_id);",
    )

    def __init__(self, db_path: str = "workout.db") -> None:
        self._db_path = db_path

    @asynccontextmanager
    async def _async_connection(self, foreign_keys: bool = True):
        try:
            conn = await aiosqlite.connect(self._db_path)
        except sqlite3.Error as e:
            raise StorageUnavailable(f"cannot open {self._db_path}: {e}") from e
        try:
            if foreign_keys:
                await conn.execute("PRAGMA foreign_keys=ON;")
            yield conn
            await conn.commit()
        except sqlite3.Error as e:
            if _is_storage_failure(e):
                raise StorageUnavailable(str(e)) from e
            raise
        finally:
            await conn.close()

    def transaction(self):
        """Return a connection context that commits once on success."""
        return self._async_connection()

    async def init_db(self) -> None:
        """Create missing tables and rebuild tables with an outdated layout."""
        async with self._async_connection(foreign_keys=False) as conn:
            await conn.execute("PRAGMA legacy_alter_table=ON;")
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                await self._ensure_table(conn, table, sql, columns)
            for sql in self._INDEXES:
                await conn.execute(sql)

    async def _ensure_table(
        self, conn: aiosqlite.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = await conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if await cur.fetchone() is None:
            await conn.execute(sql)
            return

        cur = await conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in await cur.fetchall()]
        if existing_cols == columns:
            return

        logger.info("Rebuilding table %s (columns %s -> %s)", table, existing_cols, columns)
        await conn.execute(f"DROP TABLE IF EXISTS {table}_old;")
        await conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        await conn.execute(sql)

        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            missing = [c for c in columns if c not in existing_cols]
            if missing:
                def default_val(col: str) -> str:
                    if col == "position":
                        return "0"
                    return "NULL"

                defaults = ", ".join(default_val(c) for c in missing)
                await conn.execute(
                    f"INSERT INTO {table} ({cols}, {', '.join(missing)}) SELECT {cols}, {defaults} FROM {table}_old;"
                )
            else:
                await conn.execute(
                    f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
                )
        await conn.execute(f"DROP TABLE {table}_old;")


class AsyncBaseRepository(Database):
    """Base repository with helpers that optionally join a caller's transaction."""

    async def execute(
        self, query: str, params: Tuple = (), conn: Optional[aiosqlite.Connection] = None
    ) -> int:
        if conn is not None:
            cursor = await conn.execute(query, params)
            return cursor.lastrowid
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            return cursor.lastrowid

    async def fetch_all(
        self, query: str, params: Tuple = (), conn: Optional[aiosqlite.Connection] = None
    ) -> List[Tuple]:
        if conn is not None:
            cursor = await conn.execute(query, params)
            return list(await cursor.fetchall())
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            return list(await cursor.fetchall())

    async def _count(self, table: str, conn: Optional[aiosqlite.Connection] = None) -> int:
        rows = await self.fetch_all(f"SELECT COUNT(*) FROM {table};", conn=conn)
        return int(rows[0][0])


def _date_filter(
    start_date: Optional[str], end_date: Optional[str]
) -> Tuple[List[str], List[str]]:
    clauses: list[str] = []
    params: list[str] = []
    if start_date:
        clauses.append("substr(date, 1, 10) >= ?")
        params.append(start_date)
    if end_date:
        clauses.append("substr(date, 1, 10) <= ?")
        params.append(end_date)
    return clauses, params


class AsyncWorkoutRepository(AsyncBaseRepository):
    """Async repository for workouts and their ordered sets."""

    _UPDATABLE = {"exercise", "sets", "notes"}

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    async def create(self, workout) -> WorkoutRecord:
        """Validate ``workout``, assign id and date, and store it."""
        draft = WorkoutDraft.parse(workout)
        record = WorkoutRecord(
            id=self._new_id(), date=utc_now_iso(), **draft.model_dump()
        )
        async with self._async_connection() as conn:
            await self._write(conn, record)
        return record

    async def _write(self, conn: aiosqlite.Connection, record: WorkoutRecord) -> None:
        await conn.execute(
            "INSERT INTO workouts (id, exercise, date, notes) VALUES (?, ?, ?, ?);",
            (record.id, record.exercise, record.date, record.notes),
        )
        await self._write_sets(conn, record)

    async def _write_sets(self, conn: aiosqlite.Connection, record: WorkoutRecord) -> None:
        await conn.executemany(
            "INSERT INTO workout_sets (workout_id, position, weight, reps) VALUES (?, ?, ?, ?);",
            [(record.id, pos, s.weight, s.reps) for pos, s in enumerate(record.sets)],
        )

    async def _select(
        self,
        where: List[str],
        params: List[str],
        conn: Optional[aiosqlite.Connection] = None,
    ) -> List[WorkoutRecord]:
        clause = (" WHERE " + " AND ".join(where)) if where else ""
        rows = await self.fetch_all(
            f"SELECT id, exercise, date, notes FROM workouts{clause} ORDER BY date, id;",
            tuple(params),
            conn=conn,
        )
        set_rows = await self.fetch_all(
            "SELECT workout_id, weight, reps FROM workout_sets "
            f"WHERE workout_id IN (SELECT id FROM workouts{clause}) "
            "ORDER BY workout_id, position;",
            tuple(params),
            conn=conn,
        )
        sets: dict[str, list[dict]] = {}
        for workout_id, weight, reps in set_rows:
            sets.setdefault(workout_id, []).append(
                {"weight": float(weight), "reps": int(reps)}
            )
        records = [
            WorkoutRecord(
                id=wid, exercise=exercise, date=date, notes=notes, sets=sets.get(wid, [])
            )
            for wid, exercise, date, notes in rows
        ]
        records.sort(key=lambda r: parse_timestamp(r.date))
        return records

    async def fetch_detail(self, workout_id: str) -> WorkoutRecord:
        rows = await self._select(["id = ?"], [workout_id])
        if not rows:
            raise NotFound(f"workout {workout_id} not found")
        return rows[0]

    async def fetch_all_workouts(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> List[WorkoutRecord]:
        """Return workouts ordered by date, oldest first."""
        where, params = _date_filter(start_date, end_date)
        return await self._select(where, params)

    async def search(self, query: str) -> List[WorkoutRecord]:
        return await self._select(["instr(lower(exercise), lower(?)) > 0"], [query])

    async def exercise_names(self) -> List[str]:
        rows = await self.fetch_all(
            "SELECT DISTINCT exercise FROM workouts ORDER BY exercise;"
        )
        return [r[0] for r in rows]

    async def update(self, workout_id: str, changes: Mapping) -> WorkoutRecord:
        current = await self.fetch_detail(workout_id)
        for key, value in changes.items():
            if key in ("id", "date"):
                if value != getattr(current, key):
                    raise InvalidRecord(f"{key} cannot be changed")
            elif key not in self._UPDATABLE:
                raise InvalidRecord(f"unknown workout field: {key}")
        merged = current.model_dump()
        merged.update({k: v for k, v in changes.items() if k in self._UPDATABLE})
        record = WorkoutRecord.parse(merged)
        async with self._async_connection() as conn:
            await conn.execute(
                "UPDATE workouts SET exercise = ?, notes = ? WHERE id = ?;",
                (record.exercise, record.notes, workout_id),
            )
            if "sets" in changes:
                await conn.execute(
                    "DELETE FROM workout_sets WHERE workout_id = ?;", (workout_id,)
                )
                await self._write_sets(conn, record)
        return record

    async def delete(self, workout_id: str) -> None:
        async with self._async_connection() as conn:
            await conn.execute(
                "DELETE FROM workout_sets WHERE workout_id = ?;", (workout_id,)
            )
            await conn.execute("DELETE FROM workouts WHERE id = ?;", (workout_id,))

    async def insert_many(
        self,
        records: Iterable,
        conn: Optional[aiosqlite.Connection] = None,
    ) -> int:
        """Store complete records keeping their ids and dates."""
        parsed = [WorkoutRecord.parse(r) for r in records]
        if conn is None:
            async with self._async_connection() as conn:
                for record in parsed:
                    await self._write(conn, record)
        else:
            for record in parsed:
                await self._write(conn, record)
        return len(parsed)

    async def count(self, conn: Optional[aiosqlite.Connection] = None) -> int:
        return await self._count("workouts", conn)

    async def delete_all(self, conn: Optional[aiosqlite.Connection] = None) -> None:
        await self.execute("DELETE FROM workout_sets;", conn=conn)
        await self.execute("DELETE FROM workouts;", conn=conn)


class AsyncBodyMetricRepository(AsyncBaseRepository):
    """Async repository for body weight samples."""

    _UPDATABLE = {"date", "weight"}

    async def log(self, weight: float, date: Optional[str] = None) -> BodyMetric:
        metric = BodyMetric.parse({"date": date or utc_now_iso(), "weight": weight})
        metric_id = await self.execute(
            "INSERT INTO body_metrics (date, weight) VALUES (?, ?);",
            (metric.date, metric.weight),
        )
        return metric.model_copy(update={"id": metric_id})

    async def fetch_detail(self, entry_id: int) -> BodyMetric:
        rows = await self.fetch_all(
            "SELECT id, date, weight FROM body_metrics WHERE id = ?;", (entry_id,)
        )
        if not rows:
            raise NotFound(f"body metric {entry_id} not found")
        mid, date, weight = rows[0]
        return BodyMetric(id=int(mid), date=date, weight=float(weight))

    async def fetch_history(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        conn: Optional[aiosqlite.Connection] = None,
    ) -> List[BodyMetric]:
        """Return samples ordered by date ascending; same-day entries are kept."""
        where, params = _date_filter(start_date, end_date)
        query = "SELECT id, date, weight FROM body_metrics"
        if where:
            query += " WHERE " + " AND ".join(where)
        query += " ORDER BY date, id;"
        rows = await self.fetch_all(query, tuple(params), conn=conn)
        metrics = [BodyMetric(id=int(r[0]), date=r[1], weight=float(r[2])) for r in rows]
        metrics.sort(key=lambda m: parse_timestamp(m.date))
        return metrics

    async def fetch_latest_weight(self) -> float | None:
        """Return the most recent logged body weight if available."""
        history = await self.fetch_history()
        if history:
            return history[-1].weight
        return None

    async def update(self, entry_id: int, changes: Mapping) -> BodyMetric:
        current = await self.fetch_detail(entry_id)
        for key in changes:
            if key == "id" and changes[key] != entry_id:
                raise InvalidRecord("id cannot be changed")
            if key != "id" and key not in self._UPDATABLE:
                raise InvalidRecord(f"unknown body metric field: {key}")
        merged = current.model_dump()
        merged.update({k: v for k, v in changes.items() if k in self._UPDATABLE})
        metric = BodyMetric.parse(merged)
        await self.execute(
            "UPDATE body_metrics SET date = ?, weight = ? WHERE id = ?;",
            (metric.date, metric.weight, entry_id),
        )
        return metric

    async def delete(self, entry_id: int) -> None:
        await self.execute("DELETE FROM body_metrics WHERE id = ?;", (entry_id,))

    async def _write_many(
        self, conn: aiosqlite.Connection, metrics: List[BodyMetric]
    ) -> None:
        for metric in metrics:
            if metric.id is None:
                await conn.execute(
                    "INSERT INTO body_metrics (date, weight) VALUES (?, ?);",
                    (metric.date, metric.weight),
                )
            else:
                await conn.execute(
                    "INSERT INTO body_metrics (id, date, weight) VALUES (?, ?, ?);",
                    (metric.id, metric.date, metric.weight),
                )

    async def insert_many(
        self,
        metrics: Iterable,
        conn: Optional[aiosqlite.Connection] = None,
    ) -> int:
        parsed = [BodyMetric.parse(m) for m in metrics]
        if conn is None:
            async with self._async_connection() as conn:
                await self._write_many(conn, parsed)
        else:
            await self._write_many(conn, parsed)
        return len(parsed)

    async def count(self, conn: Optional[aiosqlite.Connection] = None) -> int:
        return await self._count("body_metrics", conn)

    async def delete_all(self, conn: Optional[aiosqlite.Connection] = None) -> None:
        await self.execute("DELETE FROM body_metrics;", conn=conn)


class AsyncTemplateRepository(AsyncBaseRepository):
    """Async repository for workout templates.

    Two default templates (ids prefixed with ``default_``) are seeded the
    first time the collection is listed while empty. User templates get
    ``custom_`` ids.
    """

    _UPDATABLE = {"name", "exercises"}

    @staticmethod
    def _new_id() -> str:
        return f"{CUSTOM_TEMPLATE_PREFIX}{uuid.uuid4().hex[:12]}"

    async def _write(self, conn: aiosqlite.Connection, template: Template) -> None:
        rows = await self.fetch_all(
            "SELECT COALESCE(MAX(position), 0) + 1 FROM templates;", conn=conn
        )
        position = int(rows[0][0]) if rows else 1
        await conn.execute(
            "INSERT INTO templates (id, name, position) VALUES (?, ?, ?);",
            (template.id, template.name, position),
        )
        await self._write_exercises(conn, template)

    async def _write_exercises(self, conn: aiosqlite.Connection, template: Template) -> None:
        await conn.executemany(
            "INSERT INTO template_exercises (template_id, position, name, sets, reps) VALUES (?, ?, ?, ?, ?);",
            [
                (template.id, pos, ex.name, ex.sets, ex.reps)
                for pos, ex in enumerate(template.exercises)
            ],
        )

    async def create(self, template) -> Template:
        draft = TemplateDraft.parse(template)
        created = Template(id=self._new_id(), **draft.model_dump())
        async with self._async_connection() as conn:
            await self._write(conn, created)
        return created

    async def _select(
        self,
        conn: aiosqlite.Connection,
        template_id: Optional[str] = None,
    ) -> List[Template]:
        where = " WHERE id = ?" if template_id is not None else ""
        ex_where = " WHERE template_id = ?" if template_id is not None else ""
        params: tuple = (template_id,) if template_id is not None else ()
        rows = await self.fetch_all(
            f"SELECT id, name FROM templates{where} ORDER BY position, rowid;",
            params,
            conn=conn,
        )
        ex_rows = await self.fetch_all(
            f"SELECT template_id, name, sets, reps FROM template_exercises{ex_where} "
            "ORDER BY template_id, position;",
            params,
            conn=conn,
        )
        exercises: dict[str, list[dict]] = {}
        for tid, name, sets, reps in ex_rows:
            exercises.setdefault(tid, []).append(
                {"name": name, "sets": int(sets), "reps": int(reps)}
            )
        return [
            Template(id=tid, name=name, exercises=exercises.get(tid, []))
            for tid, name in rows
        ]

    async def fetch_all_templates(self, seed: bool = True) -> List[Template]:
        """Return templates in display order, seeding defaults when empty."""
        async with self._async_connection() as conn:
            templates = await self._select(conn)
            if templates or not seed:
                return templates
            for template in DEFAULT_TEMPLATES:
                await self._write(conn, template)
            logger.info("Seeded %d default templates", len(DEFAULT_TEMPLATES))
            return [t.model_copy(deep=True) for t in DEFAULT_TEMPLATES]

    async def fetch_detail(self, template_id: str) -> Template:
        async with self._async_connection() as conn:
            rows = await self._select(conn, template_id)
        if not rows:
            raise NotFound(f"template {template_id} not found")
        return rows[0]

    async def update(self, template_id: str, changes: Mapping) -> Template:
        current = await self.fetch_detail(template_id)
        for key in changes:
            if key == "id" and changes[key] != template_id:
                raise InvalidRecord("id cannot be changed")
            if key != "id" and key not in self._UPDATABLE:
                raise InvalidRecord(f"unknown template field: {key}")
        merged = current.model_dump()
        merged.update({k: v for k, v in changes.items() if k in self._UPDATABLE})
        template = Template.parse(merged)
        async with self._async_connection() as conn:
            await conn.execute(
                "UPDATE templates SET name = ? WHERE id = ?;",
                (template.name, template_id),
            )
            if "exercises" in changes:
                await conn.execute(
                    "DELETE FROM template_exercises WHERE template_id = ?;",
                    (template_id,),
                )
                await self._write_exercises(conn, template)
        return template

    async def delete(self, template_id: str) -> None:
        async with self._async_connection() as conn:
            await conn.execute(
                "DELETE FROM template_exercises WHERE template_id = ?;", (template_id,)
            )
            await conn.execute("DELETE FROM templates WHERE id = ?;", (template_id,))

    async def insert_many(
        self,
        templates: Iterable,
        conn: Optional[aiosqlite.Connection] = None,
    ) -> int:
        parsed = [Template.parse(t) for t in templates]
        if conn is None:
            async with self._async_connection() as conn:
                for template in parsed:
                    await self._write(conn, template)
        else:
            for template in parsed:
                await self._write(conn, template)
        return len(parsed)

    async def count_custom(self, conn: Optional[aiosqlite.Connection] = None) -> int:
        rows = await self.fetch_all(
            "SELECT COUNT(*) FROM templates WHERE substr(id, 1, ?) != ?;",
            (len(DEFAULT_TEMPLATE_PREFIX), DEFAULT_TEMPLATE_PREFIX),
            conn=conn,
        )
        return int(rows[0][0])

    async def delete_all(self, conn: Optional[aiosqlite.Connection] = None) -> None:
        await self.execute("DELETE FROM template_exercises;", conn=conn)
        await self.execute("DELETE FROM templates;", conn=conn)


class AsyncSettingsRepository(AsyncBaseRepository):
    """Repository for user settings, optionally mirrored to a YAML file."""

    def __init__(self, db_path: str = "workout.db", yaml_path: str | None = None) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path) if yaml_path else None

    @staticmethod
    def _encode(value) -> str:
        if isinstance(value, bool):
            return "1" if value else "0"
        return str(value)

    async def init_settings(self) -> None:
        async with self._async_connection() as conn:
            for key, value in DEFAULT_SETTINGS.items():
                await conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, self._encode(value)),
                )
        await self._sync_from_yaml()
        await self._sync_to_yaml()

    async def _raw_all_settings(self) -> dict:
        rows = await self.fetch_all("SELECT key, value FROM settings ORDER BY key;")
        return {k: v for k, v in rows}

    async def _sync_from_yaml(self) -> None:
        if self._yaml is None:
            return
        data = self._yaml.load()
        if not data:
            return
        validate_settings(data)
        async with self._async_connection() as conn:
            for key, value in data.items():
                await conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, self._encode(value)),
                )

    async def _sync_to_yaml(self) -> None:
        if self._yaml is None:
            return
        self._yaml.save(await self.all_settings(sync=False))

    async def all_settings(self, sync: bool = True) -> dict:
        """Return every setting with recognized keys coerced to their types."""
        if sync:
            await self._sync_from_yaml()
        return validate_settings(await self._raw_all_settings())

    async def get_text(self, key: str, default: str) -> str:
        await self._sync_from_yaml()
        rows = await self.fetch_all("SELECT value FROM settings WHERE key = ?;", (key,))
        return rows[0][0] if rows else default

    async def get_bool(self, key: str, default: bool) -> bool:
        return await self.get_text(key, "1" if default else "0") in {
            "1",
            "true",
            "True",
            "1.0",
        }

    async def get_int(self, key: str, default: int) -> int:
        try:
            return int(float(await self.get_text(key, str(default))))
        except ValueError:
            return default

    async def set_value(self, key: str, value) -> None:
        value = validate_settings({key: value})[key]
        await self.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, self._encode(value)),
        )
        await self._sync_to_yaml()

    async def set_bool(self, key: str, value: bool) -> None:
        await self.set_value(key, bool(value))

    async def set_int(self, key: str, value: int) -> None:
        await self.set_value(key, int(value))

    async def clear(self, keep_theme: bool) -> None:
        """Reset settings to defaults, optionally retaining the theme."""
        async with self._async_connection() as conn:
            if keep_theme:
                await conn.execute("DELETE FROM settings WHERE key != 'theme';")
            else:
                await conn.execute("DELETE FROM settings;")
            for key, value in DEFAULT_SETTINGS.items():
                await conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, self._encode(value)),
                )
        await self._sync_to_yaml()
