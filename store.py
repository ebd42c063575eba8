import datetime
import json
import logging
import os
from typing import Any, Optional

from db import (
    AsyncBodyMetricRepository,
    AsyncSettingsRepository,
    AsyncTemplateRepository,
    AsyncWorkoutRepository,
    Database,
)
from errors import InvalidRecord, ParseFailure, StoreNotReady
from migrate import MigrationEngine, MigrationResult
from models import BackupSnapshot

logger = logging.getLogger(__name__)


def parse_backup(payload: Any) -> BackupSnapshot:
    """Validate an export payload (JSON text or mapping) without touching storage."""
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            data = json.loads(payload)
        except ValueError as e:
            raise ParseFailure(f"backup is not valid JSON: {e}") from e
    else:
        data = payload
    if not isinstance(data, dict) or not isinstance(data.get("workouts"), list):
        raise ParseFailure("backup must contain a 'workouts' list")
    try:
        return BackupSnapshot.parse(data)
    except InvalidRecord as e:
        raise ParseFailure(str(e)) from e


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    return f"{size / 1024:.2f} KB"


class WorkoutStore:
    """Explicitly opened store owning every collection repository.

    ``open()`` creates the schema, seeds default settings and runs the legacy
    migration before any collection becomes reachable.
    """

    CLOSED = "closed"
    MIGRATING = "migrating"
    READY = "ready"

    def __init__(
        self,
        db_path: str = "workout.db",
        legacy_source=None,
        settings_yaml: Optional[str] = None,
        keep_theme_on_clear: bool = True,
    ) -> None:
        self.db_path = db_path
        self.legacy_source = legacy_source
        self.keep_theme_on_clear = keep_theme_on_clear
        self.state = self.CLOSED
        self.migration: Optional[MigrationResult] = None
        self._db = Database(db_path)
        self._workouts = AsyncWorkoutRepository(db_path)
        self._body_metrics = AsyncBodyMetricRepository(db_path)
        self._templates = AsyncTemplateRepository(db_path)
        self._settings = AsyncSettingsRepository(db_path, settings_yaml)

    @classmethod
    def from_config(cls, config, legacy_source=None) -> "WorkoutStore":
        return cls(
            config.db_path,
            legacy_source=legacy_source,
            settings_yaml=config.settings_yaml,
            keep_theme_on_clear=config.keep_theme_on_clear,
        )

    async def open(self) -> "WorkoutStore":
        if self.state == self.READY:
            return self
        self.state = self.MIGRATING
        try:
            await self._db.init_db()
            await self._settings.init_settings()
            if self.legacy_source is not None:
                engine = MigrationEngine(
                    self._workouts,
                    self._body_metrics,
                    self._templates,
                    self._settings,
                    self.legacy_source,
                )
                self.migration = await engine.run()
                if self.migration.skipped:
                    logger.info("Legacy migration skipped: %s", self.migration.skipped)
        except Exception:
            self.state = self.CLOSED
            raise
        self.state = self.READY
        return self

    async def close(self) -> None:
        self.state = self.CLOSED

    async def __aenter__(self) -> "WorkoutStore":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _require_ready(self) -> None:
        if self.state != self.READY:
            raise StoreNotReady(f"store is {self.state}; await open() first")

    @property
    def workouts(self) -> AsyncWorkoutRepository:
        self._require_ready()
        return self._workouts

    @property
    def body_metrics(self) -> AsyncBodyMetricRepository:
        self._require_ready()
        return self._body_metrics

    @property
    def templates(self) -> AsyncTemplateRepository:
        self._require_ready()
        return self._templates

    @property
    def settings(self) -> AsyncSettingsRepository:
        self._require_ready()
        return self._settings

    async def export_all(self) -> dict:
        """Return ``{workouts, templates, bodyMetrics}`` for a backup file."""
        snapshot = BackupSnapshot(
            workouts=await self.workouts.fetch_all_workouts(),
            templates=await self.templates.fetch_all_templates(seed=False),
            body_metrics=await self.body_metrics.fetch_history(),
        )
        return snapshot.to_export()

    async def export_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(await self.export_all(), indent=indent)

    @staticmethod
    def export_filename(day: Optional[datetime.date] = None) -> str:
        day = day or datetime.datetime.now(datetime.timezone.utc).date()
        return f"workout_backup_{day.isoformat()}.json"

    async def write_backup(
        self, directory: str = ".", day: Optional[datetime.date] = None
    ) -> str:
        path = os.path.join(directory, self.export_filename(day))
        data = await self.export_json()
        with open(path, "w", encoding="utf-8") as f:
            f.write(data)
        return path

    async def import_data(self, payload: Any) -> dict:
        """Replace workouts, templates and body metrics with a backup.

        The payload is validated as a whole first; on ``ParseFailure`` the
        stored data is left as it was.
        """
        self._require_ready()
        snapshot = parse_backup(payload)
        async with self._db.transaction() as conn:
            await self._workouts.delete_all(conn)
            await self._templates.delete_all(conn)
            await self._body_metrics.delete_all(conn)
            counts = {
                "workouts": await self._workouts.insert_many(snapshot.workouts, conn=conn),
                "templates": await self._templates.insert_many(snapshot.templates, conn=conn),
                "bodyMetrics": await self._body_metrics.insert_many(
                    snapshot.body_metrics, conn=conn
                ),
            }
        logger.info("Imported backup: %s", counts)
        return counts

    async def clear_all(self) -> None:
        """Empty every collection; ``theme`` survives when ``keep_theme_on_clear``."""
        self._require_ready()
        async with self._db.transaction() as conn:
            await self._workouts.delete_all(conn)
            await self._templates.delete_all(conn)
            await self._body_metrics.delete_all(conn)
        await self._settings.clear(keep_theme=self.keep_theme_on_clear)
        logger.info("Cleared all data (theme kept: %s)", self.keep_theme_on_clear)

    async def storage_usage(self) -> str:
        """Size of the exported data, e.g. ``"512 B"`` or ``"1.50 KB"``."""
        data = json.dumps(await self.export_all(), separators=(",", ":"))
        return format_size(len(data.encode("utf-8")))
