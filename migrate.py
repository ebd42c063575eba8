"""Upgrade data from the flat-blob storage generations into the SQLite store.

Generation 1 kept ``{workouts, settings: {theme}}`` under a single key,
generation 2 added ``bodyMetrics``, ``templates`` and ``settings.autoTimer``.
Blobs are read but never modified or removed. Migration only runs while the
destination holds no workouts, body metrics or user templates, so a crash
before the commit leaves the store empty and the next open retries.
"""

import asyncio
import json
import logging
import os
import sqlite3
import sys
from dataclasses import dataclass
from typing import ClassVar, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from errors import InvalidRecord, ParseFailure
from models import (
    DEFAULT_TEMPLATE_PREFIX,
    BodyMetric,
    Template,
    WorkoutRecord,
    clean_sets,
)

logger = logging.getLogger(__name__)

LEGACY_STORAGE_KEYS = ("workoutData",)
# Ids the flat-blob app gave its own seeded templates.
LEGACY_DEFAULT_TEMPLATE_IDS = ("push", "pull")


class DirectoryBlobSource:
    """Legacy key/value blobs stored as ``<key>.json`` files in a directory."""

    def __init__(self, directory: str) -> None:
        self.directory = directory

    def read(self, key: str) -> Optional[str]:
        path = os.path.join(self.directory, f"{key}.json")
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()


class MemoryBlobSource:
    def __init__(self, blobs: Mapping[str, str] | None = None) -> None:
        self._blobs = dict(blobs or {})

    def read(self, key: str) -> Optional[str]:
        return self._blobs.get(key)


class LegacyWorkout(BaseModel):
    id: Union[str, int]
    date: str
    exercise: str = ""
    sets: list = Field(default_factory=list)
    notes: Optional[str] = None


class LegacyBodyMetric(BaseModel):
    date: str
    weight: float


class LegacyG1Settings(BaseModel):
    theme: Optional[str] = None


class LegacyG2Settings(LegacyG1Settings):
    autoTimer: Optional[bool] = None


class LegacyG1Blob(BaseModel):
    generation: ClassVar[int] = 1
    model_config = ConfigDict(extra="forbid")

    workouts: list[dict]
    settings: Optional[LegacyG1Settings] = None

    @property
    def body_metrics(self) -> list[dict]:
        return []

    @property
    def template_list(self) -> list[dict]:
        return []


class LegacyG2Blob(BaseModel):
    generation: ClassVar[int] = 2
    model_config = ConfigDict(extra="forbid")

    workouts: list[dict]
    bodyMetrics: list[dict] = Field(default_factory=list)
    templates: list[dict] = Field(default_factory=list)
    settings: Optional[LegacyG2Settings] = None

    @property
    def body_metrics(self) -> list[dict]:
        return self.bodyMetrics

    @property
    def template_list(self) -> list[dict]:
        return self.templates


LegacyBlob = Union[LegacyG1Blob, LegacyG2Blob]


def load_blob(text: str) -> object:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise ParseFailure(f"legacy blob is not valid JSON: {e}") from e


def detect_generation(raw: object) -> Optional[LegacyBlob]:
    """Match ``raw`` against the known legacy shapes.

    Returns ``None`` for anything that is not exactly one of them.
    """
    if not isinstance(raw, dict) or "workouts" not in raw:
        return None
    settings = raw.get("settings")
    is_g2 = (
        "bodyMetrics" in raw
        or "templates" in raw
        or (isinstance(settings, dict) and "autoTimer" in settings)
    )
    model = LegacyG2Blob if is_g2 else LegacyG1Blob
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        logger.warning("Unrecognized legacy blob (generation %d shape): %s", model.generation, e)
        return None


@dataclass
class MigrationResult:
    generation: Optional[int] = None
    workouts: int = 0
    body_metrics: int = 0
    templates: int = 0
    settings: int = 0
    skipped: Optional[str] = None


class MigrationEngine:
    """Copy the newest legacy blob into an empty store."""

    def __init__(
        self,
        workouts,
        body_metrics,
        templates,
        settings,
        source,
        keys: tuple[str, ...] = LEGACY_STORAGE_KEYS,
    ) -> None:
        self.workouts = workouts
        self.body_metrics = body_metrics
        self.templates = templates
        self.settings = settings
        self.source = source
        self.keys = keys

    async def destination_is_empty(self, conn=None) -> bool:
        return (
            await self.workouts.count(conn) == 0
            and await self.body_metrics.count(conn) == 0
            and await self.templates.count_custom(conn) == 0
        )

    def probe(self) -> Optional[LegacyBlob]:
        found: list[LegacyBlob] = []
        for key in self.keys:
            text = self.source.read(key)
            if text is None:
                continue
            try:
                raw = load_blob(text)
            except ParseFailure as e:
                logger.warning("Ignoring legacy blob %s: %s", key, e)
                continue
            blob = detect_generation(raw)
            if blob is not None:
                found.append(blob)
        if not found:
            return None
        return max(found, key=lambda b: b.generation)

    @staticmethod
    def _convert_workouts(items: list[dict]) -> list[WorkoutRecord]:
        records: list[WorkoutRecord] = []
        seen: set[str] = set()
        for raw in items:
            try:
                legacy = LegacyWorkout.model_validate(raw)
                record = WorkoutRecord.parse(
                    {
                        "id": str(legacy.id),
                        "date": legacy.date,
                        "exercise": legacy.exercise,
                        "sets": clean_sets(legacy.sets),
                        "notes": legacy.notes,
                    }
                )
            except (ValidationError, InvalidRecord) as e:
                logger.warning("Skipping legacy workout %r: %s", raw.get("id"), e)
                continue
            if record.id in seen:
                logger.warning("Skipping duplicate legacy workout id %s", record.id)
                continue
            seen.add(record.id)
            records.append(record)
        return records

    @staticmethod
    def _convert_body_metrics(items: list[dict]) -> list[BodyMetric]:
        metrics: list[BodyMetric] = []
        for raw in items:
            try:
                legacy = LegacyBodyMetric.model_validate(raw)
                metrics.append(BodyMetric.parse(legacy.model_dump()))
            except (ValidationError, InvalidRecord) as e:
                logger.warning("Skipping legacy body metric %r: %s", raw, e)
        return metrics

    @staticmethod
    def _convert_templates(items: list[dict]) -> list[Template]:
        templates: list[Template] = []
        seen: set[str] = set()
        for raw in items:
            if raw.get("id") in LEGACY_DEFAULT_TEMPLATE_IDS:
                raw = {**raw, "id": f"{DEFAULT_TEMPLATE_PREFIX}{raw['id']}"}
            try:
                template = Template.parse(raw)
            except InvalidRecord as e:
                logger.warning("Skipping legacy template %r: %s", raw.get("id"), e)
                continue
            if template.id in seen:
                continue
            seen.add(template.id)
            templates.append(template)
        return templates

    async def _migrate_settings(self, blob: LegacyBlob) -> int:
        if blob.settings is None:
            return 0
        count = 0
        for key, value in blob.settings.model_dump(exclude_none=True).items():
            try:
                await self.settings.set_value(key, value)
            except InvalidRecord as e:
                logger.warning("Skipping legacy setting %s=%r: %s", key, value, e)
                continue
            count += 1
        return count

    async def run(self) -> MigrationResult:
        if not await self.destination_is_empty():
            return MigrationResult(skipped="destination not empty")
        blob = self.probe()
        if blob is None:
            return MigrationResult(skipped="no legacy data")

        result = MigrationResult(generation=blob.generation)
        workouts = self._convert_workouts(blob.workouts)
        metrics = self._convert_body_metrics(blob.body_metrics)
        templates = self._convert_templates(blob.template_list)
        if not workouts and not metrics and not any(not t.is_default for t in templates):
            return MigrationResult(generation=blob.generation, skipped="legacy data empty")
        try:
            async with self.workouts.transaction() as conn:
                if not await self.destination_is_empty(conn):
                    return MigrationResult(skipped="destination not empty")
                existing = {
                    row[0] for row in await self.templates.fetch_all("SELECT id FROM templates;", conn=conn)
                }
                templates = [t for t in templates if t.id not in existing]
                result.workouts = await self.workouts.insert_many(workouts, conn=conn)
                result.body_metrics = await self.body_metrics.insert_many(metrics, conn=conn)
                result.templates = await self.templates.insert_many(templates, conn=conn)
        except (sqlite3.IntegrityError, InvalidRecord) as e:
            logger.error("Legacy migration rolled back: %s", e)
            return MigrationResult(generation=blob.generation, skipped=str(e))
        result.settings = await self._migrate_settings(blob)
        logger.info(
            "Migrated generation %d data: %d workouts, %d body metrics, %d templates, %d settings",
            result.generation,
            result.workouts,
            result.body_metrics,
            result.templates,
            result.settings,
        )
        return result


async def _open(db_path: str, legacy_dir: str) -> MigrationResult:
    from store import WorkoutStore

    store = WorkoutStore(db_path, legacy_source=DirectoryBlobSource(legacy_dir))
    await store.open()
    return store.migration


def main(argv: list[str]) -> None:
    logging.basicConfig(level=logging.INFO)
    db_path = argv[1] if len(argv) > 1 else "workout.db"
    legacy_dir = argv[2] if len(argv) > 2 else "legacy"
    result = asyncio.run(_open(db_path, legacy_dir))
    print(result)


if __name__ == "__main__":
    main(sys.argv)
