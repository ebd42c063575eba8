import datetime
from typing import Any, Iterable, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from errors import InvalidRecord

DEFAULT_TEMPLATE_PREFIX = "default_"
CUSTOM_TEMPLATE_PREFIX = "custom_"


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string ending in ``Z``."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime.datetime:
    """Return ``value`` as a timezone-aware datetime in UTC."""
    dt = datetime.datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def calendar_day(value: str) -> str:
    """Return the UTC calendar day (YYYY-MM-DD) of an ISO timestamp."""
    return parse_timestamp(value).date().isoformat()


def _check_timestamp(value: str) -> str:
    try:
        parse_timestamp(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid timestamp: {value!r}") from e
    return value


def clean_sets(raw_sets: Iterable[Any]) -> list[dict]:
    """Drop sets without positive reps and default missing weights to 0.

    Mirrors what the entry form does before a workout is saved so that
    zero-rep sets never reach the store.
    """
    cleaned: list[dict] = []
    for item in raw_sets or []:
        if not isinstance(item, dict):
            continue
        try:
            reps = float(item.get("reps") or 0)
            weight = float(item.get("weight") or 0)
        except (TypeError, ValueError):
            continue
        if reps <= 0 or reps != int(reps):
            continue
        cleaned.append({"weight": weight, "reps": int(reps)})
    return cleaned


class Record(BaseModel):
    """Base model converting validation errors into ``InvalidRecord``."""

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def parse(cls, data: Any):
        if isinstance(data, cls):
            return data
        if isinstance(data, BaseModel):
            data = data.model_dump(by_alias=True)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidRecord(str(e)) from e


class SetEntry(Record):
    model_config = ConfigDict(frozen=True)

    weight: float = Field(ge=0)
    reps: int = Field(gt=0)


class WorkoutDraft(Record):
    """A workout as submitted by a caller, before id and date are assigned."""

    exercise: str
    sets: list[SetEntry]
    notes: Optional[str] = None

    @field_validator("exercise")
    @classmethod
    def _exercise_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("exercise must not be empty")
        return value

    @field_validator("sets")
    @classmethod
    def _sets_not_empty(cls, value: list[SetEntry]) -> list[SetEntry]:
        if not value:
            raise ValueError("a workout needs at least one set")
        return value

    @field_validator("notes")
    @classmethod
    def _blank_notes_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class WorkoutRecord(WorkoutDraft):
    id: str = Field(min_length=1)
    date: str

    @field_validator("date")
    @classmethod
    def _date_is_iso(cls, value: str) -> str:
        return _check_timestamp(value)

    @property
    def day(self) -> str:
        return calendar_day(self.date)

    @property
    def volume(self) -> float:
        return sum(s.weight * s.reps for s in self.sets)


class BodyMetric(Record):
    id: Optional[int] = None
    date: str
    weight: float = Field(gt=0)

    @field_validator("date")
    @classmethod
    def _date_is_iso(cls, value: str) -> str:
        return _check_timestamp(value)


class TemplateExercise(Record):
    name: str
    sets: int = Field(gt=0)
    reps: int = Field(gt=0)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("exercise name must not be empty")
        return value


class TemplateDraft(Record):
    name: str
    exercises: list[TemplateExercise]

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("template name must not be empty")
        return value

    @field_validator("exercises")
    @classmethod
    def _exercises_not_empty(
        cls, value: list[TemplateExercise]
    ) -> list[TemplateExercise]:
        if not value:
            raise ValueError("a template needs at least one exercise")
        return value


class Template(TemplateDraft):
    id: str = Field(min_length=1)

    @property
    def is_default(self) -> bool:
        return self.id.startswith(DEFAULT_TEMPLATE_PREFIX)


DEFAULT_TEMPLATES = [
    Template(
        id=f"{DEFAULT_TEMPLATE_PREFIX}push",
        name="Push Day",
        exercises=[
            TemplateExercise(name="Bench Press", sets=4, reps=8),
            TemplateExercise(name="Dumbbell Shoulder Press", sets=3, reps=10),
            TemplateExercise(name="Lateral Raise", sets=3, reps=12),
            TemplateExercise(name="Triceps Pushdown", sets=3, reps=12),
        ],
    ),
    Template(
        id=f"{DEFAULT_TEMPLATE_PREFIX}pull",
        name="Pull Day",
        exercises=[
            TemplateExercise(name="Pull-up", sets=4, reps=8),
            TemplateExercise(name="Barbell Row", sets=4, reps=10),
            TemplateExercise(name="Face Pull", sets=3, reps=15),
            TemplateExercise(name="Biceps Curl", sets=3, reps=12),
        ],
    ),
]


class BackupSnapshot(Record):
    """Shape of an exported backup file."""

    workouts: list[WorkoutRecord]
    templates: list[Template] = Field(default_factory=list)
    body_metrics: list[BodyMetric] = Field(
        default_factory=list, alias="bodyMetrics"
    )

    @model_validator(mode="after")
    def _unique_ids(self) -> "BackupSnapshot":
        for label, items in (
            ("workout", self.workouts),
            ("template", self.templates),
            ("body metric", [m for m in self.body_metrics if m.id is not None]),
        ):
            seen: set = set()
            for item in items:
                if item.id in seen:
                    raise ValueError(f"duplicate {label} id: {item.id}")
                seen.add(item.id)
        return self

    def to_export(self) -> dict:
        return self.model_dump(by_alias=True)
