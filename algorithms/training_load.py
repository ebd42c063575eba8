import datetime
from typing import Any, Iterable, Optional

import pandas as pd

from models import parse_timestamp

from .math_tools import MathTools


def _fields(record: Any) -> tuple[Optional[str], str, list]:
    if isinstance(record, dict):
        return record.get("id"), record["date"], record.get("sets") or []
    return record.id, record.date, record.sets


class TrainingLoad:
    """Aggregate workload figures over collections of workout records."""

    PERIOD_DAYS = {"week": 7, "month": 30, "all": None}

    @staticmethod
    def total_volume(records: Iterable[Any]) -> float:
        return sum(MathTools.volume(_fields(r)[2]) for r in records)

    @staticmethod
    def daily_volume(records: Iterable[Any]) -> dict[str, float]:
        """Return summed volume per UTC calendar day, keys ascending."""
        by_date: dict[str, float] = {}
        for record in records:
            _, date, sets = _fields(record)
            day = parse_timestamp(date).date().isoformat()
            by_date[day] = by_date.get(day, 0.0) + MathTools.volume(sets)
        return {d: by_date[d] for d in sorted(by_date)}

    @staticmethod
    def activity_heatmap(
        records: Iterable[Any],
        window_days: int = 90,
        today: Optional[datetime.date] = None,
    ) -> list[dict]:
        """Return ``window_days + 1`` entries of ``{date, count}``, oldest first.

        ``count`` is the number of distinct records on that UTC day; days
        without workouts are included with 0.
        """
        if window_days < 0:
            raise ValueError("window_days must be non-negative")
        today = today or datetime.datetime.now(datetime.timezone.utc).date()
        days = pd.date_range(end=pd.Timestamp(today), periods=window_days + 1, freq="D")
        seen: set = set()
        record_days: list[str] = []
        for record in records:
            rid, date, _ = _fields(record)
            if rid is not None:
                if rid in seen:
                    continue
                seen.add(rid)
            record_days.append(parse_timestamp(date).date().isoformat())
        counts = pd.Series(record_days, dtype=object).value_counts()
        heatmap = []
        for day in days:
            key = day.date().isoformat()
            heatmap.append({"date": key, "count": int(counts.get(key, 0))})
        return heatmap

    @classmethod
    def records_in_period(
        cls,
        records: Iterable[Any],
        period: str = "all",
        now: Optional[datetime.datetime] = None,
    ) -> list:
        """Filter records to the last week (7 days), month (30 days) or all."""
        if period not in cls.PERIOD_DAYS:
            raise ValueError(f"unknown period: {period}")
        days = cls.PERIOD_DAYS[period]
        if days is None:
            return list(records)
        now = now or datetime.datetime.now(datetime.timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=datetime.timezone.utc)
        cutoff = now - datetime.timedelta(days=days)
        return [r for r in records if parse_timestamp(_fields(r)[1]) >= cutoff]
