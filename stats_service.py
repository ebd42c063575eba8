from __future__ import annotations
import datetime
from collections import Counter
from typing import Dict, List, Optional

from algorithms import MathTools, TrainingLoad
from models import WorkoutRecord


class StatisticsService:
    """Compute workout statistics for analysis."""

    def __init__(self, store, heatmap_days: int = 90) -> None:
        self.store = store
        self.heatmap_days = heatmap_days

    async def _records(self, period: str = "all") -> List[WorkoutRecord]:
        records = await self.store.workouts.fetch_all_workouts()
        return TrainingLoad.records_in_period(records, period)

    async def overview(self, period: str = "all") -> Dict[str, object]:
        """Return workout count, set count, volume and favorite exercise."""
        records = await self._records(period)
        if not records:
            return {"workouts": 0, "sets": 0, "volume": 0.0, "favorite_exercise": None}
        favorite = Counter(r.exercise for r in records).most_common(1)[0][0]
        return {
            "workouts": len(records),
            "sets": sum(len(r.sets) for r in records),
            "volume": round(TrainingLoad.total_volume(records), 2),
            "favorite_exercise": favorite,
        }

    async def daily_volume(self, period: str = "all") -> List[Dict[str, float]]:
        records = await self._records(period)
        by_date = TrainingLoad.daily_volume(records)
        return [{"date": d, "volume": round(v, 2)} for d, v in by_date.items()]

    async def activity_heatmap(
        self,
        window_days: Optional[int] = None,
        today: Optional[datetime.date] = None,
    ) -> List[Dict[str, object]]:
        records = await self.store.workouts.fetch_all_workouts()
        days = self.heatmap_days if window_days is None else window_days
        return TrainingLoad.activity_heatmap(records, days, today)

    async def progression(self, exercise: str) -> List[Dict[str, float]]:
        """Per-session maxima and best-set 1RM for ``exercise``, oldest first."""
        records = await self.store.workouts.fetch_all_workouts()
        result = []
        for record in records:
            if record.exercise != exercise:
                continue
            best = MathTools.best_set(record.sets)
            result.append(
                {
                    "date": record.date,
                    "max_weight": max(s.weight for s in record.sets),
                    "max_reps": max(s.reps for s in record.sets),
                    "est_1rm": best["one_rep_max"] if best else 0,
                }
            )
        return result

    async def personal_records(self) -> List[Dict[str, object]]:
        """Return the best set for each exercise based on estimated 1RM."""
        records: Dict[str, Dict[str, object]] = {}
        for record in await self.store.workouts.fetch_all_workouts():
            best = MathTools.best_set(record.sets)
            if best is None:
                continue
            current = records.get(record.exercise)
            if current is None or best["one_rep_max"] > current["est_1rm"]:
                records[record.exercise] = {
                    "exercise": record.exercise,
                    "date": record.date,
                    "weight": best["weight"],
                    "reps": best["reps"],
                    "est_1rm": best["one_rep_max"],
                }
        return sorted(records.values(), key=lambda x: x["exercise"])

    async def body_weight_history(self) -> List[Dict[str, object]]:
        history = await self.store.body_metrics.fetch_history()
        return [{"date": m.date, "weight": m.weight} for m in history]

    async def body_fat(
        self,
        age: float,
        is_male: bool,
        height_cm: float,
        weight_kg: Optional[float] = None,
    ) -> Dict[str, object]:
        """Estimate body fat, defaulting to the latest logged body weight."""
        if weight_kg is None:
            weight_kg = await self.store.body_metrics.fetch_latest_weight()
            if weight_kg is None:
                raise ValueError("no body weight logged")
        pct = MathTools.body_fat_percentage(age, is_male, height_cm, weight_kg)
        return {
            "weight": weight_kg,
            "percentage": pct,
            "category": MathTools.body_fat_category(pct, is_male),
        }
