import math
from typing import Any, Iterable, Optional

import numpy as np


def _set_values(entry: Any) -> tuple[float, int]:
    """Return ``(weight, reps)`` from a set model or mapping."""
    if isinstance(entry, dict):
        return float(entry.get("weight") or 0), int(entry.get("reps") or 0)
    return float(entry.weight), int(entry.reps)


class MathTools:
    """Provides essential mathematical utilities for workout calculations."""

    EPLEY_DIVISOR: int = 30
    BODY_FAT_BMI_COEFF: float = 1.20
    BODY_FAT_AGE_COEFF: float = 0.23
    BODY_FAT_MALE_OFFSET: float = 10.8
    BODY_FAT_CONSTANT: float = 5.4

    # Upper bounds (exclusive) for athlete, fitness and average.
    BODY_FAT_RANGES = {
        True: (14.0, 18.0, 25.0),
        False: (21.0, 25.0, 32.0),
    }
    BODY_FAT_LABELS = ("athlete", "fitness", "average", "obese")

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @staticmethod
    def round_half_up(value: float) -> int:
        return int(math.floor(value + 0.5))

    @classmethod
    def epley_1rm(cls, weight: float, reps: int) -> float:
        """Return the estimated one-rep max using the Epley formula.

        Zero weight or reps yields 0 and a single rep returns ``weight``
        unchanged. Other estimates are rounded to whole units.
        """
        if reps < 0:
            raise ValueError("reps must be non-negative")
        if not weight or not reps:
            return 0
        if reps == 1:
            return weight
        return cls.round_half_up(weight * (1 + reps / cls.EPLEY_DIVISOR))

    @classmethod
    def best_set(cls, sets: Iterable[Any]) -> Optional[dict]:
        """Return the set with the greatest estimated 1RM or ``None``.

        The first set wins ties. Sets whose estimate is 0 are never chosen.
        """
        values = [_set_values(s) for s in sets]
        if not values:
            return None
        estimates = np.array([cls.epley_1rm(w, r) for w, r in values], dtype=float)
        idx = int(np.argmax(estimates))
        if estimates[idx] <= 0:
            return None
        weight, reps = values[idx]
        return {"weight": weight, "reps": reps, "one_rep_max": cls.epley_1rm(weight, reps)}

    @staticmethod
    def volume(sets: Iterable[Any]) -> float:
        """Compute training volume as the sum of reps times weight."""
        vol = 0.0
        for entry in sets:
            weight, reps = _set_values(entry)
            vol += reps * weight
        return vol

    @staticmethod
    def bmi(weight_kg: float, height_cm: float) -> float:
        if weight_kg <= 0 or height_cm <= 0:
            raise ValueError("weight and height must be positive")
        height_m = height_cm / 100
        return weight_kg / (height_m**2)

    @classmethod
    def body_fat_percentage(
        cls, age: float, is_male: bool, height_cm: float, weight_kg: float
    ) -> float:
        """Estimate body fat from BMI, age and gender, floored at 0."""
        if age <= 0:
            raise ValueError("age must be positive")
        bmi = cls.bmi(weight_kg, height_cm)
        pct = (
            cls.BODY_FAT_BMI_COEFF * bmi
            + cls.BODY_FAT_AGE_COEFF * age
            - cls.BODY_FAT_MALE_OFFSET * (1 if is_male else 0)
            - cls.BODY_FAT_CONSTANT
        )
        return round(max(0.0, pct), 1)

    @classmethod
    def body_fat_category(cls, percentage: float, is_male: bool) -> str:
        bounds = cls.BODY_FAT_RANGES[bool(is_male)]
        for label, upper in zip(cls.BODY_FAT_LABELS, bounds):
            if percentage < upper:
                return label
        return cls.BODY_FAT_LABELS[-1]
