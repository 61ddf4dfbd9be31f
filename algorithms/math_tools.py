import math

import numpy as np


class MathTools:
    """Strength formulas used by the calculators and the API."""

    EPLEY_DIVISOR: float = 30.0
    BRZYCKI_A: float = 1.0278
    BRZYCKI_B: float = 0.0278
    LANDER_A: float = 101.3
    LANDER_B: float = 2.67123
    KG_TO_LB: float = 2.20462
    MAX_TABLE_REPS: int = 20

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @classmethod
    def epley_1rm(cls, weight: float, reps: int) -> float:
        return weight * (1 + reps / cls.EPLEY_DIVISOR)

    @classmethod
    def brzycki_1rm(cls, weight: float, reps: int) -> float:
        return weight / (cls.BRZYCKI_A - cls.BRZYCKI_B * reps)

    @classmethod
    def lander_1rm(cls, weight: float, reps: int) -> float:
        return (100 * weight) / (cls.LANDER_A - cls.LANDER_B * reps)

    @classmethod
    def estimated_1rm(cls, weight: float, reps: int) -> float:
        """Return the estimated one-rep max as the mean of three formulas.

        Epley, Brzycki and Lander are averaged and rounded half up to the nearest
        unit. At high rep counts Brzycki and Lander turn non-positive; the
        rounded Epley estimate is returned instead.
        """
        if reps <= 0 or weight <= 0:
            return 0
        if reps == 1:
            return weight
        epley = cls.epley_1rm(weight, reps)
        brzycki = cls.brzycki_1rm(weight, reps)
        lander = cls.lander_1rm(weight, reps)
        if brzycki <= 0 or lander <= 0:
            return math.floor(epley + 0.5)
        return math.floor((epley + brzycki + lander) / 3 + 0.5)

    @classmethod
    def rep_max_table(cls, one_rm: float, max_reps: int = 12) -> list[tuple[int, float]]:
        """Return ``(reps, weight)`` pairs estimated from ``one_rm`` via inverse Epley."""
        if one_rm <= 0:
            raise ValueError("one_rm must be positive")
        if not 1 <= max_reps <= cls.MAX_TABLE_REPS:
            raise ValueError(f"max_reps must be between 1 and {cls.MAX_TABLE_REPS}")
        reps = np.arange(1, max_reps + 1)
        weights = np.where(reps == 1, one_rm, one_rm / (1 + reps / cls.EPLEY_DIVISOR))
        return [(int(r), round(float(w), 1)) for r, w in zip(reps, weights)]

    @classmethod
    def convert_weight(cls, value: float, from_unit: str, to_unit: str) -> float:
        if from_unit == to_unit:
            return value
        if (from_unit, to_unit) == ("kg", "lb"):
            return round(value * cls.KG_TO_LB, 2)
        if (from_unit, to_unit) == ("lb", "kg"):
            return round(value / cls.KG_TO_LB, 2)
        raise ValueError(f"unsupported units: {from_unit} -> {to_unit}")
