from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable

import numpy as np


class MathTools:
    """Provides essential mathematical utilities for workout calculations."""

    EPL_COEFF: float = 0.0333
    MAX_EPLEY_REPS: int = 8

    @classmethod
    def epley_1rm(cls, weight: float, reps: int, factor: float = 1.0) -> float:
        """Return the estimated one-rep max using the Epley formula."""
        if reps < 0:
            raise ValueError("reps must be non-negative")
        rep_term = min(reps, cls.MAX_EPLEY_REPS)
        return weight * (1 + cls.EPL_COEFF * rep_term) * factor

    @staticmethod
    def to_float(value: object, default: float = 0.0) -> float:
        """Parse ``value`` as a float, returning ``default`` when it is not numeric."""
        if value is None or value == "":
            return default
        try:
            result = float(value)
        except (TypeError, ValueError):
            return default
        if np.isnan(result) or np.isinf(result):
            return default
        return result

    @classmethod
    def to_int(cls, value: object, default: int = 0) -> int:
        """Parse ``value`` as an integer count (``"8.5"`` gives 8)."""
        return int(cls.to_float(value, default))

    @staticmethod
    def round_half_away(value: float, increment: float = 1.0) -> float:
        """Round ``value`` to the nearest ``increment``, ties away from zero.

        Decimal arithmetic keeps ``82.5`` from drifting to ``82.4999`` so the
        displayed load is reproducible.
        """
        if increment <= 0:
            raise ValueError("increment must be positive")
        step = Decimal(str(increment))
        units = (Decimal(str(value)) / step).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        result = units * step
        return float(result)

    @classmethod
    def percentage_of(
        cls, reference: float, percentage: float, increment: float = 1.0
    ) -> float:
        """Return ``percentage`` % of ``reference`` rounded to ``increment``."""
        try:
            raw = Decimal(str(reference)) * Decimal(str(percentage)) / Decimal(100)
        except InvalidOperation:
            raise ValueError("reference and percentage must be numeric")
        return cls.round_half_away(float(raw), increment)

    @staticmethod
    def tonnage(sets: Iterable[tuple[int, float]]) -> float:
        """Compute tonnage as the sum of reps times load."""
        vol = 0.0
        for reps, load in sets:
            vol += reps * load
        return vol

    @staticmethod
    def mean(values: Iterable[float]) -> float:
        """Return the arithmetic mean of ``values`` or 0.0 when empty."""
        data = list(values)
        if not data:
            return 0.0
        return float(np.mean(np.array(data, dtype=float)))

    @staticmethod
    def percent_change(current: float, previous: float) -> float:
        """Return the relative change from ``previous`` to ``current`` in percent."""
        if previous == 0:
            raise ValueError("previous must not be zero")
        return (current - previous) / previous * 100
