"""
Availability and reliability formulas.
Each function implements one formula; the same constants are exposed as
pipeline expressions so stores can evaluate them inline.
"""

import math
from typing import Tuple

from ..domain.pipeline import Arithmetic, Expression, FieldRef, Literal
from ..ports.exceptions import FormulaError


class AvailabilityCalculations:
    """
    Static class with the availability/reliability formulas.
    Inputs are mean fractions of the bucket spent up, down and unknown.
    """

    # 1 + epsilon keeps the denominator away from zero when avg_unknown == 1
    UNKNOWN_OFFSET = 1.00000001
    PERCENT = 100

    @staticmethod
    def calculate_availability(avg_up: float, avg_unknown: float, avg_down: float = 0.0) -> float:
        """
        Calculate availability.

        Formula: A = avg_up / (1.00000001 - avg_unknown) * 100

        Args:
            avg_up: Mean up fraction
            avg_unknown: Mean unknown fraction
            avg_down: Mean down fraction, only used for error reporting

        Returns:
            Availability percentage, not clamped

        Raises:
            FormulaError: If the result is not finite
        """
        denominator = AvailabilityCalculations.UNKNOWN_OFFSET - avg_unknown
        return AvailabilityCalculations._percentage(
            "availability", avg_up, denominator, avg_up, avg_down, avg_unknown
        )

    @staticmethod
    def calculate_reliability(avg_up: float, avg_unknown: float, avg_down: float) -> float:
        """
        Calculate reliability.

        Formula: R = avg_up / ((1.00000001 - avg_unknown) - avg_down) * 100

        Raises:
            FormulaError: If the result is not finite
        """
        denominator = (AvailabilityCalculations.UNKNOWN_OFFSET - avg_unknown) - avg_down
        return AvailabilityCalculations._percentage(
            "reliability", avg_up, denominator, avg_up, avg_down, avg_unknown
        )

    @staticmethod
    def calculate_availability_reliability(
        avg_up: float,
        avg_down: float,
        avg_unknown: float
    ) -> Tuple[float, float]:
        """Calculate both metrics for one bucket."""
        return (
            AvailabilityCalculations.calculate_availability(avg_up, avg_unknown, avg_down),
            AvailabilityCalculations.calculate_reliability(avg_up, avg_unknown, avg_down),
        )

    @staticmethod
    def ensure_finite(metric: str, value: float, avg_up=None, avg_down=None, avg_unknown=None) -> float:
        """Reject NaN/inf values computed elsewhere (e.g. inline by the store)."""
        if value is None or not math.isfinite(value):
            raise FormulaError(metric, avg_up, avg_down, avg_unknown)
        return value

    @staticmethod
    def _percentage(metric, numerator, denominator, avg_up, avg_down, avg_unknown) -> float:
        if denominator == 0:
            raise FormulaError(metric, avg_up, avg_down, avg_unknown)
        value = numerator / denominator * AvailabilityCalculations.PERCENT
        return AvailabilityCalculations.ensure_finite(metric, value, avg_up, avg_down, avg_unknown)

    # Pipeline expression forms

    @staticmethod
    def availability_expression(up: str = "uptime", unknown: str = "unknown") -> Expression:
        return Arithmetic("multiply", (
            Arithmetic("divide", (
                FieldRef(up),
                Arithmetic("subtract", (Literal(AvailabilityCalculations.UNKNOWN_OFFSET), FieldRef(unknown))),
            )),
            Literal(AvailabilityCalculations.PERCENT),
        ))

    @staticmethod
    def reliability_expression(
        up: str = "uptime",
        unknown: str = "unknown",
        down: str = "downtime"
    ) -> Expression:
        return Arithmetic("multiply", (
            Arithmetic("divide", (
                FieldRef(up),
                Arithmetic("subtract", (
                    Arithmetic("subtract", (Literal(AvailabilityCalculations.UNKNOWN_OFFSET), FieldRef(unknown))),
                    FieldRef(down),
                )),
            )),
            Literal(AvailabilityCalculations.PERCENT),
        ))
