"""Policy definitions for compatibility checking.

Policies hold the tunable numbers of the engine (matching tolerance, the
monthly approximation, the minimum evaluable period) apart from the
validators, so they can be tested and swapped independently.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta


class CompatibilityPolicy(ABC):
    """Abstract base class for compatibility tunables."""

    @abstractmethod
    def point_tolerance(self) -> timedelta:
        """Tolerance applied on both sides of a point time range."""
        pass

    @abstractmethod
    def weeks_per_month(self) -> int:
        """Multiplier turning a weekly count into an approximate monthly count."""
        pass

    @abstractmethod
    def minimum_evaluation_days(self) -> int:
        """Shortest period (in days) for which frequency targets apply."""
        pass

    @abstractmethod
    def scaled_requirement(self, count: int, active_days: int) -> int:
        """Weekly requirement scaled to a partial window.

        Args:
            count: Requirement for a full 7-day window.
            active_days: Days of the window inside the evaluated range.

        Returns:
            Requirement for the partial window.
        """
        pass


@dataclass
class DefaultCompatibilityPolicy(CompatibilityPolicy):
    """Default compatibility policy.

    - Point ranges ("07:00") match within ±15 minutes.
    - A month counts as 4 weeks. This is an approximation, not
      calendar-accurate month-length accounting.
    - Periods shorter than 7 days carry no frequency target.
    - Partial windows need the weekly count scaled by active days,
      rounded up.
    """

    point_tolerance_minutes: int = 15
    month_multiplier: int = 4
    min_evaluation_days: int = 7

    def point_tolerance(self) -> timedelta:
        return timedelta(minutes=self.point_tolerance_minutes)

    def weeks_per_month(self) -> int:
        return self.month_multiplier

    def minimum_evaluation_days(self) -> int:
        return self.min_evaluation_days

    def scaled_requirement(self, count: int, active_days: int) -> int:
        if active_days >= 7:
            return count
        return math.ceil(count * active_days / 7)
