"""Tests for compatibility policies."""

from datetime import timedelta

import pytest

from goalsched.domain.policies import CompatibilityPolicy, DefaultCompatibilityPolicy


class TestDefaultCompatibilityPolicy:
    """Tests for DefaultCompatibilityPolicy."""

    def test_default_point_tolerance(self):
        """Point ranges match within 15 minutes."""
        policy = DefaultCompatibilityPolicy()
        assert policy.point_tolerance() == timedelta(minutes=15)

    def test_default_weeks_per_month(self):
        """A month is approximated as four weeks."""
        policy = DefaultCompatibilityPolicy()
        assert policy.weeks_per_month() == 4

    def test_default_minimum_evaluation_days(self):
        """Frequency targets need at least a full week."""
        policy = DefaultCompatibilityPolicy()
        assert policy.minimum_evaluation_days() == 7

    def test_custom_values(self):
        """Custom values should be respected."""
        policy = DefaultCompatibilityPolicy(
            point_tolerance_minutes=5,
            month_multiplier=5,
            min_evaluation_days=14,
        )
        assert policy.point_tolerance() == timedelta(minutes=5)
        assert policy.weeks_per_month() == 5
        assert policy.minimum_evaluation_days() == 14

    @pytest.mark.parametrize(
        "count,active_days,expected",
        [
            (3, 7, 3),
            (3, 3, 2),
            (3, 1, 1),
            (7, 2, 2),
            (5, 6, 5),
            (0, 3, 0),
            (1, 1, 1),
        ],
    )
    def test_scaled_requirement_rounds_up(self, count, active_days, expected):
        policy = DefaultCompatibilityPolicy()
        assert policy.scaled_requirement(count, active_days) == expected

    def test_is_compatibility_policy(self):
        assert isinstance(DefaultCompatibilityPolicy(), CompatibilityPolicy)

    def test_abstract_policy_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            CompatibilityPolicy()
