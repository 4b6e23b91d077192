"""Unit tests for the 24-hour booking cancellation rule.

The start instant is midnight UTC of the booking's start date.
"""

import datetime as dt

import pytest

from tourmatch.services.cancellation_policy import CancellationPolicyService

START = dt.date(2026, 7, 20)
START_INSTANT = dt.datetime(2026, 7, 20, tzinfo=dt.timezone.utc)


@pytest.fixture
def policy() -> CancellationPolicyService:
    return CancellationPolicyService()


class TestBoundary:
    """Tests for the exact 24-hour boundary."""

    def test_exactly_24_hours_is_allowed(self, policy: CancellationPolicyService) -> None:
        result = policy.evaluate(START, START_INSTANT - dt.timedelta(hours=24))

        assert result["allowed"] is True
        assert result["hours_until_start"] == 24

    def test_23_hours_59_minutes_is_refused(self, policy: CancellationPolicyService) -> None:
        result = policy.evaluate(START, START_INSTANT - dt.timedelta(hours=23, minutes=59))

        assert result["allowed"] is False
        assert "23.98 hours" in result["description"]

    def test_one_second_short_is_refused(self, policy: CancellationPolicyService) -> None:
        now = START_INSTANT - dt.timedelta(hours=24) + dt.timedelta(seconds=1)

        assert policy.evaluate(START, now)["allowed"] is False


class TestOtherTimes:
    def test_well_ahead_is_allowed(self, policy: CancellationPolicyService) -> None:
        result = policy.evaluate(START, START_INSTANT - dt.timedelta(days=10))

        assert result["allowed"] is True
        assert "Cancellation allowed" in result["description"]

    def test_after_start_is_refused(self, policy: CancellationPolicyService) -> None:
        result = policy.evaluate(START, START_INSTANT + dt.timedelta(hours=3))

        assert result["allowed"] is False
        assert result["hours_until_start"] == -3
        assert "already started" in result["description"]

    def test_naive_now_is_treated_as_utc(self, policy: CancellationPolicyService) -> None:
        naive = dt.datetime(2026, 7, 19, 0, 0)

        assert policy.evaluate(START, naive)["allowed"] is True

    def test_other_timezone_is_normalized(self, policy: CancellationPolicyService) -> None:
        """23:00 on the 18th at UTC-2 is 01:00 UTC on the 19th: 23h before start."""
        minus_two = dt.timezone(dt.timedelta(hours=-2))
        now = dt.datetime(2026, 7, 18, 23, 0, tzinfo=minus_two)

        assert policy.evaluate(START, now)["allowed"] is False

    def test_policy_description_mentions_notice(self, policy: CancellationPolicyService) -> None:
        assert "24 hours" in policy.get_policy_description()
