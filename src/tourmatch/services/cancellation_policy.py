"""Cancellation policy for tourist-initiated booking cancellations.

A tourist may cancel a booking only while at least 24 hours remain before
the tour starts. The start instant is midnight UTC of the booking's start
date.
"""

import datetime as dt
from typing import TypedDict


class CancellationEvaluation(TypedDict):
    """Result of evaluating a cancellation against the policy."""

    allowed: bool
    hours_until_start: float  # Negative once the tour has started
    description: str


class CancellationPolicyService:
    """Service deciding whether a booking may still be cancelled."""

    # Minimum notice before the start instant
    MINIMUM_NOTICE_HOURS = 24

    @staticmethod
    def start_instant(start_date: dt.date) -> dt.datetime:
        """Midnight UTC of the tour's first day."""
        return dt.datetime.combine(start_date, dt.time.min, tzinfo=dt.timezone.utc)

    def evaluate(
        self,
        start_date: dt.date,
        now: dt.datetime | None = None,
    ) -> CancellationEvaluation:
        """Evaluate a cancellation made at `now`.

        Args:
            start_date: Booking start date
            now: Time of the cancellation request (defaults to current UTC time).
                Naive datetimes are treated as UTC.

        Returns:
            CancellationEvaluation saying whether the cancellation is allowed
        """
        now = now or dt.datetime.now(dt.timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=dt.timezone.utc)

        remaining = self.start_instant(start_date) - now
        hours_until_start = remaining.total_seconds() / 3600
        allowed = remaining >= dt.timedelta(hours=self.MINIMUM_NOTICE_HOURS)

        if allowed:
            description = (
                f"Cancellation allowed: {hours_until_start:.2f} hours before start "
                f"(policy: at least {self.MINIMUM_NOTICE_HOURS} hours notice)"
            )
        elif hours_until_start < 0:
            description = "Cancellation not allowed: the tour has already started"
        else:
            description = (
                f"Cancellation not allowed: only {hours_until_start:.2f} hours before start "
                f"(policy: at least {self.MINIMUM_NOTICE_HOURS} hours notice)"
            )

        return CancellationEvaluation(
            allowed=allowed,
            hours_until_start=hours_until_start,
            description=description,
        )

    def get_policy_description(self) -> str:
        """Get human-readable description of the cancellation policy."""
        return (
            "Cancellation Policy:\n"
            f"• Tourists may cancel up to {self.MINIMUM_NOTICE_HOURS} hours before the "
            "tour starts (midnight UTC of the start date)\n"
            f"• Within {self.MINIMUM_NOTICE_HOURS} hours of the start: contact the guide"
        )
