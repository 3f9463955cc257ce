"""Settlement date prediction for pending statement lines."""

from datetime import date, datetime, timedelta

# KlikBCA stops posting for the day at 22:00 local time
CUTOFF_HOUR = 22

_FRIDAY = 4
_SATURDAY = 5
_SUNDAY = 6


def resolve_clearance_date(now: datetime) -> date:
    """Return the date a transaction pending at ``now`` is expected to post.

    ``now`` must already be in the bank's local zone. Weekends do not post;
    past the cutoff a transaction moves to the next processing day, and a
    Friday-night transaction lands on Monday.
    """
    today = now.date()
    weekday = now.weekday()
    before_cutoff = now.hour < CUTOFF_HOUR

    if weekday == _FRIDAY:
        return today if before_cutoff else today + timedelta(days=3)
    if weekday == _SATURDAY:
        return today + timedelta(days=2)
    if weekday == _SUNDAY:
        return today + timedelta(days=1)
    return today if before_cutoff else today + timedelta(days=1)
