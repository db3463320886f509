"""Sliding-window date arithmetic.

The window is not a calendar week: every transfer expires on its own,
``period_days`` after its own timestamp. The next capacity release is
therefore the reset date of the single oldest transfer still inside the
window.
"""

from datetime import datetime, timedelta

ONE_DAY = timedelta(days=1)


def window_start(as_of: datetime, period_days: int) -> datetime:
    """First instant (inclusive) of the window ending at ``as_of``."""
    return as_of - timedelta(days=period_days)


def reset_date(oldest_transfer_date: datetime, period_days: int) -> datetime:
    """Instant at which a transfer stops counting toward the window."""
    return oldest_transfer_date + timedelta(days=period_days)


def days_until(target: datetime, as_of: datetime) -> int:
    """Whole days from ``as_of`` to ``target``, rounded up, never negative.

    Uses exact timedelta division so a reset one microsecond away still
    counts as one day.
    """
    delta = target - as_of
    if delta <= timedelta(0):
        return 0
    days, remainder = divmod(delta, ONE_DAY)
    return days + (1 if remainder else 0)
