"""
Calendar arithmetic shared by the business apps.

None of these helpers know what "today" is; callers pass the effective date
obtained from simulator.clock.
"""
from datetime import date, timedelta
from typing import Optional

# Length of one membership payment cycle (4 weeks)
PAYMENT_CYCLE_DAYS = 28


def add_months(start: date, months: int) -> date:
    """
    Add (or subtract) months while keeping the day in a valid range
    (e.g. Jan 31 + 1 month => Feb 28/29).
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    # last day of target month
    if m == 12:
        next_month = date(y + 1, 1, 1)
    else:
        next_month = date(y, m + 1, 1)
    last_day = next_month - timedelta(days=1)
    day = min(start.day, last_day.day)
    return date(y, m, day)


def month_bounds(day: date) -> tuple[date, date]:
    """First day of the month containing ``day`` and first day of the next one."""
    start = day.replace(day=1)
    return start, add_months(start, 1)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def next_payment_date(from_date: date) -> date:
    return from_date + timedelta(days=PAYMENT_CYCLE_DAYS)


def shift_for_freeze(current_due: Optional[date], freeze_days: int, today: date) -> date:
    """Push a due date back by the length of a freeze."""
    if current_due is None:
        return next_payment_date(today)
    return current_due + timedelta(days=freeze_days)
