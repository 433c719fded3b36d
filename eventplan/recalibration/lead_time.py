"""Planning horizon and scale factor from today and the event date."""

import math
from datetime import date

CANONICAL_HORIZON_MONTHS = 12
DAYS_PER_MONTH = 30


def calculate_lead_time_months(event_date: date, today: date | None = None) -> int:
    """Whole months (30-day, rounded up) from *today* to the event. Never negative."""
    if today is None:
        today = date.today()
    days_between = (event_date - today).days
    return max(math.ceil(days_between / DAYS_PER_MONTH), 0)


def calculate_scale_factor(
    lead_time_months: int, canonical_months: int = CANONICAL_HORIZON_MONTHS
) -> float:
    return lead_time_months / canonical_months
