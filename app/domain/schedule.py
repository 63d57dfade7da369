from datetime import date, datetime, timedelta
from typing import List

import pytz

# Pickup window: 4 PM to 8 PM in 20 minute steps, 8 PM only on the hour.
FIRST_PICKUP_HOUR = 16
LAST_PICKUP_HOUR = 20
SLOT_MINUTES = 20

CLOSED_WEEKDAYS = {6}  # Sunday


def pickup_grid() -> List[str]:
    slots = []
    for hour in range(FIRST_PICKUP_HOUR, LAST_PICKUP_HOUR + 1):
        for minute in range(0, 60, SLOT_MINUTES):
            if hour == LAST_PICKUP_HOUR and minute > 0:
                break
            slots.append(f"{hour:02d}:{minute:02d}")
    return slots


PICKUP_GRID = tuple(pickup_grid())


def business_now(timezone_name: str) -> datetime:
    return datetime.now(pytz.timezone(timezone_name))


def earliest_pickup_date(today: date) -> date:
    """No same-day orders."""
    return today + timedelta(days=1)


def retention_cutoff(today: date, retention_days: int) -> date:
    return today - timedelta(days=retention_days)


def parse_iso_date(value: str) -> date:
    """Strict YYYY-MM-DD; raises ValueError otherwise."""
    text = (value or "").strip()
    if len(text) != 10:
        raise ValueError(f"Invalid date: {value!r}")
    return datetime.strptime(text, "%Y-%m-%d").date()


def is_closed(day: date) -> bool:
    return day.weekday() in CLOSED_WEEKDAYS
