"""
Counselor availability for the booking page.

Enumerates bookable hourly slots for a counselor on a given date. This is a
bounded enumeration over one day, recomputed on every call.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Dict, FrozenSet, List

if TYPE_CHECKING:
    from .routing import Counselor

logger = logging.getLogger(__name__)

FIRST_HOUR = 10
LAST_HOUR = 20
BLOCKED_HOURS = frozenset({14})  # 2 PM is never offered
MIN_LEAD_HOURS = 2

# datetime.weekday() values
MONDAY, SUNDAY = 0, 6

BASE_HOURS: List[int] = [
    h for h in range(FIRST_HOUR, LAST_HOUR + 1) if h not in BLOCKED_HOURS
]


@dataclass(frozen=True)
class TimeSlot:
    """A bookable one-hour slot."""
    hour: int

    @property
    def label(self) -> str:
        """12-hour label as shown on the booking page ("10 AM", "12 PM", "4 PM")."""
        if self.hour == 12:
            return "12 PM"
        if self.hour > 12:
            return f"{self.hour - 12} PM"
        return f"{self.hour} AM"

    def to_dict(self) -> Dict[str, object]:
        return {"hour": self.hour, "label": self.label}


@dataclass(frozen=True)
class AvailabilityRules:
    """
    Per-counselor weekly availability.

    Days in closed_days offer nothing; hours_by_weekday overrides
    default_hours for specific weekdays.
    """
    default_hours: FrozenSet[int]
    closed_days: FrozenSet[int] = frozenset()
    hours_by_weekday: Dict[int, FrozenSet[int]] = field(default_factory=dict)

    def hours_for(self, day: date) -> FrozenSet[int]:
        weekday = day.weekday()
        if weekday in self.closed_days:
            return frozenset()
        return self.hours_by_weekday.get(weekday, self.default_hours)


def available_slots(counselor: "Counselor", day: date, now: datetime) -> List[TimeSlot]:
    """
    List the slots a counselor can be booked for on a date.

    Args:
        counselor: Counselor whose rules apply
        day: Calendar date being booked
        now: Current local time; when day is today, slots starting before
            now.hour + 2 are excluded

    Returns:
        Slots in chronological order; empty when nothing is bookable
    """
    allowed = counselor.availability.hours_for(day)
    min_hour = now.hour + MIN_LEAD_HOURS if day == now.date() else FIRST_HOUR

    slots = [
        TimeSlot(hour) for hour in BASE_HOURS
        if hour in allowed and hour >= min_hour
    ]

    if not slots:
        logger.debug(f"No slots for {counselor.counselor_id.value} on {day.isoformat()}")
    return slots


def is_slot_available(counselor: "Counselor", day: date, label: str, now: datetime) -> bool:
    """Check that a slot label is currently offered for a counselor and date."""
    return any(slot.label == label for slot in available_slots(counselor, day, now))


def booking_calendar(today: date, days: int = 7) -> List[date]:
    """Consecutive dates offered on the booking page, starting today."""
    return [today + timedelta(days=i) for i in range(days)]


def format_booking_date(day: date) -> str:
    """Render a date the way the booking form stores it ("Monday, January 5, 2026")."""
    return f"{day.strftime('%A')}, {day.strftime('%B')} {day.day}, {day.year}"
