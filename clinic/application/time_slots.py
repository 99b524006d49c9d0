"""Bookable half-hour slot labels and their chronological ordering.

Slots are stored as display labels ("9:00 AM", "1:30 PM") rather than times,
so any ordering or validation has to go through the helpers here: comparing
the raw strings would put "10:00 AM" before "9:00 AM".
"""
from datetime import datetime
from typing import List

OPENING_HOUR = 9
CLOSING_HOUR = 17
SLOT_MINUTES = 30

_LABEL_FORMAT = "%I:%M %p"


def format_slot(hour: int, minute: int) -> str:
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour - 12 if hour > 12 else (12 if hour == 0 else hour)
    return f"{display_hour}:{minute:02d} {period}"


def _generate_slots() -> List[str]:
    slots = []
    for hour in range(OPENING_HOUR, CLOSING_HOUR + 1):
        for minute in range(0, 60, SLOT_MINUTES):
            if hour == CLOSING_HOUR and minute > 0:
                break
            slots.append(format_slot(hour, minute))
    return slots


TIME_SLOTS: List[str] = _generate_slots()
_VALID_SLOTS = frozenset(TIME_SLOTS)


def is_valid_slot(label: str) -> bool:
    return label in _VALID_SLOTS


def slot_sort_key(label: str) -> int:
    """Minutes since midnight for a slot label.

    Raises ValueError for strings that are not in "H:MM AM/PM" form.
    """
    parsed = datetime.strptime(label.strip().upper(), _LABEL_FORMAT)
    return parsed.hour * 60 + parsed.minute
