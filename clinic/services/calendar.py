"""Month grid and booking-time helpers for the appointment calendars."""
from __future__ import annotations

import calendar as _calendar
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from django.utils import timezone

HOURS = [f'{h:02d}' for h in range(1, 13)]
MINUTES = ['00', '15', '30', '45']
MERIDIEMS = ['AM', 'PM']
WEEKDAY_NAMES = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']


def local_today() -> date:
    return timezone.localdate()


def is_past(day: date, today: Optional[date] = None) -> bool:
    """True when ``day`` is strictly before today (local midnight)."""
    return day < (today or local_today())


def can_select(day: date, today: Optional[date] = None) -> bool:
    return not is_past(day, today)


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_grid(year: int, month: int, today: Optional[date] = None) -> List[List[Optional[dict]]]:
    """Sunday-first weeks; blanks before the first day and after the last are ``None``."""
    today = today or local_today()
    first_weekday, days_in_month = _calendar.monthrange(year, month)
    leading = (first_weekday + 1) % 7  # monthrange is Monday-first

    cells: List[Optional[dict]] = [None] * leading
    for number in range(1, days_in_month + 1):
        day = date(year, month, number)
        cells.append({
            'day': number,
            'date': day.isoformat(),
            'is_today': day == today,
            'is_past': is_past(day, today),
        })
    while len(cells) % 7:
        cells.append(None)
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]


def month_context(year: int, month: int, today: Optional[date] = None) -> dict:
    prev_year, prev_month = shift_month(year, month, -1)
    next_year, next_month = shift_month(year, month, 1)
    return {
        'year': year,
        'month': month,
        'month_name': _calendar.month_name[month],
        'weekdays': WEEKDAY_NAMES,
        'weeks': month_grid(year, month, today),
        'prev': {'year': prev_year, 'month': prev_month},
        'next': {'year': next_year, 'month': next_month},
    }


def to_24h(hour: str, minute: str, meridiem: str) -> str:
    """``('02', '30', 'PM')`` -> ``'14:30'``."""
    h = int(hour) % 12
    if meridiem.upper() == 'PM':
        h += 12
    return f'{h:02d}:{int(minute):02d}'


def parse_date(value: str | None) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        return None


def appointment_date(appointment: dict) -> Optional[date]:
    return parse_date(appointment.get('appointment_date') or appointment.get('date'))


def group_by_date(appointments: Iterable[dict]) -> Dict[str, List[dict]]:
    buckets: Dict[str, List[dict]] = defaultdict(list)
    for appointment in appointments:
        day = appointment_date(appointment)
        if day is not None:
            buckets[day.isoformat()].append(appointment)
    return dict(buckets)


def month_bounds(year: int, month: int) -> Tuple[str, str]:
    last = _calendar.monthrange(year, month)[1]
    return date(year, month, 1).isoformat(), date(year, month, last).isoformat()
