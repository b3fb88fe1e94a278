"""
Shared helpers for the generic data table.

Records come back from the API as loosely-typed dicts with optional
nested objects, so every cell goes through :func:`lookup`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

STATUS_COLORS = {
    # appointments
    'pending': 'yellow',
    'confirmed': 'green',
    'completed': 'blue',
    'cancelled': 'red',
    'rescheduled': 'orange',
    # people / rooms
    'active': 'green',
    'inactive': 'gray',
    'available': 'green',
    'occupied': 'red',
    'maintenance': 'orange',
    'reserved': 'orange',
    'admitted': 'blue',
    'discharged': 'gray',
    'on_leave': 'orange',
    # stock
    'in_stock': 'green',
    'low_stock': 'yellow',
    'out_of_stock': 'red',
    'dispensed': 'green',
    'partially_dispensed': 'orange',
    'discontinued': 'gray',
    # requests / billing
    'approved': 'green',
    'rejected': 'red',
    'issued': 'blue',
    'paid': 'green',
    'overdue': 'red',
}


def status_color(status: Any) -> str:
    return STATUS_COLORS.get(str(status or '').lower(), 'gray')


def status_label(status: Any) -> str:
    text = str(status or '').strip()
    if not text:
        return 'Unknown'
    return text.replace('_', ' ').title()


def lookup(data: Any, path: str, default: Any = None) -> Any:
    """``lookup(appt, 'original.doctor.department.name')`` without KeyErrors."""
    current = data
    for part in path.split('.'):
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, (list, tuple)) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else None
        else:
            current = getattr(current, part, None)
        if current is None:
            return default
    return current


def clean_filters(filters: Optional[dict], allowed: Optional[Iterable[str]] = None) -> dict:
    allowed_set = set(allowed) if allowed is not None else None
    out = {}
    for key, value in (filters or {}).items():
        if allowed_set is not None and key not in allowed_set:
            continue
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        out[key] = value.strip() if isinstance(value, str) else value
    return out


@dataclass(frozen=True)
class Column:
    key: str
    label: str
    kind: str = 'text'  # text | status | date | money | chips
    render: Optional[Callable[[dict], Any]] = None

    def value(self, row: dict) -> Any:
        if self.render is not None:
            return self.render(row)
        return lookup(row, self.key, '')


@dataclass(frozen=True)
class Action:
    """A per-row button in the data table."""
    label: str
    url: str
    color: str = 'blue'
    method: str = 'get'
    confirm: str = ''


def page_numbers(current: int, last: int, window: int = 2) -> List[Optional[int]]:
    """Page links around ``current`` with ``None`` for gaps."""
    pages: List[Optional[int]] = []
    for number in range(1, last + 1):
        if number in (1, last) or abs(number - current) <= window:
            pages.append(number)
        elif pages and pages[-1] is not None:
            pages.append(None)
    return pages


def table_rows(columns: List[Column], records: List[dict],
               actions: Optional[Callable[[dict], List[Action]]] = None) -> List[dict]:
    """Pair each record with its rendered cells and, when given, its row actions."""
    return [
        {
            'record': rec,
            'cells': [{'column': col, 'value': col.value(rec)} for col in columns],
            'actions': actions(rec) if actions else [],
        }
        for rec in records
    ]
