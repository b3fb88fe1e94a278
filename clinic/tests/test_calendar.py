from datetime import date

from clinic.services.calendar import (
    can_select,
    group_by_date,
    is_past,
    month_bounds,
    month_context,
    month_grid,
    shift_month,
    to_24h,
)

TODAY = date(2026, 10, 17)


def test_grid_is_sunday_first_with_leading_blanks():
    weeks = month_grid(2026, 10, TODAY)
    # 1 October 2026 is a Thursday
    assert weeks[0][:4] == [None, None, None, None]
    assert weeks[0][4]['day'] == 1
    assert len(weeks) == 5
    assert all(len(week) == 7 for week in weeks)


def test_month_starting_on_sunday_has_no_blanks():
    weeks = month_grid(2026, 2, TODAY)
    assert len(weeks) == 4
    assert weeks[0][0]['date'] == '2026-02-01'
    assert None not in [cell for week in weeks for cell in week]


def test_trailing_cells_are_padded():
    weeks = month_grid(2026, 9, TODAY)
    # 30 September 2026 is a Wednesday
    assert weeks[-1][3]['day'] == 30
    assert weeks[-1][4:] == [None, None, None]


def test_past_days_cannot_be_selected():
    weeks = month_grid(2026, 10, TODAY)
    cells = {c['day']: c for week in weeks for c in week if c}
    assert cells[16]['is_past']
    assert not cells[17]['is_past'] and cells[17]['is_today']
    assert not cells[18]['is_past']
    assert not can_select(date(2026, 10, 16), TODAY)
    assert can_select(TODAY, TODAY)
    assert is_past(date(2025, 12, 31), TODAY)


def test_shift_month_wraps_years():
    assert shift_month(2026, 1, -1) == (2025, 12)
    assert shift_month(2026, 12, 1) == (2027, 1)
    assert shift_month(2026, 5, 14) == (2027, 7)


def test_month_context_links():
    ctx = month_context(2026, 1, TODAY)
    assert ctx['month_name'] == 'January'
    assert ctx['prev'] == {'year': 2025, 'month': 12}
    assert ctx['next'] == {'year': 2026, 'month': 2}
    assert ctx['weekdays'][0] == 'Sun'


def test_to_24h():
    assert to_24h('12', '00', 'AM') == '00:00'
    assert to_24h('12', '15', 'PM') == '12:15'
    assert to_24h('02', '30', 'PM') == '14:30'
    assert to_24h('09', '45', 'am') == '09:45'


def test_group_by_date_skips_undated():
    appts = [
        {'id': 1, 'appointment_date': '2026-10-20T00:00:00.000000Z'},
        {'id': 2, 'date': '2026-10-20'},
        {'id': 3, 'appointment_date': '2026-10-21'},
        {'id': 4},
        {'id': 5, 'appointment_date': 'not a date'},
    ]
    grouped = group_by_date(appts)
    assert [a['id'] for a in grouped['2026-10-20']] == [1, 2]
    assert [a['id'] for a in grouped['2026-10-21']] == [3]
    assert len(grouped) == 2


def test_month_bounds():
    assert month_bounds(2024, 2) == ('2024-02-01', '2024-02-29')
