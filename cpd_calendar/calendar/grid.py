"""Build the month grid shown by the calendar view."""
import calendar
from datetime import date, timedelta
from typing import NamedTuple

GRID_SIZE = 42  # 6 rows * 7 days


class DayCell(NamedTuple):
    date: date
    is_current_month: bool


def month_grid(year: int, month: int) -> list[DayCell]:
    """
    Return the 42 day cells of a Monday-first month view.

    Layout:
        trailing days of the previous month (none when the 1st is a Monday),
        every day of the month,
        leading days of the next month until 42 cells are filled.

    The grid is always six weeks long, so a four- or five-week month still
    ends with overflow days from the next month.
    """
    # calendar.monthrange reports the weekday with Monday == 0
    first_weekday, days_in_month = calendar.monthrange(year, month)
    first_day = date(year, month, 1)

    cells = []
    for offset in range(first_weekday, 0, -1):
        cells.append(DayCell(first_day - timedelta(days=offset), False))

    for day in range(days_in_month):
        cells.append(DayCell(first_day + timedelta(days=day), True))

    next_month_start = first_day + timedelta(days=days_in_month)
    remaining = GRID_SIZE - len(cells)
    for day in range(remaining):
        cells.append(DayCell(next_month_start + timedelta(days=day), False))

    return cells


def date_key(value: date | str) -> str:
    """Return the "YYYY-MM-DD" key used to index events by day."""
    if isinstance(value, date):
        return value.isoformat()
    return str(value).split("T", 1)[0]


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move a (year, month) pair by ``delta`` months, e.g. -1 for previous."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1
