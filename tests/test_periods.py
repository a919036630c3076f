from datetime import date, datetime

from periods import (
    Period,
    add_months,
    days_in_month,
    month_end,
    month_start,
)


def test_month_arithmetic() -> None:
    assert month_start(datetime(2026, 3, 17, 8, 0)) == date(2026, 3, 1)
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 1)
    assert add_months(date(2026, 1, 15), -1) == date(2025, 12, 1)
    assert add_months(date(2026, 11, 1), 14) == date(2028, 1, 1)
    assert month_end(date(2024, 2, 10)) == date(2024, 2, 29)
    assert days_in_month(date(2026, 2, 1)) == 28
    assert days_in_month(date(2026, 12, 5)) == 31


def test_month_period_contains_whole_last_day() -> None:
    period = Period.for_month(date(2026, 3, 9))
    assert period.slug == "2026-03"
    assert period.days == 31
    assert period.contains(datetime(2026, 3, 1, 0, 0))
    assert period.contains(datetime(2026, 3, 31, 23, 59, 59))
    assert not period.contains(datetime(2026, 4, 1, 0, 0))
    assert not period.contains(datetime(2026, 2, 28, 23, 59, 59))


def test_previous_month_crosses_year() -> None:
    period = Period.for_month(date(2026, 1, 1)).previous_month()
    assert period.start == date(2025, 12, 1)
    assert period.end == date(2025, 12, 31)
