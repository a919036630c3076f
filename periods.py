from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

DateLike = Union[date, datetime]


def as_day(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def month_start(value: DateLike) -> date:
    return as_day(value).replace(day=1)


def add_months(value: DateLike, count: int) -> date:
    d = as_day(value)
    month_index = (d.year * 12) + (d.month - 1) + count
    year = month_index // 12
    month = (month_index % 12) + 1
    return date(year, month, 1)


def month_end(value: DateLike) -> date:
    return add_months(value, 1) - date.resolution


def days_in_month(value: DateLike) -> int:
    return month_end(value).day


@dataclass(frozen=True)
class Period:
    slug: str
    start: date
    end: date

    @classmethod
    def for_month(cls, value: DateLike) -> "Period":
        first = month_start(value)
        return cls(f"{first.year:04d}-{first.month:02d}", first, month_end(first))

    @classmethod
    def for_year(cls, year: int) -> "Period":
        return cls(f"{year:04d}", date(year, 1, 1), date(year, 12, 31))

    @classmethod
    def between(cls, start: DateLike, end: DateLike) -> "Period":
        return cls("custom", as_day(start), as_day(end))

    def contains(self, moment: DateLike) -> bool:
        # Day granularity: the end day counts up to 23:59:59.
        return self.start <= as_day(moment) <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def previous_month(self) -> "Period":
        return Period.for_month(add_months(self.start, -1))
