"""
Reporting Windows

A Window is a closed calendar interval used to filter dated records.

DESIGN DECISION: Membership is decided on calendar dates only
(year, month, day). Records carry plain dates, so there is no time zone
or timestamp arithmetic that could shift a record into the wrong month.
"""

import calendar
import datetime as dt
from collections.abc import Iterator
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator


def last_day_of_month(year: int, month: int) -> dt.date:
    """Return the last calendar day of the month."""
    return dt.date(year, month, calendar.monthrange(year, month)[1])


class Window(BaseModel):
    """A closed interval [start, end] of calendar dates."""
    model_config = ConfigDict(frozen=True)

    start: dt.date
    end: dt.date

    @model_validator(mode='after')
    def validate_bounds(self) -> 'Window':
        """End cannot be before start."""
        if self.end < self.start:
            raise ValueError("Window end cannot be before start")
        return self

    @classmethod
    def month(cls, year: int, month: int) -> 'Window':
        """A single calendar month."""
        return cls(start=dt.date(year, month, 1), end=last_day_of_month(year, month))

    @classmethod
    def current_month(cls, today: Optional[dt.date] = None) -> 'Window':
        today = today or dt.date.today()
        return cls.month(today.year, today.month)

    @classmethod
    def year_to_date(cls, today: Optional[dt.date] = None) -> 'Window':
        """January 1st through the end of the current month."""
        today = today or dt.date.today()
        return cls(
            start=dt.date(today.year, 1, 1),
            end=last_day_of_month(today.year, today.month),
        )

    @classmethod
    def year(cls, year: int) -> 'Window':
        """A full calendar year."""
        return cls(start=dt.date(year, 1, 1), end=dt.date(year, 12, 31))

    @classmethod
    def month_range(
        cls,
        start_year: int,
        start_month: int,
        end_year: int,
        end_month: int,
    ) -> 'Window':
        """From the first day of the start month to the last day of the end month."""
        return cls(
            start=dt.date(start_year, start_month, 1),
            end=last_day_of_month(end_year, end_month),
        )

    def contains(self, value: dt.date) -> bool:
        """Inclusive on both ends."""
        return self.start <= value <= self.end

    def months(self) -> Iterator[tuple[int, int]]:
        """Yield every (year, month) the window touches, in order."""
        year, month = self.start.year, self.start.month
        while (year, month) <= (self.end.year, self.end.month):
            yield year, month
            if month == 12:
                year, month = year + 1, 1
            else:
                month += 1
