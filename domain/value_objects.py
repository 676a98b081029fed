"""Domain Value Objects - waiting list rules and date windows"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime, timedelta
from typing import Annotated, FrozenSet, Iterator, Literal, Optional, Union

from domain.clock import as_utc
from domain.exceptions import ValidationError

# Hard ceiling on the matching window, in days
MAX_WINDOW_DAYS = 90
DEFAULT_WINDOW_DAYS = 30

Weekday = Annotated[int, Field(ge=0, le=6)]


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar date from start to end inclusive (empty when start > end)"""
    if start > end:
        return
    for offset in range((end - start).days + 1):
        yield start + timedelta(days=offset)


def _calendar_date(value: Union[date, datetime, None]) -> Optional[date]:
    """UTC calendar date of a datetime; dates pass through"""
    if isinstance(value, datetime):
        return as_utc(value).date()
    return value


def weekday_number(day: date) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday"""
    return day.isoweekday() % 7


class DateWindow(BaseModel):
    """Value Object for the closed matching window [start, end]"""
    start: date
    end: date
    clamped: bool = False

    class Config:
        frozen = True

    @staticmethod
    def resolve(
        start: Union[date, datetime, None],
        end: Union[date, datetime, None],
        today: date,
        default_days: int = DEFAULT_WINDOW_DAYS
    ) -> "DateWindow":
        """Apply defaults, reject inverted windows and clamp to MAX_WINDOW_DAYS"""
        start = _calendar_date(start) or today
        end = _calendar_date(end) or today + timedelta(days=default_days)

        if start > end:
            raise ValidationError("start_date", "start_date must not be after end_date")

        # compare the span, start + MAX_WINDOW_DAYS may not exist near date.max
        if (end - start).days > MAX_WINDOW_DAYS:
            return DateWindow(start=start, end=start + timedelta(days=MAX_WINDOW_DAYS), clamped=True)
        return DateWindow(start=start, end=end)

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


class SpecificDatesRule(BaseModel):
    """Entry applies to an explicit set of dates"""
    rule_type: Literal["SPECIFIC_DATES"] = "SPECIFIC_DATES"
    dates: FrozenSet[date]

    @validator('dates')
    def dates_not_empty(cls, v):
        if not v:
            raise ValueError('dates must contain at least one date')
        return v

    class Config:
        frozen = True

    def includes(self, day: date) -> bool:
        return day in self.dates

    def expand(self, window: DateWindow, last_day: date) -> Iterator[date]:
        upper = min(window.end, last_day)
        return iter(sorted(d for d in self.dates if window.start <= d <= upper))


class DayOfWeekRule(BaseModel):
    """Entry applies to every date falling on one of the given weekdays"""
    rule_type: Literal["DAY_OF_WEEK"] = "DAY_OF_WEEK"
    days: FrozenSet[Weekday]

    @validator('days')
    def days_not_empty(cls, v):
        if not v:
            raise ValueError('days must contain at least one weekday')
        return v

    class Config:
        frozen = True

    def includes(self, day: date) -> bool:
        return weekday_number(day) in self.days

    def expand(self, window: DateWindow, last_day: date) -> Iterator[date]:
        for day in iter_days(window.start, min(window.end, last_day)):
            if self.includes(day):
                yield day


class DateRangeRule(BaseModel):
    """Entry applies to every date of a closed range"""
    rule_type: Literal["DATE_RANGE"] = "DATE_RANGE"
    start: date
    end: date

    @validator('end')
    def end_not_before_start(cls, v, values):
        if 'start' in values and v < values['start']:
            raise ValueError('end must not be before start')
        return v

    class Config:
        frozen = True

    def includes(self, day: date) -> bool:
        return self.start <= day <= self.end

    def expand(self, window: DateWindow, last_day: date) -> Iterator[date]:
        return iter_days(max(self.start, window.start), min(self.end, window.end, last_day))


WaitingListRule = Annotated[
    Union[SpecificDatesRule, DayOfWeekRule, DateRangeRule],
    Field(discriminator="rule_type"),
]
