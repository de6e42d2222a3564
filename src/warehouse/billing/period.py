"""Billing periods.

A billing period is a calendar month. "Last month" is decided in a fixed
reference timezone so the answer does not depend on the server's local clock
or on daylight-saving shifts; order fulfillment times are compared against
the month's UTC boundaries.
"""

import calendar
from dataclasses import dataclass
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

REFERENCE_TIMEZONE = ZoneInfo("America/New_York")


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC (the store may drop tzinfo)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


@dataclass(frozen=True)
class BillingPeriod:
    month: int
    year: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"Invalid billing month: {self.month}")
        if self.year < 2000:
            raise ValueError(f"Invalid billing year: {self.year}")

    @classmethod
    def previous_month(cls, now: datetime, timezone: ZoneInfo = REFERENCE_TIMEZONE) -> "BillingPeriod":
        local = as_utc(now).astimezone(timezone)
        if local.month == 1:
            return cls(month=12, year=local.year - 1)
        return cls(month=local.month - 1, year=local.year)

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @property
    def month_name(self) -> str:
        return calendar.month_name[self.month]

    def utc_window(self) -> tuple[datetime, datetime]:
        """``[start, end)`` of the month in UTC."""
        start = datetime(self.year, self.month, 1, tzinfo=UTC)
        if self.month == 12:
            end = datetime(self.year + 1, 1, 1, tzinfo=UTC)
        else:
            end = datetime(self.year, self.month + 1, 1, tzinfo=UTC)
        return start, end

    def contains(self, moment: datetime | None) -> bool:
        if moment is None:
            return False
        start, end = self.utc_window()
        return start <= as_utc(moment) < end

    def to_dict(self) -> dict:
        return {"month": self.month, "year": self.year, "monthName": self.month_name}
