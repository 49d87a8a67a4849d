"""
Frequency and Date Utilities

Maps payment/compounding frequencies to periods per year and advances due
dates. Dates are calendar dates with no time-of-day or timezone component.
"""

from decimal import Decimal
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Union
import calendar

from .errors import InvalidInput


class PaymentFrequency(Enum):
    """Payment and compounding frequency options"""
    DAILY = "daily"            # 365 periods per year
    WEEKLY = "weekly"          # 52 periods per year
    BIWEEKLY = "biweekly"      # 26 periods per year
    MONTHLY = "monthly"        # 12 periods per year
    QUARTERLY = "quarterly"    # 4 periods per year
    YEARLY = "yearly"          # 1 period per year
    ONE_TIME = "one_time"      # Single repayment at maturity
    CUSTOM = "custom"          # Every N days

    @classmethod
    def from_value(cls, value: Union["PaymentFrequency", str]) -> "PaymentFrequency":
        """Accept an enum member or its string value"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidInput(f"Unsupported frequency: {value!r}") from None


_PERIODS_PER_YEAR = {
    PaymentFrequency.DAILY: 365,
    PaymentFrequency.WEEKLY: 52,
    PaymentFrequency.BIWEEKLY: 26,
    PaymentFrequency.MONTHLY: 12,
    PaymentFrequency.QUARTERLY: 4,
    PaymentFrequency.YEARLY: 1,
    PaymentFrequency.ONE_TIME: 1,
}

_DAY_STEPS = {
    PaymentFrequency.DAILY: 1,
    PaymentFrequency.WEEKLY: 7,
    PaymentFrequency.BIWEEKLY: 14,
}

_MONTH_STEPS = {
    PaymentFrequency.MONTHLY: 1,
    PaymentFrequency.QUARTERLY: 3,
    PaymentFrequency.YEARLY: 12,
}


def _custom_interval(custom_interval_days: Optional[int]) -> int:
    if not isinstance(custom_interval_days, int) or isinstance(custom_interval_days, bool) \
            or custom_interval_days <= 0:
        raise InvalidInput("Custom frequency requires a positive whole number of interval days")
    return custom_interval_days


def periods_per_year(
    frequency: Union[PaymentFrequency, str],
    custom_interval_days: Optional[int] = None,
    days_in_year: int = 365
) -> Decimal:
    """
    Get number of periods per year for a frequency

    Custom frequencies are converted on the day-count basis, so a 30-day
    interval gives 365/30 periods.
    """
    frequency = PaymentFrequency.from_value(frequency)
    if frequency == PaymentFrequency.CUSTOM:
        return Decimal(days_in_year) / Decimal(_custom_interval(custom_interval_days))
    return Decimal(_PERIODS_PER_YEAR[frequency])


def as_date(value: Union[date, datetime]) -> date:
    """Reduce a datetime to its calendar date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidInput(f"Expected a date, got {type(value).__name__}")


def days_between(start: Union[date, datetime], end: Union[date, datetime]) -> int:
    """Whole calendar days from start to end (negative if end precedes start)"""
    return (as_date(end) - as_date(start)).days


def add_months(start_date: date, months: int, anchor_day: Optional[int] = None) -> date:
    """
    Add months to a date, clamping to the last day of short months

    anchor_day lets a schedule keep its original day of month: stepping
    Jan 31 -> Feb 29 -> Mar 31 instead of drifting to Mar 29.
    """
    day = anchor_day or start_date.day
    month = start_date.month - 1 + months
    year = start_date.year + month // 12
    month = month % 12 + 1
    day = min(day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_payment_date(
    current_date: date,
    frequency: Union[PaymentFrequency, str],
    custom_interval_days: Optional[int] = None,
    anchor_day: Optional[int] = None
) -> date:
    """Calculate next payment date based on frequency"""
    frequency = PaymentFrequency.from_value(frequency)
    current_date = as_date(current_date)

    if frequency in _DAY_STEPS:
        return current_date + timedelta(days=_DAY_STEPS[frequency])
    elif frequency in _MONTH_STEPS:
        return add_months(current_date, _MONTH_STEPS[frequency], anchor_day)
    elif frequency == PaymentFrequency.CUSTOM:
        return current_date + timedelta(days=_custom_interval(custom_interval_days))
    else:
        raise InvalidInput("One-time loans have no next payment date")
