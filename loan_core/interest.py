"""
Interest Engine Module

Simple and compound interest, interest over arbitrary sub-periods, accrual
since the last calculation point and the total amount due at maturity.
Intermediate math runs at full Decimal precision; amounts are rounded to
the monetary precision only when returned.
"""

from decimal import Decimal
from datetime import date, timedelta
from typing import List, Optional, Union
import logging

from .config import LoanCoreConfig, get_config
from .errors import InvalidInput
from .frequency import PaymentFrequency, periods_per_year, days_between
from .logging_config import log_action
from .models import (
    InterestType, LoanTerms, InterestResult, AmountDue, InterestScheduleEntry
)
from .money import Number, ZERO, ONE, HUNDRED, to_decimal, round_money, money_context


logger = logging.getLogger("loan_core.interest")

# Step lengths used when walking an interest schedule
SCHEDULE_STEP_DAYS = {
    PaymentFrequency.DAILY: 1,
    PaymentFrequency.WEEKLY: 7,
    PaymentFrequency.MONTHLY: 30,
    PaymentFrequency.QUARTERLY: 90,
}


class InterestEngine:
    """
    Calculates interest for loans

    Holds only configuration; every method is a pure function of its
    arguments and never reads the system clock.
    """

    def __init__(self, config: Optional[LoanCoreConfig] = None):
        self.config = config or get_config()

    def simple_interest(self, principal: Number, annual_rate: Number, days: int) -> Decimal:
        """
        Simple interest: principal x rate/100 x days/365

        Args:
            principal: Principal amount (positive)
            annual_rate: Annual interest rate as a percentage
            days: Length of the period in days

        Returns:
            Interest amount rounded to the monetary precision

        Raises:
            InvalidInput: If principal <= 0, rate < 0 or days < 0
        """
        principal, rate, days = self._validate(principal, annual_rate, days)
        with money_context(self.config.decimal_precision):
            interest = self._simple(principal, rate, days)
        return self._round(interest)

    def compound_interest(
        self,
        principal: Number,
        annual_rate: Number,
        days: int,
        frequency: Union[PaymentFrequency, str] = PaymentFrequency.MONTHLY,
        custom_interval_days: Optional[int] = None
    ) -> InterestResult:
        """
        Compound interest: A = P(1 + r/n)^(nt)

        r is the annual rate as a fraction, n the compounding periods per
        year for the frequency and t the period length in years.

        Raises:
            InvalidInput: If principal <= 0, rate < 0 or days < 0
        """
        principal, rate, days = self._validate(principal, annual_rate, days)
        with money_context(self.config.decimal_precision):
            total = self._compound_total(principal, rate, days, frequency, custom_interval_days)
            interest = total - principal
        return InterestResult(
            total_amount=self._round(total),
            interest_amount=self._round(interest)
        )

    def total_amount_due(self, terms: LoanTerms) -> AmountDue:
        """
        Principal plus interest owed on the due date

        Interest-free terms (type none or a zero rate) owe the principal.
        Otherwise interest runs over the whole days from issue to due date.
        """
        if not terms.has_interest:
            return AmountDue(total_amount_due=self._round(terms.principal), interest_amount=self._round(ZERO))

        if terms.due_date is None:
            raise InvalidInput("Due date is required to calculate interest")

        days = days_between(terms.issue_date, terms.due_date)
        if terms.interest_type == InterestType.SIMPLE:
            interest = self.simple_interest(terms.principal, terms.annual_interest_rate, days)
        else:
            interest = self.compound_interest(
                terms.principal, terms.annual_interest_rate, days,
                terms.compounding_frequency, terms.custom_interval_days
            ).interest_amount

        result = AmountDue(
            total_amount_due=self._round(terms.principal + interest),
            interest_amount=interest
        )
        log_action(
            logger, "debug", "Calculated total amount due",
            action="total_amount_due", resource="interest",
            extra={
                "principal": terms.principal,
                "annual_rate": terms.annual_interest_rate,
                "interest_type": terms.interest_type.value,
                "days": days,
                "interest_amount": result.interest_amount,
            }
        )
        return result

    def period_interest(
        self,
        principal: Number,
        annual_rate: Number,
        start_date: date,
        end_date: date,
        interest_type: Union[InterestType, str] = InterestType.SIMPLE,
        compounding_frequency: Union[PaymentFrequency, str] = PaymentFrequency.MONTHLY,
        custom_interval_days: Optional[int] = None
    ) -> Decimal:
        """Interest over the days from start_date to end_date (zero if end <= start)"""
        days = days_between(start_date, end_date)
        interest_type = InterestType.from_value(interest_type)

        if days <= 0 or interest_type == InterestType.NONE:
            return self._round(ZERO)

        if interest_type == InterestType.SIMPLE:
            return self.simple_interest(principal, annual_rate, days)
        return self.compound_interest(
            principal, annual_rate, days, compounding_frequency, custom_interval_days
        ).interest_amount

    def accrued_interest(
        self,
        principal: Number,
        annual_rate: Number,
        last_calculation_date: date,
        as_of_date: date,
        interest_type: Union[InterestType, str] = InterestType.SIMPLE,
        compounding_frequency: Union[PaymentFrequency, str] = PaymentFrequency.MONTHLY,
        custom_interval_days: Optional[int] = None
    ) -> Decimal:
        """
        Interest built up since the last calculation point

        as_of_date is required; the caller decides what "now" is.
        """
        return self.period_interest(
            principal, annual_rate, last_calculation_date, as_of_date,
            interest_type, compounding_frequency, custom_interval_days
        )

    def daily_rate(
        self,
        annual_rate: Number,
        interest_type: Union[InterestType, str] = InterestType.SIMPLE
    ) -> Decimal:
        """
        Daily interest rate as a fraction (unrounded)

        Simple interest uses rate/100/365; compound interest uses the
        effective daily rate (1 + rate/100)^(1/365) - 1.
        """
        rate = to_decimal(annual_rate, "annual_rate")
        if rate < ZERO:
            raise InvalidInput("Interest rate must be non-negative")

        days_in_year = Decimal(self.config.days_in_year)
        with money_context(self.config.decimal_precision):
            if InterestType.from_value(interest_type) == InterestType.COMPOUND:
                return (ONE + rate / HUNDRED) ** (ONE / days_in_year) - ONE
            return rate / HUNDRED / days_in_year

    def generate_interest_schedule(
        self,
        terms: LoanTerms,
        schedule_frequency: Union[PaymentFrequency, str] = PaymentFrequency.MONTHLY
    ) -> List[InterestScheduleEntry]:
        """
        Interest accumulation from issue date to due date

        Each step accrues interest on the original principal; steps are 1, 7,
        30 or 90 days for daily, weekly, monthly and quarterly schedules.
        """
        if terms.due_date is None:
            raise InvalidInput("Due date is required to build an interest schedule")

        schedule_frequency = PaymentFrequency.from_value(schedule_frequency)
        if schedule_frequency not in SCHEDULE_STEP_DAYS:
            raise InvalidInput(f"Unsupported interest schedule frequency: {schedule_frequency.value}")

        principal = self._round(terms.principal)
        if not terms.has_interest:
            return [InterestScheduleEntry(
                as_of_date=terms.due_date,
                principal_balance=principal,
                interest_accrued=self._round(ZERO),
                cumulative_interest=self._round(ZERO),
                total_balance=principal
            )]

        step = timedelta(days=SCHEDULE_STEP_DAYS[schedule_frequency])
        schedule = []
        cumulative = ZERO
        current_date = terms.issue_date

        while current_date <= terms.due_date:
            next_date = current_date + step
            end_date = min(next_date, terms.due_date)

            accrued = self.period_interest(
                terms.principal, terms.annual_interest_rate, current_date, end_date,
                terms.interest_type, terms.compounding_frequency or PaymentFrequency.MONTHLY,
                terms.custom_interval_days
            )
            cumulative += accrued

            schedule.append(InterestScheduleEntry(
                as_of_date=end_date,
                principal_balance=principal,
                interest_accrued=accrued,
                cumulative_interest=self._round(cumulative),
                total_balance=self._round(terms.principal + cumulative)
            ))

            current_date = next_date
            if current_date >= terms.due_date:
                break

        return schedule

    def _simple(self, principal: Decimal, rate: Decimal, days: int) -> Decimal:
        return principal * rate / HUNDRED * Decimal(days) / Decimal(self.config.days_in_year)

    def _compound_total(
        self,
        principal: Decimal,
        rate: Decimal,
        days: int,
        frequency: Union[PaymentFrequency, str],
        custom_interval_days: Optional[int]
    ) -> Decimal:
        n = periods_per_year(frequency, custom_interval_days, self.config.days_in_year)
        years = Decimal(days) / Decimal(self.config.days_in_year)
        return principal * (ONE + rate / HUNDRED / n) ** (n * years)

    def _validate(self, principal: Number, annual_rate: Number, days: int):
        principal = to_decimal(principal, "principal")
        rate = to_decimal(annual_rate, "annual_rate")
        if not isinstance(days, int) or isinstance(days, bool):
            raise InvalidInput("Days must be a whole number")
        if principal <= ZERO:
            raise InvalidInput("Principal must be positive")
        if rate < ZERO:
            raise InvalidInput("Interest rate must be non-negative")
        if days < 0:
            raise InvalidInput("Days must be non-negative")
        return principal, rate, days

    def _round(self, value: Decimal) -> Decimal:
        return round_money(value, self.config.money_precision)
