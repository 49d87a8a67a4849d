"""
Test suite for interest module

Tests simple and compound interest, total amount due, period and accrued
interest, daily rates and interest schedules. All calculations must be
mathematically precise.
"""

import pytest
from decimal import Decimal
from datetime import date, datetime

from loan_core.config import LoanCoreConfig
from loan_core.errors import InvalidInput
from loan_core.frequency import PaymentFrequency
from loan_core.interest import InterestEngine
from loan_core.models import LoanTerms, InterestType


class TestSimpleInterest:
    """Test simple interest formula"""

    def setup_method(self):
        self.engine = InterestEngine(LoanCoreConfig())

    def test_one_year_at_twelve_percent(self):
        """10000 at 12% for 365 days earns 1200.00"""
        assert self.engine.simple_interest(Decimal('10000'), Decimal('12'), 365) == Decimal('1200.00')

    def test_partial_year_is_rounded_half_up(self):
        """1000 at 10% for 30 days: 8.2191... rounds to 8.22"""
        assert self.engine.simple_interest(1000, 10, 30) == Decimal('8.22')

    def test_linear_in_days(self):
        """Doubling the days doubles the interest"""
        one_year = self.engine.simple_interest(10000, 12, 365)
        two_years = self.engine.simple_interest(10000, 12, 730)
        assert two_years == one_year * 2

    def test_zero_rate_and_zero_days(self):
        """No rate or no time means no interest"""
        assert self.engine.simple_interest(10000, 0, 365) == Decimal('0.00')
        assert self.engine.simple_interest(10000, 12, 0) == Decimal('0.00')

    def test_non_negative_over_inputs(self):
        """Simple interest is never negative"""
        for principal in ['0.01', '1', '2500.50', '1000000']:
            for rate in ['0', '0.5', '12', '36']:
                for days in [0, 1, 45, 365, 1000]:
                    assert self.engine.simple_interest(Decimal(principal), Decimal(rate), days) >= 0

    def test_float_inputs_are_converted_exactly(self):
        """Floats go through str so 0.1 stays 0.1"""
        assert self.engine.simple_interest(1000.0, 36.5, 10) == Decimal('10.00')

    def test_invalid_inputs(self):
        """Principal <= 0, negative rate and negative days are rejected"""
        with pytest.raises(InvalidInput, match="Principal must be positive"):
            self.engine.simple_interest(0, 12, 365)
        with pytest.raises(InvalidInput, match="Principal must be positive"):
            self.engine.simple_interest(-100, 12, 365)
        with pytest.raises(InvalidInput, match="non-negative"):
            self.engine.simple_interest(10000, -1, 365)
        with pytest.raises(InvalidInput, match="Days must be non-negative"):
            self.engine.simple_interest(10000, 12, -1)

    def test_invalid_input_is_value_error(self):
        """Callers catching ValueError still see calculation errors"""
        with pytest.raises(ValueError):
            self.engine.simple_interest(0, 12, 365)


class TestCompoundInterest:
    """Test compound interest formula"""

    def setup_method(self):
        self.engine = InterestEngine(LoanCoreConfig())

    def test_yearly_compounding_equals_simple_for_one_year(self):
        """One yearly period is the same as simple interest"""
        result = self.engine.compound_interest(10000, 12, 365, PaymentFrequency.YEARLY)
        assert result.total_amount == Decimal('11200.00')
        assert result.interest_amount == Decimal('1200.00')

    def test_monthly_compounding(self):
        """10000 x 1.01^12 = 11268.2503..."""
        result = self.engine.compound_interest(10000, 12, 365, PaymentFrequency.MONTHLY)
        assert result.total_amount == Decimal('11268.25')
        assert result.interest_amount == Decimal('1268.25')

    def test_quarterly_compounding(self):
        """10000 x 1.03^4 = 11255.0881"""
        result = self.engine.compound_interest(10000, 12, 365, "quarterly")
        assert result.total_amount == Decimal('11255.09')
        assert result.interest_amount == Decimal('1255.09')

    def test_denser_compounding_earns_more(self):
        """Daily >= monthly >= yearly for the same principal, rate and days"""
        for days in [30, 180, 365, 1000]:
            daily = self.engine.compound_interest(50000, 9, days, PaymentFrequency.DAILY).interest_amount
            monthly = self.engine.compound_interest(50000, 9, days, PaymentFrequency.MONTHLY).interest_amount
            yearly = self.engine.compound_interest(50000, 9, days, PaymentFrequency.YEARLY).interest_amount
            assert daily >= monthly >= yearly

    def test_zero_days(self):
        """No time means the principal is unchanged"""
        result = self.engine.compound_interest(10000, 12, 0, PaymentFrequency.DAILY)
        assert result.total_amount == Decimal('10000.00')
        assert result.interest_amount == Decimal('0.00')

    def test_custom_frequency_needs_interval(self):
        """Custom compounding needs its day interval"""
        with pytest.raises(InvalidInput, match="interval days"):
            self.engine.compound_interest(10000, 12, 365, PaymentFrequency.CUSTOM)

        result = self.engine.compound_interest(10000, 12, 365, PaymentFrequency.CUSTOM, 365)
        assert result.interest_amount == Decimal('1200.00')

    def test_invalid_inputs(self):
        """Same validation as simple interest"""
        with pytest.raises(InvalidInput):
            self.engine.compound_interest(0, 12, 365)
        with pytest.raises(InvalidInput):
            self.engine.compound_interest(10000, -5, 365)
        with pytest.raises(InvalidInput):
            self.engine.compound_interest(10000, 12, -30)


class TestTotalAmountDue:
    """Test amount due at maturity"""

    def setup_method(self):
        self.engine = InterestEngine(LoanCoreConfig())

    def test_simple_interest_loan(self):
        """10000 at 12% simple over a 365-day year"""
        terms = LoanTerms(
            principal=Decimal('10000'),
            issue_date=date(2023, 1, 1),
            due_date=date(2024, 1, 1),
            annual_interest_rate=Decimal('12'),
            interest_type=InterestType.SIMPLE
        )
        result = self.engine.total_amount_due(terms)
        assert result.interest_amount == Decimal('1200.00')
        assert result.total_amount_due == Decimal('11200.00')

    def test_leap_year_counts_calendar_days(self):
        """2024 has 366 days: 10000 x 12% x 366/365 = 1203.29"""
        terms = LoanTerms(
            principal=Decimal('10000'),
            issue_date=date(2024, 1, 1),
            due_date=date(2025, 1, 1),
            annual_interest_rate=Decimal('12'),
            interest_type="simple"
        )
        result = self.engine.total_amount_due(terms)
        assert result.interest_amount == Decimal('1203.29')
        assert result.total_amount_due == Decimal('11203.29')

    def test_compound_interest_loan(self):
        """Compound terms dispatch to the compound formula"""
        terms = LoanTerms(
            principal=Decimal('10000'),
            issue_date=date(2023, 1, 1),
            due_date=date(2024, 1, 1),
            annual_interest_rate=Decimal('12'),
            interest_type=InterestType.COMPOUND,
            compounding_frequency=PaymentFrequency.MONTHLY
        )
        result = self.engine.total_amount_due(terms)
        assert result.interest_amount == Decimal('1268.25')
        assert result.total_amount_due == Decimal('11268.25')

    def test_interest_free_loans(self):
        """Type none or a zero rate owes exactly the principal"""
        no_interest = LoanTerms(
            principal=Decimal('5000'),
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 12, 31),
            annual_interest_rate=Decimal('12'),
            interest_type=InterestType.NONE
        )
        zero_rate = LoanTerms(
            principal=Decimal('5000'),
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 12, 31),
            annual_interest_rate=Decimal('0'),
            interest_type=InterestType.SIMPLE
        )
        for terms in (no_interest, zero_rate):
            result = self.engine.total_amount_due(terms)
            assert result.total_amount_due == Decimal('5000.00')
            assert result.interest_amount == Decimal('0.00')

    def test_due_date_required_for_interest(self):
        """Interest-bearing terms need a due date"""
        terms = LoanTerms(
            principal=Decimal('5000'),
            issue_date=date(2024, 1, 1),
            annual_interest_rate=Decimal('12'),
            interest_type=InterestType.SIMPLE
        )
        with pytest.raises(InvalidInput, match="Due date is required"):
            self.engine.total_amount_due(terms)


class TestPeriodAndAccruedInterest:
    """Test interest over sub-periods"""

    def setup_method(self):
        self.engine = InterestEngine(LoanCoreConfig())

    def test_period_interest_simple(self):
        """30 days of simple interest"""
        interest = self.engine.period_interest(
            10000, 12, date(2024, 3, 1), date(2024, 3, 31), InterestType.SIMPLE
        )
        assert interest == Decimal('98.63')

    def test_period_interest_compound(self):
        """A full year compounded yearly"""
        interest = self.engine.period_interest(
            10000, 12, date(2023, 1, 1), date(2024, 1, 1),
            InterestType.COMPOUND, PaymentFrequency.YEARLY
        )
        assert interest == Decimal('1200.00')

    def test_empty_or_reversed_period(self):
        """End on or before start accrues nothing"""
        assert self.engine.period_interest(10000, 12, date(2024, 3, 1), date(2024, 3, 1)) == Decimal('0.00')
        assert self.engine.period_interest(10000, 12, date(2024, 3, 31), date(2024, 3, 1)) == Decimal('0.00')

    def test_interest_type_none(self):
        """Interest-free loans accrue nothing"""
        interest = self.engine.period_interest(
            10000, 12, date(2024, 1, 1), date(2024, 12, 31), InterestType.NONE
        )
        assert interest == Decimal('0.00')

    def test_accrued_interest_uses_explicit_date(self):
        """Accrual is deterministic given the as-of date"""
        first = self.engine.accrued_interest(
            10000, 12, date(2024, 3, 1), date(2024, 3, 31), "simple"
        )
        second = self.engine.accrued_interest(
            10000, 12, date(2024, 3, 1), date(2024, 3, 31), "simple"
        )
        assert first == second == Decimal('98.63')

    def test_accrued_interest_accepts_datetimes(self):
        """Datetimes are reduced to calendar dates"""
        interest = self.engine.accrued_interest(
            10000, 12, datetime(2024, 3, 1, 23, 59), datetime(2024, 3, 31, 0, 1), "simple"
        )
        assert interest == Decimal('98.63')


class TestDailyRate:
    """Test daily rate derivation"""

    def setup_method(self):
        self.engine = InterestEngine(LoanCoreConfig())

    def test_simple_daily_rate(self):
        """36.5% a year is 0.1% a day"""
        assert self.engine.daily_rate(Decimal('36.5')) == Decimal('0.001')

    def test_compound_daily_rate_compounds_back(self):
        """(1 + daily)^365 recovers the annual rate"""
        daily = self.engine.daily_rate(Decimal('12'), InterestType.COMPOUND)
        annual = (1 + daily) ** 365 - 1
        assert abs(annual - Decimal('0.12')) < Decimal('1e-15')

    def test_negative_rate_rejected(self):
        with pytest.raises(InvalidInput):
            self.engine.daily_rate(-1)


class TestInterestSchedule:
    """Test interest accumulation schedule"""

    def setup_method(self):
        self.engine = InterestEngine(LoanCoreConfig())

    def test_monthly_steps(self):
        """Two 30-day steps from Jan 1 to Mar 1 2024"""
        terms = LoanTerms(
            principal=Decimal('10000'),
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 3, 1),
            annual_interest_rate=Decimal('12'),
            interest_type=InterestType.SIMPLE
        )
        schedule = self.engine.generate_interest_schedule(terms, PaymentFrequency.MONTHLY)

        assert len(schedule) == 2
        assert schedule[0].as_of_date == date(2024, 1, 31)
        assert schedule[0].interest_accrued == Decimal('98.63')
        assert schedule[1].as_of_date == date(2024, 3, 1)
        assert schedule[1].cumulative_interest == Decimal('197.26')
        assert schedule[1].total_balance == Decimal('10197.26')
        assert all(entry.principal_balance == Decimal('10000.00') for entry in schedule)

    def test_last_step_is_truncated_at_due_date(self):
        """A 10-day loan on a weekly schedule ends with a 3-day step"""
        terms = LoanTerms(
            principal=Decimal('36500'),
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 1, 11),
            annual_interest_rate=Decimal('10'),
            interest_type=InterestType.SIMPLE
        )
        schedule = self.engine.generate_interest_schedule(terms, "weekly")

        assert [entry.as_of_date for entry in schedule] == [date(2024, 1, 8), date(2024, 1, 11)]
        assert schedule[0].interest_accrued == Decimal('70.00')
        assert schedule[1].interest_accrued == Decimal('30.00')
        assert schedule[-1].cumulative_interest == Decimal('100.00')

    def test_interest_free_schedule(self):
        """A single entry at the due date with no interest"""
        terms = LoanTerms(
            principal=Decimal('2500'),
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 6, 1)
        )
        schedule = self.engine.generate_interest_schedule(terms)

        assert len(schedule) == 1
        assert schedule[0].as_of_date == date(2024, 6, 1)
        assert schedule[0].cumulative_interest == Decimal('0.00')
        assert schedule[0].total_balance == Decimal('2500.00')

    def test_unsupported_schedule_frequency(self):
        terms = LoanTerms(
            principal=Decimal('2500'),
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 6, 1),
            annual_interest_rate=Decimal('5'),
            interest_type=InterestType.SIMPLE
        )
        with pytest.raises(InvalidInput, match="Unsupported interest schedule frequency"):
            self.engine.generate_interest_schedule(terms, PaymentFrequency.YEARLY)
