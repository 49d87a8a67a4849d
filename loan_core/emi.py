"""
EMI Engine Module

Equated installment sizing under the reducing-balance method, amortization
schedule generation, tenure solving, prepayment analysis and the reverse
derivation of principal from an installment amount.
"""

from decimal import Decimal, ROUND_CEILING
from datetime import date
from typing import Iterable, List, Optional, Union
import logging

from .config import LoanCoreConfig, get_config
from .errors import InvalidInput, DomainInfeasible
from .frequency import PaymentFrequency, periods_per_year, next_payment_date
from .logging_config import log_action
from .models import (
    LoanTerms, LoanPosition, AmortizationEntry, PaymentAllocation, PrepaymentOption,
    PrepaymentResult, TotalPayment, PrincipalFromEMI, LoanProgress, LoanState
)
from .money import Number, ZERO, ONE, HUNDRED, to_decimal, optional_decimal, round_money, money_context


logger = logging.getLogger("loan_core.emi")

# Tenure solutions this close to a whole number are not rounded up
TENURE_TOLERANCE = Decimal('1e-9')


class EMIEngine:
    """
    Sizes installments and builds repayment schedules

    Amounts inside a schedule are kept at the monetary precision so that
    every entry balances exactly; formula results are rounded on return.
    """

    def __init__(self, config: Optional[LoanCoreConfig] = None):
        self.config = config or get_config()

    def calculate_emi(
        self,
        principal: Number,
        annual_rate: Optional[Number],
        installments: int,
        frequency: Union[PaymentFrequency, str] = PaymentFrequency.MONTHLY,
        custom_interval_days: Optional[int] = None
    ) -> Decimal:
        """
        Calculate the equated installment

        Standard loan payment formula: P * [r(1+r)^n] / [(1+r)^n - 1]
        where r is the rate per period and n the number of installments.
        A zero or absent rate divides the principal evenly.

        Raises:
            InvalidInput: If principal <= 0, rate < 0 or installments <= 0
        """
        principal = self._positive(principal, "Principal")
        installments = self._installment_count(installments)
        with money_context(self.config.decimal_precision):
            rate = self._periodic_rate(annual_rate, frequency, custom_interval_days)
            emi = self._emi(principal, rate, installments)
        return self._round(emi)

    def generate_amortization_schedule(self, terms: LoanTerms) -> List[AmortizationEntry]:
        """
        Generate the reducing-balance amortization schedule

        Each period's interest is charged on the balance outstanding at the
        start of the period and the rest of the installment repays principal.
        The final installment absorbs any rounding residue so the schedule
        ends at exactly zero. When the rounded EMI overshoots, that residue is
        negative: the last entry may then repay slightly less principal than
        the one before it, and the balance can reach zero early, in which case
        the schedule stops there with fewer entries than requested.

        Raises:
            InvalidInput: If the terms carry no installment count
        """
        if not terms.number_of_installments:
            raise InvalidInput("Number of installments is required for an amortization schedule")
        installments = terms.number_of_installments
        if installments > self.config.max_installments:
            raise InvalidInput(
                f"Number of installments exceeds the maximum of {self.config.max_installments}"
            )

        annual_rate = terms.annual_interest_rate if terms.has_interest else ZERO
        emi = self.calculate_emi(
            terms.principal, annual_rate, installments,
            terms.payment_frequency, terms.custom_interval_days
        )
        with money_context(self.config.decimal_precision):
            rate = self._periodic_rate(annual_rate, terms.payment_frequency, terms.custom_interval_days)

        remaining_balance = self._round(terms.principal)
        payment_date = self._first_payment_date(terms)
        anchor_day = payment_date.day
        schedule = []

        for installment_number in range(1, installments + 1):
            interest_amount = self._round(remaining_balance * rate)
            principal_amount = emi - interest_amount

            # Ensure we don't overpay before the final installment
            if principal_amount > remaining_balance:
                principal_amount = remaining_balance

            if installment_number == installments:
                principal_amount = remaining_balance
            remaining_balance -= principal_amount

            schedule.append(AmortizationEntry(
                installment_number=installment_number,
                due_date=payment_date,
                installment_amount=principal_amount + interest_amount,
                principal_component=principal_amount,
                interest_component=interest_amount,
                remaining_balance=remaining_balance
            ))

            if remaining_balance == ZERO:
                break

            payment_date = next_payment_date(
                payment_date, terms.payment_frequency, terms.custom_interval_days, anchor_day
            )

        log_action(
            logger, "debug", "Generated amortization schedule",
            action="generate_amortization_schedule", resource="emi",
            extra={
                "principal": terms.principal,
                "annual_rate": annual_rate,
                "installments": len(schedule),
                "emi": emi,
                "final_installment": schedule[-1].installment_amount,
            }
        )
        return schedule

    def calculate_number_of_installments(
        self,
        principal: Number,
        emi: Number,
        annual_rate: Optional[Number],
        frequency: Union[PaymentFrequency, str] = PaymentFrequency.MONTHLY,
        custom_interval_days: Optional[int] = None
    ) -> int:
        """
        Solve the tenure for a given installment amount

        n = log(EMI / (EMI - P*r)) / log(1 + r), rounded up to a whole
        installment. A zero rate needs ceil(P / EMI) installments.

        Raises:
            InvalidInput: If principal or EMI is not positive
            DomainInfeasible: If the EMI does not exceed the periodic interest
        """
        principal = self._positive(principal, "Principal")
        emi = self._positive(emi, "EMI")

        with money_context(self.config.decimal_precision):
            rate = self._periodic_rate(annual_rate, frequency, custom_interval_days)
            if rate == ZERO:
                return self._ceil(principal / emi)

            periodic_interest = principal * rate
            if emi <= periodic_interest:
                log_action(
                    logger, "warning", "EMI does not cover periodic interest",
                    action="calculate_number_of_installments", resource="emi",
                    extra={"principal": principal, "emi": emi, "periodic_interest": periodic_interest}
                )
                raise DomainInfeasible(
                    f"EMI {emi} is too low to cover interest of {self._round(periodic_interest)} "
                    "per period - loan never amortizes"
                )

            n = (emi / (emi - periodic_interest)).ln() / (ONE + rate).ln()
            return self._ceil(n.quantize(TENURE_TOLERANCE))

    def calculate_prepayment_effect(
        self,
        position: LoanPosition,
        prepayment_amount: Number,
        option: Union[PrepaymentOption, str] = PrepaymentOption.REDUCE_TENURE
    ) -> PrepaymentResult:
        """
        Calculate the effect of a prepayment on an installment loan

        reduce_tenure keeps the original EMI and solves a shorter tenure for
        the reduced principal; reduce_emi keeps the remaining installment
        count and sizes a smaller EMI. Interest saved is the difference
        between the payments still owed before the prepayment and the
        prepayment plus the payments owed after it. Both streams run for
        their installment count, the last installment settling the balance.
        """
        prepayment = self._positive(prepayment_amount, "Prepayment amount")
        option = PrepaymentOption.from_value(option)
        remaining = position.remaining_installments
        frequency = position.payment_frequency
        custom_days = position.custom_interval_days

        original_emi = self.calculate_emi(
            position.principal, position.annual_interest_rate,
            position.number_of_installments, frequency, custom_days
        )
        new_principal = position.current_balance - prepayment

        if new_principal <= ZERO:
            # Loan is closed by this prepayment
            return PrepaymentResult(
                option=option,
                new_principal=self._round(ZERO),
                original_emi=original_emi,
                new_emi=self._round(ZERO),
                original_tenure=remaining,
                new_tenure=0,
                interest_saved=self._round(position.current_balance - prepayment),
                fully_closed=True
            )

        with money_context(self.config.decimal_precision):
            rate = self._periodic_rate(position.annual_interest_rate, frequency, custom_days)
        original_stream = self._payment_stream(position.current_balance, original_emi, rate, remaining)

        if option == PrepaymentOption.REDUCE_TENURE:
            new_emi = original_emi
            new_tenure = self.calculate_number_of_installments(
                new_principal, original_emi, position.annual_interest_rate, frequency, custom_days
            )
        else:
            if remaining == 0:
                raise InvalidInput("No installments remain to spread the balance over")
            new_emi = self.calculate_emi(
                new_principal, position.annual_interest_rate, remaining, frequency, custom_days
            )
            new_tenure = remaining

        revised_stream = self._payment_stream(new_principal, new_emi, rate, new_tenure)
        result = PrepaymentResult(
            option=option,
            new_principal=self._round(new_principal),
            original_emi=original_emi,
            new_emi=new_emi,
            original_tenure=remaining,
            new_tenure=new_tenure,
            interest_saved=self._round(original_stream - (revised_stream + prepayment))
        )

        log_action(
            logger, "debug", "Calculated prepayment effect",
            action="calculate_prepayment_effect", resource="emi",
            extra={
                "option": option.value,
                "current_balance": position.current_balance,
                "prepayment": prepayment,
                "new_emi": result.new_emi,
                "new_tenure": result.new_tenure,
                "interest_saved": result.interest_saved,
            }
        )
        return result

    def calculate_principal_from_emi(
        self,
        emi: Number,
        installments: int,
        annual_rate: Optional[Number],
        frequency: Union[PaymentFrequency, str] = PaymentFrequency.MONTHLY,
        custom_interval_days: Optional[int] = None
    ) -> PrincipalFromEMI:
        """
        Principal that a given EMI repays over a given number of installments

        P = EMI * [(1+r)^n - 1] / [r(1+r)^n]
        """
        emi = self._positive(emi, "EMI")
        installments = self._installment_count(installments)

        with money_context(self.config.decimal_precision):
            rate = self._periodic_rate(annual_rate, frequency, custom_interval_days)
            total_amount = emi * installments
            if rate == ZERO:
                principal = total_amount
            else:
                factor = (ONE + rate) ** installments
                principal = emi * (factor - ONE) / (rate * factor)

        return PrincipalFromEMI(
            principal=self._round(principal),
            total_amount=self._round(total_amount),
            total_interest=self._round(total_amount - principal)
        )

    def calculate_total_payment(self, emi: Number, installments: int, principal: Number) -> TotalPayment:
        """Total paid and total interest over the life of the loan"""
        emi = to_decimal(emi, "emi")
        principal = to_decimal(principal, "principal")
        installments = self._installment_count(installments)
        total_amount = emi * installments
        return TotalPayment(
            total_amount=self._round(total_amount),
            total_interest=self._round(total_amount - principal),
            principal=self._round(principal)
        )

    def calculate_remaining_loan(
        self,
        terms: LoanTerms,
        payments: Iterable[PaymentAllocation]
    ) -> LoanProgress:
        """
        Summarise completed payments against the loan's schedule

        Payments are taken in chronological order, one per installment.
        """
        schedule = self.generate_amortization_schedule(terms)
        payments = list(payments)

        principal_paid = sum((p.principal_portion for p in payments), ZERO)
        interest_paid = sum((p.interest_portion for p in payments), ZERO)
        remaining_balance = max(ZERO, terms.principal - principal_paid)
        completed = len(payments)
        # Rounding can retire the loan before the requested count
        remaining = max(0, len(schedule) - completed)

        next_payment_due = None
        if remaining > 0:
            next_payment_due = schedule[completed].due_date

        if remaining_balance == ZERO:
            state = LoanState.FULLY_PAID
        elif completed or principal_paid > ZERO:
            state = LoanState.PARTIALLY_PAID
        else:
            state = LoanState.ACTIVE

        return LoanProgress(
            original_principal=self._round(terms.principal),
            total_paid=self._round(principal_paid + interest_paid),
            principal_paid=self._round(principal_paid),
            interest_paid=self._round(interest_paid),
            remaining_balance=self._round(remaining_balance),
            completed_installments=completed,
            remaining_installments=remaining,
            next_payment_due=next_payment_due,
            state=state
        )

    def _emi(self, principal: Decimal, rate: Decimal, installments: int) -> Decimal:
        if rate == ZERO:
            # No interest - simple division
            return principal / installments
        factor = (ONE + rate) ** installments
        return principal * (rate * factor) / (factor - ONE)

    def _payment_stream(self, balance: Decimal, emi: Decimal, rate: Decimal, installments: int) -> Decimal:
        """Total paid over installments at emi, the last one clearing whatever is left"""
        balance = self._round(balance)
        total = ZERO
        for installment_number in range(1, max(installments, 1) + 1):
            if balance <= ZERO:
                break
            interest = self._round(balance * rate)
            payment = min(emi, balance + interest)
            if installment_number >= installments:
                payment = balance + interest
            balance -= payment - interest
            total += payment
        return total

    def _first_payment_date(self, terms: LoanTerms) -> date:
        if terms.first_payment_date:
            return terms.first_payment_date
        if terms.payment_frequency == PaymentFrequency.ONE_TIME:
            if terms.due_date is None:
                raise InvalidInput("One-time loans need a due date or first payment date")
            return terms.due_date
        return next_payment_date(terms.issue_date, terms.payment_frequency, terms.custom_interval_days)

    def _periodic_rate(
        self,
        annual_rate: Optional[Number],
        frequency: Union[PaymentFrequency, str],
        custom_interval_days: Optional[int]
    ) -> Decimal:
        rate = optional_decimal(annual_rate, "annual_rate")
        if rate < ZERO:
            raise InvalidInput("Interest rate must be non-negative")
        if rate == ZERO:
            return ZERO
        n = periods_per_year(frequency, custom_interval_days, self.config.days_in_year)
        return rate / HUNDRED / n

    def _positive(self, value: Number, field: str) -> Decimal:
        value = to_decimal(value, field.lower())
        if value <= ZERO:
            raise InvalidInput(f"{field} must be positive")
        return value

    def _installment_count(self, installments: int) -> int:
        if not isinstance(installments, int) or isinstance(installments, bool) or installments <= 0:
            raise InvalidInput("Number of installments must be positive")
        return installments

    def _ceil(self, value: Decimal) -> int:
        return int(value.to_integral_value(rounding=ROUND_CEILING))

    def _round(self, value: Decimal) -> Decimal:
        return round_money(value, self.config.money_precision)
