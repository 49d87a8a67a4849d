"""
Loan Calculation Value Objects

Inputs and results of the calculation engines. These carry no identity or
lifecycle; they are created for one calculation and owned by the caller.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass
from typing import Optional, Union
from enum import Enum

from .errors import InvalidInput
from .frequency import PaymentFrequency, as_date
from .money import ZERO, CENT, to_decimal, optional_decimal


class InterestType(Enum):
    """Types of interest calculations"""
    NONE = "none"              # Interest-free
    SIMPLE = "simple"          # Simple interest (principal only)
    COMPOUND = "compound"      # Compound interest

    @classmethod
    def from_value(cls, value: Union["InterestType", str, None]) -> "InterestType":
        if value is None:
            return cls.NONE
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidInput(f"Unsupported interest type: {value!r}") from None


class PrepaymentOption(Enum):
    """What a prepayment is used for"""
    REDUCE_TENURE = "reduce_tenure"  # Keep EMI, pay off sooner
    REDUCE_EMI = "reduce_emi"        # Keep tenure, pay less each installment

    @classmethod
    def from_value(cls, value: Union["PrepaymentOption", str]) -> "PrepaymentOption":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidInput(f"Unsupported prepayment option: {value!r}") from None


class LoanState(Enum):
    """Repayment state derived from the outstanding balance"""
    ACTIVE = "active"                  # Nothing repaid yet
    PARTIALLY_PAID = "partially_paid"  # Some principal repaid
    FULLY_PAID = "fully_paid"          # Outstanding balance is zero


def _positive_int(value, field: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise InvalidInput(f"{field} must be a positive integer")
    return value


@dataclass(frozen=True)
class LoanTerms:
    """Loan terms as supplied by the calling layer"""
    principal: Decimal
    issue_date: date
    annual_interest_rate: Decimal = ZERO        # Percentage, e.g. 12 for 12% p.a.
    interest_type: InterestType = InterestType.NONE
    due_date: Optional[date] = None
    compounding_frequency: Optional[PaymentFrequency] = None
    number_of_installments: Optional[int] = None
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    custom_interval_days: Optional[int] = None
    first_payment_date: Optional[date] = None

    def __post_init__(self):
        principal = to_decimal(self.principal, "principal")
        if principal <= ZERO:
            raise InvalidInput("Principal must be positive")
        object.__setattr__(self, 'principal', principal)

        rate = optional_decimal(self.annual_interest_rate, "annual_interest_rate")
        if rate < ZERO:
            raise InvalidInput("Interest rate must be non-negative")
        object.__setattr__(self, 'annual_interest_rate', rate)

        interest_type = InterestType.from_value(self.interest_type)
        object.__setattr__(self, 'interest_type', interest_type)
        object.__setattr__(self, 'issue_date', as_date(self.issue_date))

        if self.due_date is not None:
            due_date = as_date(self.due_date)
            if due_date < self.issue_date:
                raise InvalidInput("Due date must not be before issue date")
            object.__setattr__(self, 'due_date', due_date)

        if self.first_payment_date is not None:
            object.__setattr__(self, 'first_payment_date', as_date(self.first_payment_date))

        if self.compounding_frequency is not None:
            object.__setattr__(
                self, 'compounding_frequency',
                PaymentFrequency.from_value(self.compounding_frequency)
            )
        elif interest_type == InterestType.COMPOUND:
            raise InvalidInput("Compound interest requires a compounding frequency")

        payment_frequency = PaymentFrequency.from_value(self.payment_frequency)
        object.__setattr__(self, 'payment_frequency', payment_frequency)

        if self.number_of_installments is not None:
            _positive_int(self.number_of_installments, "Number of installments")
            if payment_frequency == PaymentFrequency.ONE_TIME and self.number_of_installments != 1:
                raise InvalidInput("One-time loans have exactly one installment")

        uses_custom = PaymentFrequency.CUSTOM in (payment_frequency, self.compounding_frequency)
        if uses_custom:
            _positive_int(self.custom_interval_days, "Custom interval days")

    @property
    def has_interest(self) -> bool:
        """Whether any interest accrues under these terms"""
        return self.interest_type != InterestType.NONE and self.annual_interest_rate > ZERO


@dataclass(frozen=True)
class LoanPosition:
    """Where an installment loan stands when a prepayment is considered"""
    principal: Decimal                  # Original principal
    annual_interest_rate: Decimal
    number_of_installments: int         # Original tenure
    current_balance: Decimal            # Outstanding principal now
    completed_installments: int = 0
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    custom_interval_days: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, 'principal', to_decimal(self.principal, "principal"))
        object.__setattr__(
            self, 'annual_interest_rate',
            optional_decimal(self.annual_interest_rate, "annual_interest_rate")
        )
        object.__setattr__(self, 'current_balance', to_decimal(self.current_balance, "current_balance"))
        object.__setattr__(self, 'payment_frequency', PaymentFrequency.from_value(self.payment_frequency))

        _positive_int(self.number_of_installments, "Number of installments")
        if not isinstance(self.completed_installments, int) or self.completed_installments < 0:
            raise InvalidInput("Completed installments must be a non-negative integer")
        if self.completed_installments > self.number_of_installments:
            raise InvalidInput("Completed installments cannot exceed the number of installments")
        if self.current_balance < ZERO:
            raise InvalidInput("Current balance must be non-negative")

    @property
    def remaining_installments(self) -> int:
        return self.number_of_installments - self.completed_installments


@dataclass(frozen=True)
class AmortizationEntry:
    """Single entry in amortization schedule"""
    installment_number: int
    due_date: date
    installment_amount: Decimal
    principal_component: Decimal
    interest_component: Decimal
    remaining_balance: Decimal

    def __post_init__(self):
        # Installment must equal principal + interest
        calculated = self.principal_component + self.interest_component
        if abs(calculated - self.installment_amount) > CENT:
            raise InvalidInput(
                f"Installment amount {self.installment_amount} does not equal "
                f"principal {self.principal_component} + interest {self.interest_component}"
            )


@dataclass(frozen=True)
class PaymentAllocation:
    """How an incoming payment splits between interest and principal"""
    interest_portion: Decimal
    principal_portion: Decimal
    excess: Decimal = ZERO  # Part of the payment beyond everything outstanding

    @property
    def amount(self) -> Decimal:
        """Amount absorbed by the loan"""
        return self.interest_portion + self.principal_portion


@dataclass(frozen=True)
class PrepaymentResult:
    """Outcome of applying a prepayment to an installment loan"""
    option: PrepaymentOption
    new_principal: Decimal
    original_emi: Decimal
    new_emi: Decimal
    original_tenure: int                # Remaining installments before prepayment
    new_tenure: int
    interest_saved: Decimal
    fully_closed: bool = False

    @property
    def tenure_reduced(self) -> int:
        return self.original_tenure - self.new_tenure

    @property
    def emi_reduced(self) -> Decimal:
        return self.original_emi - self.new_emi


@dataclass(frozen=True)
class InterestResult:
    """Compound interest outcome"""
    total_amount: Decimal
    interest_amount: Decimal


@dataclass(frozen=True)
class AmountDue:
    """Principal plus interest owed at maturity"""
    total_amount_due: Decimal
    interest_amount: Decimal


@dataclass(frozen=True)
class TotalPayment:
    """Totals over the life of an installment loan"""
    total_amount: Decimal
    total_interest: Decimal
    principal: Decimal


@dataclass(frozen=True)
class PrincipalFromEMI:
    """Loan size supported by a given EMI and tenure"""
    principal: Decimal
    total_amount: Decimal
    total_interest: Decimal


@dataclass(frozen=True)
class InterestScheduleEntry:
    """Interest accumulated up to a point between issue and due date"""
    as_of_date: date
    principal_balance: Decimal
    interest_accrued: Decimal
    cumulative_interest: Decimal
    total_balance: Decimal


@dataclass(frozen=True)
class LoanProgress:
    """Repayment progress of an installment loan"""
    original_principal: Decimal
    total_paid: Decimal
    principal_paid: Decimal
    interest_paid: Decimal
    remaining_balance: Decimal
    completed_installments: int
    remaining_installments: int
    next_payment_due: Optional[date]
    state: LoanState

    @property
    def is_fully_paid(self) -> bool:
        return self.state == LoanState.FULLY_PAID
