"""
Payment Allocation Module

Splits an incoming payment between accrued interest and outstanding
principal, interest first.
"""

from decimal import Decimal
from typing import Optional
import logging

from .config import LoanCoreConfig, get_config
from .logging_config import log_action
from .models import PaymentAllocation
from .money import Number, ZERO, to_decimal, truncate_money


logger = logging.getLogger("loan_core.allocation")


class PaymentAllocator:
    """Allocates payments to interest and principal"""

    def __init__(self, config: Optional[LoanCoreConfig] = None):
        self.config = config or get_config()

    def allocate_payment(
        self,
        payment_amount: Number,
        accrued_interest: Number,
        outstanding_principal: Number
    ) -> PaymentAllocation:
        """
        Split a payment interest first, then principal

        The principal portion is capped at the outstanding principal; any
        remainder is reported as excess for the caller to credit or reject.
        Negative inputs count as zero. All three figures are truncated to
        whole cents before splitting, so neither portion can exceed what was
        paid or what was owed.
        """
        payment = self._cents(payment_amount, "payment_amount")
        interest_due = self._cents(accrued_interest, "accrued_interest")
        principal_due = self._cents(outstanding_principal, "outstanding_principal")

        interest_portion = min(payment, interest_due)
        principal_portion = min(payment - interest_portion, principal_due)
        excess = payment - interest_portion - principal_portion

        allocation = PaymentAllocation(
            interest_portion=interest_portion,
            principal_portion=principal_portion,
            excess=excess
        )

        if allocation.excess > ZERO:
            log_action(
                logger, "info", "Payment exceeds total outstanding",
                action="allocate_payment", resource="allocation",
                extra={
                    "payment_amount": payment,
                    "accrued_interest": interest_due,
                    "outstanding_principal": principal_due,
                    "excess": allocation.excess,
                }
            )
        return allocation

    def _cents(self, value: Number, field: str) -> Decimal:
        amount = max(ZERO, to_decimal(value, field))
        return truncate_money(amount, self.config.money_precision)
