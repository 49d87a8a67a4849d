"""
Calculation Errors

Every failure in the core is raised synchronously to the caller. Both error
kinds subclass ValueError so callers catching ValueError keep working.
"""


class LoanCalculationError(ValueError):
    """Base class for loan calculation failures"""


class InvalidInput(LoanCalculationError):
    """Input outside the domain of a formula (non-positive principal, negative rate, ...)"""


class DomainInfeasible(LoanCalculationError):
    """Inputs are valid but describe a loan that can never be repaid"""
