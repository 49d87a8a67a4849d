"""
Loan Calculation Core

Time-value-of-money calculations for loans: interest accrual, EMI sizing,
amortization schedules, tenure solving, prepayment analysis and payment
allocation. All financial math uses Decimal.
"""

__version__ = "1.0.0"
