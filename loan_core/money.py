"""
Monetary Value Helpers

Conversion of caller-supplied numbers to Decimal, the rounding policy for
returned amounts, and the decimal context used for intermediate math.
NEVER uses float for monetary values.
"""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP, InvalidOperation, localcontext, Context
from typing import Optional, Union
import re

from .errors import InvalidInput


Number = Union[Decimal, int, float, str]

ZERO = Decimal('0')
ONE = Decimal('1')
CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def to_decimal(value: Number, field: str = "value") -> Decimal:
    """
    Convert an incoming number to Decimal

    Floats go through str() so that 0.1 becomes Decimal('0.1') rather than
    its binary expansion.

    Raises:
        InvalidInput: If the value is None, not numeric, NaN or infinite
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise InvalidInput(f"{field} must be a number, got {value!r}")
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        result = decimal_from_string(value)
    else:
        raise InvalidInput(f"{field} must be a number, got {type(value).__name__}")

    if not result.is_finite():
        raise InvalidInput(f"{field} must be finite")
    return result


def optional_decimal(value: Optional[Number], field: str = "value") -> Decimal:
    """Like to_decimal, but None (an absent rate) maps to zero"""
    if value is None:
        return ZERO
    return to_decimal(value, field)


def round_money(value: Decimal, precision: int = 2) -> Decimal:
    """Round to the monetary precision, half away from zero"""
    return value.quantize(Decimal('0.1') ** precision, rounding=ROUND_HALF_UP)


def truncate_money(value: Decimal, precision: int = 2) -> Decimal:
    """Drop fractions below the monetary precision, toward zero"""
    return value.quantize(Decimal('0.1') ** precision, rounding=ROUND_DOWN)


def money_context(precision: int = 28):
    """Local decimal context for intermediate calculations"""
    return localcontext(Context(prec=precision))


def decimal_from_string(value: str) -> Decimal:
    """
    Safely convert string to Decimal, handling common formats

    Args:
        value: String representation of number ("1,250.50", "$100", "12,5")

    Returns:
        Decimal value

    Raises:
        InvalidInput: If string cannot be converted to valid Decimal
    """
    if not value or not isinstance(value, str):
        raise InvalidInput("Value must be a non-empty string")

    # Remove currency symbols and whitespace
    clean_value = re.sub(r'[^\w.,\-+]', '', value.strip())

    # Letters other than an exponent marker are rejected
    if re.search(r'[^\d.,\-+eE]', clean_value):
        raise InvalidInput(f"Cannot convert '{value}' to Decimal")

    # Both comma and dot - assume comma is thousands separator
    if ',' in clean_value and '.' in clean_value:
        clean_value = clean_value.replace(',', '')
    elif ',' in clean_value and clean_value.count(',') == 1:
        parts = clean_value.split(',')
        if len(parts[1]) <= 2:  # Decimal separator
            clean_value = clean_value.replace(',', '.')
        else:  # Thousands separator
            clean_value = clean_value.replace(',', '')
    else:
        clean_value = clean_value.replace(',', '')

    try:
        return Decimal(clean_value)
    except InvalidOperation:
        raise InvalidInput(f"Cannot convert '{value}' to Decimal") from None
