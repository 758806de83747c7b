"""
Input Validation Module

Format checks for user names and monetary amounts. Range and business rules
live in the ledger, not here.
"""

from decimal import Decimal, InvalidOperation
import re
from typing import Any

from .errors import InvalidAmountError


_DISALLOWED_NAME_CHARS = re.compile(r"[^a-zA-Z ]")

# Largest magnitude representable with 28 significant digits
MAX_AMOUNT_MAGNITUDE = Decimal(10) ** 28


def is_valid_name(name: Any) -> bool:
    """Check that name is non-blank and made only of ASCII letters and spaces"""
    if not isinstance(name, str) or not name.strip():
        return False
    return _DISALLOWED_NAME_CHARS.search(name) is None


def _to_decimal(amount: Any) -> Decimal:
    if isinstance(amount, bool) or amount is None:
        raise InvalidAmountError()
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, float, str)):
        try:
            # Floats go through str so 0.1 stays 0.1
            value = Decimal(str(amount).strip())
        except InvalidOperation:
            raise InvalidAmountError()
    else:
        raise InvalidAmountError()

    if not value.is_finite() or abs(value) >= MAX_AMOUNT_MAGNITUDE:
        raise InvalidAmountError()
    return value


def is_valid_amount(amount: Any) -> bool:
    """Check that amount is a finite decimal number"""
    try:
        _to_decimal(amount)
    except InvalidAmountError:
        return False
    return True


def parse_amount(amount: Any) -> Decimal:
    """
    Convert an externally supplied amount to Decimal.

    Raises:
        InvalidAmountError: If the amount is not a finite decimal number
    """
    return _to_decimal(amount)
