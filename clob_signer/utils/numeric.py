"""
Numeric type utilities for Decimal precision.

Helpers for converting between caller input, Decimal and integer base
units without ever going through binary floating point.
"""

from typing import Any, Optional
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
import logging

logger = logging.getLogger(__name__)

TOKEN_DECIMALS = 6  # USDC and conditional tokens


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    Safely convert any value to Decimal.

    Args:
        value: Value to convert (str, int, float, Decimal, None)
        default: Default value if conversion fails (default: None)

    Returns:
        Decimal or default if conversion fails

    Examples:
        >>> to_decimal("0.65")
        Decimal('0.65')
        >>> to_decimal(100.50)
        Decimal('100.5')
        >>> to_decimal(None, Decimal("0"))
        Decimal('0')
    """
    if value is None or isinstance(value, bool):
        return default

    try:
        if isinstance(value, Decimal):
            return value
        elif isinstance(value, str):
            return Decimal(value)
        elif isinstance(value, (int, float)):
            # Convert via string to avoid float precision loss
            return Decimal(str(value))
        else:
            logger.warning(f"Cannot convert {type(value)} to Decimal: {value}")
            return default
    except (ValueError, InvalidOperation) as e:
        logger.warning(f"Failed to convert {value} to Decimal: {e}")
        return default


def decimal_places(value: Decimal) -> int:
    """
    Number of digits after the decimal point, trailing zeros included.

    Examples:
        >>> decimal_places(Decimal("1.540"))
        3
        >>> decimal_places(Decimal("10"))
        0
    """
    exponent = value.as_tuple().exponent
    return -exponent if isinstance(exponent, int) and exponent < 0 else 0


def to_token_units(amount: Decimal, decimals: int = TOKEN_DECIMALS) -> int:
    """
    Convert a token amount to integer base units.

    Args:
        amount: Amount in token units (Decimal)
        decimals: Token decimals (default: 6 for USDC/CTF)

    Returns:
        Amount in base units (int), ties rounded away from zero

    Examples:
        >>> to_token_units(Decimal("1.54"))
        1540000
        >>> to_token_units(Decimal("303.0303"))
        303030300
    """
    units = amount * (Decimal(10) ** decimals)
    return int(units.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

