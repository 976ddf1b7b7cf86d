"""Conversions between human-readable amounts and integer token units."""

from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

from basewallet.errors import InvalidAmountError, ZeroAmountError

AmountLike = Union[str, int, Decimal]

# uint256 has 78 decimal digits
UNIT_PRECISION = 80


def to_decimal(value: AmountLike) -> Decimal:
    """Parse an amount without scaling it."""
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    return amount


def require_positive(value: AmountLike) -> Decimal:
    """Parse and reject zero or negative amounts."""
    amount = to_decimal(value)
    if amount <= 0:
        raise ZeroAmountError(value)
    return amount


def parse_units(value: AmountLike, decimals: int) -> int:
    """Scale a human amount to integer units ("1.5", 6) -> 1500000."""
    amount = to_decimal(value)
    with localcontext() as ctx:
        ctx.prec = UNIT_PRECISION
        scaled = amount.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise InvalidAmountError(f"Too many decimal places for a {decimals}-decimal token: {value}")
        return int(scaled)


def format_units(raw: int, decimals: int) -> Decimal:
    """Scale integer units back to a human amount (1500000, 6) -> 1.5."""
    if not raw:
        return Decimal(0)
    with localcontext() as ctx:
        ctx.prec = UNIT_PRECISION
        return Decimal(raw).scaleb(-decimals)
