"""
Conversion between ICP display amounts and ledger e8s.

Amounts are parsed as base-10 decimals, never as binary floats, and converted
with floor(amount * 100_000_000). Digits finer than 0.00000001 ICP are dropped
by that floor: "1.000000019" becomes 100000001 e8s. This truncation is the
intended behaviour, not an error.
"""

import re
from decimal import ROUND_FLOOR, Decimal, InvalidOperation, localcontext
from typing import Union

from icp_transfer.errors import AmountTooSmall, InvalidAmount

E8S_PER_ICP = 100_000_000
TRANSFER_FEE_E8S = 10_000
MIN_AMOUNT_E8S = 1
MAX_AMOUNT_E8S = 2**64 - 1

_MIN_AMOUNT_ICP = Decimal(MIN_AMOUNT_E8S) / E8S_PER_ICP
_MAX_AMOUNT_ICP = Decimal(MAX_AMOUNT_E8S) / E8S_PER_ICP

# plain ASCII base-10, no digit separators
_DECIMAL = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


def _parse_decimal(value: Union[str, int, float, Decimal]) -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmount(f"Amount must be a positive number, got {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        # str() keeps the shortest repr of a float, so 0.1 stays 0.1
        value = str(value)
    if not isinstance(value, str):
        raise InvalidAmount(f"Amount must be a positive number, got {type(value).__name__}")
    value = value.strip()
    if not _DECIMAL.fullmatch(value):
        raise InvalidAmount(f"Amount must be a positive number, got '{value}'")
    try:
        return Decimal(value)
    except InvalidOperation:
        raise InvalidAmount(f"Amount must be a positive number, got '{value}'") from None


def icp_to_e8s(value: Union[str, int, float, Decimal]) -> int:
    amount = _parse_decimal(value)
    if not amount.is_finite():
        raise InvalidAmount(f"Amount must be a finite number, got '{value}'")
    if amount <= 0:
        raise InvalidAmount(f"Amount must be a positive number, got '{value}'")
    if amount < _MIN_AMOUNT_ICP:
        raise AmountTooSmall()

    if amount >= _MAX_AMOUNT_ICP + _MIN_AMOUNT_ICP:
        raise InvalidAmount(f"Amount exceeds the ledger maximum of {e8s_to_icp(MAX_AMOUNT_E8S)} ICP")

    with localcontext() as ctx:
        # exact product, the only rounding step is the floor below
        ctx.prec = len(amount.as_tuple().digits) + 30
        return int((amount * E8S_PER_ICP).to_integral_value(rounding=ROUND_FLOOR))


def e8s_to_icp(e8s: int) -> str:
    """Render e8s as an exact ICP string, e.g. 100010000 -> '1.0001'."""
    whole, frac = divmod(e8s, E8S_PER_ICP)
    if frac == 0:
        return str(whole)
    return f"{whole}.{frac:08d}".rstrip("0")


def total_required(amount_e8s: int, fee: int = TRANSFER_FEE_E8S) -> int:
    return amount_e8s + fee
