import math
import re
from typing import Any

ADDRESS_PATTERN = re.compile(r'^0x[0-9a-fA-F]{40}$')
AMOUNT_PATTERN = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')


def is_valid_address(address: Any) -> bool:
    """True if address is a 0x-prefixed 40 hex digit account identifier."""
    if not isinstance(address, str):
        return False
    return ADDRESS_PATTERN.fullmatch(address) is not None


def is_valid_amount(amount: Any) -> bool:
    """True if amount is a finite number written in plain decimal notation.

    Zero and negative values pass; the token service rejects them.
    """
    if amount is None or isinstance(amount, bool):
        return False
    if isinstance(amount, str):
        amount = amount.strip()
        if not AMOUNT_PATTERN.fullmatch(amount):
            return False
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value)


def shorten_address(address: str, head: int = 10, tail: int = 8) -> str:
    """Shorten an address for display, e.g. 0x12345678...9abcdef0"""
    if not address:
        return 'N/A'
    if len(address) <= head + tail:
        return address
    return f"{address[:head]}...{address[-tail:]}"
