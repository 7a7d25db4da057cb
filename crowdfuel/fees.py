# crowdfuel/fees.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Tuple

PLATFORM_FEE_RATE = Decimal("0.05")


def platform_fee(amount: int) -> int:
    """Platform cut in minor units: amount * 5%, halves rounded up."""
    fee = (Decimal(int(amount)) * PLATFORM_FEE_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(fee)


def split_amount(amount: int) -> Tuple[int, int]:
    """Returns (platform_fee, amount forwarded to the destination account)."""
    fee = platform_fee(amount)
    return fee, int(amount) - fee
