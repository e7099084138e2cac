"""
Yen rounding.
"""
import math


def round_half_up(value: float) -> int:
    """
    Round to the nearest whole yen, halves toward positive infinity.

    Python's round() uses banker's rounding (round(742.5) == 742), which
    would disagree with every figure already stored in the ledger.
    """
    return int(math.floor(value + 0.5))
