"""
Brokerage commission per account type.
"""
from typing import Union

from ..domain.position import AccountType
from .rounding import round_half_up


# Rakuten: 0.495% of notional capped at $22, plus 25 sen per share FX surcharge
RAKUTEN_RATE = 0.00495
RAKUTEN_FX_SURCHARGE = 0.25  # JPY per share

# moomoo: 0.132% of notional capped at $22, waived while the fee would be <= $8.3
MOOMOO_RATE = 0.00132
MOOMOO_FREE_FEE = 8.3

COMMISSION_CAP_USD = 22.0


def commission(
    account: Union[AccountType, str],
    entry_price: float,
    shares: int,
    fx_rate: float,
) -> int:
    """
    Calculate the entry commission in JPY.

    Computed once when an entry is saved and stored on the position; later
    FX or price edits only change it when the caller recomputes it.

    Args:
        account: Account type (unknown values are charged nothing)
        entry_price: USD unit price
        shares: Number of shares bought
        fx_rate: USD/JPY rate used for conversion

    Returns: Commission in whole yen
    """
    notional = entry_price * shares

    if account == AccountType.NISA:
        return 0

    if account == AccountType.RAKUTEN:
        fee_usd = min(notional * RAKUTEN_RATE, COMMISSION_CAP_USD)
        surcharge = RAKUTEN_FX_SURCHARGE * shares if entry_price > 0 else 0.0
        return round_half_up(fee_usd * fx_rate + surcharge)

    if account == AccountType.MOOMOO:
        if notional <= MOOMOO_FREE_FEE / MOOMOO_RATE:
            fee_usd = 0.0
        else:
            fee_usd = min(notional * MOOMOO_RATE, COMMISSION_CAP_USD)
        return round_half_up(fee_usd * fx_rate)

    return 0
