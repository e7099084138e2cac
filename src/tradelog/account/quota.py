"""
NISA quota tracking.
"""
from dataclasses import dataclass
from typing import Iterable, Union

from ..config import NISA_ANNUAL_LIMIT
from ..domain.position import AccountType, Position
from .accounting import total_cost


@dataclass(frozen=True)
class QuotaStatus:
    """Quota usage for one calendar year."""
    year: int
    limit: int
    used: int         # Raw, may exceed the limit
    remaining: int    # May be negative
    usage_pct: float  # Clamped to 100 for display

    @property
    def level(self) -> str:
        if self.usage_pct > 90:
            return "danger"
        if self.usage_pct > 70:
            return "warn"
        return "ok"


def quota_used(
    positions: Iterable[Position],
    year: int,
    account: Union[AccountType, str] = AccountType.NISA,
) -> int:
    """
    Sum the entry cost of `account` positions opened in `year`.

    Quota consumed by a purchase is not returned when the shares are sold,
    so exits are ignored.
    """
    return sum(
        total_cost(p)
        for p in positions
        if p.account == account and p.entry_date is not None and p.entry_date.year == year
    )


def quota_remaining(used: int, limit: int = NISA_ANNUAL_LIMIT) -> int:
    return limit - used


def quota_status(
    positions: Iterable[Position],
    year: int,
    limit: int = NISA_ANNUAL_LIMIT,
) -> QuotaStatus:
    """Usage summary for `year`; the caller supplies the year."""
    used = quota_used(positions, year)
    usage_pct = min(used / limit * 100, 100.0) if limit > 0 else 100.0
    return QuotaStatus(
        year=year,
        limit=limit,
        used=used,
        remaining=quota_remaining(used, limit),
        usage_pct=usage_pct,
    )
