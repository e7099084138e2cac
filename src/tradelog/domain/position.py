"""
Position and exit records - the core domain objects of the ledger.
"""
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple


class AccountType(str, Enum):
    """Brokerage account an entry was bought in."""
    NISA = "nisa"         # Tax-advantaged, commission free, counts against the annual quota
    RAKUTEN = "rakuten"   # Taxable account, percentage fee plus FX surcharge
    MOOMOO = "moomoo"     # Taxable account, percentage fee waived for small orders

    @property
    def label(self) -> str:
        return _ACCOUNT_LABELS[self]


_ACCOUNT_LABELS = {
    AccountType.NISA: "NISA",
    AccountType.RAKUTEN: "Rakuten",
    AccountType.MOOMOO: "moomoo",
}


class PositionStatus(str, Enum):
    """Lifecycle of a position, derived from exited vs. total shares."""
    OPEN = "open"
    PARTIAL = "partial"
    CLOSED = "closed"


@dataclass(frozen=True)
class Exit:
    """A partial or full disposal of a position's shares."""
    shares: int
    exit_price: float
    exit_fx: float
    exit_date: Optional[date]
    pnl: Optional[int] = None          # JPY, frozen when recorded
    pnl_pct: Optional[float] = None    # Relative to the apportioned cost basis
    reason: str = ""

    def __repr__(self) -> str:
        return f"Exit({self.exit_date}, {self.shares} @ {self.exit_price:.2f}, pnl={self.pnl})"


@dataclass(frozen=True)
class Position:
    """
    One entry transaction in USD-priced shares, possibly partially or fully exited.

    Records are immutable: commands in the ledger layer return replacement
    records instead of editing them in place.
    """
    ticker: str
    account: str
    entry_date: Optional[date]
    shares: int
    entry_price: float
    entry_fx: float
    commission: float = 0.0
    exits: Tuple[Exit, ...] = ()
    id: Optional[str] = None

    # Descriptive fields, no accounting role
    name: str = ""
    sector: str = ""
    strategy: str = ""
    per: Optional[float] = None
    per_forward: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    delivery_date: Optional[date] = None
    entry_reason: str = ""
    note: str = ""
    imported: bool = False

    def __repr__(self) -> str:
        return (
            f"Position({self.ticker}, {self.account}, {self.shares} @ {self.entry_price:.2f}, "
            f"exits={len(self.exits)})"
        )

    @property
    def last_exit(self) -> Optional[Exit]:
        """Most recently recorded exit, if any."""
        return self.exits[-1] if self.exits else None

    @property
    def account_label(self) -> str:
        try:
            return AccountType(self.account).label
        except ValueError:
            return self.account or ""
