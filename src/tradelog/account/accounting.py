"""
Position accounting - derives cost basis, remaining shares and realized PnL.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from ..domain.position import Position, PositionStatus
from .rounding import round_half_up


@dataclass(frozen=True)
class PositionMetrics:
    """Figures derived from a position's stored entry and exits."""
    entry_cost: float                 # JPY per share, unrounded
    total_cost: int                   # JPY cost basis including commission
    exited_shares: int
    remaining_shares: int
    exit_proceeds: float              # JPY, full precision
    cost_of_sold: float               # Share of total_cost apportioned to the exits
    realized_pnl: Optional[int]       # None until something is exited
    realized_pnl_pct: Optional[float]
    status: PositionStatus


def total_cost(position: Position) -> int:
    """Cost basis in JPY: shares * price * fx + commission, rounded once."""
    entry_cost = position.entry_price * position.entry_fx
    return round_half_up(position.shares * entry_cost + (position.commission or 0))


def apportioned_cost(position: Position, shares: int) -> float:
    """
    Slice of the rounded cost basis attributable to `shares`.

    Not rounded: sequential slices must add back up to total_cost exactly.
    """
    if shares <= 0 or position.shares <= 0:
        return 0.0
    return total_cost(position) * shares / position.shares


def derive(position: Position) -> PositionMetrics:
    """
    Derive the accounting figures of a position.

    Status, remaining shares and PnL are always recomputed from the stored
    shares and exits, never read from a cached field.
    """
    entry_cost = position.entry_price * position.entry_fx
    cost = total_cost(position)

    exited_shares = 0
    exit_proceeds = 0.0
    for ex in position.exits:
        exited_shares += ex.shares
        exit_proceeds += ex.shares * ex.exit_price * ex.exit_fx

    remaining_shares = position.shares - exited_shares
    cost_of_sold = apportioned_cost(position, exited_shares)

    realized_pnl = round_half_up(exit_proceeds - cost_of_sold) if exited_shares > 0 else None
    if realized_pnl is not None and cost_of_sold > 0:
        realized_pnl_pct = realized_pnl / cost_of_sold * 100
    else:
        realized_pnl_pct = None

    if remaining_shares <= 0:
        status = PositionStatus.CLOSED
    elif exited_shares > 0:
        status = PositionStatus.PARTIAL
    else:
        status = PositionStatus.OPEN

    return PositionMetrics(
        entry_cost=entry_cost,
        total_cost=cost,
        exited_shares=exited_shares,
        remaining_shares=remaining_shares,
        exit_proceeds=exit_proceeds,
        cost_of_sold=cost_of_sold,
        realized_pnl=realized_pnl,
        realized_pnl_pct=realized_pnl_pct,
        status=status,
    )


def exit_pnl(
    position: Position,
    shares: int,
    exit_price: float,
    exit_fx: float,
) -> Tuple[int, Optional[float]]:
    """
    PnL of selling `shares` of the position at the given price and rate.

    Returns: (pnl in JPY, pnl percentage or None when the slice has no cost)
    """
    proceeds = shares * exit_price * exit_fx
    cost_of_sold = apportioned_cost(position, shares)
    pnl = round_half_up(proceeds - cost_of_sold)
    pnl_pct = pnl / cost_of_sold * 100 if cost_of_sold > 0 else None
    return pnl, pnl_pct


def open_cost(position: Position) -> float:
    """Cost basis still held in the unsold shares."""
    metrics = derive(position)
    return apportioned_cost(position, metrics.remaining_shares)


def reward_risk(position: Position) -> Optional[float]:
    """
    Planned reward/risk ratio from take-profit and stop-loss levels.

    Returns: None unless both levels are set and the stop differs from entry
    """
    if not position.stop_loss or not position.take_profit:
        return None
    if position.entry_price == position.stop_loss:
        return None
    return (position.take_profit - position.entry_price) / (position.entry_price - position.stop_loss)
