"""
Portfolio summary - win rate, profit factor, sector PnL and open holdings.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from ..account.accounting import PositionMetrics, apportioned_cost, derive, reward_risk
from ..domain.position import Position, PositionStatus


@dataclass(frozen=True)
class TradeResult:
    """A position together with its realized PnL."""
    position: Position
    pnl: int


@dataclass(frozen=True)
class PortfolioSummary:
    """Statistics over a set of positions."""
    trade_count: int
    open_count: int
    closed_count: int
    win_count: int
    loss_count: int
    total_realized_pnl: int
    total_invested: int
    win_rate: Optional[float]
    average_win: Optional[float]
    average_loss: Optional[float]
    profit_factor: Optional[float]
    largest_win: Optional[TradeResult]
    largest_loss: Optional[TradeResult]


@dataclass(frozen=True)
class OpenPositionGroup:
    """Unsold shares of one ticker, across all of its entries."""
    ticker: str
    name: str
    sector: str
    account: str
    entries: int
    remaining_shares: int
    cost: float              # JPY cost basis still held
    average_cost: float      # JPY per share
    average_cost_usd: float
    stop_loss: Optional[float]
    take_profit: Optional[float]


def _mean(values: List[int]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def _derive_all(positions: Sequence[Position]) -> List[Tuple[Position, PositionMetrics]]:
    return [(p, derive(p)) for p in positions]


def summarize(positions: Sequence[Position]) -> PortfolioSummary:
    """
    Summarize a (usually already filtered) set of positions.

    Positions count as closed trades as soon as any shares were exited.
    Ratios that have no defined value are None rather than 0.
    """
    calcs = _derive_all(positions)
    closed = [(p, m) for p, m in calcs if m.realized_pnl is not None]
    wins = [(p, m) for p, m in closed if m.realized_pnl > 0]
    losses = [(p, m) for p, m in closed if m.realized_pnl < 0]

    average_win = _mean([m.realized_pnl for _, m in wins])
    average_loss = _mean([m.realized_pnl for _, m in losses])
    if average_loss:
        profit_factor = abs((average_win or 0.0) / average_loss)
    else:
        profit_factor = None

    # Ties go to the position listed last
    largest_win = max(reversed(wins), key=lambda x: x[1].realized_pnl, default=None)
    largest_loss = min(reversed(losses), key=lambda x: x[1].realized_pnl, default=None)

    return PortfolioSummary(
        trade_count=len(calcs),
        open_count=sum(1 for _, m in calcs if m.status != PositionStatus.CLOSED),
        closed_count=len(closed),
        win_count=len(wins),
        loss_count=len(losses),
        total_realized_pnl=sum(m.realized_pnl for _, m in closed),
        total_invested=sum(m.total_cost for _, m in calcs),
        win_rate=len(wins) / len(closed) * 100 if closed else None,
        average_win=average_win,
        average_loss=average_loss,
        profit_factor=profit_factor,
        largest_win=TradeResult(largest_win[0], largest_win[1].realized_pnl) if largest_win else None,
        largest_loss=TradeResult(largest_loss[0], largest_loss[1].realized_pnl) if largest_loss else None,
    )


def sector_pnl(positions: Sequence[Position]) -> List[Tuple[str, int]]:
    """Realized PnL per sector, largest gain first. Unlabelled positions are skipped."""
    totals: Dict[str, int] = {}
    for p, m in _derive_all(positions):
        if m.realized_pnl is None or not p.sector:
            continue
        totals[p.sector] = totals.get(p.sector, 0) + m.realized_pnl
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def open_position_groups(
    positions: Sequence[Position],
    fallback_fx: float,
) -> List[OpenPositionGroup]:
    """
    Group positions that still hold shares by ticker, in first-seen order.

    Descriptive fields (name, account, stop-loss, ...) come from the first
    entry of each group.
    """
    grouped: Dict[str, List[Tuple[Position, PositionMetrics]]] = {}
    for p, m in _derive_all(positions):
        if m.status == PositionStatus.CLOSED:
            continue
        grouped.setdefault(p.ticker, []).append((p, m))

    groups = []
    for ticker, items in grouped.items():
        first = items[0][0]
        remaining = sum(m.remaining_shares for _, m in items)
        cost = sum(apportioned_cost(p, m.remaining_shares) for p, m in items)
        average_cost = cost / remaining if remaining > 0 else 0.0
        groups.append(OpenPositionGroup(
            ticker=ticker,
            name=first.name,
            sector=first.sector,
            account=first.account,
            entries=len(items),
            remaining_shares=remaining,
            cost=cost,
            average_cost=average_cost,
            average_cost_usd=average_cost / (first.entry_fx or fallback_fx),
            stop_loss=first.stop_loss,
            take_profit=first.take_profit,
        ))
    return groups


def summary_frame(positions: Sequence[Position]) -> pd.DataFrame:
    """Per-position stored and derived fields as a DataFrame."""
    if not positions:
        return pd.DataFrame()

    records = []
    for p, m in _derive_all(positions):
        last_exit = p.last_exit
        records.append({
            "ticker": p.ticker,
            "name": p.name,
            "account": p.account,
            "sector": p.sector,
            "strategy": p.strategy,
            "entry_date": p.entry_date,
            "shares": p.shares,
            "entry_price": p.entry_price,
            "entry_fx": p.entry_fx,
            "entry_cost": m.entry_cost,
            "total_cost": m.total_cost,
            "commission": p.commission,
            "per": p.per,
            "per_forward": p.per_forward,
            "delivery_date": p.delivery_date,
            "entry_reason": p.entry_reason,
            "stop_loss": p.stop_loss,
            "take_profit": p.take_profit,
            "reward_risk": reward_risk(p),
            "status": m.status.value,
            "exited_shares": m.exited_shares,
            "remaining_shares": m.remaining_shares,
            "last_exit_date": last_exit.exit_date if last_exit else None,
            "last_exit_price": last_exit.exit_price if last_exit else None,
            "realized_pnl": m.realized_pnl,
            "realized_pnl_pct": m.realized_pnl_pct,
            "note": p.note,
        })
    return pd.DataFrame(records)
