"""
Analytics Layer: Portfolio summaries and position views.
"""
from .summary import (
    OpenPositionGroup,
    PortfolioSummary,
    TradeResult,
    open_position_groups,
    sector_pnl,
    summarize,
    summary_frame,
)
from .view import ViewState, apply_filters, matches, select, sort_positions

__all__ = [
    "OpenPositionGroup",
    "PortfolioSummary",
    "TradeResult",
    "open_position_groups",
    "sector_pnl",
    "summarize",
    "summary_frame",
    "ViewState",
    "apply_filters",
    "matches",
    "select",
    "sort_positions",
]
