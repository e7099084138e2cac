"""
CSV export of stored and derived position fields.
"""
from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd
from loguru import logger

from ..analytics.summary import summary_frame
from ..domain.position import Position

# Frame column -> CSV header
EXPORT_COLUMNS = {
    "ticker": "Ticker",
    "name": "Name",
    "account": "Account",
    "sector": "Sector",
    "strategy": "Strategy",
    "entry_date": "Entry Date",
    "shares": "Shares",
    "entry_price": "Entry Price (USD)",
    "entry_fx": "Entry FX",
    "entry_cost": "Entry Price (JPY)",
    "total_cost": "Total Cost (JPY)",
    "commission": "Commission (JPY)",
    "per": "PER",
    "per_forward": "Forward PER",
    "delivery_date": "Delivery Date",
    "entry_reason": "Entry Reason",
    "stop_loss": "Stop Loss (USD)",
    "take_profit": "Take Profit (USD)",
    "status": "Status",
    "last_exit_date": "Exit Date",
    "exited_shares": "Exit Shares",
    "realized_pnl": "PnL (JPY)",
    "realized_pnl_pct": "PnL (%)",
    "note": "Note",
}


def export_frame(positions: Sequence[Position]) -> pd.DataFrame:
    """Export columns in order, with yen rounded to whole units and percentages to 2dp."""
    frame = summary_frame(positions)
    if frame.empty:
        return pd.DataFrame(columns=list(EXPORT_COLUMNS.values()))

    frame = frame[list(EXPORT_COLUMNS)].copy()
    frame["entry_cost"] = frame["entry_cost"].round(0)
    frame["realized_pnl_pct"] = frame["realized_pnl_pct"].astype(float).round(2)
    # Integer yen columns with gaps would otherwise print as floats
    frame["realized_pnl"] = frame["realized_pnl"].astype("Int64")
    return frame.rename(columns=EXPORT_COLUMNS)


def export_csv(
    positions: Sequence[Position],
    path: Optional[Union[str, Path]] = None,
) -> Optional[str]:
    """
    Write positions as CSV, UTF-8 with BOM so spreadsheet apps detect the encoding.

    Returns: The CSV text when no path is given, else None
    """
    frame = export_frame(positions)
    if path is None:
        return "\ufeff" + frame.to_csv(index=False)

    frame.to_csv(path, index=False, encoding="utf-8-sig")
    logger.info(f"Exported {len(frame)} positions -> {path}")
    return None
