"""
CSV import of trades exported from other tools (Notion databases, spreadsheets).

Column names vary between exports, so each field is located through a list
of aliases. Anything that cannot be read defaults to zero, empty or None;
a bad row never aborts the import.
"""
import io
import re
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Union

import polars as pl
from loguru import logger

from ..account.accounting import apportioned_cost
from ..domain.position import AccountType, Exit, Position

CsvSource = Union[str, Path, bytes]

# Field -> header aliases, tried in order; a header matches if equal or containing the alias
COLUMN_ALIASES: Dict[str, List[str]] = {
    "ticker": ["ティッカー", "Ticker", "ticker", "銘柄"],
    "entry_date": ["エントリー", "エントリー日", "Entry Date", "entry_date"],
    "entry_price": ["取得単価（ドル）", "取得単価(ドル)", "取得単価", "Entry Price", "entry_price", "買値"],
    "shares": ["取得株数", "株数", "Shares", "shares"],
    "per": ["PER", "per"],
    "per_forward": ["予想PER", "予想per", "Forward PER"],
    "exit_date": ["クローズ", "決済日", "Exit Date", "exit_date"],
    "exit_shares": ["売却株数", "Exit Shares", "Exited Shares"],
    "note": ["備考", "メモ", "Note", "note"],
    "pnl": ["損益（円）", "損益(円)", "損益", "PnL"],
    "delivery_date": ["受渡日", "Delivery Date"],
    "total_cost": ["投資元本（円）", "投資元本(円)", "投資元本", "投資総額", "Total Cost"],
}

_DATE_PATTERN = re.compile(r"(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})")
_NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


def normalize_date(text: Optional[str]) -> Optional[date]:
    """Read YYYY/M/D or YYYY-M-D (anywhere in the text); anything else is absent."""
    if not text:
        return None
    m = _DATE_PATTERN.search(text)
    if m is None:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def parse_number(text: Optional[str]) -> Optional[float]:
    """Leading number of `text`, ignoring currency marks and separators; 0 reads as absent."""
    if not text:
        return None
    m = _NUMBER_PATTERN.match(text.replace("¥", "").replace("$", "").replace(",", "").strip())
    if m is None:
        return None
    return float(m.group(0)) or None


def parse_count(text: Optional[str]) -> Optional[int]:
    number = parse_number(text)
    return int(number) if number else None


def _clean_header(header: str) -> str:
    return header.lstrip("\ufeff").strip().strip("\"'").strip()


def resolve_columns(headers: List[str]) -> Dict[str, Optional[str]]:
    """Map each known field to the first header matching one of its aliases."""
    cleaned = [(_clean_header(h), h) for h in headers]
    resolved: Dict[str, Optional[str]] = {}
    for key, aliases in COLUMN_ALIASES.items():
        resolved[key] = None
        for alias in aliases:
            match = next((raw for clean, raw in cleaned if clean == alias or alias in clean), None)
            if match is not None:
                resolved[key] = match
                break
    return resolved


def _read_frame(source: CsvSource) -> pl.DataFrame:
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    # All columns as text; parsing is done field by field
    return pl.read_csv(source, infer_schema_length=0, truncate_ragged_lines=True)


def _build_position(row: Dict[str, Optional[str]], fx_rate: float) -> Optional[Position]:
    def get(key: str) -> str:
        return (row.get(key) or "").strip().strip("\"'").strip()

    ticker = get("ticker").upper()
    if not ticker:
        return None

    shares = parse_count(get("shares")) or 0
    entry_price = parse_number(get("entry_price"))
    total_cost = parse_number(get("total_cost"))
    if entry_price is None and total_cost and shares:
        # Only the yen principal was kept; back out the USD price at the import rate
        entry_price = total_cost / (shares * fx_rate)

    position = Position(
        ticker=ticker,
        account=AccountType.NISA.value,
        entry_date=normalize_date(get("entry_date")),
        shares=shares,
        entry_price=entry_price or 0.0,
        entry_fx=fx_rate,
        commission=0.0,
        per=parse_number(get("per")),
        per_forward=parse_number(get("per_forward")),
        delivery_date=normalize_date(get("delivery_date")),
        note=get("note"),
        imported=True,
    )

    exit_date = normalize_date(get("exit_date"))
    exit_shares = parse_count(get("exit_shares"))
    if exit_date is None or not exit_shares:
        return position
    if exit_shares > shares:
        logger.warning(f"Import {ticker}: exit of {exit_shares} exceeds {shares} shares, exit skipped")
        return position

    # Exports carry the realized yen PnL but no sale price; derive the price
    # that reproduces that PnL so recomputed figures agree with the export.
    pnl = int(parse_number(get("pnl")) or 0)
    cost_of_sold = apportioned_cost(position, exit_shares)
    exit_price = (pnl + cost_of_sold) / (exit_shares * fx_rate)
    record = Exit(
        shares=exit_shares,
        exit_price=exit_price,
        exit_fx=fx_rate,
        exit_date=exit_date,
        pnl=pnl,
        pnl_pct=pnl / cost_of_sold * 100 if cost_of_sold > 0 else None,
    )
    return replace(position, exits=(record,))


def import_positions(source: CsvSource, fx_rate: float) -> List[Position]:
    """
    Read candidate positions from a CSV export.

    Imported entries are booked to the NISA account at `fx_rate`, with no
    commission. Rows without a ticker are skipped.

    Args:
        source: File path or raw CSV bytes
        fx_rate: USD/JPY rate applied to every imported entry and exit
    """
    frame = _read_frame(source)
    columns = resolve_columns(frame.columns)
    logger.debug(f"Import column mapping: {columns}")

    positions = []
    skipped = 0
    for raw in frame.iter_rows(named=True):
        row = {key: raw.get(col) if col else None for key, col in columns.items()}
        position = _build_position(row, fx_rate)
        if position is None:
            skipped += 1
            continue
        positions.append(position)

    logger.info(f"Imported {len(positions)} positions ({skipped} rows without ticker skipped)")
    return positions
