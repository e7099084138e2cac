"""
Ledger report script: load a Notion-style or tradelog CSV export and log summary, quota and sector PnL.

Usage: python scripts/ledger_report.py trades.csv [--fx 153.0] [--year 2025] [--refresh-fx]
"""
import argparse
import sys
from datetime import date
from pathlib import Path

from loguru import logger

from tradelog import LedgerSettings, TradeLedger
from tradelog.analytics import sector_pnl
from tradelog.data import InMemoryPositionStore

REPORT_OWNER = "local"


def build_ledger(csv_path: Path, fx_rate: float, refresh_fx: bool) -> TradeLedger:
    """Import the CSV into an in-memory ledger."""
    settings = LedgerSettings.from_env()
    ledger = TradeLedger(InMemoryPositionStore(), REPORT_OWNER, settings=settings)
    if refresh_fx and not ledger.fx.refresh():
        logger.warning("FX refresh failed, using configured rate")
    if fx_rate:
        ledger.fx.set_rate(fx_rate)
    logger.info(f"Using USD/JPY {ledger.fx.rate:.2f}")
    ledger.import_csv(csv_path)
    return ledger


def report_summary(ledger: TradeLedger):
    s = ledger.summary()
    logger.info(f"Trades: {s.trade_count} (open {s.open_count}, closed {s.closed_count})")
    logger.info(f"Realized PnL: ¥{s.total_realized_pnl:,}  Invested: ¥{s.total_invested:,}")
    if s.win_rate is not None:
        logger.info(f"Win rate: {s.win_rate:.1f}% ({s.win_count}W {s.loss_count}L)")
    if s.profit_factor is not None:
        logger.info(f"Profit factor: {s.profit_factor:.2f}")
    if s.largest_win:
        logger.info(f"Largest win: {s.largest_win.position.ticker} ¥{s.largest_win.pnl:,}")
    if s.largest_loss:
        logger.info(f"Largest loss: {s.largest_loss.position.ticker} ¥{s.largest_loss.pnl:,}")


def report_quota(ledger: TradeLedger, year: int):
    q = ledger.quota(year)
    logger.info(f"NISA {q.year}: used ¥{q.used:,} of ¥{q.limit:,} ({q.usage_pct:.1f}%), remaining ¥{q.remaining:,}")
    if q.level != "ok":
        logger.warning(f"NISA quota usage is at {q.level} level")


def report_sectors(ledger: TradeLedger):
    for sector, pnl in sector_pnl(ledger.positions()):
        logger.info(f"  {sector:<20} ¥{pnl:>12,}")


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("csv_path", type=Path)
    parser.add_argument("--fx", type=float, default=None, help="USD/JPY rate for imported trades")
    parser.add_argument("--year", type=int, default=date.today().year)
    parser.add_argument("--refresh-fx", action="store_true", help="Fetch the latest USD/JPY quote")
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level="INFO", format="{time:HH:mm:ss} | {level:<7} | {message}")

    if not args.csv_path.exists():
        logger.error(f"File not found: {args.csv_path}")
        sys.exit(1)

    ledger = build_ledger(args.csv_path, args.fx, args.refresh_fx)
    report_summary(ledger)
    report_quota(ledger, args.year)
    report_sectors(ledger)


if __name__ == "__main__":
    main()
