"""
tradelog: personal stock-trading ledger with JPY profit-and-loss and NISA quota tracking.
"""
from .domain import AccountType, Exit, Position, PositionStatus
from .account import commission, derive, new_position, quota_status, quota_used, record_exit, remove_exit
from .analytics import ViewState, select, summarize
from .config import LedgerSettings
from .errors import FxRateError, StorageError, TradeLogError, ValidationError
from .service import TradeLedger

__version__ = "0.1.0"

__all__ = [
    "AccountType",
    "Exit",
    "Position",
    "PositionStatus",
    "commission",
    "derive",
    "new_position",
    "quota_status",
    "quota_used",
    "record_exit",
    "remove_exit",
    "ViewState",
    "select",
    "summarize",
    "LedgerSettings",
    "FxRateError",
    "StorageError",
    "TradeLogError",
    "ValidationError",
    "TradeLedger",
]
