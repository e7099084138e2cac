"""
Account Layer: Commission, position accounting, quota and ledger commands.
"""
from .commission import commission
from .accounting import PositionMetrics, derive, exit_pnl, open_cost, reward_risk, total_cost
from .quota import QuotaStatus, quota_remaining, quota_status, quota_used
from .ledger import ExitPreview, edit_entry, new_position, preview_exit, record_exit, remove_exit

__all__ = [
    "commission",
    "PositionMetrics",
    "derive",
    "exit_pnl",
    "open_cost",
    "reward_risk",
    "total_cost",
    "QuotaStatus",
    "quota_remaining",
    "quota_status",
    "quota_used",
    "ExitPreview",
    "edit_entry",
    "new_position",
    "preview_exit",
    "record_exit",
    "remove_exit",
]
