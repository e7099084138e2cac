"""
Domain Layer: Positions, exits and account types.
"""
from .position import AccountType, Exit, Position, PositionStatus

__all__ = [
    "AccountType",
    "Exit",
    "Position",
    "PositionStatus",
]
