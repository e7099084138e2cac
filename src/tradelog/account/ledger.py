"""
Ledger commands - build, edit and exit positions.

Every command validates its input and returns a replacement Position;
the record passed in is never modified. A rejected command raises
ValidationError and produces nothing.
"""
from dataclasses import dataclass, fields, replace
from datetime import date
from typing import Optional, Union

from ..domain.position import AccountType, Exit, Position
from ..errors import ValidationError
from .accounting import derive, exit_pnl
from .commission import commission

DateLike = Union[date, str, None]

# Fields an entry edit may touch; exits and commission are managed here
_EDITABLE_FIELDS = {f.name for f in fields(Position)} - {"id", "exits", "commission"}


@dataclass(frozen=True)
class ExitPreview:
    """What an exit would record, before it is saved."""
    shares: int
    proceeds: float
    pnl: Optional[int]
    pnl_pct: Optional[float]


def _as_date(value: DateLike) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}")


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_positive(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _validate_entry(position: Position) -> None:
    if not position.ticker:
        raise ValidationError("Ticker is required")
    if position.entry_date is None:
        raise ValidationError("Entry date is required")
    if not _is_count(position.shares):
        raise ValidationError(f"Shares must be a positive integer, got {position.shares!r}")
    if not _is_positive(position.entry_price):
        raise ValidationError(f"Entry price must be positive, got {position.entry_price!r}")
    if not _is_positive(position.entry_fx):
        raise ValidationError(f"Entry FX rate must be positive, got {position.entry_fx!r}")


def _with_commission(position: Position) -> Position:
    fee = commission(position.account, position.entry_price, position.shares, position.entry_fx)
    return replace(position, commission=fee)


def new_position(
    ticker: str,
    entry_date: DateLike,
    shares: int,
    entry_price: float,
    entry_fx: float,
    account: Union[AccountType, str] = AccountType.NISA,
    **details,
) -> Position:
    """
    Create a validated entry with its commission computed.

    Args:
        ticker: Symbol, uppercased and stripped
        entry_date: Date or ISO string
        shares: Positive number of shares bought
        entry_price: USD unit price
        entry_fx: USD/JPY rate at entry
        account: Account the entry was bought in
        **details: Descriptive fields (name, sector, stop_loss, ...)
    """
    unknown = set(details) - _EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown position fields: {sorted(unknown)}")

    account = account.value if isinstance(account, AccountType) else account
    if "delivery_date" in details:
        details["delivery_date"] = _as_date(details["delivery_date"])
    position = Position(
        ticker=(ticker or "").strip().upper(),
        account=account,
        entry_date=_as_date(entry_date),
        shares=shares,
        entry_price=entry_price,
        entry_fx=entry_fx,
        **details,
    )
    _validate_entry(position)
    return _with_commission(position)


def edit_entry(position: Position, **changes) -> Position:
    """
    Edit entry fields, keeping the recorded exits.

    Commission is recomputed from the edited values. The share count is
    frozen once exits have been apportioned against it.
    """
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown position fields: {sorted(unknown)}")
    if "shares" in changes and changes["shares"] != position.shares and position.exits:
        raise ValidationError(
            f"Cannot change shares of {position.ticker} after exits have been recorded"
        )

    if "ticker" in changes:
        changes["ticker"] = (changes["ticker"] or "").strip().upper()
    for key in ("entry_date", "delivery_date"):
        if key in changes:
            changes[key] = _as_date(changes[key])
    if isinstance(changes.get("account"), AccountType):
        changes["account"] = changes["account"].value

    edited = replace(position, **changes)
    _validate_entry(edited)
    return _with_commission(edited)


def preview_exit(
    position: Position,
    shares: int,
    exit_price: float,
    exit_fx: float,
) -> ExitPreview:
    """PnL an exit would record; pnl stays None until a price is entered."""
    proceeds = shares * exit_price * exit_fx
    if exit_price > 0 and shares > 0:
        pnl, pnl_pct = exit_pnl(position, shares, exit_price, exit_fx)
    else:
        pnl, pnl_pct = None, None
    return ExitPreview(shares=shares, proceeds=proceeds, pnl=pnl, pnl_pct=pnl_pct)


def record_exit(
    position: Position,
    shares: int,
    exit_price: float,
    exit_date: DateLike,
    exit_fx: float,
    reason: str = "",
) -> Position:
    """
    Append an exit, freezing its PnL at the current cost apportionment.

    Raises:
        ValidationError: On non-positive inputs, a missing date, or more
            shares than remain open
    """
    if not _is_count(shares):
        raise ValidationError(f"Exit shares must be a positive integer, got {shares!r}")
    if not _is_positive(exit_price):
        raise ValidationError(f"Exit price must be positive, got {exit_price!r}")
    if not _is_positive(exit_fx):
        raise ValidationError(f"Exit FX rate must be positive, got {exit_fx!r}")
    exit_day = _as_date(exit_date)
    if exit_day is None:
        raise ValidationError("Exit date is required")

    remaining = derive(position).remaining_shares
    if shares > remaining:
        raise ValidationError(
            f"Exit of {shares} shares exceeds remaining {remaining} shares of {position.ticker}"
        )

    pnl, pnl_pct = exit_pnl(position, shares, exit_price, exit_fx)
    record = Exit(
        shares=shares,
        exit_price=exit_price,
        exit_fx=exit_fx,
        exit_date=exit_day,
        pnl=pnl,
        pnl_pct=pnl_pct,
        reason=(reason or "").strip(),
    )
    return replace(position, exits=position.exits + (record,))


def remove_exit(position: Position, index: int) -> Position:
    """
    Delete the exit at `index`.

    The other exits keep their recorded PnL; status may move back from
    closed to partial or open.
    """
    if not 0 <= index < len(position.exits):
        raise ValidationError(f"No exit #{index} on {position.ticker}")
    exits = position.exits[:index] + position.exits[index + 1:]
    return replace(position, exits=exits)
