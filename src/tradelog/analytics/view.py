"""
Filtering and sorting of positions for display.
"""
import unicodedata
from operator import attrgetter
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..account.accounting import derive
from ..domain.position import Position

# Derived sort keys; every other key is a stored Position field
DERIVED_SORT_KEYS: Dict[str, Callable[[Position], Any]] = {
    "realized_pnl": lambda p: derive(p).realized_pnl,
    "realized_pnl_pct": lambda p: derive(p).realized_pnl_pct,
    "status": lambda p: derive(p).status.value,
}
STORED_SORT_KEYS = frozenset(f.name for f in fields(Position)) - {"exits"}

RESULT_WIN = "win"
RESULT_LOSS = "loss"


@dataclass(frozen=True)
class ViewState:
    """
    Filter predicates and sort order of a position list.

    Passed explicitly so that several views can be computed side by side.
    Empty predicates match everything.
    """
    query: str = ""
    status: Optional[str] = None
    account: Optional[str] = None
    result: Optional[str] = None   # 'win' or 'loss'
    sort_key: str = "entry_date"
    ascending: bool = False

    def sort_by(self, key: str) -> "ViewState":
        """Same key flips the direction, a new key starts descending."""
        _check_sort_key(key)
        if key == self.sort_key:
            return replace(self, ascending=not self.ascending)
        return replace(self, sort_key=key, ascending=False)


def _check_sort_key(key: str) -> None:
    if key not in DERIVED_SORT_KEYS and key not in STORED_SORT_KEYS:
        raise ValueError(f"Unknown sort key: {key}")


def matches(position: Position, view: ViewState) -> bool:
    """Check a position against every predicate of the view."""
    metrics = derive(position)
    query = view.query.strip().upper()
    if query and query not in position.ticker.upper() and query not in (position.name or "").upper():
        return False
    if view.status and metrics.status != view.status:
        return False
    if view.account and position.account != view.account:
        return False
    pnl = metrics.realized_pnl
    if view.result == RESULT_WIN and not (pnl is not None and pnl > 0):
        return False
    if view.result == RESULT_LOSS and not (pnl is not None and pnl < 0):
        return False
    return True


def apply_filters(positions: Sequence[Position], view: ViewState) -> List[Position]:
    return [p for p in positions if matches(p, view)]


# Katakana folds onto hiragana so both scripts of a word collate together
_KANA_FOLD = {cp: cp - 0x60 for cp in range(0x30A1, 0x30F7)}


def _collation_key(value: Any) -> Any:
    """
    Case- and kana-insensitive order first, then lowercase before uppercase
    and hiragana before katakana. Independent of the process locale.
    """
    if isinstance(value, str):
        text = unicodedata.normalize("NFKC", value)
        folded = text.translate(_KANA_FOLD)
        return (folded.casefold(), folded.swapcase(), text)
    return value


def sort_positions(positions: Sequence[Position], view: ViewState) -> List[Position]:
    """
    Order positions by the view's key and direction.

    Positions with no value for the key always come last, in their
    original order, whichever direction is selected.
    """
    _check_sort_key(view.sort_key)
    getter = DERIVED_SORT_KEYS.get(view.sort_key) or attrgetter(view.sort_key)

    keyed = [(getter(p), p) for p in positions]
    present = [(v, p) for v, p in keyed if v is not None]
    missing = [p for v, p in keyed if v is None]

    present.sort(key=lambda item: _collation_key(item[0]), reverse=not view.ascending)
    return [p for _, p in present] + missing


def select(positions: Sequence[Position], view: ViewState) -> List[Position]:
    """Filter then sort."""
    return sort_positions(apply_filters(positions, view), view)
