"""
Mapping between Position records and storage documents.
"""
from datetime import date
from typing import Any, Dict, Optional

from ..account.accounting import derive
from ..domain.position import Exit, Position


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _format_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _number(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _optional_number(value: Any) -> Optional[float]:
    # 0 means "not set" for the optional levels, as in the stored documents
    number = _number(value, 0.0)
    return number or None


def exit_to_document(ex: Exit) -> Dict[str, Any]:
    return {
        "shares": ex.shares,
        "exitPrice": ex.exit_price,
        "exitFx": ex.exit_fx,
        "exitDate": _format_date(ex.exit_date),
        "pnl": ex.pnl,
        "pnlPct": ex.pnl_pct,
        "reason": ex.reason,
    }


def exit_from_document(doc: Dict[str, Any]) -> Exit:
    pnl = doc.get("pnl")
    pnl_pct = doc.get("pnlPct")
    return Exit(
        shares=int(_number(doc.get("shares"))),
        exit_price=_number(doc.get("exitPrice")),
        exit_fx=_number(doc.get("exitFx")),
        exit_date=_parse_date(doc.get("exitDate")),
        pnl=None if pnl is None else int(_number(pnl)),
        pnl_pct=None if pnl_pct is None else _number(pnl_pct),
        reason=doc.get("reason") or "",
    )


def position_to_document(position: Position) -> Dict[str, Any]:
    """
    Serialize a position to a storage document.

    entryJpy and totalCost are written for readers of the raw documents;
    they are recomputed, not read back, when the record is loaded.
    """
    metrics = derive(position)
    return {
        "ticker": position.ticker,
        "name": position.name,
        "account": position.account,
        "sector": position.sector,
        "strategy": position.strategy,
        "entryDate": _format_date(position.entry_date),
        "shares": position.shares,
        "entryPrice": position.entry_price,
        "entryFx": position.entry_fx,
        "entryJpy": metrics.entry_cost,
        "totalCost": metrics.total_cost,
        "commission": position.commission,
        "per": position.per,
        "perFwd": position.per_forward,
        "stopLoss": position.stop_loss,
        "takeProfit": position.take_profit,
        "deliveryDate": _format_date(position.delivery_date),
        "entryReason": position.entry_reason,
        "note": position.note,
        "importedFromNotion": position.imported,
        "exits": [exit_to_document(ex) for ex in position.exits],
    }


def position_from_document(doc: Dict[str, Any], doc_id: Optional[str] = None) -> Position:
    """Load a position; absent fields default to zero, empty or None."""
    return Position(
        id=doc_id if doc_id is not None else doc.get("id"),
        ticker=(doc.get("ticker") or "").upper(),
        account=doc.get("account") or "",
        entry_date=_parse_date(doc.get("entryDate")),
        shares=int(_number(doc.get("shares"))),
        entry_price=_number(doc.get("entryPrice")),
        entry_fx=_number(doc.get("entryFx")),
        commission=_number(doc.get("commission")),
        exits=tuple(exit_from_document(ex) for ex in doc.get("exits") or []),
        name=doc.get("name") or "",
        sector=doc.get("sector") or "",
        strategy=doc.get("strategy") or "",
        per=_optional_number(doc.get("per")),
        per_forward=_optional_number(doc.get("perFwd")),
        stop_loss=_optional_number(doc.get("stopLoss")),
        take_profit=_optional_number(doc.get("takeProfit")),
        delivery_date=_parse_date(doc.get("deliveryDate")),
        entry_reason=doc.get("entryReason") or "",
        note=doc.get("note") or "",
        imported=bool(doc.get("importedFromNotion", False)),
    )
