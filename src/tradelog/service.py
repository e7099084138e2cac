"""
TradeLedger - an owner's positions in a store, with the commands applied to them.
"""
from datetime import date
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from .account.ledger import edit_entry, new_position, preview_exit, record_exit, remove_exit, ExitPreview
from .account.quota import QuotaStatus, quota_status
from .analytics.summary import OpenPositionGroup, PortfolioSummary, open_position_groups, summarize
from .analytics.view import ViewState, select
from .config import LedgerSettings
from .data.documents import position_from_document, position_to_document
from .data.export import export_csv
from .data.fx import FxRateService
from .data.importer import CsvSource, import_positions
from .data.store import PositionStore
from .domain.position import Position
from .errors import StorageError, ValidationError


class TradeLedger:
    """
    Trade ledger of one owner.

    Every read takes a fresh snapshot from the store and recomputes derived
    figures from it. Every write sends a whole replacement document; the
    store's last write wins.
    """

    def __init__(
        self,
        store: PositionStore,
        owner: str,
        fx: Optional[FxRateService] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self.store = store
        self.owner = owner
        self.settings = settings or LedgerSettings()
        self.fx = fx or FxRateService(
            initial_rate=self.settings.default_fx_rate,
            endpoint=self.settings.fx_endpoint,
            currency=self.settings.home_currency,
            timeout=self.settings.fx_timeout,
        )

    def __repr__(self) -> str:
        return f"TradeLedger(owner={self.owner}, store={self.store!r}, fx={self.fx.rate:.2f})"

    def _rate_or_quote(self, rate: Optional[float]) -> float:
        # Only an omitted rate falls back; explicit values are validated downstream
        return self.fx.rate if rate is None else rate

    # ---- reads ----

    def positions(self) -> List[Position]:
        """Current snapshot, newest entry first."""
        return [
            position_from_document(doc, record_id)
            for record_id, doc in self.store.list_positions(self.owner)
        ]

    def get(self, record_id: str) -> Position:
        doc = self.store.get(record_id)
        if doc is None or doc.get("uid") != self.owner:
            raise StorageError(f"Record not found: {record_id}")
        return position_from_document(doc, record_id)

    def view(self, view: Optional[ViewState] = None) -> List[Position]:
        return select(self.positions(), view or ViewState())

    def summary(self, view: Optional[ViewState] = None) -> PortfolioSummary:
        """Summary of the positions visible through `view` (all by default)."""
        return summarize(self.view(view))

    def open_positions(self) -> List[OpenPositionGroup]:
        return open_position_groups(self.positions(), self.fx.rate)

    def quota(self, year: Optional[int] = None) -> QuotaStatus:
        """NISA quota for `year`, the current calendar year by default."""
        year = year if year is not None else date.today().year
        return quota_status(self.positions(), year, self.settings.quota_limit)

    def preview_exit(
        self,
        record_id: str,
        shares: int,
        exit_price: float,
        exit_fx: Optional[float] = None,
    ) -> ExitPreview:
        return preview_exit(self.get(record_id), shares, exit_price, self._rate_or_quote(exit_fx))

    # ---- writes ----

    def _save(self, position: Position) -> Position:
        if position.id is None:
            record_id = self.store.add(self.owner, position_to_document(position))
            logger.info(f"Added {position.ticker} ({position.shares} shares) as {record_id}")
        else:
            record_id = position.id
            self.store.replace(record_id, position_to_document(position))
            logger.info(f"Updated {position.ticker} ({record_id})")
        return self.get(record_id)

    def add_position(
        self,
        ticker: str,
        entry_date: Union[date, str],
        shares: int,
        entry_price: float,
        entry_fx: Optional[float] = None,
        **details,
    ) -> Position:
        """Book a new entry; the FX rate defaults to the current quote."""
        try:
            position = new_position(
                ticker, entry_date, shares, entry_price, self._rate_or_quote(entry_fx), **details
            )
        except ValidationError as e:
            logger.warning(f"Entry rejected: {e}")
            raise
        return self._save(position)

    def update_position(self, record_id: str, **changes) -> Position:
        """Edit entry fields of a stored position, keeping its exits."""
        try:
            position = edit_entry(self.get(record_id), **changes)
        except ValidationError as e:
            logger.warning(f"Edit of {record_id} rejected: {e}")
            raise
        return self._save(position)

    def record_exit(
        self,
        record_id: str,
        shares: int,
        exit_price: float,
        exit_date: Union[date, str],
        exit_fx: Optional[float] = None,
        reason: str = "",
    ) -> Position:
        """Record a sale against the currently stored exits."""
        current = self.get(record_id)
        try:
            position = record_exit(
                current, shares, exit_price, exit_date, self._rate_or_quote(exit_fx), reason
            )
        except ValidationError as e:
            logger.warning(f"Exit on {current.ticker} rejected: {e}")
            raise
        logger.info(f"Exit recorded on {current.ticker}: {shares} @ {exit_price}, pnl={position.exits[-1].pnl}")
        return self._save(position)

    def remove_exit(self, record_id: str, index: int) -> Position:
        return self._save(remove_exit(self.get(record_id), index))

    def delete_position(self, record_id: str) -> None:
        self.get(record_id)
        self.store.delete(record_id)
        logger.info(f"Deleted {record_id}")

    # ---- import / export ----

    def import_csv(self, source: CsvSource) -> List[Position]:
        """Add every position read from a CSV export, at the current FX rate."""
        saved = [self._save(p) for p in import_positions(source, self.fx.rate)]
        logger.info(f"Stored {len(saved)} imported positions for {self.owner}")
        return saved

    def export_csv(self, path: Optional[Union[str, Path]] = None) -> Optional[str]:
        return export_csv(self.positions(), path)
