"""
Exceptions raised by the ledger.
"""


class TradeLogError(Exception):
    """Base class for all ledger errors."""


class ValidationError(TradeLogError, ValueError):
    """A command was rejected; nothing was written."""


class FxRateError(TradeLogError):
    """The FX quote service could not supply a rate."""


class StorageError(TradeLogError):
    """The position store failed to read or write a record."""
