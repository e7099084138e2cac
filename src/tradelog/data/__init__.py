"""
Data Layer: Storage documents, FX quotes, CSV import and export.
"""
from .documents import position_from_document, position_to_document
from .store import InMemoryPositionStore, PositionStore
from .fx import FxRateService
from .importer import import_positions, normalize_date
from .export import export_csv, export_frame

__all__ = [
    "position_from_document",
    "position_to_document",
    "InMemoryPositionStore",
    "PositionStore",
    "FxRateService",
    "import_positions",
    "normalize_date",
    "export_csv",
    "export_frame",
]
