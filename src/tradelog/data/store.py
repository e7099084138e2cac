"""
Position storage - owner-scoped documents keyed by record id.
"""
import copy
import uuid
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from ..errors import StorageError

Document = Dict[str, Any]


class PositionStore(ABC):
    """
    Abstract document store for position records.

    Writes replace whole documents; concurrent writers resolve by last
    write wins. The store knows nothing about derived fields.
    """

    @abstractmethod
    def list_positions(self, owner: str) -> List[Tuple[str, Document]]:
        """
        Snapshot of an owner's documents, newest entry date first.

        Returns: List of (record id, document)
        """
        pass

    @abstractmethod
    def get(self, record_id: str) -> Optional[Document]:
        pass

    @abstractmethod
    def add(self, owner: str, document: Document) -> str:
        """Store a new document and return its id."""
        pass

    @abstractmethod
    def replace(self, record_id: str, document: Document) -> None:
        pass

    @abstractmethod
    def delete(self, record_id: str) -> None:
        pass


class InMemoryPositionStore(PositionStore):
    """Dictionary-backed store, used for tests and local sessions."""

    def __init__(self):
        self._documents: Dict[str, Document] = {}
        self._owners: Dict[str, str] = {}

    def __repr__(self) -> str:
        return f"InMemoryPositionStore(records={len(self._documents)})"

    def __len__(self) -> int:
        return len(self._documents)

    def list_positions(self, owner: str) -> List[Tuple[str, Document]]:
        records = [
            (record_id, copy.deepcopy(doc))
            for record_id, doc in self._documents.items()
            if self._owners[record_id] == owner
        ]
        # Undated records sort as the oldest
        records.sort(key=lambda item: item[1].get("entryDate") or "", reverse=True)
        return records

    def get(self, record_id: str) -> Optional[Document]:
        doc = self._documents.get(record_id)
        return copy.deepcopy(doc) if doc is not None else None

    def add(self, owner: str, document: Document) -> str:
        record_id = uuid.uuid4().hex
        stored = copy.deepcopy(document)
        stored["uid"] = owner
        stored["createdAt"] = date.today().isoformat()
        self._documents[record_id] = stored
        self._owners[record_id] = owner
        return record_id

    def replace(self, record_id: str, document: Document) -> None:
        if record_id not in self._documents:
            raise StorageError(f"Record not found: {record_id}")
        previous = self._documents[record_id]
        stored = copy.deepcopy(document)
        stored["uid"] = previous["uid"]
        stored["createdAt"] = previous.get("createdAt")
        stored["updatedAt"] = date.today().isoformat()
        self._documents[record_id] = stored

    def delete(self, record_id: str) -> None:
        if self._documents.pop(record_id, None) is None:
            raise StorageError(f"Record not found: {record_id}")
        del self._owners[record_id]
