"""
Record stores for the back-office ledgers.

Services talk to the RecordStore interface only. The in-memory
implementation keeps everything for the lifetime of the process and is what
the API wires in by default.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Dict, Generic, List, Optional, TypeVar

R = TypeVar("R")


class RecordStore(ABC, Generic[R]):
    """Minimal CRUD surface over records that carry `id` and `is_active`."""

    @abstractmethod
    def get(self, record_id: int) -> Optional[R]:
        ...

    @abstractmethod
    def list(self, predicate: Optional[Callable[[R], bool]] = None) -> List[R]:
        ...

    @abstractmethod
    def upsert(self, record: R) -> R:
        """Insert (assigning an id when it has none) or replace by id."""

    @abstractmethod
    def soft_delete(self, record_id: int) -> bool:
        """Mark inactive; False when the record does not exist."""


class InMemoryRecordStore(RecordStore[R]):
    def __init__(self) -> None:
        self._records: Dict[int, R] = {}
        self._next_id = 1

    def get(self, record_id: int) -> Optional[R]:
        return self._records.get(record_id)

    def list(self, predicate: Optional[Callable[[R], bool]] = None) -> List[R]:
        records = list(self._records.values())
        if predicate is None:
            return records
        return [record for record in records if predicate(record)]

    def upsert(self, record: R) -> R:
        if not getattr(record, "id", 0):
            record.id = self._next_id
            self._next_id += 1
        else:
            self._next_id = max(self._next_id, record.id + 1)
        self._records[record.id] = record
        return record

    def soft_delete(self, record_id: int) -> bool:
        record = self._records.get(record_id)
        if record is None:
            return False
        record.is_active = False
        return True

    def __len__(self) -> int:
        return len(self._records)
