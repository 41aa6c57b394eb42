# calindex/core/result.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from .entry import IndexEntry
from .storage import StorageEngine, StorageQuery


@dataclass(slots=True)
class ResultSequence:
    """
    Lazy result of one logical query: runs on first access and caches rows.

    query=None is the empty-by-policy result (no storage call at all).
    """

    storage: StorageEngine | None = field(default=None, repr=False)
    query: StorageQuery | None = None

    _rows: list[IndexEntry] | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.query is not None and self.storage is None:
            raise ValueError("ResultSequence with a query needs a storage engine.")

    @classmethod
    def empty(cls) -> "ResultSequence":
        return cls()

    @property
    def is_empty_by_policy(self) -> bool:
        return self.query is None

    def _ensure_loaded(self) -> list[IndexEntry]:
        if self._rows is not None:
            return self._rows
        if self.query is None:
            self._rows = []
        else:
            self._rows = list(self.storage.execute(self.query))  # type: ignore[union-attr]
        return self._rows

    def __iter__(self) -> Iterator[IndexEntry]:
        return iter(self._ensure_loaded())

    def __len__(self) -> int:
        return len(self._ensure_loaded())

    def __bool__(self) -> bool:
        return len(self) > 0

    def __getitem__(self, index: int) -> IndexEntry:
        return self._ensure_loaded()[index]

    def first(self) -> IndexEntry | None:
        rows = self._ensure_loaded()
        return rows[0] if rows else None

    def count(self) -> int:
        """Row count without materializing, unless rows are already loaded."""
        if self._rows is not None:
            return len(self._rows)
        if self.query is None:
            return 0
        return self.storage.count(self.query)  # type: ignore[union-attr]

    def with_limit(self, limit: int) -> "ResultSequence":
        # Same logical query, re-issued with a limit attached
        if self.query is None:
            return ResultSequence.empty()
        return ResultSequence(storage=self.storage, query=self.query.with_limit(limit))
