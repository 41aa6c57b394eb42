# calindex/core/storage.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Protocol

from .constraints import Constraint
from .entry import IndexEntry
from .sorting import SortDirection


Ordering = tuple[str, SortDirection]

# Language mode that disables language handling
IGNORE_LANGUAGE = "ignore"


@dataclass(frozen=True, slots=True)
class StorageQuery:
    """
    Everything a storage engine needs to run one logical query.

    limit = 0 means no limit. language_mode is passed through verbatim;
    "ignore" disables language handling.
    """
    constraint: Constraint | None = None
    orderings: tuple[Ordering, ...] = field(default_factory=tuple)
    limit: int = 0
    language_mode: str = "strict"
    language: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.limit, int) or self.limit < 0:
            raise ValueError(f"limit must be a non-negative int, got {self.limit!r}")
        object.__setattr__(self, "orderings", tuple(self.orderings))

    def with_limit(self, limit: int) -> "StorageQuery":
        return replace(self, limit=limit)


class StorageEngine(Protocol):
    """
    Protocol for index storage engines.

    Implementations raise StorageError (or a subclass) for anything they
    cannot execute; the query layer never retries.
    """

    def execute(self, query: StorageQuery) -> list[IndexEntry]:
        ...

    def count(self, query: StorageQuery) -> int:
        ...

    def distinct(
        self,
        columns: Iterable[str],
        query: StorageQuery | None = None,
    ) -> list[tuple[Any, ...]]:
        ...
