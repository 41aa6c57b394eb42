from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any, Iterable

import numpy as np

from calindex.core.constraints import (
    And,
    Constraint,
    Equals,
    GreaterOrEqual,
    GreaterThan,
    In,
    LessOrEqual,
    LessThan,
    NotEquals,
    Or,
)
from calindex.core.entry import (
    DATE_COLUMNS,
    END_DATE,
    END_TIME,
    FOREIGN_TABLE,
    FOREIGN_UID,
    LANGUAGE,
    START_DATE,
    START_TIME,
    STORAGE_SCOPE,
    UID,
    UNIQUE_REGISTER_KEY,
    IndexEntry,
)
from calindex.core.exceptions import StorageError, UnknownColumn
from calindex.core.sorting import SortDirection
from calindex.core.storage import IGNORE_LANGUAGE, StorageQuery


logger = logging.getLogger(__name__)

ALL_LANGUAGES = -1

_INT_COLUMNS = (UID, FOREIGN_UID, START_TIME, END_TIME, STORAGE_SCOPE, LANGUAGE)
_STR_COLUMNS = (FOREIGN_TABLE, UNIQUE_REGISTER_KEY)


@dataclass
class _Columns:
    """Column-oriented copy of the rows (one numpy array per column)."""

    arrays: dict[str, np.ndarray]
    n: int

    def __getitem__(self, column: str) -> np.ndarray:
        try:
            return self.arrays[column]
        except KeyError as e:
            raise UnknownColumn(column) from e


class InMemoryStorage:
    """
    StorageEngine over a fixed set of IndexEntry rows.

    Dates are held as float64 epoch seconds of local midnight in `tz`;
    an unset start is -inf and an unset end +inf, so open-ended rows
    compare as unbounded. Constraint trees are evaluated into boolean
    masks, orderings via np.lexsort (stable: ties keep insertion order).
    """

    def __init__(self, entries: Iterable[IndexEntry] = (), *, tz: tzinfo = timezone.utc) -> None:
        self.tz = tz
        self._entries: list[IndexEntry] = []
        for entry in entries:
            if not isinstance(entry, IndexEntry):
                raise StorageError("InMemoryStorage expects IndexEntry rows.")
            self._entries.append(entry)
        self._columns = self._build_columns()

    # ------------------------------------------------------------------
    # Column construction
    # ------------------------------------------------------------------
    def _date_to_epoch(self, value: date) -> float:
        return datetime.combine(value, time(), tzinfo=self.tz).timestamp()

    def _build_columns(self) -> _Columns:
        n = len(self._entries)
        arrays: dict[str, np.ndarray] = {}

        for column in _INT_COLUMNS:
            arrays[column] = np.fromiter(
                (int(e.value(column)) for e in self._entries), dtype=np.int64, count=n
            )
        for column in _STR_COLUMNS:
            col = np.empty(n, dtype=object)
            col[:] = [e.value(column) for e in self._entries]
            arrays[column] = col

        arrays[START_DATE] = np.fromiter(
            (-np.inf if e.start_date is None else self._date_to_epoch(e.start_date)
             for e in self._entries),
            dtype=np.float64,
            count=n,
        )
        arrays[END_DATE] = np.fromiter(
            (np.inf if e.end_date is None else self._date_to_epoch(e.end_date)
             for e in self._entries),
            dtype=np.float64,
            count=n,
        )
        return _Columns(arrays=arrays, n=n)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, entries: Iterable[IndexEntry]) -> "InMemoryStorage":
        """Return a new storage with `entries` appended."""
        return InMemoryStorage([*self._entries, *entries], tz=self.tz)

    # ------------------------------------------------------------------
    # Constraint evaluation
    # ------------------------------------------------------------------
    def _coerce(self, column: str, value: Any) -> Any:
        if column not in DATE_COLUMNS:
            return value
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=self.tz)
            return value.timestamp()
        if isinstance(value, date):
            return self._date_to_epoch(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise StorageError(f"cannot compare {column} with {type(value).__name__}")

    def _mask(self, constraint: Constraint | None) -> np.ndarray:
        cols = self._columns
        if constraint is None:
            return np.ones(cols.n, dtype=bool)

        if isinstance(constraint, And):
            mask = np.ones(cols.n, dtype=bool)
            for operand in constraint.operands:
                mask &= self._mask(operand)
            return mask

        if isinstance(constraint, Or):
            mask = np.zeros(cols.n, dtype=bool)
            for operand in constraint.operands:
                mask |= self._mask(operand)
            return mask

        col = cols[constraint.field]

        if isinstance(constraint, In):
            allowed = {self._coerce(constraint.field, v) for v in constraint.values}
            return np.fromiter((v in allowed for v in col.tolist()), dtype=bool, count=cols.n)

        value = self._coerce(constraint.field, constraint.value)
        try:
            if isinstance(constraint, Equals):
                mask = col == value
            elif isinstance(constraint, NotEquals):
                mask = col != value
            elif isinstance(constraint, LessThan):
                mask = col < value
            elif isinstance(constraint, LessOrEqual):
                mask = col <= value
            elif isinstance(constraint, GreaterThan):
                mask = col > value
            elif isinstance(constraint, GreaterOrEqual):
                mask = col >= value
            else:
                raise StorageError(f"unsupported constraint {type(constraint).__name__}")
        except TypeError as e:
            raise StorageError(f"cannot evaluate {constraint}: {e}") from e

        mask = np.asarray(mask, dtype=bool)
        if mask.shape != (cols.n,):
            # scalar result (e.g. comparing against an incompatible type)
            mask = np.broadcast_to(mask, (cols.n,)).copy()
        return mask

    def _language_mask(self, query: StorageQuery) -> np.ndarray:
        cols = self._columns
        if query.language_mode == IGNORE_LANGUAGE or query.language is None:
            return np.ones(cols.n, dtype=bool)
        lang = cols[LANGUAGE]
        return (lang == query.language) | (lang == ALL_LANGUAGES)

    def _select(self, query: StorageQuery) -> np.ndarray:
        """Indices of matching rows, ordered and limited."""
        mask = self._mask(query.constraint) & self._language_mask(query)
        idx = np.flatnonzero(mask)

        if query.orderings and idx.size > 1:
            keys = []
            # np.lexsort sorts by the last key first
            for column, direction in reversed(query.orderings):
                col = self._columns[column]
                if col.dtype == object:
                    raise StorageError(f"cannot order by text column {column}")
                values = col[idx].astype(np.float64)
                if direction is SortDirection.DESCENDING:
                    values = -values
                keys.append(values)
            idx = idx[np.lexsort(keys)]

        if query.limit > 0:
            idx = idx[: query.limit]
        return idx

    # ------------------------------------------------------------------
    # StorageEngine protocol implementation
    # ------------------------------------------------------------------
    def execute(self, query: StorageQuery) -> list[IndexEntry]:
        idx = self._select(query)
        logger.debug("in-memory storage matched %d of %d rows", idx.size, self._columns.n)
        return [self._entries[i] for i in idx]

    def count(self, query: StorageQuery) -> int:
        return int(self._select(query).size)

    def distinct(
        self,
        columns: Iterable[str],
        query: StorageQuery | None = None,
    ) -> list[tuple[Any, ...]]:
        """Distinct value tuples for `columns`, in first-seen order."""
        columns = tuple(columns)
        arrays = [self._columns[c] for c in columns]
        idx = self._select(query) if query is not None else np.arange(self._columns.n)

        seen: dict[tuple[Any, ...], None] = {}
        for i in idx:
            key = tuple(_plain(a[i]) for a in arrays)
            seen.setdefault(key, None)
        return list(seen)


def _plain(value: Any) -> Any:
    # numpy scalars -> python scalars
    return value.item() if isinstance(value, np.generic) else value
