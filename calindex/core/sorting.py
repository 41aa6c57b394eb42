# calindex/core/sorting.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .entry import END_DATE, END_TIME, START_DATE, START_TIME


class SortDirection(Enum):
    ASCENDING = "ASC"
    DESCENDING = "DESC"

    @classmethod
    def parse(cls, value: "SortDirection | str | None") -> "SortDirection":
        """Anything that is not recognisably ascending sorts descending."""
        if isinstance(value, SortDirection):
            return value
        if isinstance(value, str) and value.strip().lower() in {"asc", "ascending"}:
            return cls.ASCENDING
        return cls.DESCENDING


class SortField(Enum):
    START = "start"
    END = "end"
    END_THEN_START = "withrangelast"

    @classmethod
    def parse(cls, value: "SortField | str | None") -> "SortField":
        if isinstance(value, SortField):
            return value
        if value == "withrangelast":
            return cls.END_THEN_START
        if value == "end":
            return cls.END
        return cls.START


_COLUMNS: dict[SortField, tuple[str, ...]] = {
    SortField.START: (START_DATE, START_TIME),
    SortField.END: (END_DATE, END_TIME),
    SortField.END_THEN_START: (END_DATE, START_DATE, START_TIME),
}


@dataclass(frozen=True, slots=True)
class SortSpec:
    field: SortField = SortField.START
    direction: SortDirection = SortDirection.ASCENDING

    @classmethod
    def default(cls) -> "SortSpec":
        return cls()

    @classmethod
    def of(
        cls,
        direction: SortDirection | str | None,
        field: SortField | str | None = None,
    ) -> "SortSpec":
        return cls(field=SortField.parse(field), direction=SortDirection.parse(direction))

    def orderings(self) -> tuple[tuple[str, SortDirection], ...]:
        return tuple((column, self.direction) for column in _COLUMNS[self.field])
