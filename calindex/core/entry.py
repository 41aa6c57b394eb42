# calindex/core/entry.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from .exceptions import InvalidIndexEntry


SECONDS_PER_DAY = 86400

# Column names, shared by constraints, orderings and storage adapters.
UID = "uid"
FOREIGN_TABLE = "foreign_table"
FOREIGN_UID = "foreign_uid"
UNIQUE_REGISTER_KEY = "unique_register_key"
START_DATE = "start_date"
END_DATE = "end_date"
START_TIME = "start_time"
END_TIME = "end_time"
STORAGE_SCOPE = "storage_scope"
LANGUAGE = "language"

DATE_COLUMNS = (START_DATE, END_DATE)
COLUMNS = (
    UID,
    FOREIGN_TABLE,
    FOREIGN_UID,
    UNIQUE_REGISTER_KEY,
    START_DATE,
    END_DATE,
    START_TIME,
    END_TIME,
    STORAGE_SCOPE,
    LANGUAGE,
)


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """
    One materialized occurrence of an event definition.

    Date and time are stored apart, as in the index table:
    - start_date / end_date: the day (None = unbounded past / future)
    - start_time / end_time: seconds since midnight
    Range filtering compares the date columns; the time columns only
    take part in ordering.
    """
    uid: int
    foreign_table: str
    foreign_uid: int
    unique_register_key: str
    start_date: date | None = None
    end_date: date | None = None
    start_time: int = 0
    end_time: int = 0
    all_day: bool = False
    storage_scope: int = 0
    language: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.foreign_table, str) or not self.foreign_table.strip():
            raise InvalidIndexEntry("IndexEntry.foreign_table must be a non-empty string.")
        if not isinstance(self.unique_register_key, str) or not self.unique_register_key.strip():
            raise InvalidIndexEntry("IndexEntry.unique_register_key must be a non-empty string.")

        # datetime is a date subclass; keep only the day part
        for name in ("start_date", "end_date"):
            value = getattr(self, name)
            if isinstance(value, datetime):
                object.__setattr__(self, name, value.date())
            elif value is not None and not isinstance(value, date):
                raise InvalidIndexEntry(f"IndexEntry.{name} must be a date or None.")

        for name in ("start_time", "end_time"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= SECONDS_PER_DAY:
                raise InvalidIndexEntry(
                    f"IndexEntry.{name} must be seconds within a day, got {value!r}"
                )

        if (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        ):
            raise InvalidIndexEntry(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )

    @property
    def start(self) -> datetime | None:
        if self.start_date is None:
            return None
        return _combine(self.start_date, self.start_time)

    @property
    def end(self) -> datetime | None:
        if self.end_date is None:
            return None
        return _combine(self.end_date, self.end_time)

    @property
    def is_open_ended(self) -> bool:
        return self.end_date is None

    def value(self, column: str):
        """Raw column value (date columns as dates, everything else as stored)."""
        if column not in COLUMNS:
            raise KeyError(column)
        return getattr(self, column)


def _combine(day: date, seconds: int) -> datetime:
    # 86400 is a valid "end of day" marker
    return datetime.combine(day, time()) + timedelta(seconds=seconds)
