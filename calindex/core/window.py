# calindex/core/window.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from .exceptions import InvalidTimeWindow


def day_start(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value.replace(hour=0, minute=0, second=0, microsecond=0)
    return datetime.combine(value, time())


def day_end(value: date | datetime) -> datetime:
    return day_start(value) + timedelta(days=1) - timedelta(seconds=1)


def _as_bound(value: date | datetime | None, *, upper: bool) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return day_end(value) if upper else day_start(value)
    raise InvalidTimeWindow(f"window bounds must be date or datetime, got {type(value).__name__}")


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """
    Query interval with optional bounds.

    start: inclusive lower bound (None = unbounded past)
    end:   inclusive upper bound (None = unbounded future)

    A plain date as start means its midnight; as end, the last second
    of that day.
    """
    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        start = _as_bound(self.start, upper=False)
        end = _as_bound(self.end, upper=True)

        if start is not None and end is not None:
            try:
                inverted = start > end
            except TypeError as e:
                raise InvalidTimeWindow(
                    "window bounds must both be naive or both be timezone-aware"
                ) from e
            if inverted:
                raise InvalidTimeWindow(f"window start {start} is after end {end}")

        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def make(
        cls,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
    ) -> "TimeWindow":
        return cls(start=start, end=end)

    @classmethod
    def unbounded(cls) -> "TimeWindow":
        return cls()

    @classmethod
    def day_aligned(
        cls,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
    ) -> "TimeWindow":
        """Widen the bounds to the start of the first day and the end of the last."""
        return cls(
            start=None if start is None else day_start(start),
            end=None if end is None else day_end(end),
        )

    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None
