# calindex/core/overlap.py
"""
Interval-overlap constraint for index entries.

An entry [start, end] overlaps the window [S, E] when it falls into one
of four mutually exclusive geometries:

    before-in      start <  S,            S <= end < E
    in-in          start >= S,                 end < E
    in-after       S <= start < E,             end >= E
    before-after   start <  S,                 end > E

The upper probe bound is half-open in the first two cases and closed in
the last two. At the exact boundary this leaves two holes: an entry
with start < S and end == E, and an entry with start == E, match no
case. Rows already written against this rule depend on it, so it is
kept as is.

Missing window bounds are replaced by probe bounds `horizon` away from
"now"; a window with no bounds produces no constraint at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from .constraints import (
    And,
    Constraint,
    GreaterOrEqual,
    GreaterThan,
    LessThan,
    disjunction,
)
from .entry import END_DATE, START_DATE
from .window import TimeWindow


# Ten years of 365 days
DECADE = timedelta(days=3650)


class OverlapCase(Enum):
    BEFORE_IN = "before_in"
    IN_IN = "in_in"
    IN_AFTER = "in_after"
    BEFORE_AFTER = "before_after"


@dataclass(frozen=True, slots=True)
class ProbeBounds:
    """Finite substitute for a window, used to state the four cases."""
    start: datetime
    end: datetime


class OverlapPredicateBuilder:
    def __init__(
        self,
        start_field: str = START_DATE,
        end_field: str = END_DATE,
        *,
        horizon: timedelta = DECADE,
    ) -> None:
        self.start_field = start_field
        self.end_field = end_field
        self.horizon = horizon

    def probe_bounds(self, window: TimeWindow, now: datetime) -> ProbeBounds | None:
        if window.is_unbounded():
            return None
        start = window.start if window.start is not None else now - self.horizon
        end = window.end if window.end is not None else now + self.horizon
        return ProbeBounds(start=start, end=end)

    def cases(self, bounds: ProbeBounds) -> dict[OverlapCase, And]:
        s, e = bounds.start, bounds.end
        start, end = self.start_field, self.end_field
        return {
            OverlapCase.BEFORE_IN: And((
                LessThan(start, s),
                GreaterOrEqual(end, s),
                LessThan(end, e),
            )),
            OverlapCase.IN_IN: And((
                GreaterOrEqual(start, s),
                LessThan(end, e),
            )),
            OverlapCase.IN_AFTER: And((
                GreaterOrEqual(start, s),
                LessThan(start, e),
                GreaterOrEqual(end, e),
            )),
            OverlapCase.BEFORE_AFTER: And((
                LessThan(start, s),
                GreaterThan(end, e),
            )),
        }

    def build(self, window: TimeWindow, now: datetime) -> Constraint | None:
        bounds = self.probe_bounds(window, now)
        if bounds is None:
            return None
        return disjunction(self.cases(bounds).values())
