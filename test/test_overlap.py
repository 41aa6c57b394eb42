from datetime import date, datetime, timedelta

import pytest

from calindex.core import (
    IndexEntry,
    OverlapCase,
    OverlapPredicateBuilder,
    Or,
    ProbeBounds,
    StorageQuery,
    TimeWindow,
)
from calindex.io.memory import InMemoryStorage


NOW = datetime(2024, 3, 12, 10, 0)
BASE = date(2024, 3, 1)


def _entry(uid, start, end):
    return IndexEntry(
        uid=uid,
        foreign_table="tx_event",
        foreign_uid=uid,
        unique_register_key="Event",
        start_date=start,
        end_date=end,
    )


def _midnight(d: date) -> datetime:
    return datetime(d.year, d.month, d.day)


def _matching(storage, constraint):
    return {e.uid for e in storage.execute(StorageQuery(constraint=constraint))}


def _case_matches(storage, builder, window):
    bounds = builder.probe_bounds(window, NOW)
    return {case: _matching(storage, c) for case, c in builder.cases(bounds).items()}


class TestProbeBounds:
    def test_unbounded_window_has_no_constraint(self):
        builder = OverlapPredicateBuilder()
        assert builder.probe_bounds(TimeWindow.make(), NOW) is None
        assert builder.build(TimeWindow.make(), NOW) is None

    def test_missing_start_is_synthesized(self):
        builder = OverlapPredicateBuilder()
        bounds = builder.probe_bounds(TimeWindow.make(end=datetime(2024, 5, 1)), NOW)
        assert bounds == ProbeBounds(start=NOW - timedelta(days=3650), end=datetime(2024, 5, 1))

    def test_missing_end_is_synthesized(self):
        builder = OverlapPredicateBuilder()
        bounds = builder.probe_bounds(TimeWindow.make(start=datetime(2024, 1, 1)), NOW)
        assert bounds.start == datetime(2024, 1, 1)
        assert bounds.end == NOW + timedelta(days=3650)

    def test_custom_horizon(self):
        builder = OverlapPredicateBuilder(horizon=timedelta(days=1))
        bounds = builder.probe_bounds(TimeWindow.make(start=NOW), NOW)
        assert bounds.end == NOW + timedelta(days=1)


class TestConstraintShape:
    def test_build_is_or_of_four_cases(self):
        builder = OverlapPredicateBuilder()
        window = TimeWindow.make(datetime(2024, 3, 10), datetime(2024, 3, 17))
        tree = builder.build(window, NOW)

        assert isinstance(tree, Or)
        assert len(tree.operands) == 4
        bounds = builder.probe_bounds(window, NOW)
        assert tree.operands == tuple(builder.cases(bounds).values())

    def test_case_comparisons(self):
        builder = OverlapPredicateBuilder()
        s, e = datetime(2024, 3, 10), datetime(2024, 3, 17)
        cases = builder.cases(ProbeBounds(s, e))

        rendered = {case: str(c) for case, c in cases.items()}
        assert rendered[OverlapCase.BEFORE_IN] == (
            f"(start_date < {s!r} AND end_date >= {s!r} AND end_date < {e!r})"
        )
        assert rendered[OverlapCase.IN_IN] == f"(start_date >= {s!r} AND end_date < {e!r})"
        assert rendered[OverlapCase.IN_AFTER] == (
            f"(start_date >= {s!r} AND start_date < {e!r} AND end_date >= {e!r})"
        )
        assert rendered[OverlapCase.BEFORE_AFTER] == f"(start_date < {s!r} AND end_date > {e!r})"

    def test_custom_fields(self):
        builder = OverlapPredicateBuilder("begin", "finish")
        cases = builder.cases(ProbeBounds(NOW, NOW))
        assert str(cases[OverlapCase.BEFORE_AFTER]) == f"(begin < {NOW!r} AND finish > {NOW!r})"


class TestOneWeekScenario:
    @pytest.fixture
    def storage(self):
        return InMemoryStorage([
            _entry(1, date(2024, 3, 1), date(2024, 3, 12)),   # A
            _entry(2, date(2024, 3, 11), date(2024, 3, 13)),  # B
            _entry(3, date(2024, 3, 15), date(2024, 4, 1)),   # C
            _entry(4, date(2024, 1, 1), date(2024, 12, 31)),  # D
            _entry(5, date(2024, 4, 1), date(2024, 4, 5)),    # E
        ])

    def test_each_entry_hits_its_case(self, storage):
        builder = OverlapPredicateBuilder()
        window = TimeWindow.make(datetime(2024, 3, 10), datetime(2024, 3, 17))

        matches = _case_matches(storage, builder, window)
        assert matches[OverlapCase.BEFORE_IN] == {1}
        assert matches[OverlapCase.IN_IN] == {2}
        assert matches[OverlapCase.IN_AFTER] == {3}
        assert matches[OverlapCase.BEFORE_AFTER] == {4}

    def test_full_predicate(self, storage):
        builder = OverlapPredicateBuilder()
        window = TimeWindow.make(datetime(2024, 3, 10), datetime(2024, 3, 17))
        assert _matching(storage, builder.build(window, NOW)) == {1, 2, 3, 4}


class TestDecomposition:
    """Exhaustive check over a small grid of days."""

    DAYS = [BASE + timedelta(days=i) for i in range(7)]

    @pytest.fixture(scope="class")
    def grid(self):
        entries = {}
        uid = 0
        for s in self.DAYS:
            for e in self.DAYS:
                if s <= e:
                    uid += 1
                    entries[uid] = (s, e)
        storage = InMemoryStorage([_entry(uid, s, e) for uid, (s, e) in entries.items()])
        return entries, storage

    def _windows(self):
        for s in self.DAYS:
            for e in self.DAYS:
                if s <= e:
                    yield _midnight(s), _midnight(e)

    def test_cases_are_mutually_exclusive(self, grid):
        _, storage = grid
        builder = OverlapPredicateBuilder()
        for ws, we in self._windows():
            matches = _case_matches(storage, builder, TimeWindow.make(ws, we))
            seen = set()
            for uids in matches.values():
                assert not (seen & uids)
                seen |= uids

    def test_union_matches_half_open_reference_with_boundary_hole(self, grid):
        entries, storage = grid
        builder = OverlapPredicateBuilder()
        for ws, we in self._windows():
            got = _matching(storage, builder.build(TimeWindow.make(ws, we), NOW))
            S, E = ws.date(), we.date()
            expected = {
                uid
                for uid, (s, e) in entries.items()
                if s < E and e >= S and not (s < S and e == E)
            }
            assert got == expected, (ws, we)

    def test_agrees_with_closed_reference_away_from_upper_bound(self, grid):
        entries, storage = grid
        builder = OverlapPredicateBuilder()
        for ws, we in self._windows():
            got = _matching(storage, builder.build(TimeWindow.make(ws, we), NOW))
            S, E = ws.date(), we.date()
            for uid, (s, e) in entries.items():
                if E in (s, e):
                    continue
                assert (uid in got) == (s <= E and e >= S), (uid, ws, we)


class TestEdgeEntries:
    def test_open_ended_entry_only_matches_after_cases(self):
        storage = InMemoryStorage([_entry(1, date(2024, 3, 15), None)])
        builder = OverlapPredicateBuilder()

        inside = _case_matches(
            storage, builder, TimeWindow.make(datetime(2024, 3, 10), datetime(2024, 3, 17))
        )
        assert inside[OverlapCase.IN_AFTER] == {1}
        assert inside[OverlapCase.BEFORE_IN] == set()
        assert inside[OverlapCase.IN_IN] == set()

        later = _case_matches(
            storage, builder, TimeWindow.make(datetime(2024, 3, 20), datetime(2024, 3, 25))
        )
        assert later[OverlapCase.BEFORE_AFTER] == {1}

        earlier = builder.build(TimeWindow.make(datetime(2024, 3, 1), datetime(2024, 3, 5)), NOW)
        assert _matching(storage, earlier) == set()

    def test_open_ended_entry_and_open_window(self):
        storage = InMemoryStorage([
            _entry(1, date(2024, 3, 15), None),
            _entry(2, date(2040, 1, 1), None),  # beyond now + 10 years
        ])
        builder = OverlapPredicateBuilder()
        tree = builder.build(TimeWindow.make(start=datetime(2024, 3, 1)), NOW)
        assert _matching(storage, tree) == {1}

    def test_unbounded_past_entry(self):
        storage = InMemoryStorage([_entry(1, None, date(2024, 3, 12))])
        builder = OverlapPredicateBuilder()
        matches = _case_matches(
            storage, builder, TimeWindow.make(datetime(2024, 3, 10), datetime(2024, 3, 17))
        )
        assert matches[OverlapCase.BEFORE_IN] == {1}

    def test_zero_length_entry_inside_window_is_in_in(self):
        storage = InMemoryStorage([_entry(1, date(2024, 3, 12), date(2024, 3, 12))])
        builder = OverlapPredicateBuilder()
        matches = _case_matches(
            storage, builder, TimeWindow.make(datetime(2024, 3, 10), datetime(2024, 3, 17))
        )
        assert matches[OverlapCase.IN_IN] == {1}

    def test_single_day_window(self):
        storage = InMemoryStorage([
            _entry(1, date(2024, 3, 12), date(2024, 3, 12)),  # zero length on that day
            _entry(2, date(2024, 3, 1), date(2024, 3, 31)),   # spans it
            _entry(3, date(2024, 3, 13), date(2024, 3, 14)),
        ])
        builder = OverlapPredicateBuilder()
        day = TimeWindow.make(date(2024, 3, 12), date(2024, 3, 12))
        assert _matching(storage, builder.build(day, NOW)) == {1, 2}

    def test_instant_window_keeps_boundary_rule(self):
        storage = InMemoryStorage([
            _entry(1, date(2024, 3, 12), date(2024, 3, 12)),
            _entry(2, date(2024, 3, 1), date(2024, 3, 31)),
        ])
        builder = OverlapPredicateBuilder()
        instant = _midnight(date(2024, 3, 12))
        tree = builder.build(TimeWindow.make(instant, instant), NOW)
        # the zero-length entry sits exactly on the half-open upper bound
        assert _matching(storage, tree) == {2}
