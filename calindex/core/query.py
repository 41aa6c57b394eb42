# calindex/core/query.py
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Mapping, Sequence

from .calendar import CalendarUnit, resolve_window
from .config import QueryContext
from .constraints import (
    Constraint,
    Equals,
    GreaterOrEqual,
    In,
    LessOrEqual,
    NotEquals,
    conjunction,
)
from .entry import (
    FOREIGN_TABLE,
    FOREIGN_UID,
    START_DATE,
    STORAGE_SCOPE,
    UID,
    UNIQUE_REGISTER_KEY,
    IndexEntry,
)
from .exceptions import UnsupportedOwnerError
from .filters import (
    ConstraintNarrowingProvider,
    FilterContext,
    PreFilterProvider,
    SearchArguments,
)
from .overlap import OverlapPredicateBuilder
from .owner import OwnerLike, OwnerTypeRegistry, select_uid
from .result import ResultSequence
from .sorting import SortDirection, SortField, SortSpec
from .storage import IGNORE_LANGUAGE, StorageEngine, StorageQuery
from .window import TimeWindow, day_end, day_start


logger = logging.getLogger(__name__)


class IndexQuery:
    """
    Builds and runs index queries for one resolved QueryContext.

    Each public method composes:
    - the overlap constraint (if any) from OverlapPredicateBuilder
    - categorical constraints from a fresh FilterContext
    - ordering and limit
    and hands the result to the storage engine as one StorageQuery.
    Input errors raise before storage is touched; storage errors are
    not caught.
    """

    def __init__(
        self,
        storage: StorageEngine,
        context: QueryContext | None = None,
        *,
        pre_filter_providers: Sequence[PreFilterProvider] = (),
        narrowing_providers: Sequence[ConstraintNarrowingProvider] = (),
        owner_types: OwnerTypeRegistry | None = None,
        overlap: OverlapPredicateBuilder | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.storage = storage
        self.context = context or QueryContext()
        self.pre_filter_providers = tuple(pre_filter_providers)
        self.narrowing_providers = tuple(narrowing_providers)
        self.owner_types = owner_types or OwnerTypeRegistry()
        self.overlap = overlap or OverlapPredicateBuilder()
        self._clock = clock

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------
    def now(self) -> datetime:
        if self._clock is not None:
            return self._clock()
        return datetime.now(self.context.timezone)

    def default_filters(self) -> FilterContext:
        """Context types and scopes, plus whatever the narrowing providers add."""
        filters = FilterContext(
            type_keys=self.context.index_types,
            scopes=self.context.scopes,
        )
        return filters.run_narrowing_hook(self.narrowing_providers, self.context.owner_record)

    def _sort(self, sort: SortSpec | None) -> SortSpec:
        return sort if sort is not None else self.context.default_sort

    def _storage_query(
        self,
        constraints: Sequence[Constraint | None],
        *,
        sort: SortSpec | None = None,
        limit: int = 0,
        language_mode: str | None = None,
    ) -> StorageQuery:
        return StorageQuery(
            constraint=conjunction(constraints),
            orderings=self._sort(sort).orderings(),
            limit=limit,
            language_mode=language_mode or self.context.language_mode,
            language=self.context.language,
        )

    def _run(self, query: StorageQuery) -> ResultSequence:
        logger.debug(
            "index query: %s order=%s limit=%d",
            query.constraint,
            [(c, d.value) for c, d in query.orderings],
            query.limit,
        )
        return ResultSequence(storage=self.storage, query=query)

    # ------------------------------------------------------------------
    # Range queries
    # ------------------------------------------------------------------
    def by_window(
        self,
        window: TimeWindow,
        filters: FilterContext | None = None,
        limit: int = 0,
        sort: SortSpec | None = None,
    ) -> ResultSequence:
        if filters is None:
            filters = self.default_filters()
        if filters.force_empty:
            logger.debug("filters forced an empty result, skipping storage")
            return ResultSequence.empty()

        constraints: list[Constraint | None] = list(filters.build_constraints())
        constraints.append(self.overlap.build(window, self.now()))
        return self._run(self._storage_query(constraints, sort=sort, limit=limit))

    def by_time_slot(
        self,
        start: date | datetime | None,
        end: date | datetime | None = None,
    ) -> ResultSequence:
        """end=None means open end."""
        return self.by_window(TimeWindow.make(start, end))

    def by_calendar_unit(
        self,
        unit: CalendarUnit | str,
        year: int,
        *,
        month: int | None = None,
        day: int | None = None,
        week: int | None = None,
        quarter: int | None = None,
        week_start: int | None = None,
    ) -> ResultSequence:
        window = resolve_window(
            unit,
            year,
            month=month,
            day=day,
            week=week,
            quarter=quarter,
            week_start=self.context.week_start if week_start is None else week_start,
            tz=self.context.timezone,
        )
        return self.by_window(window)

    def by_list(
        self,
        limit: int = 0,
        list_start_time: str | int = 0,
        start_offset_hours: int = 0,
        override_start: date | datetime | None = None,
        override_end: date | datetime | None = None,
    ) -> ResultSequence:
        """
        Upcoming entries for list views.

        The window starts at today's midnight (or at "now" when
        list_start_time == "now") shifted by start_offset_hours, unless
        override_start is given. It has no end unless override_end is given.
        """
        if override_start is not None:
            start = override_start
        else:
            now = self.now()
            if list_start_time != "now":
                now = day_start(now)
            start = now + timedelta(hours=start_offset_hours)

        end = override_end
        if isinstance(start, datetime) and start.tzinfo is not None and end is not None:
            # a naive end is read in the context timezone, like "now"
            if not isinstance(end, datetime):
                end = day_end(end)
            if end.tzinfo is None:
                end = end.replace(tzinfo=self.context.timezone)

        return self.by_window(TimeWindow.make(start, end), limit=limit)

    def by_search(
        self,
        start_date: date | datetime | None = None,
        end_date: date | datetime | None = None,
        custom_search: Mapping[str, Any] | None = None,
        limit: int = 0,
    ) -> ResultSequence:
        """
        Search view: pre-filter providers may rewrite the dates, restrict the
        owners or force an empty result. Bounds are widened to whole days.
        """
        filters = self.default_filters()
        filters.run_pre_filter_hook(
            self.pre_filter_providers,
            SearchArguments(
                start_date=start_date,
                end_date=end_date,
                custom_search=dict(custom_search or {}),
            ),
        )
        search = filters.search
        window = TimeWindow.day_aligned(
            search.start_date if isinstance(search.start_date, (date, datetime)) else None,
            search.end_date if isinstance(search.end_date, (date, datetime)) else None,
        )
        return self.by_window(window, filters=filters, limit=limit)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def _direction_constraints(
        self,
        reference: datetime | date,
        future: bool,
        past: bool,
    ) -> list[Constraint]:
        constraints: list[Constraint] = []
        if not future:
            constraints.append(LessOrEqual(START_DATE, reference))
        if not past:
            constraints.append(GreaterOrEqual(START_DATE, reference))
        return constraints

    def by_traversal_from(
        self,
        entry: IndexEntry,
        future: bool = True,
        past: bool = False,
        limit: int = 100,
        sort: SortDirection | str = SortDirection.ASCENDING,
        use_index_time: bool = False,
    ) -> ResultSequence:
        """Other occurrences of the same owner as `entry`."""
        if not future and not past:
            return ResultSequence.empty()

        reference: datetime | date = self.now()
        if use_index_time and entry.start_date is not None:
            reference = entry.start_date

        constraints: list[Constraint] = [
            NotEquals(UID, entry.uid),
            Equals(FOREIGN_TABLE, entry.foreign_table),
            Equals(FOREIGN_UID, entry.foreign_uid),
        ]
        constraints += self._direction_constraints(reference, future, past)
        return self._run(
            self._storage_query(
                constraints,
                sort=SortSpec(SortField.START, SortDirection.parse(sort)),
                limit=limit,
            )
        )

    def by_owning_object(
        self,
        owner: Any,
        future: bool = True,
        past: bool = False,
        limit: int = 100,
        sort: SortDirection | str = SortDirection.ASCENDING,
    ) -> ResultSequence:
        """Occurrences of `owner`, relative to now."""
        if not future and not past:
            return ResultSequence.empty()

        type_key = self.owner_types.resolve(owner)
        constraints: list[Constraint] = [
            Equals(FOREIGN_UID, select_uid(owner)),
            In(UNIQUE_REGISTER_KEY, (type_key,)),
        ]
        constraints += self._direction_constraints(self.now(), future, past)
        return self._run(
            self._storage_query(
                constraints,
                sort=SortSpec(SortField.START, SortDirection.parse(sort)),
                limit=limit,
            )
        )

    def all_for_owner(self, owner: Any) -> ResultSequence:
        """Every occurrence of `owner`, under the default filters."""
        if not isinstance(owner, OwnerLike):
            raise UnsupportedOwnerError(f"{type(owner).__qualname__} has no `uid`")
        type_key = self.owner_types.resolve(owner)
        filters = self.default_filters().with_type_keys([type_key])
        constraints: list[Constraint | None] = list(filters.build_constraints())
        constraints.append(Equals(FOREIGN_UID, owner.uid))
        return self._run(self._storage_query(constraints))

    def past_entries(
        self,
        limit: int = 0,
        sort: SortDirection | str = SortDirection.DESCENDING,
    ) -> ResultSequence:
        filters = self.default_filters()
        if filters.force_empty:
            return ResultSequence.empty()
        constraints: list[Constraint | None] = list(filters.build_constraints())
        constraints.append(LessOrEqual(START_DATE, self.now()))
        return self._run(
            self._storage_query(
                constraints,
                sort=SortSpec(SortField.START, SortDirection.parse(sort)),
                limit=limit,
            )
        )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------
    def distinct_types_and_scopes(self) -> list[tuple[Any, ...]]:
        """(storage_scope, foreign_table) pairs present in the index."""
        return self.storage.distinct((STORAGE_SCOPE, FOREIGN_TABLE))

    def all_for_admin(self) -> ResultSequence:
        """Every row, without language handling or categorical filters."""
        return self._run(self._storage_query([], language_mode=IGNORE_LANGUAGE))
