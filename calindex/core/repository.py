# calindex/core/repository.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping, Sequence

from .calendar import CalendarUnit
from .config import IndexConfig, QueryContext
from .entry import IndexEntry
from .filters import ConstraintNarrowingProvider, PreFilterProvider
from .owner import OwnerTypeRegistry
from .query import IndexQuery
from .result import ResultSequence
from .sorting import SortDirection, SortField, SortSpec
from .storage import StorageEngine


logger = logging.getLogger(__name__)


class IndexRepository:
    """
    Public retrieval API over an index storage engine.

    Storage scopes (override > configured > host default) and the
    language mode are resolved once at construction; every call is
    forwarded to an IndexQuery bound to that context. Reconfiguration
    (with_*) returns a new repository.
    """

    def __init__(
        self,
        storage: StorageEngine,
        config: IndexConfig | None = None,
        *,
        override_scopes: Iterable[int] | None = None,
        index_types: Iterable[str] = (),
        default_sort: SortSpec | None = None,
        owner_record: Mapping[str, Any] | None = None,
        pre_filter_providers: Sequence[PreFilterProvider] = (),
        narrowing_providers: Sequence[ConstraintNarrowingProvider] = (),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._storage = storage
        self._config = config or IndexConfig()
        self._override_scopes = tuple(override_scopes) if override_scopes is not None else None
        self._pre_filter_providers = tuple(pre_filter_providers)
        self._narrowing_providers = tuple(narrowing_providers)
        self._clock = clock

        context = QueryContext(
            scopes=self._config.resolve_scopes(self._override_scopes),
            index_types=tuple(index_types),
            language_mode=self._config.language_mode,
            language=self._config.language,
            week_start=self._config.week_start,
            timezone=self._config.timezone,
            default_sort=default_sort or SortSpec.default(),
            owner_record=owner_record,
        )
        logger.debug(
            "index repository scopes=%s language_mode=%s types=%s",
            context.scopes,
            context.language_mode,
            context.index_types,
        )
        self._query = IndexQuery(
            storage,
            context,
            pre_filter_providers=self._pre_filter_providers,
            narrowing_providers=self._narrowing_providers,
            owner_types=OwnerTypeRegistry(self._config.owner_types),
            clock=clock,
        )

    @property
    def context(self) -> QueryContext:
        return self._query.context

    @property
    def query(self) -> IndexQuery:
        return self._query

    # ---- reconfiguration ----
    def _derive(self, **changes: Any) -> "IndexRepository":
        context = self.context
        kwargs: dict[str, Any] = {
            "override_scopes": self._override_scopes,
            "index_types": context.index_types,
            "default_sort": context.default_sort,
            "owner_record": context.owner_record,
            "pre_filter_providers": self._pre_filter_providers,
            "narrowing_providers": self._narrowing_providers,
            "clock": self._clock,
        }
        kwargs.update(changes)
        return IndexRepository(self._storage, self._config, **kwargs)

    def with_index_types(self, types: Iterable[str]) -> "IndexRepository":
        return self._derive(index_types=tuple(types))

    def with_override_scopes(self, scopes: Iterable[int] | None) -> "IndexRepository":
        return self._derive(override_scopes=scopes)

    def with_default_sorting(
        self,
        direction: SortDirection | str,
        field: SortField | str = "",
    ) -> "IndexRepository":
        return self._derive(default_sort=SortSpec.of(direction, field))

    def with_owner_record(self, record: Mapping[str, Any] | None) -> "IndexRepository":
        return self._derive(owner_record=record)

    # ---- range lookups ----
    def find_by_time_slot(
        self,
        start: date | datetime | None,
        end: date | datetime | None = None,
    ) -> ResultSequence:
        return self._query.by_time_slot(start, end)

    def find_list(
        self,
        limit: int = 0,
        list_start_time: str | int = 0,
        start_offset_hours: int = 0,
        override_start: date | datetime | None = None,
        override_end: date | datetime | None = None,
    ) -> ResultSequence:
        return self._query.by_list(
            limit, list_start_time, start_offset_hours, override_start, override_end
        )

    def find_by_search(
        self,
        start_date: date | datetime | None = None,
        end_date: date | datetime | None = None,
        custom_search: Mapping[str, Any] | None = None,
        limit: int = 0,
    ) -> ResultSequence:
        return self._query.by_search(start_date, end_date, custom_search, limit)

    def find_by_calendar_unit(self, unit: CalendarUnit | str, year: int, **anchor: int) -> ResultSequence:
        return self._query.by_calendar_unit(unit, year, **anchor)

    def find_year(self, year: int) -> ResultSequence:
        return self._query.by_calendar_unit(CalendarUnit.YEAR, year)

    def find_quarter(self, year: int, quarter: int) -> ResultSequence:
        return self._query.by_calendar_unit(CalendarUnit.QUARTER, year, quarter=quarter)

    def find_month(self, year: int, month: int) -> ResultSequence:
        return self._query.by_calendar_unit(CalendarUnit.MONTH, year, month=month)

    def find_week(self, year: int, week: int, week_start: int | None = None) -> ResultSequence:
        return self._query.by_calendar_unit(
            CalendarUnit.WEEK, year, week=week, week_start=week_start
        )

    def find_day(self, year: int, month: int, day: int) -> ResultSequence:
        return self._query.by_calendar_unit(CalendarUnit.DAY, year, month=month, day=day)

    def find_by_past(
        self,
        limit: int = 0,
        sort: SortDirection | str = SortDirection.DESCENDING,
    ) -> ResultSequence:
        return self._query.past_entries(limit, sort)

    # ---- traversal ----
    def find_by_traversing(
        self,
        entry: IndexEntry,
        future: bool = True,
        past: bool = False,
        limit: int = 100,
        sort: SortDirection | str = SortDirection.ASCENDING,
        use_index_time: bool = False,
    ) -> ResultSequence:
        return self._query.by_traversal_from(entry, future, past, limit, sort, use_index_time)

    def find_by_event_traversing(
        self,
        owner: Any,
        future: bool = True,
        past: bool = False,
        limit: int = 100,
        sort: SortDirection | str = SortDirection.ASCENDING,
    ) -> ResultSequence:
        return self._query.by_owning_object(owner, future, past, limit, sort)

    def find_by_event(self, owner: Any) -> ResultSequence:
        return self._query.all_for_owner(owner)

    # ---- administration ----
    def find_different_types_and_scopes(self) -> list[tuple[Any, ...]]:
        return self._query.distinct_types_and_scopes()

    def find_all_for_backend(self) -> ResultSequence:
        return self._query.all_for_admin()
