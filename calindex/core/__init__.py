"""
Core domain objects for calindex.

This module defines the event occurrence index and how it is queried:
- IndexEntry: one materialized occurrence (date and time stored apart)
- TimeWindow: query interval with optional bounds
- OverlapPredicateBuilder: four-case interval overlap constraint
- FilterContext: type / scope / id filters and provider hook points
- IndexQuery: composes constraints, ordering and paging
- IndexRepository: public retrieval API

The core layer is independent from storage engines; see calindex.io.
"""

from .entry import IndexEntry, COLUMNS
from .window import TimeWindow
from .constraints import (
    Constraint,
    Equals,
    NotEquals,
    LessThan,
    LessOrEqual,
    GreaterThan,
    GreaterOrEqual,
    In,
    And,
    Or,
    conjunction,
    disjunction,
)
from .overlap import OverlapPredicateBuilder, OverlapCase, ProbeBounds
from .filters import (
    FilterContext,
    SearchArguments,
    NarrowingArguments,
    PreFilterProvider,
    ConstraintNarrowingProvider,
)
from .providers import FullTextSearchProvider, CategoryNarrowingProvider
from .sorting import SortDirection, SortField, SortSpec
from .calendar import CalendarUnit, resolve_window
from .owner import OwnerLike, OwnerTypeRegistry
from .config import IndexConfig, QueryContext
from .storage import StorageEngine, StorageQuery
from .result import ResultSequence
from .query import IndexQuery
from .repository import IndexRepository
from .exceptions import (
    CoreError,
    ValidationError,
    InvalidTimeWindow,
    InvalidIndexEntry,
    InvalidCalendarUnit,
    InvalidConfig,
    UnsupportedOwnerError,
    StorageError,
    UnknownColumn,
)


__all__ = [
    # data
    "IndexEntry",
    "COLUMNS",
    "TimeWindow",

    # constraint tree
    "Constraint",
    "Equals",
    "NotEquals",
    "LessThan",
    "LessOrEqual",
    "GreaterThan",
    "GreaterOrEqual",
    "In",
    "And",
    "Or",
    "conjunction",
    "disjunction",

    # query construction
    "OverlapPredicateBuilder",
    "OverlapCase",
    "ProbeBounds",
    "FilterContext",
    "SearchArguments",
    "NarrowingArguments",
    "PreFilterProvider",
    "ConstraintNarrowingProvider",
    "FullTextSearchProvider",
    "CategoryNarrowingProvider",
    "SortDirection",
    "SortField",
    "SortSpec",
    "CalendarUnit",
    "resolve_window",
    "OwnerLike",
    "OwnerTypeRegistry",

    # configuration / execution
    "IndexConfig",
    "QueryContext",
    "StorageEngine",
    "StorageQuery",
    "ResultSequence",
    "IndexQuery",
    "IndexRepository",

    # exceptions
    "CoreError",
    "ValidationError",
    "InvalidTimeWindow",
    "InvalidIndexEntry",
    "InvalidCalendarUnit",
    "InvalidConfig",
    "UnsupportedOwnerError",
    "StorageError",
    "UnknownColumn",
]
