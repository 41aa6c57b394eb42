# calindex/core/filters.py
"""
Categorical filters and the provider hook points around them.

Two hook points exist:
- pre-filter: runs before a search query is built; providers may
  rewrite the dates, contribute foreign ids or force an empty result
- narrowing: runs while the default constraints are assembled;
  providers may contribute foreign ids or change the type keys

Providers are best-effort. A provider that raises, or returns something
other than its payload type, is logged and skipped; the context keeps
the state it had before that provider ran.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Iterable, Mapping, Protocol, Sequence, runtime_checkable

from .constraints import Constraint, In
from .entry import FOREIGN_UID, STORAGE_SCOPE, UNIQUE_REGISTER_KEY


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SearchArguments:
    """Payload of the pre-filter hook."""
    index_ids: tuple[int, ...] = ()
    start_date: datetime | None = None
    end_date: datetime | None = None
    custom_search: Mapping[str, Any] = field(default_factory=dict)
    index_types: tuple[str, ...] = ()
    empty_pre_result: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "index_ids", tuple(self.index_ids))
        object.__setattr__(self, "index_types", tuple(self.index_types))
        if self.custom_search is None:
            object.__setattr__(self, "custom_search", {})


@dataclass(frozen=True, slots=True)
class NarrowingArguments:
    """Payload of the narrowing hook."""
    index_ids: tuple[int, ...] = ()
    index_types: tuple[str, ...] = ()
    owner_record: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "index_ids", tuple(self.index_ids))
        object.__setattr__(self, "index_types", tuple(self.index_types))


@runtime_checkable
class PreFilterProvider(Protocol):
    def pre_filter(self, arguments: SearchArguments) -> SearchArguments | None:
        """Return updated arguments, or None to leave them unchanged."""
        ...


@runtime_checkable
class ConstraintNarrowingProvider(Protocol):
    def narrow(self, arguments: NarrowingArguments) -> NarrowingArguments | None:
        """Return updated arguments, or None to leave them unchanged."""
        ...


def _provider_name(provider: object) -> str:
    return getattr(provider, "name", None) or type(provider).__qualname__


@dataclass(slots=True)
class FilterContext:
    """
    Categorical constraints for a single query call.

    Empty type / scope sets mean "no restriction". explicit_ids stays None
    until a provider contributes ids; a non-empty id list restricts
    results to entries of exactly those owners.
    """
    type_keys: frozenset[str] = frozenset()
    scopes: frozenset[int] = frozenset()
    explicit_ids: tuple[int, ...] | None = None
    force_empty: bool = False
    search: SearchArguments | None = None

    def __post_init__(self) -> None:
        self.type_keys = frozenset(self.type_keys)
        self.scopes = frozenset(self.scopes)
        if self.explicit_ids is not None:
            self.explicit_ids = tuple(self.explicit_ids)

    # ---- setters (last write wins) ----
    def with_type_keys(self, keys: Iterable[str]) -> "FilterContext":
        self.type_keys = frozenset(keys)
        return self

    def with_scopes(self, scopes: Iterable[int]) -> "FilterContext":
        self.scopes = frozenset(scopes)
        return self

    def add_explicit_ids(self, ids: Iterable[int]) -> "FilterContext":
        merged = list(self.explicit_ids or ())
        for i in ids:
            if i not in merged:
                merged.append(i)
        self.explicit_ids = tuple(merged)
        return self

    # ---- constraints ----
    def build_constraints(self) -> list[Constraint]:
        constraints: list[Constraint] = []
        if self.type_keys:
            constraints.append(In(UNIQUE_REGISTER_KEY, tuple(sorted(self.type_keys))))
        if self.scopes:
            constraints.append(In(STORAGE_SCOPE, tuple(sorted(self.scopes))))
        if self.explicit_ids:
            constraints.append(In(FOREIGN_UID, self.explicit_ids))
        return constraints

    # ---- hook points ----
    def run_pre_filter_hook(
        self,
        providers: Sequence[PreFilterProvider],
        arguments: SearchArguments,
    ) -> "FilterContext":
        current = replace(arguments, index_types=tuple(sorted(self.type_keys)))
        for provider in providers:
            try:
                result = provider.pre_filter(current)
            except Exception:
                logger.warning(
                    "pre-filter provider %s failed, skipping it",
                    _provider_name(provider),
                    exc_info=True,
                )
                continue
            if result is None:
                continue
            if not isinstance(result, SearchArguments):
                logger.warning(
                    "pre-filter provider %s returned %s instead of SearchArguments, skipping it",
                    _provider_name(provider),
                    type(result).__name__,
                )
                continue
            current = result

        self.search = current
        if current.index_ids:
            self.add_explicit_ids(current.index_ids)
        if current.empty_pre_result:
            self.force_empty = True
        return self

    def run_narrowing_hook(
        self,
        providers: Sequence[ConstraintNarrowingProvider],
        owner_record: Mapping[str, Any] | None = None,
    ) -> "FilterContext":
        current = NarrowingArguments(
            index_ids=(),
            index_types=tuple(sorted(self.type_keys)),
            owner_record=owner_record,
        )
        for provider in providers:
            try:
                result = provider.narrow(current)
            except Exception:
                logger.warning(
                    "narrowing provider %s failed, skipping it",
                    _provider_name(provider),
                    exc_info=True,
                )
                continue
            if result is None:
                continue
            if not isinstance(result, NarrowingArguments):
                logger.warning(
                    "narrowing provider %s returned %s instead of NarrowingArguments, skipping it",
                    _provider_name(provider),
                    type(result).__name__,
                )
                continue
            current = result

        self.type_keys = frozenset(current.index_types)
        if current.index_ids:
            self.add_explicit_ids(current.index_ids)
        return self
