# calindex/core/providers.py
"""Stock filter providers: full-text search and content categories."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Iterable, Mapping

from .filters import NarrowingArguments, SearchArguments


logger = logging.getLogger(__name__)


class FullTextSearchProvider:
    """
    Pre-filter: restrict a search to owners matching a full-text term.

    `search(term)` returns the ids of matching owners. No match at all
    forces an empty result instead of dropping the restriction.
    """

    name = "fulltext"

    def __init__(self, search: Callable[[str], Iterable[int]], *, key: str = "fullText") -> None:
        if not callable(search):
            raise TypeError("FullTextSearchProvider.search must be callable.")
        self._search = search
        self._key = key

    def pre_filter(self, arguments: SearchArguments) -> SearchArguments | None:
        term = arguments.custom_search.get(self._key)
        if term is None or not str(term).strip():
            return None

        ids = tuple(int(i) for i in self._search(str(term)))
        logger.debug("full-text term %r matched %d owners", term, len(ids))
        if not ids:
            return replace(arguments, empty_pre_result=True)
        return replace(arguments, index_ids=arguments.index_ids + ids)


class CategoryNarrowingProvider:
    """
    Narrowing: restrict to owners sharing a category with the owner record
    (typically the content element that renders the list).

    categories_for_record(record) -> category ids of that record
    owners_for_categories(ids)    -> owner ids in any of those categories
    """

    name = "category"

    def __init__(
        self,
        categories_for_record: Callable[[Mapping[str, Any]], Iterable[int]],
        owners_for_categories: Callable[[tuple[int, ...]], Iterable[int]],
    ) -> None:
        self._categories_for_record = categories_for_record
        self._owners_for_categories = owners_for_categories

    def narrow(self, arguments: NarrowingArguments) -> NarrowingArguments | None:
        if not arguments.owner_record:
            return None

        categories = tuple(int(c) for c in self._categories_for_record(arguments.owner_record))
        if not categories:
            return None

        owners = tuple(int(o) for o in self._owners_for_categories(categories))
        return replace(arguments, index_ids=arguments.index_ids + owners)
