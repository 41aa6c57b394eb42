import logging
from datetime import date, datetime, timezone

import pytest

from calindex.core import (
    And,
    Equals,
    GreaterOrEqual,
    In,
    IndexEntry,
    LessThan,
    NotEquals,
    Or,
    SortDirection,
    SortSpec,
    StorageError,
    StorageQuery,
    UnknownColumn,
)
from calindex.io.memory import InMemoryStorage


def _entry(uid, start, end=None, *, start_time=0, table="tx_event", scope=1, language=0, key="Event"):
    return IndexEntry(
        uid=uid,
        foreign_table=table,
        foreign_uid=uid * 10,
        unique_register_key=key,
        start_date=start,
        end_date=end if end is not None else start,
        start_time=start_time,
        storage_scope=scope,
        language=language,
    )


@pytest.fixture
def storage():
    return InMemoryStorage([
        _entry(1, date(2024, 3, 12), start_time=3600),
        _entry(2, date(2024, 3, 10), table="tx_news", scope=2),
        _entry(3, date(2024, 3, 12), start_time=60, language=1),
        _entry(4, date(2024, 3, 15), language=-1, key="News"),
    ])


def _uids(rows):
    return [e.uid for e in rows]


def test_no_constraint_returns_everything_in_insertion_order(storage):
    assert _uids(storage.execute(StorageQuery())) == [1, 2, 3, 4]
    assert len(storage) == 4


def test_comparisons_on_date_columns(storage):
    query = StorageQuery(constraint=GreaterOrEqual("start_date", date(2024, 3, 12)))
    assert _uids(storage.execute(query)) == [1, 3, 4]

    query = StorageQuery(constraint=LessThan("start_date", datetime(2024, 3, 12)))
    assert _uids(storage.execute(query)) == [2]


def test_aware_datetime_is_converted(storage):
    value = datetime(2024, 3, 12, tzinfo=timezone.utc)
    query = StorageQuery(constraint=Equals("start_date", value))
    assert _uids(storage.execute(query)) == [1, 3]


def test_in_and_or(storage):
    query = StorageQuery(
        constraint=Or((In("storage_scope", (2,)), And((Equals("unique_register_key", "News"), NotEquals("uid", 1)))))
    )
    assert _uids(storage.execute(query)) == [2, 4]


def test_empty_in_matches_nothing(storage):
    assert storage.execute(StorageQuery(constraint=In("uid", ()))) == []


def test_ordering_and_limit(storage):
    orderings = SortSpec.of("asc").orderings()
    assert _uids(storage.execute(StorageQuery(orderings=orderings))) == [2, 3, 1, 4]

    descending = SortSpec.of("desc").orderings()
    assert _uids(storage.execute(StorageQuery(orderings=descending, limit=2))) == [4, 1]


def test_open_ended_rows_sort_last_ascending():
    storage = InMemoryStorage([
        IndexEntry(1, "t", 1, "Event", date(2024, 1, 1), None),
        IndexEntry(2, "t", 2, "Event", date(2024, 1, 1), date(2024, 2, 1)),
    ])
    orderings = SortSpec.of("asc", "end").orderings()
    assert _uids(storage.execute(StorageQuery(orderings=orderings))) == [2, 1]


def test_language_handling(storage):
    strict = StorageQuery(language=1)
    assert _uids(storage.execute(strict)) == [3, 4]

    ignored = StorageQuery(language=1, language_mode="ignore")
    assert _uids(storage.execute(ignored)) == [1, 2, 3, 4]


def test_count(storage):
    assert storage.count(StorageQuery(constraint=Equals("storage_scope", 1))) == 3


def test_distinct_keeps_first_seen_order(storage):
    assert storage.distinct(("storage_scope", "foreign_table")) == [
        (1, "tx_event"),
        (2, "tx_news"),
    ]
    pairs = storage.distinct(["foreign_table"], StorageQuery(constraint=Equals("uid", 2)))
    assert pairs == [("tx_news",)]
    assert all(type(v) is int for v, _ in storage.distinct(("storage_scope", "foreign_table")))


def test_unknown_column(storage):
    with pytest.raises(UnknownColumn):
        storage.execute(StorageQuery(constraint=Equals("title", "x")))


def test_ordering_by_text_column_fails(storage):
    query = StorageQuery(orderings=(("foreign_table", SortDirection.ASCENDING),))
    with pytest.raises(StorageError):
        storage.execute(query)


def test_bad_date_value_fails(storage):
    with pytest.raises(StorageError):
        storage.execute(StorageQuery(constraint=Equals("start_date", "2024-03-12")))


def test_rejects_foreign_rows():
    with pytest.raises(StorageError):
        InMemoryStorage([{"uid": 1}])


def test_add_returns_new_storage(storage):
    bigger = storage.add([_entry(5, date(2024, 4, 1))])
    assert len(bigger) == 5
    assert len(storage) == 4


def test_execute_logs_at_debug(storage, caplog):
    with caplog.at_level(logging.DEBUG, logger="calindex.io.memory"):
        storage.execute(StorageQuery())
    assert "matched 4 of 4 rows" in caplog.text


def test_empty_storage():
    storage = InMemoryStorage()
    assert storage.execute(StorageQuery(constraint=Equals("uid", 1))) == []
    assert storage.distinct(("uid",)) == []
