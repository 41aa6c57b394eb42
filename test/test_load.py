import json
from datetime import date, datetime, timezone

import pytest

from calindex.core import InvalidIndexEntry, StorageQuery
from calindex.io.load import entry_from_row, load_index


ROW = {
    "uid": "3",
    "pid": 12,
    "sys_language_uid": 1,
    "foreign_table": "tx_event",
    "foreign_uid": 7,
    "unique_register_key": "Event",
    "start_date": "2024-03-12",
    "end_date": "2024-03-14 00:00:00",
    "start_time": 36000,
    "end_time": "",
    "all_day": 1,
}


def test_entry_from_row():
    entry = entry_from_row(ROW)
    assert entry.uid == 3
    assert entry.storage_scope == 12
    assert entry.language == 1
    assert entry.start_date == date(2024, 3, 12)
    assert entry.end_date == date(2024, 3, 14)
    assert entry.start_time == 36000
    assert entry.end_time == 0
    assert entry.all_day is True


def test_epoch_and_unset_dates():
    epoch = datetime(2024, 3, 12, tzinfo=timezone.utc).timestamp()
    entry = entry_from_row({**ROW, "start_date": int(epoch), "end_date": 0})
    assert entry.start_date == date(2024, 3, 12)
    assert entry.end_date is None
    assert entry.is_open_ended


def test_plain_column_names():
    row = {k: v for k, v in ROW.items() if k not in ("pid", "sys_language_uid")}
    entry = entry_from_row({**row, "storage_scope": 4, "language": -1})
    assert entry.storage_scope == 4
    assert entry.language == -1


@pytest.mark.parametrize(
    "row",
    [
        {k: v for k, v in ROW.items() if k != "uid"},
        {**ROW, "start_date": "12.03.2024"},
        {**ROW, "start_date": [2024]},
        {**ROW, "foreign_uid": "seven"},
        {**ROW, "foreign_table": ""},
    ],
)
def test_invalid_rows(row):
    with pytest.raises(InvalidIndexEntry):
        entry_from_row(row)


def test_load_from_json_file(tmp_path):
    path = tmp_path / "index.json"
    path.write_text(json.dumps({"rows": [ROW, {**ROW, "uid": 4}]}), encoding="utf-8")

    storage = load_index(path)
    assert [e.uid for e in storage.execute(StorageQuery())] == [3, 4]


def test_load_from_json_list(tmp_path):
    path = tmp_path / "index.json"
    path.write_text(json.dumps([ROW]), encoding="utf-8")
    assert len(load_index(str(path))) == 1


def test_load_from_rows():
    storage = load_index(iter([ROW]))
    assert len(storage) == 1


@pytest.mark.parametrize("value, expected", [("0", False), (0, False), ("", False), ("1", True), (True, True)])
def test_all_day_flag(value, expected):
    assert entry_from_row({**ROW, "all_day": value}).all_day is expected
