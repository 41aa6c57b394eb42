# calindex/io/load.py
from __future__ import annotations

import json
from datetime import date, datetime, timezone, tzinfo
from pathlib import Path
from typing import Any, Iterable, Mapping

from calindex.core import IndexEntry, InvalidIndexEntry
from calindex.io.memory import InMemoryStorage


def _parse_date(value: Any, column: str, tz: tzinfo) -> date | None:
    # Rows store either ISO dates or epoch seconds; 0 / "" mean "not set"
    if value in (None, "", 0):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz).date()
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError as e:
            raise InvalidIndexEntry(f"{column}: cannot parse {value!r}") from e
    raise InvalidIndexEntry(f"{column}: unsupported value {value!r}")


def _int(row: Mapping[str, Any], column: str, default: int = 0) -> int:
    value = row.get(column, default)
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidIndexEntry(f"{column}: expected an integer, got {value!r}") from e


def entry_from_row(row: Mapping[str, Any], *, tz: tzinfo = timezone.utc) -> IndexEntry:
    """Map one index-table row (uid, pid, sys_language_uid, ...) to an IndexEntry."""
    if "uid" not in row:
        raise InvalidIndexEntry("index row has no uid")
    return IndexEntry(
        uid=_int(row, "uid"),
        foreign_table=str(row.get("foreign_table") or ""),
        foreign_uid=_int(row, "foreign_uid"),
        unique_register_key=str(row.get("unique_register_key") or ""),
        start_date=_parse_date(row.get("start_date"), "start_date", tz),
        end_date=_parse_date(row.get("end_date"), "end_date", tz),
        start_time=_int(row, "start_time"),
        end_time=_int(row, "end_time"),
        all_day=_int(row, "all_day") != 0,
        storage_scope=_int(row, "pid", _int(row, "storage_scope")),
        language=_int(row, "sys_language_uid", _int(row, "language")),
    )


def load_index(
    source: str | Path | Iterable[Mapping[str, Any]],
    *,
    tz: tzinfo = timezone.utc,
) -> InMemoryStorage:
    """
    Build an InMemoryStorage from index rows.

    source:
      - path to a JSON file holding a list of rows (or {"rows": [...]})
      - or an iterable of row mappings
    """
    if isinstance(source, (str, Path)):
        with open(source, encoding="utf-8") as fh:
            data = json.load(fh)
        rows = data.get("rows", []) if isinstance(data, dict) else data
    else:
        rows = source

    entries = [entry_from_row(row, tz=tz) for row in rows]
    return InMemoryStorage(entries, tz=tz)
