# calindex/core/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from typing import Any, Iterable, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import InvalidConfig
from .sorting import SortSpec


DEFAULT_LANGUAGE_MODE = "strict"


def _int_list(value: Any, name: str) -> tuple[int, ...]:
    """Accept "1, 2,3", [1, "2"] or a single int; drop empty parts."""
    if value is None or value == "":
        return ()
    if isinstance(value, int):
        return (value,)
    parts = value.split(",") if isinstance(value, str) else value
    try:
        return tuple(int(str(p).strip()) for p in parts if str(p).strip())
    except ValueError as e:
        raise InvalidConfig(f"`{name}` must be a list of integers, got {value!r}") from e


@dataclass(frozen=True, slots=True)
class IndexConfig:
    """
    Host configuration, built once and passed in.

    - storage_scopes: configured scope ids (persistence framework setting)
    - default_storage_scopes: host fallback when nothing is configured
    - language_mode: translation visibility mode handed to storage
    - language: current language id (None = no language handling)
    - week_start: 0..6, 0 = Sunday
    - timezone: calendar arithmetic and "now"
    - owner_types: owner class name -> type tag
    """
    storage_scopes: tuple[int, ...] = ()
    default_storage_scopes: tuple[int, ...] = ()
    language_mode: str = DEFAULT_LANGUAGE_MODE
    language: int | None = None
    week_start: int = 1
    timezone: tzinfo = timezone.utc
    owner_types: Mapping[str, str] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "storage_scopes", _int_list(self.storage_scopes, "storage_scopes"))
        object.__setattr__(
            self,
            "default_storage_scopes",
            _int_list(self.default_storage_scopes, "default_storage_scopes"),
        )
        if not isinstance(self.language_mode, str) or not self.language_mode.strip():
            raise InvalidConfig("IndexConfig.language_mode must be a non-empty string.")
        if not isinstance(self.week_start, int) or not 0 <= self.week_start <= 6:
            raise InvalidConfig(f"IndexConfig.week_start must be within 0..6, got {self.week_start!r}")
        if not isinstance(self.timezone, tzinfo):
            raise InvalidConfig("IndexConfig.timezone must be a tzinfo instance.")
        if self.owner_types is None:
            object.__setattr__(self, "owner_types", {})
        elif not isinstance(self.owner_types, Mapping):
            raise InvalidConfig("IndexConfig.owner_types must be a mapping.")
        else:
            object.__setattr__(self, "owner_types", dict(self.owner_types))

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "IndexConfig":
        """
        Build from host settings, e.g.

            {
                "persistence": {"storagePid": "12,14"},
                "defaultStoragePid": "1",
                "indexLanguageMode": "strict",
                "languageUid": 0,
                "weekStart": 1,
                "timezone": "Europe/Berlin",
                "ownerTypes": {"Event": "calendarize_event"},
            }
        """
        if not isinstance(settings, Mapping):
            raise InvalidConfig("settings must be a mapping.")

        persistence = settings.get("persistence") or {}
        if not isinstance(persistence, Mapping):
            raise InvalidConfig("`persistence` must be a mapping.")

        tz_name = settings.get("timezone")
        if tz_name is None:
            tz: tzinfo = timezone.utc
        else:
            try:
                tz = ZoneInfo(str(tz_name))
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise InvalidConfig(f"unknown timezone {tz_name!r}") from e

        language = settings.get("languageUid")
        week_start = settings.get("weekStart", 1)
        try:
            language = None if language is None else int(language)
            week_start = int(week_start)
        except (TypeError, ValueError) as e:
            raise InvalidConfig(f"invalid numeric setting: {e}") from e

        return cls(
            storage_scopes=_int_list(persistence.get("storagePid"), "persistence.storagePid"),
            default_storage_scopes=_int_list(settings.get("defaultStoragePid"), "defaultStoragePid"),
            language_mode=str(settings.get("indexLanguageMode") or DEFAULT_LANGUAGE_MODE),
            language=language,
            week_start=week_start,
            timezone=tz,
            owner_types=settings.get("ownerTypes") or {},
        )

    def resolve_scopes(self, override: Iterable[int] | None = None) -> tuple[int, ...]:
        """Explicit override, else configured scopes, else the host default."""
        override_ids = _int_list(list(override) if override is not None else None, "override")
        if override_ids:
            return override_ids
        if self.storage_scopes:
            return self.storage_scopes
        return self.default_storage_scopes


@dataclass(frozen=True, slots=True)
class QueryContext:
    """Values resolved once by the repository and attached to every query."""
    scopes: tuple[int, ...] = ()
    index_types: tuple[str, ...] = ()
    language_mode: str = DEFAULT_LANGUAGE_MODE
    language: int | None = None
    week_start: int = 1
    timezone: tzinfo = timezone.utc
    default_sort: SortSpec = field(default_factory=SortSpec.default)
    owner_record: Mapping[str, Any] | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "scopes", tuple(self.scopes))
        object.__setattr__(self, "index_types", tuple(self.index_types))
