# calindex/core/owner.py
from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from .exceptions import UnsupportedOwnerError


@runtime_checkable
class OwnerLike(Protocol):
    """
    Domain object that produced index entries (an event, a definition...).

    Only `uid` is required. Owners may also expose:
    - localized_uid: id of the translated record, preferred over uid
    - unique_register_key: their own type tag
    """

    uid: int


class OwnerTypeRegistry:
    """Maps owner classes to the type tag stored in `unique_register_key`."""

    def __init__(self, types: Mapping[type | str, str] | None = None) -> None:
        self._types: dict[type | str, str] = {}
        for key, tag in (types or {}).items():
            self.register(key, tag)

    def register(self, owner_type: type | str, tag: str) -> None:
        if not isinstance(tag, str) or not tag.strip():
            raise UnsupportedOwnerError(f"type tag for {owner_type!r} must be a non-empty string")
        self._types[owner_type] = tag

    def __contains__(self, owner_type: object) -> bool:
        return owner_type in self._types

    def resolve(self, owner: Any) -> str:
        tag = getattr(owner, "unique_register_key", None)
        if isinstance(tag, str) and tag.strip():
            return tag

        for klass in type(owner).__mro__:
            for key in (klass, klass.__qualname__, f"{klass.__module__}.{klass.__qualname__}"):
                if key in self._types:
                    return self._types[key]

        raise UnsupportedOwnerError(
            f"no type tag registered for owner of type {type(owner).__qualname__}"
        )


def select_uid(owner: Any) -> int:
    """The translation-resolved id when the owner has one, else its uid."""
    if not isinstance(owner, OwnerLike):
        raise UnsupportedOwnerError(f"{type(owner).__qualname__} has no `uid`")
    localized = getattr(owner, "localized_uid", None)
    return localized if localized else owner.uid
