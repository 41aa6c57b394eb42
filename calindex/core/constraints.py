# calindex/core/constraints.py
"""
Typed constraint tree handed to storage engines.

Leaves compare one column with one value (or a set of values);
And / Or combine them. Nodes are immutable and carry no evaluation
logic: each storage adapter decides how to execute them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Union


@dataclass(frozen=True, slots=True)
class Comparison:
    field: str
    value: Any

    # Operator symbol, used for repr / debugging only
    op = "?"

    def __str__(self) -> str:
        return f"{self.field} {self.op} {self.value!r}"


@dataclass(frozen=True, slots=True)
class Equals(Comparison):
    op = "=="


@dataclass(frozen=True, slots=True)
class NotEquals(Comparison):
    op = "!="


@dataclass(frozen=True, slots=True)
class LessThan(Comparison):
    op = "<"


@dataclass(frozen=True, slots=True)
class LessOrEqual(Comparison):
    op = "<="


@dataclass(frozen=True, slots=True)
class GreaterThan(Comparison):
    op = ">"


@dataclass(frozen=True, slots=True)
class GreaterOrEqual(Comparison):
    op = ">="


@dataclass(frozen=True, slots=True)
class In:
    """Set membership. An empty value set matches nothing."""
    field: str
    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        if isinstance(self.values, (str, bytes)):
            raise TypeError("In.values must be an iterable of values, not a string")
        object.__setattr__(self, "values", tuple(self.values))

    def __str__(self) -> str:
        return f"{self.field} IN {list(self.values)!r}"


@dataclass(frozen=True, slots=True)
class And:
    operands: tuple["Constraint", ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "operands", tuple(self.operands))

    def __str__(self) -> str:
        return "(" + " AND ".join(str(c) for c in self.operands) + ")"


@dataclass(frozen=True, slots=True)
class Or:
    operands: tuple["Constraint", ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "operands", tuple(self.operands))

    def __str__(self) -> str:
        return "(" + " OR ".join(str(c) for c in self.operands) + ")"


Constraint = Union[
    Equals,
    NotEquals,
    LessThan,
    LessOrEqual,
    GreaterThan,
    GreaterOrEqual,
    In,
    And,
    Or,
]


def conjunction(constraints: Iterable[Constraint | None]) -> Constraint | None:
    """AND the given constraints; None entries are skipped, nothing left gives None."""
    items = [c for c in constraints if c is not None]
    if not items:
        return None
    if len(items) == 1:
        return items[0]
    return And(tuple(items))


def disjunction(constraints: Iterable[Constraint | None]) -> Constraint | None:
    items = [c for c in constraints if c is not None]
    if not items:
        return None
    if len(items) == 1:
        return items[0]
    return Or(tuple(items))

