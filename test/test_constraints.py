import pytest

from calindex.core import (
    And,
    Equals,
    GreaterOrEqual,
    In,
    LessThan,
    NotEquals,
    Or,
    conjunction,
    disjunction,
)


def test_comparisons_are_values():
    assert Equals("uid", 1) == Equals("uid", 1)
    assert Equals("uid", 1) != NotEquals("uid", 1)
    assert hash(LessThan("start_date", 5)) == hash(LessThan("start_date", 5))


def test_in_normalizes_values_to_tuple():
    c = In("storage_scope", [3, 4])
    assert c.values == (3, 4)
    assert str(c) == "storage_scope IN [3, 4]"


def test_in_rejects_plain_string():
    with pytest.raises(TypeError):
        In("unique_register_key", "Event")


def test_conjunction_collapses():
    a = Equals("uid", 1)
    b = GreaterOrEqual("start_date", 0)

    assert conjunction([]) is None
    assert conjunction([None, None]) is None
    assert conjunction([a]) is a
    assert conjunction([a, None, b]) == And((a, b))


def test_disjunction_collapses():
    a = Equals("uid", 1)
    b = Equals("uid", 2)

    assert disjunction([]) is None
    assert disjunction([b]) is b
    assert disjunction([a, b]) == Or((a, b))


def test_string_rendering():
    tree = Or((And((Equals("uid", 1), LessThan("start_date", 5))), NotEquals("uid", 2)))
    assert str(tree) == "((uid == 1 AND start_date < 5) OR uid != 2)"


def test_nodes_are_immutable():
    c = Equals("uid", 1)
    with pytest.raises(AttributeError):
        c.value = 2  # type: ignore[misc]
