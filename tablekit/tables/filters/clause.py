# File: /tablekit/tables/filters/clause.py | Version: 1.0 | Title: Filter comparison clauses
from __future__ import annotations

from enum import Enum


class Clause(str, Enum):
    equals = "equals"
    not_equals = "not_equals"
    starts_with = "starts_with"
    ends_with = "ends_with"
    not_starts_with = "not_starts_with"
    not_ends_with = "not_ends_with"
    contains = "contains"
    not_contains = "not_contains"

    is_true = "is_true"
    is_false = "is_false"
    is_set = "is_set"
    is_not_set = "is_not_set"

    before = "before"
    equal_or_before = "equal_or_before"
    after = "after"
    equal_or_after = "equal_or_after"
    between = "between"
    not_between = "not_between"

    greater_than = "greater_than"
    greater_than_or_equal = "greater_than_or_equal"
    less_than = "less_than"
    less_than_or_equal = "less_than_or_equal"

    in_ = "in"
    not_in = "not_in"

    with_trashed = "with_trashed"
    only_trashed = "only_trashed"
    without_trashed = "without_trashed"

    @property
    def is_negated(self) -> bool:
        return self in _NEGATED

    def opposite_of_negation(self) -> "Clause":
        return _NEGATED.get(self, self)

    @property
    def requires_comparison_value(self) -> bool:
        return self not in _WITHOUT_COMPARISON

    @classmethod
    def try_from(cls, value) -> "Clause | None":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


_NEGATED = {
    Clause.not_equals: Clause.equals,
    Clause.not_starts_with: Clause.starts_with,
    Clause.not_ends_with: Clause.ends_with,
    Clause.not_contains: Clause.contains,
    Clause.not_between: Clause.between,
    Clause.not_in: Clause.in_,
}

_WITHOUT_COMPARISON = frozenset(
    {
        Clause.is_true,
        Clause.is_false,
        Clause.is_set,
        Clause.is_not_set,
        Clause.with_trashed,
        Clause.only_trashed,
        Clause.without_trashed,
    }
)
