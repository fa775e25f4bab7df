# File: /tablekit/tables/filters/numeric.py | Version: 1.0 | Title: Numeric filter (comparisons and ranges)
from __future__ import annotations

from typing import Any, List, Mapping

from tablekit.tables.enums import FilterType
from tablekit.tables.exceptions import UnsupportedClause
from tablekit.tables.filters.base import Filter
from tablekit.tables.filters.clause import Clause
from tablekit.tables.helpers import is_numeric, to_number
from tablekit.tables.query import TableQuery

_RANGE_CLAUSES = (Clause.between, Clause.not_between)


class NumericFilter(Filter):
    type = FilterType.numeric

    @classmethod
    def default_clauses(cls) -> List[Clause]:
        return [
            Clause.equals,
            Clause.not_equals,
            Clause.greater_than,
            Clause.greater_than_or_equal,
            Clause.less_than,
            Clause.less_than_or_equal,
            Clause.between,
            Clause.not_between,
        ]

    def apply(self, query: TableQuery, attribute: str, clause: Clause, value: Any) -> None:
        column = query.column(attribute)

        if clause is Clause.greater_than:
            query.where(column > value)
        elif clause is Clause.greater_than_or_equal:
            query.where(column >= value)
        elif clause is Clause.less_than:
            query.where(column < value)
        elif clause is Clause.less_than_or_equal:
            query.where(column <= value)
        elif clause is Clause.equals:
            query.where(column == value)
        elif clause is Clause.not_equals:
            query.where(column != value)
        elif clause is Clause.between:
            query.where(column.between(value[0], value[1]))
        elif clause is Clause.not_between:
            query.where(~column.between(value[0], value[1]))
        else:
            raise UnsupportedClause(clause)

    def validate(self, value: Any, clause: Clause, query: TableQuery) -> Any:
        if clause in _RANGE_CLAUSES:
            if isinstance(value, Mapping):
                value = list(value.values())
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                return None
            if is_numeric(value[0]) and is_numeric(value[1]):
                return [to_number(value[0]), to_number(value[1])]
            return None

        return to_number(value) if is_numeric(value) else None
