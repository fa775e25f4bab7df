# File: /tablekit/tables/filters/text.py | Version: 1.0 | Title: Text filter (LIKE / ILIKE)
from __future__ import annotations

from typing import Any, List, Optional

from tablekit.tables.enums import FilterType
from tablekit.tables.exceptions import UnsupportedClause
from tablekit.tables.filters.base import Filter
from tablekit.tables.filters.clause import Clause
from tablekit.tables.helpers import is_numeric
from tablekit.tables.query import TableQuery


class TextFilter(Filter):
    type = FilterType.text

    @classmethod
    def default_clauses(cls) -> List[Clause]:
        return [
            Clause.contains,
            Clause.not_contains,
            Clause.starts_with,
            Clause.ends_with,
            Clause.not_starts_with,
            Clause.not_ends_with,
            Clause.equals,
            Clause.not_equals,
        ]

    def apply(self, query: TableQuery, attribute: str, clause: Clause, value: Any) -> None:
        column = query.column(attribute)

        if clause is Clause.contains:
            query.where(query.like(column, f"%{value}%"))
        elif clause is Clause.not_contains:
            query.where(query.like(column, f"%{value}%", negate=True))
        elif clause is Clause.equals:
            query.where(column == value)
        elif clause is Clause.not_equals:
            query.where(column != value)
        elif clause is Clause.starts_with:
            query.where(query.like(column, f"{value}%"))
        elif clause is Clause.ends_with:
            query.where(query.like(column, f"%{value}"))
        elif clause is Clause.not_starts_with:
            query.where(query.like(column, f"{value}%", negate=True))
        elif clause is Clause.not_ends_with:
            query.where(query.like(column, f"%{value}", negate=True))
        else:
            raise UnsupportedClause(clause)

    def validate(self, value: Any, clause: Clause, query: TableQuery) -> Optional[str]:
        if isinstance(value, str) or is_numeric(value):
            return str(value)
        return None
