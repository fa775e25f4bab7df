# File: /tablekit/tables/filters/boolean.py | Version: 1.0 | Title: Boolean filter
from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy import false, true

from tablekit.tables.enums import FilterType
from tablekit.tables.exceptions import UnsupportedClause
from tablekit.tables.filters.base import Filter
from tablekit.tables.filters.clause import Clause
from tablekit.tables.query import TableQuery


class BooleanFilter(Filter):
    type = FilterType.boolean

    @classmethod
    def default_clauses(cls) -> List[Clause]:
        return [Clause.is_true, Clause.is_false]

    def default(self, value: Any, clause: Optional[Clause] = None) -> "BooleanFilter":
        self.default_value = None
        self.default_clause = Clause.is_true if value else Clause.is_false
        return self

    def apply(self, query: TableQuery, attribute: str, clause: Clause, value: Any) -> None:
        column = query.column(attribute)

        if clause is Clause.is_true:
            query.where(column == true())
        elif clause is Clause.is_false:
            query.where(column == false())
        else:
            raise UnsupportedClause(clause)

    def validate(self, value: Any, clause: Clause, query: TableQuery) -> Any:
        return None
