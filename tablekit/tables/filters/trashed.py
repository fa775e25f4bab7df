# File: /tablekit/tables/filters/trashed.py | Version: 1.0 | Title: Soft-delete visibility filter
from __future__ import annotations

from typing import Any, List, Optional

from tablekit.models.soft_delete import is_soft_deletable
from tablekit.tables.enums import FilterType
from tablekit.tables.exceptions import UnsupportedClause
from tablekit.tables.filters.base import Filter
from tablekit.tables.filters.clause import Clause
from tablekit.tables.query import TableQuery


class TrashedFilter(Filter):
    """
    Toggles the soft-delete scope of the table query.

    Applied unwrapped by default: the scope lives on the query itself, not in
    a predicate group. Resources without the SoftDeletable capability ignore it.
    """

    type = FilterType.trashed

    def __init__(self, attribute: str = "trashed", label: Optional[str] = None, **kwargs: Any) -> None:
        kwargs.setdefault("apply_unwrapped", True)
        super().__init__(attribute, label, **kwargs)

    @classmethod
    def default_clauses(cls) -> List[Clause]:
        return [Clause.without_trashed, Clause.with_trashed, Clause.only_trashed]

    def default(self, value: Any, clause: Optional[Clause] = None) -> "TrashedFilter":
        self.default_value = None
        self.default_clause = clause or Clause.without_trashed
        return self

    def only_trashed(self) -> "TrashedFilter":
        return self.default(None, Clause.only_trashed)

    def with_trashed(self) -> "TrashedFilter":
        return self.default(None, Clause.with_trashed)

    def without_trashed(self) -> "TrashedFilter":
        return self.default(None, Clause.without_trashed)

    def apply(self, query: TableQuery, attribute: str, clause: Clause, value: Any) -> None:
        if not is_soft_deletable(query.model):
            return

        if clause is Clause.with_trashed:
            query.with_trashed()
        elif clause is Clause.only_trashed:
            query.only_trashed()
        elif clause is Clause.without_trashed:
            query.without_trashed()
        else:
            raise UnsupportedClause(clause)

    def validate(self, value: Any, clause: Clause, query: TableQuery) -> Any:
        return None
