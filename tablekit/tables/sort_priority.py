# File: /tablekit/tables/sort_priority.py | Version: 1.0 | Title: Sort by an explicit value priority list
from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import case

from tablekit.tables.enums import SortDirection
from tablekit.tables.query import TableQuery


class SortUsingPriority:
    """
    Orders rows by the position of the column value in ``priority``.

    Values missing from the list sort after every listed value (ascending).
    """

    def __init__(self, column: str, priority: Sequence[Any]) -> None:
        if not priority:
            raise ValueError("Priority list cannot be empty")
        self.column = column
        self.priority = list(priority)

    def __call__(self, query: TableQuery, direction: SortDirection) -> None:
        column = query.column(self.column)
        position = case(
            *[(column == value, index) for index, value in enumerate(self.priority)],
            else_=len(self.priority),
        )
        query.order_by(position, direction)
