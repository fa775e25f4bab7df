# File: /tablekit/tables/filters/date.py | Version: 1.0 | Title: Date filter (whereDate comparisons and day ranges)
from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, List, Mapping, Optional

from dateutil import parser as date_parser
from sqlalchemy import Date, func

from tablekit.tables.enums import FilterType
from tablekit.tables.exceptions import UnsupportedClause
from tablekit.tables.filters.base import Filter
from tablekit.tables.filters.clause import Clause
from tablekit.tables.query import TableQuery

_RANGE_CLAUSES = (Clause.between, Clause.not_between)


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max)


class DateFilter(Filter):
    type = FilterType.date

    @classmethod
    def default_clauses(cls) -> List[Clause]:
        return [
            Clause.before,
            Clause.after,
            Clause.equal_or_before,
            Clause.equal_or_after,
            Clause.equals,
            Clause.not_equals,
            Clause.between,
            Clause.not_between,
        ]

    @staticmethod
    def type_as_date(value: Any) -> Optional[datetime]:
        """Lenient parse; anything unparseable is None."""
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time.min)
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            return None
        try:
            return date_parser.parse(str(value))
        except (ValueError, OverflowError):
            return None

    def apply(self, query: TableQuery, attribute: str, clause: Clause, value: Any) -> None:
        column = query.column(attribute)

        if isinstance(value, (list, tuple)):
            start, end = start_of_day(value[0]), end_of_day(value[1])
            if isinstance(getattr(column, "type", None), Date):
                start, end = start.date(), end.date()
        else:
            day = start_of_day(value).date()

        day_of = func.date(column, type_=Date)

        if clause is Clause.before:
            query.where(day_of < day)
        elif clause is Clause.after:
            query.where(day_of > day)
        elif clause is Clause.equal_or_before:
            query.where(day_of <= day)
        elif clause is Clause.equal_or_after:
            query.where(day_of >= day)
        elif clause is Clause.equals:
            query.where(day_of == day)
        elif clause is Clause.not_equals:
            query.where(day_of != day)
        elif clause is Clause.between:
            query.where(column.between(start, end))
        elif clause is Clause.not_between:
            query.where(~column.between(start, end))
        else:
            raise UnsupportedClause(clause)

    def validate(self, value: Any, clause: Clause, query: TableQuery) -> Any:
        if clause in _RANGE_CLAUSES:
            if isinstance(value, Mapping):
                value = list(value.values())
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                return None
            start, end = self.type_as_date(value[0]), self.type_as_date(value[1])
            return [start, end] if start is not None and end is not None else None

        return self.type_as_date(value)
