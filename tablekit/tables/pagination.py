# File: /tablekit/tables/pagination.py | Version: 1.1 | Title: Full, simple and cursor paginators over TableQuery
"""
Three interchangeable paginators with one surface: ``items``, ``through()``,
``on_first_page()``, ``on_last_page()``, ``url()`` and ``to_dict()``.

URLs keep the current query string and only swap the page (or cursor)
parameter, so filters, sort and search survive page changes.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from math import ceil
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlencode

from sqlalchemy import and_, inspect, or_
from sqlalchemy.sql import operators

from tablekit.tables.exceptions import ConfigurationError, InvalidState
from tablekit.tables.query import TableQuery
from tablekit.tables.state import from_jsonable, to_jsonable

log = logging.getLogger(__name__)

QueryItems = List[Tuple[str, str]]


class Paginator:
    def __init__(
        self,
        items: List[Any],
        per_page: int,
        path: str = "/",
        query_items: Optional[QueryItems] = None,
        page_name: str = "page",
    ) -> None:
        self.items = list(items)
        self.per_page = per_page
        self.path = path
        self.query_items = list(query_items or [])
        self.page_name = page_name

    def through(self, callback: Callable[[Any], Any]) -> "Paginator":
        self.items = [callback(item) for item in self.items]
        return self

    def is_empty(self) -> bool:
        return not self.items

    def on_first_page(self) -> bool:
        raise NotImplementedError

    def on_last_page(self) -> bool:
        raise NotImplementedError

    def _url_with(self, name: str, value: Optional[Any]) -> str:
        pairs = [(k, v) for k, v in self.query_items if k != name]
        if value is not None:
            pairs.append((name, str(value)))
        return f"{self.path}?{urlencode(pairs)}" if pairs else self.path

    def url(self, page: Optional[int]) -> str:
        return self._url_with(self.page_name, None if page is None else max(page, 1))

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


class LengthAwarePaginator(Paginator):
    """Page-number pagination with a total count and a links window."""

    on_each_side = 3

    def __init__(self, items: List[Any], total: int, per_page: int, current_page: int = 1, **kwargs: Any) -> None:
        super().__init__(items, per_page, **kwargs)
        self.total = total
        self.current_page = max(current_page, 1)
        self.last_page = max(int(ceil(total / per_page)), 1) if per_page else 1

    @classmethod
    def paginate(cls, query: TableQuery, per_page: int, page: int, **kwargs: Any) -> "LengthAwarePaginator":
        total = query.count()
        items: List[Any] = []
        if total:
            stmt = query.statement().offset((page - 1) * per_page).limit(per_page)
            items = list(query.execute(stmt).scalars().all())
        return cls(items, total, per_page, page, **kwargs)

    def on_first_page(self) -> bool:
        return self.current_page <= 1

    def on_last_page(self) -> bool:
        return self.current_page >= self.last_page

    def has_more_pages(self) -> bool:
        return self.current_page < self.last_page

    def first_item(self) -> Optional[int]:
        return (self.current_page - 1) * self.per_page + 1 if self.items else None

    def last_item(self) -> Optional[int]:
        first = self.first_item()
        return None if first is None else first + len(self.items) - 1

    def next_page_url(self) -> Optional[str]:
        return self.url(self.current_page + 1) if self.has_more_pages() else None

    def previous_page_url(self) -> Optional[str]:
        return self.url(self.current_page - 1) if self.current_page > 1 else None

    def _window(self) -> List[Any]:
        last, current, side = self.last_page, self.current_page, self.on_each_side
        if last < side * 2 + 8:
            return [list(range(1, last + 1))]

        window = side + 4
        start, finish = [1, 2], [last - 1, last]
        if current <= window:
            return [list(range(1, window + side + 1)), "...", finish]
        if current > last - window:
            return [start, "...", list(range(last - (window + (side - 1)), last + 1))]
        return [start, "...", list(range(current - side, current + side + 1)), "...", finish]

    def links(self) -> List[Dict[str, Any]]:
        links = [{"url": self.previous_page_url(), "label": "&laquo; Previous", "active": False}]
        for element in self._window():
            if element == "...":
                links.append({"url": None, "label": "...", "active": False})
                continue
            for page in element:
                links.append({"url": self.url(page), "label": str(page), "active": page == self.current_page})
        links.append({"url": self.next_page_url(), "label": "Next &raquo;", "active": False})
        return links

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_page": self.current_page,
            "data": self.items,
            "first_page_url": self.url(1),
            "from": self.first_item(),
            "last_page": self.last_page,
            "last_page_url": self.url(self.last_page),
            "links": self.links(),
            "next_page_url": self.next_page_url(),
            "path": self.path,
            "per_page": self.per_page,
            "prev_page_url": self.previous_page_url(),
            "to": self.last_item(),
            "total": self.total,
        }


class SimplePaginator(Paginator):
    """Next/previous pagination without a count query."""

    def __init__(self, items: List[Any], per_page: int, current_page: int = 1, has_more: bool = False, **kwargs: Any) -> None:
        super().__init__(items, per_page, **kwargs)
        self.current_page = max(current_page, 1)
        self.has_more = has_more

    @classmethod
    def paginate(cls, query: TableQuery, per_page: int, page: int, **kwargs: Any) -> "SimplePaginator":
        stmt = query.statement().offset((page - 1) * per_page).limit(per_page + 1)
        rows = list(query.execute(stmt).scalars().all())
        return cls(rows[:per_page], per_page, page, has_more=len(rows) > per_page, **kwargs)

    def on_first_page(self) -> bool:
        return self.current_page <= 1

    def on_last_page(self) -> bool:
        return not self.has_more

    def to_dict(self) -> Dict[str, Any]:
        first = (self.current_page - 1) * self.per_page + 1 if self.items else None
        return {
            "current_page": self.current_page,
            "data": self.items,
            "first_page_url": self.url(1),
            "from": first,
            "next_page_url": self.url(self.current_page + 1) if self.has_more else None,
            "path": self.path,
            "per_page": self.per_page,
            "prev_page_url": self.url(self.current_page - 1) if self.current_page > 1 else None,
            "to": None if first is None else first + len(self.items) - 1,
        }


# ----------------------------
# Cursor pagination
# ----------------------------
class Cursor:
    """Keyset position: the ordered column values of one row plus a direction."""

    def __init__(self, parameters: Dict[str, Any], points_to_next_items: bool = True) -> None:
        self.parameters = parameters
        self.points_to_next_items = points_to_next_items

    def points_to_previous_items(self) -> bool:
        return not self.points_to_next_items

    def encode(self) -> str:
        payload = {k: to_jsonable(v) for k, v in self.parameters.items()}
        payload["_pointsToNextItems"] = self.points_to_next_items
        raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    @classmethod
    def decode(cls, token: Optional[str]) -> Optional["Cursor"]:
        if not token:
            return None
        try:
            raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                return None
            points = bool(payload.pop("_pointsToNextItems", True))
            parameters = {k: from_jsonable(v) for k, v in payload.items()}
        except (binascii.Error, TypeError, ValueError, ArithmeticError, InvalidState):
            log.warning("Ignoring malformed cursor")
            return None
        return cls(parameters, points)

    def covers(self, keys: Sequence[Tuple[Any, bool]]) -> bool:
        """Every keyset column has a scalar position."""
        return all(
            column.key in self.parameters and not isinstance(self.parameters[column.key], (dict, list))
            for column, _ in keys
        )


def _keyset_columns(query: TableQuery) -> List[Tuple[Any, bool]]:
    """(column, descending) pairs of the query's orderings, primary key last."""
    pk = query.primary_key
    own_tables = inspect(query.model).tables
    keys: List[Tuple[Any, bool]] = []
    for ordering in query.orderings:
        element = getattr(ordering, "element", None)
        key = getattr(element, "key", None)
        table = getattr(element, "table", None)
        if key is None or table is None or table not in own_tables or getattr(query.model, key, None) is None:
            raise ConfigurationError(
                "Cursor pagination needs orderings on the resource's own columns."
            )
        keys.append((getattr(query.model, key), ordering.modifier is operators.desc_op))
    if not any(column.key == pk.key for column, _ in keys):
        keys.append((pk, False))
    return keys


def _keyset_criterion(keys: Sequence[Tuple[Any, bool]], cursor: Cursor):
    clauses = []
    for index, (column, descending) in enumerate(keys):
        forward = descending if cursor.points_to_previous_items() else not descending
        value = cursor.parameters.get(column.key)
        equal = [prior == cursor.parameters.get(prior.key) for prior, _ in keys[:index]]
        step = column > value if forward else column < value
        clauses.append(and_(*equal, step) if equal else step)
    return or_(*clauses)


class CursorPaginator(Paginator):
    def __init__(
        self,
        items: List[Any],
        per_page: int,
        cursor: Optional[Cursor] = None,
        has_more: bool = False,
        keys: Sequence[Tuple[Any, bool]] = (),
        cursor_name: str = "cursor",
        **kwargs: Any,
    ) -> None:
        super().__init__(items, per_page, page_name=cursor_name, **kwargs)
        self.cursor = cursor
        self.has_more = has_more
        self.keys = list(keys)
        self._raw_items = list(items)

    @classmethod
    def paginate(
        cls,
        query: TableQuery,
        per_page: int,
        cursor: Optional[str] = None,
        cursor_name: str = "cursor",
        **kwargs: Any,
    ) -> "CursorPaginator":
        keys = _keyset_columns(query)
        position = Cursor.decode(cursor)
        if position is not None and not position.covers(keys):
            log.warning("Ignoring cursor that does not match the ordering")
            position = None
        backwards = position is not None and position.points_to_previous_items()

        stmt = query.statement(ordered=False)
        if position is not None:
            stmt = stmt.where(_keyset_criterion(keys, position))
        orderings = [
            column.asc() if descending == backwards else column.desc() for column, descending in keys
        ]
        rows = list(query.execute(stmt.order_by(*orderings).limit(per_page + 1)).scalars().all())

        has_more = len(rows) > per_page
        rows = rows[:per_page]
        if backwards:
            rows.reverse()
        return cls(rows, per_page, position, has_more, keys, cursor_name, **kwargs)

    def _cursor_for(self, item: Any, points_to_next_items: bool) -> Cursor:
        return Cursor({column.key: getattr(item, column.key) for column, _ in self.keys}, points_to_next_items)

    def has_more_pages(self) -> bool:
        if self.cursor is None:
            return self.has_more
        if self.cursor.points_to_next_items:
            return self.has_more
        return True

    def next_cursor(self) -> Optional[Cursor]:
        if not self._raw_items or not self.has_more_pages():
            return None
        return self._cursor_for(self._raw_items[-1], True)

    def previous_cursor(self) -> Optional[Cursor]:
        if self.on_first_page() or not self._raw_items:
            return None
        return self._cursor_for(self._raw_items[0], False)

    def on_first_page(self) -> bool:
        if self.cursor is None:
            return True
        return self.cursor.points_to_previous_items() and not self.has_more

    def on_last_page(self) -> bool:
        return not self.has_more_pages()

    def cursor_url(self, cursor: Optional[Cursor]) -> str:
        return self._url_with(self.page_name, None if cursor is None else cursor.encode())

    def to_dict(self) -> Dict[str, Any]:
        next_cursor, prev_cursor = self.next_cursor(), self.previous_cursor()
        return {
            "data": self.items,
            "path": self.path,
            "per_page": self.per_page,
            "next_cursor": next_cursor.encode() if next_cursor else None,
            "next_page_url": self.cursor_url(next_cursor) if next_cursor else None,
            "prev_cursor": prev_cursor.encode() if prev_cursor else None,
            "prev_page_url": self.cursor_url(prev_cursor) if prev_cursor else None,
        }
