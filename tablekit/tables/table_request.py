# File: /tablekit/tables/table_request.py | Version: 1.0 | Title: Normalized table state read from the query string
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from tablekit.tables.enums import SortDirection
from tablekit.tables.filters.request import FilterRequest
from tablekit.tables.helpers import data_get, is_blank
from tablekit.tables.state import RequestSnapshot

if TYPE_CHECKING:
    from tablekit.tables.columns.base import Column
    from tablekit.tables.table import Table


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        return list(value.values())
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class TableRequest:
    """
    Reads the slice of the query string that belongs to one table.

    Tables other than ``default`` namespace their parameters under their name,
    e.g. ``users[filters][name][value]=jo``.
    """

    def __init__(self, table: "Table", snapshot: Optional[RequestSnapshot] = None) -> None:
        self.table = table
        self.snapshot = snapshot or RequestSnapshot()
        data = self.snapshot.query_data()
        name = table.get_name()
        if name == "default":
            self.query_data: Dict[str, Any] = data
        else:
            scoped = data.get(name)
            self.query_data = scoped if isinstance(scoped, dict) else {}

    @classmethod
    def for_query_params(cls, table: "Table", params: Mapping[str, Any]) -> "TableRequest":
        return cls(table, RequestSnapshot.from_query_data(params))

    def query(self, key: str, default: Any = None) -> Any:
        return data_get(self.query_data, key, default)

    def get_query_data_for_exports(self) -> Dict[str, Any]:
        data = {k: self.query_data[k] for k in ("filters", "search", "sort") if k in self.query_data}
        name = self.table.get_name()
        return data if name == "default" else {name: data}

    # ----------------------------
    # Columns
    # ----------------------------
    def columns(self) -> Dict[str, bool]:
        state = [str(v) for v in _as_list(self.query("columns"))]
        visibility: Dict[str, bool] = {}
        for column in self.table.build_columns():
            if not column.toggleable:
                visibility[column.attribute] = True
            elif not state:
                visibility[column.attribute] = column.is_visible()
            else:
                visibility[column.attribute] = column.attribute in state
        return visibility

    def sticky_columns(self) -> List[str]:
        state = [str(v) for v in _as_list(self.query("sticky"))]
        return [
            column.attribute
            for column in self.table.build_columns()
            if column.is_stickable() and column.attribute in state
        ]

    # ----------------------------
    # Filters
    # ----------------------------
    def filters(self) -> Dict[str, FilterRequest]:
        data = self.query("filters")
        data = data if isinstance(data, Mapping) else {}
        return {
            f.attribute: FilterRequest.make(f, data.get(f.attribute))
            for f in self.table.build_filters()
        }

    # ----------------------------
    # Pagination
    # ----------------------------
    def per_page(self) -> int:
        per_page = _as_int(self.query("perPage"))
        if per_page in self.table.get_per_page_options():
            return per_page
        return self.table.get_default_per_page()

    def page(self) -> int:
        return max(1, _as_int(self.query("page", 1), 1))

    def cursor(self) -> Optional[str]:
        cursor = self.query("cursor")
        return None if is_blank(cursor) else str(cursor)

    def cursor_name(self) -> str:
        name = self.table.get_name()
        return "cursor" if name == "default" else f"{name}[cursor]"

    def page_name(self) -> str:
        name = self.table.get_name()
        return "page" if name == "default" else f"{name}[page]"

    # ----------------------------
    # Search & sort
    # ----------------------------
    def search(self) -> Optional[str]:
        search = self.query("search")
        return None if is_blank(search) or not isinstance(search, str) else search

    def sort(self) -> Optional[str]:
        sort = self.query("sort")
        if is_blank(sort) or not isinstance(sort, str):
            return self.table.get_default_sort()
        column = self.table.get_column_by_attribute(sort.lstrip("-"))
        return sort if column is not None and column.sortable else None

    def sort_direction(self) -> Optional[SortDirection]:
        sort = self.sort()
        if sort is None:
            return None
        return SortDirection.desc if sort.startswith("-") else SortDirection.asc

    def sorted_column(self) -> Optional["Column"]:
        sort = self.sort()
        if sort is None:
            return None
        return self.table.get_column_by_attribute(sort.lstrip("-"))

    # ----------------------------
    # Selection
    # ----------------------------
    def selected_keys(self) -> List[Any]:
        keys = self.snapshot.body.get("keys")
        if keys is None:
            raw = self.snapshot.query_data().get("keys")
            if isinstance(raw, str):
                return [key for key in raw.split(",") if key != ""]
            keys = raw
        return _as_list(keys)

    # ----------------------------
    # State
    # ----------------------------
    def in_default_state(self) -> bool:
        if self.cursor() is not None or self.page() != 1 or self.search() is not None:
            return False
        return all(
            request.value == request.filter.default_value for request in self.filters().values()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": self.columns(),
            "filters": {attribute: request.to_dict() for attribute, request in self.filters().items()},
            "perPage": self.per_page(),
            "search": self.search(),
            "sort": self.sort(),
            "sticky": self.sticky_columns(),
        }

    def get_query_params_for_view(self) -> Dict[str, Any]:
        params = {
            "columns": [a for a, visible in self.columns().items() if visible] if self.query("columns") else None,
            "cursor": self.cursor(),
            "filters": {
                attribute: {"clause": request.clause.value, "value": request.value}
                for attribute, request in self.filters().items()
                if request.enabled
            },
            "perPage": self.per_page(),
            "search": self.search(),
            "sort": self.sort(),
            "sticky": self.sticky_columns(),
        }
        return {k: v for k, v in params.items() if not is_blank(v)}
