# File: /tablekit/tables/query_builder.py | Version: 1.0 | Title: Applies search, filters, eager loading, sort and pagination
from __future__ import annotations

import csv
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from tablekit.tables.columns.action import ActionColumn
from tablekit.tables.enums import PaginationType, SortDirection
from tablekit.tables.filters.clause import Clause
from tablekit.tables.helpers import format_data_attributes, is_blank
from tablekit.tables.pagination import (
    CursorPaginator,
    LengthAwarePaginator,
    Paginator,
    SimplePaginator,
)
from tablekit.tables.query import TableQuery, is_related_through_another_connection
from tablekit.tables.relation_connection import RelationOnAnotherConnection
from tablekit.tables.table_request import TableRequest
from tablekit.tables.url import Url

if TYPE_CHECKING:
    from tablekit.tables.columns.base import Column
    from tablekit.tables.table import Table

log = logging.getLogger(__name__)

SearchCallback = Callable[[TableQuery, str, List[str]], Any]


def parse_terms(terms: str) -> List[str]:
    """Space separated terms; double quotes keep a phrase together."""
    row = next(csv.reader([terms], delimiter=" ", quotechar='"'), [])
    return [term for term in row if term is not None and term.strip() != ""]


def _like_applier(query: TableQuery, column: str, clause: Clause, value: Any) -> None:
    query.where(query.like(query.column(column), value))


def _sort_key(value: Any):
    return (value is None, value)


class QueryBuilder:
    def __init__(
        self,
        table: "Table",
        table_request: Optional[TableRequest] = None,
        search_using: Optional[SearchCallback] = None,
    ) -> None:
        self.table = table
        self.table_request = table_request or table.get_table_request()
        self._search_using = search_using

    @classmethod
    def from_table(cls, table: "Table") -> "QueryBuilder":
        return cls(table, table.get_table_request())

    def search_using(self, callback: SearchCallback) -> "QueryBuilder":
        self._search_using = callback
        return self

    def has_custom_search(self) -> bool:
        return self._search_using is not None

    def get_resource(self) -> TableQuery:
        return self.table.resource_query()

    # ----------------------------
    # Search
    # ----------------------------
    def apply_search(self, query: TableQuery) -> None:
        search = self.table_request.search()
        terms = [] if is_blank(search) else parse_terms(search)

        if self._search_using is not None:
            self._search_using(query, search or "", terms)
            return

        columns = [c for c in self.table.search() if c]
        if not terms or not columns:
            return

        for term in terms:
            pattern = f"%{term}%"
            query.where_group(lambda group, pattern=pattern: self._search_term(group, columns, pattern))

    def _search_term(self, group: TableQuery, columns: List[str], pattern: str) -> None:
        for column in columns:
            if "." not in column:
                group.or_where(group.like(group.column(column), pattern))
                continue

            relation, _, attribute = column.rpartition(".")
            if not is_related_through_another_connection(group.model, relation):
                group.or_where_has(
                    relation,
                    lambda related, attribute=attribute: related.where(
                        related.like(related.column(attribute), pattern)
                    ),
                )
                continue

            group.or_where_group(
                lambda nested, column=column: RelationOnAnotherConnection.make(
                    group, column, _like_applier, Clause.contains, pattern
                ).apply(nested)
            )

    # ----------------------------
    # Filters
    # ----------------------------
    def apply_filter(self, query: TableQuery) -> None:
        enabled = [r for r in self.table_request.filters().values() if r.enabled]
        if not enabled:
            return

        unwrapped = [r for r in enabled if r.filter.should_be_applied_unwrapped()]
        wrapped = [r for r in enabled if not r.filter.should_be_applied_unwrapped()]

        for request in unwrapped:
            request.apply(query)

        def apply_wrapped(group: TableQuery) -> None:
            for request in wrapped:
                request.apply(group)

        query.where_group(apply_wrapped)

    # ----------------------------
    # Eager loading & sorting
    # ----------------------------
    def apply_eager_loading(self, query: TableQuery) -> None:
        loaded = set()
        for column in self.table.build_columns():
            if column.is_nested and column.relationship_name not in loaded:
                query.with_(column.relationship_name)
                loaded.add(column.relationship_name)

    def apply_sort(self, query: TableQuery) -> None:
        column = self.table_request.sorted_column()
        if column is None:
            return
        column.apply_sort(query, self.table_request.sort_direction() or SortDirection.asc)

    def get_resource_with_request_applied(self, apply_sort: bool = True) -> TableQuery:
        query = self.get_resource()
        self.apply_search(query)
        self.apply_filter(query)
        self.apply_eager_loading(query)
        if apply_sort:
            self.apply_sort(query)
        return query

    # ----------------------------
    # Pagination
    # ----------------------------
    def resolve_paginator(self) -> Paginator:
        query = self.get_resource_with_request_applied()
        snapshot = self.table_request.snapshot
        common = {"path": snapshot.path, "query_items": snapshot.query}
        pagination_type = self.table.get_pagination_type()

        if pagination_type is PaginationType.cursor:
            return CursorPaginator.paginate(
                query,
                per_page=self.table_request.per_page(),
                cursor=self.table_request.cursor(),
                cursor_name=self.table_request.cursor_name(),
                **common,
            )
        if pagination_type is PaginationType.simple:
            return SimplePaginator.paginate(
                query,
                per_page=self.table_request.per_page(),
                page=self.table_request.page(),
                page_name=self.table_request.page_name(),
                **common,
            )
        if pagination_type is PaginationType.full:
            return LengthAwarePaginator.paginate(
                query,
                per_page=self.table_request.per_page(),
                page=self.table_request.page(),
                page_name=self.table_request.page_name(),
                **common,
            )

        results = query.get()
        return LengthAwarePaginator(results, len(results), len(results) or 1, 1, **common)

    # ----------------------------
    # Rows
    # ----------------------------
    def _column_value(self, column: "Column", model: Any, sorted_column: Optional["Column"]) -> Any:
        value = column.get_data_from_item(model)
        # Eager loads cannot be ordered, so sorted child collections are ordered here
        if isinstance(value, list) and sorted_column is not None and column.is_(sorted_column):
            descending = self.table_request.sort_direction() is SortDirection.desc
            value = sorted(value, key=_sort_key, reverse=descending)
        return column.map_for_table(value, self.table, model)

    def _action_urls(self, model: Any) -> List[Any]:
        urls: List[Any] = []
        for action in self.table.build_actions():
            url = action.resolve_url(model)
            hidden = action.is_hidden(model)
            disabled = action.is_disabled(model)
            if not hidden and not disabled:
                urls.append(url)
                continue
            payload = dict(url) if isinstance(url, dict) else {"url": url}
            payload.update({"disabled": disabled, "hidden": hidden})
            urls.append(payload)
        return urls

    def transform_model(self, model: Any) -> Dict[str, Any]:
        columns = self.table.build_columns()
        sorted_column = self.table_request.sorted_column()

        images = {c.attribute: c.resolve_image(model) for c in columns if c.has_image()}
        images = {k: v for k, v in images.items() if not is_blank(v)}
        urls = {c.attribute: c.resolve_url(model) for c in columns if c.has_url()}
        urls = {k: v for k, v in urls.items() if not is_blank(v)}

        selectable_exports = self.table.has_exports_that_limit_to_selected_rows()

        data: Dict[str, Any] = {}
        if images:
            data["_column_images"] = images
        if urls:
            data["_column_urls"] = urls
        if self.table.has_bulk_actions() or selectable_exports:
            data["_is_selectable"] = self.table.is_selectable(model)
        if self.table.has_actions() or selectable_exports:
            data["_primary_key"] = self.table.get_primary_key(model)

        for column in columns:
            if isinstance(column, ActionColumn):
                data[column.attribute] = self._action_urls(model)
            else:
                data[column.attribute] = self._column_value(column, model, sorted_column)

        transformed = self.table.transform_model(model, data)

        data_attributes = self.table.data_attributes_for_model(model, transformed)
        if not is_blank(data_attributes):
            transformed["_data_attributes"] = format_data_attributes(data_attributes)

        row_url = Url.resolve(model, self.table.row_url)
        if not is_blank(row_url):
            transformed["_row_url"] = row_url

        return transformed

    def get(self) -> Paginator:
        paginator = self.resolve_paginator()
        log.debug("%s resolved %d rows", type(self.table).__name__, len(paginator.items))
        return paginator.through(self.transform_model)
