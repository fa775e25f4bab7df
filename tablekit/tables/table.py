# File: /tablekit/tables/table.py | Version: 1.0 | Title: Table base class (declaration, state round-trip, client payload)
"""
Subclass ``Table``, point ``resource`` at a mapped model and return columns,
filters, actions and exports from the matching hooks::

    class UsersTable(Table):
        resource = User
        default_sort = "name"

        def columns(self):
            return [TextColumn("name", sortable=True, searchable=True)]

Constructor parameters listed in ``remember`` are stored on the instance under
the same name and travel, encrypted, inside every signed action/export/view
URL so the table can be rebuilt by the route handlers.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session
from starlette.requests import Request

from tablekit.core.config import settings
from tablekit.security import sign_path
from tablekit.tables.action import Action
from tablekit.tables.columns.base import Column
from tablekit.tables.config import TableConfig, get_table_config
from tablekit.tables.empty_state import EmptyState
from tablekit.tables.enums import PaginationType, ScrollPosition, TableComponent
from tablekit.tables.exceptions import MissingResource
from tablekit.tables.export import Export
from tablekit.tables.filters.base import Filter
from tablekit.tables.helpers import slugify
from tablekit.tables.pagination import Paginator
from tablekit.tables.query import TableQuery
from tablekit.tables.query_builder import QueryBuilder
from tablekit.tables.state import (
    RequestSnapshot,
    decrypt_state,
    encode_table_class,
    encrypt_state,
    register_table,
    serialize_state,
)
from tablekit.tables.table_request import TableRequest
from tablekit.tables.url import Url
from tablekit.tables.views import Views

log = logging.getLogger(__name__)

SIGNATURE_IGNORED_FOR_EXPORTS = ("keys",)


class Table:
    # --- Declaration ---
    resource: Any = None
    remember: Tuple[str, ...] = ()
    anonymous: bool = False
    name: str = "default"
    default_sort: Optional[str] = None
    search_attributes: Sequence[str] = ()
    config: Optional[TableConfig] = None

    # --- Overrides of TableConfig defaults (None = use config) ---
    pagination: Optional[bool] = None
    pagination_type: Optional[PaginationType] = None
    per_page_options: Optional[List[int]] = None
    debounce_time: Optional[int] = None
    scroll_position: Optional[ScrollPosition] = None
    autofocus: Optional[TableComponent] = None
    sticky_header: Optional[bool] = None
    reload_props: Sequence[str] = ()

    # --- Per-request state ---
    _session: Optional[Session] = None
    _owns_session: bool = False
    _snapshot: Optional[RequestSnapshot] = None
    _user_key: Any = None
    _cached_columns: Optional[List[Column]] = None
    _cached_filters: Optional[List[Filter]] = None
    _cached_actions: Optional[List[Action]] = None
    _cached_exports: Optional[List[Export]] = None
    _encrypted_state_cache: Optional[str] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        register_table(cls)

    def __init__(self, session: Optional[Session] = None) -> None:
        if session is not None:
            self.set_session(session)

    # ----------------------------
    # Resource / session / request
    # ----------------------------
    def get_session(self) -> Session:
        if self._session is None:
            from tablekit.db.session import SessionLocal

            self._session = SessionLocal()
            self._owns_session = True
        return self._session

    def set_session(self, session: Session) -> "Table":
        self._session = session
        self._owns_session = False
        return self

    def close(self) -> None:
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    def resource_query(self) -> TableQuery:
        """Override to start from a narrower query (base wheres, joins)."""
        if self.resource is None:
            raise MissingResource()
        return TableQuery(self.resource, self.get_session())

    def set_request(self, request: Union[RequestSnapshot, Request]) -> "Table":
        self._snapshot = request if isinstance(request, RequestSnapshot) else RequestSnapshot.from_request(request)
        return self

    def get_table_request(self) -> TableRequest:
        return TableRequest(self, self._snapshot)

    def set_user(self, user_key: Any) -> "Table":
        self._user_key = user_key
        return self

    def get_user_key(self) -> Any:
        return self._user_key

    def get_name(self) -> str:
        return self.name

    def as_(self, name: str) -> "Table":
        self.name = slugify(name)
        return self

    def get_config(self) -> TableConfig:
        return self.config or get_table_config()

    # ----------------------------
    # Settings
    # ----------------------------
    def get_default_sort(self) -> Optional[str]:
        return self.default_sort

    def should_paginate(self) -> bool:
        return self.get_config().pagination if self.pagination is None else self.pagination

    def get_pagination_type(self) -> Optional[PaginationType]:
        if not self.should_paginate():
            return None
        return self.pagination_type or self.get_config().pagination_type

    def cursor_pagination(self) -> "Table":
        self.pagination, self.pagination_type = True, PaginationType.cursor
        return self

    def simple_pagination(self) -> "Table":
        self.pagination, self.pagination_type = True, PaginationType.simple
        return self

    def without_pagination(self) -> "Table":
        self.pagination = False
        return self

    def get_per_page_options(self) -> List[int]:
        options = self.per_page_options if self.per_page_options is not None else self.get_config().per_page_options
        for option in options:
            if not isinstance(option, int) or isinstance(option, bool):
                raise TypeError("The per page options must be a list of integers.")
        return list(options)

    def get_default_per_page(self) -> int:
        return self.get_per_page_options()[0]

    def get_debounce_time(self) -> int:
        return self.get_config().debounce_time if self.debounce_time is None else self.debounce_time

    def get_scroll_position(self) -> ScrollPosition:
        return self.scroll_position or self.get_config().scroll_position

    def get_autofocus(self) -> Optional[TableComponent]:
        return self.autofocus or self.get_config().autofocus

    def get_sticky_header(self) -> bool:
        return self.get_config().sticky_header if self.sticky_header is None else self.sticky_header

    def set_reload_props(self, props: Union[str, Sequence[str]]) -> "Table":
        self.reload_props = [props] if isinstance(props, str) else list(props)
        return self

    def reload_all_props(self) -> "Table":
        return self.set_reload_props("*")

    def get_reload_props(self) -> List[str]:
        if self.reload_props:
            return list(self.reload_props)
        return ["*"] if self.get_config().always_reload_all_props else []

    # ----------------------------
    # Declaration hooks
    # ----------------------------
    def columns(self) -> List[Column]:
        return []

    def filters(self) -> List[Filter]:
        return []

    def actions(self) -> List[Action]:
        return []

    def exports(self) -> List[Export]:
        return []

    def empty_state(self) -> Optional[EmptyState]:
        return None

    def views(self) -> Optional[Views]:
        return Views() if self.get_config().views_enabled else None

    # ----------------------------
    # Built (bound, memoized) declarations
    # ----------------------------
    def build_columns(self) -> List[Column]:
        if self._cached_columns is None:
            self._cached_columns = [column.set_table(self) for column in self.columns()]
        return self._cached_columns

    def build_filters(self) -> List[Filter]:
        if self._cached_filters is None:
            self._cached_filters = [f.set_table(self) for f in self.filters()]
        return self._cached_filters

    def build_actions(self) -> List[Action]:
        if self._cached_actions is None:
            self._cached_actions = [a.set_index(i).set_table(self) for i, a in enumerate(self.actions())]
        return self._cached_actions

    def build_exports(self) -> List[Export]:
        if self._cached_exports is None:
            self._cached_exports = [e.set_index(i).set_table(self) for i, e in enumerate(self.exports())]
        return self._cached_exports

    def build_views(self) -> Optional[Views]:
        views = self.views()
        return None if views is None else views.set_table(self)

    def get_column_by_attribute(self, attribute: str) -> Optional[Column]:
        return next((c for c in self.build_columns() if c.attribute == attribute), None)

    def get_action_by_id(self, index: int) -> Optional[Action]:
        actions = self.build_actions()
        return actions[index] if 0 <= index < len(actions) else None

    def get_export_by_id(self, index: int) -> Optional[Export]:
        exports = self.build_exports()
        return exports[index] if 0 <= index < len(exports) else None

    def has_actions(self) -> bool:
        return bool(self.build_actions())

    def has_bulk_actions(self) -> bool:
        return any(action.is_bulk_actionable() for action in self.build_actions())

    def has_exports_that_limit_to_selected_rows(self) -> bool:
        return any(export.limits_to_selected_rows for export in self.build_exports())

    # ----------------------------
    # Rows
    # ----------------------------
    def search(self) -> List[str]:
        attributes = [c.attribute for c in self.build_columns() if c.searchable]
        attributes.extend([self.search_attributes] if isinstance(self.search_attributes, str) else self.search_attributes)
        return list(dict.fromkeys(attributes))

    def get_primary_key(self, model: Any) -> Any:
        key = sa_inspect(type(model)).primary_key_from_instance(model)
        return key[0] if len(key) == 1 else list(key)

    def scope_primary_key(self, query: TableQuery, keys: Sequence[Any]) -> None:
        keys = list(keys)
        if not keys or keys == ["*"]:
            return
        pk = query.primary_key
        try:
            python_type = pk.type.python_type
        except NotImplementedError:
            python_type = None
        if python_type is not None:
            keys = [_coerce(key, python_type) for key in keys]
        query.where_in(pk, keys)

    def transform_model(self, model: Any, data: Dict[str, Any]) -> Dict[str, Any]:
        return data

    def data_attributes_for_model(self, model: Any, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return None

    def row_url(self, model: Any, url: Url) -> Union[Url, str, None]:
        return None

    def is_selectable(self, model: Any) -> bool:
        return True

    # ----------------------------
    # Querying
    # ----------------------------
    def with_query_builder(self, query_builder: QueryBuilder) -> Optional[QueryBuilder]:
        """Hook to customize the query builder (e.g. ``search_using``)."""
        return None

    def query_builder(self) -> QueryBuilder:
        query_builder = QueryBuilder(self, self.get_table_request())
        return self.with_query_builder(query_builder) or query_builder

    def query_with_request_applied(self, apply_sort: bool = True) -> TableQuery:
        return self.query_builder().get_resource_with_request_applied(apply_sort)

    def resolve_empty_state(self, paginator: Paginator, table_request: TableRequest) -> Union[bool, Dict[str, Any]]:
        if not paginator.is_empty() or not paginator.on_first_page() or not table_request.in_default_state():
            return False
        empty_state = self.empty_state()
        return True if empty_state is None else empty_state.to_dict()

    # ----------------------------
    # Remembered state
    # ----------------------------
    def remembered_state(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.remember}

    def get_serialized_state(self) -> Optional[str]:
        return serialize_state(self.remembered_state())

    def get_encrypted_state(self) -> str:
        if self._encrypted_state_cache is None:
            self._encrypted_state_cache = encrypt_state(self.get_serialized_state())
        return self._encrypted_state_cache

    def flush_state_cache(self) -> None:
        self._encrypted_state_cache = None

    def flush_caches(self) -> None:
        self._cached_columns = None
        self._cached_filters = None
        self._cached_actions = None
        self._cached_exports = None
        self.flush_state_cache()

    @classmethod
    def from_encrypted_state(cls, token: Optional[str], session: Optional[Session] = None) -> "Table":
        params = decrypt_state(token, tuple(cls.remember), session)
        table = cls(**params)
        if session is not None:
            table.set_session(session)
        return table

    # ----------------------------
    # Signed URLs
    # ----------------------------
    def get_encoded_class(self) -> str:
        return encode_table_class(type(self))

    def current_query_items(self) -> List[Tuple[str, str]]:
        return list(self._snapshot.query) if self._snapshot is not None else []

    def signed_url(self, kind: str, index_or_key: Any, params: Optional[List[Tuple[str, str]]] = None) -> str:
        parts = [settings.TABLE_ROUTE_PREFIX.rstrip("/"), self.get_encoded_class(), self.get_name(), kind]
        if index_or_key is not None:
            parts.append(str(index_or_key))
        state = self.get_encrypted_state()
        if state:
            parts.append(state)
        ignore = SIGNATURE_IGNORED_FOR_EXPORTS if kind in ("export", "async-export") else ()
        return sign_path("/".join(parts), params, ignore)

    # ----------------------------
    # Client payload
    # ----------------------------
    def to_dict(self) -> Dict[str, Any]:
        table_request = self.get_table_request()
        query_builder = self.query_builder()
        paginator = query_builder.get()
        results = paginator.to_dict()
        pagination_type = self.get_pagination_type()

        if pagination_type is PaginationType.cursor:
            results["first_page_url"] = paginator.url(None)
        results["on_first_page"] = paginator.on_first_page()
        results["on_last_page"] = paginator.on_last_page()

        search = self.search()
        columns = [column.to_dict() for column in self.build_columns()]
        filters = [f.to_dict() for f in self.build_filters()]
        actions = [action.to_dict() for action in self.build_actions()]
        exports = [export.to_dict() for export in self.build_exports()]
        views = self.build_views()
        autofocus = self.get_autofocus()

        try:
            return {
                "name": self.get_name(),
                "results": results,
                "search": search,
                "columns": columns,
                "filters": filters,
                "actions": actions,
                "exports": exports,
                "state": table_request.to_dict(),
                "pagination": self.should_paginate(),
                "paginationType": pagination_type.value if pagination_type else None,
                "perPageOptions": self.get_per_page_options(),
                "defaultPerPage": self.get_default_per_page(),
                "defaultSort": self.get_default_sort(),
                "debounceTime": self.get_debounce_time(),
                "reloadProps": self.get_reload_props(),
                "hasActions": bool(actions),
                "hasBulkActions": any(action["asBulkAction"] for action in actions),
                "hasExports": bool(exports),
                "hasExportsThatLimitsToSelectedRows": any(e["limitToSelectedRows"] for e in exports),
                "hasFilters": bool(filters),
                "hasSearch": bool(search) or query_builder.has_custom_search(),
                "hasToggleableColumns": any(column["toggleable"] for column in columns),
                "scrollPositionAfterPageChange": self.get_scroll_position().value,
                "autofocus": autofocus.value if autofocus else None,
                "emptyState": self.resolve_empty_state(paginator, table_request),
                "stickyHeader": self.get_sticky_header(),
                "views": views.to_dict() if views is not None else None,
                "inDefaultState": table_request.in_default_state(),
            }
        finally:
            self.flush_caches()

    # ----------------------------
    # Inline tables
    # ----------------------------
    @staticmethod
    def build(
        resource: Any,
        columns: Sequence[Column] = (),
        filters: Sequence[Filter] = (),
        search: Union[str, Sequence[str]] = (),
        name: str = "default",
        pagination: bool = True,
        debounce_time: Optional[int] = None,
        per_page_options: Optional[List[int]] = None,
        default_sort: Optional[str] = None,
        transform_model_using: Optional[Callable[[Any, Dict[str, Any]], Dict[str, Any]]] = None,
        with_query_builder: Optional[Callable[[QueryBuilder], Optional[QueryBuilder]]] = None,
        actions: Sequence[Action] = (),
        empty_state: Optional[EmptyState] = None,
        sticky_header: Optional[bool] = None,
    ) -> "InlineTable":
        """A table declared in place; it renders but cannot serve action/export/view routes."""
        table = InlineTable(
            resource,
            columns,
            filters,
            [search] if isinstance(search, str) else list(search),
            transform_model_using,
            with_query_builder,
            actions,
            empty_state,
        )
        if not pagination:
            table.without_pagination()
        table.default_sort = default_sort
        table.debounce_time = debounce_time
        table.per_page_options = per_page_options
        table.sticky_header = sticky_header
        return table.as_(name)


class InlineTable(Table):
    anonymous = True

    def __init__(
        self,
        resource: Any,
        columns: Sequence[Column] = (),
        filters: Sequence[Filter] = (),
        search: Sequence[str] = (),
        transform_model_using=None,
        with_query_builder_using=None,
        actions: Sequence[Action] = (),
        empty_state: Optional[EmptyState] = None,
    ) -> None:
        super().__init__()
        self.resource = resource
        self._columns = list(columns)
        self._filters = list(filters)
        self.search_attributes = list(search)
        self._transform_model_using = transform_model_using
        self._with_query_builder_using = with_query_builder_using
        self._actions = list(actions)
        self._empty_state = empty_state

    def columns(self) -> List[Column]:
        return self._columns

    def filters(self) -> List[Filter]:
        return self._filters

    def actions(self) -> List[Action]:
        return self._actions

    def empty_state(self) -> Optional[EmptyState]:
        return self._empty_state

    def transform_model(self, model: Any, data: Dict[str, Any]) -> Dict[str, Any]:
        if self._transform_model_using is None:
            return data
        return self._transform_model_using(model, data)

    def with_query_builder(self, query_builder: QueryBuilder) -> Optional[QueryBuilder]:
        if self._with_query_builder_using is None:
            return None
        return self._with_query_builder_using(query_builder)


def _coerce(key: Any, python_type: type) -> Any:
    if isinstance(key, python_type):
        return key
    try:
        return python_type(key)
    except (TypeError, ValueError):
        return key
