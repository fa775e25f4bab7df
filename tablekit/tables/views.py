# File: /tablekit/tables/views.py | Version: 1.0 | Title: Saved views (named snapshots of a table's request state)
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Type, Union

from tablekit.crud import table_view as crud
from tablekit.models.table_view import TableView
from tablekit.tables.state import RequestSnapshot, qualified_name
from tablekit.tables.table_request import TableRequest

if TYPE_CHECKING:
    from sqlalchemy.orm import Query

    from tablekit.tables.table import Table

log = logging.getLogger(__name__)

AttributesResolver = Union[Mapping[str, Any], Callable[["Table"], Mapping[str, Any]], None]
UserResolver = Callable[["Table"], Any]


class Views:
    """
    Saved views for one table.

    Views are scoped to the current user by default; scoping by table name and
    by remembered constructor state is opt-in. ``attributes`` adds extra column
    equality scopes (and is written into every stored view).
    """

    def __init__(
        self,
        attributes: AttributesResolver = None,
        scope_user: Optional[bool] = None,
        scope_table_name: Optional[bool] = None,
        scope_stateful_resources: Optional[bool] = None,
        model: Type[TableView] = TableView,
        user_resolver: Optional[UserResolver] = None,
    ) -> None:
        self.attributes = attributes
        self.scope_user = scope_user
        self.scope_table_name = scope_table_name
        self.scope_stateful_resources = scope_stateful_resources
        self.model = model
        self.user_resolver = user_resolver
        self.table: Optional["Table"] = None

    def set_table(self, table: "Table") -> "Views":
        self.table = table
        return self

    # ----------------------------
    # Scopes
    # ----------------------------
    def get_attributes(self) -> Dict[str, Any]:
        attributes = self.attributes(self.table) if callable(self.attributes) else self.attributes
        return dict(attributes or {})

    def get_user_key(self) -> Any:
        if self.user_resolver is not None:
            return self.user_resolver(self.table)
        return self.table.get_user_key()

    def should_scope_user(self) -> bool:
        if self.scope_user is not None:
            return self.scope_user
        return self.table.get_config().views_scope_user

    def should_scope_table_name(self) -> bool:
        if self.scope_table_name is not None:
            return self.scope_table_name
        return self.table.get_config().views_scope_table_name

    def should_scope_stateful_resources(self) -> bool:
        if self.scope_stateful_resources is not None:
            return self.scope_stateful_resources
        return self.table.get_config().views_scope_stateful_resources

    def scoped_query(self) -> "Query":
        table = self.table
        return crud.scoped_views(
            table.get_session(),
            qualified_name(type(table)),
            attributes=self.get_attributes(),
            user_id=self.get_user_key(),
            scope_user=self.should_scope_user(),
            table_name=table.get_name(),
            scope_table_name=self.should_scope_table_name(),
            state_payload=table.get_serialized_state(),
            scope_state=self.should_scope_stateful_resources(),
            model=self.model,
        )

    # ----------------------------
    # Persistence
    # ----------------------------
    def store(self, table_name: str, title: str, query_params: Mapping[str, Any]) -> TableView:
        """Save ``query_params`` (the page's query string) under ``title``, replacing a view of the same title."""
        table = self.table
        params = TableRequest(table, RequestSnapshot.from_query_data(query_params)).get_query_params_for_view()
        user_key = self.get_user_key()

        identity = {
            "user_id": None if user_key is None else str(user_key),
            "table_class": qualified_name(type(table)),
            "table_name": table_name,
            "title": title,
            "state_payload": table.get_serialized_state(),
            **self.get_attributes(),
        }
        view = crud.upsert_view(table.get_session(), identity, params, model=self.model)
        log.info("Stored view %r for %s", title, identity["table_class"])
        return view

    def delete(self, key: Any) -> None:
        if isinstance(key, str) and key.isdigit():
            key = int(key)
        deleted = crud.delete_views(self.table.get_session(), self.scoped_query(), key, model=self.model)
        log.info("Deleted %d view(s) with key %r", deleted, key)

    # ----------------------------
    # Serialization
    # ----------------------------
    def get_store_url(self) -> str:
        return self.table.signed_url("view", None, [])

    def get_delete_url(self, key: Any) -> str:
        return self.table.signed_url("view", key, [])

    def replay(self, payload: Mapping[str, Any]) -> TableRequest:
        """A stored payload is unscoped; named tables read their params under their name."""
        name = self.table.get_name()
        data = dict(payload) if name == "default" else {name: dict(payload)}
        return TableRequest.for_query_params(self.table, data)

    def get_data(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": view.id,
                "title": view.title,
                "state": self.replay(view.request_payload or {}).to_dict(),
                "deleteUrl": self.get_delete_url(view.id),
            }
            for view in crud.list_views(self.scoped_query(), model=self.model)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.get_data(),
            "query": self.table.get_table_request().get_query_params_for_view(),
            "storeUrl": self.get_store_url(),
        }
