# File: /tablekit/crud/table_view.py | Version: 1.0 | Title: CRUD helpers for saved table views
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Type

from sqlalchemy.orm import Query, Session

from tablekit.models.table_view import TableView


def scoped_views(
    db: Session,
    table_class: str,
    attributes: Optional[Mapping[str, Any]] = None,
    user_id: Any = None,
    scope_user: bool = True,
    table_name: Optional[str] = None,
    scope_table_name: bool = False,
    state_payload: Optional[str] = None,
    scope_state: bool = False,
    model: Type[TableView] = TableView,
) -> Query:
    q = db.query(model).filter(model.table_class == table_class)
    for key, value in (attributes or {}).items():
        q = q.filter(getattr(model, key) == value)
    if scope_user:
        q = q.filter(model.user_id.is_(None) if user_id is None else model.user_id == str(user_id))
    if scope_table_name:
        q = q.filter(model.table_name == table_name)
    if scope_state:
        q = q.filter(
            model.state_payload.is_(None) if state_payload is None else model.state_payload == state_payload
        )
    return q


def list_views(q: Query, model: Type[TableView] = TableView) -> List[TableView]:
    return q.order_by(model.title.asc(), model.id.asc()).all()


def upsert_view(
    db: Session,
    identity: Dict[str, Any],
    request_payload: Dict[str, Any],
    model: Type[TableView] = TableView,
) -> TableView:
    """Update the view matching every ``identity`` column, or create it."""
    q = db.query(model)
    for key, value in identity.items():
        column = getattr(model, key)
        q = q.filter(column.is_(None) if value is None else column == value)

    v = q.first()
    if v is None:
        v = model(**identity, request_payload=request_payload)
        db.add(v)
    else:
        v.request_payload = request_payload
    db.commit()
    db.refresh(v)
    return v


def delete_views(db: Session, q: Query, key: Any, model: Type[TableView] = TableView) -> int:
    deleted = q.filter(model.id == key).delete(synchronize_session=False)
    db.commit()
    return deleted
