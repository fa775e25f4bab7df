# File: /tablekit/tables/query.py | Version: 1.0 | Title: Mutable query wrapper over SQLAlchemy Select
"""
``TableQuery`` is the query surface filters, columns and actions work against.

It wraps one mapped model and accumulates predicates the way a fluent query
builder does (``where`` / ``or_where`` / grouped wheres / relation existence),
then renders a SQLAlchemy ``Select`` on demand. Relation helpers in this module
resolve dotted relationship paths through the ORM mapper.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import and_, func, inspect, not_, or_, select
from sqlalchemy.orm import RelationshipDirection, Session, selectinload
from sqlalchemy.sql.elements import ColumnElement

from tablekit.models.soft_delete import is_soft_deletable
from tablekit.tables.enums import RelationKind, SortDirection
from tablekit.tables.exceptions import UnresolvableRelation, UnsortableRelation

log = logging.getLogger(__name__)

DEFAULT_CONNECTION = "default"

TRASHED_WITHOUT = "without"
TRASHED_WITH = "with"
TRASHED_ONLY = "only"


# ----------------------------
# Relation helpers
# ----------------------------
def connection_name(model) -> str:
    cls = model if isinstance(model, type) else type(model)
    return getattr(cls, "__connection__", None) or DEFAULT_CONNECTION


def relationship_property(model, name: str):
    try:
        return inspect(model).relationships[name]
    except KeyError:
        raise UnresolvableRelation(model, name) from None


def related_model(model, path: str):
    for name in path.split("."):
        model = relationship_property(model, name).mapper.class_
    return model


def relation_kind(prop) -> Optional[RelationKind]:
    if prop.direction is RelationshipDirection.MANYTOONE:
        return RelationKind.belongs_to
    if prop.direction is RelationshipDirection.ONETOMANY:
        return RelationKind.has_one_or_many
    if prop.direction is RelationshipDirection.MANYTOMANY and prop.secondary is not None:
        return RelationKind.belongs_to_many
    return None


def is_related_through_another_connection(model, path: str) -> bool:
    base = connection_name(model)
    for name in path.split("."):
        model = relationship_property(model, name).mapper.class_
        if connection_name(model) != base:
            return True
    return False


def primary_key_attribute(model):
    mapper = inspect(model)
    return getattr(mapper.class_, mapper.get_property_by_column(mapper.primary_key[0]).key)


def _exists(model, name: str, criterion: Optional[ColumnElement]) -> ColumnElement:
    prop = relationship_property(model, name)
    attr = getattr(model, name)
    if prop.uselist:
        return attr.any(criterion) if criterion is not None else attr.any()
    return attr.has(criterion) if criterion is not None else attr.has()


def relation_count(model, name: str):
    """Correlated ``COUNT(*)`` of related rows for a single-level relation."""
    prop = relationship_property(model, name)
    target = prop.secondary if prop.secondary is not None else prop.mapper.local_table
    return (
        select(func.count())
        .select_from(target)
        .where(prop.primaryjoin)
        .correlate(inspect(model).local_table)
        .scalar_subquery()
    )


class TableQuery:
    def __init__(self, model, session: Optional[Session] = None, statement=None) -> None:
        self.model = model
        self.session = session
        self.base_statement = statement
        self.wheres: List[Tuple[str, ColumnElement]] = []
        self.orderings: List[ColumnElement] = []
        self.joined: List[str] = []
        self.loader_options: List[Any] = []
        self.trashed: Optional[str] = TRASHED_WITHOUT if is_soft_deletable(model) else None
        self.limit_value: Optional[int] = None

    # ----------------------------
    # Introspection
    # ----------------------------
    def scratch(self, model=None) -> "TableQuery":
        """A blank query on the same session, used to collect nested predicates."""
        return TableQuery(model or self.model, self.session)

    def clone(self) -> "TableQuery":
        other = TableQuery(self.model, self.session, self.base_statement)
        other.wheres = list(self.wheres)
        other.orderings = list(self.orderings)
        other.joined = list(self.joined)
        other.loader_options = list(self.loader_options)
        other.trashed = self.trashed
        other.limit_value = self.limit_value
        return other

    def column(self, name: str):
        try:
            return getattr(self.model, name)
        except AttributeError:
            raise AttributeError(f"{self.model.__name__} has no column '{name}'") from None

    @property
    def primary_key(self):
        return primary_key_attribute(self.model)

    def dialect_name(self) -> str:
        if self.session is None:
            return DEFAULT_CONNECTION
        return self.session.get_bind(mapper=inspect(self.model)).dialect.name

    def like(self, column, pattern: str, negate: bool = False) -> ColumnElement:
        if self.dialect_name() == "postgresql":
            return column.not_ilike(pattern) if negate else column.ilike(pattern)
        return column.not_like(pattern) if negate else column.like(pattern)

    # ----------------------------
    # Predicates
    # ----------------------------
    def where(self, *criteria: ColumnElement) -> "TableQuery":
        for criterion in criteria:
            self.wheres.append(("and", criterion))
        return self

    def or_where(self, *criteria: ColumnElement) -> "TableQuery":
        for criterion in criteria:
            self.wheres.append(("or", criterion))
        return self

    def where_group(self, callback: Callable[["TableQuery"], Any], boolean: str = "and") -> "TableQuery":
        nested = self.scratch()
        callback(nested)
        criterion = nested.criterion()
        if criterion is not None:
            self.wheres.append((boolean, criterion))
        return self

    def or_where_group(self, callback: Callable[["TableQuery"], Any]) -> "TableQuery":
        return self.where_group(callback, boolean="or")

    def where_null(self, name: str) -> "TableQuery":
        return self.where(self.column(name).is_(None))

    def where_not_null(self, name: str) -> "TableQuery":
        return self.where(self.column(name).is_not(None))

    def where_in(self, column, values: Sequence[Any]) -> "TableQuery":
        return self.where(column.in_(list(values)))

    def where_not_in(self, column, values: Sequence[Any]) -> "TableQuery":
        return self.where(column.not_in(list(values)))

    def has_expression(self, path: str, callback: Optional[Callable[["TableQuery"], Any]] = None) -> ColumnElement:
        head, _, rest = path.partition(".")
        target = relationship_property(self.model, head).mapper.class_
        if rest:
            inner = self.scratch(target)
            inner.where(inner.has_expression(rest, callback))
            return _exists(self.model, head, inner.criterion(include_trashed_scope=True))
        nested = self.scratch(target)
        if callback is not None:
            callback(nested)
        return _exists(self.model, head, nested.criterion(include_trashed_scope=True))

    def where_has(self, path: str, callback=None) -> "TableQuery":
        return self.where(self.has_expression(path, callback))

    def or_where_has(self, path: str, callback=None) -> "TableQuery":
        return self.or_where(self.has_expression(path, callback))

    def doesnt_have(self, path: str) -> "TableQuery":
        return self.where(not_(self.has_expression(path)))

    # ----------------------------
    # Soft-delete scope
    # ----------------------------
    def with_trashed(self) -> "TableQuery":
        self.trashed = TRASHED_WITH
        return self

    def only_trashed(self) -> "TableQuery":
        self.trashed = TRASHED_ONLY
        return self

    def without_trashed(self) -> "TableQuery":
        self.trashed = TRASHED_WITHOUT
        return self

    def _trashed_criterion(self) -> Optional[ColumnElement]:
        if not is_soft_deletable(self.model) or self.trashed in (None, TRASHED_WITH):
            return None
        if self.trashed == TRASHED_ONLY:
            return self.model.deleted_at.is_not(None)
        return self.model.deleted_at.is_(None)

    def criterion(self, include_trashed_scope: bool = False) -> Optional[ColumnElement]:
        """Fold the accumulated wheres; AND binds tighter than OR."""
        groups: List[List[ColumnElement]] = []
        for boolean, expr in self.wheres:
            if boolean == "or" and groups:
                groups.append([expr])
            elif groups:
                groups[-1].append(expr)
            else:
                groups.append([expr])
        folded = None
        if groups:
            parts = [and_(*group) if len(group) > 1 else group[0] for group in groups]
            folded = or_(*parts) if len(parts) > 1 else parts[0]
        if include_trashed_scope:
            scope = self._trashed_criterion()
            if scope is not None:
                folded = scope if folded is None else and_(folded, scope)
        return folded

    # ----------------------------
    # Ordering / eager loading
    # ----------------------------
    def order_by(self, column, direction=SortDirection.asc) -> "TableQuery":
        if isinstance(column, str):
            column = self.column(column)
        desc = SortDirection(getattr(direction, "value", direction)) is SortDirection.desc
        self.orderings.append(column.desc() if desc else column.asc())
        return self

    def reorder(self) -> "TableQuery":
        self.orderings = []
        return self

    def join_relation(self, path: str):
        """Outer-join a chain of to-one relations and return the final model."""
        model = self.model
        for index, name in enumerate(path.split(".")):
            prop = relationship_property(model, name)
            if prop.uselist:
                raise UnsortableRelation(
                    f"Cannot sort by '{path}': '{name}' is a to-many relation; use sort_using."
                )
            joined = ".".join(path.split(".")[: index + 1])
            if joined not in self.joined:
                self.joined.append(joined)
            model = prop.mapper.class_
        return model

    def with_(self, path: str) -> "TableQuery":
        model = self.model
        option = None
        for name in path.split("."):
            target = relationship_property(model, name).mapper.class_
            attr = getattr(model, name)
            option = selectinload(attr) if option is None else option.selectinload(attr)
            model = target
        self.loader_options.append(option)
        return self

    def limit(self, value: int) -> "TableQuery":
        self.limit_value = value
        return self

    # ----------------------------
    # Rendering / execution
    # ----------------------------
    def statement(self, ordered: bool = True, columns: Optional[Sequence[Any]] = None):
        if columns is not None:
            stmt = select(*columns)
        elif self.base_statement is not None:
            stmt = self.base_statement
        else:
            stmt = select(self.model)

        for path in self.joined:
            stmt = stmt.outerjoin(self._relation_attribute(path))

        criterion = self.criterion(include_trashed_scope=True)
        if criterion is not None:
            stmt = stmt.where(criterion)
        if ordered and self.orderings:
            stmt = stmt.order_by(*self.orderings)
        if columns is None and self.loader_options:
            stmt = stmt.options(*self.loader_options)
        if self.limit_value is not None:
            stmt = stmt.limit(self.limit_value)
        return stmt

    def _relation_attribute(self, path: str):
        model = self.model
        names = path.split(".")
        for name in names[:-1]:
            model = relationship_property(model, name).mapper.class_
        return getattr(model, names[-1])

    def _bind_arguments(self) -> dict:
        return {"mapper": inspect(self.model)}

    def get(self) -> List[Any]:
        return list(self.session.scalars(self.statement(), bind_arguments=self._bind_arguments()).all())

    def first(self) -> Optional[Any]:
        return self.session.scalars(
            self.statement().limit(1), bind_arguments=self._bind_arguments()
        ).first()

    def count(self) -> int:
        sub = self.statement(ordered=False).subquery()
        return int(
            self.session.execute(
                select(func.count()).select_from(sub), bind_arguments=self._bind_arguments()
            ).scalar_one()
        )

    def pluck(self, column) -> List[Any]:
        if isinstance(column, str):
            column = self.column(column)
        stmt = self.statement(ordered=False, columns=[column])
        return list(self.session.scalars(stmt, bind_arguments=self._bind_arguments()).all())

    def execute(self, stmt):
        return self.session.execute(stmt, bind_arguments=self._bind_arguments())

    # ----------------------------
    # Chunked iteration
    # ----------------------------
    def each_by_id(self, chunk_size: int) -> Iterator[Any]:
        """Yield rows in ascending primary-key order, ``chunk_size`` at a time."""
        pk = self.primary_key
        last = None
        while True:
            stmt = self.statement(ordered=False).order_by(pk.asc()).limit(chunk_size)
            if last is not None:
                stmt = stmt.where(pk > last)
            rows = self.session.scalars(stmt, bind_arguments=self._bind_arguments()).all()
            log.debug("each_by_id fetched %d rows after %r", len(rows), last)
            yield from rows
            if len(rows) < chunk_size:
                return
            last = getattr(rows[-1], pk.key)

    def each(self, chunk_size: int) -> Iterator[Any]:
        """Offset-based chunks; falls back to primary-key order when unordered."""
        base = self.statement()
        if not self.orderings:
            base = base.order_by(self.primary_key.asc())
        offset = 0
        while True:
            rows = self.session.scalars(
                base.offset(offset).limit(chunk_size), bind_arguments=self._bind_arguments()
            ).all()
            yield from rows
            if len(rows) < chunk_size:
                return
            offset += chunk_size
