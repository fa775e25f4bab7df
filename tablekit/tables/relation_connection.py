# File: /tablekit/tables/relation_connection.py | Version: 1.0 | Title: Relation filtering across database connections
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from sqlalchemy import inspect, select

from tablekit.tables.enums import RelationKind
from tablekit.tables.exceptions import UnsupportedNestedRelation, UnsupportedRelationType
from tablekit.tables.query import TableQuery, relation_kind, relationship_property

if TYPE_CHECKING:
    from tablekit.tables.filters.clause import Clause

log = logging.getLogger(__name__)


class RelationOnAnotherConnection:
    """
    Filters a parent query by a relation whose rows live on another engine.

    The related side is queried on its own connection with the positive form of
    the clause, its keys are plucked, and the parent gets a ``IN``/``NOT IN``.
    """

    def __init__(
        self,
        query: TableQuery,
        relationship_name: str,
        relationship_column: str,
        applier: Callable[[TableQuery, str, Clause, Any], Any],
        clause: Clause,
        value: Any,
    ) -> None:
        if "." in relationship_name:
            raise UnsupportedNestedRelation(relationship_name)

        self.query = query
        self.relationship_name = relationship_name
        self.relationship_column = relationship_column
        self.applier = applier
        self.clause = clause
        self.value = value
        self.relation = relationship_property(query.model, relationship_name)

    @classmethod
    def make(cls, query: TableQuery, attribute: str, applier, clause: Clause, value: Any) -> "RelationOnAnotherConnection":
        relationship, _, column = attribute.rpartition(".")
        return cls(query, relationship, column, applier, clause, value)

    def apply(self, query: TableQuery = None) -> None:
        query = query or self.query
        kind = relation_kind(self.relation)

        if kind is RelationKind.belongs_to:
            self._handle_belongs_to(query)
        elif kind is RelationKind.has_one_or_many:
            self._handle_has_one_or_many(query)
        elif kind is RelationKind.belongs_to_many:
            self._handle_belongs_to_many(query)
        else:
            raise UnsupportedRelationType(self.relationship_name, self.relation.direction.name)

    def related_query(self) -> TableQuery:
        related = self.query.scratch(self.relation.mapper.class_)
        self.applier(related, self.relationship_column, self.clause.opposite_of_negation(), self.value)
        return related

    def _constrain(self, query: TableQuery, parent_column, keys) -> None:
        log.debug(
            "cross-connection %s on %s: %d keys",
            self.clause.value,
            self.relationship_name,
            len(keys),
        )
        if self.clause.is_negated:
            query.where_not_in(parent_column, keys)
        else:
            query.where_in(parent_column, keys)

    def _handle_belongs_to(self, query: TableQuery) -> None:
        # (parent foreign key, owner key) pairs
        foreign_key, owner_key = self.relation.local_remote_pairs[0]
        keys = self.related_query().pluck(owner_key)
        self._constrain(query, foreign_key, keys)

    def _handle_has_one_or_many(self, query: TableQuery) -> None:
        parent_key, foreign_key = self.relation.local_remote_pairs[0]
        keys = self.related_query().pluck(foreign_key)
        self._constrain(query, parent_key, keys)

    def _handle_belongs_to_many(self, query: TableQuery) -> None:
        # synchronize_pairs: (parent key, pivot foreign key)
        # secondary_synchronize_pairs: (related key, pivot related key)
        parent_key, foreign_pivot_key = self.relation.synchronize_pairs[0]
        related_key, related_pivot_key = self.relation.secondary_synchronize_pairs[0]

        related = self.related_query()
        matching = related.statement(ordered=False, columns=[related_key])
        stmt = select(foreign_pivot_key).where(related_pivot_key.in_(matching))
        keys = list(
            related.session.scalars(
                stmt, bind_arguments={"mapper": inspect(self.relation.mapper.class_)}
            ).all()
        )
        self._constrain(query, parent_key, keys)
