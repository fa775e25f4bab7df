# File: /tablekit/tables/filters/base.py | Version: 1.0 | Title: Filter base class
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from sqlalchemy import not_

from tablekit.tables.enums import FilterType
from tablekit.tables.filters.clause import Clause
from tablekit.tables.helpers import headline, is_blank
from tablekit.tables.query import TableQuery, is_related_through_another_connection
from tablekit.tables.relation_connection import RelationOnAnotherConnection

if TYPE_CHECKING:
    from tablekit.tables.table import Table

log = logging.getLogger(__name__)

Applier = Callable[[TableQuery, str, Clause, Any], Any]
Validator = Callable[[Any, Clause, TableQuery], Any]


class Filter:
    """
    A typed predicate bound to one attribute.

    ``attribute`` may be a dotted path (``company.name``) in which case the
    predicate is applied through the relation. Subclasses implement
    ``apply()`` and ``validate()`` and list the clauses they support.
    """

    type: FilterType

    def __init__(
        self,
        attribute: str,
        label: Optional[str] = None,
        nullable: bool = False,
        clauses: Optional[List[Clause]] = None,
        apply_using: Optional[Applier] = None,
        validate_using: Optional[Validator] = None,
        meta: Optional[Dict[str, Any]] = None,
        apply_unwrapped: bool = False,
    ) -> None:
        self.attribute = attribute
        self.label = headline(attribute) if is_blank(label) else label
        self._apply_using = apply_using
        self._validate_using = validate_using
        self.meta = meta
        self.apply_unwrapped = apply_unwrapped
        self.default_value: Any = None
        self.default_clause: Optional[Clause] = None
        self.table: Optional["Table"] = None

        if clauses is None:
            self.clauses = list(self.default_clauses())
            if nullable:
                self.nullable()
        else:
            self.set_clauses(clauses)

    # ----------------------------
    # Definition
    # ----------------------------
    @classmethod
    def default_clauses(cls) -> List[Clause]:
        raise NotImplementedError

    def set_clauses(self, clauses: List[Clause]) -> "Filter":
        for clause in clauses:
            if not isinstance(clause, Clause):
                raise TypeError(f"Each clause must be an instance of Clause, got {clause!r}")
        self.clauses = list(clauses)
        return self

    def nullable(self) -> "Filter":
        self.clauses.extend([Clause.is_set, Clause.is_not_set])
        return self

    def apply_using(self, applier: Applier, unwrapped: bool = False) -> "Filter":
        self._apply_using = applier
        self.apply_unwrapped = unwrapped
        return self

    def validate_using(self, validator: Validator) -> "Filter":
        self._validate_using = validator
        return self

    def default(self, value: Any, clause: Optional[Clause] = None) -> "Filter":
        self.default_value = value
        self.default_clause = clause
        return self

    def with_meta(self, meta: Dict[str, Any]) -> "Filter":
        self.meta = meta
        return self

    def set_table(self, table: "Table") -> "Filter":
        self.table = table
        return self

    @property
    def has_default_value(self) -> bool:
        return self.default_value is not None or isinstance(self.default_clause, Clause)

    def get_default_clause(self) -> Clause:
        return self.default_clause or self.clauses[0]

    def should_be_applied_unwrapped(self) -> bool:
        return self.apply_unwrapped

    # ----------------------------
    # Relations
    # ----------------------------
    @property
    def is_nested(self) -> bool:
        return "." in self.attribute

    @property
    def relationship_name(self) -> str:
        return self.attribute.rpartition(".")[0]

    @property
    def relationship_column(self) -> str:
        return self.attribute.rpartition(".")[2]

    # ----------------------------
    # Application
    # ----------------------------
    def apply(self, query: TableQuery, attribute: str, clause: Clause, value: Any) -> None:
        raise NotImplementedError

    def validate(self, value: Any, clause: Clause, query: TableQuery) -> Any:
        raise NotImplementedError

    def normalize_value(self, value: Any, clause: Clause, query: TableQuery) -> Any:
        if self._validate_using is not None:
            return self._validate_using(value, clause, query)
        if not clause.requires_comparison_value:
            return None
        return self.validate(value, clause, query)

    def handle(self, query: TableQuery, clause: Clause, value: Any) -> None:
        if self._apply_using is None and clause in (Clause.is_set, Clause.is_not_set):
            self._apply_set_or_not_set(query, clause)
            return

        value = self.normalize_value(value, clause, query)

        if is_blank(value) and clause.requires_comparison_value:
            log.debug("Skipping filter %s: blank value for %s", self.attribute, clause.value)
            return

        applier = self._apply_using or self.apply

        if not self.is_nested:
            applier(query, self.attribute, clause, value)
            return

        if not is_related_through_another_connection(query.model, self.relationship_name):
            self.handle_relation(query, applier, clause, value)
            return

        RelationOnAnotherConnection.make(query, self.attribute, applier, clause, value).apply(query)

    def handle_relation(self, query: TableQuery, applier: Applier, clause: Clause, value: Any) -> None:
        def constrain(related: TableQuery) -> None:
            applier(related, self.relationship_column, clause, value)

        if not clause.is_negated:
            query.where_has(self.relationship_name, constrain)
            return

        query.where_group(
            lambda group: group.doesnt_have(self.relationship_name).or_where_has(
                self.relationship_name, constrain
            )
        )

    def _apply_set_or_not_set(self, query: TableQuery, clause: Clause) -> None:
        if self.is_nested:
            exists = query.has_expression(self.relationship_name)
            query.where(exists if clause is Clause.is_set else not_(exists))
        elif clause is Clause.is_set:
            query.where_not_null(self.attribute)
        else:
            query.where_null(self.attribute)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "attribute": self.attribute,
            "label": self.label,
            "clauses": [clause.value for clause in self.clauses],
            "meta": self.meta,
            "hasDefaultValue": self.has_default_value,
        }
