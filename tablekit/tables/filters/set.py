# File: /tablekit/tables/filters/set.py | Version: 1.1 | Title: Set filter (fixed option lists, single or multiple)
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from sqlalchemy import inspect, not_, select

from tablekit.tables.enums import FilterType, RelationKind
from tablekit.tables.exceptions import UnsupportedClause, UnsupportedRelationType
from tablekit.tables.filters.base import Applier, Filter
from tablekit.tables.filters.clause import Clause
from tablekit.tables.helpers import is_numeric
from tablekit.tables.query import (
    TableQuery,
    primary_key_attribute,
    relation_count,
    relation_kind,
    relationship_property,
)


def _is_option_value(item: Any) -> bool:
    return isinstance(item, str) or is_numeric(item)


def normalize_options(options: Union[Mapping[Any, Any], Iterable[Any]]) -> List[Dict[str, Any]]:
    """
    ``["a", "b"]``        -> ``[{"value": "a", "label": "a"}, ...]``
    ``{1: "One"}``        -> ``[{"value": 1, "label": "One"}]``
    ``[{"value": .., ..}]`` is kept as-is.
    """
    if isinstance(options, Mapping):
        items = list(options.items())
        if items and isinstance(items[0][1], Mapping):
            return [dict(value) for _, value in items]
        return [{"value": key, "label": label} for key, label in items]

    options = list(options)
    if options and isinstance(options[0], Mapping):
        return [dict(option) for option in options]
    return [{"value": option, "label": option} for option in options]


class OptionsFromRelation:
    """Deferred option list plucked from a relation once the filter knows its table."""

    def __init__(self, attribute: str, relation: Optional[str] = None, value: str = "name") -> None:
        self.attribute = attribute
        self.relation = relation
        self.value = value

    @property
    def relation_name(self) -> str:
        return self.relation or self.attribute

    def key_column(self, model) -> str:
        prop = relationship_property(model, self.relation_name)
        kind = relation_kind(prop)
        if kind is RelationKind.belongs_to:
            return prop.local_remote_pairs[0][1].key
        if kind in (RelationKind.has_one_or_many, RelationKind.belongs_to_many):
            return primary_key_attribute(prop.mapper.class_).key
        raise UnsupportedRelationType(self.relation_name, prop.direction.name)

    def filter_attribute(self, model) -> str:
        return f"{self.relation_name}.{self.key_column(model)}"

    def pluck(self, model, session) -> Dict[Any, Any]:
        related = relationship_property(model, self.relation_name).mapper.class_
        key = getattr(related, self.key_column(model))
        label = getattr(related, self.value)
        rows = session.execute(
            select(key, label).order_by(label),
            bind_arguments={"mapper": inspect(related)},
        ).all()
        return {row[0]: row[1] for row in rows}


class SetFilter(Filter):
    type = FilterType.set

    def __init__(
        self,
        attribute: str,
        label: Optional[str] = None,
        options: Union[Mapping[Any, Any], Iterable[Any], None] = None,
        multiple: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(attribute, label, **kwargs)
        self.multiple = multiple
        self.option_list: List[Dict[str, Any]] = normalize_options(options or [])
        self._pending_options: Optional[OptionsFromRelation] = None

    @classmethod
    def default_clauses(cls) -> List[Clause]:
        return [Clause.in_, Clause.not_in, Clause.equals, Clause.not_equals]

    def options(self, options: Union[Mapping[Any, Any], Iterable[Any]]) -> "SetFilter":
        self.option_list = normalize_options(options)
        return self

    def set_multiple(self, multiple: bool = True) -> "SetFilter":
        self.multiple = multiple
        return self

    def without_clause(self) -> "SetFilter":
        self.set_clauses([Clause.equals])
        return self

    def pluck_options_from_relation(self, value: str = "name", relation: Optional[str] = None) -> "SetFilter":
        self._pending_options = OptionsFromRelation(self.attribute, relation, value)
        return self

    def pluck_options_from_model(self, query: TableQuery, value: str = "name", key: Optional[str] = None) -> "SetFilter":
        key_column = query.column(key) if key else query.primary_key
        label = query.column(value)
        rows = query.execute(query.statement(ordered=False, columns=[key_column, label]).order_by(label)).all()
        return self.options({row[0]: row[1] for row in rows})

    def set_table(self, table) -> "SetFilter":
        super().set_table(table)
        if self._pending_options is None:
            return self

        pending, self._pending_options = self._pending_options, None
        model = table.resource_query().model
        self.options(pending.pluck(model, table.get_session()))
        if pending.relation is None:
            self.attribute = pending.filter_attribute(model)
        return self

    def apply(self, query: TableQuery, attribute: str, clause: Clause, value: Any) -> None:
        column = query.column(attribute)

        # multiple values arrive as a list for every clause
        if isinstance(value, list) and clause in (Clause.equals, Clause.not_equals):
            clause = Clause.in_ if clause is Clause.equals else Clause.not_in

        if clause is Clause.equals:
            query.where(column == value)
        elif clause is Clause.not_equals:
            query.where(column != value)
        elif clause is Clause.in_:
            query.where_in(column, value)
        elif clause is Clause.not_in:
            query.where_not_in(column, value)
        else:
            raise UnsupportedClause(clause)

    def handle_relation(self, query: TableQuery, applier: Applier, clause: Clause, value: Any) -> None:
        if self.multiple and clause in (Clause.equals, Clause.not_equals):
            exact = query.scratch()
            self._where_exactly(exact, value)
            criterion = exact.criterion()
            query.where(criterion if clause is Clause.equals else not_(criterion))
            return

        super().handle_relation(query, applier, clause, value)

    def _where_exactly(self, query: TableQuery, items: List[Any]) -> None:
        # every item present in the relation and no more
        query.where(relation_count(query.model, self.relationship_name) == len(items))
        for item in items:
            query.where_has(
                self.relationship_name,
                lambda related, item=item: related.where(related.column(self.relationship_column) == item),
            )

    def validate(self, value: Any, clause: Clause, query: TableQuery) -> Any:
        if clause in (Clause.in_, Clause.not_in) or self.multiple:
            if isinstance(value, Mapping):
                value = list(value.values())
            if not isinstance(value, (list, tuple)):
                return None
            kept = [item for item in value if _is_option_value(item)]
            return kept or None

        return value if _is_option_value(value) else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            "options": self.option_list,
            "multiple": self.multiple,
        }
