# File: /tablekit/tables/filters/request.py | Version: 1.0 | Title: Filter state carried by one request
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from tablekit.tables.filters.base import Filter
from tablekit.tables.filters.clause import Clause
from tablekit.tables.helpers import to_bool
from tablekit.tables.query import TableQuery


@dataclass(frozen=True)
class FilterRequest:
    filter: Filter
    enabled: bool
    clause: Clause
    value: Any = None

    @classmethod
    def make(cls, filter: Filter, data: Optional[Mapping[str, Any]] = None) -> "FilterRequest":
        if not data or not isinstance(data, Mapping):
            return cls(
                filter=filter,
                enabled=filter.has_default_value,
                clause=filter.get_default_clause(),
                value=filter.default_value,
            )

        return cls(
            filter=filter,
            enabled=to_bool(data.get("enabled", True), default=True),
            clause=Clause.try_from(data.get("clause") or "") or filter.get_default_clause(),
            value=data.get("value"),
        )

    def apply(self, query: TableQuery) -> None:
        if self.filter.should_be_applied_unwrapped():
            self.filter.handle(query, self.clause, self.value)
        else:
            query.where_group(lambda group: self.filter.handle(group, self.clause, self.value))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "value": self.value,
            "clause": self.clause.value,
        }
