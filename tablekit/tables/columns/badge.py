# File: /tablekit/tables/columns/badge.py | Version: 1.0 | Title: Badge column (icon + variant per value)
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from tablekit.tables.columns.base import Column
from tablekit.tables.enums import ColumnType

Resolver = Union[Mapping[Any, Any], Callable[[Any, Any], Any]]


def _as_resolver(resolver: Optional[Resolver]) -> Optional[Callable[[Any, Any], Any]]:
    if resolver is None or callable(resolver):
        return resolver

    def lookup(value: Any, source: Any = None) -> Any:
        key = value.value if isinstance(value, Enum) else value
        return resolver.get(key)

    return lookup


class BadgeColumn(Column):
    type = ColumnType.badge

    def __init__(
        self,
        attribute: str,
        header: Optional[str] = None,
        icon: Optional[Resolver] = None,
        variant: Optional[Resolver] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(attribute, header, **kwargs)
        self.icon_resolver = _as_resolver(icon)
        self.variant_resolver = _as_resolver(variant)

    def icon(self, resolver: Resolver) -> "BadgeColumn":
        self.icon_resolver = _as_resolver(resolver)
        return self

    def variant(self, resolver: Resolver) -> "BadgeColumn":
        self.variant_resolver = _as_resolver(resolver)
        return self

    def map_for_table(self, value: Any, table, source: Any = None) -> Dict[str, Any]:
        variant = self.variant_resolver(value, source) if self.variant_resolver else None
        if isinstance(variant, Enum):
            variant = variant.value
        return {
            "icon": self.icon_resolver(value, source) if self.icon_resolver else None,
            "variant": variant,
            "style": variant,
            "value": super().map_for_table(value, table, source),
        }

    def map_for_export(self, value: Any, table, source: Any = None) -> Any:
        if callable(self.export_as):
            return self.export_as(value, source, table)
        return super().map_for_table(value, table, source)
