# File: /tablekit/tables/columns/boolean.py | Version: 1.0 | Title: Boolean column (labels or icons)
from __future__ import annotations

from typing import Any, Dict, Optional

from tablekit.tables.columns.base import Column
from tablekit.tables.enums import ColumnType


class BooleanColumn(Column):
    type = ColumnType.boolean

    def __init__(
        self,
        attribute: str,
        header: Optional[str] = None,
        true_label: Optional[str] = None,
        false_label: Optional[str] = None,
        true_icon: Optional[str] = None,
        false_icon: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(attribute, header, **kwargs)
        self.true_label = true_label
        self.false_label = false_label
        self.true_icon = true_icon
        self.false_icon = false_icon

    def _config(self):
        return self.table.get_config() if self.table else None

    def get_true_label(self) -> str:
        config = self._config()
        return self.true_label or (config.boolean_true_label if config else "Yes")

    def get_false_label(self) -> str:
        config = self._config()
        return self.false_label or (config.boolean_false_label if config else "No")

    def get_true_icon(self) -> Optional[str]:
        config = self._config()
        return self.true_icon or (config.boolean_true_icon if config else None)

    def get_false_icon(self) -> Optional[str]:
        config = self._config()
        return self.false_icon or (config.boolean_false_icon if config else None)

    def map_for_table(self, value: Any, table, source: Any = None) -> Any:
        flag = bool(value)
        # icons render client-side from the raw boolean
        if flag and self.get_true_icon():
            return flag
        if not flag and self.get_false_icon():
            return flag
        return super().map_for_table(value, table, source)

    def map_for_export(self, value: Any, table, source: Any = None) -> Any:
        if callable(self.export_as):
            return self.export_as(value, source, table)
        return super().map_for_table(value, table, source)

    def map_value(self, value: Any, table, source: Any = None) -> str:
        return self.get_true_label() if value else self.get_false_label()

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            "trueIcon": self.get_true_icon(),
            "falseIcon": self.get_false_icon(),
        }
