# File: /tablekit/tables/columns/action.py | Version: 1.0 | Title: Row actions column
from __future__ import annotations

from typing import Any, Dict, Optional

from tablekit.tables.columns.base import Column
from tablekit.tables.enums import ColumnAlignment, ColumnType

ACTIONS_ATTRIBUTE = "_actions"


class ActionColumn(Column):
    type = ColumnType.action

    def __init__(self, label: str = "", as_dropdown: Optional[bool] = None, **kwargs: Any) -> None:
        kwargs.setdefault("alignment", ColumnAlignment.right)
        kwargs["toggleable"] = False
        super().__init__(ACTIONS_ATTRIBUTE, label, **kwargs)
        self.as_dropdown = as_dropdown

    def should_be_exported(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        as_dropdown = self.as_dropdown
        if as_dropdown is None:
            as_dropdown = bool(self.table and self.table.get_config().actions_as_dropdown)
        return {**super().to_dict(), "asDropdown": as_dropdown}
