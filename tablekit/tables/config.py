# File: /tablekit/tables/config.py | Version: 1.0 | Title: Table-level defaults with an explicit registry
from __future__ import annotations

from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tablekit.core.config import settings
from tablekit.tables.enums import PaginationType, ScrollPosition, TableComponent


class TableConfig(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    # --- Pagination ---
    pagination: bool = True
    pagination_type: PaginationType = PaginationType.full
    per_page_options: List[int] = Field(default_factory=lambda: [15, 30, 50, 100])

    # --- UI hints ---
    debounce_time: int = 300
    scroll_position: ScrollPosition = ScrollPosition.top_of_page
    autofocus: Optional[TableComponent] = TableComponent.search
    sticky_header: bool = False
    always_reload_all_props: bool = False

    # --- Columns ---
    columns_stickable: bool = False
    actions_as_dropdown: bool = False
    date_format: str = "%Y-%m-%d"
    translate_dates: bool = False
    date_translator: Optional[Callable[[Any, str], str]] = None
    boolean_true_label: str = "Yes"
    boolean_false_label: str = "No"
    boolean_true_icon: Optional[str] = None
    boolean_false_icon: Optional[str] = None

    # --- Exports ---
    export_queue_name: Optional[str] = Field(default_factory=lambda: settings.DEFAULT_EXPORT_QUEUE)
    export_disk: Optional[str] = Field(default_factory=lambda: settings.DEFAULT_EXPORT_DISK)
    export_limit_to_filtered_rows: bool = False
    export_limit_to_selected_rows: bool = False
    export_chunk_size: int = 1000

    # --- Views ---
    views_enabled: bool = False
    views_scope_user: bool = True
    views_scope_table_name: bool = False
    views_scope_stateful_resources: bool = False

    @field_validator("per_page_options")
    @classmethod
    def _per_page_options_are_positive(cls, value: List[int]) -> List[int]:
        if not value or any(not isinstance(v, int) or isinstance(v, bool) or v < 1 for v in value):
            raise ValueError("per_page_options must be a non-empty list of positive integers")
        return value


_registry: Optional[TableConfig] = None


def get_table_config() -> TableConfig:
    global _registry
    if _registry is None:
        _registry = TableConfig()
    return _registry


def configure_tables(**overrides: Any) -> TableConfig:
    """Replace the process-wide defaults; unspecified fields keep their current value."""
    global _registry
    _registry = get_table_config().model_copy(update=overrides)
    return _registry


def reset_table_config() -> None:
    global _registry
    _registry = None
