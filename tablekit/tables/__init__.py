# File: /tablekit/tables/__init__.py | Version: 1.0 | Title: Table engine public surface
from .action import Action
from .columns import (
    ActionColumn,
    BadgeColumn,
    BooleanColumn,
    Column,
    DateColumn,
    ImageColumn,
    NumericColumn,
    TextColumn,
)
from .config import TableConfig, configure_tables, get_table_config, reset_table_config
from .empty_state import EmptyState, EmptyStateAction
from .enums import (
    ActionStyle,
    ActionType,
    ColumnAlignment,
    ExportType,
    ImagePosition,
    ImageSize,
    PaginationType,
    ScrollPosition,
    SortDirection,
    TableComponent,
    Variant,
)
from .export import Export
from .filters import (
    BooleanFilter,
    Clause,
    DateFilter,
    Filter,
    NumericFilter,
    SetFilter,
    TextFilter,
    TrashedFilter,
)
from .query import TableQuery
from .query_builder import QueryBuilder
from .state import RequestSnapshot
from .table import InlineTable, Table
from .table_request import TableRequest
from .url import Image, Url
from .views import Views

__all__ = [
    "Action",
    "ActionColumn",
    "ActionStyle",
    "ActionType",
    "BadgeColumn",
    "BooleanColumn",
    "BooleanFilter",
    "Clause",
    "Column",
    "ColumnAlignment",
    "DateColumn",
    "DateFilter",
    "EmptyState",
    "EmptyStateAction",
    "Export",
    "ExportType",
    "Filter",
    "Image",
    "ImageColumn",
    "ImagePosition",
    "ImageSize",
    "InlineTable",
    "NumericColumn",
    "NumericFilter",
    "PaginationType",
    "QueryBuilder",
    "RequestSnapshot",
    "ScrollPosition",
    "SetFilter",
    "SortDirection",
    "Table",
    "TableComponent",
    "TableConfig",
    "TableQuery",
    "TableRequest",
    "TextColumn",
    "TextFilter",
    "TrashedFilter",
    "Url",
    "Variant",
    "Views",
    "configure_tables",
    "get_table_config",
    "reset_table_config",
]
