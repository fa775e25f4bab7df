# File: /tablekit/tables/enums.py | Version: 1.0 | Title: Closed enumerations used across the table engine
from __future__ import annotations

from enum import Enum


class PaginationType(str, Enum):
    cursor = "cursor"
    simple = "simple"
    full = "full"


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


class ScrollPosition(str, Enum):
    top_of_page = "topOfPage"
    top_of_table = "topOfTable"
    preserve = "preserve"


class TableComponent(str, Enum):
    search = "search"
    none = "none"


class Variant(str, Enum):
    destructive = "destructive"
    default = "default"
    info = "info"
    success = "success"
    warning = "warning"
    outline = "outline"
    secondary = "secondary"
    ghost = "ghost"
    link = "link"


class ActionType(str, Enum):
    button = "button"
    link = "link"


class ActionStyle(str, Enum):
    link = "link"
    button = "button"
    primary_button = "primary-button"
    danger_button = "danger-button"


class ColumnAlignment(str, Enum):
    left = "left"
    center = "center"
    right = "right"


class ImagePosition(str, Enum):
    start = "start"
    end = "end"


class ImageSize(str, Enum):
    small = "small"
    medium = "medium"
    large = "large"
    extra_large = "extra-large"
    custom = "custom"


class ColumnType(str, Enum):
    text = "text"
    numeric = "numeric"
    badge = "badge"
    date = "date"
    image = "image"
    boolean = "boolean"
    action = "action"


class FilterType(str, Enum):
    text = "text"
    numeric = "numeric"
    date = "date"
    boolean = "boolean"
    set = "set"
    trashed = "trashed"


class ExportType(str, Enum):
    xlsx = "xlsx"
    csv = "csv"

    @property
    def mime_type(self) -> str:
        if self is ExportType.csv:
            return "text/csv"
        return "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class RelationKind(str, Enum):
    belongs_to = "belongs_to"
    has_one_or_many = "has_one_or_many"
    belongs_to_many = "belongs_to_many"
