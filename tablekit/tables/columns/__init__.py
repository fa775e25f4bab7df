# File: /tablekit/tables/columns/__init__.py | Version: 1.0 | Title: Column package exports
from .action import ActionColumn
from .badge import BadgeColumn
from .base import Column, NumericColumn, TextColumn
from .boolean import BooleanColumn
from .date import DateColumn
from .image import ImageColumn

__all__ = [
    "ActionColumn",
    "BadgeColumn",
    "BooleanColumn",
    "Column",
    "DateColumn",
    "ImageColumn",
    "NumericColumn",
    "TextColumn",
]
