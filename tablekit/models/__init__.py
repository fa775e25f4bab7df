# File: /tablekit/models/__init__.py | Version: 2.0 | Title: Models Package Exports
from .soft_delete import SoftDeletable, is_soft_deletable
from .table_view import TableView

__all__ = ["SoftDeletable", "TableView", "is_soft_deletable"]
