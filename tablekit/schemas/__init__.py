# File: /tablekit/schemas/__init__.py | Version: 1.0 | Title: Schemas Package Exports
from .table import ActionPayload, ExportPayload, StoreViewPayload

__all__ = ["ActionPayload", "ExportPayload", "StoreViewPayload"]
