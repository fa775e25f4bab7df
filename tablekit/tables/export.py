# File: /tablekit/tables/export.py | Version: 1.0 | Title: Export descriptors (download, custom handler or queued job)
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Union

from starlette.responses import Response

from tablekit.tables.action import Authorizer, is_authorized
from tablekit.tables.enums import ExportType
from tablekit.tables.exceptions import MissingExportDestination
from tablekit.tables.exporter import Exporter, SheetHook
from tablekit.tables.helpers import build_nested_query, format_data_attributes, is_blank

if TYPE_CHECKING:
    from tablekit.tables.query import TableQuery
    from tablekit.tables.state import RequestSnapshot
    from tablekit.tables.table import Table

log = logging.getLogger(__name__)

UsingCallback = Callable[["Table", "Export", "RequestSnapshot", "TableQuery"], Any]
RedirectTarget = Union[str, Callable[[], Optional[str]], None]


class Export:
    """
    How a table can be exported.

    Without ``queue`` or ``using`` the file is streamed back directly. ``using``
    hands the scoped query to a custom callback; ``queue`` dispatches a Celery
    job that writes the file to ``queue_disk`` (or runs ``using`` in the worker).
    """

    def __init__(
        self,
        label: str = "Excel Export",
        filename: str = "export.xlsx",
        type: ExportType = ExportType.xlsx,
        authorize: Authorizer = True,
        events: Optional[Sequence[SheetHook]] = None,
        data_attributes: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None,
        limit_to_filtered_rows: Optional[bool] = None,
        limit_to_selected_rows: Optional[bool] = None,
        using: Optional[UsingCallback] = None,
        as_download: bool = True,
        queue: bool = False,
        queue_name: Optional[str] = None,
        queue_disk: Optional[str] = None,
        with_queued_job: Optional[Callable[[Any], Any]] = None,
        dialog_title: str = "Exporting",
        dialog_message: str = "Your export is being processed.",
        redirect: RedirectTarget = None,
    ) -> None:
        self.label = label
        self.filename = filename
        self.type = ExportType(type)
        self.authorize = authorize
        self.events = list(events or [])
        self.data_attributes = data_attributes
        self.meta = meta
        self._limit_to_filtered_rows = limit_to_filtered_rows
        self._limit_to_selected_rows = limit_to_selected_rows
        self.using = using
        self.as_download = as_download
        self.queue_enabled = queue
        self._queue_name = queue_name
        self._queue_disk = queue_disk
        self.with_queued_job = with_queued_job
        self.dialog_title = dialog_title
        self.dialog_message = dialog_message
        self.redirect = redirect
        self.index: Optional[int] = None
        self.table: Optional["Table"] = None

    # ----------------------------
    # Binding
    # ----------------------------
    def set_index(self, index: int) -> "Export":
        self.index = index
        return self

    def set_table(self, table: "Table") -> "Export":
        self.table = table
        return self

    # ----------------------------
    # Fluent configuration
    # ----------------------------
    def queue(self, queue_name: Optional[str] = None, disk: Optional[str] = None) -> "Export":
        self.queue_enabled = True
        if queue_name is not None:
            self._queue_name = queue_name
        if disk is not None:
            self._queue_disk = disk
        return self

    def redirect_back_with_dialog(self, title: str, message: str, redirect: RedirectTarget = None) -> "Export":
        self.dialog_title = title
        self.dialog_message = message
        self.redirect = redirect
        return self

    def limit_to_filtered_rows(self, value: bool = True) -> "Export":
        self._limit_to_filtered_rows = value
        return self

    def limit_to_selected_rows(self, value: bool = True) -> "Export":
        self._limit_to_selected_rows = value
        return self

    # ----------------------------
    # Resolved settings
    # ----------------------------
    def _config(self):
        from tablekit.tables.config import get_table_config

        return self.table.get_config() if self.table is not None else get_table_config()

    @property
    def limits_to_filtered_rows(self) -> bool:
        if self._limit_to_filtered_rows is not None:
            return self._limit_to_filtered_rows
        return self._config().export_limit_to_filtered_rows

    @property
    def limits_to_selected_rows(self) -> bool:
        if self._limit_to_selected_rows is not None:
            return self._limit_to_selected_rows
        return self._config().export_limit_to_selected_rows

    @property
    def queue_name(self) -> Optional[str]:
        return self._queue_name or self._config().export_queue_name

    @property
    def queue_disk(self) -> Optional[str]:
        return self._queue_disk or self._config().export_disk

    def is_authorized(self, request: Any = None) -> bool:
        return is_authorized(self.authorize, request)

    def is_downloaded_directly(self) -> bool:
        return not self.queue_enabled and self.as_download

    def resolve_redirect(self) -> Optional[str]:
        target = self.redirect() if callable(self.redirect) else self.redirect
        if isinstance(target, Response):
            return target.headers.get("location")
        return target

    def dialog(self, with_redirect: bool = True) -> Dict[str, Any]:
        return {
            "dialogTitle": None if is_blank(self.dialog_title) else self.dialog_title,
            "dialogMessage": None if is_blank(self.dialog_message) else self.dialog_message,
            "targetUrl": self.resolve_redirect() if with_redirect else None,
        }

    # ----------------------------
    # URLs
    # ----------------------------
    def get_export_url(self) -> str:
        kind = "export" if self.is_downloaded_directly() else "async-export"
        params: List[Any] = []
        if self.limits_to_filtered_rows:
            params = build_nested_query(self.table.get_table_request().get_query_data_for_exports())
        return self.table.signed_url(kind, self.index, params)

    # ----------------------------
    # Execution
    # ----------------------------
    def make_exporter(self) -> Exporter:
        return Exporter(
            self.table,
            self.filename,
            self.type,
            events=self.events,
            limit_to_filtered_rows=self.limits_to_filtered_rows,
            limit_to_selected_rows=self.limits_to_selected_rows,
        )

    def execute_using_callback(self) -> Any:
        exporter = self.make_exporter()
        snapshot = self.table.get_table_request().snapshot
        return self.using(self.table, self, snapshot, exporter.query())

    def download(self) -> Response:
        return self.make_exporter().to_response()

    def dispatch_job(self) -> Any:
        from tablekit.worker.tasks import run_export

        if self.using is None and is_blank(self.queue_disk):
            raise MissingExportDestination(
                f"Export '{self.label}' is queued but has neither a disk nor a using callback."
            )

        table = self.table
        signature = run_export.s(
            table.get_encoded_class(),
            table.get_name(),
            table.get_encrypted_state(),
            table.get_table_request().snapshot.to_snapshot(),
            self.index,
            self.queue_disk,
        )
        if self.with_queued_job is not None:
            signature = self.with_queued_job(signature) or signature

        log.info("Queueing export %r of %s on %s", self.label, type(table).__name__, self.queue_name)
        return signature.apply_async(queue=self.queue_name)

    def run_in_worker(self, disk: Optional[str] = None) -> Any:
        """Body of the queued job once the table has been rebuilt."""
        if self.using is not None:
            return self.execute_using_callback()
        return str(self.make_exporter().store(disk or self.queue_disk))

    def to_dict(self) -> Dict[str, Any]:
        if self.queue_enabled and self.using is None and is_blank(self.queue_disk):
            raise MissingExportDestination(
                f"Export '{self.label}' is queued but has neither a disk nor a using callback."
            )

        return {
            "label": self.label,
            "authorized": self.is_authorized(),
            "dataAttributes": format_data_attributes(self.data_attributes),
            "meta": self.meta,
            "limitToSelectedRows": self.limits_to_selected_rows,
            "asDownload": False if self.queue_enabled else self.as_download,
            "url": self.get_export_url(),
        }
