# File: /tablekit/tables/exporter.py | Version: 1.0 | Title: Spreadsheet writer for table exports (openpyxl / csv)
from __future__ import annotations

import csv
import io
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet
from starlette.responses import Response

from tablekit.core.config import settings
from tablekit.tables.enums import ExportType
from tablekit.tables.exceptions import MissingExportDestination
from tablekit.tables.query import TableQuery

if TYPE_CHECKING:
    from tablekit.tables.columns.base import Column
    from tablekit.tables.table import Table

log = logging.getLogger(__name__)

SheetHook = Callable[[Worksheet], Any]

_STYLE_FACTORIES = {"font": Font, "alignment": Alignment, "fill": PatternFill}


def _cell_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, Decimal, date, datetime)):
        return value
    if isinstance(value, bool):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(_cell_value(v)) for v in value if v is not None)
    return str(value)


def _apply_style(cells, style: Dict[str, Any]) -> None:
    for row in cells:
        for cell in row:
            for key, spec in style.items():
                if key == "number_format":
                    cell.number_format = spec
                elif key in _STYLE_FACTORIES:
                    setattr(cell, key, _STYLE_FACTORIES[key](**spec) if isinstance(spec, dict) else spec)


class Exporter:
    """Writes the exported columns of a table's rows as xlsx or csv."""

    def __init__(
        self,
        table: "Table",
        filename: str,
        writer_type: ExportType = ExportType.xlsx,
        events: Optional[Sequence[SheetHook]] = None,
        limit_to_filtered_rows: bool = False,
        limit_to_selected_rows: bool = False,
    ) -> None:
        self.table = table
        self.filename = filename
        self.writer_type = ExportType(writer_type)
        self.events = list(events or [])
        self.limit_to_filtered_rows = limit_to_filtered_rows
        self.limit_to_selected_rows = limit_to_selected_rows
        self._with_query: List[Callable[[TableQuery], Any]] = []
        self._scope_keys: Optional[List[Any]] = None

    def with_query(self, callback: Callable[[TableQuery], Any]) -> "Exporter":
        self._with_query.append(callback)
        return self

    def scope_primary_key(self, keys: Optional[Sequence[Any]]) -> "Exporter":
        self._scope_keys = None if keys is None else list(keys)
        return self

    # ----------------------------
    # Data
    # ----------------------------
    def query(self) -> TableQuery:
        query_builder = self.table.query_builder()
        if self.limit_to_filtered_rows:
            query = query_builder.get_resource_with_request_applied(apply_sort=False)
        else:
            query = query_builder.get_resource()

        if self._scope_keys is not None:
            self.table.scope_primary_key(query, self._scope_keys)
        if self.limit_to_selected_rows:
            self.table.scope_primary_key(query, self.table.get_table_request().selected_keys())

        for callback in self._with_query:
            callback(query)
        return query

    def columns(self) -> List["Column"]:
        return [column for column in self.table.build_columns() if column.should_be_exported()]

    def headings(self) -> List[str]:
        return [column.header for column in self.columns()]

    def column_formats(self) -> Dict[str, str]:
        formats: Dict[str, str] = {}
        for index, column in enumerate(self.columns(), start=1):
            export_format = column.export_format
            if export_format is None:
                continue
            formats[get_column_letter(index)] = export_format() if callable(export_format) else export_format
        return formats

    def map(self, item: Any) -> List[Any]:
        return [
            _cell_value(column.map_for_export(column.get_data_from_item(item), self.table, item))
            for column in self.columns()
        ]

    def rows(self) -> Iterator[List[Any]]:
        chunk_size = self.table.get_config().export_chunk_size
        for item in self.query().each_by_id(chunk_size):
            yield self.map(item)

    # ----------------------------
    # Writers
    # ----------------------------
    def _write_csv(self, stream: io.BytesIO) -> None:
        text = io.TextIOWrapper(stream, encoding="utf-8", newline="", write_through=True)
        writer = csv.writer(text)
        writer.writerow(self.headings())
        count = 0
        for row in self.rows():
            writer.writerow(row)
            count += 1
        text.detach()
        log.info("Exported %d rows to csv (%s)", count, self.filename)

    def _write_xlsx(self, stream: io.BytesIO) -> None:
        workbook = Workbook()
        sheet = workbook.active
        headings = self.headings()
        sheet.append(headings)
        for cell in sheet[1]:
            cell.font = Font(bold=True)

        count = 0
        for row in self.rows():
            sheet.append(row)
            count += 1

        highest_row = sheet.max_row
        for letter, number_format in self.column_formats().items():
            for (cell,) in sheet[f"{letter}2:{letter}{max(highest_row, 2)}"]:
                cell.number_format = number_format

        if headings:
            sheet.auto_filter.ref = f"A1:{get_column_letter(len(headings))}1"
            self._style_columns(sheet, highest_row)
            self._auto_size(sheet)

        for hook in self.events:
            hook(sheet)

        workbook.save(stream)
        log.info("Exported %d rows to xlsx (%s)", count, self.filename)

    def _style_columns(self, sheet: Worksheet, highest_row: int) -> None:
        if highest_row < 2:
            return
        for index, column in enumerate(self.columns(), start=1):
            style = column.export_style
            if not style:
                continue
            letter = get_column_letter(index)
            cells = sheet[f"{letter}2:{letter}{highest_row}"]
            if isinstance(style, dict):
                _apply_style(cells, style)
            else:
                style(cells)

    @staticmethod
    def _auto_size(sheet: Worksheet) -> None:
        for cells in sheet.columns:
            width = max((len(str(cell.value)) for cell in cells if cell.value is not None), default=0)
            sheet.column_dimensions[cells[0].column_letter].width = min(width + 2, 60)

    def to_bytes(self) -> bytes:
        stream = io.BytesIO()
        if self.writer_type is ExportType.csv:
            self._write_csv(stream)
        else:
            self._write_xlsx(stream)
        return stream.getvalue()

    def to_response(self) -> Response:
        return Response(
            content=self.to_bytes(),
            media_type=self.writer_type.mime_type,
            headers={"Content-Disposition": f'attachment; filename="{self.filename}"'},
        )

    def store(self, disk: Optional[str], filename: Optional[str] = None) -> Path:
        directory = settings.EXPORT_DISKS.get(disk or "")
        if not directory:
            raise MissingExportDestination(f"Export disk '{disk}' is not configured.")
        path = Path(directory) / (filename or self.filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.to_bytes())
        log.info("Stored export at %s", path)
        return path
