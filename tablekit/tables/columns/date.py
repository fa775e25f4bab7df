# File: /tablekit/tables/columns/date.py | Version: 1.0 | Title: Date column (strftime formatting)
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from dateutil import parser as date_parser

from tablekit.tables.columns.base import Column
from tablekit.tables.enums import ColumnType


class DateColumn(Column):
    type = ColumnType.date

    def __init__(
        self,
        attribute: str,
        header: Optional[str] = None,
        format: Optional[str] = None,
        translate: Optional[bool] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(attribute, header, **kwargs)
        self.format = format
        self.translate = translate

    def get_format(self, table) -> str:
        return self.format or table.get_config().date_format

    def should_translate(self, table) -> bool:
        if self.translate is not None:
            return self.translate
        return table.get_config().translate_dates

    def map_value(self, value: Any, table, source: Any = None) -> Optional[str]:
        if not value:
            return None

        if isinstance(value, (datetime, date)):
            moment = value
        else:
            moment = date_parser.parse(str(value))

        fmt = self.get_format(table)
        translator = table.get_config().date_translator
        if self.should_translate(table) and translator is not None:
            return translator(moment, fmt)
        return moment.strftime(fmt)
