# File: /tablekit/tables/columns/image.py | Version: 1.0 | Title: Image column
from __future__ import annotations

from typing import Any, Dict, Optional

from tablekit.tables.columns.base import Column
from tablekit.tables.enums import ColumnType
from tablekit.tables.url import Image


class ImageColumn(Column):
    """The cell value is the image URL; ``image=`` callbacks decorate it further."""

    type = ColumnType.image

    def has_image(self) -> bool:
        return True

    def resolve_image(self, item: Any) -> Optional[Dict[str, Any]]:
        def resolver(row: Any, instance: Image) -> Image:
            instance.to(self.get_data_from_item(row))
            if self.image is not None:
                result = self.image(row, instance)
                return result if result is not None else instance
            return instance

        return Image.resolve(item, resolver)
