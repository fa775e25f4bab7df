# File: /tablekit/tables/columns/base.py | Version: 1.0 | Title: Column base class
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Sequence, Union

from tablekit.tables.enums import ColumnAlignment, ColumnType, SortDirection
from tablekit.tables.helpers import data_get, format_css_class, headline
from tablekit.tables.query import TableQuery
from tablekit.tables.sort_priority import SortUsingPriority
from tablekit.tables.url import Image, ImageResolver, Url, UrlResolver

if TYPE_CHECKING:
    from tablekit.tables.table import Table

log = logging.getLogger(__name__)

ValueMapper = Callable[[Any, Any], Any]
ExportMapper = Callable[[Any, Any, "Table"], Any]
SortStrategy = Callable[[TableQuery, SortDirection], Any]


class Column:
    """
    Display, export and sort rules for one attribute of a row.

    A dotted ``attribute`` reads through a relation (``company.name``); the
    ``pivot.`` prefix is reserved for pivot data and is not a relation.
    """

    type: ColumnType = ColumnType.text

    def __init__(
        self,
        attribute: str,
        header: Optional[str] = None,
        sortable: bool = False,
        toggleable: bool = True,
        searchable: bool = False,
        alignment: ColumnAlignment = ColumnAlignment.left,
        map_as: Union[Mapping[Any, Any], ValueMapper, None] = None,
        export_as: Union[ExportMapper, bool, None] = None,
        export_format: Union[str, Callable[..., str], None] = None,
        export_style: Union[Dict[str, Any], Callable[..., Any], None] = None,
        visible: bool = True,
        sort_using: Optional[SortStrategy] = None,
        meta: Optional[Dict[str, Any]] = None,
        url: Optional[UrlResolver] = None,
        wrap: bool = False,
        truncate: Optional[int] = None,
        header_class: Union[str, Sequence[str], None] = None,
        cell_class: Union[str, Sequence[str], None] = None,
        image: Union[ImageResolver, str, None] = None,
        stickable: Optional[bool] = None,
    ) -> None:
        self.attribute = attribute
        self.header = headline(attribute) if header is None else header
        self.sortable = sortable
        self.toggleable = toggleable
        self.searchable = searchable
        self.alignment = alignment
        self.map_as = map_as
        self.export_as = export_as
        self.export_format = export_format
        self.export_style = export_style
        self.visible = visible
        self.sort_using = sort_using
        self.meta = meta
        self.url = url
        self.wrap = wrap or bool(truncate)
        self.truncate = truncate
        self.header_class = format_css_class(header_class)
        self.cell_class = format_css_class(cell_class)
        self.image = None
        self.stickable = stickable
        self.table: Optional["Table"] = None
        if image is not None:
            self.with_image(image)

    # ----------------------------
    # Fluent helpers
    # ----------------------------
    def set_table(self, table: "Table") -> "Column":
        self.table = table
        return self

    def dont_export(self) -> "Column":
        self.export_as = False
        return self

    def sort_using_priority(self, priority: Sequence[Any]) -> "Column":
        self.sort_using = SortUsingPriority(self.attribute, priority)
        return self

    def sort_using_map(self, mapping: Optional[Mapping[Any, Any]] = None) -> "Column":
        """Sort by the order the mapped labels would sort in."""
        if mapping is None and not isinstance(self.map_as, Mapping):
            raise ValueError("Provide a map to this method or set a map using map_as.")
        mapping = mapping if mapping is not None else self.map_as
        ordered = sorted(mapping.items(), key=lambda pair: pair[1])
        return self.sort_using_priority([key for key, _ in ordered])

    def with_url(self, resolver: UrlResolver) -> "Column":
        self.url = resolver
        return self

    def with_image(self, image: Union[ImageResolver, str], then: Optional[Callable[[Image, Any], Any]] = None) -> "Column":
        if isinstance(image, str):
            path = image

            def resolver(item: Any, instance: Image) -> Any:
                return instance.to(data_get(item, path))

        else:
            resolver = image

        def combined(item: Any, instance: Image) -> Any:
            result = resolver(item, instance)
            if then is not None:
                then(instance, item)
            return result

        self.image = combined
        return self

    def set_truncate(self, value: Optional[int] = 1) -> "Column":
        self.truncate = value
        self.wrap = True
        return self

    # ----------------------------
    # State
    # ----------------------------
    @property
    def is_nested(self) -> bool:
        return "." in self.attribute and not self.attribute.startswith("pivot.")

    @property
    def relationship_name(self) -> str:
        return self.attribute.rpartition(".")[0]

    @property
    def relationship_column(self) -> str:
        return self.attribute.rpartition(".")[2]

    def is_visible(self) -> bool:
        return not self.toggleable or self.visible

    def is_stickable(self) -> bool:
        if self.stickable is not None:
            return self.stickable
        return bool(self.table and self.table.get_config().columns_stickable)

    def should_be_exported(self) -> bool:
        return self.export_as is not False

    def has_url(self) -> bool:
        return self.url is not None

    def has_image(self) -> bool:
        return self.image is not None

    def is_(self, other: Optional["Column"]) -> bool:
        return isinstance(other, Column) and (other is self or other.to_dict() == self.to_dict())

    # ----------------------------
    # Sorting
    # ----------------------------
    def apply_sort(self, query: TableQuery, direction: SortDirection) -> None:
        if self.sort_using is not None:
            self.sort_using(query, direction)
            return

        if self.is_nested:
            related = query.join_relation(self.relationship_name)
            query.order_by(getattr(related, self.relationship_column), direction)
        else:
            query.order_by(self.attribute, direction)
        log.debug("Sorted by %s %s", self.attribute, direction.value)

    # ----------------------------
    # Values
    # ----------------------------
    def map_value(self, value: Any, table: "Table", source: Any = None) -> Any:
        return value

    def map_for_table(self, value: Any, table: "Table", source: Any = None) -> Any:
        if isinstance(self.map_as, Mapping):
            key = value.value if isinstance(value, Enum) else value
            return None if key is None else self.map_as.get(key)

        if callable(self.map_as):
            return self.map_as(value, source)

        return self.map_value(value, table, source)

    def map_for_export(self, value: Any, table: "Table", source: Any = None) -> Any:
        if callable(self.export_as):
            return self.export_as(value, source, table)
        return self.map_for_table(value, table, source)

    def get_data_from_item(self, item: Any) -> Any:
        if self.is_nested:
            results = data_get(item, self.relationship_name)
            if isinstance(results, (list, tuple, set)):
                return [getattr(result, self.relationship_column, None) for result in results]
        return data_get(item, self.attribute)

    def resolve_url(self, item: Any) -> Union[str, Dict[str, Any], None]:
        return Url.resolve(item, self.url)

    def resolve_image(self, item: Any) -> Optional[Dict[str, Any]]:
        return Image.resolve(item, self.image)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "header": self.header,
            "attribute": self.attribute,
            "sortable": self.sortable,
            "toggleable": self.toggleable,
            "alignment": self.alignment.value,
            "visibleByDefault": self.is_visible(),
            "meta": self.meta,
            "wrap": self.wrap,
            "truncate": self.truncate,
            "headerClass": self.header_class,
            "cellClass": self.cell_class,
            "stickable": self.is_stickable(),
        }


class TextColumn(Column):
    type = ColumnType.text


class NumericColumn(Column):
    type = ColumnType.numeric

    def __init__(self, attribute: str, header: Optional[str] = None, **kwargs: Any) -> None:
        kwargs.setdefault("alignment", ColumnAlignment.right)
        super().__init__(attribute, header, **kwargs)