# File: /tablekit/tables/url.py | Version: 1.0 | Title: Url and Image resolvers for rows, columns and actions
"""
Resolvers are plain callables ``fn(item, instance)``. They may return a string
(used as-is) or configure the passed ``Url`` / ``Image`` instance in place.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Union

from tablekit.tables.enums import ImagePosition, ImageSize
from tablekit.tables.helpers import format_css_class, is_blank

UrlResolver = Callable[[Any, "Url"], Any]
ImageResolver = Callable[[Any, "Image"], Any]


class Url:
    def __init__(
        self,
        url: Optional[str] = None,
        preserve_scroll: bool = False,
        preserve_state: bool = False,
        open_in_new_tab: bool = False,
        as_download: Union[bool, str] = False,
        disabled: bool = False,
        hidden: bool = False,
        modal: Union[bool, Dict[str, Any]] = False,
    ) -> None:
        self.url = None if is_blank(url) else url
        self.preserve_scroll = preserve_scroll
        self.preserve_state = preserve_state
        self.open_in_new_tab = open_in_new_tab
        self.as_download = as_download
        self.disabled = disabled
        self.hidden = hidden
        self.modal = modal

    @classmethod
    def resolve(cls, item: Any, resolver: Optional[UrlResolver] = None) -> Union[str, Dict[str, Any], None]:
        if resolver is None:
            return None

        instance = cls()
        result = resolver(item, instance)
        if isinstance(result, str):
            return None if is_blank(result) else result
        if isinstance(result, Url):
            instance = result
        return instance.to_dict() if instance.is_dirty() else None

    def to(self, url: Optional[str] = None) -> "Url":
        self.url = None if is_blank(url) else url
        return self

    def set_preserve_scroll(self, value: bool = True) -> "Url":
        self.preserve_scroll = value
        return self

    def set_preserve_state(self, value: bool = True) -> "Url":
        self.preserve_state = value
        return self

    def set_open_in_new_tab(self, value: bool = True) -> "Url":
        self.open_in_new_tab = value
        return self

    def set_as_download(self, value: Union[bool, str] = True) -> "Url":
        self.as_download = value
        return self

    def set_disabled(self, value: bool = True) -> "Url":
        self.disabled = value
        return self

    def set_hidden(self, value: bool = True) -> "Url":
        self.hidden = value
        return self

    def set_modal(self, value: Union[bool, Dict[str, Any]] = True) -> "Url":
        self.modal = sanitize_modal(value) if isinstance(value, dict) else value
        return self

    def is_dirty(self) -> bool:
        return bool(
            self.url
            or self.preserve_scroll
            or self.preserve_state
            or self.open_in_new_tab
            or self.as_download
            or self.disabled
            or self.hidden
            or self.modal
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "preserveScroll": self.preserve_scroll,
            "preserveState": self.preserve_state,
            "openInNewTab": self.open_in_new_tab,
            "asDownload": self.as_download,
            "disabled": self.disabled,
            "hidden": self.hidden,
            "modal": self.modal,
        }


def sanitize_modal(options: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values and empty nested dicts from modal visit options."""
    result: Dict[str, Any] = {}
    for key, value in options.items():
        if isinstance(value, dict):
            nested = sanitize_modal(value)
            if nested:
                result[key] = nested
        elif value is not None:
            result[key] = value
    return result


class Image:
    def __init__(
        self,
        url: Union[str, List[str], None] = None,
        icon: Optional[str] = None,
        position: ImagePosition = ImagePosition.start,
        size: ImageSize = ImageSize.medium,
        rounded: bool = False,
        width: Optional[int] = None,
        height: Optional[int] = None,
        css_class: Optional[str] = None,
        alt: Optional[str] = None,
        title: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> None:
        self.url = None if is_blank(url) else url
        self.icon = icon
        self.position = position
        self.size = ImageSize.custom if (width is not None or height is not None) else size
        self.rounded = rounded
        self.width = width
        self.height = height
        self.css_class = css_class
        self.alt = alt
        self.title = title
        self.limit = limit

    @classmethod
    def resolve(cls, item: Any, resolver: Optional[ImageResolver] = None) -> Optional[Dict[str, Any]]:
        if resolver is None:
            return None

        instance = cls()
        result = resolver(item, instance)
        if isinstance(result, str):
            return None if is_blank(result) else cls(result).to_dict()
        if isinstance(result, Image):
            instance = result
        return instance.to_dict()

    def to(self, url: Union[str, List[str], None] = None) -> "Image":
        self.url = None if is_blank(url) else url
        return self

    def set_icon(self, icon: Optional[str] = None) -> "Image":
        self.icon = None if is_blank(icon) else icon
        return self

    def start(self) -> "Image":
        self.position = ImagePosition.start
        return self

    def end(self) -> "Image":
        self.position = ImagePosition.end
        return self

    def set_size(self, size: ImageSize) -> "Image":
        self.size = size
        if size is not ImageSize.custom:
            self.width = None
            self.height = None
        return self

    def small(self) -> "Image":
        return self.set_size(ImageSize.small)

    def medium(self) -> "Image":
        return self.set_size(ImageSize.medium)

    def large(self) -> "Image":
        return self.set_size(ImageSize.large)

    def extra_large(self) -> "Image":
        return self.set_size(ImageSize.extra_large)

    def set_rounded(self, rounded: bool = True) -> "Image":
        self.rounded = rounded
        return self

    def dimensions(self, width: Optional[int] = None, height: Optional[int] = None) -> "Image":
        self.width = width if width is not None else self.width
        self.height = height if height is not None else self.height
        if self.width is not None or self.height is not None:
            self.size = ImageSize.custom
        elif self.size is ImageSize.custom:
            self.size = ImageSize.medium
        return self

    def set_class(self, css_class) -> "Image":
        self.css_class = format_css_class(css_class)
        return self

    def set_alt(self, alt: Optional[str] = None) -> "Image":
        self.alt = None if is_blank(alt) else alt
        return self

    def set_title(self, title: Optional[str] = None) -> "Image":
        self.title = None if is_blank(title) else title
        return self

    def set_limit(self, limit: Optional[int] = None) -> "Image":
        self.limit = limit
        return self

    def to_dict(self) -> Dict[str, Any]:
        url, remaining = self.url, None
        if isinstance(url, list) and self.limit is not None:
            remaining = len(url) - self.limit if len(url) > self.limit else None
            url = url[: self.limit]

        data = {
            "url": url,
            "icon": self.icon,
            "position": self.position.value,
            "size": self.size.value,
            "rounded": self.rounded,
            "width": self.width,
            "height": self.height,
            "class": self.css_class,
            "alt": self.alt,
            "title": self.title,
            "remaining": remaining,
        }
        return {key: value for key, value in data.items() if value is not None}
