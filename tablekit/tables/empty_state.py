# File: /tablekit/tables/empty_state.py | Version: 1.0 | Title: Placeholder shown for an empty table in default state
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Union

from tablekit.tables.enums import Variant
from tablekit.tables.helpers import format_data_attributes
from tablekit.tables.url import Url


class EmptyStateAction:
    def __init__(
        self,
        label: str,
        url: Union[str, Callable[[Url], Optional[Url]]],
        variant: Variant = Variant.info,
        button_class: Optional[str] = None,
        icon: Optional[str] = None,
        data_attributes: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.label = label
        self.url = url
        self.variant = variant
        self.button_class = button_class
        self.icon = icon
        self.data_attributes = data_attributes
        self.meta = meta

    def resolve_url(self) -> Url:
        if isinstance(self.url, str):
            return Url(self.url)
        url = Url()
        return self.url(url) or url

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "url": self.resolve_url().to_dict(),
            "variant": self.variant.value,
            "buttonClass": self.button_class,
            "icon": self.icon,
            "dataAttributes": format_data_attributes(self.data_attributes),
            "meta": self.meta,
        }


class EmptyState:
    def __init__(
        self,
        title: str = "No results found",
        message: Optional[str] = None,
        icon: Union[bool, str] = True,
        actions: Optional[List[EmptyStateAction]] = None,
        data_attributes: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.title = title
        self.message = message
        self.icon = icon
        self.actions = list(actions or [])
        self.data_attributes = data_attributes
        self.meta = meta

    def action(self, label: str, url, **kwargs: Any) -> "EmptyState":
        self.actions.append(EmptyStateAction(label, url, **kwargs))
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "message": self.message,
            "icon": self.icon,
            "actions": [action.to_dict() for action in self.actions],
            "dataAttributes": format_data_attributes(self.data_attributes),
            "meta": self.meta,
        }
