# File: /tablekit/tables/action.py | Version: 1.0 | Title: Row and bulk actions
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Union

from tablekit.tables.enums import ActionStyle, ActionType, Variant
from tablekit.tables.exceptions import NoBulkAction
from tablekit.tables.helpers import format_data_attributes
from tablekit.tables.url import Url, UrlResolver

if TYPE_CHECKING:
    from tablekit.tables.table import Table

log = logging.getLogger(__name__)

Authorizer = Union[bool, Callable[..., bool]]
RowPredicate = Union[bool, Callable[[Any], bool]]
KeysCallback = Callable[[List[Any]], Any]
RowHandler = Callable[[Any], Any]

_STYLE_VARIANTS = {
    ActionStyle.link: Variant.default,
    ActionStyle.button: Variant.default,
    ActionStyle.primary_button: Variant.info,
    ActionStyle.danger_button: Variant.destructive,
}


def style_to_type(style: ActionStyle) -> ActionType:
    return ActionType.link if style is ActionStyle.link else ActionType.button


def is_authorized(authorize: Authorizer, request: Any = None) -> bool:
    """Callables receive the current request, or None while the table is rendered."""
    if callable(authorize):
        return bool(authorize(request))
    return bool(authorize)


class Action:
    """
    One entry in the row/bulk action menu.

    An action is a *link* when it has a ``url`` resolver, a server *action*
    when it has ``before``/``handle``/``after`` callbacks, and *custom*
    (handled entirely by the client) otherwise.
    """

    def __init__(
        self,
        label: str,
        url: Optional[UrlResolver] = None,
        handle: Optional[RowHandler] = None,
        style: Optional[ActionStyle] = None,
        as_row_action: bool = True,
        as_bulk_action: bool = False,
        authorize: Authorizer = True,
        before: Optional[KeysCallback] = None,
        after: Optional[KeysCallback] = None,
        chunk_size: int = 1000,
        each_by_id: bool = True,
        confirmation_required: bool = False,
        confirmation_title: str = "Confirm action",
        confirmation_message: str = "Are you sure you want to perform this action?",
        confirmation_confirm_button: str = "Yes",
        confirmation_cancel_button: str = "Cancel",
        show_label: bool = True,
        icon: Optional[str] = None,
        data_attributes: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None,
        download_url: Optional[UrlResolver] = None,
        as_download: Optional[bool] = None,
        disabled: RowPredicate = False,
        hidden: RowPredicate = False,
        disabled_and_hidden: Optional[RowPredicate] = None,
        id: Union[int, str, None] = None,
        variant: Optional[Variant] = None,
        type: Optional[ActionType] = None,
        button_class: Optional[str] = None,
        link_class: Optional[str] = None,
    ) -> None:
        url = url or download_url
        self.label = label
        self.url = url
        self.handle_using = handle
        self.style = style or (ActionStyle.link if url is not None else ActionStyle.button)
        self.as_row_action = as_row_action
        self.as_bulk_action = as_bulk_action
        self.authorize = authorize
        self.before = before
        self.after = after
        self.chunk_size = chunk_size
        self.each_by_id = each_by_id
        self.confirmation_required = confirmation_required
        self.confirmation_title = confirmation_title
        self.confirmation_message = confirmation_message
        self.confirmation_confirm_button = confirmation_confirm_button
        self.confirmation_cancel_button = confirmation_cancel_button
        self.show_label = show_label
        self.icon = icon
        self.data_attributes = data_attributes
        self.meta = meta
        self.as_download = download_url is not None if as_download is None else as_download
        self.disabled = disabled if disabled_and_hidden is None else disabled_and_hidden
        self.hidden = hidden if disabled_and_hidden is None else disabled_and_hidden
        self.id = id
        self.variant = variant or _STYLE_VARIANTS[self.style]
        self.type = type or style_to_type(self.style)
        self.button_class = button_class
        self.link_class = link_class
        self.index: Optional[int] = None
        self.table: Optional["Table"] = None

    # ----------------------------
    # Binding
    # ----------------------------
    def set_index(self, index: int) -> "Action":
        self.index = index
        return self

    def set_table(self, table: "Table") -> "Action":
        self.table = table
        return self

    # ----------------------------
    # Kind
    # ----------------------------
    def is_action(self) -> bool:
        return self.before is not None or self.handle_using is not None or self.after is not None

    def is_link(self) -> bool:
        return self.url is not None

    def is_custom(self) -> bool:
        return not self.is_action() and not self.is_link()

    def is_bulk_actionable(self) -> bool:
        return not self.is_link() and self.as_bulk_action

    def is_authorized(self, request: Any = None) -> bool:
        return is_authorized(self.authorize, request)

    # ----------------------------
    # Appearance
    # ----------------------------
    def as_button(self, variant_or_class: Union[Variant, str, None] = None) -> "Action":
        self.style = ActionStyle.button
        self.type = ActionType.button
        if isinstance(variant_or_class, Variant):
            self.variant = variant_or_class
        elif isinstance(variant_or_class, str):
            self.button_class = variant_or_class
        return self

    def as_danger_button(self) -> "Action":
        self.as_button(Variant.destructive)
        self.style = ActionStyle.danger_button
        return self

    def as_primary_button(self) -> "Action":
        self.as_button(Variant.info)
        self.style = ActionStyle.primary_button
        return self

    def as_link(self, variant_or_class: Union[Variant, str, None] = None) -> "Action":
        self.style = ActionStyle.link
        self.type = ActionType.link
        if isinstance(variant_or_class, Variant):
            self.variant = variant_or_class
        elif isinstance(variant_or_class, str):
            self.link_class = variant_or_class
        return self

    def set_variant(self, variant: Variant) -> "Action":
        self.variant = variant
        return self

    def confirm(
        self,
        title: str = "Confirm action",
        message: str = "Are you sure you want to perform this action?",
        confirm_button: str = "Yes",
        cancel_button: str = "Cancel",
    ) -> "Action":
        self.confirmation_required = True
        self.confirmation_title = title
        self.confirmation_message = message
        self.confirmation_confirm_button = confirm_button
        self.confirmation_cancel_button = cancel_button
        return self

    def only_as_bulk_action(self) -> "Action":
        self.as_bulk_action = True
        self.as_row_action = False
        return self

    # ----------------------------
    # Per-row state
    # ----------------------------
    def is_disabled(self, model: Any = None) -> bool:
        return self.disabled if isinstance(self.disabled, bool) else bool(self.disabled(model))

    def is_hidden(self, model: Any = None) -> bool:
        return self.hidden if isinstance(self.hidden, bool) else bool(self.hidden(model))

    def resolve_url(self, item: Any) -> Union[str, Dict[str, Any], None]:
        return Url.resolve(item, self.url)

    def get_action_url(self) -> str:
        return self.table.signed_url("action", self.index, self.table.current_query_items())

    # ----------------------------
    # Execution
    # ----------------------------
    def handle(self, keys: Sequence[Any]) -> Any:
        """Run the action for ``keys`` (``["*"]`` means every filtered row) in one transaction."""
        if self.disabled is True:
            return None

        keys = list(keys)
        if not keys:
            log.info("Action %r called without keys; nothing to do", self.label)
            return None
        all_selected = len(keys) == 1 and keys[0] == "*"
        multiple = all_selected or len(keys) > 1
        if multiple and not self.is_bulk_actionable():
            raise NoBulkAction(self.label)

        table = self.table
        session = table.get_session()
        query_builder = table.query_builder()
        if all_selected:
            query = query_builder.get_resource_with_request_applied(apply_sort=False)
        else:
            query = query_builder.get_resource()
            table.scope_primary_key(query, keys)

        log.info("Running action %r on %s (%d keys)", self.label, type(table).__name__, len(keys))
        try:
            result = None
            if self.before is not None:
                result = self.before(keys)

            if self.handle_using is not None:
                rows = query.each_by_id(self.chunk_size) if self.each_by_id else query.each(self.chunk_size)
                for model in rows:
                    if self.is_disabled(model):
                        continue
                    if multiple and not table.is_selectable(model):
                        continue
                    result = self.handle_using(model)

            if self.after is not None:
                result = self.after(keys)
            session.commit()
        except Exception:
            session.rollback()
            log.exception("Action %r failed; rolled back", self.label)
            raise
        return result

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "style": self.style.value,
            "label": self.label,
            "isAction": self.is_action(),
            "isCustom": self.is_custom(),
            "isLink": self.is_link(),
            "asDownload": self.as_download,
            "asRowAction": self.as_row_action,
            "asBulkAction": self.is_bulk_actionable(),
            "confirmationRequired": self.confirmation_required,
            "authorized": self.is_authorized(),
            "url": self.get_action_url() if self.is_action() else None,
        }
        if self.confirmation_required:
            data.update(
                {
                    "confirmationTitle": self.confirmation_title,
                    "confirmationMessage": self.confirmation_message,
                    "confirmationConfirmButton": self.confirmation_confirm_button,
                    "confirmationCancelButton": self.confirmation_cancel_button,
                }
            )
        data.update(
            {
                "icon": self.icon,
                "showLabel": self.show_label,
                "dataAttributes": format_data_attributes(self.data_attributes),
                "meta": self.meta,
                "id": self.id,
                "variant": self.variant.value,
                "type": self.type.value,
                "buttonClass": self.button_class,
                "linkClass": self.link_class,
            }
        )
        return data
