# File: /tablekit/tables/helpers.py | Version: 1.1 | Title: Small shared helpers (query strings, labels, html attrs)
from __future__ import annotations

import math
import re
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

_TRUE_STRINGS = {"1", "true", "yes", "y", "on"}
_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\]]*\])*)$")
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def is_blank(value: Any) -> bool:
    """None, whitespace-only strings and empty containers are blank; 0 and False are not."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in _TRUE_STRINGS


def is_numeric(value: Any) -> bool:
    """Plain decimal literals only: no ``nan``/``inf``, no underscores, no hex."""
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, int):
        return True
    if isinstance(value, str):
        return _NUMBER_RE.match(value.strip()) is not None
    return False


def to_number(value: Any) -> Union[int, float, Decimal]:
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        return float(text)


def enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def headline(value: str) -> str:
    """'created_at' -> 'Created At', 'company.name' -> 'Company Name', 'isActive' -> 'Is Active'."""
    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", value)
    words = [w for w in re.split(r"[\s_\-.]+", spaced) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)


def kebab(value: str) -> str:
    value = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "-", value.strip())
    return re.sub(r"\s+", "-", value).lower()


def slugify(value: str) -> str:
    value = re.sub(r"[^\w\s-]", "", value.lower())
    return re.sub(r"[\s_-]+", "-", value).strip("-")


def data_get(target: Any, path: str, default: Any = None) -> Any:
    """Dotted lookup through attributes and mapping keys."""
    current = target
    for segment in path.split("."):
        if current is None:
            return default
        if isinstance(current, Mapping):
            if segment not in current:
                return default
            current = current[segment]
        else:
            current = getattr(current, segment, default)
    return current


# ----------------------------
# Bracketed query strings
# ----------------------------
def _split_key(key: str) -> List[str]:
    match = _KEY_RE.match(key)
    if not match:
        return [key]
    return [match.group(1)] + re.findall(r"\[([^\]]*)\]", match.group(2))


def _listify(node: Any) -> Any:
    if isinstance(node, dict):
        node = {k: _listify(v) for k, v in node.items()}
        keys = list(node.keys())
        if keys and keys == [str(i) for i in range(len(keys))]:
            return list(node.values())
    return node


def parse_nested_query(items: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """
    Parse ``filters[name][value][]=a`` style pairs into nested dicts.

    Dicts whose keys are exactly "0".."n-1" in insertion order become lists.
    """
    root: Dict[str, Any] = {}
    for key, value in items:
        segments = _split_key(key)
        node = root
        for index, segment in enumerate(segments):
            last = index == len(segments) - 1
            if segment == "":
                segment = str(len(node))
            if last:
                node[segment] = value
            else:
                child = node.get(segment)
                if not isinstance(child, dict):
                    child = {}
                    node[segment] = child
                node = child
    return _listify(root)


def build_nested_query(data: Mapping[str, Any], prefix: Optional[str] = None) -> List[Tuple[str, str]]:
    """Inverse of parse_nested_query; None values are dropped."""
    pairs: List[Tuple[str, str]] = []
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            pairs.extend(build_nested_query(value, name))
        elif isinstance(value, (list, tuple)):
            pairs.extend(build_nested_query({str(i): v for i, v in enumerate(value)}, name))
        elif isinstance(value, bool):
            pairs.append((name, "1" if value else "0"))
        else:
            pairs.append((name, str(enum_value(value))))
    return pairs


# ----------------------------
# Html
# ----------------------------
def format_data_attributes(data_attributes: Union[Mapping[Any, Any], List[str], None]) -> Optional[Dict[str, Any]]:
    if is_blank(data_attributes):
        return None
    if not isinstance(data_attributes, Mapping):
        data_attributes = dict(enumerate(data_attributes))
    formatted: Dict[str, Any] = {}
    for key, value in data_attributes.items():
        if isinstance(key, int):
            key, value = value, ""
        formatted["data-" + kebab(str(key))] = value
    return formatted


def format_css_class(css_class: Union[str, Iterable[str], None]) -> Optional[str]:
    if css_class is not None and not isinstance(css_class, str):
        seen: List[str] = []
        for item in css_class:
            item = item.strip()
            if item and item not in seen:
                seen.append(item)
        css_class = " ".join(seen)
    return None if is_blank(css_class) else css_class.strip()
