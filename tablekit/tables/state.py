# File: /tablekit/tables/state.py | Version: 1.1 | Title: Request snapshots, table class registry and encrypted remembered state
from __future__ import annotations

import base64
import binascii
import gzip
import importlib
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session

from tablekit.security import decrypt_payload, encrypt_payload
from tablekit.tables.exceptions import AnonymousTable, InvalidState, InvalidTableClass
from tablekit.tables.helpers import build_nested_query, parse_nested_query

if TYPE_CHECKING:
    from starlette.requests import Request

    from tablekit.tables.table import Table

log = logging.getLogger(__name__)


# ----------------------------
# Request snapshot
# ----------------------------
@dataclass
class RequestSnapshot:
    """The parts of an HTTP request a table reads, in a form that survives a queue hop."""

    VERSION: ClassVar[int] = 1

    path: str = "/"
    query: List[Tuple[str, str]] = field(default_factory=list)
    body: Dict[str, Any] = field(default_factory=dict)
    locale: Optional[str] = None

    @classmethod
    def from_request(cls, request: "Request", body: Optional[Mapping[str, Any]] = None) -> "RequestSnapshot":
        language = request.headers.get("accept-language") or ""
        locale = language.split(",")[0].split(";")[0].strip() or None
        return cls(
            path=request.url.path,
            query=list(request.query_params.multi_items()),
            body=dict(body or {}),
            locale=locale,
        )

    @classmethod
    def from_query_data(cls, data: Mapping[str, Any], path: str = "/") -> "RequestSnapshot":
        return cls(path=path, query=build_nested_query(data))

    def query_data(self) -> Dict[str, Any]:
        return parse_nested_query(self.query)

    def input(self, key: str, default: Any = None) -> Any:
        """Body first, then top-level query data."""
        if key in self.body:
            return self.body[key]
        return self.query_data().get(key, default)

    def to_snapshot(self) -> Dict[str, Any]:
        return {
            "version": self.VERSION,
            "path": self.path,
            "query": [list(pair) for pair in self.query],
            "body": self.body,
            "locale": self.locale,
        }

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "RequestSnapshot":
        if data.get("version") != cls.VERSION:
            raise InvalidState(f"Unsupported request snapshot version: {data.get('version')!r}")
        return cls(
            path=data.get("path") or "/",
            query=[(str(k), str(v)) for k, v in data.get("query") or []],
            body=dict(data.get("body") or {}),
            locale=data.get("locale"),
        )


# ----------------------------
# JSON value codec
# ----------------------------
def _import_qualified(name: str) -> Any:
    module_name, _, qualname = name.partition(":")
    target: Any = importlib.import_module(module_name)
    for part in qualname.split("."):
        target = getattr(target, part)
    return target


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}:{cls.__qualname__}"


def to_jsonable(value: Any) -> Any:
    """Encode a value for JSON; mapped instances are stored by identity, not by content."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return {"__datetime__": value.isoformat()}
    if isinstance(value, date):
        return {"__date__": value.isoformat()}
    if isinstance(value, Decimal):
        return {"__decimal__": str(value)}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    mapper = sa_inspect(type(value), raiseerr=False)
    if mapper is not None and hasattr(mapper, "primary_key_from_instance"):
        key = mapper.primary_key_from_instance(value)
        return {"__model__": qualified_name(type(value)), "key": to_jsonable(key[0] if len(key) == 1 else list(key))}
    return value


def from_jsonable(value: Any, session: Optional[Session] = None) -> Any:
    if isinstance(value, list):
        return [from_jsonable(v, session) for v in value]
    if not isinstance(value, dict):
        return value
    if "__datetime__" in value:
        return datetime.fromisoformat(value["__datetime__"])
    if "__date__" in value:
        return date.fromisoformat(value["__date__"])
    if "__decimal__" in value:
        return Decimal(value["__decimal__"])
    if "__model__" in value:
        return _restore_model(value, session)
    return {k: from_jsonable(v, session) for k, v in value.items()}


def _restore_model(value: Dict[str, Any], session: Optional[Session]) -> Any:
    if session is None:
        raise InvalidState("A session is required to restore a model from state.")
    try:
        model = _import_qualified(value["__model__"])
    except (ImportError, AttributeError, ValueError) as exc:
        raise InvalidState() from exc
    if sa_inspect(model, raiseerr=False) is None:
        raise InvalidState()
    key = from_jsonable(value.get("key"))
    instance = session.get(model, tuple(key) if isinstance(key, list) else key)
    if instance is None:
        raise InvalidState(f"{model.__name__} {key!r} no longer exists.")
    return instance


# ----------------------------
# Table class registry
# ----------------------------
_tables: Dict[str, Type["Table"]] = {}


def register_table(cls: Type["Table"]) -> None:
    _tables[qualified_name(cls)] = cls


def encode_table_class(cls: Type["Table"]) -> str:
    if "<locals>" in cls.__qualname__:
        raise AnonymousTable()
    raw = qualified_name(cls).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def resolve_table_class(encoded: str) -> Type["Table"]:
    from tablekit.tables.table import Table

    try:
        name = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4)).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise InvalidTableClass(encoded) from None

    if "<locals>" in name:
        raise AnonymousTable()

    cls = _tables.get(name)
    if cls is None:
        log.warning("Unregistered table class requested: %s", name)
        raise InvalidTableClass(name)

    if not isinstance(cls, type) or not issubclass(cls, Table) or cls is Table:
        raise InvalidTableClass(name)
    if cls.anonymous:
        raise AnonymousTable()
    return cls


# ----------------------------
# Remembered constructor state
# ----------------------------
def serialize_state(params: Mapping[str, Any]) -> Optional[str]:
    if not params:
        return None
    return json.dumps({k: to_jsonable(v) for k, v in params.items()}, sort_keys=True, separators=(",", ":"))


def encrypt_state(serialized: Optional[str]) -> str:
    if not serialized:
        return ""
    return encrypt_payload(gzip.compress(serialized.encode("utf-8"), compresslevel=9))


def decrypt_state(token: Optional[str], required: Tuple[str, ...], session: Optional[Session] = None) -> Dict[str, Any]:
    """Decrypt a state token; its keys must match ``required`` exactly."""
    if not token:
        raise InvalidState()
    try:
        state = json.loads(gzip.decompress(decrypt_payload(token)).decode("utf-8"))
    except (ValueError, OSError, EOFError) as exc:
        log.warning("Rejected table state token: %s", exc)
        raise InvalidState() from exc

    if not isinstance(state, dict) or len(state) != len(required) or set(state) != set(required):
        log.warning("Rejected table state token: parameters %s do not match %s", sorted(state) if isinstance(state, dict) else state, sorted(required))
        raise InvalidState()

    return {k: from_jsonable(v, session) for k, v in state.items()}
