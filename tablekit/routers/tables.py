# File: /tablekit/routers/tables.py | Version: 1.0 | Title: Signed action / export / saved-view endpoints
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session
from starlette.responses import Response

from tablekit.core.config import settings
from tablekit.db.session import get_db
from tablekit.schemas.table import ActionPayload, ExportPayload, StoreViewPayload
from tablekit.security import get_current_user_id, require_signature
from tablekit.tables.exceptions import Unauthorized
from tablekit.tables.export import Export
from tablekit.tables.state import RequestSnapshot, resolve_table_class
from tablekit.tables.table import Table
from tablekit.tables.views import Views

log = logging.getLogger(__name__)

router = APIRouter(prefix=settings.TABLE_ROUTE_PREFIX, tags=["Tables"])

EXPORT_SIGNATURE_IGNORE = ("keys",)


# ----------------------------
# Helpers
# ----------------------------
def _resolve_table(
    table: str,
    name: str,
    state: Optional[str],
    request: Request,
    db: Session,
    user_id: Optional[str],
    body: Optional[Dict[str, Any]] = None,
) -> Table:
    cls = resolve_table_class(table)
    instance = cls.from_encrypted_state(state, db) if cls.remember else cls()
    instance.set_session(db).set_user(user_id)
    return instance.as_(name).set_request(RequestSnapshot.from_request(request, body))


def _resolve_export(table: Table, export: int, request: Request) -> Export:
    found = table.get_export_by_id(export)
    if found is None:
        raise HTTPException(status_code=404, detail="Export not found")
    if not found.is_authorized(request):
        raise Unauthorized()
    return found


def _resolve_views(table: Table) -> Views:
    views = table.build_views()
    if views is None:
        raise HTTPException(status_code=403, detail="Views are not enabled for this table.")
    return views


def _export_response(export: Export) -> Any:
    if export.queue_enabled:
        export.dispatch_job()
        return JSONResponse(export.dialog())

    if export.using is not None:
        result = export.execute_using_callback()
        if isinstance(result, Response) or export.as_download:
            return result
        return JSONResponse(export.dialog(with_redirect=False))

    return export.download()


# ----------------------------
# Actions
# ----------------------------
@router.post("/{table}/{name}/action/{action}")
@router.post("/{table}/{name}/action/{action}/{state}")
def run_action(
    table: str,
    name: str,
    action: int,
    request: Request,
    payload: Optional[ActionPayload] = None,
    state: Optional[str] = None,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    require_signature(request)
    payload = payload or ActionPayload()
    instance = _resolve_table(table, name, state, request, db, user_id, payload.model_dump(by_alias=True))

    found = instance.get_action_by_id(action)
    if found is None:
        raise HTTPException(status_code=404, detail="Action not found")
    if not found.is_authorized(request):
        raise Unauthorized()

    result = found.handle(payload.keys)

    if isinstance(result, RedirectResponse):
        target = result.headers.get("location")
    else:
        target = request.headers.get("referer") or "/"

    if payload.json_response:
        return {"target_url": target, "targetUrl": target}
    return result if isinstance(result, RedirectResponse) else RedirectResponse(target, status_code=303)


# ----------------------------
# Exports
# ----------------------------
@router.get("/{table}/{name}/export/{export}")
@router.get("/{table}/{name}/export/{export}/{state}")
def download_export(
    table: str,
    name: str,
    export: int,
    request: Request,
    state: Optional[str] = None,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    require_signature(request, EXPORT_SIGNATURE_IGNORE)
    instance = _resolve_table(table, name, state, request, db, user_id)
    return _export_response(_resolve_export(instance, export, request))


@router.post("/{table}/{name}/async-export/{export}")
@router.post("/{table}/{name}/async-export/{export}/{state}")
def queue_export(
    table: str,
    name: str,
    export: int,
    request: Request,
    payload: Optional[ExportPayload] = None,
    state: Optional[str] = None,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    require_signature(request, EXPORT_SIGNATURE_IGNORE)
    body = payload.model_dump() if payload is not None and payload.keys else None
    instance = _resolve_table(table, name, state, request, db, user_id, body)
    return _export_response(_resolve_export(instance, export, request))


# ----------------------------
# Saved views
# ----------------------------
@router.post("/{table}/{name}/view")
@router.post("/{table}/{name}/view/{state}")
def store_view(
    table: str,
    name: str,
    request: Request,
    payload: StoreViewPayload,
    state: Optional[str] = None,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    require_signature(request)
    instance = _resolve_table(table, name, state, request, db, user_id)
    views = _resolve_views(instance)
    views.store(payload.name, payload.title, payload.query)
    return views.to_dict()


@router.delete("/{table}/{name}/view/{key}")
@router.delete("/{table}/{name}/view/{key}/{state}")
def delete_view(
    table: str,
    name: str,
    key: str,
    request: Request,
    state: Optional[str] = None,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    require_signature(request)
    instance = _resolve_table(table, name, state, request, db, user_id)
    views = _resolve_views(instance)
    views.delete(key)
    return views.to_dict()
