# File: /tablekit/core/error_handlers.py | Version: 2.0 | Title: Table error mapping + standardized error handlers (optional)
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tablekit.tables.exceptions import (
    InvalidClientState,
    InvalidSignature,
    NoBulkAction,
    TableError,
    Unauthorized,
)

log = logging.getLogger(__name__)

_CODE_MAP = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_SERVER_ERROR",
}


def _err(code: int, message: str):
    return {"error": {"code": _CODE_MAP.get(code, "ERROR"), "message": message}}


def table_error_status(exc: TableError) -> int:
    if isinstance(exc, (InvalidSignature, Unauthorized)):
        return 403
    if isinstance(exc, InvalidClientState):
        return 404
    if isinstance(exc, NoBulkAction):
        return 400
    return 500


def register_table_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TableError)
    async def _table_exc(req: Request, exc: TableError):
        status_code = table_error_status(exc)
        if status_code >= 500:
            log.error("Table configuration error on %s: %s", req.url.path, exc)
            message = "Internal server error"
        else:
            log.warning("Rejected table request on %s: %s", req.url.path, exc)
            message = str(exc)
        return JSONResponse(status_code=status_code, content=_err(status_code, message))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_exc(_req: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code, content=_err(exc.status_code, str(exc.detail))
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(_req: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content=_err(422, "Validation error"))

    @app.exception_handler(Exception)
    async def _unhandled(_req: Request, exc: Exception):
        # Avoid leaking internals
        return JSONResponse(status_code=500, content=_err(500, "Internal server error"))
