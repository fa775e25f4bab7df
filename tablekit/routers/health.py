# File: tablekit/routers/health.py | Version: 2.0 | Title: Health & readiness endpoints
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from tablekit.db.session import engine

router = APIRouter(tags=["Health"])


@router.get("/healthz")
def healthz() -> dict:
    """
    Liveness probe: returns 200 if the app can serve requests.
    """
    return {"status": "ok"}


@router.get("/readyz")
def readyz():
    """
    Readiness probe: 200 if the database answers SELECT 1, else 503.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        return JSONResponse({"status": "degraded", "db": "error", "detail": type(exc).__name__}, status_code=503)
    return {"status": "ok", "db": "ok"}
