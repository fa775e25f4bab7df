# File: /tablekit/worker/tasks.py | Version: 1.1 | Title: Export job executed outside the request
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from tablekit.db import session as sessions
from tablekit.tables.state import RequestSnapshot, resolve_table_class
from tablekit.worker.celery_app import celery_app

log = logging.getLogger(__name__)


@celery_app.task(bind=True, name="tablekit.worker.tasks.run_export")
def run_export(
    self,
    table_class: str,
    name: str,
    state: Optional[str],
    request_snapshot: Dict[str, Any],
    export_index: int,
    disk: Optional[str] = None,
):
    """
    Rebuild the table from its encoded class, name and remembered state, then
    run the export at ``export_index`` against the captured request.
    """
    log.info("Running export %s of %s[%s] (task %s)", export_index, table_class, name, self.request.id)

    try:
        with sessions.session_scope() as db:
            cls = resolve_table_class(table_class)
            table = cls.from_encrypted_state(state, db) if cls.remember else cls()
            table.set_session(db)
            table.as_(name).set_request(RequestSnapshot.from_snapshot(request_snapshot))

            export = table.get_export_by_id(export_index)
            if export is None:
                raise LookupError(f"Export {export_index} does not exist on {cls.__name__}")

            result = export.run_in_worker(disk)
    except Exception:
        log.exception("Export %s of %s failed", export_index, table_class)
        raise

    log.info("Export %s of %s finished", export_index, table_class)
    return result if isinstance(result, (str, int, float, bool, list, dict, type(None))) else None
