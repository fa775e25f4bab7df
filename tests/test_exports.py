# File: /tests/test_exports.py | Version: 1.1 | Title: Spreadsheet exports, custom handlers and queued jobs
from __future__ import annotations

import csv
import io
import threading
from datetime import datetime

import pytest
from openpyxl import load_workbook
from starlette.responses import RedirectResponse

from sample_app import Tag, UsersTable, make_user
from tablekit.tables import Export, ExportType, NumericColumn, RequestSnapshot, TextColumn, configure_tables
from tablekit.tables.exceptions import MissingExportDestination
from tablekit.tables.exporter import Exporter

HEADINGS = ["Name", "Email", "Age", "Active", "Status", "Company", "Tags", "Created At"]


def _table(db, *pairs, body=None):
    return UsersTable(db).set_request(RequestSnapshot(path="/users", query=list(pairs), body=body or {}))


def _csv_rows(content: bytes):
    return list(csv.reader(io.StringIO(content.decode("utf-8"))))


def _seed(db):
    tag = Tag(name="x")
    db.add(tag)
    db.flush()
    make_user(db, "Ann", age=30, status="active", tags=[tag], created_at=datetime(2024, 1, 2, 9, 0))
    make_user(db, "Bob", age=40, is_active=False, created_at=datetime(2024, 1, 3, 9, 0))


# ----------------------------
# Writers
# ----------------------------
def test_csv_export_maps_values_for_export(db_session):
    _seed(db_session)

    content = Exporter(_table(db_session), "users.csv", ExportType.csv).to_bytes()
    header, ann, bob = _csv_rows(content)

    assert header == HEADINGS
    assert ann == ["Ann", "ann@example.com", "30", "Yes", "active", "", "x", "2024-01-02"]
    assert bob == ["Bob", "bob@example.com", "40", "No", "", "", "", "2024-01-03"]


def test_xlsx_export_has_a_bold_filtered_header(db_session):
    _seed(db_session)

    content = Exporter(_table(db_session), "users.xlsx").to_bytes()
    sheet = load_workbook(io.BytesIO(content)).active

    assert [cell.value for cell in sheet[1]] == HEADINGS
    assert all(cell.font.bold for cell in sheet[1])
    assert sheet.auto_filter.ref == "A1:H1"
    assert sheet.max_row == 3
    assert sheet["A2"].value == "Ann"
    assert sheet["C3"].value == 40


def test_column_export_options(db_session):
    make_user(db_session, "Ann", age=30)

    class ExportOptionsTable(UsersTable):
        def columns(self):
            return [
                TextColumn("name", export_as=lambda value, user, table: value.upper()),
                TextColumn("email").dont_export(),
                NumericColumn("age", export_format="0.00", export_style={"font": {"italic": True}}),
            ]

    seen = []
    table = ExportOptionsTable(db_session).set_request(RequestSnapshot())
    exporter = Exporter(table, "users.xlsx", events=[lambda sheet: seen.append(sheet.title)])
    sheet = load_workbook(io.BytesIO(exporter.to_bytes())).active

    assert [cell.value for cell in sheet[1]] == ["Name", "Age"]
    assert sheet["A2"].value == "ANN"
    assert sheet["B2"].number_format == "0.00"
    assert sheet["B2"].font.italic is True
    assert seen == ["Sheet"]


# ----------------------------
# Row scoping
# ----------------------------
def test_selected_rows_come_from_the_request_keys(db_session):
    ann = make_user(db_session, "Ann")
    make_user(db_session, "Bob")

    table = _table(db_session, body={"keys": [ann.id]})
    rows = _csv_rows(Exporter(table, "u.csv", ExportType.csv, limit_to_selected_rows=True).to_bytes())
    assert [row[0] for row in rows[1:]] == ["Ann"]


def test_empty_selection_exports_everything(db_session):
    make_user(db_session, "Ann")
    make_user(db_session, "Bob")

    table = _table(db_session, body={"keys": []})
    rows = _csv_rows(Exporter(table, "u.csv", ExportType.csv, limit_to_selected_rows=True).to_bytes())
    assert [row[0] for row in rows[1:]] == ["Ann", "Bob"]


def test_filtered_rows_follow_the_request(db_session):
    make_user(db_session, "John")
    make_user(db_session, "Mary")

    table = _table(db_session, ("search", "john"))
    filtered = _csv_rows(Exporter(table, "u.csv", ExportType.csv, limit_to_filtered_rows=True).to_bytes())
    everything = _csv_rows(Exporter(table, "u.csv", ExportType.csv).to_bytes())

    assert [row[0] for row in filtered[1:]] == ["John"]
    assert [row[0] for row in everything[1:]] == ["John", "Mary"]


def test_export_response_headers(db_session):
    response = _table(db_session).get_export_by_id(1).download()
    assert response.media_type == "text/csv"
    assert response.headers["content-disposition"] == 'attachment; filename="users.csv"'


# ----------------------------
# Descriptor
# ----------------------------
def test_queued_export_without_destination_is_a_configuration_error(db_session):
    configure_tables(export_disk=None)
    export = _table(db_session).get_export_by_id(2)

    with pytest.raises(MissingExportDestination):
        export.to_dict()


def test_limits_default_to_the_registry(db_session):
    configure_tables(export_limit_to_selected_rows=True)
    table = _table(db_session)

    assert table.get_export_by_id(0).limits_to_selected_rows is True
    assert table.get_export_by_id(1).limits_to_filtered_rows is True
    assert table.get_export_by_id(0).limits_to_filtered_rows is False


def test_dialog_blanks_become_none():
    export = Export("Queued", queue=True).redirect_back_with_dialog("  ", "Working on it", redirect="/done")
    assert export.dialog() == {"dialogTitle": None, "dialogMessage": "Working on it", "targetUrl": "/done"}
    assert export.dialog(with_redirect=False)["targetUrl"] is None


def test_redirect_accepts_callables_and_responses():
    assert Export(redirect=lambda: "/later").resolve_redirect() == "/later"
    assert Export(redirect=lambda: RedirectResponse("/elsewhere")).resolve_redirect() == "/elsewhere"
    assert Export().resolve_redirect() is None


def test_store_writes_to_a_configured_disk(db_session, monkeypatch, tmp_path):
    from tablekit.core.config import settings

    make_user(db_session, "Ann")
    monkeypatch.setattr(settings, "EXPORT_DISKS", {"local": str(tmp_path)})

    path = Exporter(_table(db_session), "nested/users.csv", ExportType.csv).store("local")
    assert path == tmp_path / "nested" / "users.csv"
    assert path.read_text().startswith("Name,Email")

    with pytest.raises(MissingExportDestination):
        Exporter(_table(db_session), "users.csv").store("s3")


def test_using_callback_receives_the_scoped_query(db_session):
    make_user(db_session, "John")
    make_user(db_session, "Mary")
    received = {}

    def using(table, export, request, query):
        received["names"] = sorted(user.name for user in query.get())
        received["request"] = request
        return {"ok": True}

    table = _table(db_session, ("search", "mary"))
    export = Export("Custom", using=using, limit_to_filtered_rows=True).set_index(9).set_table(table)

    assert export.execute_using_callback() == {"ok": True}
    assert received["names"] == ["Mary"]
    assert received["request"].path == "/users"


# ----------------------------
# Queued jobs
# ----------------------------
def test_queued_export_runs_in_the_worker(db_session, eager_worker):
    make_user(db_session, "Ann")

    export = _table(db_session).get_export_by_id(2)
    result = export.dispatch_job()

    written = eager_worker / "users-queued.xlsx"
    assert result.get() == str(written)
    sheet = load_workbook(written).active
    assert sheet["A2"].value == "Ann"


def test_queued_job_hook_can_customize_the_signature(db_session, eager_worker):
    make_user(db_session, "Ann")
    seen = []

    def hook(signature):
        seen.append(signature.task)
        return signature.set(queue="priority")

    export = _table(db_session).get_export_by_id(2)
    export.with_queued_job = hook
    export.dispatch_job()

    assert seen == ["tablekit.worker.tasks.run_export"]
    assert (eager_worker / "users-queued.xlsx").exists()


def test_export_task_is_bound_to_the_configured_app_in_any_thread():
    from tablekit.worker.celery_app import celery_app
    from tablekit.worker.tasks import run_export

    seen = {}

    def _inspect():
        seen["app"] = run_export.app
        seen["broker"] = run_export.app.conf.broker_url

    worker = threading.Thread(target=_inspect)
    worker.start()
    worker.join()

    assert seen["app"] is celery_app
    assert seen["broker"] == celery_app.conf.broker_url
