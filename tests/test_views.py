# File: /tests/test_views.py | Version: 1.0 | Title: Saved views (storage, scoping, replay and routes)
from __future__ import annotations

from sample_app import Company, CompanyUsersTable, UsersTable, ViewsUsersTable
from tablekit.models import TableView
from tablekit.security import create_access_token
from tablekit.tables import RequestSnapshot, Views

QUERY = {"filters": {"name": {"clause": "contains", "value": "jo"}}, "sort": "-age", "page": "4"}


def _views(db, user=None, name=None, table_cls=ViewsUsersTable):
    table = table_cls(db).set_request(RequestSnapshot(path="/users")).set_user(user)
    if name:
        table.as_(name)
    return table.build_views()


# ----------------------------
# Storage
# ----------------------------
def test_store_keeps_only_view_params(db_session):
    view = _views(db_session).store("default", "Johns", QUERY)

    assert view.id is not None
    assert view.request_payload == {
        "filters": {"name": {"clause": "contains", "value": "jo"}},
        "perPage": 15,
        "sort": "-age",
    }


def test_store_with_same_title_replaces(db_session):
    views = _views(db_session)
    first = views.store("default", "Mine", QUERY)
    second = views.store("default", "Mine", {"sort": "name"})

    assert first.id == second.id
    assert second.request_payload == {"perPage": 15, "sort": "name"}
    assert db_session.query(TableView).count() == 1


def test_views_are_listed_by_title_with_replayed_state(db_session):
    views = _views(db_session)
    views.store("default", "Zeta", {"sort": "name"})
    views.store("default", "Alpha", QUERY)

    data = views.to_dict()["data"]
    assert [view["title"] for view in data] == ["Alpha", "Zeta"]
    assert data[0]["state"]["sort"] == "-age"
    assert data[0]["state"]["filters"]["name"] == {"enabled": True, "value": "jo", "clause": "contains"}
    assert data[0]["deleteUrl"].split("?")[0].endswith(f"/view/{data[0]['id']}")


def test_delete(db_session):
    views = _views(db_session)
    view = views.store("default", "Mine", QUERY)

    views.delete(str(view.id))
    assert views.to_dict()["data"] == []


# ----------------------------
# Scoping
# ----------------------------
def test_views_are_scoped_to_the_user(db_session):
    _views(db_session, user=7).store("default", "Sevens", QUERY)
    _views(db_session).store("default", "Anonymous", QUERY)

    assert [v["title"] for v in _views(db_session, user=7).to_dict()["data"]] == ["Sevens"]
    assert [v["title"] for v in _views(db_session, user="8").to_dict()["data"]] == []
    assert [v["title"] for v in _views(db_session).to_dict()["data"]] == ["Anonymous"]


def test_other_users_cannot_delete(db_session):
    view = _views(db_session, user=7).store("default", "Sevens", QUERY)

    _views(db_session, user=8).delete(view.id)
    assert [v["title"] for v in _views(db_session, user=7).to_dict()["data"]] == ["Sevens"]


def test_scope_by_table_name(db_session):
    def views_for(name):
        table = ViewsUsersTable(db_session).as_(name).set_request(RequestSnapshot())
        return Views(scope_table_name=True).set_table(table)

    views_for("left").store("left", "Left", {"left": QUERY})

    assert [v["title"] for v in views_for("left").to_dict()["data"]] == ["Left"]
    assert views_for("right").to_dict()["data"] == []


def test_scope_by_remembered_state(db_session):
    acme, beta = Company(name="Acme"), Company(name="Beta")
    db_session.add_all([acme, beta])
    db_session.flush()

    def views_for(company):
        table = CompanyUsersTable(company, db_session).set_request(RequestSnapshot())
        return Views(scope_stateful_resources=True).set_table(table)

    views_for(acme).store("default", "Acme only", {"sort": "name"})

    assert [v["title"] for v in views_for(acme).to_dict()["data"]] == ["Acme only"]
    assert views_for(beta).to_dict()["data"] == []


def test_extra_attributes_scope_and_are_stored(db_session):
    views = Views(attributes={"table_name": "pinned"}).set_table(
        ViewsUsersTable(db_session).set_request(RequestSnapshot())
    )
    stored = views.store("ignored", "Pinned", QUERY)

    assert stored.table_name == "pinned"
    assert [v["title"] for v in views.to_dict()["data"]] == ["Pinned"]


def test_named_tables_replay_under_their_name(db_session):
    views = _views(db_session, name="team")
    stored = views.store("team", "Team", {"team": {"search": "jo"}, "search": "ignored"})

    assert stored.request_payload == {"perPage": 15, "search": "jo"}
    data = views.to_dict()["data"]
    assert data[0]["state"]["search"] == "jo"


def test_views_are_disabled_by_default(db_session):
    assert UsersTable(db_session).build_views() is None


# ----------------------------
# Routes
# ----------------------------
def test_store_and_delete_through_routes(client, db_session):
    views = _views(db_session).to_dict()

    r = client.post(views["storeUrl"], json={"name": "default", "title": "Johns", "query": QUERY})
    assert r.status_code == 200, r.text
    stored = r.json()["data"]
    assert [v["title"] for v in stored] == ["Johns"]
    assert stored[0]["state"]["sort"] == "-age"

    r = client.delete(stored[0]["deleteUrl"])
    assert r.status_code == 200, r.text
    assert r.json()["data"] == []


def test_route_views_follow_the_bearer_identity(client, db_session):
    store_url = _views(db_session).to_dict()["storeUrl"]
    headers = {"Authorization": f"Bearer {create_access_token({'sub': '7'})}"}

    r = client.post(store_url, json={"name": "default", "title": "Sevens", "query": {}}, headers=headers)
    assert r.status_code == 200, r.text

    assert [v["title"] for v in _views(db_session, user="7").to_dict()["data"]] == ["Sevens"]
    assert _views(db_session).to_dict()["data"] == []


def test_store_route_validates_the_body(client, db_session):
    store_url = _views(db_session).to_dict()["storeUrl"]

    r = client.post(store_url, json={"name": "default", "title": ""})
    assert r.status_code == 422


def test_views_route_requires_views_enabled(client, db_session):
    url = UsersTable(db_session).set_request(RequestSnapshot()).signed_url("view", None, [])

    r = client.post(url, json={"name": "default", "title": "Nope", "query": {}})
    assert r.status_code == 403
    assert r.json() == {"detail": "Views are not enabled for this table."}
