# File: /tests/test_table_payload.py | Version: 1.1 | Title: Client payload produced by Table.to_dict()
from __future__ import annotations

import base64
from datetime import datetime
from urllib.parse import parse_qsl, urlsplit

import pytest

from sample_app import (
    Company,
    CompanyUsersTable,
    FlaggedTable,
    Post,
    PostsTable,
    SortedTagsTable,
    Tag,
    UsersTable,
    make_posts,
    make_user,
)
from tablekit.core.config import settings
from tablekit.security import has_valid_signature
from tablekit.tables import NumericColumn, PaginationType, RequestSnapshot, Table, TextColumn, configure_tables
from tablekit.tables.exceptions import ConfigurationError
from tablekit.tables.pagination import Cursor
from tablekit.tables.state import encode_table_class

PAYLOAD_KEYS = {
    "name",
    "results",
    "search",
    "columns",
    "filters",
    "actions",
    "exports",
    "state",
    "pagination",
    "paginationType",
    "perPageOptions",
    "defaultPerPage",
    "defaultSort",
    "debounceTime",
    "reloadProps",
    "hasActions",
    "hasBulkActions",
    "hasExports",
    "hasExportsThatLimitsToSelectedRows",
    "hasFilters",
    "hasSearch",
    "hasToggleableColumns",
    "scrollPositionAfterPageChange",
    "autofocus",
    "emptyState",
    "stickyHeader",
    "views",
    "inDefaultState",
}


def _payload(table, *pairs, path="/users"):
    return table.set_request(RequestSnapshot(path=path, query=list(pairs))).to_dict()


# ----------------------------
# Shape & rows
# ----------------------------
def test_payload_keys_and_defaults(db_session):
    data = _payload(UsersTable(db_session))

    assert set(data) == PAYLOAD_KEYS
    assert data["name"] == "default"
    assert data["search"] == ["name", "email"]
    assert data["paginationType"] == "full"
    assert data["perPageOptions"] == [15, 30, 50, 100]
    assert data["defaultPerPage"] == 15
    assert data["debounceTime"] == 300
    assert data["reloadProps"] == []
    assert data["hasActions"] and data["hasBulkActions"] and data["hasExports"]
    assert data["hasExportsThatLimitsToSelectedRows"] is False
    assert data["hasFilters"] and data["hasSearch"] and data["hasToggleableColumns"]
    assert data["scrollPositionAfterPageChange"] == "topOfPage"
    assert data["autofocus"] == "search"
    assert data["views"] is None
    assert data["inDefaultState"] is True


def test_rows_are_transformed_for_the_client(db_session):
    acme = Company(name="Acme")
    x, y = Tag(name="x"), Tag(name="y")
    db_session.add_all([acme, x, y])
    db_session.flush()
    user = make_user(
        db_session,
        "Ann",
        age=31,
        status="active",
        company_id=acme.id,
        tags=[x, y],
        created_at=datetime(2024, 2, 3, 10, 0),
    )

    row = _payload(UsersTable(db_session))["results"]["data"][0]

    assert row["_primary_key"] == user.id
    assert row["_is_selectable"] is True
    assert row["name"] == "Ann"
    assert row["is_active"] == "Yes"
    assert row["status"] == {"icon": None, "variant": "success", "style": "success", "value": "active"}
    assert row["company.name"] == "Acme"
    assert sorted(row["tags.name"]) == ["x", "y"]
    assert row["created_at"] == "2024-02-03"

    activate, ban, edit, delete = row["_actions"]
    assert activate is None and ban is None and delete is None
    assert edit["url"] == f"/users/{user.id}/edit"


def test_to_many_values_follow_the_sort_direction(db_session):
    tags = [Tag(name=name) for name in ("b", "c", "a")]
    db_session.add_all(tags)
    db_session.flush()
    make_user(db_session, "Ann", tags=tags)

    row = _payload(SortedTagsTable(db_session), ("sort", "-tags.name"))["results"]["data"][0]
    assert row["tags.name"] == ["c", "b", "a"]


def test_hidden_and_disabled_actions_are_flagged(db_session):
    make_user(db_session, "Ann")

    edit, gone = _payload(FlaggedTable(db_session))["results"]["data"][0]["_actions"]
    assert edit["url"] == "/edit" and edit["disabled"] is True and edit["hidden"] is False
    assert gone == {"url": None, "disabled": False, "hidden": True}


def test_payload_is_stable_across_calls(db_session):
    make_user(db_session, "Ann")
    table = UsersTable(db_session).set_request(RequestSnapshot(path="/users"))

    first, second = table.to_dict(), table.to_dict()
    for payload in (first, second):
        for action in payload["actions"]:
            action.pop("url")
        for export in payload["exports"]:
            export.pop("url")
    assert first == second


# ----------------------------
# Pagination
# ----------------------------
def test_full_pagination(db_session):
    make_posts(db_session, 25)

    results = _payload(PostsTable(db_session), ("page", "3"), path="/posts")["results"]
    assert results["total"] == 25
    assert results["per_page"] == 10
    assert results["last_page"] == 3
    assert results["current_page"] == 3
    assert len(results["data"]) == 5
    assert (results["from"], results["to"]) == (21, 25)
    assert results["next_page_url"] is None
    assert results["prev_page_url"] == "/posts?page=2"
    assert results["on_first_page"] is False and results["on_last_page"] is True
    assert [link["label"] for link in results["links"]] == ["&laquo; Previous", "1", "2", "3", "Next &raquo;"]


def test_page_urls_keep_the_query_string(db_session):
    make_posts(db_session, 25)

    results = _payload(PostsTable(db_session), ("search", "Post"), ("page", "2"), path="/posts")["results"]
    assert dict(parse_qsl(urlsplit(results["next_page_url"]).query)) == {"search": "Post", "page": "3"}


def test_simple_pagination(db_session):
    make_posts(db_session, 12)

    table = PostsTable(db_session).simple_pagination()
    results = _payload(table, path="/posts")["results"]
    assert "total" not in results
    assert len(results["data"]) == 10
    assert results["next_page_url"] == "/posts?page=2"
    assert results["on_last_page"] is False

    results = _payload(PostsTable(db_session).simple_pagination(), ("page", "2"), path="/posts")["results"]
    assert len(results["data"]) == 2
    assert results["next_page_url"] is None
    assert results["on_last_page"] is True


def test_cursor_pagination_walks_forward_and_back(db_session):
    posts = make_posts(db_session, 25)
    ids = [post.id for post in posts]

    first = _payload(PostsTable(db_session).cursor_pagination(), path="/posts")
    assert first["paginationType"] == "cursor"
    results = first["results"]
    assert [row["id"] for row in results["data"]] == ids[:10]
    assert results["prev_cursor"] is None
    assert results["first_page_url"] == "/posts"

    second = _payload(PostsTable(db_session).cursor_pagination(), ("cursor", results["next_cursor"]), path="/posts")["results"]
    assert [row["id"] for row in second["data"]] == ids[10:20]
    assert second["on_first_page"] is False

    back = _payload(PostsTable(db_session).cursor_pagination(), ("cursor", second["prev_cursor"]), path="/posts")["results"]
    assert [row["id"] for row in back["data"]] == ids[:10]
    assert back["on_first_page"] is True
    assert back["prev_cursor"] is None


def _b64(raw: str) -> str:
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


@pytest.mark.parametrize(
    "raw",
    [
        '{"id":{"__datetime__":"x"}}',
        '{"id":{"__date__":5}}',
        '{"id":{"__decimal__":"z"}}',
        '{"id":{"__model__":"sample_app.User","key":1}}',
        '{"id":[1,2]}',
        '{"other":1}',
        "[1,2]",
        "not json",
    ],
)
def test_malformed_cursor_falls_back_to_the_first_page(db_session, raw):
    posts = make_posts(db_session, 15)

    results = _payload(PostsTable(db_session).cursor_pagination(), ("cursor", _b64(raw)), path="/posts")["results"]
    assert [row["id"] for row in results["data"]] == [post.id for post in posts[:10]]
    assert results["on_first_page"] is True


def test_cursor_decode_ignores_bad_tokens():
    assert Cursor.decode(_b64('{"id":{"__datetime__":"x"}}')) is None
    assert Cursor.decode(_b64('{"id":{"__decimal__":"z"}}')) is None
    assert Cursor.decode("%%%") is None

    cursor = Cursor.decode(Cursor({"id": 4}, False).encode())
    assert cursor.parameters == {"id": 4}
    assert cursor.points_to_previous_items()


def test_cursor_pagination_rejects_orderings_on_joined_columns(db_session):
    company = Company(name="Acme")
    db_session.add(company)
    db_session.flush()
    make_user(db_session, "Ann", company_id=company.id)

    table = UsersTable(db_session).cursor_pagination()
    with pytest.raises(ConfigurationError):
        _payload(table, ("sort", "company.name"))

    names = [row["name"] for row in _payload(UsersTable(db_session).cursor_pagination(), ("sort", "name"))["results"]["data"]]
    assert names == ["Ann"]


def test_without_pagination_returns_every_row(db_session):
    make_posts(db_session, 40)

    data = _payload(PostsTable(db_session).without_pagination(), path="/posts")
    assert data["pagination"] is False
    assert data["paginationType"] is None
    assert len(data["results"]["data"]) == 40


# ----------------------------
# Empty state
# ----------------------------
def test_empty_state_payload(db_session):
    empty = _payload(PostsTable(db_session), path="/posts")["emptyState"]
    assert empty["title"] == "No posts yet"
    assert empty["message"] == "Write the first one."
    assert empty["actions"][0]["label"] == "Create post"
    assert empty["actions"][0]["url"]["url"] == "/posts/create"


def test_empty_state_only_in_default_state(db_session):
    assert _payload(PostsTable(db_session), ("search", "nothing"), path="/posts")["emptyState"] is False
    assert _payload(UsersTable(db_session))["emptyState"] is True

    make_posts(db_session, 1)
    assert _payload(PostsTable(db_session), path="/posts")["emptyState"] is False


# ----------------------------
# Configuration
# ----------------------------
def test_registry_defaults_apply(db_session):
    configure_tables(always_reload_all_props=True, debounce_time=500, pagination_type=PaginationType.simple)

    data = _payload(UsersTable(db_session))
    assert data["reloadProps"] == ["*"]
    assert data["debounceTime"] == 500
    assert data["paginationType"] == "simple"


def test_per_page_options_must_be_integers(db_session):
    table = PostsTable(db_session)
    table.per_page_options = [10, "25"]
    with pytest.raises(TypeError):
        table.get_per_page_options()


def test_inline_table(db_session):
    make_posts(db_session, 3)

    table = Table.build(
        Post,
        columns=[NumericColumn("id"), TextColumn("title", searchable=True)],
        name="Inline Posts",
        default_sort="-id",
        per_page_options=[5],
    ).set_session(db_session)
    data = _payload(table, ("inline-posts[search]", "002"), path="/posts")

    assert data["name"] == "inline-posts"
    assert data["search"] == ["title"]
    assert data["defaultSort"] == "-id"
    assert [row["title"] for row in data["results"]["data"]] == ["Post 002"]


def test_named_table_reads_its_own_params(db_session):
    make_user(db_session, "Ann")
    make_user(db_session, "Bob")

    data = _payload(UsersTable(db_session).as_("team"), ("team[search]", "bob"), ("search", "ann"))
    assert [row["name"] for row in data["results"]["data"]] == ["Bob"]
    assert data["results"]["path"] == "/users"


# ----------------------------
# Signed URLs
# ----------------------------
def _check_signed(url: str, ignore=()):
    parts = urlsplit(url)
    return parts.path, has_valid_signature(parts.path, parse_qsl(parts.query, keep_blank_values=True), ignore)


def test_action_and_export_urls_are_signed(db_session):
    data = _payload(UsersTable(db_session), ("search", "jo"))
    prefix = f"{settings.TABLE_ROUTE_PREFIX}/{encode_table_class(UsersTable)}/default"

    path, valid = _check_signed(data["actions"][0]["url"])
    assert path == f"{prefix}/action/0"
    assert valid is True
    assert data["actions"][2]["url"] is None  # links are not routed

    path, valid = _check_signed(data["exports"][1]["url"], ignore=("keys",))
    assert path == f"{prefix}/export/1"
    assert valid is True
    assert ("search", "jo") in parse_qsl(urlsplit(data["exports"][1]["url"]).query)

    path, _ = _check_signed(data["exports"][2]["url"], ignore=("keys",))
    assert path == f"{prefix}/async-export/2"


def test_stateful_table_urls_carry_the_state(db_session):
    acme = Company(name="Acme")
    db_session.add(acme)
    db_session.flush()

    table = CompanyUsersTable(acme, db_session)
    url = _payload(table)["actions"][0]["url"]
    path, valid = _check_signed(url)

    assert valid is True
    head, _, state = path.rpartition("/")
    assert head.endswith("/action/0")
    assert CompanyUsersTable.from_encrypted_state(state, db_session).company is acme
