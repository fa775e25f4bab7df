# File: /tests/test_state_and_signing.py | Version: 1.1 | Title: Remembered state, table class encoding and signed URLs
from __future__ import annotations

import base64
from datetime import datetime
from decimal import Decimal
from urllib.parse import parse_qsl, urlsplit

import pytest

from sample_app import Company, CompanyUsersTable, UsersTable
from tablekit.security import decrypt_payload, encrypt_payload, has_valid_signature, sign_path
from tablekit.tables import InlineTable, RequestSnapshot, Table
from tablekit.tables.exceptions import AnonymousTable, InvalidState, InvalidTableClass
from tablekit.tables.state import (
    decrypt_state,
    encode_table_class,
    encrypt_state,
    from_jsonable,
    resolve_table_class,
    serialize_state,
    to_jsonable,
)


def _encode(name: str) -> str:
    return base64.urlsafe_b64encode(name.encode()).decode().rstrip("=")


def _split(url: str):
    parts = urlsplit(url)
    return parts.path, parse_qsl(parts.query, keep_blank_values=True)


# ----------------------------
# Remembered state
# ----------------------------
def test_state_round_trip_restores_models(db_session):
    acme = Company(name="Acme")
    db_session.add(acme)
    db_session.flush()

    token = CompanyUsersTable(acme, db_session).get_encrypted_state()
    assert token

    restored = CompanyUsersTable.from_encrypted_state(token, db_session)
    assert restored.company is acme
    assert restored.get_session() is db_session


def test_state_cache_is_reused_until_flushed(db_session):
    acme = Company(name="Acme")
    db_session.add(acme)
    db_session.flush()

    table = CompanyUsersTable(acme, db_session)
    first = table.get_encrypted_state()
    assert table.get_encrypted_state() is first

    table.flush_state_cache()
    # fresh nonce, same payload
    second = table.get_encrypted_state()
    assert second != first
    assert CompanyUsersTable.from_encrypted_state(second, db_session).company is acme


def test_tables_without_remembered_params_have_no_state(db_session):
    assert UsersTable(db_session).get_serialized_state() is None
    assert UsersTable(db_session).get_encrypted_state() == ""


def test_tampered_state_is_rejected(db_session):
    acme = Company(name="Acme")
    db_session.add(acme)
    db_session.flush()

    token = CompanyUsersTable(acme, db_session).get_encrypted_state()
    head, _, tag = token.rpartition(".")
    forged = f"{head}.{'A' if tag[0] != 'A' else 'B'}{tag[1:]}"

    with pytest.raises(InvalidState):
        decrypt_state(forged, ("company",), db_session)


def test_state_with_other_parameters_is_rejected(db_session):
    token = encrypt_state(serialize_state({"team": 1}))
    with pytest.raises(InvalidState):
        decrypt_state(token, ("company",), db_session)

    token = encrypt_state(serialize_state({"company": 1, "extra": 2}))
    with pytest.raises(InvalidState):
        decrypt_state(token, ("company",), db_session)


@pytest.mark.parametrize("token", [None, "", "not-a-token"])
def test_missing_or_garbage_state_is_rejected(db_session, token):
    with pytest.raises(InvalidState):
        decrypt_state(token, ("company",), db_session)


def test_deleted_model_in_state_is_rejected(db_session):
    token = encrypt_state(serialize_state({"company": {"__model__": "sample_app:Company", "key": 987654}}))
    with pytest.raises(InvalidState):
        CompanyUsersTable.from_encrypted_state(token, db_session)


def test_scalar_values_survive_json():
    stamp = datetime(2024, 5, 1, 12, 30)
    encoded = to_jsonable({"at": stamp, "amount": Decimal("1.50"), "ids": (1, 2)})
    assert from_jsonable(encoded) == {"at": stamp, "amount": Decimal("1.50"), "ids": [1, 2]}


def test_model_in_state_needs_a_session():
    with pytest.raises(InvalidState):
        from_jsonable({"__model__": "sample_app:Company", "key": 1})


# ----------------------------
# Table class encoding
# ----------------------------
def test_table_class_round_trip():
    encoded = encode_table_class(UsersTable)
    assert "=" not in encoded
    assert resolve_table_class(encoded) is UsersTable


@pytest.mark.parametrize("name", ["os:path", "nope.module:Thing", "sample_app:Company", "tablekit.tables.table:Table"])
def test_unknown_table_classes_are_rejected(name):
    with pytest.raises(InvalidTableClass):
        resolve_table_class(_encode(name))


def test_only_registered_table_classes_resolve(monkeypatch):
    from tablekit.tables import state

    encoded = encode_table_class(UsersTable)
    monkeypatch.delitem(state._tables, state.qualified_name(UsersTable))

    with pytest.raises(InvalidTableClass):
        resolve_table_class(encoded)


def test_tables_declared_in_functions_cannot_be_encoded():
    class LocalTable(Table):
        resource = Company

    with pytest.raises(AnonymousTable):
        encode_table_class(LocalTable)
    with pytest.raises(AnonymousTable):
        resolve_table_class(_encode("sample_app:make_user.<locals>.LocalTable"))


def test_inline_tables_cannot_be_resolved():
    with pytest.raises(AnonymousTable):
        resolve_table_class(encode_table_class(InlineTable))


# ----------------------------
# Request snapshot
# ----------------------------
def test_snapshot_survives_a_queue_hop():
    snapshot = RequestSnapshot(path="/users", query=[("search", "jo"), ("page", "2")], body={"keys": [1]}, locale="nl")
    restored = RequestSnapshot.from_snapshot(snapshot.to_snapshot())
    assert restored == snapshot
    assert restored.input("keys") == [1]
    assert restored.input("search") == "jo"


def test_snapshot_version_is_checked():
    with pytest.raises(InvalidState):
        RequestSnapshot.from_snapshot({"version": 99, "path": "/"})


# ----------------------------
# Signed URLs
# ----------------------------
def test_signed_path_is_valid():
    path, params = _split(sign_path("/_inertia-tables/x/default/action/0", [("page", "2")]))
    assert path == "/_inertia-tables/x/default/action/0"
    assert has_valid_signature(path, params) is True


def test_tampered_signed_path_is_invalid():
    path, params = _split(sign_path("/a", [("page", "2")]))
    tampered = [(k, "3" if k == "page" else v) for k, v in params]

    assert has_valid_signature(path, tampered) is False
    assert has_valid_signature("/b", params) is False
    assert has_valid_signature(path, [(k, v) for k, v in params if k != "signature"]) is False


def test_ignored_params_do_not_break_the_signature():
    path, params = _split(sign_path("/export/0", [("search", "jo")], ignore=("keys",)))
    params.append(("keys", "1,2"))

    assert has_valid_signature(path, params, ignore=("keys",)) is True
    assert has_valid_signature(path, params) is False


def test_expired_signature_is_invalid():
    path, params = _split(sign_path("/a", expires_minutes=-1))
    assert has_valid_signature(path, params) is False

    path, params = _split(sign_path("/a", expires_minutes=5))
    assert has_valid_signature(path, params) is True


def test_encrypted_payload_round_trip():
    assert decrypt_payload(encrypt_payload(b"hello")) == b"hello"
    with pytest.raises(ValueError):
        decrypt_payload("garbage")
