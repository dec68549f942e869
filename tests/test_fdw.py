import json

import pytest

from adapters.fdw import GravatarFdw
from adapters.secret_store import MappingSecretStore
from conftest import FakeTransport, json_response, status_response
from core.domain.models import Column, ColumnType, Qual
from core.errors import CredentialResolutionError, ModifyNotSupported, ScanStateError, UnsupportedPredicate, UnsupportedTable
from core.hashing import hash_email


def make_fdw(transport: FakeTransport, sleep, options=None, secrets=None) -> GravatarFdw:
    return GravatarFdw(
        options or {},
        secret_store=MappingSecretStore(secrets or {}),
        transport=transport,
        sleep=sleep,
        clock=lambda: 1_700_000_000.0,
    )


def test_scan_projects_requested_columns(transport, sleep, profile_document) -> None:
    transport.push(json_response(profile_document))
    fdw = make_fdw(transport, sleep)

    fdw.begin_scan(
        [{"field": "email", "operator": "=", "value": "Alex@Example.com"}],
        ["email", "hash", "company", "json"],
    )
    row = fdw.iter_scan()

    assert list(row) == ["email", "hash", "company", "json"]
    assert row["email"] == "alex@example.com"
    assert row["hash"] == hash_email("alex@example.com")
    assert row["company"] == "Example Co"
    assert json.loads(row["json"]) == profile_document
    assert fdw.iter_scan() is None
    fdw.end_scan()


def test_scan_without_columns_returns_full_row(transport, sleep, profile_document) -> None:
    transport.push(json_response(profile_document))
    fdw = make_fdw(transport, sleep)
    fdw.begin_scan([Qual(field="email", operator="=", value="alex@example.com")])
    row = fdw.iter_scan()
    assert "registration_date" in row and "contact_info" in row


def test_extra_typed_column(transport, sleep, profile_document) -> None:
    transport.push(json_response(profile_document))
    fdw = make_fdw(transport, sleep)
    fdw.begin_scan(
        [Qual(field="email", operator="=", value="alex@example.com")],
        [Column(name="section_visibility", type=ColumnType.JSON)],
    )
    row = fdw.iter_scan()
    assert json.loads(row["section_visibility"]) == {"hidden_contact_info": False}


def test_missing_filter_is_empty(transport, sleep) -> None:
    fdw = make_fdw(transport, sleep)
    fdw.begin_scan([], ["email"])
    assert fdw.iter_scan() is None
    assert transport.requests == []


def test_in_list_is_a_query_error(transport, sleep) -> None:
    fdw = make_fdw(transport, sleep)
    qual = Qual(field="email", operator="=", value=["a@example.com", "b@example.com"], use_or=True)
    with pytest.raises(UnsupportedPredicate):
        fdw.begin_scan([qual])


def test_re_scan_performs_a_fresh_fetch(transport, sleep, profile_document) -> None:
    transport.push(json_response(profile_document), json_response(profile_document))
    fdw = make_fdw(transport, sleep)
    fdw.begin_scan([Qual(field="email", operator="=", value="alex@example.com")], ["display_name"])
    assert fdw.iter_scan() == {"display_name": "Alex Example"}
    assert fdw.iter_scan() is None
    fdw.re_scan()
    assert fdw.iter_scan() == {"display_name": "Alex Example"}
    assert len(transport.requests) == 2


def test_unsupported_table(transport, sleep) -> None:
    fdw = make_fdw(transport, sleep)
    with pytest.raises(UnsupportedTable, match="Only 'profiles'"):
        fdw.begin_scan([], table_options={"table": "avatars"})


def test_server_options_override_base_url(transport, sleep) -> None:
    transport.push(status_response(404))
    fdw = make_fdw(transport, sleep, options={"api_url": "http://localhost:9000/v3/profiles/"})
    assert fdw.lookup("alex@example.com") is None
    assert transport.requests[0].url == "http://localhost:9000/v3/profiles/" + hash_email("alex@example.com")


def test_secret_reference_is_used_for_requests(transport, sleep) -> None:
    transport.push(status_response(404))
    fdw = make_fdw(transport, sleep, options={"api_key_id": "uuid-1"}, secrets={"uuid-1": "tok"})
    fdw.lookup("alex@example.com")
    assert transport.requests[0].headers["authorization"] == "Bearer tok"


def test_missing_secret_fails_at_init(transport, sleep) -> None:
    with pytest.raises(CredentialResolutionError):
        make_fdw(transport, sleep, options={"api_key_id": "uuid-1"})
    assert transport.requests == []


def test_modify_is_rejected(transport, sleep) -> None:
    fdw = make_fdw(transport, sleep)
    with pytest.raises(ModifyNotSupported):
        fdw.begin_modify()
    with pytest.raises(ModifyNotSupported):
        fdw.insert({"email": "a@example.com"})


def test_iter_without_begin(transport, sleep) -> None:
    fdw = make_fdw(transport, sleep)
    with pytest.raises(ScanStateError):
        fdw.iter_scan()
    fdw.end_scan()
    fdw.end_scan()


def test_host_version_requirement() -> None:
    assert GravatarFdw.host_version_requirement() == "^0.1.0"
