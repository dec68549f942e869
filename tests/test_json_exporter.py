import json

from adapters.json_exporter import export_row_json, row_to_payload
from core.domain.models import Column, ColumnType
from core.hashing import hash_email
from core.services.profile_mapper import map_document


def test_export_expands_json_columns(tmp_path, profile_document) -> None:
    row = map_document(profile_document, email="alex@example.com", address_hash=hash_email("alex@example.com"))

    path = export_row_json(row=row, output_path=tmp_path / "out" / "row.json")

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == json.loads(json.dumps(row_to_payload(row)))
    assert payload["contact_info"] == profile_document["contact_info"]
    assert payload["is_organization"] is False
    assert payload["registration_date"] == "2010-03-02T08:15:00+00:00"


def test_export_expands_extra_json_columns(tmp_path, profile_document) -> None:
    extra = [
        Column(name="section_visibility", type=ColumnType.JSON),
        Column(name="nickname", type=ColumnType.TEXT),
    ]
    row = map_document(
        profile_document,
        email="alex@example.com",
        address_hash=hash_email("alex@example.com"),
        extra_columns=extra,
    )

    payload = json.loads(export_row_json(row=row, output_path=tmp_path / "row.json").read_text(encoding="utf-8"))

    assert payload["section_visibility"] == {"hidden_contact_info": False}
    assert payload["nickname"] is None
    assert row.column_type("section_visibility") is ColumnType.JSON
    assert row.column_type("unknown") is None
