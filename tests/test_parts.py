import base64
import json

from ermakplan.services.qr import generate_qr_data_url, part_qr_payload
from tests.conftest import login


def _part(client, **fields):
    body = {"name": "Hex bolt", "partNumber": "HB-12", "length": 40, "weight": ""}
    body.update(fields)
    return client.post("/api/parts", json=body)


def test_create_part_generates_qr(client, seed_users):
    login(client, "alice")
    resp = _part(client)
    assert resp.status_code == 201, resp.text
    part = resp.json()
    assert part["qrCode"].startswith("data:image/png;base64,")
    png = base64.b64decode(part["qrCode"].split(",", 1)[1])
    assert png[:8] == b"\x89PNG\r\n\x1a\n"
    assert part["length"] == 40
    assert part["weight"] is None


def test_part_number_is_globally_unique(client, seed_users):
    login(client, "alice")
    assert _part(client).status_code == 201
    login(client, "bob")
    resp = _part(client, name="Other bolt", partNumber="  HB-12 ")
    assert resp.status_code == 409
    assert resp.json() == {"message": "Part number already exists"}


def test_update_to_taken_number_conflicts(client, seed_users):
    login(client, "alice")
    _part(client)
    other = _part(client, partNumber="HB-13").json()
    resp = client.put(f"/api/parts/{other['id']}", json={"partNumber": "HB-12"})
    assert resp.status_code == 409
    # Keeping its own number is not a conflict
    assert client.put(f"/api/parts/{other['id']}", json={"partNumber": "HB-13", "color": "zinc"}).status_code == 200


def test_qr_regenerated_only_when_identity_changes(client, seed_users):
    login(client, "alice")
    part = _part(client).json()
    same = client.put(f"/api/parts/{part['id']}", json={"color": "black"}).json()
    assert same["qrCode"] == part["qrCode"]
    renamed = client.put(f"/api/parts/{part['id']}", json={"name": "Hex bolt M12"}).json()
    assert renamed["qrCode"] != part["qrCode"]
    assert renamed["qrCode"] == generate_qr_data_url(
        json.dumps({"id": part["id"], "name": "Hex bolt M12", "partNumber": "HB-12"})
    )


def test_qr_failure_keeps_part(client, seed_users, monkeypatch):
    def broken(data, box_size=8):
        raise RuntimeError("encoder down")

    monkeypatch.setattr("ermakplan.services.qr.generate_qr_data_url", broken)
    login(client, "alice")
    resp = _part(client)
    assert resp.status_code == 201
    assert resp.json()["qrCode"] is None


def test_blank_part_number_rejected(client, seed_users):
    login(client, "alice")
    assert _part(client, partNumber="   ").status_code == 400
    part = _part(client).json()
    assert client.put(f"/api/parts/{part['id']}", json={"partNumber": None}).status_code == 400


def test_qr_payload_shape():
    class Row:
        id = 7
        name = "Gasket"
        part_number = "GK-1"

    assert json.loads(part_qr_payload(Row())) == {"id": 7, "name": "Gasket", "partNumber": "GK-1"}
