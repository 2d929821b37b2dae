from fastapi.testclient import TestClient

from worktime.main import app

client = TestClient(app)


def _auth_headers(client_id: int) -> dict:
    r = client.post("/auth/token", json={"user_id": "test", "client_id": client_id})
    assert r.status_code == 200, r.text
    token = r.json()["access_token"]
    return {"X-Client-Id": str(client_id), "Authorization": f"Bearer {token}"}


ROSTER = "\n".join(
    [
        "Ontop contractors export",
        "#,Contractor ID,Type,Name,Email,Country,Currency,Start,End,Status,Rate,Frequency,Unit of payment",
        "1,C-10,Contractor,Ana,ana@example.com,AR,USD,,,Active,20,Monthly,per hour",
        "2,C-11,Contractor,Ben,ben@example.com,AR,USD,,,Active,2000,Monthly,per month",
    ]
).encode("utf-8")


def test_create_list_get_worker():
    headers = _auth_headers(1)

    r = client.post("/workers", json={"name": "Ana", "email": "ana@example.com", "contractor_id": "C-1"}, headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["contractor_id"] == "C-1"
    assert body["client_id"] == 1
    assert body["is_active"] is False
    assert body["invite_token"]

    listing = client.get("/workers", headers=headers)
    assert listing.status_code == 200, listing.text
    assert [w["contractor_id"] for w in listing.json()] == ["C-1"]

    single = client.get("/workers/C-1", headers=headers)
    assert single.status_code == 200
    assert single.json()["name"] == "Ana"


def test_duplicate_worker_409():
    headers = _auth_headers(1)
    assert client.post("/workers", json={"name": "Ana", "contractor_id": "C-1"}, headers=headers).status_code == 200

    r = client.post("/workers", json={"name": "Ana", "contractor_id": "C-1"}, headers=headers)
    assert r.status_code == 409
    assert "already exists" in r.text


def test_workers_scoped_to_client():
    client.post("/workers", json={"name": "Ana", "contractor_id": "C-1"}, headers=_auth_headers(1))

    assert client.get("/workers", headers=_auth_headers(2)).json() == []
    assert client.get("/workers/C-1", headers=_auth_headers(2)).status_code == 404


def test_invalid_tracking_mode_422():
    r = client.post("/workers", json={"name": "Ana", "tracking_mode": "sundial"}, headers=_auth_headers(1))
    assert r.status_code == 422


def test_update_and_delete_worker():
    headers = _auth_headers(1)
    client.post("/workers", json={"name": "Ana", "contractor_id": "C-1"}, headers=headers)

    r = client.patch("/workers/C-1", json={"email": "new@example.com", "tracking_mode": "timesheet"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["email"] == "new@example.com"
    assert r.json()["tracking_mode"] == "timesheet"

    bad = client.patch("/workers/C-1", json={"name": "  "}, headers=headers)
    assert bad.status_code == 400

    d = client.delete("/workers/C-1", headers=headers)
    assert d.status_code == 200
    assert d.json() == {"deleted": "C-1", "entries_removed": 0}

    assert client.delete("/workers/C-1", headers=headers).status_code == 404


def test_roster_import_upload():
    headers = _auth_headers(1)
    r = client.post(
        "/workers/import",
        files={"file": ("roster.csv", ROSTER, "text/csv")},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert [w["contractor_id"] for w in body["created"]] == ["C-10"]
    assert body["warnings"] == []


def test_roster_import_rejects_wrong_file_type():
    r = client.post(
        "/workers/import",
        files={"file": ("roster.pdf", b"%PDF", "application/pdf")},
        headers=_auth_headers(1),
    )
    assert r.status_code == 400
    assert "CSV or XLSX" in r.text
