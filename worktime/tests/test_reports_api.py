import io

from fastapi.testclient import TestClient
from openpyxl import load_workbook

from worktime.main import app

client = TestClient(app)


def _auth_headers(client_id: int, role: str = "CLIENT") -> dict:
    r = client.post("/auth/token", json={"user_id": "test", "client_id": client_id, "role": role})
    assert r.status_code == 200, r.text
    token = r.json()["access_token"]
    return {"X-Client-Id": str(client_id), "Authorization": f"Bearer {token}"}


def _seed() -> dict:
    headers = _auth_headers(1)
    ana = client.post("/workers", json={"name": "Ana", "contractor_id": "W1"}, headers=headers).json()
    client.post("/workers", json={"name": "Ben", "contractor_id": "W2"}, headers=headers)

    approved = client.post(
        f"/track/{ana['invite_token']}/entries",
        json={"date": "2024-03-01", "hours": 4, "description": "Design"},
    ).json()
    client.post(f"/approvals/{approved['id']}/approve", headers=headers)

    client.post(f"/track/{ana['invite_token']}/clock_in", json={"at": "2024-03-02T08:00:00"})
    client.post(f"/track/{ana['invite_token']}/clock_out", json={"at": "2024-03-02T12:00:00"})
    return headers


def test_dashboard_custom_period():
    headers = _seed()

    r = client.get("/reports/dashboard", params={"period": "custom", "start": "2024-03-01", "end": "2024-03-31"}, headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()

    assert [w["worker_name"] for w in body["workers"]] == ["Ana"]
    ana = body["workers"][0]
    assert ana["approved_hours"] == 4
    assert ana["pending_hours"] == 4
    assert ana["total_hours"] == 8
    assert ana["last_activity"] == "2024-03-02"
    assert ana["status"] == "Pending Review"

    assert body["summary"]["total_workers"] == 1
    assert body["summary"]["most_active_worker"] == "Ana"


def test_dashboard_unknown_period_400():
    r = client.get("/reports/dashboard", params={"period": "fortnight"}, headers=_auth_headers(1))
    assert r.status_code == 400


def test_full_report_lists_every_worker():
    headers = _seed()

    r = client.get("/reports/full", params={"start": "2024-03-01", "end": "2024-03-31"}, headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()

    assert [d["report"]["worker_id"] for d in body["worker_reports"]] == ["W1", "W2"]
    assert body["summary"]["total_entries"] == 2
    assert body["summary"]["approval_rate"] == 50.0
    assert body["export_filename"] == "time-report-2024-03-01-to-2024-03-31"
    assert [p["label"] for p in body["chart_data"]["status_distribution"]] == ["Approved", "Draft"]


def test_full_report_status_filter():
    headers = _seed()
    r = client.get(
        "/reports/full",
        params={"start": "2024-03-01", "end": "2024-03-31", "status": ["approved"]},
        headers=headers,
    )
    assert r.json()["summary"]["total_hours"] == 4


def test_quick_reports():
    headers = _auth_headers(1)
    assert client.get("/reports/weekly", headers=headers).status_code == 200
    assert client.get("/reports/monthly", headers=headers).status_code == 200


def test_export_csv():
    headers = _seed()
    r = client.get(
        "/reports/export",
        params={"format": "csv", "start": "2024-03-01", "end": "2024-03-31"},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    assert r.headers["content-type"].startswith("text/csv")
    assert 'filename="time-report-2024-03-01-to-2024-03-31.csv"' in r.headers["content-disposition"]

    lines = r.text.split("\n")
    assert lines[0].startswith("Worker ID,Worker Name,Date")
    assert len(lines) == 3


def test_export_xlsx_and_text():
    headers = _seed()
    params = {"start": "2024-03-01", "end": "2024-03-31"}

    xlsx = client.get("/reports/export", params={**params, "format": "xlsx"}, headers=headers)
    assert xlsx.status_code == 200
    wb = load_workbook(io.BytesIO(xlsx.content))
    assert wb.sheetnames == ["Summary", "Worker Summary", "Time Entries"]

    txt = client.get("/reports/export", params={**params, "format": "txt"}, headers=headers)
    assert txt.status_code == 200
    assert "Ana: 8.00 hours (2 entries)" in txt.text


def test_data_export_import_round_trip():
    headers = _seed()
    admin = _auth_headers(1, role="ADMIN")

    exported = client.get("/data/export", headers=headers)
    assert exported.status_code == 200
    snapshot = exported.json()
    assert len(snapshot["workers"]) == 2
    assert len(snapshot["time_entries"]) == 2

    cleared = client.delete("/data", headers=admin)
    assert cleared.json() == {"workers_removed": 2, "entries_removed": 2}
    assert client.get("/workers", headers=headers).json() == []

    imported = client.post("/data/import", json=snapshot, headers=admin)
    assert imported.status_code == 200, imported.text
    assert imported.json()["workers"] == 2
    assert imported.json()["time_entries"] == 2

    bad = client.post("/data/import", json={"workers": "nope"}, headers=admin)
    assert bad.status_code == 400


def test_bulk_approvals_api():
    headers = _auth_headers(1)
    ana = client.post("/workers", json={"name": "Ana", "contractor_id": "W1"}, headers=headers).json()
    ids = [
        client.post(
            f"/track/{ana['invite_token']}/entries",
            json={"date": "2024-03-01", "hours": h, "description": "x"},
        ).json()["id"]
        for h in (1, 2)
    ]

    pending = client.get("/approvals/pending", headers=headers)
    assert {e["id"] for e in pending.json()} == set(ids)

    r = client.post("/approvals/approve_all", json={"entry_ids": ids + ["missing"]}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["updated"] == ids
    assert len(r.json()["warnings"]) == 1

    reject = client.post(f"/approvals/{ids[0]}/reject", json={"notes": "late"}, headers=headers)
    assert reject.status_code == 409
