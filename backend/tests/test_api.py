from __future__ import annotations

from fastapi.testclient import TestClient


def _start_session(client: TestClient) -> None:
    resp = client.put("/session", json={"employee_name": "Jane Doe", "date": "2024-05-01"})
    assert resp.status_code == 200


def _add(api: TestClient, start: str, end: str, category: str, **extra):
    return api.post("/entries", json={"start_time": start, "end_time": end, "category": category, **extra})


def test_healthz(client: TestClient):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_categories_listing(client: TestClient):
    resp = client.get("/categories")
    assert resp.status_code == 200
    values = [item["value"] for item in resp.json()]
    assert values[0] == "direct"
    assert "admin" in values


def test_entry_workflow(client: TestClient):
    _start_session(client)
    first = _add(client, "09:00", "10:00", "direct", client="A.B.")
    assert first.status_code == 201
    assert first.json()["duration_minutes"] == 60
    second = _add(client, "13:00", "13:30", "admin")
    assert second.status_code == 201

    entries = client.get("/entries").json()
    assert [entry["id"] for entry in entries] == [first.json()["id"], second.json()["id"]]

    totals = client.get("/totals").json()
    assert totals["grand_total_minutes"] == 90
    assert totals["grand_total"] == "1h 30m"
    by_category = {item["category"]: item["minutes"] for item in totals["categories"]}
    assert by_category["direct"] == 60
    assert by_category["admin"] == 30

    delete_resp = client.delete(f"/entries/{first.json()['id']}")
    assert delete_resp.status_code == 204
    assert len(client.get("/entries").json()) == 1

    unknown = client.delete("/entries/4242")
    assert unknown.status_code == 204
    assert len(client.get("/entries").json()) == 1


def test_invalid_entries_are_rejected(client: TestClient):
    resp = _add(client, "10:00", "10:00", "direct")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "End time must be after start time"

    resp = _add(client, "09:00", "10:00", "lunch")
    assert resp.status_code == 400
    assert resp.json()["field"] == "category"

    resp = client.post("/entries", json={"end_time": "10:00", "category": "direct"})
    assert resp.status_code == 400
    assert client.get("/entries").json() == []


def test_session_snapshot_and_reset(client: TestClient):
    _start_session(client)
    _add(client, "09:00", "10:00", "direct")
    session = client.get("/session").json()
    assert session["employee_name"] == "Jane Doe"
    assert session["date"] == "2024-05-01"
    assert len(session["entries"]) == 1
    assert session["totals"]["grand_total_minutes"] == 60

    reset = client.post("/session/reset", json={"date": "2024-05-02"})
    assert reset.status_code == 200
    data = reset.json()
    assert data["entries"] == []
    assert data["employee_name"] == "Jane Doe"
    assert data["date"] == "2024-05-02"


def test_report_requires_entries_and_name(client: TestClient):
    resp = client.get("/report")
    assert resp.status_code == 409
    _add(client, "09:00", "10:00", "direct")
    resp = client.get("/report")
    assert resp.status_code == 409
    assert resp.json()["field"] == "employee_name"

    _start_session(client)
    resp = client.get("/report")
    assert resp.status_code == 200
    assert resp.text.splitlines()[1] == "Name: Jane Doe"
    assert "09:00 - 10:00 (1h 0m) | Direct Therapy" in resp.text


def test_export_and_download(client: TestClient):
    _start_session(client)
    _add(client, "09:00", "10:00", "direct")

    csv_resp = client.post("/exports", json={"format": "csv"})
    assert csv_resp.status_code == 201
    filename = csv_resp.json()["filename"]
    assert filename == "Jane_Doe_TimeLog_2024-05-01.csv"

    download = client.get(f"/exports/{filename}")
    assert download.status_code == 200
    assert download.headers["content-type"].startswith("text/csv")
    assert '"Direct Therapy"' in download.text

    xlsx_resp = client.post("/exports", json={"format": "xlsx"})
    assert xlsx_resp.status_code == 201
    download_xlsx = client.get(f"/exports/{xlsx_resp.json()['filename']}")
    assert download_xlsx.headers["content-type"].startswith("application/vnd.openxmlformats")

    pdf_resp = client.post("/exports", json={"format": "pdf"})
    download_pdf = client.get(f"/exports/{pdf_resp.json()['filename']}")
    assert download_pdf.headers["content-type"].startswith("application/pdf")


def test_export_errors(client: TestClient):
    assert client.post("/exports", json={"format": "csv"}).status_code == 409
    _start_session(client)
    _add(client, "09:00", "10:00", "direct")
    assert client.post("/exports", json={"format": "docx"}).status_code == 422
    assert client.get("/exports/missing.csv").status_code == 404


def test_clipboard_export(client: TestClient):
    _start_session(client)
    _add(client, "09:00", "10:00", "direct", description="Morning session")
    resp = client.post("/exports/clipboard")
    assert resp.status_code == 200
    text = resp.json()["text"]
    assert text.startswith("Hi Dana,")
    assert "09:00 - 10:00 (1h 0m) | Direct Therapy | Morning session" in text
    assert text.rstrip().endswith("Jane Doe")


def test_download_of_directory_is_not_found(client: TestClient, test_settings):
    (test_settings.export_dir / "archive").mkdir(parents=True)
    assert client.get("/exports/archive").status_code == 404
