"""
API route tests - verifies endpoints against a temporary data directory
"""
import json

from app.database.storage import PATIENTS_KEY


PATIENT = {
    "name": "John Doe",
    "date_of_birth": "1980-01-15",
    "email": "john@example.com",
    "phone": "555-1234",
}


def _create_patient(client, **overrides):
    response = client.post("/api/v1/patients", json={**PATIENT, **overrides})
    assert response.status_code == 201
    return response.json()


def _create_appointment(client, patient, **overrides):
    data = {
        "patient_id": patient["id"],
        "patient_name": patient["name"],
        "date": "2026-11-02",
        "time": "10:00",
        "type": "Checkup",
    }
    data.update(overrides)
    response = client.post("/api/v1/appointments", json=data)
    assert response.status_code == 201
    return response.json()


def test_root(client):
    """Test root endpoint"""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_patient_writes_storage_file(client, store):
    data = _create_patient(client)

    assert data["name"] == "John Doe"
    assert data["id"]
    assert data["created_at"] == data["updated_at"]

    # Verify database file was created
    patient_file = store.path_for(PATIENTS_KEY)
    assert patient_file.exists(), f"Patient file should be created at {patient_file}"
    with open(patient_file, 'r') as f:
        saved_data = json.load(f)
    assert len(saved_data) == 1
    assert saved_data[0]["id"] == data["id"]


def test_patient_validation(client):
    """Missing name and future birth dates are rejected"""
    response = client.post("/api/v1/patients", json={"date_of_birth": "1990-01-01"})
    assert response.status_code == 422

    response = client.post("/api/v1/patients", json={"name": "X", "date_of_birth": "2999-01-01"})
    assert response.status_code == 422


def test_get_update_delete_patient(client):
    created = _create_patient(client)

    response = client.get(f"/api/v1/patients/{created['id']}")
    assert response.status_code == 200
    assert response.json()["email"] == "john@example.com"

    response = client.patch(f"/api/v1/patients/{created['id']}", json={"phone": "555-0000"})
    assert response.status_code == 200
    assert response.json()["phone"] == "555-0000"
    assert response.json()["email"] == "john@example.com"

    response = client.delete(f"/api/v1/patients/{created['id']}")
    assert response.status_code == 200

    assert client.get(f"/api/v1/patients/{created['id']}").status_code == 404
    assert client.delete(f"/api/v1/patients/{created['id']}").status_code == 404


def test_unknown_patient_update_is_404(client):
    response = client.patch("/api/v1/patients/nope", json={"phone": "1"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Patient not found"


def test_search_patients(client):
    _create_patient(client)
    _create_patient(client, name="Mary Major", email="mary@example.com", phone="555-9876")

    response = client.get("/api/v1/patients", params={"search": "mary"})

    assert [p["name"] for p in response.json()] == ["Mary Major"]


def test_delete_patient_cascades(client):
    patient = _create_patient(client)
    _create_appointment(client, patient)
    client.post("/api/v1/treatments", json={
        "patient_id": patient["id"],
        "date": "2026-11-02",
        "diagnosis": "Caries",
        "cost": 120,
    })

    assert len(client.get(f"/api/v1/patients/{patient['id']}/appointments").json()) == 1
    assert len(client.get(f"/api/v1/patients/{patient['id']}/treatments").json()) == 1

    client.delete(f"/api/v1/patients/{patient['id']}")

    assert client.get("/api/v1/appointments").json() == []
    assert client.get("/api/v1/treatments").json() == []


def test_appointment_status_update_and_filter(client):
    patient = _create_patient(client)
    first = _create_appointment(client, patient, time="09:00")
    _create_appointment(client, patient, time="11:00")

    response = client.patch(f"/api/v1/appointments/{first['id']}", json={"status": "completed"})
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    completed = client.get("/api/v1/appointments", params={"status": "completed"}).json()
    assert [a["id"] for a in completed] == [first["id"]]


def test_appointment_invalid_status_rejected(client):
    patient = _create_patient(client)
    appointment = _create_appointment(client, patient)

    response = client.patch(f"/api/v1/appointments/{appointment['id']}", json={"status": "no-show"})
    assert response.status_code == 422


def test_treatment_negative_cost_rejected(client):
    patient = _create_patient(client)
    response = client.post("/api/v1/treatments", json={
        "patient_id": patient["id"],
        "date": "2026-11-02",
        "cost": -5,
    })
    assert response.status_code == 422


def test_export_json_download(client):
    _create_patient(client)

    response = client.get("/api/v1/data/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    assert 'filename="dentalcare-backup-' in response.headers["content-disposition"]
    assert len(response.json()["patients"]) == 1
    assert len(client.get("/api/v1/data/backups").json()) == 1


def test_export_csv(client):
    response = client.get("/api/v1/data/export/csv/patients")
    assert response.status_code == 404
    assert response.json()["detail"] == "No patients data to export"

    _create_patient(client)
    response = client.get("/api/v1/data/export/csv/patients")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines()[0].startswith("name,phone,email")


def test_export_csv_unknown_kind(client):
    assert client.get("/api/v1/data/export/csv/invoices").status_code == 422


def test_import_upload_and_restore(client):
    _create_patient(client)
    backup = client.get("/api/v1/data/export").content

    client.delete("/api/v1/data")
    assert client.get("/api/v1/patients").json() == []

    response = client.post(
        "/api/v1/data/import",
        files={"file": ("backup.json", backup, "application/json")},
    )
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert len(client.get("/api/v1/patients").json()) == 1

    history = client.get("/api/v1/data/backups").json()
    assert [h["type"] for h in history[:2]] == ["pre-import-backup", "manual"]
    assert history[0]["patient_count"] == 0

    # Restore the pre-import snapshot (the empty state)
    response = client.post(f"/api/v1/data/backups/{history[0]['id']}/restore")
    assert response.status_code == 200
    assert client.get("/api/v1/patients").json() == []


def test_import_rejects_bad_payloads(client):
    response = client.post(
        "/api/v1/data/import",
        files={"file": ("backup.json", b"not json", "application/json")},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid JSON file format"

    response = client.post("/api/v1/data/import/json", json={"patients": [], "appointments": []})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid backup file structure"


def test_restore_unknown_backup(client):
    response = client.post("/api/v1/data/backups/nope/restore")
    assert response.status_code == 404


def test_validate_cleanup_and_stats(client):
    patient = _create_patient(client)
    _create_appointment(client, patient)
    _create_appointment(client, {"id": "ghost", "name": "Ghost"})

    report = client.get("/api/v1/data/validate").json()
    assert report == {"orphaned_appointments": 1, "orphaned_treatments": 0, "duplicate_patients": 0}

    assert client.post("/api/v1/data/cleanup").json() == {"cleaned": 1}

    stats = client.get("/api/v1/data/stats").json()
    assert stats["total_patients"] == 1
    assert stats["total_appointments"] == 1
    assert stats["last_backup"] is None


def test_dashboard(client):
    _create_patient(client)
    response = client.get("/api/v1/dashboard")
    assert response.status_code == 200
    assert response.json()["total_patients"] == 1


def test_storage_failure_returns_500(client, store, monkeypatch):
    from app.database.storage import StorageError

    def failing_set_item(key, data):
        raise StorageError(key)

    monkeypatch.setattr(store, "set_item", failing_set_item)

    response = client.post("/api/v1/patients", json=PATIENT)
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to save data"
