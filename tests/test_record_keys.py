"""
Import key normalization tests
"""
import pytest

from app.services.record_keys import canonicalize_backup, canonicalize_record, to_snake_case


@pytest.mark.parametrize("key,expected", [
    ("dateOfBirth", "date_of_birth"),
    ("patientId", "patient_id"),
    ("followUpDate", "follow_up_date"),
    ("exportDate", "export_date"),
    ("created_at", "created_at"),
    ("name", "name"),
])
def test_to_snake_case(key, expected):
    assert to_snake_case(key) == expected


def test_canonical_key_wins_over_alias():
    record = canonicalize_record({"patientId": "old", "patient_id": "new"})
    assert record == {"patient_id": "new"}


def test_nested_medications_are_normalized():
    record = canonicalize_record({
        "followUpDate": "2026-01-01",
        "medications": [{"name": "Ibuprofen", "dosage": "400mg", "extraNote": "with food"}],
    })
    assert record["follow_up_date"] == "2026-01-01"
    assert record["medications"][0]["extra_note"] == "with food"


def test_backup_payload_is_normalized():
    payload = canonicalize_backup({
        "patients": [{"id": "1", "emergencyPhone": "555"}],
        "appointments": [],
        "treatments": [],
        "exportDate": "2026-01-01T00:00:00.000Z",
    })
    assert payload["patients"][0]["emergency_phone"] == "555"
    assert payload["export_date"] == "2026-01-01T00:00:00.000Z"
