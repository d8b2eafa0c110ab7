"""
Shared pytest fixtures

Every test gets its own data directory under tmp_path, so nothing touches
the real ./data folder.
"""
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.api.utils import get_data_manager
from app.database.schemas import AppointmentCreate, PatientCreate, TreatmentCreate, Medication
from app.database.storage import JsonFileStore
from app.services.data_manager import DataManager


@pytest.fixture
def store(tmp_path):
    """JSON store in a temporary data directory"""
    return JsonFileStore(tmp_path / "data", cache_ttl_seconds=60)


@pytest.fixture
def manager(store):
    return DataManager(store)


@pytest.fixture
def client(manager):
    """Test client wired to the temporary data manager"""
    app.dependency_overrides[get_data_manager] = lambda: manager
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def patient_payload():
    return PatientCreate(
        name="Jane Smith",
        phone="555-0101",
        email="jane@example.com",
        date_of_birth="1985-03-14",
        address="12 Elm St",
        medical_history="Hypertension",
        allergies="Penicillin",
        emergency_contact="John Smith",
        emergency_phone="555-0102",
    )


@pytest.fixture
def make_appointment():
    def _make(patient, **overrides):
        data = {
            "patient_id": patient.id,
            "patient_name": patient.name,
            "date": "2026-10-20",
            "time": "09:30",
            "type": "Cleaning",
            "duration": 45,
        }
        data.update(overrides)
        return AppointmentCreate(**data)
    return _make


@pytest.fixture
def make_treatment():
    def _make(patient, **overrides):
        data = {
            "patient_id": patient.id,
            "patient_name": patient.name,
            "date": "2026-10-01",
            "diagnosis": "Dental caries",
            "treatment": "Composite filling, tooth 14",
            "medications": [
                Medication(name="Ibuprofen", dosage="400mg", frequency="Every 6 hours", duration="3 days"),
            ],
            "cost": 150.0,
        }
        data.update(overrides)
        return TreatmentCreate(**data)
    return _make
