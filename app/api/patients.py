"""
Patient registry endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends

from app.database.schemas import Patient, PatientCreate, PatientUpdate, Appointment, Treatment
from app.services.data_manager import DataManager
from app.services.dashboard import search_patients
from app.api.utils import get_data_manager, not_found

router = APIRouter(prefix="/patients", tags=["patients"])


@router.get("", response_model=List[Patient])
async def list_patients(search: Optional[str] = None, manager: DataManager = Depends(get_data_manager)):
    """
    List patients, optionally filtered by name, email or phone
    """
    return search_patients(manager.get_patients(), search or "")


@router.post("", response_model=Patient, status_code=201)
async def create_patient(patient: PatientCreate, manager: DataManager = Depends(get_data_manager)):
    """
    Register a patient

    Duplicate emails/phones are accepted here; GET /data/validate reports them.
    """
    return manager.add_patient(patient)


@router.get("/{patient_id}", response_model=Patient)
async def get_patient(patient_id: str, manager: DataManager = Depends(get_data_manager)):
    patient = manager.get_patient(patient_id)
    if not patient:
        raise not_found("Patient")
    return patient


@router.patch("/{patient_id}", response_model=Patient)
async def update_patient(
    patient_id: str,
    updates: PatientUpdate,
    manager: DataManager = Depends(get_data_manager),
):
    """
    Update only the fields provided in the request
    """
    patient = manager.update_patient(patient_id, updates)
    if not patient:
        raise not_found("Patient")
    return patient


@router.delete("/{patient_id}")
async def delete_patient(patient_id: str, manager: DataManager = Depends(get_data_manager)):
    """
    Delete patient together with their appointments and treatments
    Returns 404 if no patient exists to ensure DELETE never silently fails
    """
    if not manager.delete_patient(patient_id):
        raise not_found("Patient")
    return {"message": "Patient deleted successfully"}


@router.get("/{patient_id}/appointments", response_model=List[Appointment])
async def list_patient_appointments(patient_id: str, manager: DataManager = Depends(get_data_manager)):
    if not manager.get_patient(patient_id):
        raise not_found("Patient")
    return manager.get_appointments_for_patient(patient_id)


@router.get("/{patient_id}/treatments", response_model=List[Treatment])
async def list_patient_treatments(patient_id: str, manager: DataManager = Depends(get_data_manager)):
    if not manager.get_patient(patient_id):
        raise not_found("Patient")
    return manager.get_treatments_for_patient(patient_id)
