"""
Appointment scheduling endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends

from app.database.schemas import Appointment, AppointmentCreate, AppointmentUpdate
from app.services.data_manager import DataManager
from app.services.dashboard import filter_appointments
from app.api.utils import get_data_manager, not_found

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("", response_model=List[Appointment])
async def list_appointments(
    search: Optional[str] = None,
    status: Optional[str] = None,
    manager: DataManager = Depends(get_data_manager),
):
    """
    List appointments ordered by date and time

    `search` matches patient name or visit type; `status` may be
    scheduled, completed, cancelled or all.
    """
    return filter_appointments(manager.get_appointments(), search or "", status)


@router.post("", response_model=Appointment, status_code=201)
async def create_appointment(appointment: AppointmentCreate, manager: DataManager = Depends(get_data_manager)):
    """
    Schedule an appointment

    The patient reference is not checked; orphans show up in GET /data/validate.
    """
    return manager.add_appointment(appointment)


@router.get("/{appointment_id}", response_model=Appointment)
async def get_appointment(appointment_id: str, manager: DataManager = Depends(get_data_manager)):
    appointment = manager.get_appointment(appointment_id)
    if not appointment:
        raise not_found("Appointment")
    return appointment


@router.patch("/{appointment_id}", response_model=Appointment)
async def update_appointment(
    appointment_id: str,
    updates: AppointmentUpdate,
    manager: DataManager = Depends(get_data_manager),
):
    """
    Update appointment fields, including status changes
    """
    appointment = manager.update_appointment(appointment_id, updates)
    if not appointment:
        raise not_found("Appointment")
    return appointment


@router.delete("/{appointment_id}")
async def delete_appointment(appointment_id: str, manager: DataManager = Depends(get_data_manager)):
    if not manager.delete_appointment(appointment_id):
        raise not_found("Appointment")
    return {"message": "Appointment deleted successfully"}
