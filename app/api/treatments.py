"""
Treatment and prescription record endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends

from app.database.schemas import Treatment, TreatmentCreate, TreatmentUpdate
from app.services.data_manager import DataManager
from app.services.dashboard import search_treatments
from app.api.utils import get_data_manager, not_found

router = APIRouter(prefix="/treatments", tags=["treatments"])


@router.get("", response_model=List[Treatment])
async def list_treatments(search: Optional[str] = None, manager: DataManager = Depends(get_data_manager)):
    """
    List treatments, most recent first, optionally filtered by patient
    name, diagnosis or treatment text
    """
    return search_treatments(manager.get_treatments(), search or "")


@router.post("", response_model=Treatment, status_code=201)
async def create_treatment(treatment: TreatmentCreate, manager: DataManager = Depends(get_data_manager)):
    return manager.add_treatment(treatment)


@router.get("/{treatment_id}", response_model=Treatment)
async def get_treatment(treatment_id: str, manager: DataManager = Depends(get_data_manager)):
    treatment = manager.get_treatment(treatment_id)
    if not treatment:
        raise not_found("Treatment")
    return treatment


@router.patch("/{treatment_id}", response_model=Treatment)
async def update_treatment(
    treatment_id: str,
    updates: TreatmentUpdate,
    manager: DataManager = Depends(get_data_manager),
):
    treatment = manager.update_treatment(treatment_id, updates)
    if not treatment:
        raise not_found("Treatment")
    return treatment


@router.delete("/{treatment_id}")
async def delete_treatment(treatment_id: str, manager: DataManager = Depends(get_data_manager)):
    if not manager.delete_treatment(treatment_id):
        raise not_found("Treatment")
    return {"message": "Treatment deleted successfully"}
