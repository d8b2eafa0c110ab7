"""
Practice overview endpoint
"""
from fastapi import APIRouter, Depends

from app.database.schemas import DashboardSummary
from app.services.data_manager import DataManager
from app.services.dashboard import build_dashboard_summary
from app.api.utils import get_data_manager

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard(manager: DataManager = Depends(get_data_manager)):
    """
    Today's appointments, revenue and patient metrics
    """
    return build_dashboard_summary(manager)
