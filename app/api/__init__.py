# API routes
from fastapi import APIRouter
from app.api.patients import router as patients_router
from app.api.appointments import router as appointments_router
from app.api.treatments import router as treatments_router
from app.api.export import router as data_router
from app.api.dashboard import router as dashboard_router

# Combine all routers
router = APIRouter()
router.include_router(patients_router)
router.include_router(appointments_router)
router.include_router(treatments_router)
router.include_router(data_router)
router.include_router(dashboard_router)

__all__ = ["router"]
