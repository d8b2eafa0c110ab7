"""
Utility functions for API endpoints
"""
from fastapi import Request, HTTPException

from app.services.data_manager import DataManager


def get_data_manager(request: Request) -> DataManager:
    """
    Return the data manager created for this app at startup

    Raises HTTPException with 503 status if the app was started without one
    """
    manager = getattr(request.app.state, "data_manager", None)
    if manager is None:
        raise HTTPException(
            status_code=503,
            detail="Data manager is not initialized."
        )
    return manager


def not_found(entity: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{entity} not found")
