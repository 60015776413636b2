"""
Security control endpoints.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.common import SuccessResponse
from app.schemas.control import (
    ControlCreateRequest,
    ControlUpdateRequest,
    ControlReorderRequest,
    ControlResponse,
)
from app.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[ControlResponse])
async def list_controls(db: Session = Depends(get_db)):
    """List all controls ordered by sort_order."""
    return CatalogService(db).list_controls()


# Registered before /{control_id} so "reorder" is not parsed as an id
@router.put("/reorder", response_model=List[ControlResponse])
async def reorder_controls(request: ControlReorderRequest, db: Session = Depends(get_db)):
    """
    Rewrite sort_order for every control.

    The body must list every existing control id exactly once; the first id
    gets sort_order 0.
    """
    return CatalogService(db).reorder_controls(request.ordered_ids)


@router.get("/{control_id}", response_model=ControlResponse)
async def get_control(control_id: int, db: Session = Depends(get_db)):
    """Get a specific control by ID."""
    return CatalogService(db).get_control(control_id)


@router.post("", response_model=ControlResponse, status_code=status.HTTP_201_CREATED)
async def create_control(request: ControlCreateRequest, db: Session = Depends(get_db)):
    """Create a control at the end of the current ordering."""
    return CatalogService(db).create_control(request)


@router.put("/{control_id}", response_model=SuccessResponse)
async def update_control(control_id: int, request: ControlUpdateRequest, db: Session = Depends(get_db)):
    """Update the provided fields of a control."""
    CatalogService(db).update_control(control_id, request)
    return SuccessResponse()


@router.delete("/{control_id}", response_model=SuccessResponse)
async def delete_control(control_id: int, db: Session = Depends(get_db)):
    """
    Delete a control.

    Its implementations, sub-controls and sub-control implementations go with it.
    """
    CatalogService(db).delete_control(control_id)
    return SuccessResponse()
