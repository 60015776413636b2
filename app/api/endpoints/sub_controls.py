"""
Sub-control endpoints.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.common import SuccessResponse
from app.schemas.control import (
    SubControlCreateRequest,
    SubControlUpdateRequest,
    SubControlResponse,
)
from app.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[SubControlResponse])
async def list_sub_controls(db: Session = Depends(get_db)):
    """List all sub-controls."""
    return CatalogService(db).list_sub_controls()


@router.get("/control/{control_id}", response_model=List[SubControlResponse])
async def list_sub_controls_for_control(control_id: int, db: Session = Depends(get_db)):
    """List the sub-controls of one control."""
    return CatalogService(db).list_sub_controls(control_id=control_id)


@router.get("/{sub_control_id}", response_model=SubControlResponse)
async def get_sub_control(sub_control_id: int, db: Session = Depends(get_db)):
    return CatalogService(db).get_sub_control(sub_control_id)


@router.post("", response_model=SubControlResponse, status_code=status.HTTP_201_CREATED)
async def create_sub_control(request: SubControlCreateRequest, db: Session = Depends(get_db)):
    """
    Create a sub-control under an existing control.

    A control that is already green for some item stays green until the
    next sub-control status write for that item.
    """
    return CatalogService(db).create_sub_control(request)


@router.put("/{sub_control_id}", response_model=SuccessResponse)
async def update_sub_control(
    sub_control_id: int,
    request: SubControlUpdateRequest,
    db: Session = Depends(get_db),
):
    CatalogService(db).update_sub_control(sub_control_id, request)
    return SuccessResponse()


@router.delete("/{sub_control_id}", response_model=SuccessResponse)
async def delete_sub_control(sub_control_id: int, db: Session = Depends(get_db)):
    """Delete a sub-control and its implementation rows."""
    CatalogService(db).delete_sub_control(sub_control_id)
    return SuccessResponse()
