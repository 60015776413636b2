"""
Control and sub-control implementation status endpoints.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.common import SuccessResponse
from app.schemas.implementation import (
    ImplementationUpdateRequest,
    ControlImplementationResponse,
    SubControlImplementationResponse,
    SubControlImplementationUpdateResponse,
)
from app.services.implementation_service import ImplementationService

logger = logging.getLogger(__name__)

router = APIRouter()
sub_control_router = APIRouter()


@router.get("", response_model=List[ControlImplementationResponse])
async def list_control_implementations(
    item_id: Optional[int] = Query(None, description="Filter by item"),
    db: Session = Depends(get_db),
):
    """List stored control implementations."""
    return ImplementationService(db).list_control_implementations(item_id=item_id)


@router.put("/{item_id}/{control_id}", response_model=SuccessResponse)
async def update_control_implementation(
    item_id: int,
    control_id: int,
    request: ImplementationUpdateRequest,
    db: Session = Depends(get_db),
):
    """
    Create or update the status of a control for an item.

    Returns 409 when green is requested while any sub-control of the
    control is not green for the item.
    """
    ImplementationService(db).update_control_implementation(
        item_id, control_id, request.status, request.notes
    )
    return SuccessResponse()


@sub_control_router.get("", response_model=List[SubControlImplementationResponse])
async def list_sub_control_implementations(
    item_id: Optional[int] = Query(None, description="Filter by item"),
    control_id: Optional[int] = Query(None, description="Filter by owning control"),
    db: Session = Depends(get_db),
):
    """List stored sub-control implementations."""
    return ImplementationService(db).list_sub_control_implementations(
        item_id=item_id, control_id=control_id
    )


@sub_control_router.put(
    "/{item_id}/{sub_control_id}", response_model=SubControlImplementationUpdateResponse
)
async def update_sub_control_implementation(
    item_id: int,
    sub_control_id: int,
    request: ImplementationUpdateRequest,
    db: Session = Depends(get_db),
):
    """
    Create or update the status of a sub-control for an item.

    If the owning control is green for the item and any of its sub-controls
    is now not green, the control is downgraded to yellow in the same write.
    """
    result = ImplementationService(db).update_sub_control_implementation(
        item_id, sub_control_id, request.status, request.notes
    )
    parent = result.parent
    return SubControlImplementationUpdateResponse(
        parent_downgraded=result.parent_downgraded,
        parent_status=parent.status if parent else None,
        parent_notes=parent.notes if parent else None,
    )
