"""Schemas for control and sub-control implementation status."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.models.implementation import ControlStatus


class ImplementationUpdateRequest(BaseModel):
    """Body of the upsert endpoints."""
    status: ControlStatus = Field(..., description="red, yellow or green")
    notes: Optional[str] = Field(None, description="Free-form notes")


class ControlImplementationResponse(BaseModel):
    """Response schema for a control implementation row."""
    id: int
    item_id: int
    control_id: int
    status: ControlStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SubControlImplementationResponse(BaseModel):
    """Response schema for a sub-control implementation row."""
    id: int
    item_id: int
    sub_control_id: int
    status: ControlStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SubControlImplementationUpdateResponse(BaseModel):
    """Result of a sub-control status write, including the parent side effect."""
    success: bool = True
    parent_downgraded: bool = False
    parent_status: Optional[ControlStatus] = None
    parent_notes: Optional[str] = None
