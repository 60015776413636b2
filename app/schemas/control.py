"""Schemas for security controls and sub-controls."""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class ControlCreateRequest(BaseModel):
    """Request schema for creating a security control."""
    name: str = Field(..., min_length=1, max_length=255, description="Control name")
    description: Optional[str] = Field(None, description="Control description")


class ControlUpdateRequest(BaseModel):
    """Request schema for a partial control update."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    sort_order: Optional[int] = Field(None, ge=0)


class ControlReorderRequest(BaseModel):
    """Complete new ordering of control ids, first id gets sort_order 0."""
    ordered_ids: List[int] = Field(..., description="Every control id exactly once")


class ControlResponse(BaseModel):
    """Response schema for security control."""
    id: int
    name: str
    description: Optional[str] = None
    sort_order: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SubControlCreateRequest(BaseModel):
    """Request schema for creating a sub-control."""
    control_id: int = Field(..., description="Owning control")
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class SubControlUpdateRequest(BaseModel):
    """Request schema for a partial sub-control update."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None


class SubControlResponse(BaseModel):
    """Response schema for sub-control."""
    id: int
    control_id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
