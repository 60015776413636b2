"""Schemas for the environment x control matrix."""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from app.models.implementation import ControlStatus
from app.schemas.control import ControlResponse
from app.schemas.item import ItemResponse


class StatusCell(BaseModel):
    """Status and notes for one (item, control) pair."""
    status: ControlStatus
    notes: Optional[str] = None


class MatrixEnvironment(ItemResponse):
    """Item annotated with the status of every control."""
    control_statuses: Dict[int, StatusCell] = Field(default_factory=dict, alias="controlStatuses")

    model_config = {"from_attributes": True, "populate_by_name": True}


class MatrixResponse(BaseModel):
    """Full matrix: all controls and all environments."""
    controls: List[ControlResponse]
    environments: List[MatrixEnvironment]


class SubControlStatus(BaseModel):
    """Status of one sub-control for the item in a detail view."""
    sub_control_id: int
    name: str
    description: Optional[str] = None
    status: ControlStatus
    notes: Optional[str] = None


class ControlDetail(BaseModel):
    """Status of one control, its sub-controls and whether green is allowed."""
    control_id: int
    name: str
    description: Optional[str] = None
    sort_order: int
    status: ControlStatus
    notes: Optional[str] = None
    green_eligible: bool
    sub_controls: List[SubControlStatus] = []


class EnvironmentDetailResponse(BaseModel):
    """Everything the detail view needs for one environment."""
    environment: ItemResponse
    controls: List[ControlDetail]
