"""Schemas for the JSON export envelope."""
from datetime import datetime
from typing import Any, Dict, List
from pydantic import BaseModel, Field


class ExportMetadata(BaseModel):
    """Envelope metadata written alongside the table dump."""
    exported_at: datetime = Field(..., alias="exportedAt")
    version: str
    application: str
    counts: Dict[str, int]

    model_config = {"populate_by_name": True}


class ExportData(BaseModel):
    """Row dumps, one list per table."""
    items: List[Dict[str, Any]] = []
    security_controls: List[Dict[str, Any]] = Field(default_factory=list, alias="securityControls")
    sub_controls: List[Dict[str, Any]] = Field(default_factory=list, alias="subControls")
    control_implementations: List[Dict[str, Any]] = Field(default_factory=list, alias="controlImplementations")
    sub_control_implementations: List[Dict[str, Any]] = Field(
        default_factory=list, alias="subControlImplementations"
    )

    model_config = {"populate_by_name": True}


class ExportEnvelope(BaseModel):
    """Complete export document."""
    metadata: ExportMetadata
    data: ExportData
