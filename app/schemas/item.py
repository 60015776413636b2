"""Schemas for item (environment) management."""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

from app.models.item import CriticalityLevel


def normalize_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Strip whitespace, drop blanks and duplicates while keeping order."""
    if tags is None:
        return None
    cleaned: List[str] = []
    for tag in tags:
        value = tag.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def normalize_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    name = name.strip()
    if not name:
        raise ValueError("Name must not be blank")
    return name


class ItemCreateRequest(BaseModel):
    """Request schema for creating a new item."""
    name: str = Field(..., min_length=1, max_length=255, description="Item name")
    description: Optional[str] = Field(None, description="Free-form description")
    category: Optional[str] = Field(None, max_length=255, description="e.g. Web Application, Database")
    item_type: Optional[str] = Field(None, max_length=100, description="e.g. Application, System")
    owner: Optional[str] = Field(None, max_length=255, description="Owner or team")
    criticality: CriticalityLevel = Field(CriticalityLevel.MEDIUM, description="Business criticality")
    tags: List[str] = Field(default_factory=list, description="Ordered list of tags")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return normalize_name(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return normalize_tags(v)


class ItemUpdateRequest(BaseModel):
    """Request schema for a partial item update."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=255)
    item_type: Optional[str] = Field(None, max_length=100)
    owner: Optional[str] = Field(None, max_length=255)
    criticality: Optional[CriticalityLevel] = None
    tags: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return normalize_name(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return normalize_tags(v)


class ItemResponse(BaseModel):
    """Response schema for item."""
    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    item_type: Optional[str] = None
    owner: Optional[str] = None
    criticality: CriticalityLevel
    tags: List[str] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
