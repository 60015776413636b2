"""
Item (environment) endpoints.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.common import SuccessResponse
from app.schemas.item import ItemCreateRequest, ItemUpdateRequest, ItemResponse
from app.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[ItemResponse])
async def list_items(db: Session = Depends(get_db)):
    """List all items."""
    return CatalogService(db).list_items()


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: int, db: Session = Depends(get_db)):
    """Get a specific item by ID."""
    return CatalogService(db).get_item(item_id)


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(request: ItemCreateRequest, db: Session = Depends(get_db)):
    """Create a new item."""
    return CatalogService(db).create_item(request)


@router.put("/{item_id}", response_model=SuccessResponse)
async def update_item(item_id: int, request: ItemUpdateRequest, db: Session = Depends(get_db)):
    """Update the provided fields of an item."""
    CatalogService(db).update_item(item_id, request)
    return SuccessResponse()


@router.delete("/{item_id}", response_model=SuccessResponse)
async def delete_item(item_id: int, db: Session = Depends(get_db)):
    """
    Delete an item.

    Control and sub-control implementation rows for the item are removed first.
    """
    CatalogService(db).delete_item(item_id)
    return SuccessResponse()
