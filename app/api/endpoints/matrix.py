"""
Matrix endpoints: the environment x control grid and per-environment detail.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.matrix import MatrixResponse, EnvironmentDetailResponse
from app.services.matrix_service import MatrixService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=MatrixResponse)
async def get_matrix(db: Session = Depends(get_db)):
    """
    Every environment annotated with the status of every control.

    Pairs without a stored implementation report
    {"status": "red", "notes": "Not implemented"}.
    """
    return MatrixService(db).get_matrix()


@router.get("/{item_id}", response_model=EnvironmentDetailResponse)
async def get_environment_detail(item_id: int, db: Session = Depends(get_db)):
    """Control and sub-control status for one environment."""
    return MatrixService(db).get_environment_detail(item_id)
