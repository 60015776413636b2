"""Shared response schemas."""
from pydantic import BaseModel


class SuccessResponse(BaseModel):
    """Acknowledgement returned by update and delete endpoints."""
    success: bool = True
