"""
Item (environment) model: a tracked asset whose controls are assessed.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Enum
import enum

from app.core.database import Base
from app.models.timestamps import utc_now


class CriticalityLevel(str, enum.Enum):
    """Business criticality of an item."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Item(Base):
    """Tracked asset (application, system, database, ...)."""
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(255), nullable=True)
    item_type = Column(String(100), nullable=True)
    owner = Column(String(255), nullable=True)  # Team or person responsible
    criticality = Column(
        Enum(CriticalityLevel, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=CriticalityLevel.MEDIUM,
    )
    tags = Column(JSON, nullable=False, default=list)  # ordered list of strings

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)
