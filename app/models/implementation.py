"""
Implementation status models.

At most one row exists per (item, control) and per (item, sub-control).
A missing row means "not implemented"; the gray/unknown state shown by
the UI is never persisted.
"""
from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey, Enum, UniqueConstraint
import enum

from app.core.database import Base
from app.models.timestamps import utc_now


class ControlStatus(str, enum.Enum):
    """Persisted implementation status."""
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"


def _status_enum():
    return Enum(
        ControlStatus,
        name="control_status",
        values_callable=lambda e: [m.value for m in e],
    )


class ControlImplementation(Base):
    """Status of one control for one item."""
    __tablename__ = "control_implementations"
    __table_args__ = (
        UniqueConstraint("item_id", "control_id", name="uq_control_impl_item_control"),
    )

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    control_id = Column(Integer, ForeignKey("security_controls.id"), nullable=False, index=True)
    status = Column(_status_enum(), nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)


class SubControlImplementation(Base):
    """Status of one sub-control for one item."""
    __tablename__ = "sub_control_implementations"
    __table_args__ = (
        UniqueConstraint("item_id", "sub_control_id", name="uq_sub_control_impl_item_sub_control"),
    )

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    sub_control_id = Column(Integer, ForeignKey("sub_controls.id"), nullable=False, index=True)
    status = Column(_status_enum(), nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)
