"""
Security control and sub-control models.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.timestamps import utc_now


class SecurityControl(Base):
    """Top-level control category (e.g. "Access Control")."""
    __tablename__ = "security_controls"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0, index=True)  # display position, 0-indexed

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    # Deletes are cascaded explicitly by the catalog service, not by the ORM
    sub_controls = relationship(
        "SubControl",
        back_populates="control",
        order_by="SubControl.id",
        passive_deletes="all",
    )


class SubControl(Base):
    """Finer-grained requirement under exactly one control."""
    __tablename__ = "sub_controls"

    id = Column(Integer, primary_key=True, index=True)
    control_id = Column(Integer, ForeignKey("security_controls.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    control = relationship("SecurityControl", back_populates="sub_controls")
