"""Database models."""
from app.models.item import Item, CriticalityLevel
from app.models.security_control import SecurityControl, SubControl
from app.models.implementation import (
    ControlStatus,
    ControlImplementation,
    SubControlImplementation,
)

__all__ = [
    "Item",
    "CriticalityLevel",
    "SecurityControl",
    "SubControl",
    "ControlStatus",
    "ControlImplementation",
    "SubControlImplementation",
]
