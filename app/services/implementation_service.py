"""
Service for control and sub-control implementation status writes.

Both writes are upserts keyed on the (item, control) or (item, sub-control)
pair. A sub-control write re-evaluates the owning control for the same item
and downgrades a green parent in the same transaction; a direct parent
write to green is rejected while any sub-control is not green.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import PreconditionFailedError
from app.models.implementation import (
    ControlImplementation,
    ControlStatus,
    SubControlImplementation,
)
from app.models.security_control import SubControl
from app.models.timestamps import utc_now
from app.services.catalog_service import CatalogService, commit_or_raise
from app.services.status_rules import (
    can_set_parent_status,
    evaluate_parent_after_sub_control_write,
)

logger = logging.getLogger(__name__)


@dataclass
class SubControlWriteResult:
    """Stored sub-control row plus what happened to its parent."""
    implementation: SubControlImplementation
    parent_downgraded: bool
    parent: Optional[ControlImplementation]


class ImplementationService:
    """Upserts of implementation status with the parent consistency rule."""

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)

    # -------------------- Reads --------------------

    def list_control_implementations(self, item_id: Optional[int] = None) -> List[ControlImplementation]:
        query = self.db.query(ControlImplementation)
        if item_id is not None:
            query = query.filter(ControlImplementation.item_id == item_id)
        return query.order_by(ControlImplementation.id.asc()).all()

    def list_sub_control_implementations(
        self,
        item_id: Optional[int] = None,
        control_id: Optional[int] = None,
    ) -> List[SubControlImplementation]:
        query = self.db.query(SubControlImplementation)
        if item_id is not None:
            query = query.filter(SubControlImplementation.item_id == item_id)
        if control_id is not None:
            query = query.join(
                SubControl, SubControl.id == SubControlImplementation.sub_control_id
            ).filter(SubControl.control_id == control_id)
        return query.order_by(SubControlImplementation.id.asc()).all()

    def get_control_implementation(self, item_id: int, control_id: int) -> Optional[ControlImplementation]:
        return (
            self.db.query(ControlImplementation)
            .filter(
                ControlImplementation.item_id == item_id,
                ControlImplementation.control_id == control_id,
            )
            .first()
        )

    def get_sub_control_implementation(
        self, item_id: int, sub_control_id: int
    ) -> Optional[SubControlImplementation]:
        return (
            self.db.query(SubControlImplementation)
            .filter(
                SubControlImplementation.item_id == item_id,
                SubControlImplementation.sub_control_id == sub_control_id,
            )
            .first()
        )

    def sub_control_statuses(self, item_id: int, control_id: int) -> Dict[int, Optional[ControlStatus]]:
        """
        Map every sub-control of the control to its stored status for the item.

        Sub-controls without a row map to None, which the rules read as red.
        """
        rows = (
            self.db.query(SubControl.id, SubControlImplementation.status)
            .outerjoin(
                SubControlImplementation,
                (SubControlImplementation.sub_control_id == SubControl.id)
                & (SubControlImplementation.item_id == item_id),
            )
            .filter(SubControl.control_id == control_id)
            .all()
        )
        return {sub_control_id: status for sub_control_id, status in rows}

    # -------------------- Writes --------------------

    def update_control_implementation(
        self,
        item_id: int,
        control_id: int,
        status: ControlStatus,
        notes: Optional[str],
    ) -> ControlImplementation:
        """Upsert the control status; green requires every sub-control green."""
        self.catalog.get_item(item_id)
        self.catalog.get_control(control_id)

        statuses = self.sub_control_statuses(item_id, control_id)
        if not can_set_parent_status(status, statuses.values()):
            logger.warning(
                f"Rejected green for control implementation: item_id={item_id}, "
                f"control_id={control_id} (sub-controls not all green)"
            )
            raise PreconditionFailedError(
                "Cannot set control to green when sub-controls are not all green"
            )

        implementation = self.get_control_implementation(item_id, control_id)
        now = utc_now()
        if implementation is None:
            implementation = ControlImplementation(
                item_id=item_id,
                control_id=control_id,
                status=status,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            self.db.add(implementation)
        else:
            implementation.status = status
            implementation.notes = notes
            implementation.updated_at = now

        commit_or_raise(self.db, "update control implementation")
        self.db.refresh(implementation)
        logger.info(
            f"Set control implementation: item_id={item_id}, control_id={control_id}, "
            f"status={status.value}"
        )
        return implementation

    def update_sub_control_implementation(
        self,
        item_id: int,
        sub_control_id: int,
        status: ControlStatus,
        notes: Optional[str],
    ) -> SubControlWriteResult:
        """Upsert the sub-control status, then downgrade a green parent if needed."""
        self.catalog.get_item(item_id)
        sub_control = self.catalog.get_sub_control(sub_control_id)
        control_id = sub_control.control_id

        implementation = self.get_sub_control_implementation(item_id, sub_control_id)
        now = utc_now()
        if implementation is None:
            implementation = SubControlImplementation(
                item_id=item_id,
                sub_control_id=sub_control_id,
                status=status,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            self.db.add(implementation)
        else:
            implementation.status = status
            implementation.notes = notes
            implementation.updated_at = now
        self.db.flush()

        parent = self.get_control_implementation(item_id, control_id)
        decision = evaluate_parent_after_sub_control_write(
            parent.status if parent else None,
            parent.notes if parent else None,
            self.sub_control_statuses(item_id, control_id).values(),
        )
        if decision.downgrade:
            parent.status = decision.status
            parent.notes = decision.notes
            parent.updated_at = now

        commit_or_raise(self.db, "update sub-control implementation")
        self.db.refresh(implementation)
        if parent is not None:
            self.db.refresh(parent)

        logger.info(
            f"Set sub-control implementation: item_id={item_id}, "
            f"sub_control_id={sub_control_id}, status={status.value}"
        )
        if decision.downgrade:
            logger.info(
                f"Downgraded control implementation to yellow: item_id={item_id}, "
                f"control_id={control_id}"
            )
        return SubControlWriteResult(
            implementation=implementation,
            parent_downgraded=decision.downgrade,
            parent=parent,
        )
