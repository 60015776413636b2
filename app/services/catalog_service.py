"""
Service for items, security controls and sub-controls.

Deletes cascade explicitly to dependent implementation rows inside a single
transaction, so a failure part-way leaves no orphans behind.
"""
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.models.implementation import ControlImplementation, SubControlImplementation
from app.models.item import Item
from app.models.security_control import SecurityControl, SubControl
from app.models.timestamps import utc_now
from app.schemas.control import (
    ControlCreateRequest,
    ControlUpdateRequest,
    SubControlCreateRequest,
    SubControlUpdateRequest,
)
from app.schemas.item import ItemCreateRequest, ItemUpdateRequest

logger = logging.getLogger(__name__)


def commit_or_raise(db: Session, action: str) -> None:
    """Commit the session, translating storage failures into StorageError."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage failure while trying to {action}: {e}", exc_info=True)
        raise StorageError(f"Failed to {action}") from e


class CatalogService:
    """CRUD over items, controls and sub-controls."""

    def __init__(self, db: Session):
        self.db = db

    # -------------------- Items --------------------

    def list_items(self) -> List[Item]:
        return self.db.query(Item).order_by(Item.id.asc()).all()

    def get_item(self, item_id: int) -> Item:
        item = self.db.get(Item, item_id)
        if not item:
            raise NotFoundError("Item", item_id)
        return item

    def create_item(self, request: ItemCreateRequest) -> Item:
        item = Item(
            name=request.name,
            description=request.description,
            category=request.category,
            item_type=request.item_type,
            owner=request.owner,
            criticality=request.criticality,
            tags=list(request.tags),
        )
        self.db.add(item)
        commit_or_raise(self.db, "create item")
        self.db.refresh(item)
        logger.info(f"Created item: id={item.id}, name={item.name}")
        return item

    def update_item(self, item_id: int, request: ItemUpdateRequest) -> Item:
        item = self.get_item(item_id)
        changes = request.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] is None:
            raise ValidationError("Item name cannot be null")
        if "criticality" in changes and changes["criticality"] is None:
            raise ValidationError("Item criticality cannot be null")
        if "tags" in changes and changes["tags"] is None:
            changes["tags"] = []
        for field, value in changes.items():
            setattr(item, field, value)
        item.updated_at = utc_now()
        commit_or_raise(self.db, "update item")
        self.db.refresh(item)
        logger.info(f"Updated item: id={item_id}, fields={sorted(changes)}")
        return item

    def delete_item(self, item_id: int) -> None:
        item = self.get_item(item_id)
        sub_impls = (
            self.db.query(SubControlImplementation)
            .filter(SubControlImplementation.item_id == item_id)
            .delete(synchronize_session=False)
        )
        impls = (
            self.db.query(ControlImplementation)
            .filter(ControlImplementation.item_id == item_id)
            .delete(synchronize_session=False)
        )
        self.db.delete(item)
        commit_or_raise(self.db, "delete item")
        logger.info(
            f"Deleted item: id={item_id} "
            f"(cascaded {impls} control and {sub_impls} sub-control implementations)"
        )

    # -------------------- Security controls --------------------

    def list_controls(self) -> List[SecurityControl]:
        return (
            self.db.query(SecurityControl)
            .order_by(SecurityControl.sort_order.asc(), SecurityControl.id.asc())
            .all()
        )

    def get_control(self, control_id: int) -> SecurityControl:
        control = self.db.get(SecurityControl, control_id)
        if not control:
            raise NotFoundError("Security control", control_id)
        return control

    def create_control(self, request: ControlCreateRequest) -> SecurityControl:
        max_order = self.db.query(func.max(SecurityControl.sort_order)).scalar()
        control = SecurityControl(
            name=request.name,
            description=request.description,
            sort_order=0 if max_order is None else max_order + 1,
        )
        self.db.add(control)
        commit_or_raise(self.db, "create security control")
        self.db.refresh(control)
        logger.info(f"Created security control: id={control.id}, name={control.name}")
        return control

    def update_control(self, control_id: int, request: ControlUpdateRequest) -> SecurityControl:
        control = self.get_control(control_id)
        changes = request.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] is None:
            raise ValidationError("Control name cannot be null")
        if "sort_order" in changes and changes["sort_order"] is None:
            raise ValidationError("Control sort_order cannot be null")
        for field, value in changes.items():
            setattr(control, field, value)
        control.updated_at = utc_now()
        commit_or_raise(self.db, "update security control")
        self.db.refresh(control)
        logger.info(f"Updated security control: id={control_id}, fields={sorted(changes)}")
        return control

    def delete_control(self, control_id: int) -> None:
        control = self.get_control(control_id)
        sub_control_ids = [
            row.id
            for row in self.db.query(SubControl.id).filter(SubControl.control_id == control_id)
        ]
        if sub_control_ids:
            (
                self.db.query(SubControlImplementation)
                .filter(SubControlImplementation.sub_control_id.in_(sub_control_ids))
                .delete(synchronize_session=False)
            )
            (
                self.db.query(SubControl)
                .filter(SubControl.id.in_(sub_control_ids))
                .delete(synchronize_session=False)
            )
        (
            self.db.query(ControlImplementation)
            .filter(ControlImplementation.control_id == control_id)
            .delete(synchronize_session=False)
        )
        self.db.delete(control)
        commit_or_raise(self.db, "delete security control")
        logger.info(
            f"Deleted security control: id={control_id} "
            f"(cascaded {len(sub_control_ids)} sub-controls)"
        )

    def reorder_controls(self, ordered_ids: List[int]) -> List[SecurityControl]:
        """Rewrite sort_order so that ordered_ids[i] gets position i."""
        if len(set(ordered_ids)) != len(ordered_ids):
            raise ValidationError("Control ordering contains duplicate ids")

        controls = {c.id: c for c in self.db.query(SecurityControl).all()}
        unknown = [cid for cid in ordered_ids if cid not in controls]
        if unknown:
            raise NotFoundError("Security control", unknown[0])
        missing = sorted(set(controls) - set(ordered_ids))
        if missing:
            raise ValidationError(
                f"Control ordering must include every control; missing ids: {missing}"
            )

        for position, control_id in enumerate(ordered_ids):
            controls[control_id].sort_order = position
        commit_or_raise(self.db, "reorder security controls")
        logger.info(f"Reordered security controls: {ordered_ids}")
        return self.list_controls()

    # -------------------- Sub-controls --------------------

    def list_sub_controls(self, control_id: Optional[int] = None) -> List[SubControl]:
        query = self.db.query(SubControl)
        if control_id is not None:
            self.get_control(control_id)
            query = query.filter(SubControl.control_id == control_id)
        return query.order_by(SubControl.control_id.asc(), SubControl.id.asc()).all()

    def get_sub_control(self, sub_control_id: int) -> SubControl:
        sub_control = self.db.get(SubControl, sub_control_id)
        if not sub_control:
            raise NotFoundError("Sub-control", sub_control_id)
        return sub_control

    def create_sub_control(self, request: SubControlCreateRequest) -> SubControl:
        self.get_control(request.control_id)
        sub_control = SubControl(
            control_id=request.control_id,
            name=request.name,
            description=request.description,
        )
        self.db.add(sub_control)
        commit_or_raise(self.db, "create sub-control")
        self.db.refresh(sub_control)
        # Existing green parents are left as-is until the next sub-control status write
        logger.info(
            f"Created sub-control: id={sub_control.id}, control_id={sub_control.control_id}"
        )
        return sub_control

    def update_sub_control(self, sub_control_id: int, request: SubControlUpdateRequest) -> SubControl:
        sub_control = self.get_sub_control(sub_control_id)
        changes = request.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] is None:
            raise ValidationError("Sub-control name cannot be null")
        for field, value in changes.items():
            setattr(sub_control, field, value)
        sub_control.updated_at = utc_now()
        commit_or_raise(self.db, "update sub-control")
        self.db.refresh(sub_control)
        logger.info(f"Updated sub-control: id={sub_control_id}, fields={sorted(changes)}")
        return sub_control

    def delete_sub_control(self, sub_control_id: int) -> None:
        sub_control = self.get_sub_control(sub_control_id)
        (
            self.db.query(SubControlImplementation)
            .filter(SubControlImplementation.sub_control_id == sub_control_id)
            .delete(synchronize_session=False)
        )
        self.db.delete(sub_control)
        commit_or_raise(self.db, "delete sub-control")
        logger.info(f"Deleted sub-control: id={sub_control_id}")
