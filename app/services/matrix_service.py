"""
Service that materializes the environment x control matrix.

Pairs without a stored implementation are filled in at read time; nothing
here writes to the database.
"""
import logging
from typing import Dict, Tuple

from sqlalchemy.orm import Session

from app.models.implementation import ControlImplementation, SubControlImplementation
from app.models.security_control import SubControl
from app.schemas.control import ControlResponse
from app.schemas.item import ItemResponse
from app.schemas.matrix import (
    ControlDetail,
    EnvironmentDetailResponse,
    MatrixEnvironment,
    MatrixResponse,
    StatusCell,
    SubControlStatus,
)
from app.services.catalog_service import CatalogService
from app.services.status_rules import (
    NOT_IMPLEMENTED_NOTE,
    effective_status,
    is_green_eligible,
)

logger = logging.getLogger(__name__)


class MatrixService:
    """Read-side aggregation over items, controls and implementations."""

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)

    def get_matrix(self) -> MatrixResponse:
        controls = self.catalog.list_controls()
        items = self.catalog.list_items()
        implementations: Dict[Tuple[int, int], ControlImplementation] = {
            (impl.item_id, impl.control_id): impl
            for impl in self.db.query(ControlImplementation).all()
        }

        environments = []
        for item in items:
            statuses = {}
            for control in controls:
                impl = implementations.get((item.id, control.id))
                if impl is None:
                    statuses[control.id] = StatusCell(
                        status=effective_status(None), notes=NOT_IMPLEMENTED_NOTE
                    )
                else:
                    statuses[control.id] = StatusCell(
                        status=impl.status, notes=impl.notes or NOT_IMPLEMENTED_NOTE
                    )
            environment = MatrixEnvironment(
                **ItemResponse.model_validate(item).model_dump(),
                control_statuses=statuses,
            )
            environments.append(environment)

        logger.debug(f"Built matrix: {len(items)} environments x {len(controls)} controls")
        return MatrixResponse(
            controls=[ControlResponse.model_validate(c) for c in controls],
            environments=environments,
        )

    def get_environment_detail(self, item_id: int) -> EnvironmentDetailResponse:
        """Per-control and per-sub-control status for one environment."""
        item = self.catalog.get_item(item_id)
        controls = self.catalog.list_controls()

        control_impls = {
            impl.control_id: impl
            for impl in self.db.query(ControlImplementation)
            .filter(ControlImplementation.item_id == item_id)
            .all()
        }
        sub_impls = {
            impl.sub_control_id: impl
            for impl in self.db.query(SubControlImplementation)
            .filter(SubControlImplementation.item_id == item_id)
            .all()
        }
        sub_controls_by_control: Dict[int, list] = {}
        for sub_control in self.db.query(SubControl).order_by(SubControl.id.asc()).all():
            sub_controls_by_control.setdefault(sub_control.control_id, []).append(sub_control)

        details = []
        for control in controls:
            sub_statuses = []
            for sub_control in sub_controls_by_control.get(control.id, []):
                impl = sub_impls.get(sub_control.id)
                sub_statuses.append(
                    SubControlStatus(
                        sub_control_id=sub_control.id,
                        name=sub_control.name,
                        description=sub_control.description,
                        status=effective_status(impl.status if impl else None),
                        notes=impl.notes if impl else None,
                    )
                )
            impl = control_impls.get(control.id)
            details.append(
                ControlDetail(
                    control_id=control.id,
                    name=control.name,
                    description=control.description,
                    sort_order=control.sort_order,
                    status=effective_status(impl.status if impl else None),
                    notes=impl.notes if impl else NOT_IMPLEMENTED_NOTE,
                    green_eligible=is_green_eligible(s.status for s in sub_statuses),
                    sub_controls=sub_statuses,
                )
            )

        return EnvironmentDetailResponse(
            environment=ItemResponse.model_validate(item),
            controls=details,
        )
