"""
Service for JSON export, import and wipe of the whole database.

The export is a backup format, not a sync protocol: import replaces every
row and preserves ids and timestamps.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import StorageError, ValidationError
from app.models.implementation import (
    ControlImplementation,
    ControlStatus,
    SubControlImplementation,
)
from app.models.item import CriticalityLevel, Item
from app.models.security_control import SecurityControl, SubControl
from app.schemas.backup import ExportEnvelope
from app.services.catalog_service import commit_or_raise

logger = logging.getLogger(__name__)

EXPORT_VERSION = "2.0.0"

# Parents first; deletes run in reverse
TABLES = [
    ("items", Item),
    ("security_controls", SecurityControl),
    ("sub_controls", SubControl),
    ("control_implementations", ControlImplementation),
    ("sub_control_implementations", SubControlImplementation),
]

_ENUM_COLUMNS = {
    "criticality": CriticalityLevel,
    "status": ControlStatus,
}


def _serialize_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (CriticalityLevel, ControlStatus)):
        return value.value
    return value


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        column.name: _serialize_value(getattr(row, column.name))
        for column in row.__table__.columns
    }


def _dict_to_row(model: Type, data: Dict[str, Any]):
    values = {}
    for column in model.__table__.columns:
        if column.name not in data:
            continue
        value = data[column.name]
        if value is not None and column.name in ("created_at", "updated_at"):
            value = datetime.fromisoformat(value)
        elif value is not None and column.name in _ENUM_COLUMNS:
            value = _ENUM_COLUMNS[column.name](value)
        values[column.name] = value
    return model(**values)


class BackupService:
    """Bulk dump and reload of all five tables."""

    def __init__(self, db: Session):
        self.db = db

    def counts(self) -> Dict[str, int]:
        return {name: self.db.query(model).count() for name, model in TABLES}

    def export_data(self) -> Dict[str, Any]:
        data = {
            name: [_row_to_dict(row) for row in self.db.query(model).order_by(model.id.asc()).all()]
            for name, model in TABLES
        }
        envelope = ExportEnvelope.model_validate(
            {
                "metadata": {
                    "exportedAt": datetime.now(timezone.utc),
                    "version": EXPORT_VERSION,
                    "application": settings.APP_NAME,
                    "counts": {name: len(rows) for name, rows in data.items()},
                },
                "data": data,
            }
        )
        return envelope.model_dump(mode="json", by_alias=True)

    def export_to_file(self, output: Optional[Path] = None) -> Path:
        if output is None:
            export_dir = Path(settings.EXPORT_DIR)
            export_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d")
            output = export_dir / f"security-tracker-export-{stamp}.json"
        payload = self.export_data()
        output.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info(f"Exported database to {output}: {payload['metadata']['counts']}")
        return output

    def wipe(self) -> Dict[str, int]:
        """Delete every row, children first. Returns the per-table counts removed."""
        removed = {}
        for name, model in reversed(TABLES):
            removed[name] = self.db.query(model).delete(synchronize_session=False)
        commit_or_raise(self.db, "wipe database")
        # SQLite reuses rowids, so stale instances would clash with new inserts
        self.db.expunge_all()
        logger.warning(f"Wiped database: {removed}")
        return removed

    def import_data(self, payload: Dict[str, Any]) -> Dict[str, int]:
        """Replace all rows with the contents of an export payload."""
        try:
            envelope = ExportEnvelope.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid export file format: {e}") from e

        tables: Dict[str, List[Dict[str, Any]]] = envelope.data.model_dump()
        # Convert every row up front so a malformed value never reaches the deletes
        rows: Dict[str, list] = {}
        for name, model in TABLES:
            try:
                rows[name] = [_dict_to_row(model, row) for row in tables[name]]
            except (ValueError, TypeError, KeyError) as e:
                raise ValidationError(f"Invalid row in {name}: {e}") from e

        try:
            for name, model in reversed(TABLES):
                self.db.query(model).delete(synchronize_session=False)
            # Rows loaded earlier in this session would clash with the imported ids
            self.db.expunge_all()
            for name, _ in TABLES:
                self.db.add_all(rows[name])
                # Parents must exist before children are inserted
                self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Import failed, database left unchanged: {e}", exc_info=True)
            raise StorageError("Failed to import database") from e
        commit_or_raise(self.db, "import database")

        imported = {name: len(tables[name]) for name, _ in TABLES}
        logger.info(f"Imported database export from {envelope.metadata.exported_at}: {imported}")
        return imported

    def import_from_file(self, path: Path) -> Dict[str, int]:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValidationError(f"Export file is not valid JSON: {e}") from e
        return self.import_data(payload)
