"""Initial schema: items, controls, sub-controls and implementation status

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

CRITICALITY_VALUES = ("low", "medium", "high", "critical")
STATUS_VALUES = ("red", "yellow", "green")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # ── 1. items ──
    op.create_table(
        "items",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.String(255), nullable=True),
        sa.Column("item_type", sa.String(100), nullable=True),
        sa.Column("owner", sa.String(255), nullable=True),
        sa.Column(
            "criticality",
            sa.Enum(*CRITICALITY_VALUES, name="criticalitylevel"),
            nullable=False,
        ),
        sa.Column("tags", sa.JSON, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_items_id", "items", ["id"])
    op.create_index("ix_items_name", "items", ["name"])

    # ── 2. security_controls ──
    op.create_table(
        "security_controls",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_security_controls_id", "security_controls", ["id"])
    op.create_index("ix_security_controls_sort_order", "security_controls", ["sort_order"])

    # ── 3. sub_controls ──
    op.create_table(
        "sub_controls",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("control_id", sa.Integer, sa.ForeignKey("security_controls.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_sub_controls_id", "sub_controls", ["id"])
    op.create_index("ix_sub_controls_control_id", "sub_controls", ["control_id"])

    # ── 4. control_implementations ──
    op.create_table(
        "control_implementations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("item_id", sa.Integer, sa.ForeignKey("items.id"), nullable=False),
        sa.Column("control_id", sa.Integer, sa.ForeignKey("security_controls.id"), nullable=False),
        sa.Column("status", sa.Enum(*STATUS_VALUES, name="control_status"), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("item_id", "control_id", name="uq_control_impl_item_control"),
    )
    op.create_index("ix_control_implementations_id", "control_implementations", ["id"])
    op.create_index("ix_control_implementations_item_id", "control_implementations", ["item_id"])
    op.create_index("ix_control_implementations_control_id", "control_implementations", ["control_id"])

    # ── 5. sub_control_implementations ──
    op.create_table(
        "sub_control_implementations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("item_id", sa.Integer, sa.ForeignKey("items.id"), nullable=False),
        sa.Column("sub_control_id", sa.Integer, sa.ForeignKey("sub_controls.id"), nullable=False),
        sa.Column(
            "status",
            postgresql.ENUM(*STATUS_VALUES, name="control_status", create_type=False)
            if op.get_bind().dialect.name == "postgresql"
            else sa.Enum(*STATUS_VALUES, name="control_status"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("item_id", "sub_control_id", name="uq_sub_control_impl_item_sub_control"),
    )
    op.create_index("ix_sub_control_implementations_id", "sub_control_implementations", ["id"])
    op.create_index("ix_sub_control_implementations_item_id", "sub_control_implementations", ["item_id"])
    op.create_index(
        "ix_sub_control_implementations_sub_control_id",
        "sub_control_implementations",
        ["sub_control_id"],
    )


def downgrade() -> None:
    op.drop_table("sub_control_implementations")
    op.drop_table("control_implementations")
    op.drop_table("sub_controls")
    op.drop_table("security_controls")
    op.drop_table("items")
    if op.get_bind().dialect.name == "postgresql":
        sa.Enum(name="control_status").drop(op.get_bind(), checkfirst=True)
        sa.Enum(name="criticalitylevel").drop(op.get_bind(), checkfirst=True)
