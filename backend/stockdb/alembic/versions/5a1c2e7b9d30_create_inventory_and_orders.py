"""Create inventory and order tables.

Revision ID: 5a1c2e7b9d30
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision = "5a1c2e7b9d30"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(table_name: str) -> bool:
    bind = op.get_bind()
    return bool(inspect(bind).has_table(table_name))


def upgrade() -> None:
    if not _table_exists("inventory_items"):
        op.create_table(
            "inventory_items",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("sku", sa.String(length=64), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("type", sa.String(length=64), nullable=False),
            sa.Column("unit", sa.String(length=16), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint("sku", name="uq_inventory_item_sku"),
        )
        op.create_index("ix_inventory_items_id", "inventory_items", ["id"])
        op.create_index("ix_inventory_items_sku", "inventory_items", ["sku"])

    if not _table_exists("inventory_stock"):
        op.create_table(
            "inventory_stock",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "item_id",
                sa.Integer(),
                sa.ForeignKey("inventory_items.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("location", sa.String(length=64), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint("item_id", "location", name="uq_inventory_stock_item_location"),
            sa.CheckConstraint("quantity >= 0", name="ck_inventory_stock_quantity_non_negative"),
        )
        op.create_index("ix_inventory_stock_id", "inventory_stock", ["id"])
        op.create_index("ix_inventory_stock_item_id", "inventory_stock", ["item_id"])
        op.create_index("ix_inventory_stock_location", "inventory_stock", ["location"])
        op.create_index(
            "ix_inventory_stock_item_created",
            "inventory_stock",
            ["item_id", "created_at", "id"],
        )

    if not _table_exists("orders"):
        op.create_table(
            "orders",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("order_number", sa.String(length=64), nullable=False),
            sa.Column(
                "status",
                sa.Enum("PENDING", "FULFILLED", name="order_status_enum", native_enum=False),
                nullable=False,
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint("order_number", name="uq_orders_order_number"),
        )
        op.create_index("ix_orders_id", "orders", ["id"])
        op.create_index("ix_orders_order_number", "orders", ["order_number"])
        op.create_index("ix_orders_status", "orders", ["status"])

    if not _table_exists("order_items"):
        op.create_table(
            "order_items",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "order_id",
                sa.Integer(),
                sa.ForeignKey("orders.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                "item_id",
                sa.Integer(),
                sa.ForeignKey("inventory_items.id", ondelete="RESTRICT"),
                nullable=False,
            ),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        )
        op.create_index("ix_order_items_id", "order_items", ["id"])
        op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
        op.create_index("ix_order_items_item_id", "order_items", ["item_id"])


def downgrade() -> None:
    for table_name in ("order_items", "orders", "inventory_stock", "inventory_items"):
        if _table_exists(table_name):
            op.drop_table(table_name)
