"""initial catalog: references, products, assignments, on_hand

Revision ID: 0001_initial_catalog
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_catalog"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BigIntPK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _named_table(name: str, length: int) -> None:
    op.create_table(
        name,
        sa.Column("id", BigIntPK, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length), nullable=False),
        sa.UniqueConstraint("name", name=f"uq_{name}_name"),
    )


def upgrade() -> None:
    _named_table("locations", 200)
    _named_table("material_types", 200)
    _named_table("vendors", 200)

    op.create_table(
        "products",
        sa.Column("id", BigIntPK, primary_key=True, autoincrement=True),
        sa.Column("sku", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("material_type_id", BigIntPK, sa.ForeignKey("material_types.id", ondelete="SET NULL")),
        sa.Column("vendor_id", BigIntPK, sa.ForeignKey("vendors.id", ondelete="SET NULL")),
        sa.Column("par_tenths", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text()),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("sku", name="uq_products_sku"),
        sa.CheckConstraint("par_tenths >= 0", name="ck_product_par_nonneg"),
    )
    op.create_index("ix_products_material_type_id", "products", ["material_type_id"])
    op.create_index("ix_products_vendor_id", "products", ["vendor_id"])

    op.create_table(
        "product_locations",
        sa.Column("product_id", BigIntPK, sa.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("location_id", BigIntPK, sa.ForeignKey("locations.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_index("ix_product_locations_location", "product_locations", ["location_id"])

    op.create_table(
        "on_hand",
        sa.Column("product_id", BigIntPK, sa.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("location_id", BigIntPK, sa.ForeignKey("locations.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("qty_tenths", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("qty_tenths >= 0", name="ck_on_hand_qty_nonneg"),
    )
    op.create_index("ix_on_hand_location", "on_hand", ["location_id"])


def downgrade() -> None:
    op.drop_index("ix_on_hand_location", table_name="on_hand")
    op.drop_table("on_hand")
    op.drop_index("ix_product_locations_location", table_name="product_locations")
    op.drop_table("product_locations")
    op.drop_index("ix_products_vendor_id", table_name="products")
    op.drop_index("ix_products_material_type_id", table_name="products")
    op.drop_table("products")
    op.drop_table("vendors")
    op.drop_table("material_types")
    op.drop_table("locations")
