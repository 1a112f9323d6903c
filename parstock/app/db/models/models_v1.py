from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Boolean,
    ForeignKey,
    Text,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parstock.app.db.base import Base, BigIntPK


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# longueurs de colonnes, reprises par la validation (import et édition)
SKU_MAX_LEN = 64
NAME_MAX_LEN = 255
REF_NAME_MAX_LEN = 200


# ---------- RÉFÉRENTIELS ----------
class Location(Base):
    __tablename__ = "locations"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(REF_NAME_MAX_LEN), unique=True, nullable=False)


class MaterialType(Base):
    __tablename__ = "material_types"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(REF_NAME_MAX_LEN), unique=True, nullable=False)


class Vendor(Base):
    __tablename__ = "vendors"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(REF_NAME_MAX_LEN), unique=True, nullable=False)


# ---------- CATALOGUE ----------
class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    sku: Mapped[str] = mapped_column(String(SKU_MAX_LEN), unique=True, nullable=False)  # toujours en majuscules
    name: Mapped[str] = mapped_column(String(NAME_MAX_LEN), nullable=False)
    material_type_id: Mapped[int | None] = mapped_column(
        ForeignKey("material_types.id", ondelete="SET NULL"),
        index=True,
    )
    vendor_id: Mapped[int | None] = mapped_column(
        ForeignKey("vendors.id", ondelete="SET NULL"),
        index=True,
    )
    # PAR global, en dixièmes d'unité (5.5 -> 55)
    par_tenths: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    material_type: Mapped[MaterialType | None] = relationship()
    vendor: Mapped[Vendor | None] = relationship()
    on_hand: Mapped[list["OnHand"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="OnHand.location_id",
    )
    locations: Mapped[list["ProductLocation"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductLocation.location_id",
    )

    __table_args__ = (CheckConstraint("par_tenths >= 0", name="ck_product_par_nonneg"),)


class ProductLocation(Base):
    """Où le produit est stocké (compté). N'intervient pas dans le calcul de commande."""

    __tablename__ = "product_locations"
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id", ondelete="CASCADE"), primary_key=True)

    product: Mapped[Product] = relationship(back_populates="locations")
    location: Mapped[Location] = relationship()

    __table_args__ = (Index("ix_product_locations_location", "location_id"),)


# ---------- STOCK ----------
class OnHand(Base):
    """Stock compté par (produit, location). Pas de ligne = 0 en stock."""

    __tablename__ = "on_hand"
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id", ondelete="CASCADE"), primary_key=True)

    qty_tenths: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    product: Mapped[Product] = relationship(back_populates="on_hand")
    location: Mapped[Location] = relationship()

    __table_args__ = (
        CheckConstraint("qty_tenths >= 0", name="ck_on_hand_qty_nonneg"),
        Index("ix_on_hand_location", "location_id"),
    )
