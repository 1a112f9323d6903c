"""
Accès au catalogue (produits, références, affectations, stock).

Seul module qui parle à la DB pour le calcul de commande et l'import.
Les méthodes n'appellent jamais commit() : c'est l'appelant qui découpe
ses lots d'écritures.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, selectinload

from parstock.app.db.models.core_types import DedupMode, EntityKind
from parstock.app.db.models.models_v1 import (
    Location,
    MaterialType,
    OnHand,
    Product,
    ProductLocation,
    Vendor,
    utcnow,
)
from parstock.app.schemas.catalog import NameResolution, ProductFields, ProductUpsertResult
from parstock.app.schemas.reorder import StockSnapshot

ENTITY_MODELS = {
    EntityKind.location: Location,
    EntityKind.material_type: MaterialType,
    EntityKind.vendor: Vendor,
}


def _insert(db: Session, model):
    """INSERT ... ON CONFLICT du dialecte courant (PostgreSQL en prod, SQLite en test)."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise NotImplementedError(f"Unsupported database dialect: {dialect}")


class CatalogStore:
    def __init__(self, db: Session):
        self.db = db

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    # ---------- LECTURE ----------
    def list_active_products(self) -> list[StockSnapshot]:
        """Produits actifs + noms de type/fournisseur + toutes leurs lignes de stock."""
        rows = (
            self.db.execute(
                select(Product)
                .where(Product.active.is_(True))
                .options(
                    selectinload(Product.material_type),
                    selectinload(Product.vendor),
                    selectinload(Product.on_hand),
                )
                .order_by(Product.id)
            )
            .scalars()
            .all()
        )
        return [
            StockSnapshot(
                product_id=p.id,
                sku=p.sku,
                name=p.name,
                material_type_name=p.material_type.name if p.material_type else None,
                vendor_name=p.vendor.name if p.vendor else None,
                par_tenths=p.par_tenths,
                on_hand_tenths=[oh.qty_tenths for oh in p.on_hand],
            )
            for p in rows
        ]

    def sum_on_hand_by_product(self) -> dict[int, int]:
        rows = self.db.execute(
            select(
                OnHand.product_id,
                func.coalesce(func.sum(OnHand.qty_tenths), 0).label("total_tenths"),
            ).group_by(OnHand.product_id)
        ).all()
        return {int(pid): int(total) for pid, total in rows}

    def list_products(self) -> list[Product]:
        return list(
            self.db.execute(
                select(Product)
                .options(
                    selectinload(Product.material_type),
                    selectinload(Product.vendor),
                    selectinload(Product.locations),
                )
                .order_by(Product.name, Product.id)
            )
            .scalars()
            .all()
        )

    def get_product(self, product_id: int) -> Product | None:
        return self.db.get(Product, product_id)

    def find_product_by_sku(self, sku: str) -> Product | None:
        return self.db.execute(select(Product).where(Product.sku == sku)).scalar_one_or_none()

    def find_product_ids(self, skus: Iterable[str]) -> dict[str, int]:
        wanted = sorted({s for s in skus if s})
        if not wanted:
            return {}
        rows = self.db.execute(select(Product.sku, Product.id).where(Product.sku.in_(wanted))).all()
        return {sku: int(pid) for sku, pid in rows}

    # ---------- RÉFÉRENTIELS ----------
    def list_entities(self, kind: EntityKind) -> list:
        model = ENTITY_MODELS[kind]
        return list(self.db.execute(select(model).order_by(model.name)).scalars().all())

    def get_entity(self, kind: EntityKind, entity_id: int):
        return self.db.get(ENTITY_MODELS[kind], entity_id)

    def find_entity_ids(self, kind: EntityKind, names: Iterable[str]) -> dict[str, int]:
        model = ENTITY_MODELS[kind]
        wanted = sorted({n for n in names if n})
        if not wanted:
            return {}
        rows = self.db.execute(select(model.name, model.id).where(model.name.in_(wanted))).all()
        return {name: int(eid) for name, eid in rows}

    def first_location(self) -> Location | None:
        return self.db.execute(select(Location).order_by(Location.id.asc())).scalars().first()

    def upsert_entity_by_name(self, kind: EntityKind, name: str) -> int:
        """Get-or-create idempotent ; le nom est la clé de dédoublonnage."""
        model = ENTITY_MODELS[kind]
        self.db.execute(
            _insert(self.db, model).values(name=name).on_conflict_do_nothing(index_elements=["name"])
        )
        return int(self.db.execute(select(model.id).where(model.name == name)).scalar_one())

    def resolve_names(self, kind: EntityKind, names: Iterable[str]) -> NameResolution:
        """Version lot de upsert_entity_by_name : une requête d'insertion pour tous les absents."""
        model = ENTITY_MODELS[kind]
        wanted = list(dict.fromkeys(n for n in names if n))
        if not wanted:
            return NameResolution()

        existing = self.find_entity_ids(kind, wanted)
        missing = [n for n in wanted if n not in existing]
        if missing:
            self.db.execute(
                _insert(self.db, model)
                .values([{"name": n} for n in missing])
                .on_conflict_do_nothing(index_elements=["name"])
            )
        return NameResolution(ids=self.find_entity_ids(kind, wanted), created=missing)

    def delete_entity(self, kind: EntityKind, entity_id: int) -> None:
        # Explicite plutôt que via les FK : SQLite sans PRAGMA ne les applique pas
        if kind == EntityKind.location:
            self.db.execute(delete(OnHand).where(OnHand.location_id == entity_id))
            self.db.execute(delete(ProductLocation).where(ProductLocation.location_id == entity_id))
        elif kind == EntityKind.material_type:
            self.db.execute(
                update(Product).where(Product.material_type_id == entity_id).values(material_type_id=None)
            )
        elif kind == EntityKind.vendor:
            self.db.execute(update(Product).where(Product.vendor_id == entity_id).values(vendor_id=None))

        model = ENTITY_MODELS[kind]
        self.db.execute(delete(model).where(model.id == entity_id))

    # ---------- PRODUITS ----------
    def upsert_product(self, sku: str, fields: ProductFields, mode: DedupMode) -> ProductUpsertResult:
        """
        Nouveau SKU -> insertion (quel que soit le mode).
        SKU existant -> écrasé en mode update, intouché en mode skip.

        Un SKU inséré en concurrence remonte en IntegrityError au flush.
        """
        existing_id = self.db.execute(select(Product.id).where(Product.sku == sku)).scalar_one_or_none()

        if existing_id is None:
            p = Product(
                sku=sku,
                name=fields.name,
                material_type_id=fields.material_type_id,
                vendor_id=fields.vendor_id,
                par_tenths=fields.par_tenths,
                notes=fields.notes,
                active=True,
            )
            self.db.add(p)
            self.db.flush()
            return ProductUpsertResult(id=int(p.id), created=True)

        if mode == DedupMode.skip:
            return ProductUpsertResult(id=int(existing_id), created=False, updated=False)

        values = {
            "name": fields.name,
            "material_type_id": fields.material_type_id,
            "vendor_id": fields.vendor_id,
            "par_tenths": fields.par_tenths,
            "updated_at": utcnow(),
        }
        if fields.notes is not None:
            values["notes"] = fields.notes
        self.db.execute(update(Product).where(Product.id == existing_id).values(**values))
        return ProductUpsertResult(id=int(existing_id), created=False, updated=True)

    def delete_product(self, product: Product) -> None:
        # on_hand + affectations suivent via cascade ORM
        self.db.delete(product)

    def clear_products(self) -> int:
        self.db.execute(delete(OnHand))
        self.db.execute(delete(ProductLocation))
        return self.db.execute(delete(Product)).rowcount or 0

    # ---------- AFFECTATIONS ----------
    def product_location_ids(self, product_id: int) -> list[int]:
        rows = self.db.execute(
            select(ProductLocation.location_id)
            .where(ProductLocation.product_id == product_id)
            .order_by(ProductLocation.location_id)
        ).scalars()
        return [int(lid) for lid in rows]

    def is_assigned(self, product_id: int, location_id: int) -> bool:
        found = self.db.execute(
            select(ProductLocation.product_id)
            .where(ProductLocation.product_id == product_id)
            .where(ProductLocation.location_id == location_id)
        ).first()
        return found is not None

    def replace_product_locations(self, product_id: int, location_ids: Iterable[int]) -> None:
        """Remplacement complet (édition directe) : delete puis insert."""
        self.db.execute(delete(ProductLocation).where(ProductLocation.product_id == product_id))
        ids = sorted({int(lid) for lid in location_ids})
        if ids:
            self.db.execute(
                _insert(self.db, ProductLocation).values(
                    [{"product_id": product_id, "location_id": lid} for lid in ids]
                )
            )

    def add_product_locations(self, product_id: int, location_ids: Iterable[int]) -> None:
        """Ajout seul (import) : les affectations existantes ne sont jamais retirées."""
        ids = sorted({int(lid) for lid in location_ids})
        if not ids:
            return
        self.db.execute(
            _insert(self.db, ProductLocation)
            .values([{"product_id": product_id, "location_id": lid} for lid in ids])
            .on_conflict_do_nothing(index_elements=["product_id", "location_id"])
        )

    # ---------- STOCK ----------
    def upsert_on_hand(self, product_id: int, location_id: int, qty_tenths: int) -> None:
        stmt = _insert(self.db, OnHand).values(
            product_id=product_id,
            location_id=location_id,
            qty_tenths=qty_tenths,
            updated_at=utcnow(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["product_id", "location_id"],
            set_={"qty_tenths": stmt.excluded.qty_tenths, "updated_at": stmt.excluded.updated_at},
        )
        self.db.execute(stmt)

    def list_on_hand_for_location(self, location_id: int) -> list[tuple]:
        """(Product, MaterialType | None, OnHand | None) des produits affectés à la location."""
        return list(
            self.db.execute(
                select(Product, MaterialType, OnHand)
                .join(
                    ProductLocation,
                    (ProductLocation.product_id == Product.id) & (ProductLocation.location_id == location_id),
                )
                .outerjoin(MaterialType, MaterialType.id == Product.material_type_id)
                .outerjoin(
                    OnHand,
                    (OnHand.product_id == Product.id) & (OnHand.location_id == location_id),
                )
                .order_by(MaterialType.name, Product.name, Product.id)
            ).all()
        )

    def clear_on_hand(self, location_id: int | None = None) -> int:
        stmt = delete(OnHand)
        if location_id is not None:
            stmt = stmt.where(OnHand.location_id == location_id)
        return self.db.execute(stmt).rowcount or 0
