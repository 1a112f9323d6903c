"""
Édition directe du catalogue (formulaires, API).

Contrairement à l'import, tout problème lève une erreur métier avant écriture
(ValidationError / ConflictError / ReferenceNotFoundError) et l'affectation
des locations est un remplacement complet.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError

from parstock.app.db.models.core_types import EntityKind
from parstock.app.db.models.models_v1 import REF_NAME_MAX_LEN, Product
from parstock.app.schemas.catalog import ProductWrite
from parstock.app.schemas.on_hand import OnHandRead
from parstock.services.catalog import CatalogStore
from parstock.services.errors import ConflictError, ReferenceNotFoundError, ValidationError
from parstock.services.quantities import fits_column, from_tenths, non_negative_tenths

logger = logging.getLogger(__name__)

ENTITY_LABELS = {
    EntityKind.location: "Location",
    EntityKind.material_type: "Material type",
    EntityKind.vendor: "Vendor",
}


def _require_name(kind: EntityKind, name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError(f"{ENTITY_LABELS[kind]} name is required", field="name")
    if len(name) > REF_NAME_MAX_LEN:
        raise ValidationError(
            f"{ENTITY_LABELS[kind]} name is longer than {REF_NAME_MAX_LEN} characters", field="name"
        )
    return name


def _require_entity(store: CatalogStore, kind: EntityKind, entity_id: int):
    entity = store.get_entity(kind, entity_id)
    if not entity:
        raise ReferenceNotFoundError(f"{ENTITY_LABELS[kind]} {entity_id} not found", field="id")
    return entity


# ---------- RÉFÉRENTIELS ----------
def create_entity(store: CatalogStore, kind: EntityKind, name: str | None) -> Any:
    name = _require_name(kind, name)
    if store.find_entity_ids(kind, [name]):
        raise ConflictError(f"That {ENTITY_LABELS[kind].lower()} already exists.", field="name")

    entity_id = store.upsert_entity_by_name(kind, name)
    store.commit()
    logger.info("%s created: %s (id=%s)", kind.value, name, entity_id)
    return store.get_entity(kind, entity_id)


def rename_entity(store: CatalogStore, kind: EntityKind, entity_id: int, name: str | None) -> Any:
    name = _require_name(kind, name)
    entity = _require_entity(store, kind, entity_id)

    clash = store.find_entity_ids(kind, [name]).get(name)
    if clash is not None and clash != entity_id:
        raise ConflictError(f"That {ENTITY_LABELS[kind].lower()} already exists.", field="name")

    entity.name = name
    try:
        store.commit()
    except IntegrityError:
        store.rollback()
        raise ConflictError(f"That {ENTITY_LABELS[kind].lower()} already exists.", field="name")
    return entity


def delete_entity(store: CatalogStore, kind: EntityKind, entity_id: int) -> None:
    """
    Location : ses affectations et lignes de stock partent avec.
    Type / fournisseur : les produits repassent à NULL, jamais supprimés.
    """
    _require_entity(store, kind, entity_id)
    store.delete_entity(kind, entity_id)
    store.commit()
    logger.info("%s %s deleted", kind.value, entity_id)


# ---------- PRODUITS ----------
def _check_product_payload(store: CatalogStore, data: ProductWrite) -> tuple[str, str]:
    name = (data.name or "").strip()
    sku = (data.sku or "").strip().upper()
    if not name:
        raise ValidationError("Product name is required", field="name")
    if not sku:
        raise ValidationError("Product SKU is required", field="sku")
    if not fits_column(non_negative_tenths(data.par)):
        raise ValidationError("PAR is out of range", field="par")

    if data.material_type_id is not None and not store.get_entity(EntityKind.material_type, data.material_type_id):
        raise ReferenceNotFoundError(f"Material type {data.material_type_id} not found", field="material_type_id")
    if data.vendor_id is not None and not store.get_entity(EntityKind.vendor, data.vendor_id):
        raise ReferenceNotFoundError(f"Vendor {data.vendor_id} not found", field="vendor_id")
    for location_id in data.location_ids:
        if not store.get_entity(EntityKind.location, location_id):
            raise ReferenceNotFoundError(f"Location {location_id} not found", field="location_ids")
    return name, sku


def _require_product(store: CatalogStore, product_id: int) -> Product:
    p = store.get_product(product_id)
    if not p:
        raise ReferenceNotFoundError(f"Product {product_id} not found", field="id")
    return p


def _commit_product(store: CatalogStore, p: Product, location_ids: list[int]) -> Product:
    try:
        store.db.flush()
        store.replace_product_locations(p.id, location_ids)
        store.commit()
    except IntegrityError:
        store.rollback()
        raise ConflictError("That SKU already exists.", field="sku")
    store.db.refresh(p)
    return p


def create_product(store: CatalogStore, data: ProductWrite) -> Product:
    name, sku = _check_product_payload(store, data)
    if store.find_product_by_sku(sku):
        raise ConflictError("That SKU already exists.", field="sku")

    p = Product(
        sku=sku,
        name=name,
        material_type_id=data.material_type_id,
        vendor_id=data.vendor_id,
        par_tenths=non_negative_tenths(data.par),
        notes=(data.notes or "").strip() or None,
        active=True,
    )
    store.db.add(p)
    return _commit_product(store, p, data.location_ids)


def update_product(store: CatalogStore, product_id: int, data: ProductWrite) -> Product:
    p = _require_product(store, product_id)
    name, sku = _check_product_payload(store, data)

    other = store.find_product_by_sku(sku)
    if other is not None and other.id != p.id:
        raise ConflictError("That SKU already exists.", field="sku")

    p.sku = sku
    p.name = name
    p.material_type_id = data.material_type_id
    p.vendor_id = data.vendor_id
    p.par_tenths = non_negative_tenths(data.par)
    p.notes = (data.notes or "").strip() or None
    return _commit_product(store, p, data.location_ids)


def set_product_locations(store: CatalogStore, product_id: int, location_ids: list[int]) -> list[int]:
    _require_product(store, product_id)
    for location_id in location_ids:
        _require_entity(store, EntityKind.location, location_id)
    store.replace_product_locations(product_id, location_ids)
    store.commit()
    return store.product_location_ids(product_id)


def delete_product(store: CatalogStore, product_id: int) -> None:
    p = _require_product(store, product_id)
    store.delete_product(p)
    store.commit()
    logger.info("product %s (%s) deleted", product_id, p.sku)


def clear_products(store: CatalogStore) -> int:
    deleted = store.clear_products()
    store.commit()
    logger.warning("catalog cleared: %d products deleted", deleted)
    return deleted


# ---------- STOCK ----------
def set_on_hand(store: CatalogStore, product_id: int, location_id: int, qty: Any) -> int:
    """
    Saisie directe du stock. Le produit doit être affecté à la location
    (l'import, lui, ne vérifie pas). Retourne la quantité en dixièmes.
    """
    _require_product(store, product_id)
    _require_entity(store, EntityKind.location, location_id)
    if not store.is_assigned(product_id, location_id):
        raise ValidationError(
            f"Product {product_id} is not stocked at location {location_id}",
            field="location_id",
        )

    qty_tenths = non_negative_tenths(qty)
    if not fits_column(qty_tenths):
        raise ValidationError("Quantity is out of range", field="qty")
    store.upsert_on_hand(product_id, location_id, qty_tenths)
    store.commit()
    return qty_tenths


def clear_on_hand(store: CatalogStore, location_id: int | None = None) -> int:
    if location_id is not None:
        _require_entity(store, EntityKind.location, location_id)
    cleared = store.clear_on_hand(location_id)
    store.commit()
    return cleared


def list_on_hand(store: CatalogStore, location_id: int) -> list[OnHandRead]:
    """Produits affectés à la location, avec leur stock (0 si jamais compté)."""
    _require_entity(store, EntityKind.location, location_id)
    return [
        OnHandRead(
            product_id=p.id,
            location_id=location_id,
            sku=p.sku,
            name=p.name,
            material_type_name=mt.name if mt else None,
            par=float(from_tenths(p.par_tenths)),
            qty=float(from_tenths(oh.qty_tenths if oh else 0)),
            updated_at=oh.updated_at if oh else None,
        )
        for p, mt, oh in store.list_on_hand_for_location(location_id)
    ]
