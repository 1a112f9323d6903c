from __future__ import annotations

from fastapi import APIRouter, Depends

from parstock.app.api.deps import get_store
from parstock.app.api.errors import http_error
from parstock.app.db.models.models_v1 import Product
from parstock.app.schemas.catalog import LocationAssignment, ProductRead, ProductWrite
from parstock.services import editing
from parstock.services.catalog import CatalogStore
from parstock.services.errors import CatalogError, ReferenceNotFoundError
from parstock.services.quantities import from_tenths

router = APIRouter(prefix="/products")


def _read(p: Product) -> ProductRead:
    return ProductRead(
        id=p.id,
        sku=p.sku,
        name=p.name,
        material_type_id=p.material_type_id,
        material_type_name=p.material_type.name if p.material_type else None,
        vendor_id=p.vendor_id,
        vendor_name=p.vendor.name if p.vendor else None,
        par=float(from_tenths(p.par_tenths)),
        notes=p.notes,
        active=p.active,
        location_ids=sorted(pl.location_id for pl in p.locations),
    )


@router.get("", response_model=list[ProductRead])
def list_products(store: CatalogStore = Depends(get_store)):
    return [_read(p) for p in store.list_products()]


@router.post("", response_model=ProductRead)
def create_product(payload: ProductWrite, store: CatalogStore = Depends(get_store)):
    try:
        return _read(editing.create_product(store, payload))
    except CatalogError as exc:
        raise http_error(exc)


@router.delete("")
def clear_products(store: CatalogStore = Depends(get_store)):
    return {"deleted": editing.clear_products(store)}


@router.put("/{product_id}", response_model=ProductRead)
def update_product(product_id: int, payload: ProductWrite, store: CatalogStore = Depends(get_store)):
    try:
        return _read(editing.update_product(store, product_id, payload))
    except CatalogError as exc:
        raise http_error(exc)


@router.delete("/{product_id}")
def delete_product(product_id: int, store: CatalogStore = Depends(get_store)):
    try:
        editing.delete_product(store, product_id)
    except CatalogError as exc:
        raise http_error(exc)
    return {"deleted": product_id}


@router.get("/{product_id}/locations", response_model=LocationAssignment)
def get_product_locations(product_id: int, store: CatalogStore = Depends(get_store)):
    if not store.get_product(product_id):
        raise http_error(ReferenceNotFoundError(f"Product {product_id} not found", field="id"))
    return LocationAssignment(location_ids=store.product_location_ids(product_id))


@router.put("/{product_id}/locations", response_model=LocationAssignment)
def set_product_locations(product_id: int, payload: LocationAssignment, store: CatalogStore = Depends(get_store)):
    try:
        ids = editing.set_product_locations(store, product_id, payload.location_ids)
    except CatalogError as exc:
        raise http_error(exc)
    return LocationAssignment(location_ids=ids)
