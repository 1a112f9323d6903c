from __future__ import annotations

from fastapi import APIRouter, Depends

from parstock.app.api.deps import get_store
from parstock.app.api.errors import http_error
from parstock.app.schemas.on_hand import OnHandRead, OnHandWrite
from parstock.services import editing
from parstock.services.catalog import CatalogStore
from parstock.services.errors import CatalogError
from parstock.services.quantities import from_tenths

router = APIRouter(prefix="/on-hand")


@router.get("", response_model=list[OnHandRead])
def list_on_hand(location_id: int, store: CatalogStore = Depends(get_store)):
    try:
        return editing.list_on_hand(store, location_id)
    except CatalogError as exc:
        raise http_error(exc)


@router.put("")
def set_on_hand(payload: OnHandWrite, store: CatalogStore = Depends(get_store)):
    try:
        qty_tenths = editing.set_on_hand(store, payload.product_id, payload.location_id, payload.qty)
    except CatalogError as exc:
        raise http_error(exc)
    return {
        "product_id": payload.product_id,
        "location_id": payload.location_id,
        "qty": float(from_tenths(qty_tenths)),
    }


@router.delete("")
def clear_on_hand(location_id: int | None = None, store: CatalogStore = Depends(get_store)):
    try:
        cleared = editing.clear_on_hand(store, location_id)
    except CatalogError as exc:
        raise http_error(exc)
    return {"cleared": cleared}
