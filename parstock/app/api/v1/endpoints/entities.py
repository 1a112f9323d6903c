"""
Routes des référentiels nommés (locations, types de matériel, fournisseurs).

Les trois ont la même forme : un id et un nom unique. Seules les locations
se renomment.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from parstock.app.api.deps import get_store
from parstock.app.api.errors import http_error
from parstock.app.db.models.core_types import EntityKind
from parstock.app.schemas.catalog import EntityCreate, EntityRead
from parstock.services import editing
from parstock.services.catalog import CatalogStore
from parstock.services.errors import CatalogError


def build_entity_router(kind: EntityKind, prefix: str, *, allow_rename: bool = False) -> APIRouter:
    router = APIRouter(prefix=prefix)

    @router.get("", response_model=list[EntityRead])
    def list_entities(store: CatalogStore = Depends(get_store)):
        return store.list_entities(kind)

    @router.post("", response_model=EntityRead)
    def create_entity(payload: EntityCreate, store: CatalogStore = Depends(get_store)):
        try:
            return editing.create_entity(store, kind, payload.name)
        except CatalogError as exc:
            raise http_error(exc)

    if allow_rename:

        @router.put("/{entity_id}", response_model=EntityRead)
        def rename_entity(entity_id: int, payload: EntityCreate, store: CatalogStore = Depends(get_store)):
            try:
                return editing.rename_entity(store, kind, entity_id, payload.name)
            except CatalogError as exc:
                raise http_error(exc)

    @router.delete("/{entity_id}")
    def delete_entity(entity_id: int, store: CatalogStore = Depends(get_store)):
        try:
            editing.delete_entity(store, kind, entity_id)
        except CatalogError as exc:
            raise http_error(exc)
        return {"deleted": entity_id}

    return router


locations_router = build_entity_router(EntityKind.location, "/locations", allow_rename=True)
material_types_router = build_entity_router(EntityKind.material_type, "/material-types")
vendors_router = build_entity_router(EntityKind.vendor, "/vendors")
