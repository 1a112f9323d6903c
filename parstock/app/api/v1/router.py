from fastapi import APIRouter

from parstock.app.api.v1.endpoints.entities import locations_router, material_types_router, vendors_router
from parstock.app.api.v1.endpoints.health import router as health_router
from parstock.app.api.v1.endpoints.imports import router as imports_router
from parstock.app.api.v1.endpoints.on_hand import router as on_hand_router
from parstock.app.api.v1.endpoints.products import router as products_router
from parstock.app.api.v1.endpoints.reorder import router as reorder_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(locations_router, tags=["locations"])
router.include_router(material_types_router, tags=["material_types"])
router.include_router(vendors_router, tags=["vendors"])
router.include_router(products_router, tags=["products"])
router.include_router(on_hand_router, tags=["on_hand"])
router.include_router(reorder_router, tags=["reorder"])
router.include_router(imports_router, tags=["import"])
