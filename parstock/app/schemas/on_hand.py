from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class OnHandWrite(BaseModel):
    product_id: int
    location_id: int
    qty: Decimal = Decimal("0")


class OnHandRead(BaseModel):
    product_id: int
    location_id: int
    sku: str
    name: str
    material_type_name: str | None
    par: float
    qty: float  # 0 si aucune ligne de stock
    updated_at: datetime | None = None
