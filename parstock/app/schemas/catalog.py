from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from parstock.app.db.models.models_v1 import NAME_MAX_LEN, REF_NAME_MAX_LEN, SKU_MAX_LEN


class EntityCreate(BaseModel):
    name: str = Field(max_length=REF_NAME_MAX_LEN)


class EntityRead(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class ProductWrite(BaseModel):
    name: str = Field(default="", max_length=NAME_MAX_LEN)
    sku: str = Field(default="", max_length=SKU_MAX_LEN)
    material_type_id: int | None = None
    vendor_id: int | None = None
    par: Decimal = Decimal("0")
    notes: str | None = None
    location_ids: list[int] = Field(default_factory=list)


class ProductRead(BaseModel):
    id: int
    sku: str
    name: str
    material_type_id: int | None
    material_type_name: str | None
    vendor_id: int | None
    vendor_name: str | None
    par: float
    notes: str | None
    active: bool
    location_ids: list[int]


class ProductFields(BaseModel):
    """Champs possédés par la fiche produit (ce qu'un import "update" écrase)."""

    name: str
    material_type_id: int | None = None
    vendor_id: int | None = None
    par_tenths: int = 0
    notes: str | None = None


class ProductUpsertResult(BaseModel):
    id: int
    created: bool
    updated: bool = False


class NameResolution(BaseModel):
    ids: dict[str, int] = Field(default_factory=dict)
    created: list[str] = Field(default_factory=list)


class LocationAssignment(BaseModel):
    location_ids: list[int] = Field(default_factory=list)
