from pydantic import BaseModel, Field


class StockSnapshot(BaseModel):
    """Un produit actif tel que vu par le calcul de commande (quantités en dixièmes)."""

    product_id: int
    sku: str
    name: str
    material_type_name: str | None = None
    vendor_name: str | None = None
    par_tenths: int = 0
    on_hand_tenths: list[int] = Field(default_factory=list)


class ReorderLine(BaseModel):
    product_id: int
    sku: str
    name: str
    par: float
    total_on_hand: float
    to_order: int  # unités entières, toujours > 0 dans un rapport


class MaterialTypeGroup(BaseModel):
    material_type_name: str
    lines: list[ReorderLine] = Field(default_factory=list)


class VendorGroup(BaseModel):
    vendor_name: str
    material_types: list[MaterialTypeGroup] = Field(default_factory=list)


class ReorderReport(BaseModel):
    vendors: list[VendorGroup] = Field(default_factory=list)
    total_to_order: int = 0  # somme des to_order des lignes du rapport

    def lines(self) -> list[ReorderLine]:
        return [line for v in self.vendors for m in v.material_types for line in m.lines]

    @property
    def is_empty(self) -> bool:
        return not self.vendors
