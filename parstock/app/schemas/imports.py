from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from parstock.app.db.models.core_types import DedupMode, ErrorKind, ImportStage


class ImportRow(BaseModel):
    """
    Ligne d'import normalisée (une seule fois, avant toute résolution).

    sku/name sont garantis non vides ; le reste est optionnel.
    on_hand_tenths vaut None si la ligne ne donnait aucun stock.
    """

    model_config = ConfigDict(frozen=True)

    sku: str
    name: str
    material_type: str | None = None
    vendor: str | None = None
    location: str | None = None
    par_tenths: int = 0
    on_hand_tenths: int | None = None
    notes: str | None = None


class ImportRequest(BaseModel):
    # lignes brutes : une ligne mal formée est ignorée, jamais un 422 pour tout le lot
    rows: list[Any] = Field(default_factory=list)
    dedup_mode: DedupMode = DedupMode.update
    dry_run: bool = False


class ImportIssue(BaseModel):
    kind: ErrorKind
    stage: ImportStage
    message: str
    sku: str | None = None
    field: str | None = None


class ImportSummary(BaseModel):
    dedup_mode: DedupMode
    dry_run: bool = False

    rows_received: int = 0
    rows_accepted: int = 0

    locations_created: int = 0
    material_types_created: int = 0
    vendors_created: int = 0
    new_locations: list[str] = Field(default_factory=list)
    new_material_types: list[str] = Field(default_factory=list)
    new_vendors: list[str] = Field(default_factory=list)

    products_inserted: int = 0
    products_updated: int = 0
    product_updates_skipped: int = 0
    on_hand_upserts: int = 0

    errors: list[ImportIssue] = Field(default_factory=list)
    failed_stage: ImportStage | None = None

    def counts(self) -> dict:
        """Ce qui doit être identique entre un aperçu et l'import réel."""
        return self.model_dump(exclude={"dry_run", "errors", "failed_stage"}, mode="json")


class CatalogSnapshot(BaseModel):
    """État du catalogue vu par un import, limité aux noms/SKU du lot."""

    location_names: set[str] = Field(default_factory=set)
    material_type_names: set[str] = Field(default_factory=set)
    vendor_names: set[str] = Field(default_factory=set)
    existing_skus: set[str] = Field(default_factory=set)
    first_location_name: str | None = None
