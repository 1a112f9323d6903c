"""
Import en masse du catalogue (lignes JSON ou CSV).

Déroulé :
    1. normalisation des lignes (une fois, avant toute résolution)
    2. plan pur : noms à créer, opérations produit, affectations, stock
    3. exécution par lots, dans l'ordre :
       locations -> types -> fournisseurs -> produits -> affectations -> stock

Chaque lot est commité séparément : un échec laisse les lots précédents
en place et s'arrête là (failed_stage dans le résumé).
L'aperçu (preview_import) s'arrête après le plan, sans aucune écriture.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Literal, Mapping, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

from parstock.app.core.config import settings
from parstock.app.db.models.core_types import DedupMode, EntityKind, ErrorKind, ImportStage
from parstock.app.db.models.models_v1 import NAME_MAX_LEN, REF_NAME_MAX_LEN, SKU_MAX_LEN
from parstock.app.schemas.catalog import ProductFields
from parstock.app.schemas.imports import CatalogSnapshot, ImportIssue, ImportRow, ImportSummary
from parstock.services.catalog import CatalogStore
from parstock.services.quantities import fits_column, non_negative_tenths

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


# ---------- NORMALISATION ----------
def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def normalize_row(raw: Any) -> ImportRow | None:
    """
    None si la ligne est inutilisable : elle est ignorée, pas rejetée.

    Inutilisable = sans sku ou nom, un texte plus long que sa colonne, ou une
    quantité hors de la plage d'un Integer.
    """
    if not isinstance(raw, Mapping):
        return None

    sku = _text(raw.get("sku")).upper()
    name = _text(raw.get("name"))
    if not sku or not name:
        return None
    if len(sku) > SKU_MAX_LEN or len(name) > NAME_MAX_LEN:
        return None

    refs = {field: _text(raw.get(field)) or None for field in ("material_type", "vendor", "location")}
    if any(value and len(value) > REF_NAME_MAX_LEN for value in refs.values()):
        return None

    par_tenths = non_negative_tenths(raw.get("par"))
    on_hand = raw.get("on_hand")
    on_hand_tenths = non_negative_tenths(on_hand) if _text(on_hand) else None
    if not fits_column(par_tenths) or (on_hand_tenths is not None and not fits_column(on_hand_tenths)):
        return None

    return ImportRow(
        sku=sku,
        name=name,
        **refs,
        par_tenths=par_tenths,
        on_hand_tenths=on_hand_tenths,
        notes=_text(raw.get("notes")) or None,
    )


def normalize_rows(raw_rows: Iterable[Any]) -> list[ImportRow]:
    rows = []
    for raw in raw_rows:
        row = normalize_row(raw)
        if row is not None:
            rows.append(row)
    return rows


def fold_assignments(pairs: Iterable[tuple[K, V]]) -> dict[K, frozenset[V]]:
    """(produit, location) répétés -> {produit: ensemble des locations}."""
    acc: dict[K, set[V]] = {}
    for key, value in pairs:
        acc.setdefault(key, set()).add(value)
    return {key: frozenset(values) for key, values in acc.items()}


def _distinct(values: Iterable[str | None]) -> list[str]:
    return list(dict.fromkeys(v for v in values if v))


# ---------- PLAN ----------
class ProductOp(BaseModel):
    row: ImportRow
    action: Literal["insert", "update", "skip"]


class OnHandOp(BaseModel):
    sku: str
    location: str
    qty_tenths: int


class ImportPlan(BaseModel):
    mode: DedupMode
    rows_received: int
    rows: list[ImportRow]

    default_location: str | None = None
    location_names: list[str] = Field(default_factory=list)
    material_type_names: list[str] = Field(default_factory=list)
    vendor_names: list[str] = Field(default_factory=list)
    new_locations: list[str] = Field(default_factory=list)
    new_material_types: list[str] = Field(default_factory=list)
    new_vendors: list[str] = Field(default_factory=list)

    product_ops: list[ProductOp] = Field(default_factory=list)
    assignments: dict[str, frozenset[str]] = Field(default_factory=dict)
    on_hand: list[OnHandOp] = Field(default_factory=list)

    def summary(self, *, dry_run: bool) -> ImportSummary:
        actions = [op.action for op in self.product_ops]
        return ImportSummary(
            dedup_mode=self.mode,
            dry_run=dry_run,
            rows_received=self.rows_received,
            rows_accepted=len(self.rows),
            locations_created=len(self.new_locations),
            material_types_created=len(self.new_material_types),
            vendors_created=len(self.new_vendors),
            new_locations=list(self.new_locations),
            new_material_types=list(self.new_material_types),
            new_vendors=list(self.new_vendors),
            products_inserted=actions.count("insert"),
            products_updated=actions.count("update"),
            product_updates_skipped=actions.count("skip"),
            on_hand_upserts=len(self.on_hand),
        )


def _pick_default_location(
    rows: list[ImportRow],
    referenced: list[str],
    snapshot: CatalogSnapshot,
    fallback_name: str,
) -> str | None:
    """
    Location des lignes qui n'en donnent pas.
    Priorité : première location du catalogue, sinon première citée par le lot,
    sinon une location synthétisée (fallback_name).
    """
    if all(row.location for row in rows):
        return None
    if snapshot.first_location_name:
        return snapshot.first_location_name
    if referenced:
        return referenced[0]
    return fallback_name


def plan_import(
    rows: list[ImportRow],
    snapshot: CatalogSnapshot,
    mode: DedupMode,
    *,
    rows_received: int | None = None,
    default_location_name: str | None = None,
) -> ImportPlan:
    """Calcul pur de ce que l'import va faire ; aucune lecture ni écriture DB."""
    mode = DedupMode(mode)
    referenced_locations = _distinct(row.location for row in rows)
    default_location = _pick_default_location(
        rows,
        referenced_locations,
        snapshot,
        default_location_name or settings.default_location_name,
    )

    location_names = list(referenced_locations)
    if default_location and default_location not in location_names:
        location_names.append(default_location)
    material_type_names = _distinct(row.material_type for row in rows)
    vendor_names = _distinct(row.vendor for row in rows)

    # champs produit : dernière ligne en mode update, première en mode skip
    chosen: dict[str, ImportRow] = {}
    for row in rows:
        if mode == DedupMode.skip and row.sku in chosen:
            continue
        chosen[row.sku] = row

    product_ops = []
    for sku, row in chosen.items():
        if sku not in snapshot.existing_skus:
            action = "insert"
        elif mode == DedupMode.update:
            action = "update"
        else:
            action = "skip"
        product_ops.append(ProductOp(row=row, action=action))

    # stock : toujours appliqué, dernière ligne gagnante par (sku, location)
    on_hand: dict[tuple[str, str], int] = {}
    for row in rows:
        if row.on_hand_tenths is None:
            continue
        on_hand[(row.sku, row.location or default_location)] = row.on_hand_tenths

    return ImportPlan(
        mode=mode,
        rows_received=len(rows) if rows_received is None else rows_received,
        rows=rows,
        default_location=default_location,
        location_names=location_names,
        material_type_names=material_type_names,
        vendor_names=vendor_names,
        new_locations=[n for n in location_names if n not in snapshot.location_names],
        new_material_types=[n for n in material_type_names if n not in snapshot.material_type_names],
        new_vendors=[n for n in vendor_names if n not in snapshot.vendor_names],
        product_ops=product_ops,
        assignments=fold_assignments((row.sku, row.location or default_location) for row in rows),
        on_hand=[OnHandOp(sku=sku, location=loc, qty_tenths=qty) for (sku, loc), qty in on_hand.items()],
    )


def build_snapshot(
    store: CatalogStore,
    rows: list[ImportRow],
    default_location_name: str | None = None,
) -> CatalogSnapshot:
    first = store.first_location()
    # la location par défaut peut exister sans être citée par le lot
    wanted = [r.location for r in rows] + [default_location_name or settings.default_location_name]
    location_names = set(store.find_entity_ids(EntityKind.location, wanted))
    if first:
        location_names.add(first.name)
    return CatalogSnapshot(
        location_names=location_names,
        material_type_names=set(store.find_entity_ids(EntityKind.material_type, (r.material_type for r in rows))),
        vendor_names=set(store.find_entity_ids(EntityKind.vendor, (r.vendor for r in rows))),
        existing_skus=set(store.find_product_ids(r.sku for r in rows)),
        first_location_name=first.name if first else None,
    )


def _prepare(
    store: CatalogStore,
    raw_rows: list[Any],
    mode: DedupMode,
    default_location_name: str | None,
) -> ImportPlan:
    raw_rows = list(raw_rows)
    rows = normalize_rows(raw_rows)
    return plan_import(
        rows,
        build_snapshot(store, rows, default_location_name),
        mode,
        rows_received=len(raw_rows),
        default_location_name=default_location_name,
    )


# ---------- EXÉCUTION ----------
class _ResolvedIds(BaseModel):
    locations: dict[str, int] = Field(default_factory=dict)
    material_types: dict[str, int] = Field(default_factory=dict)
    vendors: dict[str, int] = Field(default_factory=dict)
    products: dict[str, int] = Field(default_factory=dict)


def _apply_locations(store: CatalogStore, plan: ImportPlan, ids: _ResolvedIds) -> dict[str, Any]:
    res = store.resolve_names(EntityKind.location, plan.location_names)
    ids.locations = res.ids
    return {"locations_created": len(res.created), "new_locations": res.created}


def _apply_material_types(store: CatalogStore, plan: ImportPlan, ids: _ResolvedIds) -> dict[str, Any]:
    res = store.resolve_names(EntityKind.material_type, plan.material_type_names)
    ids.material_types = res.ids
    return {"material_types_created": len(res.created), "new_material_types": res.created}


def _apply_vendors(store: CatalogStore, plan: ImportPlan, ids: _ResolvedIds) -> dict[str, Any]:
    res = store.resolve_names(EntityKind.vendor, plan.vendor_names)
    ids.vendors = res.ids
    return {"vendors_created": len(res.created), "new_vendors": res.created}


def _product_fields(row: ImportRow, ids: _ResolvedIds) -> ProductFields:
    return ProductFields(
        name=row.name,
        material_type_id=ids.material_types.get(row.material_type) if row.material_type else None,
        vendor_id=ids.vendors.get(row.vendor) if row.vendor else None,
        par_tenths=row.par_tenths,
        notes=row.notes,
    )


def _apply_products(store: CatalogStore, plan: ImportPlan, ids: _ResolvedIds) -> dict[str, Any]:
    """
    Un SKU refusé par la DB (conflit inséré en parallèle, valeur hors colonne)
    devient une erreur par ligne : on annule le lot, on retire ce SKU, on
    rejoue le reste. Les erreurs remontent sous la clé "errors".
    """
    pending = list(plan.product_ops)
    issues: list[ImportIssue] = []
    while True:
        product_ids: dict[str, int] = {}
        counts = {"products_inserted": 0, "products_updated": 0, "product_updates_skipped": 0}
        current = None
        try:
            for op in pending:
                current = op
                result = store.upsert_product(op.row.sku, _product_fields(op.row, ids), plan.mode)
                product_ids[op.row.sku] = result.id
                if result.created:
                    counts["products_inserted"] += 1
                elif result.updated:
                    counts["products_updated"] += 1
                else:
                    counts["product_updates_skipped"] += 1
            store.commit()
        except (IntegrityError, DataError) as exc:
            store.rollback()
            if current is None:
                raise
            logger.warning("import: SKU %s rejected (%s)", current.row.sku, exc.orig)
            issues.append(
                ImportIssue(
                    kind=ErrorKind.conflict if isinstance(exc, IntegrityError) else ErrorKind.validation,
                    stage=ImportStage.products,
                    message=f"SKU {current.row.sku} could not be written: {exc.orig}",
                    sku=current.row.sku,
                    field="sku",
                )
            )
            pending = [op for op in pending if op is not current]
            continue

        ids.products = product_ids
        return {**counts, "errors": issues}


def _apply_assignments(store: CatalogStore, plan: ImportPlan, ids: _ResolvedIds) -> dict[str, Any]:
    for sku, location_names in plan.assignments.items():
        product_id = ids.products.get(sku)
        if product_id is None:
            continue  # produit rejeté plus haut
        store.add_product_locations(product_id, [ids.locations[name] for name in location_names])
    return {}


def _apply_on_hand(store: CatalogStore, plan: ImportPlan, ids: _ResolvedIds) -> dict[str, Any]:
    upserts = 0
    for op in plan.on_hand:
        product_id = ids.products.get(op.sku)
        if product_id is None:
            continue
        store.upsert_on_hand(product_id, ids.locations[op.location], op.qty_tenths)
        upserts += 1
    return {"on_hand_upserts": upserts}


STAGES = (
    (ImportStage.locations, _apply_locations),
    (ImportStage.material_types, _apply_material_types),
    (ImportStage.vendors, _apply_vendors),
    (ImportStage.products, _apply_products),
    (ImportStage.assignments, _apply_assignments),
    (ImportStage.on_hand, _apply_on_hand),
)


def preview_import(
    store: CatalogStore,
    raw_rows: Iterable[Any],
    mode: DedupMode = DedupMode.update,
    *,
    default_location_name: str | None = None,
) -> ImportSummary:
    """Dry-run : mêmes compteurs qu'un run_import sur le même état, aucune écriture."""
    plan = _prepare(store, list(raw_rows), DedupMode(mode), default_location_name)
    summary = plan.summary(dry_run=True)
    logger.info(
        "import preview (%s): %d/%d rows accepted, %d to insert, %d to update, %d to skip",
        plan.mode.value,
        summary.rows_accepted,
        summary.rows_received,
        summary.products_inserted,
        summary.products_updated,
        summary.product_updates_skipped,
    )
    return summary


def run_import(
    store: CatalogStore,
    raw_rows: Iterable[Any],
    mode: DedupMode = DedupMode.update,
    *,
    default_location_name: str | None = None,
) -> ImportSummary:
    plan = _prepare(store, list(raw_rows), DedupMode(mode), default_location_name)
    summary = ImportSummary(
        dedup_mode=plan.mode,
        dry_run=False,
        rows_received=plan.rows_received,
        rows_accepted=len(plan.rows),
    )
    if not plan.rows:
        return summary

    ids = _ResolvedIds()
    for stage, apply in STAGES:
        try:
            updates = apply(store, plan, ids)
            store.commit()
        except SQLAlchemyError as exc:
            store.rollback()
            logger.exception("import: stage %s failed, later stages not attempted", stage.value)
            summary.failed_stage = stage
            summary.errors.append(
                ImportIssue(
                    kind=ErrorKind.conflict if isinstance(exc, IntegrityError) else ErrorKind.storage,
                    stage=stage,
                    message=str(getattr(exc, "orig", None) or exc),
                )
            )
            break

        summary.errors.extend(updates.pop("errors", []))
        for key, value in updates.items():
            setattr(summary, key, value)

    logger.info(
        "import (%s): %d/%d rows, %d inserted, %d updated, %d skipped, %d on-hand upserts",
        plan.mode.value,
        summary.rows_accepted,
        summary.rows_received,
        summary.products_inserted,
        summary.products_updated,
        summary.product_updates_skipped,
        summary.on_hand_upserts,
    )
    return summary
