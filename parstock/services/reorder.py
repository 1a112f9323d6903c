from __future__ import annotations

from typing import Iterable

from parstock.app.schemas.reorder import (
    MaterialTypeGroup,
    ReorderLine,
    ReorderReport,
    StockSnapshot,
    VendorGroup,
)
from parstock.services.catalog import CatalogStore
from parstock.services.quantities import from_tenths

NO_VENDOR = "No Vendor"
UNCATEGORIZED = "Uncategorized"


def units_to_order(par_tenths: int, on_hand_tenths: int) -> int:
    """
    Unités entières à commander.

    Règle métier :
        manque = max(PAR - stock total, 0)
        à commander = 0 si manque == 0, sinon ceil(manque)

    On n'achète pas un dixième d'unité : 0.1 manquant -> 1, 2.1 -> 3.
    """
    shortfall = par_tenths - on_hand_tenths
    if shortfall <= 0:
        return 0
    return -(-shortfall // 10)


def _name_key(name: str) -> tuple[str, str]:
    return (name.casefold(), name)


def _matches(snap: StockSnapshot, needle: str) -> bool:
    haystack = (snap.vendor_name, snap.material_type_name, snap.sku, snap.name)
    return any(needle in (value or "").lower() for value in haystack)


def build_reorder_report(snapshots: Iterable[StockSnapshot], query: str | None = None) -> ReorderReport:
    """
    Liste d'achat groupée fournisseur -> type de matière -> lignes.

    Ordre (contrat pour impression/email) :
    - fournisseurs puis types triés par nom, sans tenir compte de la casse
    - lignes par quantité à commander décroissante, puis nom croissant
    Les produits sans rien à commander n'apparaissent pas.

    query : filtre texte (fournisseur, type, SKU ou nom, sans casse) ; le
    total ne compte que les lignes retenues.
    """
    needle = (query or "").strip().lower()
    grouped: dict[str, dict[str, list[ReorderLine]]] = {}

    for snap in snapshots:
        if needle and not _matches(snap, needle):
            continue
        total_tenths = sum(snap.on_hand_tenths)
        to_order = units_to_order(snap.par_tenths, total_tenths)
        if to_order <= 0:
            continue

        vendor = snap.vendor_name or NO_VENDOR
        material = snap.material_type_name or UNCATEGORIZED
        grouped.setdefault(vendor, {}).setdefault(material, []).append(
            ReorderLine(
                product_id=snap.product_id,
                sku=snap.sku,
                name=snap.name,
                par=float(from_tenths(snap.par_tenths)),
                total_on_hand=float(from_tenths(total_tenths)),
                to_order=to_order,
            )
        )

    vendors = []
    for vendor in sorted(grouped, key=_name_key):
        materials = grouped[vendor]
        vendors.append(
            VendorGroup(
                vendor_name=vendor,
                material_types=[
                    MaterialTypeGroup(
                        material_type_name=material,
                        lines=sorted(
                            materials[material],
                            key=lambda ln: (-ln.to_order, ln.name.casefold(), ln.name, ln.sku),
                        ),
                    )
                    for material in sorted(materials, key=_name_key)
                ],
            )
        )
    report = ReorderReport(vendors=vendors)
    report.total_to_order = sum(line.to_order for line in report.lines())
    return report


def get_reorder_report(store: CatalogStore, query: str | None = None) -> ReorderReport:
    """Lecture seule, idempotent."""
    return build_reorder_report(store.list_active_products(), query)
