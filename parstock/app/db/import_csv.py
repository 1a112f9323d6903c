"""
Import d'un fichier CSV depuis la ligne de commande.

    python -m parstock.app.db.import_csv catalogue.csv --mode skip --dry-run
"""

from __future__ import annotations

import argparse
import json
import logging

from parstock.app.core.config import settings
from parstock.app.db.models.core_types import DedupMode
from parstock.app.db.session import SessionLocal
from parstock.services.catalog import CatalogStore
from parstock.services.csv_source import read_import_csv
from parstock.services.errors import CatalogError
from parstock.services.importer import preview_import, run_import


def run_csv_import(path: str, mode: DedupMode = DedupMode.update, dry_run: bool = False) -> dict:
    rows = read_import_csv(path)
    db = SessionLocal()
    try:
        store = CatalogStore(db)
        if dry_run:
            summary = preview_import(store, rows, mode)
        else:
            summary = run_import(store, rows, mode)
        return summary.model_dump(mode="json")
    finally:
        db.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import products, PAR and on-hand from a CSV file.")
    parser.add_argument("file", help="CSV file (sku, name, material_type, vendor, location, par, on_hand, notes)")
    parser.add_argument("--mode", choices=[m.value for m in DedupMode], default=DedupMode.update.value)
    parser.add_argument("--dry-run", action="store_true", help="show what would change, write nothing")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    try:
        result = run_csv_import(args.file, DedupMode(args.mode), args.dry_run)
    except CatalogError as exc:
        print(json.dumps(exc.as_result(), indent=2))
        return 2
    print(json.dumps(result, indent=2))
    return 1 if result["failed_stage"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
