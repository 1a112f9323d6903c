"""
Lecture d'un fichier CSV d'import en lignes brutes.

Tout est lu en texte (pas de NaN, pas de conversion numérique) : la
normalisation reste le travail de services.importer.
Une ligne mal formée (trop de cellules) n'arrête pas la lecture : elle est
rendue comme une ligne vide, que l'import compte puis écarte.
"""

from __future__ import annotations

import io
import logging
import re
from typing import IO, Any

import pandas as pd

from parstock.services.errors import ValidationError

logger = logging.getLogger(__name__)

# champ d'import -> en-têtes acceptés, par ordre de priorité
FIELD_ALIASES = {
    "location": ("location", "loc", "location_name"),
    "material_type": ("material_type", "materialtype", "category", "type", "material_category"),
    "vendor": ("vendor", "vendor_name", "supplier", "supplier_name"),
    "sku": ("sku", "item_sku"),
    "name": ("name", "product", "material", "product_name"),
    "notes": ("notes", "note"),
    "par": ("par", "global_par"),
    "on_hand": ("on_hand", "onhand", "qty", "quantity"),
}


def header_key(header: Any) -> str:
    return re.sub(r"[\s\-]+", "_", str(header).strip().lower())


def canonical_header(header: Any) -> str | None:
    key = header_key(header)
    for field, aliases in FIELD_ALIASES.items():
        if key in aliases:
            return field
    return None


def _decode(raw: bytes) -> str:
    # exports tableur : UTF-8 (avec ou sans BOM), sinon Latin-1 qui décode tout
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def _read_text(source: str | bytes | IO) -> str:
    if isinstance(source, bytes):
        return _decode(source)
    if isinstance(source, str):
        with open(source, "rb") as fh:
            return _decode(fh.read())
    content = source.read()
    return _decode(content) if isinstance(content, bytes) else content


def _pick(cells: dict[str, list[str]], aliases: tuple[str, ...]) -> str:
    """Première valeur non vide, dans l'ordre des alias puis des colonnes."""
    for alias in aliases:
        for value in cells.get(alias, ()):
            if value.strip():
                return value
    return ""


def read_import_csv(source: str | bytes | IO) -> list[dict[str, str]]:
    """
    Chemin, bytes (upload) ou flux -> liste de dicts aux clés canoniques.

    ValidationError si le fichier n'est pas lisible comme CSV.
    """
    bad_lines: list[list[str]] = []

    def _skip(line: list[str]) -> None:
        bad_lines.append(line)
        return None

    try:
        df = pd.read_csv(
            io.StringIO(_read_text(source)),
            header=None,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            engine="python",
            on_bad_lines=_skip,
        )
    except pd.errors.EmptyDataError:
        return []
    except pd.errors.ParserError as exc:
        raise ValidationError(f"Unreadable CSV: {exc}", field="file")

    df = df.fillna("")
    headers = [header_key(h) for h in df.iloc[0]]

    rows = []
    for values in df.iloc[1:].itertuples(index=False):
        cells: dict[str, list[str]] = {}
        for header, value in zip(headers, values):
            cells.setdefault(header, []).append(str(value))
        rows.append({field: _pick(cells, aliases) for field, aliases in FIELD_ALIASES.items()})

    if bad_lines:
        logger.warning("csv: %d malformed line(s) skipped", len(bad_lines))
        rows.extend({} for _ in bad_lines)
    return rows
