"""Erreurs métier -> réponses HTTP (le détail reste structuré : kind/message/field)."""

from __future__ import annotations

from fastapi import HTTPException

from parstock.app.db.models.core_types import ErrorKind
from parstock.services.errors import CatalogError

STATUS_BY_KIND = {
    ErrorKind.validation: 400,
    ErrorKind.conflict: 409,
    ErrorKind.reference_not_found: 404,
}


def http_error(exc: CatalogError) -> HTTPException:
    return HTTPException(status_code=STATUS_BY_KIND.get(exc.kind, 400), detail=exc.as_result())
