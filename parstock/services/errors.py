"""
Erreurs métier du catalogue.

Levées par les opérations d'édition directe, avant toute écriture.
L'API les convertit en HTTPException (voir parstock.app.api.errors).
"""

from __future__ import annotations

from parstock.app.db.models.core_types import ErrorKind


class CatalogError(Exception):
    kind: ErrorKind

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def as_result(self) -> dict:
        return {"kind": self.kind.value, "message": self.message, "field": self.field}


class ValidationError(CatalogError):
    kind = ErrorKind.validation


class ConflictError(CatalogError):
    kind = ErrorKind.conflict


class ReferenceNotFoundError(CatalogError):
    kind = ErrorKind.reference_not_found
