from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile

from parstock.app.api.deps import get_store
from parstock.app.api.errors import http_error
from parstock.app.db.models.core_types import DedupMode
from parstock.app.schemas.imports import ImportRequest, ImportSummary
from parstock.services.catalog import CatalogStore
from parstock.services.csv_source import read_import_csv
from parstock.services.errors import CatalogError
from parstock.services.importer import preview_import, run_import

router = APIRouter(prefix="/import")


def _dispatch(store: CatalogStore, rows: list, mode: DedupMode, dry_run: bool) -> ImportSummary:
    if dry_run:
        return preview_import(store, rows, mode)
    return run_import(store, rows, mode)


@router.post("", response_model=ImportSummary)
def import_rows(payload: ImportRequest, store: CatalogStore = Depends(get_store)):
    return _dispatch(store, payload.rows, payload.dedup_mode, payload.dry_run)


@router.post("/csv", response_model=ImportSummary)
def import_csv(
    file: UploadFile = File(...),
    dedup_mode: DedupMode = Form(DedupMode.update),
    dry_run: bool = Form(False),
    store: CatalogStore = Depends(get_store),
):
    try:
        rows = read_import_csv(file.file.read())
    except CatalogError as exc:
        raise http_error(exc)
    return _dispatch(store, rows, dedup_mode, dry_run)
