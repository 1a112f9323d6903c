from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse

from parstock.app.api.deps import get_store
from parstock.app.schemas.reorder import ReorderReport
from parstock.services.catalog import CatalogStore
from parstock.services.procurement import render_purchase_list_pdf, render_purchase_list_text
from parstock.services.reorder import get_reorder_report

router = APIRouter(prefix="/reorder")


@router.get("", response_model=ReorderReport)
def reorder_report(q: str | None = None, store: CatalogStore = Depends(get_store)):
    return get_reorder_report(store, q)


@router.get("/text", response_class=PlainTextResponse)
def reorder_text(title: str | None = None, q: str | None = None, store: CatalogStore = Depends(get_store)):
    return render_purchase_list_text(get_reorder_report(store, q), title)


@router.get("/pdf")
def reorder_pdf(title: str | None = None, q: str | None = None, store: CatalogStore = Depends(get_store)):
    content = render_purchase_list_pdf(get_reorder_report(store, q), title)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="purchase_list.pdf"'},
    )
