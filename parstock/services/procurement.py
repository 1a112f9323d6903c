"""
Procurement service.

Mise en forme de la liste d'achat (texte pour un e-mail, PDF pour
l'impression) à partir d'un ReorderReport déjà calculé.
Ce module ne contient AUCUNE logique de calcul de stock : tout est dans
    parstock.services.reorder
"""

from __future__ import annotations

from datetime import datetime, timezone

from fpdf import FPDF

from parstock.app.core.config import settings
from parstock.app.schemas.reorder import ReorderLine, ReorderReport

NOTHING_TO_ORDER = "Nothing to order: every product is at or above PAR."


def _line_label(line: ReorderLine) -> str:
    return f"{line.to_order} x {line.name} ({line.sku})"


def render_purchase_list_text(report: ReorderReport, title: str | None = None) -> str:
    title = title or settings.purchase_list_title
    out = [title, "=" * len(title), ""]
    if report.is_empty:
        out.append(NOTHING_TO_ORDER)
        return "\n".join(out) + "\n"

    for vendor in report.vendors:
        out.append(vendor.vendor_name)
        for group in vendor.material_types:
            out.append(f"  {group.material_type_name}")
            for line in group.lines:
                out.append(f"    {_line_label(line)}")
        out.append("")
    out.append(f"Total units to order: {report.total_to_order}")
    return "\n".join(out) + "\n"


def _latin1(text: str) -> str:
    # polices de base du PDF : latin-1 uniquement
    return text.encode("latin-1", "replace").decode("latin-1")


def render_purchase_list_pdf(report: ReorderReport, title: str | None = None) -> bytes:
    title = title or settings.purchase_list_title
    pdf = FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, _latin1(title), new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.set_font("Helvetica", "I", 9)
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    pdf.cell(0, 6, f"Generated {generated}", new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.ln(6)

    if report.is_empty:
        pdf.set_font("Helvetica", size=12)
        pdf.cell(0, 8, NOTHING_TO_ORDER, new_x="LMARGIN", new_y="NEXT")
        return bytes(pdf.output())

    for vendor in report.vendors:
        pdf.set_font("Helvetica", "B", 14)
        pdf.cell(0, 9, _latin1(vendor.vendor_name), new_x="LMARGIN", new_y="NEXT")
        for group in vendor.material_types:
            pdf.set_font("Helvetica", "B", 11)
            pdf.cell(0, 7, _latin1(group.material_type_name), new_x="LMARGIN", new_y="NEXT")
            pdf.set_font("Helvetica", size=11)
            for line in group.lines:
                pdf.cell(8)
                pdf.cell(0, 6, _latin1(_line_label(line)), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(4)

    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 8, f"Total units to order: {report.total_to_order}", new_x="LMARGIN", new_y="NEXT")

    return bytes(pdf.output())
