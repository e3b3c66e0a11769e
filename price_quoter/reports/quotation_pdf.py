"""
Quotation PDF Generator
=======================

Renders a search result as a customer-facing price quotation.

Layout (A4 portrait):
- Header band with the organisation, and date / region / folio on the right
- Report title and the search criterion
- Table: Producto | Presentación | Empaque | Precio Est. | Notas
- Separator and legal disclaimer right after the last table row

Rendering is pure: the same result and metadata give the same bytes
(reportlab invariant mode keeps wall-clock values out of the file).
"""
from __future__ import annotations

import io
import os
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    HRFlowable,
    KeepTogether,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
)

from price_quoter import config
from price_quoter.models import ProductPriceLine, ReportMeta, SearchResult
from price_quoter.reports.table_layout import ColumnSpec, TableTheme, build_table

PRIMARY_COLOR = colors.Color(15 / 255, 23 / 255, 42 / 255)      # slate 900
ACCENT_COLOR = colors.Color(202 / 255, 138 / 255, 4 / 255)      # dark gold
PRICE_COLOR = colors.Color(22 / 255, 163 / 255, 74 / 255)       # green
HEADER_BAND_COLOR = colors.Color(248 / 255, 250 / 255, 252 / 255)
ALTERNATE_ROW_COLOR = colors.Color(241 / 255, 245 / 255, 249 / 255)

PAGE_WIDTH, PAGE_HEIGHT = A4
SIDE_MARGIN = 14 * mm
HEADER_BAND_HEIGHT = 45 * mm
PRINTABLE_WIDTH = PAGE_WIDTH - 2 * SIDE_MARGIN

SPANISH_MONTHS = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]

QUOTATION_COLUMNS = [
    ColumnSpec("Producto", width=45 * mm, font_name="Helvetica-Bold"),
    ColumnSpec("Presentación", width=35 * mm),
    ColumnSpec("Empaque", width=35 * mm),
    ColumnSpec("Precio Est.", width=25 * mm, align="RIGHT",
               font_name="Helvetica-Bold", text_color=PRICE_COLOR),
    ColumnSpec("Notas", width=None, font_name="Helvetica-Oblique", font_size=8),
]

QUOTATION_THEME = TableTheme(
    header_background=PRIMARY_COLOR,
    alternate_row_background=ALTERNATE_ROW_COLOR,
)


@dataclass(frozen=True)
class RenderedReport:
    """A rendered quotation and its suggested filename"""
    filename: str
    content: bytes

    def save(self, output_dir: Optional[str] = None) -> str:
        """Write the PDF to `output_dir` (defaults to config.EXPORT_FOLDER); returns the absolute path"""
        out_dir = output_dir or config.EXPORT_FOLDER
        os.makedirs(out_dir, exist_ok=True)
        path = os.path.join(out_dir, self.filename)
        with open(path, "wb") as f:
            f.write(self.content)
        return os.path.abspath(path)


def format_price(line: ProductPriceLine) -> str:
    """'$305.50 MXN' style price cell"""
    return f"${line.estimated_price:.2f} {line.currency}".rstrip()


def format_report_date(moment: datetime) -> str:
    """'19 de octubre de 2026, 14:05'"""
    month = SPANISH_MONTHS[moment.month - 1]
    return f"{moment.day} de {month} de {moment.year}, {moment:%H:%M}"


def _epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def reference_code(moment: datetime) -> str:
    """Folio built from the trailing six digits of the generation timestamp"""
    return f"REF-{str(_epoch_millis(moment))[-6:]}"


def report_filename(meta: ReportMeta) -> str:
    return f"Cotizacion_Modelo_{meta.region.label}_{_epoch_millis(meta.generated_at)}.pdf"


def quotation_rows(result: SearchResult) -> List[List[str]]:
    """Table body, one row per product in the order received"""
    return [
        [
            line.product_name,
            line.presentation,
            line.pack_type,
            format_price(line),
            line.notes,
        ]
        for line in result.products
    ]


def _draw_header_band(canvas, meta: ReportMeta) -> None:
    top = PAGE_HEIGHT
    right = PAGE_WIDTH - SIDE_MARGIN

    canvas.saveState()
    canvas.setFillColor(HEADER_BAND_COLOR)
    canvas.rect(0, top - HEADER_BAND_HEIGHT, PAGE_WIDTH, HEADER_BAND_HEIGHT, stroke=0, fill=1)

    canvas.setFont("Helvetica-Bold", 20)
    canvas.setFillColor(PRIMARY_COLOR)
    canvas.drawString(SIDE_MARGIN, top - 20 * mm, config.ORGANIZATION_NAME)

    canvas.setFont("Helvetica", 12)
    canvas.setFillColor(ACCENT_COLOR)
    canvas.drawString(SIDE_MARGIN, top - 26 * mm, config.ORGANIZATION_SUBTITLE)

    canvas.setFont("Helvetica", 9)
    canvas.setFillGray(100 / 255)
    canvas.drawString(SIDE_MARGIN, top - 32 * mm, config.ORGANIZATION_ADDRESS)

    canvas.setFont("Helvetica", 10)
    canvas.setFillGray(60 / 255)
    canvas.drawRightString(right, top - 20 * mm, f"Fecha: {format_report_date(meta.generated_at)}")
    canvas.drawRightString(right, top - 25 * mm, f"Zona: {meta.region.label}")
    canvas.drawRightString(right, top - 30 * mm, f"Folio: {reference_code(meta.generated_at)}")
    canvas.restoreState()


def build_quotation_story(result: SearchResult, meta: ReportMeta) -> list:
    """Flowables below the header band: title, criterion, table, disclaimer"""
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "QuotationTitle",
        parent=styles["Normal"],
        fontName="Helvetica-Bold",
        fontSize=12,
        leading=15,
        textColor=colors.black,
    )
    criterion_style = ParagraphStyle(
        "QuotationCriterion",
        parent=styles["Normal"],
        fontSize=10,
        leading=13,
        textColor=colors.Color(80 / 255, 80 / 255, 80 / 255),
        spaceAfter=4,
    )
    disclaimer_style = ParagraphStyle(
        "Disclaimer",
        parent=styles["Normal"],
        fontSize=8,
        leading=10,
        textColor=colors.Color(120 / 255, 120 / 255, 120 / 255),
    )

    elements = [
        # Frame starts at the top margin; push the body below the header band
        Spacer(1, HEADER_BAND_HEIGHT - 12 * mm),
        Paragraph("Reporte de Verificación de Precios", title_style),
        Paragraph(f'Criterio de búsqueda: "{escape(meta.query.upper())}"', criterion_style),
        build_table(QUOTATION_COLUMNS, quotation_rows(result), PRINTABLE_WIDTH, QUOTATION_THEME),
        Spacer(1, 8 * mm),
        KeepTogether([
            HRFlowable(width="100%", thickness=0.5, color=colors.Color(200 / 255, 200 / 255, 200 / 255),
                       spaceAfter=4 * mm),
            Paragraph(escape(config.REPORT_DISCLAIMER), disclaimer_style),
        ]),
    ]
    return elements


def render_quotation(result: SearchResult, meta: ReportMeta) -> RenderedReport:
    """
    Render a quotation PDF in memory

    Args:
        result: Completed search result (may have no products)
        meta: Region, query and generation time printed on the document

    Returns:
        RenderedReport with the suggested filename and the PDF bytes
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=SIDE_MARGIN,
        rightMargin=SIDE_MARGIN,
        topMargin=12 * mm,
        bottomMargin=15 * mm,
        title=f"Cotización {meta.query}",
        author=config.ORGANIZATION_NAME,
        invariant=1,
    )

    def on_first_page(canvas, _doc):
        _draw_header_band(canvas, meta)

    doc.build(build_quotation_story(result, meta), onFirstPage=on_first_page)
    return RenderedReport(filename=report_filename(meta), content=buffer.getvalue())
