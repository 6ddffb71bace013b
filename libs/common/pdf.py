"""
PDF generation utilities using ReportLab.
"""

import io
from datetime import datetime
from typing import List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

BRAND_COLOR = colors.HexColor("#1e3a8a")
MUTED_COLOR = colors.HexColor("#64748b")

_HEADER_TABLE_STYLE = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), BRAND_COLOR),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f8fafc")]),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#e2e8f0")),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
    ]
)

_INFO_TABLE_STYLE = TableStyle(
    [
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("TEXTCOLOR", (0, 0), (0, -1), MUTED_COLOR),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]
)


def _truncate(value: object, limit: int = 40) -> str:
    text = "" if value is None else str(value)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def generate_table_report_pdf(
    title: str,
    headers: Sequence[str],
    rows: Sequence[Sequence[object]],
    *,
    subtitle: Optional[str] = None,
    info: Optional[List[tuple[str, str]]] = None,
    sections: Optional[List[tuple[str, Sequence[str], Sequence[Sequence[object]]]]] = None,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """
    Render a titled report with an optional key/value info block and one or
    more data tables.

    ``sections`` adds extra titled tables after the main one. Wide tables
    (more than five columns) switch the page to landscape.

    Returns PDF as bytes for download.
    """
    buffer = io.BytesIO()
    pagesize = landscape(A4) if len(headers) > 5 else A4
    doc = SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        rightMargin=0.5 * inch,
        leftMargin=0.5 * inch,
        topMargin=0.6 * inch,
        bottomMargin=0.6 * inch,
        title=title,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "ReportTitle",
        parent=styles["Heading1"],
        fontSize=18,
        textColor=BRAND_COLOR,
        spaceAfter=6,
    )
    heading_style = ParagraphStyle(
        "ReportHeading",
        parent=styles["Heading2"],
        fontSize=12,
        textColor=colors.HexColor("#1e293b"),
        spaceBefore=14,
        spaceAfter=6,
    )
    footer_style = ParagraphStyle(
        "ReportFooter", parent=styles["Normal"], fontSize=8, textColor=MUTED_COLOR
    )

    elements = [Paragraph(title, title_style)]
    if subtitle:
        elements.append(Paragraph(subtitle, styles["Normal"]))
    elements.append(Spacer(1, 10))

    if info:
        info_table = Table([[f"{k}:", v] for k, v in info], colWidths=[1.8 * inch, 4 * inch])
        info_table.setStyle(_INFO_TABLE_STYLE)
        elements.append(info_table)
        elements.append(Spacer(1, 10))

    tables = [(None, headers, rows)] + list(sections or [])
    for heading, cols, data in tables:
        if heading:
            elements.append(Paragraph(heading, heading_style))
        if not data:
            elements.append(Paragraph("No records.", styles["Normal"]))
            continue
        table_data = [list(cols)] + [[_truncate(cell) for cell in row] for row in data]
        table = Table(table_data, repeatRows=1)
        table.setStyle(_HEADER_TABLE_STYLE)
        elements.append(table)

    elements.append(Spacer(1, 16))
    stamp = (generated_at or datetime.now()).strftime("%B %d, %Y %H:%M")
    elements.append(Paragraph(f"Generated on {stamp}", footer_style))

    doc.build(elements)

    return buffer.getvalue()
