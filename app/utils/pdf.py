"""PDF 문서 생성 유틸리티 — reportlab platypus.

PDF rendering helper used for evaluation reports, payment receipts and
pay stubs. Builds a branded single-column document (studio header,
key/value blocks, striped tables) and returns the raw bytes.
"""

import io
import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

BRAND_COLOR = colors.HexColor("#7c3aed")
DARK_GRAY = colors.HexColor("#1e293b")
LIGHT_GRAY = colors.HexColor("#f1f5f9")


class PDFReport:
    """간단한 보고서형 PDF 빌더.

    Small builder around ``SimpleDocTemplate``. Call the block methods in
    order, then ``build()`` to get the PDF bytes.
    """

    def __init__(self, title: str, studio_name: str, studio_lines: Sequence[str] = ()) -> None:
        self.title = title
        self.margin = 0.75 * inch
        self.page_width = letter[0]
        self.story: list[Any] = []

        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "ReportTitle", parent=styles["Heading1"], fontSize=20,
            textColor=BRAND_COLOR, spaceAfter=6, alignment=1,
        )
        self.heading_style = ParagraphStyle(
            "ReportHeading", parent=styles["Heading2"], fontSize=13,
            textColor=DARK_GRAY, spaceBefore=14, spaceAfter=6,
        )
        self.body_style = ParagraphStyle(
            "ReportBody", parent=styles["Normal"], fontSize=10,
            textColor=DARK_GRAY, spaceAfter=4,
        )
        self.small_style = ParagraphStyle(
            "ReportSmall", parent=self.body_style, fontSize=8,
            textColor=colors.grey, alignment=1,
        )

        self.story.append(Paragraph(escape(studio_name), self.title_style))
        for line in studio_lines:
            if line:
                self.story.append(Paragraph(escape(line), self.small_style))
        self.story.append(Spacer(1, 0.15 * inch))
        self.story.append(Paragraph(f"<b>{escape(title)}</b>", self.heading_style))

    def heading(self, text: str) -> "PDFReport":
        self.story.append(Paragraph(escape(text), self.heading_style))
        return self

    def paragraph(self, text: str | None) -> "PDFReport":
        # 줄바꿈 유지 — keep line breaks from free-text fields
        body = escape(text or "-").replace("\n", "<br/>")
        self.story.append(Paragraph(body, self.body_style))
        return self

    def key_values(self, pairs: Sequence[tuple[str, Any]]) -> "PDFReport":
        data = [[f"{label}:", "" if value is None else str(value)] for label, value in pairs]
        table = Table(data, colWidths=[1.8 * inch, 4.9 * inch])
        table.setStyle(TableStyle([
            ("FONT", (0, 0), (0, -1), "Helvetica-Bold", 10),
            ("FONT", (1, 0), (1, -1), "Helvetica", 10),
            ("TEXTCOLOR", (0, 0), (-1, -1), DARK_GRAY),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ]))
        self.story.append(table)
        return self

    def table(self, headers: Sequence[str], rows: Sequence[Sequence[Any]], col_widths: Sequence[float] | None = None) -> "PDFReport":
        data = [list(headers)] + [["" if v is None else str(v) for v in row] for row in rows]
        table = Table(data, colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), BRAND_COLOR),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 10),
            ("FONT", (0, 1), (-1, -1), "Helvetica", 9),
            ("TEXTCOLOR", (0, 1), (-1, -1), DARK_GRAY),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, LIGHT_GRAY]),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("TOPPADDING", (0, 0), (-1, -1), 5),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ]))
        self.story.append(table)
        return self

    def spacer(self, height: float = 0.2) -> "PDFReport":
        self.story.append(Spacer(1, height * inch))
        return self

    def _add_footer(self, canvas_obj: Any, doc: Any) -> None:
        canvas_obj.setFont("Helvetica", 8)
        canvas_obj.setFillColor(colors.grey)
        generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        canvas_obj.drawString(self.margin, self.margin / 2, f"Generated {generated}")
        canvas_obj.drawRightString(
            self.page_width - self.margin, self.margin / 2, f"Page {canvas_obj.getPageNumber()}"
        )

    def build(self) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=self.title,
        )
        doc.build(self.story, onFirstPage=self._add_footer, onLaterPages=self._add_footer)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        logger.info("Generated PDF '%s' (%d bytes)", self.title, len(pdf_bytes))
        return pdf_bytes
