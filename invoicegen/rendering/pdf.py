"""Serialize a laid-out :class:`Document` to PDF bytes with ReportLab."""

from __future__ import annotations

import io
import logging

from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdf_canvas

from invoicegen.rendering.layout import Color, Document, ImageOp, LineOp, RectOp, TextOp

logger = logging.getLogger(__name__)


def _rgb(color: Color) -> tuple[float, float, float]:
    return tuple(channel / 255 for channel in color)  # type: ignore[return-value]


def write_pdf(document: Document, *, author: str = "") -> bytes:
    buffer = io.BytesIO()
    page_width = document.width * mm
    page_height = document.height * mm
    pdf = pdf_canvas.Canvas(buffer, pagesize=(page_width, page_height))
    pdf.setTitle(document.title)
    if author:
        pdf.setAuthor(author)

    def flip(y: float) -> float:
        return page_height - y * mm

    for page in document.pages:
        for op in page.ops:
            if isinstance(op, TextOp):
                pdf.setFont(op.font, op.size)
                pdf.setFillColorRGB(*_rgb(op.color))
                if op.align == "right":
                    pdf.drawRightString(op.x * mm, flip(op.y), op.text)
                elif op.align == "center":
                    pdf.drawCentredString(op.x * mm, flip(op.y), op.text)
                else:
                    pdf.drawString(op.x * mm, flip(op.y), op.text)
            elif isinstance(op, LineOp):
                pdf.setStrokeColorRGB(*_rgb(op.color))
                pdf.setLineWidth(op.width * mm)
                pdf.line(op.x1 * mm, flip(op.y1), op.x2 * mm, flip(op.y2))
            elif isinstance(op, RectOp):
                if op.fill is not None:
                    pdf.setFillColorRGB(*_rgb(op.fill))
                if op.stroke is not None:
                    pdf.setStrokeColorRGB(*_rgb(op.stroke))
                    pdf.setLineWidth(op.line_width * mm)
                pdf.rect(
                    op.x * mm,
                    flip(op.y + op.height),
                    op.width * mm,
                    op.height * mm,
                    stroke=1 if op.stroke is not None else 0,
                    fill=1 if op.fill is not None else 0,
                )
            elif isinstance(op, ImageOp):
                pdf.drawImage(
                    ImageReader(io.BytesIO(op.data)),
                    op.x * mm,
                    flip(op.y + op.height),
                    width=op.width * mm,
                    height=op.height * mm,
                    preserveAspectRatio=True,
                    anchor="nw",
                    mask="auto",
                )
        pdf.showPage()

    pdf.save()
    data = buffer.getvalue()
    buffer.close()
    logger.debug("Wrote %s (%d pages, %d bytes)", document.filename, len(document.pages), len(data))
    return data
