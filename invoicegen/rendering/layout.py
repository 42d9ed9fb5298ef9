"""Page layout for invoices and estimates.

The renderer walks a vertical cursor down an A4 page and records
absolutely positioned draw operations (millimetres, origin at the top-left
corner, text ``y`` is the baseline). Sections are emitted in a fixed order:
header, parties, items table, totals, payment details, notes. When the next
block does not fit above the bottom margin a new page is started and the
items table header is repeated.

Images are awaited one at a time at the point where they are drawn, so the
output never depends on load timing. A logo or QR code that cannot be loaded
or decoded is left out and the layout closes up around it.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth

from invoicegen.schemas.invoice import InvoiceDraft
from invoicegen.services.exceptions import AssetLoadError
from invoicegen.services.totals import ZERO, format_amount, format_rate, line_total, to_decimal

logger = logging.getLogger(__name__)

PAGE_WIDTH = 210.0
PAGE_HEIGHT = 297.0
DEFAULT_MARGIN = 20.0
PT = 25.4 / 72

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"

Color = Tuple[int, int, int]
BLACK: Color = (0, 0, 0)
ACCENT: Color = (37, 99, 235)
MUTED: Color = (100, 100, 100)
DESCRIPTION: Color = (80, 80, 80)
PLACEHOLDER: Color = (140, 140, 140)
HEADER_FILL: Color = (248, 248, 248)
HEADER_BORDER: Color = (200, 200, 200)
ROW_BORDER: Color = (230, 230, 230)
ROW_SHADE: Color = (252, 252, 252)

LOGO_WIDTH = 30.0
LOGO_HEIGHT = 20.0
LOGO_GAP = 5.0
QR_SIZE = 30.0

TABLE_HEADER_HEIGHT = 10.0
ROW_MIN_HEIGHT = 12.0
ROW_PADDING_TOP = 4.0
ROW_PADDING_BOTTOM = 3.0
CELL_PADDING = 4.0
COLUMN_SHARES = (0.65, 0.15, 0.20)
TOTALS_WIDTH = 80.0
TOTALS_LINE = 7.0

NO_ITEMS_TEXT = "No items added yet"


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    font: str = FONT
    size: float = 10.0
    color: Color = BLACK
    align: str = "left"


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    width: float = 0.3
    color: Color = HEADER_BORDER


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[Color] = None
    stroke: Optional[Color] = None
    line_width: float = 0.3


@dataclass(frozen=True)
class ImageOp:
    x: float
    y: float
    width: float
    height: float
    data: bytes = field(repr=False)
    name: str = ""


DrawOp = Union[TextOp, LineOp, RectOp, ImageOp]


@dataclass
class Page:
    number: int
    ops: List[DrawOp] = field(default_factory=list)


@dataclass
class Document:
    title: str
    filename: str
    pages: List[Page]
    width: float = PAGE_WIDTH
    height: float = PAGE_HEIGHT

    @property
    def ops(self) -> List[DrawOp]:
        return [op for page in self.pages for op in page.ops]

    def texts(self) -> List[str]:
        return [op.text for op in self.ops if isinstance(op, TextOp)]

    def find_text(self, needle: str) -> List[TextOp]:
        return [op for op in self.ops if isinstance(op, TextOp) and needle in op.text]

    def images(self) -> List[ImageOp]:
        return [op for op in self.ops if isinstance(op, ImageOp)]


class ImageSource(Protocol):
    async def load(self, reference: str) -> bytes: ...


def text_width(text: str, font: str, size: float) -> float:
    return stringWidth(text, font, size) * PT


def line_height(size: float) -> float:
    return size * PT * 1.25


def _split_long_word(word: str, font: str, size: float, max_width: float) -> List[str]:
    if text_width(word, font, size) <= max_width:
        return [word]
    pieces: List[str] = []
    current = ""
    for char in word:
        if current and text_width(current + char, font, size) > max_width:
            pieces.append(current)
            current = char
        else:
            current += char
    if current:
        pieces.append(current)
    return pieces


def wrap_text(text: str, font: str, size: float, max_width: float) -> List[str]:
    """Greedy word wrap measured with the real font metrics.

    Explicit newlines are kept; words wider than ``max_width`` are broken.
    """
    lines: List[str] = []
    for paragraph in str(text).splitlines() or [""]:
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        current = ""
        for word in words:
            for piece in _split_long_word(word, font, size, max_width):
                candidate = f"{current} {piece}" if current else piece
                if current and text_width(candidate, font, size) > max_width:
                    lines.append(current)
                    current = piece
                else:
                    current = candidate
        lines.append(current)
    return lines


def _safe_filename(name: str) -> str:
    return re.sub(r'[\\/*?:"<>|]', "", name or "").strip()


def document_filename(invoice: InvoiceDraft) -> str:
    return f"{_safe_filename(invoice.invoice_number) or 'draft'}.pdf"


class _Canvas:
    """Per-render page list and cursor."""

    def __init__(self, margin: float) -> None:
        self.margin = margin
        self.pages: List[Page] = [Page(number=1)]
        self.y = margin

    @property
    def bottom(self) -> float:
        return PAGE_HEIGHT - self.margin

    def draw(self, op: DrawOp) -> None:
        self.pages[-1].ops.append(op)

    def fits(self, height: float) -> bool:
        return self.y + height <= self.bottom

    def new_page(self) -> None:
        self.pages.append(Page(number=len(self.pages) + 1))
        self.y = self.margin

    def ensure_space(self, height: float) -> bool:
        """Start a new page unless ``height`` fits; True if a page was added."""
        if self.fits(height) or self.y <= self.margin:
            return False
        self.new_page()
        return True


class DocumentRenderer:
    def __init__(
        self,
        loader: ImageSource | None = None,
        *,
        currency_symbol: str = "Rs.",
        margin: float = DEFAULT_MARGIN,
    ) -> None:
        self._loader = loader
        self._currency = currency_symbol
        self._margin = margin

    @property
    def content_width(self) -> float:
        return PAGE_WIDTH - 2 * self._margin

    @property
    def right_edge(self) -> float:
        return PAGE_WIDTH - self._margin

    def money(self, value) -> str:
        return f"{self._currency} {format_amount(value)}"

    async def render(self, invoice: InvoiceDraft) -> Document:
        canvas = _Canvas(self._margin)
        await self._header(canvas, invoice)
        self._parties(canvas, invoice)
        self._items(canvas, invoice)
        self._totals(canvas, invoice)
        await self._payment(canvas, invoice)
        self._notes(canvas, invoice)

        title = "ESTIMATE" if invoice.is_estimate else "INVOICE"
        logger.debug(
            "Rendered %s %s on %d page(s)", title.lower(), invoice.invoice_number, len(canvas.pages)
        )
        return Document(
            title=f"{title.title()} {invoice.invoice_number}".strip(),
            filename=document_filename(invoice),
            pages=canvas.pages,
        )

    async def _load_image(self, reference: str, what: str) -> Optional[bytes]:
        if not reference or self._loader is None:
            return None
        try:
            data = await self._loader.load(reference)
        except AssetLoadError as exc:
            logger.warning("Skipping %s: %s", what, exc)
            return None
        try:
            ImageReader(io.BytesIO(data)).getSize()
        except Exception as exc:  # decoder errors vary by image format
            logger.warning("Skipping %s, image could not be decoded: %s", what, exc)
            return None
        return data

    async def _header(self, canvas: _Canvas, invoice: InvoiceDraft) -> None:
        margin = self._margin
        logo = await self._load_image(invoice.company_logo, "company logo")
        if logo is not None:
            canvas.draw(ImageOp(margin, canvas.y, LOGO_WIDTH, LOGO_HEIGHT, logo, name="logo"))
            canvas.y += LOGO_HEIGHT + LOGO_GAP

        top = canvas.y
        title = "ESTIMATE" if invoice.is_estimate else "INVOICE"
        canvas.draw(TextOp(self.right_edge, top + 10, title, FONT_BOLD, 26, ACCENT, "right"))

        left_y = top + 8
        name = invoice.company_name.strip() or "Your Company"
        for line in wrap_text(name, FONT_BOLD, 20, self.content_width * 0.55):
            canvas.draw(TextOp(margin, left_y, line, FONT_BOLD, 20))
            left_y += line_height(20)
        for line in (invoice.company_email, invoice.company_website):
            if line.strip():
                canvas.draw(TextOp(margin, left_y, line.strip(), FONT, 10, MUTED))
                left_y += line_height(10)

        label = "Estimate" if invoice.is_estimate else "Invoice"
        placeholder = "EST-001" if invoice.is_estimate else "INV-001"
        meta = [
            f"{label} #: {invoice.invoice_number.strip() or placeholder}",
            f"Date: {invoice.issue_date.strip() or date.today().isoformat()}",
        ]
        if invoice.due_date.strip():
            meta.append(f"Due: {invoice.due_date.strip()}")
        right_y = top + 18
        for line in meta:
            canvas.draw(TextOp(self.right_edge, right_y, line, FONT, 10, BLACK, "right"))
            right_y += 6

        canvas.y = max(left_y, right_y) + 10

    def _party_column(self, canvas: _Canvas, x: float, width: float, heading: str,
                      name: str, lines: Sequence[str], address: str) -> float:
        y = canvas.y
        canvas.draw(TextOp(x, y, heading, FONT_BOLD, 12))
        y += 7
        for line in wrap_text(name, FONT_BOLD, 11, width):
            canvas.draw(TextOp(x, y, line, FONT_BOLD, 11))
            y += line_height(11)
        if address.strip():
            for line in wrap_text(address.strip(), FONT, 10, width):
                canvas.draw(TextOp(x, y, line, FONT, 10))
                y += line_height(10)
        for line in lines:
            if line.strip():
                for wrapped in wrap_text(line.strip(), FONT, 10, width):
                    canvas.draw(TextOp(x, y, wrapped, FONT, 10))
                    y += line_height(10)
        return y

    def _parties(self, canvas: _Canvas, invoice: InvoiceDraft) -> None:
        half = self.content_width / 2
        width = half - 5
        from_y = self._party_column(
            canvas,
            self._margin,
            width,
            "From:",
            invoice.company_name.strip() or "Your Company",
            (invoice.company_phone, invoice.company_email, invoice.company_website),
            invoice.company_address,
        )
        to_y = self._party_column(
            canvas,
            self._margin + half,
            width,
            "Bill To:",
            invoice.client_name.strip() or "Client Name",
            (invoice.client_email,),
            invoice.client_address,
        )
        canvas.y = max(from_y, to_y) + 10

    def _columns(self) -> Tuple[List[float], List[float]]:
        widths = [self.content_width * share for share in COLUMN_SHARES]
        xs = [self._margin, self._margin + widths[0], self._margin + widths[0] + widths[1]]
        return xs, widths

    def _table_header(self, canvas: _Canvas) -> None:
        xs, widths = self._columns()
        y = canvas.y
        canvas.draw(RectOp(self._margin, y, self.content_width, TABLE_HEADER_HEIGHT,
                           fill=HEADER_FILL, stroke=HEADER_BORDER, line_width=0.5))
        baseline = y + 7
        canvas.draw(TextOp(xs[0] + CELL_PADDING, baseline, "Description", FONT_BOLD, 11))
        canvas.draw(TextOp(xs[1] + widths[1] / 2, baseline, "Qty", FONT_BOLD, 11, BLACK, "center"))
        canvas.draw(TextOp(xs[2] + widths[2] - CELL_PADDING, baseline, "Amount", FONT_BOLD, 11, BLACK, "right"))
        canvas.y += TABLE_HEADER_HEIGHT

    def row_layout(self, title: str, description: str) -> Tuple[List[str], List[str], float]:
        """Wrapped title/description lines and the row height they need."""
        _, widths = self._columns()
        text_width_mm = widths[0] - 2 * CELL_PADDING
        title_lines = wrap_text(title, FONT_BOLD, 11, text_width_mm) if title.strip() else [""]
        desc_lines = wrap_text(description.strip(), FONT, 9, text_width_mm) if description.strip() else []
        height = ROW_PADDING_TOP + len(title_lines) * line_height(11)
        if desc_lines:
            height += 1 + len(desc_lines) * line_height(9)
        height += ROW_PADDING_BOTTOM
        return title_lines, desc_lines, max(ROW_MIN_HEIGHT, height)

    def _items(self, canvas: _Canvas, invoice: InvoiceDraft) -> None:
        xs, widths = self._columns()
        canvas.ensure_space(TABLE_HEADER_HEIGHT + ROW_MIN_HEIGHT)
        self._table_header(canvas)

        if not invoice.items:
            y = canvas.y
            canvas.draw(RectOp(self._margin, y, self.content_width, ROW_MIN_HEIGHT,
                               stroke=ROW_BORDER, line_width=0.3))
            canvas.draw(TextOp(xs[0] + CELL_PADDING, y + 7.5, NO_ITEMS_TEXT, FONT_ITALIC, 10, PLACEHOLDER))
            canvas.y += ROW_MIN_HEIGHT

        for index, item in enumerate(invoice.items):
            title_lines, desc_lines, height = self.row_layout(item.title, item.description)
            if canvas.ensure_space(height):
                self._table_header(canvas)
            y = canvas.y
            if index % 2 == 1:
                canvas.draw(RectOp(self._margin, y, self.content_width, height, fill=ROW_SHADE))
            canvas.draw(RectOp(self._margin, y, self.content_width, height,
                               stroke=ROW_BORDER, line_width=0.3))

            first_baseline = y + ROW_PADDING_TOP + line_height(11) * 0.8
            text_y = first_baseline
            for line in title_lines:
                canvas.draw(TextOp(xs[0] + CELL_PADDING, text_y, line, FONT_BOLD, 11))
                text_y += line_height(11)
            if desc_lines:
                text_y += 1 - line_height(11) + line_height(9)
                for line in desc_lines:
                    canvas.draw(TextOp(xs[0] + CELL_PADDING, text_y, line, FONT, 9, DESCRIPTION))
                    text_y += line_height(9)

            canvas.draw(TextOp(xs[1] + widths[1] / 2, first_baseline, str(item.quantity),
                               FONT, 11, BLACK, "center"))
            canvas.draw(TextOp(xs[2] + widths[2] - CELL_PADDING, first_baseline,
                               self.money(line_total(item)), FONT, 11, BLACK, "right"))
            canvas.y += height

        canvas.draw(LineOp(self._margin, canvas.y, self.right_edge, canvas.y, 0.5, HEADER_BORDER))
        canvas.y += 10

    def _totals(self, canvas: _Canvas, invoice: InvoiceDraft) -> None:
        rows: List[Tuple[str, str]] = [("Subtotal:", self.money(invoice.subtotal))]
        tax_rate = to_decimal(invoice.tax_rate)
        if tax_rate > ZERO:
            rows.append((f"Tax ({format_rate(tax_rate)}%):", self.money(invoice.tax_amount)))
        discount = to_decimal(invoice.discount_amount)
        if discount > ZERO:
            rows.append(("Discount:", f"-{self.money(discount)}"))

        canvas.ensure_space(len(rows) * TOTALS_LINE + 14)
        x = self.right_edge - TOTALS_WIDTH
        for label, value in rows:
            canvas.draw(TextOp(x, canvas.y, label, FONT, 11))
            canvas.draw(TextOp(self.right_edge, canvas.y, value, FONT, 11, BLACK, "right"))
            canvas.y += TOTALS_LINE

        canvas.y -= 2
        canvas.draw(LineOp(x, canvas.y, self.right_edge, canvas.y, 0.8, ACCENT))
        canvas.y += 7
        canvas.draw(TextOp(x, canvas.y, "Total:", FONT_BOLD, 14, ACCENT))
        canvas.draw(TextOp(self.right_edge, canvas.y, self.money(invoice.total), FONT_BOLD, 14, ACCENT, "right"))
        canvas.y += 14

    async def _payment(self, canvas: _Canvas, invoice: InvoiceDraft) -> None:
        if invoice.is_estimate:
            return
        if not any(value.strip() for value in (invoice.bank_account, invoice.ifsc_code, invoice.upi_id)):
            return

        fields = (
            ("Bank Name", invoice.bank_name),
            ("Account Holder", invoice.bank_account_holder),
            ("Bank Account", invoice.bank_account),
            ("IFSC Code", invoice.ifsc_code),
            ("UPI ID", invoice.upi_id),
            ("Payment Terms", invoice.payment_terms),
        )
        lines = [f"{label}: {value.strip()}" for label, value in fields if value.strip()]
        qr = await self._load_image(invoice.payment_qr_code, "payment QR code")

        text_height = 8 + len(lines) * line_height(10)
        block_height = max(text_height, QR_SIZE + 2 if qr is not None else 0)
        canvas.ensure_space(block_height)

        top = canvas.y
        canvas.draw(TextOp(self._margin, top, "Payment Information:", FONT_BOLD, 12))
        y = top + 8
        for line in lines:
            canvas.draw(TextOp(self._margin, y, line, FONT, 10))
            y += line_height(10)
        if qr is not None:
            canvas.draw(ImageOp(self.right_edge - QR_SIZE, top, QR_SIZE, QR_SIZE, qr, name="payment_qr"))
        canvas.y = top + block_height + 8

    def _notes(self, canvas: _Canvas, invoice: InvoiceDraft) -> None:
        if not invoice.notes.strip():
            return
        lines = wrap_text(invoice.notes.strip(), FONT, 10, self.content_width)
        canvas.ensure_space(8 + line_height(10))
        canvas.draw(TextOp(self._margin, canvas.y, "Notes:", FONT_BOLD, 12))
        canvas.y += 8
        for line in lines:
            canvas.ensure_space(line_height(10))
            canvas.draw(TextOp(self._margin, canvas.y, line, FONT, 10))
            canvas.y += line_height(10)


async def render(
    invoice: InvoiceDraft,
    loader: ImageSource | None = None,
    *,
    currency_symbol: str = "Rs.",
    margin: float = DEFAULT_MARGIN,
) -> Document:
    renderer = DocumentRenderer(loader, currency_symbol=currency_symbol, margin=margin)
    return await renderer.render(invoice)
