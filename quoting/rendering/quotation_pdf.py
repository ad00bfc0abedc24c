# --------------------------- quoting/rendering/quotation_pdf.py ----------------------------
"""
Spare-Parts Quotation · Quotation PDF Renderer

OVERVIEW:
Draws the one-page commercial quotation ("COTIZACIÓN") sent to the
customer once the operator's price and lead time have been recorded.

LAYOUT (top of page to bottom, fixed coordinates on US Letter):
1. Header: logo (optional) + title
2. Issuer block (left): company name, address, RFC
3. Metadata block (right): date, expiration, reference, customer, attention
4. Item table: one row, dark header band
5. Totals: subtotal, IVA (16%), total
6. Notes: boilerplate + lead time
7. Footer: issuer sales contact

BUSINESS LOGIC:
- Expiration is the issue date plus one calendar day
- Reference is the first 8 characters of the quotation id
- Customer company / contact fall back to "N/A" when null
- Money is Decimal, computed unrounded and shown rounded half-up
  to cents as $1,234.50

TECHNICAL ARCHITECTURE:
- build_layout() computes every printed value (pure, testable)
- QuotationPDFRenderer draws that layout with the reportlab canvas
- A missing or unreadable logo is logged and skipped
- Any other failure raises RenderingFailed; no partial bytes escape

DEPENDENCIES:
- reportlab
"""

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import List, Optional, Tuple

from reportlab.lib.colors import Color
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from quoting.errors import RenderingFailed
from quoting.models import QuotationDocumentContext

logger = logging.getLogger(__name__)

# ╔══════════ 1. Constants ═══════════════════════════════════════

TAX_RATE = Decimal("0.16")
CENTS = Decimal("0.01")
PLACEHOLDER = "N/A"

TITLE = "COTIZACIÓN"

ISSUER_LINES = [
    "Grupo NSR HVAC y Control S.A. de C.V.",
    "Aljibe 6910",
    "Riveras de la Silla",
    "Guadalupe, NL",
    "Mexico, CP 671167",
    "RFC: GNH190304P84",
]

TABLE_HEADERS = ["Art Num", "Modelo", "Cantidad", "Unit Price", "Extension"]

NOTES_TITLE = "Notas o Instrucciones"
NOTES_BEFORE_LEAD_TIME = ["* Precios en Dólares Americanos"]
NOTES_AFTER_LEAD_TIME = [
    "* Entrega en sus instalaciones",
    "* Incluye:",
    "  - Flete a Mexico.",
    "  - Impuestos e importación.",
    "  - Flete local con entrega en sus instalaciones.",
]
NOTES_WARNING = "NOTA: Antes de hacer efectiva una compra, favor de confirmar tiempo de entrega."

FOOTER_LINES = [
    "ZIEHL-ABEGG, INC.",
    "Alan Cruz",
    "Project Engineer",
    "Móvil +52 81 2036 4745",
    "alan.cruz@ziehl-abegg.us",
    "https://www.ziehl-abegg.com/en-us/",
]
FOOTER_LINK_LINES = 2  # last two footer lines are drawn as links

BLACK = Color(0, 0, 0)
WHITE = Color(1, 1, 1)
HEADER_FILL = Color(0, 0.1, 0.4)
LINK_BLUE = Color(0, 0, 0.8)

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


# ╔══════════ 2. Formatting ═══════════════════════════════════════

def to_cents(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_currency(value: Decimal) -> str:
    """$1,234.50 style, two decimals, thousands separator."""
    return f"${to_cents(value):,.2f}"


def format_date(value: datetime) -> str:
    """Numeric US date, e.g. 3/7/2025."""
    return f"{value.month}/{value.day}/{value.year}"


def safe_text(value) -> str:
    """
    Standard PDF fonts only cover cp1252; typographic dashes and quotes
    are mapped to ASCII and anything else unsupported becomes '?'.
    """
    if value is None:
        return ""
    s = str(value)
    s = s.replace("–", "-").replace("—", "-")
    s = s.replace("“", '"').replace("”", '"').replace("’", "'").replace("‘", "'")
    s = s.replace("\r", " ").replace("\n", " ")
    return s.encode("cp1252", "replace").decode("cp1252")


def fit_text(value: str, max_width: float, font: str = FONT, size: float = 10) -> str:
    """Trim text with an ellipsis so it fits a fixed column width."""
    if stringWidth(value, font, size) <= max_width:
        return value
    while value and stringWidth(value + "...", font, size) > max_width:
        value = value[:-1]
    return value + "..."


# ╔══════════ 3. Layout Model ═══════════════════════════════════════

@dataclass(frozen=True)
class QuotationLayout:
    """Every value printed on the document, before any drawing happens."""
    reference: str
    metadata: List[Tuple[str, str]]
    item_row: List[str]
    unit_price: Decimal
    extension: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    totals: List[Tuple[str, str]]
    notes: List[str]

    def metadata_value(self, label: str) -> Optional[str]:
        for key, value in self.metadata:
            if key == label:
                return value
        return None


def build_layout(context: QuotationDocumentContext) -> QuotationLayout:
    """
    Compute the printed values for a quotation document.

    Exactly one line item per document: subtotal equals the extension.
    Amounts stay unrounded; cents rounding happens only in format_currency.
    """
    unit_price = Decimal(context.price)
    extension = unit_price * context.quantity
    subtotal = extension
    tax = subtotal * TAX_RATE
    total = subtotal + tax

    metadata = [
        ("Fecha:", format_date(context.created_at)),
        ("Expiración:", format_date(context.expires_at)),
        ("Cotización:", context.short_id),
        ("Cliente:", context.customer_company_name or PLACEHOLDER),
        ("Atención:", context.customer_full_name or PLACEHOLDER),
    ]

    item_row = [
        context.article_number or "",
        context.model or "",
        str(context.quantity),
        format_currency(unit_price),
        format_currency(extension),
    ]

    totals = [
        ("SubTotal", format_currency(subtotal)),
        ("IVA", format_currency(tax)),
        ("TOTAL USD", format_currency(total)),
    ]

    notes = (
        NOTES_BEFORE_LEAD_TIME
        + [f"* Tiempo de entrega: {context.lead_time}"]
        + NOTES_AFTER_LEAD_TIME
    )

    return QuotationLayout(
        reference=context.short_id,
        metadata=metadata,
        item_row=item_row,
        unit_price=unit_price,
        extension=extension,
        subtotal=subtotal,
        tax=tax,
        total=total,
        totals=totals,
        notes=notes,
    )


# ╔══════════ 4. Renderer ═══════════════════════════════════════

class QuotationPDFRenderer:
    """
    Draws QuotationLayout values at fixed positions on a single page.

    ARGS:
        logo_path: JPEG/PNG for the header, optional
        compress: deflate page streams (disable to inspect output in tests)
    """

    # Page geometry, top-origin y values
    W, H = letter
    MARGIN_X = 50
    TABLE_X = 40
    TABLE_TOP = 250
    TABLE_BOTTOM = 450
    HEADER_BAND = 25
    COLUMN_OFFSETS = [5, 120, 300, 370, 460]

    def __init__(self, logo_path: Optional[str] = None, compress: bool = True):
        self.logo_path = logo_path
        self.compress = compress

    def render(self, context: QuotationDocumentContext) -> bytes:
        """
        Render the quotation PDF.

        RAISES:
            RenderingFailed: layout computation, drawing or serialization failed
        """
        logger.info(f"Generating quotation PDF for {context.quotation_id}")
        try:
            layout = build_layout(context)
            buffer = io.BytesIO()
            c = canvas.Canvas(buffer, pagesize=letter, pageCompression=1 if self.compress else 0)
            c.setTitle(f"Cotización {layout.reference}")
            c.setAuthor(ISSUER_LINES[0])

            self._draw_header(c)
            self._draw_issuer(c)
            self._draw_metadata(c, layout)
            self._draw_table(c, layout)
            notes_top = self._draw_totals(c, layout)
            footer_top = self._draw_notes(c, layout, notes_top)
            self._draw_footer(c, footer_top)

            c.showPage()
            c.save()
            pdf_bytes = buffer.getvalue()
        except RenderingFailed:
            raise
        except Exception as e:
            logger.exception(f"PDF generation failed for {context.quotation_id}")
            raise RenderingFailed(f"Failed to generate PDF: {e}", context.quotation_id) from e

        logger.info(f"Generated PDF ({len(pdf_bytes)} bytes) for {context.quotation_id}")
        return pdf_bytes

    # ── drawing helpers ───────────────────────────────────────────────────────

    def _y(self, top_y: float) -> float:
        return self.H - top_y

    def _text(self, c, x, top_y, value, font=FONT, size=10, color=BLACK):
        c.setFont(font, size)
        c.setFillColor(color)
        c.drawString(x, self._y(top_y), safe_text(value))

    def _band(self, c, top_y, title=None):
        width = self.W - self.TABLE_X * 2
        c.setFillColor(HEADER_FILL)
        c.rect(self.TABLE_X, self._y(top_y + self.HEADER_BAND), width, self.HEADER_BAND, fill=1, stroke=0)
        if title:
            self._text(c, self.TABLE_X + 5, top_y + 15, title, FONT_BOLD, 10, WHITE)

    # ── sections ──────────────────────────────────────────────────────────────

    def _draw_header(self, c):
        logo = self._load_logo()
        if logo is not None:
            logo, (iw, ih) = logo
            scale = min(150 / iw, 55 / ih)
            dw, dh = iw * scale, ih * scale
            c.drawImage(logo, self.MARGIN_X, self._y(25 + dh), width=dw, height=dh,
                        preserveAspectRatio=True, mask="auto")
        self._text(c, self.W - 150, 50, TITLE, FONT_BOLD, 18)

    def _load_logo(self):
        if not self.logo_path:
            return None
        try:
            if not Path(self.logo_path).is_file():
                raise FileNotFoundError(self.logo_path)
            reader = ImageReader(self.logo_path)
            return reader, reader.getSize()
        except Exception as e:
            logger.warning(f"Logo not loaded, continuing without it: {e}")
            return None

    def _draw_issuer(self, c):
        top = 130
        for i, line in enumerate(ISSUER_LINES):
            self._text(c, self.MARGIN_X, top, line, FONT_BOLD if i == 0 else FONT, 10)
            top += 14

    def _draw_metadata(self, c, layout: QuotationLayout):
        label_x = self.W - 200
        value_x = label_x + 65
        top = 70
        for label, value in layout.metadata:
            self._text(c, label_x, top, label, FONT_BOLD, 10)
            self._text(c, value_x, top, fit_text(safe_text(value), self.W - value_x - 10), FONT, 10)
            top += 14

    def _draw_table(self, c, layout: QuotationLayout):
        self._band(c, self.TABLE_TOP)
        header_top = self.TABLE_TOP + 15
        row_top = header_top + 25
        xs = [self.TABLE_X + off for off in self.COLUMN_OFFSETS]
        right = self.W - self.TABLE_X
        widths = [b - a - 5 for a, b in zip(xs, xs[1:] + [right])]

        for x, name in zip(xs, TABLE_HEADERS):
            self._text(c, x, header_top, name, FONT_BOLD, 10, WHITE)

        for i, (x, value) in enumerate(zip(xs, layout.item_row)):
            if i == 2:
                x += 20  # quantity sits under the middle of its header
            self._text(c, x, row_top, fit_text(safe_text(value), widths[i]), FONT, 10)

    def _draw_totals(self, c, layout: QuotationLayout) -> float:
        label_x = self.W - 150
        value_x = self.W - 90
        top = self.TABLE_BOTTOM + 20
        for i, (label, value) in enumerate(layout.totals):
            if i:
                top += 15
            self._text(c, label_x, top, label, FONT_BOLD, 10)
            self._text(c, value_x, top, value, FONT, 10)
        return top + 30

    def _draw_notes(self, c, layout: QuotationLayout, notes_top: float) -> float:
        self._band(c, notes_top, NOTES_TITLE)
        top = notes_top + 15 + 20
        for line in layout.notes:
            indent = 15 if line.startswith("  ") else 10
            self._text(c, self.TABLE_X + indent, top, line, FONT, 9)
            top += 12
        top += 6
        self._text(c, self.TABLE_X + 10, top, NOTES_WARNING, FONT_BOLD, 9)
        return top + 40

    def _draw_footer(self, c, footer_top: float):
        top = footer_top
        link_start = len(FOOTER_LINES) - FOOTER_LINK_LINES
        for i, line in enumerate(FOOTER_LINES):
            font = FONT_BOLD if i == 0 else FONT
            color = LINK_BLUE if i >= link_start else BLACK
            self._text(c, self.TABLE_X, top, line, font, 9, color)
            top += 12
