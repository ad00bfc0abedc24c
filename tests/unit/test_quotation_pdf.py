"""
Quotation document tests.

Printed values are checked on the layout model; the drawn PDF is checked
for structure and a few literal strings (page compression is disabled in
the renderer fixture so text operators stay readable).
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from quoting.errors import FailureKind, RenderingFailed
from quoting.models import QuotationDocumentContext
from quoting.rendering.quotation_pdf import (
    QuotationPDFRenderer,
    build_layout,
    fit_text,
    format_currency,
    format_date,
    safe_text,
)
from tests.conftest import CUSTOMER_EMAIL, QUOTATION_ID


def make_context(**overrides) -> QuotationDocumentContext:
    data = dict(
        quotation_id=QUOTATION_ID,
        created_at=datetime(2025, 3, 7, 10, 30, tzinfo=timezone.utc),
        customer_email=CUSTOMER_EMAIL,
        article_number="ZA-114523",
        model="FN063-SDQ.4I.V7P1",
        quantity=3,
        price=Decimal("100.00"),
        lead_time="6-8 semanas",
        customer_company_name="Acme Industrial",
        customer_full_name="Ana López",
    )
    data.update(overrides)
    return QuotationDocumentContext(**data)


# ── layout values ─────────────────────────────────────────────────────────────

def test_totals_for_single_line_item():
    layout = build_layout(make_context())

    assert layout.extension == Decimal("300.00")
    assert layout.subtotal == Decimal("300.00")
    assert layout.tax == Decimal("48.00")
    assert layout.total == Decimal("348.00")
    assert layout.totals == [
        ("SubTotal", "$300.00"),
        ("IVA", "$48.00"),
        ("TOTAL USD", "$348.00"),
    ]


def test_item_row_uses_thousands_separators():
    layout = build_layout(make_context(price=Decimal("1234.5"), quantity=2))

    assert layout.item_row == ["ZA-114523", "FN063-SDQ.4I.V7P1", "2", "$1,234.50", "$2,469.00"]
    assert layout.totals[-1] == ("TOTAL USD", "$2,864.04")


def test_sub_cent_unit_price_times_large_quantity():
    layout = build_layout(make_context(price=Decimal("0.004"), quantity=1000))

    assert layout.extension == Decimal("4")
    assert layout.item_row[3:] == ["$0.00", "$4.00"]
    assert layout.totals == [
        ("SubTotal", "$4.00"),
        ("IVA", "$0.64"),
        ("TOTAL USD", "$4.64"),
    ]


def test_extension_rounds_only_for_display():
    layout = build_layout(make_context(price=Decimal("0.125"), quantity=3))

    assert layout.extension == Decimal("0.375")
    assert layout.item_row[3:] == ["$0.13", "$0.38"]


def test_metadata_dates_and_reference():
    layout = build_layout(make_context())

    assert layout.metadata_value("Fecha:") == "3/7/2025"
    assert layout.metadata_value("Expiración:") == "3/8/2025"
    assert layout.metadata_value("Cotización:") == "123e4567"
    assert layout.reference == "123e4567"


def test_expiration_rolls_over_month_end():
    layout = build_layout(make_context(created_at=datetime(2025, 1, 31, 23, 0, tzinfo=timezone.utc)))

    assert layout.metadata_value("Expiración:") == "2/1/2025"


def test_missing_customer_names_print_placeholder():
    layout = build_layout(make_context(customer_company_name=None, customer_full_name=None))

    assert layout.metadata_value("Cliente:") == "N/A"
    assert layout.metadata_value("Atención:") == "N/A"


def test_lead_time_appears_in_notes():
    layout = build_layout(make_context(lead_time="3 days"))

    assert "* Tiempo de entrega: 3 days" in layout.notes


# ── formatting helpers ────────────────────────────────────────────────────────

def test_format_helpers():
    assert format_currency(Decimal("0")) == "$0.00"
    assert format_currency(Decimal("1234567.891")) == "$1,234,567.89"
    assert format_date(datetime(2025, 12, 1)) == "12/1/2025"


def test_safe_text_maps_unsupported_characters():
    assert safe_text(None) == ""
    assert safe_text("6–8 “semanas”") == '6-8 "semanas"'
    assert safe_text("Móvil") == "Móvil"
    assert safe_text("数") == "?"


def test_fit_text_truncates_long_values():
    long_model = "X" * 200

    fitted = fit_text(long_model, 100)

    assert fitted.endswith("...")
    assert len(fitted) < len(long_model)
    assert fit_text("short", 100) == "short"


# ── drawn document ────────────────────────────────────────────────────────────

def test_render_produces_pdf(renderer):
    pdf = renderer.render(make_context())

    assert pdf.startswith(b"%PDF")
    assert b"ZA-114523" in pdf
    assert b"$348.00" in pdf


def test_render_prints_placeholder_for_missing_names(renderer):
    pdf = renderer.render(make_context(customer_company_name=None, customer_full_name=None))

    assert b"N/A" in pdf


def test_render_without_logo_file(tmp_path):
    renderer = QuotationPDFRenderer(logo_path=str(tmp_path / "missing.jpg"))

    assert renderer.render(make_context()).startswith(b"%PDF")


def test_render_with_unreadable_logo(tmp_path):
    logo = tmp_path / "logo.jpg"
    logo.write_bytes(b"not an image")
    renderer = QuotationPDFRenderer(logo_path=str(logo))

    assert renderer.render(make_context()).startswith(b"%PDF")


def test_render_with_logo(tmp_path):
    Image = pytest.importorskip("PIL.Image")
    logo = tmp_path / "logo.png"
    Image.new("RGB", (300, 110), (0, 40, 100)).save(logo)
    renderer = QuotationPDFRenderer(logo_path=str(logo))

    assert renderer.render(make_context()).startswith(b"%PDF")


def test_render_failure_raises_rendering_failed(renderer):
    with pytest.raises(RenderingFailed) as exc:
        renderer.render(make_context(price=None))

    assert exc.value.kind == FailureKind.RENDERING_FAILED
    assert exc.value.quotation_id == QUOTATION_ID
