"""Unit tests for confirmation page and email rendering."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tourcheckout.schemas.confirmation import ConfirmationResult, ContactDetails
from tourcheckout.schemas.tour import TourDetail
from tourcheckout.services.rendering import TemplateRenderError, TemplateRenderer, confirmation_context
from tourcheckout.services.warning_set import WarningKind, WarningSet


@pytest.fixture
def result():
    tour = TourDetail(
        id=4,
        code="GG",
        starts_at=datetime(2024, 7, 1, 9, 30, tzinfo=timezone.utc),
        price=Decimal("13.57"),
        conf_code="PIER39",
        auto_confirm=True,
        spots_remaining=8,
    )
    return ConfirmationResult(
        tour=tour,
        order_id=42,
        num_riders=2,
        total_minor_units=2714,
        currency="USD",
        display_total="$27.14",
        contact=ContactDetails(name="Ada <Lovelace>", email="ada@example.com", hotel="Union"),
    )


def test_confirmation_context(result):
    context = confirmation_context(result)

    assert context["order_id"] == 42
    assert context["tour_date"] == "July 1"
    assert context["tour_time"] == "9:30 AM"
    assert context["display_total"] == "$27.14"
    assert context["conf_code"] == "PIER39"
    assert context["warn"] == "no"


def test_context_flags_warnings(result):
    result.warnings.add(WarningKind.UNKNOWN_HEIGHTS)

    assert confirmation_context(result)["warn"] == "yes"


def test_render_page_escapes_customer_input(renderer, result):
    page = renderer.render_page(result)

    assert "Reservation accepted" in page
    assert "Ada &lt;Lovelace&gt;" in page
    assert "<strong>42</strong>" in page


def test_render_email_is_plain_text(renderer, result):
    body = renderer.render_email(result)

    assert body.startswith("Dear Ada <Lovelace>,")
    assert "Total charged: $27.14" in body
    assert "Meeting point: PIER39" in body


def test_missing_template_raises(tmp_path, result):
    with pytest.raises(TemplateRenderError):
        TemplateRenderer(tmp_path).render_page(result)


def test_unknown_field_raises(tmp_path, result):
    (tmp_path / "confirmation.txt").write_text("Hello {nickname}", encoding="utf-8")

    with pytest.raises(TemplateRenderError):
        TemplateRenderer(tmp_path).render_email(result)


def test_summary(result):
    result.warnings = WarningSet()

    assert result.summary == "tour:4 riders:2 $27.14 'Ada <Lovelace>' <ada@example.com>"
