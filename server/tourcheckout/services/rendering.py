"""Confirmation page and email rendering from format-string templates."""

import html
import logging
from pathlib import Path
from typing import Any

from ..schemas.confirmation import ConfirmationResult

logger = logging.getLogger(__name__)

PAGE_TEMPLATE = "confirmation.html"
EMAIL_TEMPLATE = "confirmation.txt"


class TemplateRenderError(Exception):
    """A template is missing or references an unknown field."""


def confirmation_context(result: ConfirmationResult) -> dict[str, Any]:
    """Fields available to confirmation templates."""
    starts_at = result.tour.starts_at
    return {
        "order_id": result.order_id,
        "tour_id": result.tour.id,
        "tour_code": result.tour.code,
        "conf_code": result.tour.conf_code or "",
        "tour_date": f"{starts_at:%B} {starts_at.day}",
        "tour_time": starts_at.strftime("%I:%M %p").lstrip("0"),
        "num_riders": result.num_riders,
        "display_total": result.display_total,
        "name": result.contact.name,
        "email": result.contact.email,
        "mobile": result.contact.mobile,
        "hotel": result.contact.hotel,
        "misc": result.contact.misc,
        "warn": "yes" if result.warnings else "no",
    }


class TemplateRenderer:
    """Loads templates from a directory on every call so edits apply without a restart."""

    def __init__(self, templates_dir: str | Path):
        self.templates_dir = Path(templates_dir)

    def render(self, template_name: str, context: dict[str, Any], escape_html: bool = False) -> str:
        """
        Render a template with ``str.format`` fields.

        Raises:
            TemplateRenderError: If the template cannot be read or formatted
        """
        path = self.templates_dir / template_name
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            raise TemplateRenderError(f"Cannot read template {path}: {e}") from e

        if escape_html:
            context = {key: html.escape(str(value)) for key, value in context.items()}

        try:
            return source.format_map(context)
        except (KeyError, IndexError, ValueError, AttributeError) as e:
            raise TemplateRenderError(f"Cannot format template {path}: {e!r}") from e

    def render_email(self, result: ConfirmationResult) -> str:
        return self.render(EMAIL_TEMPLATE, confirmation_context(result))

    def render_page(self, result: ConfirmationResult) -> str:
        return self.render(PAGE_TEMPLATE, confirmation_context(result), escape_html=True)
