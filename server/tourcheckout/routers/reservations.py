"""Reservations router: checkout preview and confirmation."""

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError as PydanticValidationError

from ..core.dependencies import ConfirmationServiceDependency, RendererDependency
from ..core.exceptions import ValidationError
from ..core.middleware import WARNINGS_HEADER
from ..core.observability import metrics_collector
from ..schemas.checkout import CheckoutForm, CheckoutPreview
from ..schemas.common import PROBLEM_RESPONSES
from ..services.confirmation_service import ConfirmationService
from ..services.rendering import TemplateRenderError, TemplateRenderer
from ..services.warning_set import WarningKind

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["reservations"])

FALLBACK_ACKNOWLEDGEMENT = "Reservation accepted"


async def _decode_checkout_form(request: Request) -> CheckoutForm:
    """
    Decode the form-encoded confirmation body.

    Raises:
        ValidationError: If the body is not a valid checkout form
    """
    try:
        form = await request.form()
    except Exception as e:
        raise ValidationError(detail="Error parsing form", internal_detail=str(e)) from e

    try:
        return CheckoutForm.from_form(form)
    except (PydanticValidationError, ValueError) as e:
        errors = None
        if isinstance(e, PydanticValidationError):
            errors = {
                ".".join(str(part) for part in err["loc"]): err["msg"]
                for err in e.errors()
            }
        raise ValidationError(
            detail="Error decoding form values",
            errors=errors,
            internal_detail=str(e),
        ) from e


@router.get("/checkout", response_model=CheckoutPreview, responses=PROBLEM_RESPONSES)
async def checkout_preview(
    tour_id: int = Query(..., alias="TourId"),
    service: ConfirmationService = ConfirmationServiceDependency,
) -> JSONResponse:
    """
    Describe a tour for the checkout page.

    Returns 404 when the tour is unknown or has no spots left.
    """
    preview = await service.preview(tour_id)

    logger.info(
        "Checkout preview served",
        extra={
            "tour_id": tour_id,
            "spots_remaining": preview.tour.spots_remaining,
            "warnings": preview.warnings,
        }
    )

    return JSONResponse(status_code=200, content=preview.model_dump(mode="json"))


@router.post(
    "/confirmation",
    response_class=HTMLResponse,
    responses=PROBLEM_RESPONSES,
)
async def confirm_checkout(
    request: Request,
    service: ConfirmationService = ConfirmationServiceDependency,
    renderer: TemplateRenderer = RendererDependency,
) -> Response:
    """
    Confirm a checkout: validate, persist, charge and notify.

    Once the charge succeeds the response is always 200; any later
    problem is reported in the warnings header instead.
    """
    form = await _decode_checkout_form(request)
    result = await service.confirm(form)

    try:
        response: Response = HTMLResponse(renderer.render_page(result))
    except TemplateRenderError as e:
        result.warnings.add(WarningKind.PAGE_TEMPLATE_FAILED)
        metrics_collector.record_warnings([WarningKind.PAGE_TEMPLATE_FAILED.value])
        logger.error(
            "Confirmation page not rendered; sending plain acknowledgement",
            extra={"order_id": result.order_id, "error": str(e)}
        )
        response = PlainTextResponse(FALLBACK_ACKNOWLEDGEMENT)

    kinds = sorted(kind.value for kind in result.warnings.kinds())
    if kinds:
        response.headers[WARNINGS_HEADER] = ",".join(kinds)

    logger.info(
        "Confirmation response sent",
        extra={
            "summary": result.summary,
            "warnings": result.warnings.codes(),
            "email_skipped": result.email_skipped,
        }
    )
    return response
