"""Checkout confirmation: validate, persist, charge, then notify on a best-effort basis."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..core.config import Settings
from ..core.exceptions import InternalServerError, NotFoundError, PaymentRequiredError, ValidationError
from ..core.observability import metrics_collector
from ..schemas.checkout import CheckoutForm, CheckoutPreview
from ..schemas.confirmation import ConfirmationResult, ContactDetails, Rider
from ..schemas.tour import TourDetail
from .notification_service import EmailAddress, EmailMessage, NotificationService
from .order_repository import OrderRepository
from .payment_gateway import PaymentDeclinedError, PaymentGateway
from .pricing import PricingValidator, format_minor_units
from .rendering import TemplateRenderError, TemplateRenderer
from .riders import RiderValidator
from .tour_catalog import TourCatalog
from .warning_set import WarningKind, WarningSet

logger = logging.getLogger(__name__)

NO_CONF_SUBJECT_PREFIX = "NO CONF SENT | "


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CheckoutPolicy:
    """Checkout rules taken from configuration."""

    currency: str = "USD"
    default_capacity: int = 25
    height_min: int = 48
    height_max: int = 84
    require_contact_email: bool = True
    known_conf_codes: frozenset[str] = frozenset()
    operator: EmailAddress = EmailAddress("reservations@example.com", "Tour reservations")

    @classmethod
    def from_settings(cls, settings: Settings) -> "CheckoutPolicy":
        return cls(
            currency=settings.currency,
            default_capacity=settings.max_riders_per_tour,
            height_min=settings.rider_height_min,
            height_max=settings.rider_height_max,
            require_contact_email=settings.require_contact_email,
            known_conf_codes=frozenset(settings.known_conf_codes),
            operator=EmailAddress(settings.reservations_email, settings.reservations_name),
        )


@dataclass
class ConfirmationDependencies:
    """Collaborators of the confirmation workflow, built once per request."""

    catalog: TourCatalog
    orders: OrderRepository
    gateway: PaymentGateway
    notifier: NotificationService
    renderer: TemplateRenderer
    policy: CheckoutPolicy = field(default_factory=CheckoutPolicy)
    clock: Callable[[], datetime] = utcnow


@dataclass
class _PostPaymentState:
    result: ConfirmationResult
    customer_email_sent: bool = False


@dataclass(frozen=True)
class _BestEffortStep:
    name: str
    failure_kind: WarningKind
    action: Callable[[_PostPaymentState], Awaitable[None]]


class ConfirmationService:
    """
    Runs one checkout confirmation from form to notifications.

    Stages before the charge are hard stops: any failure there raises and
    nothing further happens. The charge is attempted exactly once. After a
    successful charge every remaining step is isolated, and a failure only
    adds a warning to the result.
    """

    def __init__(self, deps: ConfirmationDependencies):
        self.deps = deps
        self.policy = deps.policy
        self.pricing = PricingValidator()
        self.rider_validator = RiderValidator(deps.policy.height_min, deps.policy.height_max)
        self.post_payment_steps = [
            _BestEffortStep("record_payment", WarningKind.PAYMENT_RECORD_FAILED, self._record_payment),
            _BestEffortStep("notify_customer", WarningKind.CUSTOMER_EMAIL_FAILED, self._notify_customer),
            _BestEffortStep("record_confirmation", WarningKind.CONFIRMATION_RECORD_FAILED, self._record_confirmation),
            _BestEffortStep("notify_operator", WarningKind.OPERATOR_EMAIL_FAILED, self._notify_operator),
        ]

    async def confirm(self, form: CheckoutForm) -> ConfirmationResult:
        """
        Confirm a checkout.

        Args:
            form: Decoded checkout form

        Returns:
            The confirmation result, including any warnings

        Raises:
            NotFoundError: If the tour does not exist
            ValidationError: If the request is invalid or the price does not match
            PaymentRequiredError: If the charge was declined
            InternalServerError: If the store, catalog or gateway failed
        """
        warnings = WarningSet()

        try:
            tour = await self._lookup_tour(form.tour_id, warnings)
            total = self.pricing.validate(tour.price, form.num_riders, form.quoted_total)
            riders = self.rider_validator.validate(
                num_riders=form.num_riders,
                spots_remaining=tour.spots_remaining,
                heights_required=tour.riders_require_height,
                submitted=form.riders,
                warnings=warnings,
            )
            contact = self._validate_contact(form, warnings)
            order_id = await self._persist_order(tour, form.num_riders, riders, total, contact)
            await self._charge(order_id, total, form.stripe_token)
        except (NotFoundError, ValidationError):
            metrics_collector.record_confirmation("rejected")
            raise
        except PaymentRequiredError:
            metrics_collector.record_confirmation("declined")
            raise
        except InternalServerError:
            metrics_collector.record_confirmation("failed")
            raise

        # Payment has succeeded; nothing below may fail the checkout.
        metrics_collector.record_charge(total, self.policy.currency)

        result = ConfirmationResult(
            tour=tour,
            order_id=order_id,
            num_riders=form.num_riders,
            riders=riders,
            total_minor_units=total,
            currency=self.policy.currency,
            display_total=format_minor_units(total),
            contact=contact,
            warnings=warnings,
        )
        state = _PostPaymentState(result=result)
        for step in self.post_payment_steps:
            await self._run_best_effort(step, state)

        metrics_collector.record_confirmation("succeeded")
        metrics_collector.record_warnings(kind.value for kind in warnings.kinds())
        logger.info(
            "Checkout confirmed",
            extra={
                "summary": result.summary,
                "order_id": order_id,
                "warnings": warnings.codes(),
                "email_skipped": result.email_skipped,
            }
        )
        return result

    async def preview(self, tour_id: int) -> CheckoutPreview:
        """
        Describe a tour for the checkout page.

        Raises:
            NotFoundError: If the tour does not exist or has no spots left
            InternalServerError: If the catalog failed
        """
        warnings = WarningSet()
        tour = await self._lookup_tour(tour_id, warnings)
        if tour.spots_remaining <= 0:
            raise NotFoundError(
                resource_type="tour",
                resource_id=str(tour_id),
                detail=f"Tour {tour_id} has no availability",
            )
        return CheckoutPreview(
            tour=tour,
            num_riders_options=list(range(1, tour.spots_remaining + 1)),
            currency=self.policy.currency,
            warnings=warnings.codes(),
        )

    async def _lookup_tour(self, tour_id: int, warnings: WarningSet) -> TourDetail:
        try:
            tour = await self.deps.catalog.lookup_tour_detail(tour_id, self.policy.default_capacity)
        except Exception as e:
            logger.error(
                "Tour lookup failed",
                extra={"tour_id": tour_id, "error": str(e)},
                exc_info=True
            )
            raise InternalServerError(internal_detail=f"lookup_tour_detail: {e}") from e

        if tour is None:
            logger.warning("Checkout for unknown tour", extra={"tour_id": tour_id})
            raise NotFoundError(resource_type="tour", resource_id=str(tour_id))

        if tour.starts_before(self.deps.clock()):
            warnings.add(WarningKind.TOUR_PAST, f"{tour.starts_at:%Y/%m/%d}")
        if tour.full:
            warnings.add(WarningKind.TOUR_FULL)
        if tour.cancelled:
            warnings.add(WarningKind.TOUR_CANCELLED)
        if tour.deleted:
            warnings.add(WarningKind.TOUR_DELETED)
        if self.policy.known_conf_codes and tour.conf_code not in self.policy.known_conf_codes:
            warnings.add(WarningKind.UNKNOWN_CONF_CODE, tour.conf_code or "none")

        return tour

    def _validate_contact(self, form: CheckoutForm, warnings: WarningSet) -> ContactDetails:
        contact = ContactDetails(
            name=form.name.strip(),
            email=form.email.strip(),
            mobile=form.mobile.strip(),
            hotel=form.hotel.strip(),
            misc=form.misc.strip(),
        )
        if not contact.name:
            warnings.add(WarningKind.NO_NAME)
        if not contact.email:
            if self.policy.require_contact_email:
                raise ValidationError(detail="Email is required")
            warnings.add(WarningKind.NO_EMAIL)
        if not form.stripe_token.strip():
            raise ValidationError(detail="Missing payment token")
        return contact

    async def _persist_order(
        self,
        tour: TourDetail,
        num_riders: int,
        riders: list[Rider],
        total: int,
        contact: ContactDetails,
    ) -> int:
        try:
            return await self.deps.orders.create_order(
                tour_id=tour.id,
                num_riders=num_riders,
                riders=riders,
                total_minor_units=total,
                currency=self.policy.currency,
                contact=contact,
            )
        except Exception as e:
            logger.error(
                "Order creation failed",
                extra={"tour_id": tour.id, "num_riders": num_riders, "error": str(e)},
                exc_info=True
            )
            raise InternalServerError(internal_detail=f"create_order: {e}") from e

    async def _charge(self, order_id: int, total: int, token: str) -> None:
        # One attempt only. A retry after an ambiguous failure could bill twice.
        try:
            receipt = await self.deps.gateway.charge(
                total,
                self.policy.currency,
                token,
                idempotency_key=f"order-{order_id}",
            )
        except PaymentDeclinedError as e:
            logger.warning(
                "Charge declined; order left unpaid",
                extra={"order_id": order_id, "total_minor_units": total, "decline_code": e.decline_code}
            )
            raise PaymentRequiredError(e.message, order_id=order_id) from e
        except Exception as e:
            logger.error(
                "Charge failed; order left unpaid",
                extra={"order_id": order_id, "total_minor_units": total, "error": str(e)},
                exc_info=True
            )
            raise InternalServerError(internal_detail=f"charge order {order_id}: {e}") from e

        logger.info(
            "Charge succeeded",
            extra={"order_id": order_id, "charge_id": receipt.charge_id, "total_minor_units": total}
        )

    async def _run_best_effort(self, step: _BestEffortStep, state: _PostPaymentState) -> None:
        try:
            await step.action(state)
        except Exception as e:
            state.result.warnings.add(step.failure_kind)
            logger.warning(
                "Post-payment step failed",
                extra={
                    "step": step.name,
                    "order_id": state.result.order_id,
                    "warning": step.failure_kind.value,
                    "error": str(e),
                },
                exc_info=True
            )

    async def _record_payment(self, state: _PostPaymentState) -> None:
        await self.deps.orders.mark_payment_recorded(state.result.order_id)

    def _customer_email_skip_reason(self, result: ConfirmationResult) -> str:
        if not result.tour.auto_confirm:
            return "Tour does not auto-confirm"
        blocking = result.warnings.blocking()
        if blocking:
            return "Warnings need review: " + ", ".join(sorted(str(w) for w in blocking))
        return ""

    async def _notify_customer(self, state: _PostPaymentState) -> None:
        result = state.result
        reason = self._customer_email_skip_reason(result)
        if reason:
            result.email_skipped = reason
            logger.info("Customer email skipped", extra={"order_id": result.order_id, "reason": reason})
            return

        try:
            body = self.deps.renderer.render_email(result)
        except TemplateRenderError as e:
            result.warnings.add(WarningKind.EMAIL_TEMPLATE_FAILED)
            result.email_skipped = "Email template unavailable"
            logger.warning("Customer email not rendered", extra={"order_id": result.order_id, "error": str(e)})
            return

        # Stays set if the send raises
        result.email_skipped = "Customer email could not be sent"
        await self.deps.notifier.send(EmailMessage(
            sender=self.policy.operator,
            to=EmailAddress(result.contact.email, result.contact.name),
            bcc=self.policy.operator,
            subject=self._subject(result.tour),
            body=body,
        ))
        result.email_skipped = ""
        state.customer_email_sent = True

    async def _record_confirmation(self, state: _PostPaymentState) -> None:
        if state.customer_email_sent:
            await self.deps.orders.mark_confirmation_sent(state.result.order_id)

    async def _notify_operator(self, state: _PostPaymentState) -> None:
        result = state.result
        team_line = await self._team_line(result)

        subject = self._subject(result.tour)
        if result.email_skipped:
            subject = NO_CONF_SUBJECT_PREFIX + subject

        await self.deps.notifier.send(EmailMessage(
            sender=self.policy.operator,
            to=self.policy.operator,
            subject=subject,
            body=self._operator_summary(result, team_line),
        ))

    async def _team_line(self, result: ConfirmationResult) -> str:
        try:
            teams = await self.deps.catalog.list_teams_for_tour(result.tour.id)
        except Exception as e:
            result.warnings.add(WarningKind.TEAMS_LOOKUP_FAILED)
            logger.warning("Team lookup failed", extra={"tour_id": result.tour.id, "error": str(e)})
            return "unavailable"
        if not teams:
            return "not assigned"
        return "; ".join(f"guide {t.guide or '?'}, sweep {t.sweep or '?'}" for t in teams)

    def _subject(self, tour: TourDetail) -> str:
        return f"{tour.starts_at:%B} {tour.starts_at.day} Tour {tour.code} Confirmation"

    def _operator_summary(self, result: ConfirmationResult, team_line: str) -> str:
        tour = result.tour
        spots_after = tour.spots_remaining - result.num_riders
        riders = ", ".join(f"{r.gender}{r.height or '?'}" for r in result.riders) or "not required"
        lines = [
            f"Order {result.order_id}: {result.summary}",
            f"Tour {tour.id} {tour.code} at {tour.starts_at:%Y-%m-%d %H:%M}",
            f"Riders: {result.num_riders} booked, {tour.spots_remaining} spots before, {spots_after} after",
            f"Rider sizes: {riders}",
            f"Heights unknown: {'yes' if WarningKind.UNKNOWN_HEIGHTS in result.warnings else 'no'}",
            f"Customer email: {'skipped (' + result.email_skipped + ')' if result.email_skipped else 'sent'}",
            f"Team: {team_line}",
            f"Mobile: {result.contact.mobile}",
            f"Hotel: {result.contact.hotel}",
            f"Notes: {result.contact.misc}",
            f"Warnings: {', '.join(result.warnings.codes()) or 'none'}",
        ]
        return "\n".join(lines) + "\n"
