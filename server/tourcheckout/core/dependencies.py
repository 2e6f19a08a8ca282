"""FastAPI dependencies wiring the confirmation workflow to its collaborators."""

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..services.confirmation_service import CheckoutPolicy, ConfirmationDependencies, ConfirmationService
from ..services.notification_service import NotificationService, SendGridNotifier
from ..services.order_repository import OrderRepository
from ..services.payment_gateway import PaymentGateway, StripeGateway
from ..services.rendering import TemplateRenderer
from ..services.tour_catalog import TourCatalog
from .config import settings
from .database import get_db


def create_http_client() -> httpx.AsyncClient:
    """Shared client for outbound calls to the mailer."""
    return httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout_seconds))


def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Return the application's shared HTTP client.

    Raises:
        RuntimeError: If the app was started without its lifespan
    """
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        raise RuntimeError("HTTP client not initialised; is the application lifespan running?")
    return client


def get_payment_gateway() -> PaymentGateway:
    return StripeGateway(settings.stripe_secret_key)


def get_notifier(client: httpx.AsyncClient = Depends(get_http_client)) -> NotificationService:
    return SendGridNotifier(client, settings.sendgrid_api_key, settings.sendgrid_api_base)


def get_renderer() -> TemplateRenderer:
    return TemplateRenderer(settings.templates_dir)


def get_checkout_policy() -> CheckoutPolicy:
    return CheckoutPolicy.from_settings(settings)


async def get_confirmation_service(
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    notifier: NotificationService = Depends(get_notifier),
    renderer: TemplateRenderer = Depends(get_renderer),
    policy: CheckoutPolicy = Depends(get_checkout_policy),
) -> ConfirmationService:
    """
    Build the confirmation service for one request.

    Every collaborator comes from its own dependency so tests can
    override them individually.
    """
    return ConfirmationService(ConfirmationDependencies(
        catalog=TourCatalog(db),
        orders=OrderRepository(db),
        gateway=gateway,
        notifier=notifier,
        renderer=renderer,
        policy=policy,
    ))


ConfirmationServiceDependency = Depends(get_confirmation_service)
RendererDependency = Depends(get_renderer)
