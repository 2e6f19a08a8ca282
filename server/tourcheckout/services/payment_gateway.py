"""Payment gateway port and the Stripe charges adapter."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import stripe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChargeReceipt:
    """Result of a successful charge."""

    charge_id: str
    amount_minor_units: int
    currency: str
    status: str = "succeeded"


class PaymentError(Exception):
    """Base class for charge failures."""


class PaymentDeclinedError(PaymentError):
    """The gateway declined the instrument; ``message`` is safe to show the customer."""

    def __init__(self, message: str, decline_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.decline_code = decline_code


class PaymentGatewayError(PaymentError):
    """The gateway could not be reached or failed to process the charge."""


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def charge(
        self,
        amount_minor_units: int,
        currency: str,
        token: str,
        idempotency_key: Optional[str] = None,
    ) -> ChargeReceipt:
        """
        Charge a tokenized instrument exactly once.

        Raises:
            PaymentDeclinedError: If the instrument was declined
            PaymentGatewayError: On any other failure
        """
        ...


class StripeGateway(PaymentGateway):
    """Charges through the Stripe SDK's charges resource."""

    def __init__(self, secret_key: str):
        self.secret_key = secret_key

    async def charge(
        self,
        amount_minor_units: int,
        currency: str,
        token: str,
        idempotency_key: Optional[str] = None,
    ) -> ChargeReceipt:
        options = {"api_key": self.secret_key}
        if idempotency_key:
            # Guards against duplicate charges from transport-level resends
            options["idempotency_key"] = idempotency_key

        try:
            # The SDK call blocks, so it runs off the event loop
            charge = await asyncio.to_thread(
                stripe.Charge.create,
                amount=amount_minor_units,
                currency=currency.lower(),
                source=token,
                **options,
            )
        except stripe.CardError as e:
            decline_code = getattr(e.error, "decline_code", None) or e.code
            logger.info(
                "Stripe declined charge",
                extra={
                    "decline_code": decline_code,
                    "amount_minor_units": amount_minor_units,
                }
            )
            raise PaymentDeclinedError(e.user_message or "Your card was declined.", decline_code=decline_code) from e
        except stripe.StripeError as e:
            raise PaymentGatewayError(f"Stripe charge failed: {type(e).__name__}: {e}") from e

        if not charge.id:
            raise PaymentGatewayError("Stripe response is missing the charge id")
        return ChargeReceipt(
            charge_id=charge.id,
            amount_minor_units=int(charge.amount),
            currency=str(charge.currency).upper(),
            status=charge.status,
        )
