"""Unit tests for the Stripe and SendGrid adapters with their transports replaced."""

import json
from types import SimpleNamespace

import httpx
import pytest
import stripe

from tourcheckout.services.notification_service import (
    EmailAddress,
    EmailMessage,
    NotificationError,
    SendGridNotifier,
)
from tourcheckout.services.payment_gateway import PaymentDeclinedError, PaymentGatewayError, StripeGateway


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def stripe_charges(monkeypatch):
    """Replace ``stripe.Charge.create``; set ``outcome`` to a charge or an exception."""
    calls = []
    state = {"outcome": SimpleNamespace(id="ch_123", amount=2714, currency="usd", status="succeeded")}

    def create(**kwargs):
        calls.append(kwargs)
        if isinstance(state["outcome"], Exception):
            raise state["outcome"]
        return state["outcome"]

    monkeypatch.setattr(stripe.Charge, "create", create)
    return SimpleNamespace(calls=calls, state=state)


@pytest.mark.asyncio
async def test_stripe_charge_success(stripe_charges):
    receipt = await StripeGateway("sk_test").charge(2714, "USD", "tok_visa", idempotency_key="order-9")

    assert receipt.charge_id == "ch_123"
    assert receipt.amount_minor_units == 2714
    assert receipt.currency == "USD"
    assert receipt.status == "succeeded"
    assert stripe_charges.calls == [{
        "amount": 2714,
        "currency": "usd",
        "source": "tok_visa",
        "api_key": "sk_test",
        "idempotency_key": "order-9",
    }]


@pytest.mark.asyncio
async def test_stripe_charge_without_idempotency_key(stripe_charges):
    await StripeGateway("sk_test").charge(1000, "USD", "tok_visa")

    assert "idempotency_key" not in stripe_charges.calls[0]


@pytest.mark.asyncio
async def test_stripe_card_error_is_a_decline(stripe_charges):
    stripe_charges.state["outcome"] = stripe.CardError(
        "Your card has insufficient funds.", param=None, code="card_declined"
    )

    with pytest.raises(PaymentDeclinedError) as exc_info:
        await StripeGateway("sk_test").charge(1000, "USD", "tok_chargeDeclined")

    assert exc_info.value.message == "Your card has insufficient funds."
    assert exc_info.value.decline_code == "card_declined"
    assert len(stripe_charges.calls) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    stripe.APIConnectionError("Network error communicating with Stripe"),
    stripe.APIError("Something went wrong on Stripe's end", http_status=500),
    stripe.AuthenticationError("Invalid API Key provided", http_status=401),
])
async def test_stripe_other_errors_are_gateway_errors(stripe_charges, error):
    stripe_charges.state["outcome"] = error

    with pytest.raises(PaymentGatewayError):
        await StripeGateway("sk_test").charge(1000, "USD", "tok_visa")

    assert len(stripe_charges.calls) == 1


@pytest.mark.asyncio
async def test_stripe_charge_without_id_is_a_gateway_error(stripe_charges):
    stripe_charges.state["outcome"] = SimpleNamespace(id=None, amount=1000, currency="usd", status="succeeded")

    with pytest.raises(PaymentGatewayError, match="missing the charge id"):
        await StripeGateway("sk_test").charge(1000, "USD", "tok_visa")


@pytest.fixture
def operator():
    return EmailAddress("reservations@example.com", "Tour reservations")


@pytest.mark.asyncio
async def test_sendgrid_send(operator):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["payload"] = json.loads(request.content)
        return httpx.Response(202)

    message = EmailMessage(
        sender=operator,
        to=EmailAddress("ada@example.com", "Ada Lovelace"),
        bcc=operator,
        subject="July 1 Tour GG Confirmation",
        body="Hello",
    )
    async with mock_client(handler) as client:
        await SendGridNotifier(client, "sg_key", "https://sendgrid.test").send(message)

    assert seen["url"] == "https://sendgrid.test/v3/mail/send"
    assert seen["auth"] == "Bearer sg_key"
    assert seen["payload"] == {
        "personalizations": [{
            "to": [{"email": "ada@example.com", "name": "Ada Lovelace"}],
            "bcc": [{"email": "reservations@example.com", "name": "Tour reservations"}],
        }],
        "from": {"email": "reservations@example.com", "name": "Tour reservations"},
        "subject": "July 1 Tour GG Confirmation",
        "content": [{"type": "text/plain", "value": "Hello"}],
    }


def test_sendgrid_payload_drops_bcc_matching_recipient(operator):
    """SendGrid rejects a personalization that repeats an address."""
    notifier = SendGridNotifier(httpx.AsyncClient(), "sg_key")
    message = EmailMessage(sender=operator, to=operator, bcc=operator, subject="s", body="b")

    payload = notifier.build_payload(message)

    assert "bcc" not in payload["personalizations"][0]


@pytest.mark.asyncio
async def test_sendgrid_rejection_raises(operator):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"errors": [{"message": "invalid"}]})

    message = EmailMessage(sender=operator, to=operator, subject="s", body="b")
    async with mock_client(handler) as client:
        with pytest.raises(NotificationError):
            await SendGridNotifier(client, "sg_key").send(message)
