"""Test configuration and fixtures."""

import os

# Must be set before the application settings are first imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from tourcheckout.core.database import Base, build_engine, build_session_factory, get_db  # noqa: E402
from tourcheckout.core.config import settings  # noqa: E402
from tourcheckout.models import Order, OrderItem, Tour, TourTeam  # noqa: E402 - registers every table on Base
from tourcheckout.services.confirmation_service import (  # noqa: E402
    CheckoutPolicy,
    ConfirmationDependencies,
    ConfirmationService,
)
from tourcheckout.services.notification_service import EmailAddress  # noqa: E402
from tourcheckout.services.order_repository import OrderRepository  # noqa: E402
from tourcheckout.services.rendering import TemplateRenderer  # noqa: E402
from tourcheckout.services.tour_catalog import TourCatalog  # noqa: E402

from tests.fakes import FakeNotifier, FakePaymentGateway  # noqa: E402

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed "now" for workflow tests
NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
OPERATOR = EmailAddress("reservations@example.com", "Tour reservations")


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = build_engine(TEST_DATABASE_URL)

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async with build_session_factory(test_engine)() as session:
        yield session


@pytest.fixture
def make_tour(test_session):
    """Insert a tour; keyword arguments override the defaults."""

    async def _make_tour(**overrides) -> Tour:
        values = {
            "code": "GG",
            "starts_at": NOW + timedelta(days=30),
            "price": Decimal("13.57"),
            "capacity": 10,
            "conf_code": "PIER39",
            "auto_confirm": True,
        }
        values.update(overrides)
        tour = Tour(**values)
        test_session.add(tour)
        await test_session.commit()
        return tour

    return _make_tour


@pytest.fixture
def make_paid_order(test_session):
    """Insert an order for a tour, paid or not, holding some riders."""

    async def _make_paid_order(tour_id: int, riders: int, paid: bool = True) -> Order:
        order = Order(
            customer_name="Existing Customer",
            customer_email="existing@example.com",
            total_minor_units=1000,
            currency="USD",
            payment_recorded=paid,
            items=[OrderItem(item_num=0, tour_id=tour_id, riders=riders)],
        )
        test_session.add(order)
        await test_session.commit()
        return order

    return _make_paid_order


@pytest.fixture
def add_team(test_session):
    """Insert a guide/sweep assignment for a tour."""

    async def _add_team(tour_id: int, version: int, guide: str, sweep: str = "") -> TourTeam:
        team = TourTeam(tour_id=tour_id, version=version, guide=guide, sweep=sweep)
        test_session.add(team)
        await test_session.commit()
        return team

    return _add_team


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def renderer():
    return TemplateRenderer(settings.templates_dir)


@pytest.fixture
def policy():
    return CheckoutPolicy(operator=OPERATOR)


@pytest.fixture
def make_service(test_session, gateway, notifier, renderer, policy):
    """Build a confirmation service; keyword arguments replace collaborators."""

    def _make_service(**overrides) -> ConfirmationService:
        deps = {
            "catalog": TourCatalog(test_session),
            "orders": OrderRepository(test_session),
            "gateway": gateway,
            "notifier": notifier,
            "renderer": renderer,
            "policy": policy,
            "clock": lambda: NOW,
        }
        deps.update(overrides)
        return ConfirmationService(ConfirmationDependencies(**deps))

    return _make_service


@pytest.fixture
def checkout_form_data():
    """Form fields for two riders on a 13.57 tour; TourID is filled in by the test."""
    return {
        "NumRiders": "2",
        "QuotedTotal": "$27.14",
        "StripeToken": "tok_visa",
        "Name": "Ada Lovelace",
        "Email": "ada@example.com",
        "Mobile": "555-0100",
        "Hotel": "Hotel Union Square",
        "Misc": "",
        "Riders.0.Gender": "F",
        "Riders.0.Height": "66",
        "Riders.1.Gender": "M",
        "Riders.1.Height": "71",
    }


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session, gateway, notifier, renderer, policy):
    """Create the application with its outbound collaborators replaced by fakes."""
    from tourcheckout.core.dependencies import (
        get_checkout_policy,
        get_notifier,
        get_payment_gateway,
        get_renderer,
    )
    from tourcheckout.main import create_app

    app = create_app()

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_renderer] = lambda: renderer
    app.dependency_overrides[get_checkout_policy] = lambda: policy

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
