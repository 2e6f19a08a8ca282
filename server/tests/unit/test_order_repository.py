"""Unit tests for the order repository."""

import pytest

from tourcheckout.schemas.confirmation import ContactDetails, Rider
from tourcheckout.services.order_repository import OrderRepository


@pytest.fixture
def contact():
    return ContactDetails(name="Ada Lovelace", email="ada@example.com", mobile="555-0100", hotel="Union")


@pytest.mark.asyncio
async def test_create_order_persists_item_and_riders(test_session, make_tour, contact):
    tour = await make_tour()
    repository = OrderRepository(test_session)

    order_id = await repository.create_order(
        tour_id=tour.id,
        num_riders=2,
        riders=[Rider(gender="F", height=66), Rider(gender="?", height=0)],
        total_minor_units=2714,
        currency="USD",
        contact=contact,
    )

    order = await repository.get_order(order_id)
    assert order.total_minor_units == 2714
    assert order.currency == "USD"
    assert order.customer_name == "Ada Lovelace"
    assert order.customer_email == "ada@example.com"
    assert order.payment_recorded is False
    assert order.confirmation_sent is False
    assert [(i.item_num, i.tour_id, i.riders) for i in order.items] == [(0, tour.id, 2)]
    assert [(r.position, r.gender, r.height) for r in order.riders] == [(0, "F", 66), (1, "?", 0)]


@pytest.mark.asyncio
async def test_create_order_without_riders(test_session, make_tour, contact):
    tour = await make_tour()
    repository = OrderRepository(test_session)

    order_id = await repository.create_order(tour.id, 3, [], 4071, "USD", contact)

    order = await repository.get_order(order_id)
    assert order.items[0].riders == 3
    assert order.riders == []


@pytest.mark.asyncio
async def test_status_flags_update_independently(test_session, make_tour, contact):
    tour = await make_tour()
    repository = OrderRepository(test_session)
    order_id = await repository.create_order(tour.id, 1, [], 1357, "USD", contact)

    await repository.mark_payment_recorded(order_id)
    order = await repository.get_order(order_id)
    assert order.payment_recorded is True
    assert order.confirmation_sent is False

    await repository.mark_confirmation_sent(order_id)
    order = await repository.get_order(order_id)
    assert order.payment_recorded is True
    assert order.confirmation_sent is True


@pytest.mark.asyncio
async def test_mark_unknown_order_raises(test_session):
    repository = OrderRepository(test_session)

    with pytest.raises(LookupError):
        await repository.mark_payment_recorded(12345)


@pytest.mark.asyncio
async def test_get_unknown_order_returns_none(test_session):
    assert await OrderRepository(test_session).get_order(12345) is None
